"""Tests for travel, the clock, shops, descriptions and NPCs."""

import pytest

from aethel.engine import apply_action, new_game
from aethel.errors import UnknownLocation
from aethel.items import give_item
from aethel.world import advance_time, describe, ore_for_floor, travel


def _events(result, event_id):
    return [e for e in result.events if e["event_id"] == event_id]


def test_move_between_connected_locations():
    """Directional verbs follow the location graph and take time."""
    session = new_game(seed=1)
    assert session.world.location == "forest"
    assert session.world.hour == 8

    apply_action(session, "west")
    assert session.world.location == "roads"
    assert session.world.hour == 9

    apply_action(session, "back")
    assert session.world.location == "forest"

    result = apply_action(session, "east")
    assert session.world.location == "village_entrance"
    assert session.world.hour == 10
    assert _events(result, "travel.message")[0]["params"]["text"] == "You have discovered a village."


def test_travel_marks_location_visited():
    """Arriving somewhere marks it visited."""
    session = new_game(seed=1)
    assert not session.locations["roads"].visited
    apply_action(session, "west")
    assert session.locations["roads"].visited


def test_travel_to_unknown_location_raises():
    """The world graph refuses destinations that do not exist."""
    session = new_game(seed=1)
    with pytest.raises(UnknownLocation):
        travel(session, "atlantis")
    assert session.world.location == "forest"


def test_unknown_verb_is_invalid():
    """A verb the location does not offer is an invalid action."""
    session = new_game(seed=1)
    result = apply_action(session, "fly")
    assert _events(result, "action.invalid")
    assert session.world.location == "forest"


def test_cave_needs_a_torch():
    """The cave description and the way forward depend on carrying a torch."""
    session = new_game(seed=1)
    apply_action(session, "north")
    assert session.world.location == "cave"
    assert "too dark" in describe(session)

    result = apply_action(session, "proceed")
    assert session.world.location == "cave"
    failed = _events(result, "action.failed")
    assert failed[0]["params"]["message"] == "It's too dark to proceed without a light source."

    give_item(session, "torch")
    assert "'proceed'" in describe(session)
    apply_action(session, "proceed")
    assert session.world.location == "old_abandoned_mine"


def test_first_visit_message_only_once():
    """The palace guard only stops you the first time."""
    session = new_game(seed=1)
    for verb in ["west", "south", "explore"]:
        apply_action(session, verb)
    result = apply_action(session, "palace")
    assert len(_events(result, "location.first_visit")) == 1

    apply_action(session, "back")
    result = apply_action(session, "palace")
    assert _events(result, "location.first_visit") == []


def test_crossing_midnight_starts_a_new_day():
    """Advancing past hour 23 wraps the clock and increments the day."""
    session = new_game(seed=1)
    advance_time(session, 17)
    assert session.world.day == 2
    assert session.world.hour == 1
    assert any(e["event_id"] == "world.new_day" for e in session.event_log)


def test_night_changes_the_bar_description():
    """The bar gains an evening line after dark."""
    session = new_game(seed=1)
    session.world.location = "bar"
    assert "evening crowd" not in describe(session)
    session.world.hour = 21
    assert "evening crowd" in describe(session)


def test_shop_stock_runs_out_and_restocks():
    """Buying the last torch sells out the shop until the next day."""
    session = new_game(seed=1)
    session.world.location = "shop"
    session.player.stats.gold = 1000

    for _ in range(5):
        result = apply_action(session, "buy torch")
        assert _events(result, "item.bought")
    assert sum(1 for it in session.player.inventory if it.template_id == "torch") == 5
    assert session.player.stats.gold == 950

    result = apply_action(session, "buy torch")
    assert _events(result, "action.failed")[0]["params"]["reason"] == "insufficient_stock"
    assert session.player.stats.gold == 950

    advance_time(session, 24)
    assert session.locations["shop"].shop_stock["torch"].current == 5


def test_buy_requires_gold_and_a_shop():
    """Buying fails without enough gold or outside a shop."""
    session = new_game(seed=1)
    result = apply_action(session, "buy torch")
    assert _events(result, "action.failed")[0]["params"]["reason"] == "invalid_action"

    session.world.location = "shop"
    session.player.stats.gold = 5
    result = apply_action(session, "buy torch")
    assert _events(result, "action.failed")[0]["params"]["reason"] == "insufficient_gold"
    assert session.locations["shop"].shop_stock["torch"].current == 5

    result = apply_action(session, "buy dragon")
    assert _events(result, "action.failed")[0]["params"]["reason"] == "item_not_found"


def test_rest_restores_health():
    """Sleeping at the inn passes eight hours and restores health."""
    session = new_game(seed=1)
    session.world.location = "inn"
    session.player.stats.health = 10
    apply_action(session, "sleep")
    assert session.world.hour == 16
    assert session.player.stats.health == session.player.stats.max_health


def test_lizardman_regenerates_each_hour():
    """Lizardmen heal one point per elapsed hour, up to their maximum."""
    session = new_game(seed=1, race="lizardman")
    session.player.stats.health = 50
    advance_time(session, 3)
    assert session.player.stats.health == 53


def test_dialogue_cycles_and_fills_placeholders():
    """Dialogue advances one line per talk and wraps around."""
    session = new_game(seed=1, name="Rowan")
    lines = []
    for _ in range(7):
        result = apply_action(session, "talk to gideon")
        lines.append(_events(result, "npc.said")[0]["params"]["text"])

    assert lines[5] == "It was Rowan!"
    assert lines[6] == lines[0]


def test_talk_to_someone_absent():
    """Talking to an NPC who is not here fails."""
    session = new_game(seed=1)
    result = apply_action(session, "talk to elara")
    assert _events(result, "action.failed")


def test_look_lists_location_and_npcs():
    """Looking around shows the long description and who is present."""
    session = new_game(seed=1)
    result = apply_action(session, "look")
    assert _events(result, "look.location")[0]["params"]["name"] == "Forest"
    assert _events(result, "look.npc")[0]["params"]["name"] == "Gideon"


def test_look_at_crafting_station_lists_recipes():
    """Looking at the forge shows what can be made there."""
    session = new_game(seed=1)
    session.world.location = "blacksmith"
    result = apply_action(session, "look forge")
    recipes = _events(result, "look.recipes")[0]["params"]["recipes"]
    assert "Iron Ingot (2 Iron Ore)" in recipes


def test_ore_for_floor_tiers():
    """Every ten floors the ore changes; the deepest floors reuse the last ore."""
    assert ore_for_floor(1) == "iron_ore"
    assert ore_for_floor(10) == "iron_ore"
    assert ore_for_floor(11) == "steel_ore"
    assert ore_for_floor(101) == "celestial_steel_ore"
    assert ore_for_floor(120) == "celestial_steel_ore"
