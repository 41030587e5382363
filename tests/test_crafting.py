"""Tests for crafting, smelting, mining and the mine lift."""

from aethel.engine import apply_action, new_game
from aethel.items import count_in_inventory, give_item


class ScriptedRng:
    """Returns queued values from random()."""

    def __init__(self, *values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


def _ids(result):
    return [e["event_id"] for e in result.events]


def _at(location, *rolls, **kwargs):
    session = new_game(seed=1, **kwargs)
    session.world.location = location
    if rolls:
        session.world.rng = ScriptedRng(*rolls)
    return session


def test_smelting_consumes_ore_on_success():
    session = _at("blacksmith", 0.0)
    give_item(session, "iron_ore", quantity=3)

    result = apply_action(session, "smelt iron ingot")

    assert "craft.succeeded" in _ids(result)
    assert count_in_inventory(session.player, "iron_ingot") == 1
    assert count_in_inventory(session.player, "iron_ore") == 1
    assert session.world.hour == 9


def test_failed_craft_keeps_materials():
    session = _at("blacksmith", 0.99)
    give_item(session, "iron_ore", quantity=2)

    result = apply_action(session, "smelt iron ingot")

    assert "craft.failed" in _ids(result)
    assert count_in_inventory(session.player, "iron_ore") == 2
    assert count_in_inventory(session.player, "iron_ingot") == 0


def test_missing_materials_are_listed():
    session = _at("blacksmith")
    give_item(session, "iron_ingot")
    result = apply_action(session, "craft sword")
    failed = result.events[-1]["params"]
    assert failed["reason"] == "item_not_found"
    assert failed["message"] == "You are missing: 2 Iron Ingot, 1 Stick."


def test_crafting_needs_a_station():
    session = _at("inn")
    give_item(session, "stick")
    result = apply_action(session, "craft torch")
    assert result.events[-1]["params"]["message"] == "There is nowhere to craft here."


def test_smelting_workbench_recipe_is_refused():
    session = _at("blacksmith")
    give_item(session, "stick")
    result = apply_action(session, "smelt torch")
    assert result.events[-1]["event_id"] == "action.failed"
    assert count_in_inventory(session.player, "stick") == 1


def test_crafted_equipment_rolls_rarity():
    """Equippable results get a rarity tier; bladed ones a metal too."""
    session = _at("blacksmith", 0.0, 0.5)
    give_item(session, "iron_ingot", quantity=3)
    give_item(session, "stick")

    apply_action(session, "craft sword")

    sword = next(it for it in session.player.inventory if it.template_id == "sword")
    assert sword.name == "Common steel Sword"
    assert count_in_inventory(session.player, "iron_ingot") == 0


def test_unknown_recipe():
    session = _at("blacksmith")
    result = apply_action(session, "craft spaceship")
    assert result.events[-1]["params"]["reason"] == "unknown_template"


def test_mining_needs_a_pickaxe():
    session = _at("old_abandoned_mine")
    result = apply_action(session, "mine")
    assert result.events[-1]["params"]["message"] == "You need a pickaxe to do that."
    assert session.world.hour == 8


def test_mining_with_a_pickaxe():
    """A successful swing yields iron ore and wears the pickaxe."""
    session = _at("old_abandoned_mine", 0.0)
    pick = give_item(session, "rusty_pickaxe")[0]

    result = apply_action(session, "mine")

    assert "gather.found" in _ids(result)
    assert count_in_inventory(session.player, "iron_ore") == 1
    assert pick.durability == pick.max_durability - 1
    assert session.world.hour == 9


def test_dwarves_mine_double():
    session = _at("old_abandoned_mine", 0.0, race="dwarf")
    give_item(session, "rusty_pickaxe")
    result = apply_action(session, "mine")
    assert "gather.racial_yield" in _ids(result)
    assert count_in_inventory(session.player, "iron_ore") == 2


def test_prospecting_table():
    """Prospect rolls against the cumulative table; a miss finds nothing."""
    session = _at("old_abandoned_mine", 0.0, 0.5)
    give_item(session, "rusty_pickaxe")
    apply_action(session, "prospect")
    assert count_in_inventory(session.player, "mithril_ore") == 1

    session.world.rng = ScriptedRng(0.0, 0.99)
    result = apply_action(session, "prospect")
    assert "gather.empty" in _ids(result)


def test_lift_moves_between_floors():
    """The lift goes down floor by floor and back up to the entrance."""
    session = _at("old_abandoned_mine")

    apply_action(session, "down")
    assert session.world.location == "mine_floor"
    assert session.player.mine_floor == 1

    from aethel.world import describe

    assert "Mine Floor 1" in describe(session)
    assert "iron ore" in describe(session)

    apply_action(session, "down")
    assert session.player.mine_floor == 2

    apply_action(session, "up")
    apply_action(session, "up")
    assert session.player.mine_floor == 0
    assert session.world.location == "old_abandoned_mine"


def test_lift_bottom_floor():
    session = _at("mine_floor")
    session.player.mine_floor = 120
    result = apply_action(session, "down")
    assert result.events[-1]["params"]["message"] == "The lift won't go any deeper."
    assert session.player.mine_floor == 120


def test_deep_floors_yield_deeper_ore():
    session = _at("mine_floor", 0.0)
    session.player.mine_floor = 25
    give_item(session, "iron_pickaxe")
    apply_action(session, "mine")
    assert count_in_inventory(session.player, "mithril_ore") == 1
