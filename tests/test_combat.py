"""Tests for turn-based combat and racial combat abilities."""

from aethel.combat import start_combat
from aethel.effects import PLAYER, apply_effect
from aethel.engine import apply_action, new_game
from aethel.items import equip_item, give_item
from aethel.stats import effective_stats


def _ids(result):
    return [e["event_id"] for e in result.events]


def _fight(race="human", character_class="warrior", enemy="goblin", seed=7):
    session = new_game(seed=seed, race=race, character_class=character_class)
    session.world.location = "dungeon"
    start_combat(session, enemy)
    return session


def test_entering_the_dungeon_starts_combat():
    """The dungeon's 'enter' verb begins an encounter with a fresh goblin."""
    session = new_game(seed=1)
    session.world.location = "dungeon"
    result = apply_action(session, "enter")
    assert session.in_combat
    assert session.encounter.enemy.stats.health == 30
    assert "combat.started" in _ids(result)
    assert result.show_location is False

    # The template is never mutated
    session.encounter.enemy.stats.health = 1
    assert session.catalog.enemies["goblin"].health == 30


def test_attacks_until_the_goblin_falls():
    """10 attack against 30 health and 4 defense takes five attacks; the last one ends the fight."""
    session = _fight()
    session.player.stats.attack = 10
    gold = session.player.stats.gold
    health = session.player.stats.health

    for _ in range(4):
        result = apply_action(session, "attack")
        assert "combat.enemy_attack" in _ids(result)
    assert session.encounter.enemy.stats.health == 6

    result = apply_action(session, "attack")
    assert not session.in_combat
    assert "combat.won" in _ids(result)
    assert "combat.enemy_attack" not in _ids(result)
    assert session.player.stats.gold == gold + 15
    assert session.player.stats.experience == 10
    # Goblin attack 8 against defense 10 deals the minimum of 1
    assert session.player.stats.health == health - 4


def test_fleeing_gives_no_rewards():
    """Fleeing ends combat immediately with no damage and no rewards."""
    session = _fight()
    gold = session.player.stats.gold
    health = session.player.stats.health

    result = apply_action(session, "flee")

    assert _ids(result) == ["combat.fled"]
    assert not session.in_combat
    assert session.player.stats.gold == gold
    assert session.player.stats.experience == 0
    assert session.player.stats.health == health


def test_insufficient_mana_costs_nothing():
    """A spell the player can't afford changes nothing and the enemy does not act."""
    session = _fight()
    session.player.stats.mana = 5
    health = session.player.stats.health

    result = apply_action(session, "cast fireball")

    assert _ids(result) == ["action.failed"]
    assert result.events[0]["params"]["reason"] == "insufficient_mana"
    assert session.player.stats.mana == 5
    assert session.player.stats.health == health
    assert session.encounter.enemy.stats.health == 30
    assert session.encounter.round == 0


def test_unknown_spell_is_refused():
    session = _fight()
    result = apply_action(session, "cast meteor")
    assert result.events[0]["params"]["reason"] == "unknown_spell"
    assert session.encounter.round == 0


def test_casting_a_spell():
    """Fireball costs 10 mana and deals 12 + intelligence // 5."""
    session = _fight(character_class="mage")
    mana = session.player.stats.mana
    intelligence = effective_stats(session).intelligence

    result = apply_action(session, "c fireball")

    assert session.player.stats.mana == mana - 10
    spell = [e for e in result.events if e["event_id"] == "combat.spell"][0]
    assert spell["params"]["damage"] == 12 + intelligence // 5
    assert spell["params"]["school"] == "fire"


def test_free_commands_do_not_spend_the_round():
    """Checking stats mid-fight does not give the enemy a turn."""
    session = _fight()
    health = session.player.stats.health
    result = apply_action(session, "stats")
    assert _ids(result) == ["show.stats"]
    assert session.encounter.round == 0
    assert session.player.stats.health == health


def test_unrecognized_combat_input_wastes_the_turn():
    """Anything else spends the round and the enemy still attacks."""
    session = _fight()
    result = apply_action(session, "dance")
    assert _ids(result)[0] == "combat.wasted"
    assert "combat.enemy_attack" in _ids(result)
    assert session.encounter.round == 1


def test_using_a_missing_item_spends_the_round():
    session = _fight()
    result = apply_action(session, "use elixir")
    assert "action.failed" in _ids(result)
    assert "combat.enemy_attack" in _ids(result)


def test_potion_in_combat():
    session = _fight()
    give_item(session, "health_potion")
    session.player.stats.health = 50
    apply_action(session, "use health potion")
    # 50 + 25, then the goblin's 1 damage
    assert session.player.stats.health == 74


def test_weapon_wears_down_when_attacking():
    session = _fight()
    sword = give_item(session, "rusty_sword")[0]
    equip_item(session, "rusty sword")
    apply_action(session, "attack")
    assert sword.durability == sword.max_durability - 1


def test_armor_wears_down_when_hit():
    session = _fight()
    armor = give_item(session, "leather_armor")[0]
    equip_item(session, "leather armor")
    apply_action(session, "attack")
    assert armor.durability == armor.max_durability - 1


def test_defeat_ends_the_game():
    """Dropping to zero health sets the defeated status."""
    session = _fight()
    session.player.stats.health = 1
    result = apply_action(session, "dance")
    assert "combat.lost" in _ids(result)
    assert session.status == "defeated"
    assert not session.in_combat

    result = apply_action(session, "attack")
    assert result.events == []


def test_orc_battle_rage():
    """Rage drops the orc's guard, then the next attack hits for 1.5x."""
    session = _fight(race="orc")
    max_health = session.player.stats.health

    result = apply_action(session, "rage")
    assert "combat.rage" in _ids(result)
    # Defense 10 halved to 5 against attack 8
    assert session.player.stats.health == max_health - 3

    apply_action(session, "attack")
    # floor(12 * 1.5) - 4; the attack spends the rage so the guard is back up
    assert session.encounter.enemy.stats.health == 30 - 14
    assert session.player.stats.health == max_health - 3 - 1
    assert "raging" not in session.player.flags

    result = apply_action(session, "rage")
    assert _ids(result) == ["action.failed"]
    assert session.encounter.round == 2


def test_battle_rage_resets_after_combat():
    session = _fight(race="orc")
    apply_action(session, "rage")
    apply_action(session, "flee")
    assert "battle_rage" not in session.player.cooldowns


def test_angel_lay_on_hands_once_per_day():
    """Angels heal 30% of max health once per day."""
    session = _fight(race="angel")
    session.player.stats.health = 50

    apply_action(session, "heal")
    # +36, then the goblin's 1 damage
    assert session.player.stats.health == 85
    assert session.player.cooldowns["lay_on_hands"] == session.world.day

    result = apply_action(session, "heal")
    assert _ids(result) == ["action.failed"]
    assert session.player.stats.health == 85

    apply_action(session, "flee")
    assert "lay_on_hands" in session.player.cooldowns

    from aethel.world import advance_time

    advance_time(session, 24)
    assert "lay_on_hands" not in session.player.cooldowns


def test_racial_commands_are_wasted_for_other_races():
    session = _fight()
    result = apply_action(session, "rage")
    assert _ids(result)[0] == "combat.wasted"


def test_tiefling_rebuke_once_per_fight():
    """The first hit a tiefling takes burns the attacker for intelligence // 2."""
    session = _fight(race="tiefling")

    result = apply_action(session, "attack")
    assert "combat.rebuke" in _ids(result)
    # 30 - (12 - 4) - 11 // 2
    assert session.encounter.enemy.stats.health == 17

    result = apply_action(session, "attack")
    assert "combat.rebuke" not in _ids(result)
    assert session.encounter.enemy.stats.health == 9


def test_racial_damage_multiplier():
    """Undead take 1.5x fire damage."""
    session = _fight(race="undead")
    session.encounter.enemy.damage_type = "fire"
    session.player.stats.defense = 0
    health = session.player.stats.health

    result = apply_action(session, "dance")

    assert "combat.racial_damage" in _ids(result)
    assert session.player.stats.health == health - 12


def test_frozen_player_loses_the_turn():
    """A frozen player cannot act but the enemy still does."""
    session = _fight()
    apply_effect(session, PLAYER, "frozen", 1)

    result = apply_action(session, "attack")

    assert "combat.turn_lost" in _ids(result)
    assert session.encounter.enemy.stats.health == 30
    assert "combat.enemy_attack" in _ids(result)
    assert session.player.active_effects == []


def test_poison_ticks_each_round():
    session = _fight()
    health = session.player.stats.health
    apply_effect(session, PLAYER, "poison", 3)

    apply_action(session, "attack")

    # 2 poison + 1 from the goblin
    assert session.player.stats.health == health - 3
    assert session.player.active_effects[0].turns_remaining == 2


def test_shapeshifter_learns_defeated_forms():
    """Beating an enemy teaches a shapeshifter its form."""
    session = _fight(race="shapeshifter")
    session.encounter.enemy.stats.health = 1
    result = apply_action(session, "attack")
    assert "form.learned" in _ids(result)
    assert session.player.known_forms == ["goblin"]

    result = apply_action(session, "transform goblin")
    assert "form.transformed" in _ids(result)
