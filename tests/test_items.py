"""Tests for item instances, rarity, durability and equipment."""

import random

import pytest

from aethel.engine import apply_action, new_game
from aethel.errors import InvalidSlot, ItemBroken, ItemNotFound, ItemNotUsable, UnknownTemplate
from aethel.items import (
    create_instance,
    decrease_durability,
    equip_item,
    find_in_inventory,
    give_item,
    roll_rarity,
    unequip_slot,
    use_item,
)
from aethel.stats import effective_stats


class ScriptedRng:
    """Returns queued values from random()."""

    def __init__(self, *values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


def test_instances_get_unique_uids():
    """Every created instance has a uid no other instance has."""
    session = new_game(seed=1)
    items = give_item(session, "torch", quantity=5)
    items += give_item(session, "rusty_sword", with_rarity=True, quantity=5)
    uids = [it.uid for it in items]
    assert len(set(uids)) == len(uids)


def test_unknown_template_raises():
    """Creating an instance of a missing template fails cleanly."""
    session = new_game(seed=1)
    with pytest.raises(UnknownTemplate):
        create_instance(session, "excalibur")


def test_rarity_distribution_follows_table():
    """Rarity draws land near the table's chances."""
    rng = random.Random(42)
    counts = {}
    draws = 20000
    for _ in range(draws):
        _rank, name, _mult = roll_rarity(rng)
        counts[name] = counts.get(name, 0) + 1

    assert abs(counts["Common"] / draws - 0.40) < 0.02
    assert abs(counts["Very Common"] / draws - 0.25) < 0.02
    assert abs(counts["Uncommon"] / draws - 0.20) < 0.02


def test_rarity_falls_back_to_common():
    """A draw past the end of the cumulative table is Common."""
    _rank, name, mult = roll_rarity(ScriptedRng(0.9999999))
    assert name == "Common"
    assert mult == 1.0


def test_bladed_weapon_gets_rarity_and_material():
    """Bladed weapons are named '<rarity> <metal> <name>' with scaled stats."""
    session = new_game(seed=1)

    session.world.rng = ScriptedRng(0.5)
    common = create_instance(session, "rusty_sword", with_rarity=True)
    assert common.name == "Common steel Rusty Sword"
    assert common.material == "steel"
    assert common.stats == {"attack": 2}

    session.world.rng = ScriptedRng(0.9)
    rare = create_instance(session, "rusty_sword", with_rarity=True)
    assert rare.name == "Rare adamant Rusty Sword"
    assert rare.stats == {"attack": 3}


def test_non_bladed_items_get_no_material():
    """Armor rolls a rarity but keeps its plain material."""
    session = new_game(seed=1)
    session.world.rng = ScriptedRng(0.5)
    armor = create_instance(session, "leather_armor", with_rarity=True)
    assert armor.name == "Common Leather Armor"
    assert armor.material is None


def test_rarity_scaling_rounds_halves_up():
    """A Rare multiplier of 1.5 turns 3 defense into 5, not 4."""
    session = new_game(seed=1)
    session.world.rng = ScriptedRng(0.9)
    armor = create_instance(session, "leather_armor", with_rarity=True)
    assert armor.name == "Rare Leather Armor"
    assert armor.stats == {"defense": 5}


def test_find_in_inventory_matches_template_name():
    """'rusty sword' finds a rarity-named Rusty Sword."""
    session = new_game(seed=1)
    session.world.rng = ScriptedRng(0.9)
    sword = give_item(session, "rusty_sword", with_rarity=True)[0]
    assert find_in_inventory(session, "rusty sword") is sword
    assert find_in_inventory(session, "RARE ADAMANT RUSTY SWORD") is sword


def test_equip_and_unequip():
    """Equipping moves the item into its slot and changes effective stats."""
    session = new_game(seed=1)
    base_attack = effective_stats(session).attack
    sword = give_item(session, "rusty_sword")[0]

    equip_item(session, "rusty sword")
    assert session.player.equipment["weapon"] is sword
    assert sword not in session.player.inventory
    assert effective_stats(session).attack == base_attack + 2

    unequip_slot(session, "weapon")
    assert session.player.equipment["weapon"] is None
    assert sword in session.player.inventory
    assert effective_stats(session).attack == base_attack


def test_equip_swaps_previous_item_back_to_inventory():
    """Equipping into an occupied slot returns the old item."""
    session = new_game(seed=1)
    old = give_item(session, "rusty_sword")[0]
    new = give_item(session, "sword")[0]
    equip_item(session, "rusty sword")
    equip_item(session, "sword")
    assert session.player.equipment["weapon"] is new
    assert old in session.player.inventory


def test_equip_errors():
    """Missing, unequippable and broken items are refused."""
    session = new_game(seed=1)
    with pytest.raises(ItemNotFound):
        equip_item(session, "sword")

    give_item(session, "torch")
    with pytest.raises(InvalidSlot):
        equip_item(session, "torch")

    sword = give_item(session, "sword")[0]
    sword.durability = 0
    with pytest.raises(ItemBroken):
        equip_item(session, "sword")

    with pytest.raises(InvalidSlot):
        unequip_slot(session, "tail")
    with pytest.raises(ItemNotFound):
        unequip_slot(session, "head")


def test_durability_break_removes_item_once():
    """An item reaching zero durability leaves its slot exactly once."""
    session = new_game(seed=1)
    sword = give_item(session, "rusty_sword")[0]
    equip_item(session, "rusty sword")
    sword.durability = 1

    assert decrease_durability(session, sword) is True
    assert sword.durability == 0
    assert session.player.equipment["weapon"] is None
    assert sword not in session.player.inventory

    assert decrease_durability(session, sword) is False
    broken = [e for e in session.event_log if e["event_id"] == "item.broken"]
    assert len(broken) == 1
    assert broken[0]["params"]["container"] == "weapon"


def test_items_without_durability_never_break():
    """Torches have no durability and are untouched."""
    session = new_game(seed=1)
    torch = give_item(session, "torch")[0]
    assert decrease_durability(session, torch, amount=100) is False
    assert torch in session.player.inventory


def test_health_potion_caps_at_max_health():
    """Healing never exceeds effective max health."""
    session = new_game(seed=1)
    max_health = effective_stats(session).max_health
    session.player.stats.health = max_health - 10
    give_item(session, "health_potion")

    use_item(session, "health potion")

    assert session.player.stats.health == max_health
    assert not session.player.has_item("health_potion")


def test_antidote_cures_poison():
    """Cure items remove the effects they list."""
    from aethel.models import ActiveEffect

    session = new_game(seed=1)
    session.player.active_effects.append(ActiveEffect("poison", 3))
    session.player.active_effects.append(ActiveEffect("frozen", 1))
    give_item(session, "antidote")

    use_item(session, "antidote")

    assert [e.effect_id for e in session.player.active_effects] == ["frozen"]


def test_using_a_non_consumable_fails():
    """Items without a consumable effect cannot be used."""
    session = new_game(seed=1)
    give_item(session, "torch")
    with pytest.raises(ItemNotUsable):
        use_item(session, "torch")
    assert session.player.has_item("torch")


def test_repair_at_blacksmith():
    """Repairing restores durability for ceil(missing / 2) gold."""
    session = new_game(seed=1)
    sword = give_item(session, "rusty_sword")[0]
    sword.durability = 25

    result = apply_action(session, "repair rusty sword")
    assert sword.durability == 25
    assert result.events[-1]["params"]["reason"] == "invalid_action"

    session.world.location = "blacksmith"
    result = apply_action(session, "repair rusty sword")
    assert sword.durability == sword.max_durability
    assert session.player.stats.gold == 50 - 3
    assert result.events[-1]["event_id"] == "item.repaired"
