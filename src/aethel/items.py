"""Item instances: creation, rarity rolls, durability and inventory handling."""

from __future__ import annotations

import math
import random
from typing import List, Optional, Tuple

from .constants import DEFAULT_RARITY, METALS, RARITY_TABLE
from .errors import (
    InsufficientGold,
    InsufficientStock,
    InvalidAction,
    InvalidSlot,
    ItemBroken,
    ItemNotFound,
    ItemNotUsable,
)
from .models import GameSession, ItemInstance, Player, log_event
from .stats import effective_stats


def roll_rarity(rng: random.Random) -> Tuple[int, str, float]:
    """Draw a rarity tier by walking the cumulative chance table.

    Args:
        rng: Random source

    Returns:
        Tuple of (rank, tier name, stat multiplier). The rank is the tier's
        position in RARITY_TABLE and drives material selection.
    """
    roll = rng.random()
    cumulative = 0.0
    for rank, (name, chance, multiplier) in enumerate(RARITY_TABLE):
        cumulative += chance
        if roll < cumulative:
            return rank, name, multiplier

    # The table sums to slightly under 1.0; the remainder falls back
    for rank, (name, _chance, multiplier) in enumerate(RARITY_TABLE):
        if name == DEFAULT_RARITY:
            return rank, name, multiplier
    raise ValueError(f"Rarity table has no '{DEFAULT_RARITY}' tier")


def create_instance(session: GameSession, template_id: str, with_rarity: bool = False) -> ItemInstance:
    """Create a fresh, uniquely identified instance of an item template.

    The instance is not placed in any container; callers decide where it goes.

    Args:
        session: Game session (provides catalog, rng and the uid counter)
        template_id: Item template id
        with_rarity: Roll a rarity tier (and material for bladed weapons)

    Returns:
        The new ItemInstance

    Raises:
        UnknownTemplate: If the template id is not in the catalog
    """
    spec = session.catalog.item(template_id)
    player = session.player

    uid = player.next_item_uid
    player.next_item_uid += 1

    instance = ItemInstance(
        uid=uid,
        template_id=spec.id,
        name=spec.name,
        item_type=spec.item_type,
        equip_slot=spec.equip_slot,
        durability=spec.max_durability,
        max_durability=spec.max_durability,
        stats=dict(spec.stats),
        mining_bonus=spec.mining_bonus,
    )

    if with_rarity:
        rank, rarity, multiplier = roll_rarity(session.world.rng)
        instance.rarity = rarity
        instance.stats = {stat: math.floor(value * multiplier + 0.5) for stat, value in instance.stats.items()}
        instance.name = f"{rarity} {spec.name}"
        if spec.category == "bladed":
            material = METALS[min(rank, len(METALS) - 1)]
            instance.material = material
            instance.name = f"{rarity} {material} {spec.name}"

    return instance


def give_item(
    session: GameSession,
    template_id: str,
    with_rarity: bool = False,
    quantity: int = 1,
) -> List[ItemInstance]:
    """Create instances and put them in the player's inventory."""
    created = []
    for _ in range(quantity):
        instance = create_instance(session, template_id, with_rarity)
        session.player.inventory.append(instance)
        created.append(instance)
    return created


def count_in_inventory(player: Player, template_id: str) -> int:
    return sum(1 for it in player.inventory if it.template_id == template_id)


def find_in_inventory(session: GameSession, name: str) -> Optional[ItemInstance]:
    """Find an inventory item by display name (case-insensitive).

    An exact instance name wins; otherwise the template's plain name matches,
    so "rusty sword" still finds a "Rare iron Rusty Sword".
    """
    wanted = name.strip().lower()
    if not wanted:
        return None
    for it in session.player.inventory:
        if it.name.lower() == wanted:
            return it
    for it in session.player.inventory:
        spec = session.catalog.items.get(it.template_id)
        if spec is not None and spec.name.lower() == wanted:
            return it
    return None


def find_owned(session: GameSession, name: str) -> Tuple[Optional[ItemInstance], Optional[str]]:
    """Find an item in the inventory or equipment.

    Returns:
        (instance, slot) where slot is None for inventory items
    """
    inst = find_in_inventory(session, name)
    if inst is not None:
        return inst, None
    wanted = name.strip().lower()
    for slot, it in session.player.equipment.items():
        if it is None:
            continue
        spec = session.catalog.items.get(it.template_id)
        if it.name.lower() == wanted or (spec is not None and spec.name.lower() == wanted):
            return it, slot
    return None, None


def remove_instance(player: Player, instance: ItemInstance) -> Optional[str]:
    """Remove an instance from whichever container holds it.

    Returns:
        "inventory", the equipment slot name, or None if it was not held
    """
    for idx, it in enumerate(player.inventory):
        if it.uid == instance.uid:
            del player.inventory[idx]
            return "inventory"
    for slot, it in player.equipment.items():
        if it is not None and it.uid == instance.uid:
            player.equipment[slot] = None
            return slot
    return None


def remove_by_template(player: Player, template_id: str, count: int) -> None:
    """Remove ``count`` inventory instances of a template (oldest first)."""
    removed = 0
    kept = []
    for it in player.inventory:
        if removed < count and it.template_id == template_id:
            removed += 1
            continue
        kept.append(it)
    player.inventory[:] = kept


def decrease_durability(session: GameSession, instance: Optional[ItemInstance], amount: int = 1) -> bool:
    """Wear an item down; at zero it breaks and leaves its container.

    Items without durability and items already at zero are left alone, so an
    item can only break once.

    Returns:
        True if this call broke the item
    """
    if instance is None or instance.durability is None or instance.durability <= 0:
        return False

    instance.durability = max(0, instance.durability - amount)
    if instance.durability > 0:
        return False

    where = remove_instance(session.player, instance)
    log_event(session, "item.broken", item=instance.name, container=where)
    return True


def equip_item(session: GameSession, name: str) -> None:
    player = session.player
    if not name:
        raise InvalidAction("What would you like to equip? Use 'equip <item name>'.")
    inst = find_in_inventory(session, name)
    if inst is None:
        raise ItemNotFound(f"You don't have a '{name}' in your inventory.")

    slot = inst.equip_slot
    if not slot or slot not in player.equipment:
        raise InvalidSlot(f"You cannot equip the {inst.name}.")
    if inst.is_broken:
        raise ItemBroken(f"You cannot equip the {inst.name}, it is broken.")

    remove_instance(player, inst)
    current = player.equipment[slot]
    if current is not None:
        player.inventory.append(current)
        log_event(session, "item.unequipped", item=current.name, slot=slot)

    player.equipment[slot] = inst
    log_event(session, "item.equipped", item=inst.name, slot=slot)


def unequip_slot(session: GameSession, slot: str) -> None:
    player = session.player
    slot = slot.strip().lower()
    if slot not in player.equipment:
        raise InvalidSlot(f"'{slot}' is not a valid equipment slot.")

    inst = player.equipment[slot]
    if inst is None:
        raise ItemNotFound(f"You have nothing equipped in the {slot} slot.")

    player.equipment[slot] = None
    player.inventory.append(inst)
    log_event(session, "item.unequipped", item=inst.name, slot=slot)


def use_item(session: GameSession, name: str) -> None:
    """Consume an inventory item and apply its effect.

    Raises:
        ItemNotFound: Nothing by that name in the inventory
        ItemNotUsable: The item has no consumable effect
    """
    player = session.player
    if not name:
        raise InvalidAction("What would you like to use? Use 'use <item name>'.")
    inst = find_in_inventory(session, name)
    if inst is None:
        raise ItemNotFound(f"You don't have a '{name}' in your inventory.")

    spec = session.catalog.item(inst.template_id)
    effect = spec.effect or {}
    kind = effect.get("kind")

    if kind == "heal":
        max_health = effective_stats(session).max_health
        before = player.stats.health
        player.stats.health = min(max_health, player.stats.health + int(effect.get("amount", 0)))
        remove_instance(player, inst)
        log_event(
            session,
            "item.used",
            item=inst.name,
            healed=player.stats.health - before,
            health=player.stats.health,
            max_health=max_health,
        )
    elif kind == "cure":
        cured_ids = set(effect.get("effects", []))
        cured = [e.effect_id for e in player.active_effects if e.effect_id in cured_ids]
        player.active_effects = [e for e in player.active_effects if e.effect_id not in cured_ids]
        remove_instance(player, inst)
        log_event(session, "item.used", item=inst.name, cured=cured, health=player.stats.health)
    else:
        raise ItemNotUsable(f"You can't use the {inst.name} like that.")


def buy_item(session: GameSession, name: str) -> ItemInstance:
    loc = session.catalog.location(session.world.location)
    if not loc.shop:
        raise InvalidAction("There is nothing to buy here.")
    if not name:
        raise InvalidAction("What would you like to buy? Use 'buy <item name>'.")

    spec = session.catalog.find_item_by_name(name)
    if spec is None or spec.id not in loc.shop:
        raise ItemNotFound(f"This shop doesn't sell '{name}'.")

    stock = session.location_state.shop_stock.get(spec.id)
    if stock is None or stock.current <= 0:
        raise InsufficientStock(f"The shop is sold out of {spec.name}.")
    player = session.player
    if player.stats.gold < spec.price:
        raise InsufficientGold(
            f"You need {spec.price} gold for the {spec.name}, but you only have {player.stats.gold}."
        )

    player.stats.gold -= spec.price
    stock.current -= 1
    inst = give_item(session, spec.id)[0]
    log_event(session, "item.bought", item=inst.name, price=spec.price, gold=player.stats.gold)
    return inst


def repair_cost(instance: ItemInstance) -> int:
    """One gold per two points of missing durability, minimum one."""
    damage = (instance.max_durability or 0) - (instance.durability or 0)
    return max(1, math.ceil(damage / 2))


def repair_item(session: GameSession, name: str) -> None:
    loc = session.catalog.location(session.world.location)
    if "repair" not in loc.services:
        raise InvalidAction("You must be at a blacksmith to repair items.")
    if not name:
        raise InvalidAction("What would you like to repair? Use 'repair <item name>'.")

    inst, _slot = find_owned(session, name)
    if inst is None:
        raise ItemNotFound(f"You don't have a '{name}'.")
    if inst.durability is None or inst.max_durability is None:
        raise ItemNotUsable(f"The {inst.name} cannot be repaired.")
    if inst.durability >= inst.max_durability:
        raise InvalidAction(f"The {inst.name} is already in perfect condition.")

    cost = repair_cost(inst)
    player = session.player
    if player.stats.gold < cost:
        raise InsufficientGold(
            f"You need {cost} gold to repair the {inst.name}, but you only have {player.stats.gold}."
        )

    player.stats.gold -= cost
    inst.durability = inst.max_durability
    log_event(session, "item.repaired", item=inst.name, cost=cost, gold=player.stats.gold)
