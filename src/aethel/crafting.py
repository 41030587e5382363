"""Crafting and smelting at workbenches and forges."""

from __future__ import annotations

from .action_call import ActionCall
from .checks import skill_check
from .errors import InvalidAction, ItemNotFound, UnknownTemplate
from .items import count_in_inventory, give_item, remove_by_template
from .models import GameSession, log_event
from .world import advance_time


def craft(session: GameSession, name: str, hours: int = 1) -> None:
    """Make an item from a recipe at a matching station.

    Materials are checked up front and only consumed on success. Equippable
    results get a rarity roll.

    Args:
        session: Game session
        name: Display name of the item to make
        hours: Time the attempt takes

    Raises:
        InvalidAction: No station here, or the wrong station for the recipe
        UnknownTemplate: No recipe makes that item
        ItemNotFound: Materials are missing
    """
    catalog = session.catalog
    loc = catalog.location(session.world.location)
    if not loc.crafting_stations:
        raise InvalidAction("There is nowhere to craft here.")
    if not name:
        raise InvalidAction("What would you like to craft? Use 'craft <item name>'.")

    recipe = catalog.find_recipe_by_name(name)
    if recipe is None:
        raise UnknownTemplate(f"You don't know how to make '{name}'.")
    if recipe.station not in loc.crafting_stations:
        raise InvalidAction(f"You need a {recipe.station} to make that.")

    player = session.player
    missing = []
    for mat, needed in recipe.materials.items():
        have = count_in_inventory(player, mat)
        if have < needed:
            missing.append(f"{needed - have} {catalog.items[mat].name}")
    if missing:
        raise ItemNotFound(f"You are missing: {', '.join(missing)}.")

    advance_time(session, hours)
    result = catalog.item(recipe.id)

    def on_success() -> None:
        for mat, needed in recipe.materials.items():
            remove_by_template(player, mat, needed)
        made = give_item(session, recipe.id, with_rarity=result.equip_slot is not None, quantity=recipe.quantity)
        log_event(session, "craft.succeeded", item=made[0].name, quantity=len(made), station=recipe.station)

    def on_failure() -> None:
        log_event(session, "craft.failed", item=result.name, station=recipe.station)

    skill_check(
        session,
        "crafting",
        recipe.base_chance,
        on_success,
        on_failure,
        retry=ActionCall("craft", {"item": result.name, "hours": 0}),
    )


def smelt(session: GameSession, name: str) -> None:
    """Craft restricted to the forge."""
    loc = session.catalog.location(session.world.location)
    if "forge" not in loc.crafting_stations:
        raise InvalidAction("You need a forge to smelt anything.")
    if not name:
        raise InvalidAction("What would you like to smelt? Use 'smelt <item name>'.")
    recipe = session.catalog.find_recipe_by_name(name)
    if recipe is not None and recipe.station != "forge":
        raise InvalidAction(f"The {name} isn't made at a forge. Try 'craft {name}'.")
    craft(session, name)
