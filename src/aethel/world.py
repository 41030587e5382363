"""World graph: travel, the game clock, shop restocking, descriptions and interactables."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .action_call import ActionCall
from .checks import skill_check
from .constants import (
    DAILY_COOLDOWNS,
    DAILY_FLAGS,
    DISARM_CHANCE,
    FLOORS_PER_METAL,
    HOURS_PER_DAY,
    LOCKPICK_CHANCE,
    MINE_ORES,
    REGENERATING_RACES,
    REGENERATION_PER_HOUR,
)
from .content_specs import Description, InteractableSpec, LocationSpec
from .errors import InvalidAction, SaveError
from .items import give_item, remove_by_template
from .models import GameSession, LocationState, NpcState, ShopStock, log_event
from .stats import effective_stats

logger = logging.getLogger(__name__)


class _Placeholders(dict):
    """format_map mapping that leaves unknown placeholders untouched."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def fill_placeholders(text: str, **values: Any) -> str:
    return text.format_map(_Placeholders(values))


# --- Mutable location state ---

def location_state(session: GameSession, location_id: str) -> LocationState:
    """Return the mutable state for a location, creating or completing it from the catalog.

    Shops start fully stocked and interactables start with their catalog flags.
    Entries added to the catalog after a save was written are filled in here.
    """
    state = session.locations.get(location_id)
    if state is None:
        state = LocationState(last_restock_day=session.world.day)
        session.locations[location_id] = state

    spec = session.catalog.locations.get(location_id)
    if spec is None:
        return state

    for item_id, entry in spec.shop.items():
        if item_id not in state.shop_stock:
            state.shop_stock[item_id] = ShopStock(current=entry.max, max=entry.max)
    for name, inter in spec.interactables.items():
        if name not in state.interactables:
            state.interactables[name] = inter.initial_flags()
    return state


def init_world_state(session: GameSession) -> None:
    """Create mutable state for every catalog location and NPC."""
    for location_id in session.catalog.locations:
        location_state(session, location_id)
    for npc_id in session.catalog.npcs:
        session.npcs.setdefault(npc_id, NpcState())


# --- Clock ---

def advance_time(session: GameSession, hours: int) -> None:
    """Advance the clock hour by hour.

    Each elapsed hour ticks racial regeneration; crossing midnight starts a
    new day (shops restock, daily flags and day-stamped cooldowns reset).
    """
    if hours <= 0:
        return
    world = session.world
    for _ in range(hours):
        world.hour += 1
        if world.hour >= HOURS_PER_DAY:
            world.hour -= HOURS_PER_DAY
            world.day += 1
            _start_new_day(session)
        _regenerate(session)


def _start_new_day(session: GameSession) -> None:
    player = session.player
    day = session.world.day
    restock_shops(session)
    for flag in DAILY_FLAGS:
        player.flags.pop(flag, None)
    for key in DAILY_COOLDOWNS:
        if key in player.cooldowns and player.cooldowns[key] < day:
            del player.cooldowns[key]
    log_event(session, "world.new_day", day=day)


def _regenerate(session: GameSession) -> None:
    player = session.player
    if player.race.lower() not in REGENERATING_RACES or player.stats.health <= 0:
        return
    max_health = effective_stats(session).max_health
    if player.stats.health < max_health:
        player.stats.health = min(max_health, player.stats.health + REGENERATION_PER_HOUR)


def restock_shops(session: GameSession) -> None:
    """Refill every shop that has not been restocked today.

    Items with a restock chance below 1.0 only refill when a roll succeeds.
    """
    day = session.world.day
    rng = session.world.rng
    for location_id, spec in session.catalog.locations.items():
        if not spec.shop:
            continue
        state = location_state(session, location_id)
        if state.last_restock_day >= day:
            continue
        for item_id, entry in spec.shop.items():
            stock = state.shop_stock[item_id]
            stock.max = entry.max
            if stock.current >= entry.max:
                continue
            if entry.restock_chance >= 1.0 or rng.random() < entry.restock_chance:
                stock.current = entry.max
        state.last_restock_day = day


# --- Navigation ---

def travel(session: GameSession, destination: str, hours: int = 0, message: Optional[str] = None) -> None:
    """Move the player to another location.

    Args:
        session: Game session
        destination: Location id
        hours: Hours the journey takes
        message: Optional narration shown before arriving

    Raises:
        UnknownLocation: If the destination is not in the catalog
    """
    from .action_engine import execute_call

    spec = session.catalog.location(destination)
    if message:
        log_event(session, "travel.message", text=message)

    session.world.location = spec.id
    advance_time(session, hours)
    log_event(session, "travel.arrived", location=spec.id, name=spec.name)

    state = location_state(session, spec.id)
    if spec.on_enter is not None:
        execute_call(session, spec.on_enter)
    state.visited = True

    autosave(session)


def autosave(session: GameSession) -> None:
    """Write the autosave file without narrating anything."""
    if not session.autosave_path:
        return
    from .io import save_state

    try:
        save_state(session, session.autosave_path)
    except SaveError as e:
        logger.warning(f"Autosave failed: {e.message}")


def ore_for_floor(floor: int) -> str:
    """Ore item id mined on a mine floor (1-based); every ten floors change metal."""
    tier = max(0, floor - 1) // FLOORS_PER_METAL
    return MINE_ORES[min(tier, len(MINE_ORES) - 1)]


# --- Descriptions ---

def condition_holds(session: GameSession, when: Dict[str, Any]) -> bool:
    """Evaluate a description condition; every key must hold."""
    player = session.player
    for key, value in when.items():
        if key == "has_item":
            ok = player.has_item(value)
        elif key == "flag":
            ok = bool(player.flags.get(value))
        elif key == "visited":
            ok = location_state(session, value).visited
        elif key == "interactable_visible":
            flags = location_state(session, session.world.location).interactables.get(value)
            ok = flags is not None and not flags.get("hidden", False)
        elif key == "night":
            ok = session.world.is_night == bool(value)
        else:
            logger.warning(f"Unknown description condition '{key}'")
            ok = False
        if not ok:
            return False
    return True


def render_description(session: GameSession, description: Description) -> str:
    text = description.text
    for variant in description.variants:
        if condition_holds(session, variant.when):
            text = variant.text
            break
    extra = [s.text for s in description.suffixes if condition_holds(session, s.when)]
    if extra:
        text = " ".join([text] + extra)

    floor = session.player.mine_floor
    ore = session.catalog.items.get(ore_for_floor(floor))
    return fill_placeholders(text, floor=floor, ore=ore.name.lower() if ore else "ore")


def describe(session: GameSession) -> str:
    """The current location's description, evaluated against live state."""
    spec = session.catalog.location(session.world.location)
    return render_description(session, spec.description)


def visible_interactables(session: GameSession) -> List[str]:
    state = location_state(session, session.world.location)
    return [name for name, flags in state.interactables.items() if not flags.get("hidden", False)]


def _find_interactable(session: GameSession, target: str) -> Optional[InteractableSpec]:
    spec = session.catalog.location(session.world.location)
    wanted = target.strip().lower()
    if wanted in visible_interactables(session):
        return spec.interactables.get(wanted)
    return None


def look(session: GameSession, target: str = "") -> None:
    """Look around, or at a specific interactable or NPC."""
    from .action_engine import execute_call

    spec = session.catalog.location(session.world.location)
    if not target:
        log_event(
            session,
            "look.location",
            name=spec.name,
            description=spec.long_description or describe(session),
        )
        for npc_id in spec.npcs:
            npc = session.catalog.npcs[npc_id]
            log_event(session, "look.npc", name=npc.name, description=npc.description)
        if spec.on_look is not None:
            execute_call(session, spec.on_look)
        return

    inter = _find_interactable(session, target)
    if inter is not None:
        log_event(session, "look.interactable", name=inter.id, description=inter.description)
        if inter.id in spec.crafting_stations:
            _list_recipes(session, inter.id)
        return

    npc = _find_npc(session, spec, target)
    if npc is not None:
        log_event(session, "look.npc", name=npc.name, description=npc.description)
        return

    raise InvalidAction(f"You don't see any '{target}' here.")


def _list_recipes(session: GameSession, station: str) -> None:
    catalog = session.catalog
    recipes = []
    for recipe in catalog.recipes.values():
        if recipe.station != station:
            continue
        materials = ", ".join(
            f"{count} {catalog.items[mat].name}" for mat, count in recipe.materials.items()
        )
        recipes.append(f"{catalog.items[recipe.id].name} ({materials})")
    log_event(session, "look.recipes", station=station, recipes=recipes)


# --- NPCs ---

def _find_npc(session: GameSession, spec: LocationSpec, name: str):
    wanted = name.strip().lower()
    for npc_id in spec.npcs:
        npc = session.catalog.npcs[npc_id]
        if wanted in (npc.id, npc.name.lower()):
            return npc
    return None


def talk_to(session: GameSession, name: str) -> None:
    """Say the next line of an NPC's dialogue; the cursor wraps around."""
    if not name:
        raise InvalidAction("Who would you like to talk to? Use 'talk to <name>'.")
    spec = session.catalog.location(session.world.location)
    npc = _find_npc(session, spec, name)
    if npc is None:
        raise InvalidAction(f"There is no one named '{name}' here.")
    if not npc.dialogue:
        log_event(session, "npc.silent", name=npc.name)
        return

    state = session.npcs.setdefault(npc.id, NpcState())
    line = npc.dialogue[state.dialogue_index % len(npc.dialogue)]
    state.dialogue_index = (state.dialogue_index + 1) % len(npc.dialogue)

    player = session.player
    text = fill_placeholders(
        line,
        name=player.name,
        race=player.race.title(),
        character_class=player.character_class.title(),
    )
    log_event(session, "npc.said", name=npc.name, text=text)


# --- Chests and traps ---

def _trap_fires(session: GameSession, inter: InteractableSpec, flags: Dict[str, Any]) -> None:
    player = session.player
    flags["trapped"] = False
    # Traps wound but never kill; only combat ends the game
    player.stats.health = max(1, player.stats.health - inter.trap_damage)
    log_event(session, "interactable.trap_fired", name=inter.id, damage=inter.trap_damage, health=player.stats.health)


def _take_contents(session: GameSession, inter: InteractableSpec, flags: Dict[str, Any]) -> None:
    if flags.get("trapped"):
        _trap_fires(session, inter, flags)

    items = []
    for item_id in inter.contents_items:
        items.extend(it.name for it in give_item(session, item_id))
    session.player.stats.gold += inter.contents_gold
    flags["opened"] = True
    log_event(session, "interactable.opened", name=inter.id, gold=inter.contents_gold, items=items)


def open_interactable(session: GameSession, target: str) -> None:
    """Open a chest: pick the lock if needed, spring any trap, take the contents."""
    if not target:
        raise InvalidAction("What would you like to open? Use 'open <target>'.")
    inter = _find_interactable(session, target)
    if inter is None:
        raise InvalidAction(f"You don't see a '{target}' here.")
    if not (inter.locked or inter.trapped or inter.contents_gold or inter.contents_items):
        raise InvalidAction(f"You can't open the {inter.id}.")

    flags = location_state(session, session.world.location).interactables[inter.id]
    if flags.get("opened"):
        raise InvalidAction(f"The {inter.id} is already open and empty.")

    if not flags.get("locked"):
        _take_contents(session, inter, flags)
        return

    player = session.player
    if not player.has_item("lockpick"):
        raise InvalidAction(f"The {inter.id} is locked. You'll need a lockpick.")

    def on_success() -> None:
        flags["locked"] = False
        log_event(session, "interactable.unlocked", name=inter.id)
        _take_contents(session, inter, flags)

    def on_failure() -> None:
        remove_by_template(player, "lockpick", 1)
        log_event(session, "interactable.lockpick_broke", name=inter.id)

    skill_check(
        session,
        "lockpicking",
        LOCKPICK_CHANCE,
        on_success,
        on_failure,
        retry=ActionCall.command(f"open {inter.id}"),
    )


def disarm_interactable(session: GameSession, target: str) -> None:
    if not target:
        raise InvalidAction("What would you like to disarm? Use 'disarm <target>'.")
    inter = _find_interactable(session, target)
    if inter is None:
        raise InvalidAction(f"You don't see a '{target}' here.")

    flags = location_state(session, session.world.location).interactables[inter.id]
    if not flags.get("trapped"):
        raise InvalidAction(f"You find no trap on the {inter.id}.")

    def on_success() -> None:
        flags["trapped"] = False
        log_event(session, "interactable.disarmed", name=inter.id)

    def on_failure() -> None:
        log_event(session, "interactable.disarm_failed", name=inter.id)

    skill_check(
        session,
        "disarm",
        DISARM_CHANCE,
        on_success,
        on_failure,
        retry=ActionCall.command(f"disarm {inter.id}"),
    )
