"""Data-driven location action execution.

Location verbs, ``on_enter``/``on_look`` hooks and reroll retries are stored as
ActionCall descriptors. This module maps each descriptor's effect name to a
handler and runs it against the session.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from .action_call import ActionCall
from .checks import skill_check
from .constants import (
    DOUBLE_YIELD_RACES,
    MINE_ENTRANCE,
    MINE_FLOOR_COUNT,
    MINE_FLOOR_LOCATION,
)
from .errors import InvalidAction, ItemNotFound
from .items import decrease_durability, give_item
from .models import GameSession, ItemInstance, log_event
from .stats import effective_stats
from .world import advance_time, location_state, ore_for_floor, travel

logger = logging.getLogger(__name__)

EffectHandler = Callable[[GameSession, Dict[str, Any]], None]


def _find_tool(session: GameSession, tag: str) -> Optional[ItemInstance]:
    """Best item carrying ``tag``: equipped items first, then the highest mining bonus."""
    catalog = session.catalog
    player = session.player

    def has_tag(it: ItemInstance) -> bool:
        spec = catalog.items.get(it.template_id)
        return spec is not None and tag in spec.tags and not it.is_broken

    equipped = [it for it in player.equipped_items() if has_tag(it)]
    if equipped:
        return equipped[0]
    carried = [it for it in player.inventory if has_tag(it)]
    if not carried:
        return None
    return max(carried, key=lambda it: it.mining_bonus)


def _roll_table(session: GameSession, table) -> Optional[str]:
    """Walk a cumulative {item, chance} table; None when the draw misses every entry."""
    roll = session.world.rng.random()
    cumulative = 0.0
    for entry in table:
        cumulative += float(entry["chance"])
        if roll < cumulative:
            return entry["item"]
    return None


# --- Effect handlers ---

def _travel(session: GameSession, params: Dict[str, Any]) -> None:
    required = params.get("requires_item")
    if required and not session.player.has_item(required):
        item_name = session.catalog.item(required).name
        raise InvalidAction(params.get("blocked_message") or f"You need a {item_name} to go that way.")
    travel(session, params["to"], int(params.get("hours", 0)), params.get("message"))


def _start_combat(session: GameSession, params: Dict[str, Any]) -> None:
    from .combat import start_combat

    if params.get("message"):
        log_event(session, "travel.message", text=params["message"])
    start_combat(session, params["enemy"])


def _gather(session: GameSession, params: Dict[str, Any]) -> None:
    """Skill-checked resource gathering (chopping, mining, prospecting).

    The retry stored for rerolls repeats the attempt without spending time again.
    """
    player = session.player
    tool = None
    if params.get("tool"):
        tool = _find_tool(session, params["tool"])
        if tool is None:
            raise ItemNotFound(f"You need a {params['tool']} to do that.")

    advance_time(session, int(params.get("hours", 0)))

    chance = int(params["chance"]) + (tool.mining_bonus if tool is not None else 0)
    quantity = 2 if params.get("racial_yield") and player.race.lower() in DOUBLE_YIELD_RACES else 1

    def on_success() -> None:
        if params.get("success_message"):
            log_event(session, "gather.succeeded", text=params["success_message"])
        if params.get("table"):
            item_id = _roll_table(session, params["table"])
        elif params.get("ore_by_floor"):
            item_id = ore_for_floor(player.mine_floor)
        else:
            item_id = params.get("item")
        if item_id is None:
            log_event(session, "gather.empty")
            return
        found = give_item(session, item_id, quantity=quantity)
        log_event(session, "gather.found", item=found[0].name, quantity=len(found))
        if quantity > 1:
            log_event(session, "gather.racial_yield", race=player.race)

    def on_failure() -> None:
        log_event(session, "gather.failed", text=params.get("failure_message", "You find nothing."))

    retry = ActionCall("gather", {**params, "hours": 0})
    skill_check(session, params["skill"], chance, on_success, on_failure, retry=retry)
    decrease_durability(session, tool)


def _rest(session: GameSession, params: Dict[str, Any]) -> None:
    advance_time(session, int(params.get("hours", 8)))
    player = session.player
    player.stats.health = max(player.stats.health, effective_stats(session).max_health)
    log_event(session, "rest.finished", text=params.get("message", "You rest for a while."))


def _lift(session: GameSession, params: Dict[str, Any]) -> None:
    """Ride the mine lift one floor up or down."""
    player = session.player
    direction = params.get("direction")
    if direction == "down":
        if player.mine_floor >= MINE_FLOOR_COUNT:
            raise InvalidAction("The lift won't go any deeper.")
        player.mine_floor += 1
    elif direction == "up":
        player.mine_floor = max(0, player.mine_floor - 1)
    else:
        raise InvalidAction(f"The lift doesn't go '{direction}'.")

    log_event(session, "lift.moved", direction=direction, floor=player.mine_floor)
    travel(session, MINE_FLOOR_LOCATION if player.mine_floor > 0 else MINE_ENTRANCE)


def _reveal(session: GameSession, params: Dict[str, Any]) -> None:
    """Perception check that uncovers a hidden interactable."""
    name = params["interactable"]
    flags = location_state(session, session.world.location).interactables.get(name)
    if flags is None or not flags.get("hidden"):
        return

    def on_success() -> None:
        flags["hidden"] = False
        log_event(session, "interactable.revealed", name=name, text=params.get("success_message", ""))

    def on_failure() -> None:
        log_event(session, "interactable.unnoticed", text=params.get("failure_message", ""))

    skill_check(
        session,
        params.get("skill", "perception"),
        int(params.get("chance", 50)),
        on_success,
        on_failure,
        retry=ActionCall("reveal", dict(params)),
    )


def _first_visit(session: GameSession, params: Dict[str, Any]) -> None:
    if not location_state(session, session.world.location).visited:
        log_event(session, "location.first_visit", text=params["text"])


def _message(session: GameSession, params: Dict[str, Any]) -> None:
    log_event(session, "travel.message", text=params["text"])


def _craft(session: GameSession, params: Dict[str, Any]) -> None:
    from .crafting import craft

    craft(session, params["item"], int(params.get("hours", 1)))


def _command(session: GameSession, params: Dict[str, Any]) -> None:
    from .commands import dispatch

    dispatch(session, params["input"])


_EFFECTS: Dict[str, EffectHandler] = {
    "travel": _travel,
    "start_combat": _start_combat,
    "gather": _gather,
    "rest": _rest,
    "lift": _lift,
    "reveal": _reveal,
    "first_visit": _first_visit,
    "message": _message,
    "craft": _craft,
    "command": _command,
}


def execute_call(session: GameSession, call: ActionCall) -> None:
    """Run an action descriptor.

    Raises:
        GameError: Whatever the effect handler raises; callers at the command
            boundary turn it into an ``action.failed`` event
    """
    handler = _EFFECTS.get(call.effect)
    if handler is None:
        logger.warning(f"Unknown action effect '{call.effect}'")
        raise InvalidAction("Nothing happens.")
    handler(session, call.params)


def execute_location_action(session: GameSession, verb: str) -> bool:
    """Run the current location's action for ``verb``.

    Returns:
        False when the location has no such verb
    """
    spec = session.catalog.location(session.world.location)
    call = spec.actions.get(verb)
    if call is None:
        return False
    execute_call(session, call)
    return True
