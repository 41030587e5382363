"""Command dispatch: aliases, multi-word verbs, global handlers and location verbs."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Tuple

from .action_engine import execute_location_action
from .checks import reroll
from .constants import COMMAND_ALIASES, DEFAULT_SAVE_PATH, MULTI_WORD_COMMANDS
from .crafting import craft, smelt
from .errors import GameError, InvalidAction, SaveError
from .io import load_state, restore_session, save_state
from .items import buy_item, equip_item, repair_item, unequip_slot, use_item
from .models import GameSession, log_event
from .progression import (
    accept_quest,
    change_class,
    revert_form,
    transform,
    turn_in_quest,
    view_quests,
)
from .world import disarm_interactable, look, open_interactable, talk_to

logger = logging.getLogger(__name__)

Handler = Callable[[GameSession, str], None]


def split_command(raw: str) -> Tuple[str, str]:
    """Split input into (command, argument).

    Multi-word commands are matched first since their arguments may contain
    spaces; single-word commands are then resolved through the alias table.
    """
    text = " ".join(raw.strip().lower().split())
    for prefix in MULTI_WORD_COMMANDS:
        if text == prefix or text.startswith(prefix + " "):
            return prefix, text[len(prefix):].strip()
    command, _, argument = text.partition(" ")
    return COMMAND_ALIASES.get(command, command), argument.strip()


def _save(session: GameSession, argument: str) -> None:
    path = session.save_path or DEFAULT_SAVE_PATH
    save_state(session, path)
    log_event(session, "game.saved", path=str(path))


def _load(session: GameSession, argument: str) -> None:
    path = session.save_path or DEFAULT_SAVE_PATH
    loaded = load_state(path, session.catalog)
    restore_session(session, loaded)
    log_event(session, "game.loaded", path=str(path))


def _chop(session: GameSession, argument: str) -> None:
    if not execute_location_action(session, "chop"):
        raise InvalidAction("There are no trees here to chop.")


def _cast(session: GameSession, argument: str) -> None:
    raise InvalidAction("There is nothing here to cast a spell at.")


def _quit(session: GameSession, argument: str) -> None:
    session.status = "quit"
    log_event(session, "game.quit")


def _show(event_id: str) -> Handler:
    def handler(session: GameSession, argument: str) -> None:
        log_event(session, event_id)
    return handler


_HANDLERS: Dict[str, Handler] = {
    "talk to": talk_to,
    "view quests": lambda session, argument: view_quests(session),
    "accept quest": accept_quest,
    "turn in": turn_in_quest,
    "change class": change_class,
    "save": _save,
    "load": _load,
    "transform": transform,
    "revert": lambda session, argument: revert_form(session),
    "buy": buy_item,
    "cast": _cast,
    "repair": repair_item,
    "chop": _chop,
    "craft": craft,
    "smelt": smelt,
    "use": use_item,
    "inventory": _show("show.inventory"),
    "equip": equip_item,
    "unequip": unequip_slot,
    "stats": _show("show.stats"),
    "equipment": _show("show.equipment"),
    "look": look,
    "open": open_interactable,
    "disarm": disarm_interactable,
    "reroll": lambda session, argument: reroll(session),
    "quit": _quit,
    "help": _show("show.help"),
}

GLOBAL_COMMANDS = sorted(_HANDLERS)


def dispatch(session: GameSession, raw: str) -> None:
    """Route one input line to its handler.

    Every command except ``reroll`` clears the last skill check first, so a
    reroll can only follow the check it repeats.

    Raises:
        GameError: Propagated from the handler
    """
    command, argument = split_command(raw)
    if not command:
        return
    if command != "reroll":
        session.player.last_check = None

    handler = _HANDLERS.get(command)
    if handler is not None:
        handler(session, argument)
        return
    if not argument and execute_location_action(session, command):
        return
    log_event(session, "action.invalid", input=raw.strip())


def handle_action(session: GameSession, raw: str) -> None:
    """Dispatch a command, turning any game error into an ``action.failed`` event."""
    try:
        dispatch(session, raw)
    except GameError as e:
        if isinstance(e, SaveError):
            logger.warning(e.message)
        log_event(session, "action.failed", reason=e.reason, message=e.message)
