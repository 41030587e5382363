from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .catalog import GameCatalog, load_catalog
from .combat import combat_action
from .commands import handle_action
from .constants import STARTING_GOLD, STARTING_LOCATION, STARTING_SPELLS
from .errors import GameError
from .io import session_to_dict
from .models import GameSession, Player, log_event
from .stats import apply_stat_bonuses, effective_stats
from .world import init_world_state, location_state


@dataclass
class StepResult:
    """Outcome of one input line.

    Attributes:
        events: Events emitted while handling the input, oldest first
        show_location: Whether the caller should redisplay the location
    """
    events: List[dict] = field(default_factory=list)
    show_location: bool = True


def new_game(
    catalog: Optional[GameCatalog] = None,
    seed: Optional[int] = None,
    name: str = "Traveler",
    race: str = "human",
    character_class: str = "warrior",
    gender: str = "",
    age: str = "",
    height: str = "",
    weight: str = "",
    save_path: Optional[str] = None,
    autosave_path: Optional[str] = None,
) -> GameSession:
    """Create a new game session.

    Args:
        catalog: Game content; the default data directory is loaded if omitted
        seed: Optional seed for a reproducible session
        name: Character name
        race: Race id
        character_class: Class id
        gender: Free-form identity detail
        age: Free-form identity detail
        height: Free-form identity detail
        weight: Free-form identity detail
        save_path: File used by the save and load commands
        autosave_path: File written silently after every trip

    Returns:
        A new session standing at the starting location

    Raises:
        UnknownTemplate: If the race or class is not in the catalog
    """
    catalog = catalog if catalog is not None else load_catalog()
    race_spec = catalog.race(race)
    class_spec = catalog.character_class(character_class)

    session = GameSession(catalog=catalog, save_path=save_path, autosave_path=autosave_path)

    # Store seed so a loaded game can rebuild its RNG
    session.world.rng_seed = seed if seed is not None else 0
    session.world.rng = random.Random(seed)
    session.world.location = STARTING_LOCATION

    player = Player(
        name=name,
        race=race_spec.id,
        character_class=class_spec.id,
        gender=gender,
        age=age,
        height=height,
        weight=weight,
        spells=list(STARTING_SPELLS),
    )
    session.player = player
    apply_stat_bonuses(catalog, player)
    player.stats.gold = STARTING_GOLD
    player.stats.health = effective_stats(session).max_health

    init_world_state(session)
    location_state(session, STARTING_LOCATION).visited = True
    log_event(session, "game.started", name=name, race=race_spec.name, character_class=class_spec.name)
    return session


def apply_action(session: GameSession, raw: str) -> StepResult:
    """Handle one line of player input.

    Routed to the combat handler while an encounter is active, otherwise to
    the command dispatcher. Nothing happens once the session has ended.
    """
    session.outbox = []
    if session.status != "playing":
        return StepResult(events=[], show_location=False)

    if session.in_combat:
        try:
            combat_action(session, raw)
        except GameError as e:
            log_event(session, "action.failed", reason=e.reason, message=e.message)
    else:
        handle_action(session, raw)

    events = session.outbox
    session.outbox = []
    show = session.status == "playing" and not session.in_combat
    return StepResult(events=events, show_location=show)


def to_debug_dict(session: GameSession) -> Dict:
    data = session_to_dict(session)
    data["world"].pop("rng_state")
    if session.encounter is not None:
        enemy = session.encounter.enemy
        data["encounter"] = {
            "template_id": session.encounter.template_id,
            "round": session.encounter.round,
            "enemy_health": enemy.stats.health,
        }
    return data
