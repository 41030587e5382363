"""Status effects: application, saving throws and per-turn ticking."""

from __future__ import annotations

import logging
from typing import List, Tuple

from .constants import DWARF_RESISTED_EFFECTS, DWARF_SAVE_CHANCE
from .checks import make_check
from .errors import InvalidAction
from .models import ActiveEffect, GameSession, log_event

logger = logging.getLogger(__name__)

PLAYER = "player"
ENEMY = "enemy"


def _holder(session: GameSession, target: str) -> Tuple[List[ActiveEffect], object, str]:
    if target == PLAYER:
        return session.player.active_effects, session.player.stats, session.player.name
    if target == ENEMY and session.encounter is not None:
        enemy = session.encounter.enemy
        return enemy.active_effects, enemy.stats, enemy.name
    raise InvalidAction(f"There is no {target} to affect.")


def apply_effect(session: GameSession, target: str, effect_id: str, turns: int) -> bool:
    """Afflict the player or the current enemy with a status effect.

    Reapplying an effect that is already active refreshes its duration
    instead of stacking a second copy. Dwarves get a saving throw against
    poison and the elements.

    Args:
        session: Game session
        target: "player" or "enemy"
        effect_id: Effect id from the catalog
        turns: Duration in turns

    Returns:
        True if the effect took hold

    Raises:
        UnknownEffect: If the effect id is not in the catalog
    """
    spec = session.catalog.effect(effect_id)
    effects, _stats, name = _holder(session, target)

    if target == PLAYER and session.player.race.lower() == "dwarf" and effect_id in DWARF_RESISTED_EFFECTS:
        if make_check(session, "saving_throw", DWARF_SAVE_CHANCE):
            log_event(session, "effect.resisted", target=target, name=name, effect=spec.name)
            return False

    for active in effects:
        if active.effect_id == effect_id:
            active.turns_remaining = max(active.turns_remaining, turns)
            break
    else:
        effects.append(ActiveEffect(effect_id=effect_id, turns_remaining=turns))

    log_event(session, "effect.applied", target=target, name=name, effect=spec.name, turns=turns)
    return True


def process_effects(session: GameSession, target: str) -> bool:
    """Tick every active effect on a combatant once.

    Damage-over-time is applied, durations count down and expired effects are
    removed. Effects missing from the catalog are dropped with a warning.

    Returns:
        True when an action-preventing effect (frozen, shocked) was active
    """
    effects, stats, name = _holder(session, target)
    prevented = False
    remaining = []

    for active in effects:
        spec = session.catalog.effects.get(active.effect_id)
        if spec is None:
            logger.warning(f"Dropping unknown status effect '{active.effect_id}' from {target}")
            continue

        if spec.damage_per_turn:
            stats.health -= spec.damage_per_turn
            log_event(
                session,
                "effect.damage",
                target=target,
                name=name,
                effect=spec.name,
                damage=spec.damage_per_turn,
                health=stats.health,
            )
        if spec.prevents_action:
            prevented = True
            log_event(session, "effect.prevented", target=target, name=name, effect=spec.name)

        active.turns_remaining -= 1
        if active.turns_remaining > 0:
            remaining.append(active)
        else:
            log_event(session, "effect.expired", target=target, name=name, effect=spec.name)

    effects[:] = remaining
    return prevented
