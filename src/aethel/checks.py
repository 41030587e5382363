"""Probabilistic skill checks."""

from __future__ import annotations

from typing import Callable, Optional

from .action_call import ActionCall
from .constants import (
    ABILITY_BASELINE,
    CHECK_MAX_CHANCE,
    CHECK_MIN_CHANCE,
    CHECK_POINTS_PER_ABILITY,
    RACIAL_SKILL_BONUSES,
    SKILL_ABILITIES,
)
from .errors import InvalidAction
from .models import GameSession, LastCheck, log_event
from .stats import effective_stats

Callback = Optional[Callable[[], None]]


def ability_modifier(score: int) -> int:
    """Percentage points granted by an ability score (+2 per point above 10)."""
    return (score - ABILITY_BASELINE) * CHECK_POINTS_PER_ABILITY


def racial_bonus(session: GameSession, skill: str) -> int:
    return RACIAL_SKILL_BONUSES.get(session.player.race.lower(), {}).get(skill, 0)


def clamp_chance(chance: int) -> int:
    return max(CHECK_MIN_CHANCE, min(CHECK_MAX_CHANCE, chance))


def compute_chance(session: GameSession, skill: str, base_chance: int) -> int:
    """Final success chance for a skill check, always within [5, 95].

    Args:
        session: Game session
        skill: Skill name (mining, perception, lockpicking, ...)
        base_chance: Base chance in percent before modifiers

    Returns:
        Clamped success chance in percent
    """
    modifier = 0
    ability = SKILL_ABILITIES.get(skill)
    if ability is not None:
        modifier += ability_modifier(getattr(effective_stats(session), ability))
    modifier += racial_bonus(session, skill)
    return clamp_chance(base_chance + modifier)


def make_check(
    session: GameSession,
    check_type: str,
    chance: int,
    on_success: Callback = None,
    on_failure: Callback = None,
    retry: Optional[ActionCall] = None,
) -> bool:
    """Roll against ``chance`` and record the outcome as the last check.

    Exactly one of the callbacks runs before this returns.
    """
    draw = session.world.rng.random() * 100
    success = draw < chance
    session.player.last_check = LastCheck(check_type=check_type, success=success, retry=retry)
    log_event(session, "check.rolled", check=check_type, chance=chance, success=success)

    callback = on_success if success else on_failure
    if callback is not None:
        callback()
    return success


def skill_check(
    session: GameSession,
    skill: str,
    base_chance: int,
    on_success: Callback,
    on_failure: Callback,
    retry: Optional[ActionCall] = None,
) -> bool:
    """Resolve a skill check modified by ability score and race.

    Args:
        session: Game session
        skill: Skill name
        base_chance: Base chance in percent
        on_success: Called when the check succeeds
        on_failure: Called when the check fails
        retry: Action that re-attempts this check, kept for reroll abilities

    Returns:
        True on success
    """
    bonus = racial_bonus(session, skill)
    if bonus:
        log_event(session, "check.racial_bonus", skill=skill, race=session.player.race, bonus=bonus)
    chance = compute_chance(session, skill, base_chance)
    return make_check(session, skill, chance, on_success, on_failure, retry)


def ensure_reroll_available(session: GameSession) -> LastCheck:
    """Validate a halfling reroll without spending it.

    Raises:
        InvalidAction: Wrong race, luck already used today, or no failed
            check with a retry to repeat
    """
    player = session.player
    if player.race.lower() != "halfling":
        raise InvalidAction("Only halflings can bend luck like that.")
    if player.flags.get("used_luck_today"):
        raise InvalidAction("You have already pushed your luck today.")
    last = player.last_check
    if last is None or not last.failed or last.retry is None:
        raise InvalidAction("There is nothing to reroll.")
    return last


def reroll(session: GameSession) -> None:
    """Repeat the last failed check once per day by re-running its retry action."""
    from .action_engine import execute_call

    last = ensure_reroll_available(session)
    log_event(session, "check.reroll", check=last.check_type)
    # Luck is only spent once the retried action actually ran
    execute_call(session, last.retry)
    session.player.flags["used_luck_today"] = True
