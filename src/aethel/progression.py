"""Experience, levels, quests, class changes and shapeshifting."""

from __future__ import annotations

import math

from .constants import (
    CLASS_CHANGE_COST,
    FORM_LEARNING_RACES,
    LEVEL_ATTACK_BONUS,
    LEVEL_DEFENSE_BONUS,
    LEVEL_HEALTH_BONUS,
    XP_CURVE_BASE,
    XP_CURVE_EXPONENT,
)
from .content_specs import QuestSpec
from .errors import InsufficientGold, InvalidAction, UnknownTemplate
from .models import GameSession, QuestEntry, TransformState, log_event
from .stats import effective_stats, swap_class_bonuses


def xp_threshold(level: int) -> int:
    """Experience needed to advance past ``level``: floor(100 * level^1.5)."""
    return math.floor(XP_CURVE_BASE * level ** XP_CURVE_EXPONENT)


def check_for_level_up(session: GameSession) -> int:
    """Apply every level-up the current experience pays for.

    Leftover experience carries over, so one large award can grant several
    levels. Health is restored to the new effective maximum on each level.

    Returns:
        Number of levels gained
    """
    stats = session.player.stats
    gained = 0
    while stats.experience >= stats.xp_to_next_level:
        stats.experience -= stats.xp_to_next_level
        stats.level += 1
        stats.max_health += LEVEL_HEALTH_BONUS
        stats.attack += LEVEL_ATTACK_BONUS
        stats.defense += LEVEL_DEFENSE_BONUS
        stats.health = effective_stats(session).max_health
        stats.xp_to_next_level = xp_threshold(stats.level)
        gained += 1
        log_event(
            session,
            "level.up",
            level=stats.level,
            max_health=stats.max_health,
            attack=stats.attack,
            defense=stats.defense,
        )
    return gained


def grant_rewards(session: GameSession, gold: int, xp: int) -> None:
    stats = session.player.stats
    stats.gold += gold
    stats.experience += xp
    check_for_level_up(session)


# --- Quests ---

def _require_quest_board(session: GameSession) -> None:
    loc = session.catalog.location(session.world.location)
    if "quest_board" not in loc.services:
        raise InvalidAction("There is no quest board here. Try the adventurers guild.")


def _quest_named(session: GameSession, name: str) -> QuestSpec:
    if not name:
        raise InvalidAction("Which quest? Use the quest's name.")
    quest = session.catalog.find_quest_by_name(name)
    if quest is None:
        raise UnknownTemplate(f"There is no quest called '{name}'.")
    return quest


def view_quests(session: GameSession) -> None:
    _require_quest_board(session)
    log = session.player.quest_log
    quests = []
    for quest in session.catalog.quests.values():
        entry = log.get(quest.id)
        quests.append(
            {
                "name": quest.name,
                "description": quest.description,
                "status": entry.status if entry else "available",
                "progress": entry.progress if entry else 0,
                "count": quest.count,
                "reward_gold": quest.reward_gold,
                "reward_xp": quest.reward_xp,
            }
        )
    log_event(session, "quest.listed", quests=quests)


def accept_quest(session: GameSession, name: str) -> None:
    _require_quest_board(session)
    quest = _quest_named(session, name)
    entry = session.player.quest_log.get(quest.id)
    if entry is not None:
        raise InvalidAction(f"You have already {entry.status} '{quest.name}'.")
    session.player.quest_log[quest.id] = QuestEntry()
    log_event(session, "quest.accepted", name=quest.name, description=quest.description)


def record_kill(session: GameSession, template_id: str) -> None:
    """Advance every accepted kill quest that targets ``template_id``."""
    catalog = session.catalog
    for quest_id, entry in session.player.quest_log.items():
        quest = catalog.quests.get(quest_id)
        if quest is None or entry.status != "accepted":
            continue
        if quest.objective_type != "kill" or quest.target != template_id:
            continue
        if entry.progress >= quest.count:
            continue
        entry.progress += 1
        log_event(session, "quest.progress", name=quest.name, progress=entry.progress, count=quest.count)


def turn_in_quest(session: GameSession, name: str) -> None:
    _require_quest_board(session)
    quest = _quest_named(session, name)
    entry = session.player.quest_log.get(quest.id)
    if entry is None or entry.status != "accepted":
        raise InvalidAction(f"You are not on the quest '{quest.name}'.")
    if entry.progress < quest.count:
        raise InvalidAction(
            f"'{quest.name}' is not finished yet ({entry.progress}/{quest.count})."
        )

    entry.status = "completed"
    log_event(session, "quest.completed", name=quest.name, gold=quest.reward_gold, xp=quest.reward_xp)
    grant_rewards(session, quest.reward_gold, quest.reward_xp)


# --- Class change ---

def change_class(session: GameSession, name: str) -> None:
    """Retrain as another class at a class trainer for a flat fee.

    The old class's bonuses are taken away and the new ones added; level
    gains are untouched.
    """
    loc = session.catalog.location(session.world.location)
    if "class_trainer" not in loc.services:
        raise InvalidAction("There is no one here who can retrain you.")
    if not name:
        raise InvalidAction("Which class? Use 'change class <class>'.")

    new_class = session.catalog.character_class(name)
    player = session.player
    if new_class.id == player.character_class.lower():
        raise InvalidAction(f"You are already a {new_class.name}.")
    if player.transform.is_transformed:
        raise InvalidAction("Return to your natural form before retraining.")
    if player.stats.gold < CLASS_CHANGE_COST:
        raise InsufficientGold(
            f"Retraining costs {CLASS_CHANGE_COST} gold, but you only have {player.stats.gold}."
        )

    old_name = player.character_class
    player.stats.gold -= CLASS_CHANGE_COST
    swap_class_bonuses(session.catalog, player, new_class.id)
    player.stats.health = min(player.stats.health, effective_stats(session).max_health)
    log_event(
        session,
        "class.changed",
        old=old_name.title(),
        new=new_class.name,
        cost=CLASS_CHANGE_COST,
        gold=player.stats.gold,
    )


# --- Shapeshifting ---

def learn_form(session: GameSession, template_id: str) -> None:
    player = session.player
    if player.race.lower() not in FORM_LEARNING_RACES or template_id in player.known_forms:
        return
    player.known_forms.append(template_id)
    log_event(session, "form.learned", form=session.catalog.enemy(template_id).name)


def transform(session: GameSession, name: str) -> None:
    """Take on a learned creature form, snapshotting base stats for revert."""
    player = session.player
    if player.race.lower() not in FORM_LEARNING_RACES:
        raise InvalidAction("You lack the ability to change your shape.")
    if not name:
        if not player.known_forms:
            raise InvalidAction("You haven't learned any forms yet. Defeat a creature to learn its shape.")
        raise InvalidAction(f"Which form? You know: {', '.join(player.known_forms)}.")
    if player.transform.is_transformed:
        raise InvalidAction("You must revert to your natural form first.")

    wanted = name.strip().lower()
    form = None
    for form_id in player.known_forms:
        spec = session.catalog.enemy(form_id)
        if wanted in (spec.id, spec.name.lower()):
            form = spec
            break
    if form is None:
        raise InvalidAction(f"You don't know the form of '{name}'.")

    player.transform = TransformState(
        is_transformed=True,
        form_id=form.id,
        saved_base_stats=player.stats.copy(),
    )
    log_event(session, "form.transformed", form=form.name)


def revert_form(session: GameSession) -> None:
    """Restore exactly the base stats saved when transforming."""
    player = session.player
    if not player.transform.is_transformed or player.transform.saved_base_stats is None:
        raise InvalidAction("You are already in your natural form.")
    form_id = player.transform.form_id
    player.stats = player.transform.saved_base_stats.copy()
    player.transform = TransformState()
    form = session.catalog.enemies.get(form_id)
    log_event(session, "form.reverted", form=form.name if form else form_id)
