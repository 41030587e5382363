"""Stat resolution: base stats plus race, class, form, equipment and effects."""

from __future__ import annotations

import logging

from .catalog import GameCatalog
from .constants import BASELINE_STATS, MODIFIABLE_STATS
from .content_specs import EnemySpec
from .models import Enemy, GameSession, Player, Stats

logger = logging.getLogger(__name__)


def merge_form_stats(base: Stats, form: EnemySpec) -> Stats:
    """Overlay a creature form onto base stats.

    Numeric stats the form defines are added; current health is not, and is
    capped at the merged maximum afterwards.
    """
    merged = base.copy()
    for stat in MODIFIABLE_STATS:
        amount = getattr(form, stat, None)
        if isinstance(amount, int):
            merged.add(stat, amount)
    merged.health = min(merged.health, merged.max_health)
    return merged


def effective_stats(session: GameSession) -> Stats:
    """Compute the player's effective stats from current state.

    Pure: nothing is cached and nothing is mutated, so two calls without an
    intervening change return equal results.

    Args:
        session: Game session

    Returns:
        A new Stats holding base + form + equipment + status effect modifiers
    """
    player = session.player
    catalog = session.catalog
    eff = player.stats.copy()

    if player.transform.is_transformed and player.transform.form_id:
        form = catalog.enemies.get(player.transform.form_id)
        if form is None:
            logger.warning(f"Unknown form '{player.transform.form_id}' ignored in stat resolution")
        else:
            eff = merge_form_stats(eff, form)

    for item in player.equipped_items():
        for stat, amount in item.stats.items():
            eff.add(stat, amount)

    for active in player.active_effects:
        spec = catalog.effects.get(active.effect_id)
        if spec is None:
            continue
        for stat, amount in spec.stat_modifiers.items():
            eff.add(stat, amount)

    return eff


def enemy_stat(session: GameSession, enemy: Enemy, stat: str) -> int:
    """An enemy's attack or defense including status effect modifiers."""
    value = getattr(enemy.stats, stat)
    for active in enemy.active_effects:
        spec = session.catalog.effects.get(active.effect_id)
        if spec is not None:
            value += spec.stat_modifiers.get(stat, 0)
    return value


def apply_stat_bonuses(catalog: GameCatalog, player: Player) -> None:
    """Reset to the character baseline, then add race and class bonuses.

    Level, experience, the xp threshold and gold are preserved.
    """
    for stat, value in BASELINE_STATS.items():
        setattr(player.stats, stat, value)

    race = catalog.races.get(player.race.lower())
    if race is not None:
        for stat, amount in race.bonuses.items():
            player.stats.add(stat, amount)

    cls = catalog.classes.get(player.character_class.lower())
    if cls is not None:
        for stat, amount in cls.bonuses.items():
            player.stats.add(stat, amount)


def swap_class_bonuses(catalog: GameCatalog, player: Player, new_class: str) -> None:
    """Replace the current class's bonus deltas with those of ``new_class``.

    Unlike apply_stat_bonuses this keeps per-level gains intact.
    """
    old = catalog.classes.get(player.character_class.lower())
    if old is not None:
        for stat, amount in old.bonuses.items():
            player.stats.add(stat, -amount)

    new = catalog.character_class(new_class)
    for stat, amount in new.bonuses.items():
        player.stats.add(stat, amount)
    player.character_class = new.id
