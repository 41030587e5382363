"""Turn-based combat: one player against one enemy instance per encounter."""

from __future__ import annotations

import math
from typing import Tuple

from .checks import ensure_reroll_available, reroll
from .constants import (
    COMBAT_ALIASES,
    COMMAND_ALIASES,
    LAY_ON_HANDS_FRACTION,
    PER_COMBAT_COOLDOWNS,
    RACIAL_DAMAGE_MULTIPLIERS,
    RAGE_ATTACK_MULTIPLIER,
    RAGE_DEFENSE_MULTIPLIER,
)
from .effects import ENEMY, PLAYER, apply_effect, process_effects
from .errors import GameError, InsufficientMana, InvalidAction, UnknownSpell
from .items import decrease_durability, give_item, use_item
from .models import Encounter, Enemy, GameSession, log_event
from .progression import grant_rewards, learn_form, record_kill
from .stats import effective_stats, enemy_stat

# Commands answered without spending the round
FREE_COMMANDS = ["stats", "inventory", "equipment", "help", "quit"]


def start_combat(session: GameSession, enemy_id: str) -> None:
    """Begin an encounter with a fresh clone of an enemy template.

    Raises:
        UnknownTemplate: If the enemy id is not in the catalog
        InvalidAction: If an encounter is already active
    """
    if session.in_combat:
        raise InvalidAction("You are already in a fight!")
    spec = session.catalog.enemy(enemy_id)
    enemy = Enemy.from_spec(spec)
    session.encounter = Encounter(template_id=spec.id, enemy=enemy)
    log_event(
        session,
        "combat.started",
        name=enemy.name,
        description=enemy.description,
        health=enemy.stats.health,
    )


def split_combat_command(raw: str) -> Tuple[str, str]:
    command, _, argument = raw.strip().lower().partition(" ")
    command = COMBAT_ALIASES.get(command, command)
    command = COMMAND_ALIASES.get(command, command)
    return command, argument.strip()


def _precheck(session: GameSession, command: str, argument: str) -> None:
    """Refuse requests that should not cost the player the round.

    Raises:
        GameError: The request is refused; nothing ticks and the enemy does not act
    """
    player = session.player
    race = player.race.lower()

    if command == "cast":
        if not argument:
            raise InvalidAction("Cast what? Use 'cast <spell>'.")
        if argument not in player.spells:
            raise UnknownSpell(f"You don't know the spell '{argument}'.")
        school = session.catalog.damage_type_for_spell(argument)
        if player.stats.mana < school.mana_cost:
            raise InsufficientMana(
                f"Not enough mana to cast {argument} ({school.mana_cost} needed, {player.stats.mana} left)."
            )
    elif command == "use" and not argument:
        raise InvalidAction("Use what? Use 'use <item name>'.")
    elif command == "rage" and race == "orc":
        if "battle_rage" in player.cooldowns:
            raise InvalidAction("Your battle rage is spent for this fight.")
    elif command == "heal" and race == "angel":
        if player.cooldowns.get("lay_on_hands") == session.world.day:
            raise InvalidAction("You have already laid on hands today.")
    elif command == "reroll":
        ensure_reroll_available(session)


def combat_action(session: GameSession, raw: str) -> None:
    """Resolve one player input while an encounter is active.

    Round order: player status effects tick, the player acts, then the enemy
    acts unless it died or the player fled.
    """
    command, argument = split_combat_command(raw)
    if not command:
        return

    if command in FREE_COMMANDS:
        from .commands import dispatch

        dispatch(session, command)
        return

    try:
        _precheck(session, command, argument)
    except GameError as e:
        log_event(session, "action.failed", reason=e.reason, message=e.message)
        return

    if command == "flee":
        log_event(session, "combat.fled", name=session.encounter.enemy.name)
        end_combat(session)
        return

    encounter = session.encounter
    encounter.round += 1
    player = session.player

    prevented = process_effects(session, PLAYER)
    if player.stats.health <= 0:
        _lose(session)
        return
    if prevented:
        log_event(session, "combat.turn_lost")
        _enemy_turn(session)
        return

    _player_turn(session, command, argument)
    if session.encounter is None:
        return

    if encounter.enemy.stats.health <= 0:
        _win(session)
        return

    _enemy_turn(session)


def _player_turn(session: GameSession, command: str, argument: str) -> None:
    """Resolve the player's action."""
    player = session.player
    race = player.race.lower()

    if command == "attack":
        _attack(session)
        return
    if command == "cast":
        _cast(session, argument)
        return
    if command == "use":
        try:
            use_item(session, argument)
        except GameError as e:
            log_event(session, "action.failed", reason=e.reason, message=e.message)
        return
    if command == "rage" and race == "orc":
        player.flags["raging"] = True
        player.cooldowns["battle_rage"] = 1
        log_event(session, "combat.rage")
        return
    if command == "heal" and race == "angel":
        _lay_on_hands(session)
        return
    if command == "reroll":
        reroll(session)
        return

    log_event(session, "combat.wasted", input=command)


def _attack(session: GameSession) -> None:
    player = session.player
    enemy = session.encounter.enemy
    attack = effective_stats(session).attack

    raging = bool(player.flags.pop("raging", False))
    if raging:
        attack = math.floor(attack * RAGE_ATTACK_MULTIPLIER)

    damage = max(1, attack - enemy_stat(session, enemy, "defense"))
    enemy.stats.health -= damage
    log_event(
        session,
        "combat.player_attack",
        name=enemy.name,
        damage=damage,
        enemy_health=enemy.stats.health,
        raging=raging,
    )
    decrease_durability(session, player.equipment.get("weapon"))


def _cast(session: GameSession, spell: str) -> None:
    player = session.player
    enemy = session.encounter.enemy
    school = session.catalog.damage_type_for_spell(spell)

    player.stats.mana -= school.mana_cost
    damage = school.base_damage + math.floor(effective_stats(session).intelligence / 5)
    enemy.stats.health -= damage
    log_event(
        session,
        "combat.spell",
        spell=spell,
        school=school.name,
        name=enemy.name,
        damage=damage,
        enemy_health=enemy.stats.health,
        mana=player.stats.mana,
    )

    if enemy.stats.health > 0 and school.effect and session.world.rng.random() < school.effect_chance:
        apply_effect(session, ENEMY, school.effect, school.effect_turns)


def _lay_on_hands(session: GameSession) -> None:
    player = session.player
    max_health = effective_stats(session).max_health
    before = player.stats.health
    player.stats.health = min(max_health, player.stats.health + math.floor(max_health * LAY_ON_HANDS_FRACTION))
    player.cooldowns["lay_on_hands"] = session.world.day
    log_event(session, "combat.heal", healed=player.stats.health - before, health=player.stats.health)


def _enemy_turn(session: GameSession) -> None:
    player = session.player
    enemy = session.encounter.enemy

    prevented = process_effects(session, ENEMY)
    if enemy.stats.health <= 0:
        _win(session)
        return
    if prevented:
        log_event(session, "combat.enemy_stunned", name=enemy.name)
        return

    eff = effective_stats(session)
    defense = eff.defense
    # Guard is down only while rage is primed
    if player.flags.get("raging"):
        defense = math.floor(defense * RAGE_DEFENSE_MULTIPLIER)
    damage = max(1, enemy_stat(session, enemy, "attack") - defense)

    multiplier = RACIAL_DAMAGE_MULTIPLIERS.get(player.race.lower(), {}).get(enemy.damage_type)
    if multiplier is not None:
        damage = max(1, math.floor(damage * multiplier))
        log_event(session, "combat.racial_damage", race=player.race, damage_type=enemy.damage_type, multiplier=multiplier)

    for slot, item in list(player.equipment.items()):
        if slot != "weapon":
            decrease_durability(session, item)

    player.stats.health -= damage
    log_event(session, "combat.enemy_attack", name=enemy.name, damage=damage, health=player.stats.health)

    if player.stats.health <= 0:
        _lose(session)
        return

    if player.race.lower() == "tiefling" and "hellish_rebuke" not in player.cooldowns:
        rebuke = eff.intelligence // 2
        enemy.stats.health -= rebuke
        player.cooldowns["hellish_rebuke"] = 1
        log_event(session, "combat.rebuke", name=enemy.name, damage=rebuke, enemy_health=enemy.stats.health)
        if enemy.stats.health <= 0:
            _win(session)
            return

    if enemy.on_hit_effect and session.world.rng.random() < enemy.on_hit_chance:
        apply_effect(session, PLAYER, enemy.on_hit_effect, enemy.on_hit_turns)


def _win(session: GameSession) -> None:
    encounter = session.encounter
    enemy = encounter.enemy
    gold, xp = enemy.stats.gold, enemy.stats.xp
    log_event(session, "combat.won", name=enemy.name, gold=gold, xp=xp)
    grant_rewards(session, gold, xp)

    rng = session.world.rng
    for drop in enemy.drops:
        if rng.random() < drop.chance:
            spec = session.catalog.item(drop.item_id)
            loot = give_item(session, drop.item_id, with_rarity=spec.equip_slot is not None)[0]
            log_event(session, "combat.loot", item=loot.name)

    record_kill(session, encounter.template_id)
    learn_form(session, encounter.template_id)
    end_combat(session)


def _lose(session: GameSession) -> None:
    enemy = session.encounter.enemy
    session.status = "defeated"
    log_event(session, "combat.lost", name=enemy.name)
    end_combat(session)


def end_combat(session: GameSession) -> None:
    """Clear the encounter and everything that only lasts one fight.

    Daily cooldowns and lingering status effects on the player are kept.
    """
    player = session.player
    player.flags.pop("raging", None)
    for key in PER_COMBAT_COOLDOWNS:
        player.cooldowns.pop(key, None)
    player.last_check = None
    session.encounter = None

