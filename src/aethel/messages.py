"""Player-facing text for session events."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

Renderer = Union[str, Callable[[dict], Optional[str]]]


def _check(p: dict) -> str:
    outcome = "success" if p["success"] else "failure"
    return f"({p['check'].replace('_', ' ')} check, {p['chance']}% chance: {outcome})"


def _used(p: dict) -> str:
    if "healed" in p:
        return f"You use the {p['item']} and recover {p['healed']} health. ({p['health']}/{p['max_health']})"
    cured = ", ".join(p.get("cured") or []) or "nothing"
    return f"You use the {p['item']}. Cured: {cured}."


def _opened(p: dict) -> str:
    found = [f"{p['gold']} gold"] if p["gold"] else []
    found.extend(p["items"])
    contents = ", ".join(found) if found else "nothing"
    return f"You open the {p['name']} and find {contents}."


def _recipes(p: dict) -> str:
    if not p["recipes"]:
        return f"Nothing can be made at the {p['station']} yet."
    lines = [f"At the {p['station']} you could make:"]
    lines.extend(f"  - {r}" for r in p["recipes"])
    return "\n".join(lines)


def _quests(p: dict) -> str:
    if not p["quests"]:
        return "The quest board is empty."
    lines = ["--- Quest Board ---"]
    for q in p["quests"]:
        status = q["status"]
        if status == "accepted":
            status = f"accepted, {q['progress']}/{q['count']}"
        lines.append(f"{q['name']} [{status}]: {q['description']}")
        lines.append(f"    Reward: {q['reward_gold']} gold, {q['reward_xp']} xp")
    return "\n".join(lines)


def _player_attack(p: dict) -> str:
    prefix = "In a furious rage, you" if p["raging"] else "You"
    return f"{prefix} hit the {p['name']} for {p['damage']} damage. It has {max(0, p['enemy_health'])} health left."


def _effect_damage(p: dict) -> str:
    if p["target"] == "player":
        return f"You take {p['damage']} damage from {p['effect']}. ({max(0, p['health'])} health)"
    return f"The {p['name']} takes {p['damage']} damage from {p['effect']}."


def _effect_applied(p: dict) -> str:
    if p["target"] == "player":
        return f"You are afflicted with {p['effect']} for {p['turns']} turns!"
    return f"The {p['name']} is afflicted with {p['effect']}!"


def _effect_prevented(p: dict) -> str:
    if p["target"] == "player":
        return f"You are {p['effect'].lower()} and cannot act!"
    return f"The {p['name']} is {p['effect'].lower()} and cannot act!"


def _effect_expired(p: dict) -> str:
    if p["target"] == "player":
        return f"You are no longer affected by {p['effect']}."
    return f"The {p['name']} is no longer affected by {p['effect']}."


MESSAGES: Dict[str, Renderer] = {
    "game.started": "Welcome to Aethel, {name} the {race} {character_class}.",
    "game.saved": "Game saved.",
    "game.loaded": "Game loaded.",
    "game.quit": "Farewell, traveler.",
    "action.failed": "{message}",
    "action.invalid": "Invalid action. Type 'help' for a list of commands.",
    "check.rolled": _check,
    "check.racial_bonus": "(Your {race} heritage grants +{bonus} to {skill}.)",
    "check.reroll": "You feel lucky and try again...",
    "travel.message": "{text}",
    "travel.arrived": None,
    "location.first_visit": "{text}",
    "world.new_day": "A new day dawns. It is day {day}.",
    "rest.finished": "{text}",
    "lift.moved": "The lift creaks {direction} to floor {floor}.",
    "look.location": "{description}",
    "look.npc": "{name}: {description}",
    "look.interactable": "{description}",
    "look.recipes": _recipes,
    "npc.said": '{name}: "{text}"',
    "npc.silent": "{name} has nothing to say.",
    "gather.succeeded": "{text}",
    "gather.found": "You found {quantity} {item}.",
    "gather.racial_yield": "Your {race} expertise yields extra!",
    "gather.failed": "{text}",
    "gather.empty": "...but there is nothing of value here.",
    "interactable.revealed": "{text}",
    "interactable.unnoticed": "{text}",
    "interactable.unlocked": "The lock clicks open.",
    "interactable.lockpick_broke": "Your lockpick snaps in the lock of the {name}.",
    "interactable.trap_fired": "A trap springs from the {name}! You take {damage} damage. ({health} health)",
    "interactable.opened": _opened,
    "interactable.disarmed": "You carefully disarm the trap on the {name}.",
    "interactable.disarm_failed": "You can't work out how the trap on the {name} is rigged.",
    "item.bought": "You bought a {item} for {price} gold. You have {gold} gold left.",
    "item.equipped": "You equip the {item}.",
    "item.unequipped": "You unequip the {item}.",
    "item.used": _used,
    "item.broken": "Your {item} has broken!",
    "item.repaired": "Your {item} is as good as new. That cost {cost} gold.",
    "craft.succeeded": "You craft {quantity} {item} at the {station}.",
    "craft.failed": "You fail to craft the {item}. At least the materials are intact.",
    "quest.listed": _quests,
    "quest.accepted": "Quest accepted: {name}. {description}",
    "quest.progress": "Quest progress: {name} ({progress}/{count}).",
    "quest.completed": "Quest complete: {name}! You receive {gold} gold and {xp} xp.",
    "class.changed": "You have retrained from {old} to {new} for {cost} gold.",
    "level.up": "You reached level {level}! Max health {max_health}, attack {attack}, defense {defense}.",
    "form.learned": "You have learned the form of the {form}.",
    "form.transformed": "Your body twists and reshapes into the form of a {form}.",
    "form.reverted": "You return to your natural form.",
    "combat.started": "A wild {name} appears! {description}",
    "combat.player_attack": _player_attack,
    "combat.spell": "You cast {spell}, dealing {damage} {school} damage to the {name}. ({mana} mana left)",
    "combat.rage": "You fly into a battle rage! Your next attack will be devastating, but your guard is down.",
    "combat.heal": "You lay on hands and recover {healed} health. ({health} health)",
    "combat.wasted": "You hesitate, unsure what to do.",
    "combat.turn_lost": "You lose your turn.",
    "combat.enemy_stunned": "The {name} is unable to act.",
    "combat.enemy_attack": "The {name} hits you for {damage} damage. You have {health} health left.",
    "combat.racial_damage": "Your {race} nature changes the {damage_type} damage you take (x{multiplier}).",
    "combat.rebuke": "Hellish flames lash back at the {name} for {damage} damage!",
    "combat.won": "You defeated the {name}! You gain {gold} gold and {xp} xp.",
    "combat.loot": "The enemy dropped a {item}.",
    "combat.fled": "You flee from the {name}.",
    "combat.lost": "You have been defeated by the {name}. Game over.",
    "player.defeated": "You have succumbed to your wounds. Game over.",
    "effect.applied": _effect_applied,
    "effect.resisted": "Your dwarven constitution shrugs off {effect}!",
    "effect.damage": _effect_damage,
    "effect.prevented": _effect_prevented,
    "effect.expired": _effect_expired,
    # Rendered as tables by the CLI
    "show.inventory": None,
    "show.stats": None,
    "show.equipment": None,
    "show.help": None,
}


def render_event(event: dict) -> Optional[str]:
    """Text for one event, or None if the event is not narrated.

    Unknown event ids are logged and rendered as their raw id.
    """
    event_id = event["event_id"]
    params = event.get("params", {})
    if event_id not in MESSAGES:
        logger.warning(f"No message for event '{event_id}'")
        return event_id
    template = MESSAGES[event_id]
    if template is None:
        return None
    if callable(template):
        return template(params)
    return template.format(**params)


def render_events(events: List[dict]) -> List[str]:
    lines = []
    for event in events:
        text = render_event(event)
        if text:
            lines.append(text)
    return lines
