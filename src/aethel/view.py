from __future__ import annotations

from typing import Dict, List

from .combat import FREE_COMMANDS
from .commands import GLOBAL_COMMANDS
from .constants import EQUIPMENT_SLOTS, MODIFIABLE_STATS
from .models import GameSession, ItemInstance
from .stats import effective_stats
from .world import describe, location_state, visible_interactables

COMBAT_COMMANDS = ["attack", "cast <spell>", "use <item>", "flee"]
RACIAL_COMBAT_COMMANDS = {"orc": "rage", "angel": "heal", "halfling": "reroll"}


def _item_row(it: ItemInstance) -> Dict:
    durability = ""
    if it.durability is not None:
        durability = f"{it.durability}/{it.max_durability}"
    return {
        "uid": it.uid,
        "name": it.name,
        "type": it.item_type,
        "slot": it.equip_slot or "",
        "durability": durability,
        "stats": ", ".join(f"{k} {v:+d}" for k, v in it.stats.items()),
    }


def build_view_model(session: GameSession) -> Dict:
    """Build a plain-dict view of the session for rendering or dumping."""
    catalog = session.catalog
    p = session.player
    eff = effective_stats(session)
    loc = catalog.location(session.world.location)
    state = location_state(session, loc.id)

    shop = []
    for item_id, entry in loc.shop.items():
        spec = catalog.items[item_id]
        stock = state.shop_stock.get(item_id)
        shop.append(
            {
                "name": spec.name,
                "price": spec.price,
                "stock": stock.current if stock else 0,
                "max": entry.max,
            }
        )

    effects = []
    for active in p.active_effects:
        spec = catalog.effects.get(active.effect_id)
        effects.append({"name": spec.name if spec else active.effect_id, "turns": active.turns_remaining})

    vm = {
        "status": session.status,
        "time": {"day": session.world.day, "hour": session.world.hour, "night": session.world.is_night},
        "location": {
            "id": loc.id,
            "name": loc.name,
            "description": describe(session),
            "npcs": [catalog.npcs[n].name for n in loc.npcs],
            "actions": sorted(loc.actions),
            "interactables": visible_interactables(session),
            "shop": shop,
            "services": list(loc.services),
        },
        "player": {
            "name": p.name,
            "race": p.race.title(),
            "class": p.character_class.title(),
            "level": p.stats.level,
            "experience": p.stats.experience,
            "xp_to_next_level": p.stats.xp_to_next_level,
            "health": p.stats.health,
            "max_health": eff.max_health,
            "mana": p.stats.mana,
            "gold": p.stats.gold,
            "effects": effects,
            "form": p.transform.form_id if p.transform.is_transformed else None,
            "mine_floor": p.mine_floor,
        },
        "stats": [
            {"stat": stat, "base": getattr(p.stats, stat), "effective": getattr(eff, stat)}
            for stat in MODIFIABLE_STATS
        ],
        "inventory": [_item_row(it) for it in p.inventory],
        "equipment": [
            {"slot": slot, **(_item_row(p.equipment[slot]) if p.equipment[slot] else {"name": ""})}
            for slot in EQUIPMENT_SLOTS
        ],
        "spells": list(p.spells),
        "combat": None,
    }

    if session.encounter is not None:
        enemy = session.encounter.enemy
        commands = list(COMBAT_COMMANDS)
        racial = RACIAL_COMBAT_COMMANDS.get(p.race.lower())
        if racial:
            commands.append(racial)
        vm["combat"] = {
            "enemy": enemy.name,
            "health": enemy.stats.health,
            "max_health": enemy.stats.max_health,
            "round": session.encounter.round,
            "commands": commands,
        }
    return vm


def help_lines(session: GameSession) -> List[str]:
    if session.in_combat:
        vm = build_view_model(session)
        return [
            "Combat commands: " + ", ".join(vm["combat"]["commands"]),
            "Free actions: " + ", ".join(FREE_COMMANDS),
        ]
    loc = session.catalog.location(session.world.location)
    return [
        "Commands: " + ", ".join(GLOBAL_COMMANDS),
        "Here: " + (", ".join(sorted(loc.actions)) or "nothing special"),
    ]
