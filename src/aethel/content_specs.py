"""Content specification loaders for the data catalog.

This module provides immutable data structures and YAML loaders for:
- ItemSpec: item templates (equipment, consumables, tools, materials)
- EnemySpec: enemy templates with loot tables
- DamageTypeSpec / EffectSpec: spell schools and status effects
- RaceSpec / ClassSpec: character creation bonuses
- QuestSpec / RecipeSpec / NpcSpec
- LocationSpec: the world graph, with action descriptors and interactables
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

import yaml
from yaml.nodes import MappingNode, ScalarNode, SequenceNode

from .action_call import ActionCall

T = TypeVar("T")


@dataclass(frozen=True)
class ItemSpec:
    """Immutable item template.

    Attributes:
        id: Unique item identifier
        name: Display name
        item_type: misc, consumable, weapon, armor, tool or material
        equip_slot: Equipment slot, or None if the item cannot be equipped
        category: Weapon category (bladed, blunt, ...) used for material rolls
        price: Shop price in gold
        max_durability: Maximum durability, or None for items that never wear
        stats: Stat bonuses granted while equipped
        effect: Consumable effect, e.g. {"kind": "heal", "amount": 25}
        mining_bonus: Success chance bonus when used as a pickaxe
    """
    id: str
    name: str
    description: str = ""
    item_type: str = "misc"
    equip_slot: Optional[str] = None
    category: Optional[str] = None
    price: int = 0
    max_durability: Optional[int] = None
    stats: Dict[str, int] = field(default_factory=dict)
    effect: Optional[Dict[str, Any]] = None
    mining_bonus: int = 0
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LootDrop:
    item_id: str
    chance: float


@dataclass(frozen=True)
class EnemySpec:
    id: str
    name: str
    description: str
    health: int
    max_health: int
    attack: int
    defense: int
    gold: int = 0
    xp: int = 0
    damage_type: str = "physical"
    drops: Tuple[LootDrop, ...] = ()
    on_hit_effect: Optional[str] = None
    on_hit_chance: float = 0.0
    on_hit_turns: int = 0


@dataclass(frozen=True)
class DamageTypeSpec:
    """A destruction school: its spells share mana cost and base damage."""
    id: str
    name: str
    mana_cost: int
    base_damage: int
    spells: Tuple[str, ...] = ()
    effect: Optional[str] = None
    effect_chance: float = 0.0
    effect_turns: int = 0


@dataclass(frozen=True)
class EffectSpec:
    id: str
    name: str
    damage_per_turn: int = 0
    prevents_action: bool = False
    stat_modifiers: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class RaceSpec:
    id: str
    name: str
    description: str = ""
    bonuses: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ClassSpec:
    id: str
    name: str
    description: str = ""
    bonuses: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class QuestSpec:
    id: str
    name: str
    description: str
    objective_type: str
    target: str
    count: int
    reward_gold: int = 0
    reward_xp: int = 0


@dataclass(frozen=True)
class RecipeSpec:
    id: str
    station: str
    materials: Dict[str, int]
    quantity: int = 1
    base_chance: int = 70


@dataclass(frozen=True)
class NpcSpec:
    id: str
    name: str
    description: str
    dialogue: Tuple[str, ...]


@dataclass(frozen=True)
class DescriptionVariant:
    when: Dict[str, Any]
    text: str


@dataclass(frozen=True)
class Description:
    """Static text, or text computed from live state on every display."""
    kind: str
    text: str
    variants: Tuple[DescriptionVariant, ...] = ()
    suffixes: Tuple[DescriptionVariant, ...] = ()


@dataclass(frozen=True)
class InteractableSpec:
    id: str
    description: str
    hidden: bool = False
    trapped: bool = False
    locked: bool = False
    trap_damage: int = 0
    contents_gold: int = 0
    contents_items: Tuple[str, ...] = ()

    def initial_flags(self) -> Dict[str, Any]:
        return {
            "hidden": self.hidden,
            "trapped": self.trapped,
            "locked": self.locked,
            "opened": False,
        }


@dataclass(frozen=True)
class ShopEntrySpec:
    item_id: str
    max: int
    restock_chance: float = 1.0


@dataclass(frozen=True)
class LocationSpec:
    """Static specification for a location in the world graph.

    Attributes:
        id: Unique location identifier
        name: Display name
        description: Short description shown on every redisplay
        long_description: Shown by 'look'
        npcs: NPC ids present here
        shop: Items for sale with their stock ceilings
        actions: Verb -> action descriptor
        interactables: Named sub-features (chests, trees, stations)
        on_enter: Descriptor run after travelling here
        on_look: Descriptor run after a plain 'look'
        crafting_stations: Stations usable for crafting here
        services: Extra capabilities (repair, quest_board, class_trainer, trees)
    """
    id: str
    name: str
    description: Description
    long_description: str = ""
    npcs: Tuple[str, ...] = ()
    shop: Dict[str, ShopEntrySpec] = field(default_factory=dict)
    actions: Dict[str, ActionCall] = field(default_factory=dict)
    interactables: Dict[str, InteractableSpec] = field(default_factory=dict)
    on_enter: Optional[ActionCall] = None
    on_look: Optional[ActionCall] = None
    crafting_stations: Tuple[str, ...] = ()
    services: Tuple[str, ...] = ()


def _entry_line_map(text: str, key: str) -> List[int]:
    """Line numbers (1-based) of each entry in the top-level ``key`` list."""
    try:
        root = yaml.compose(text)
    except yaml.YAMLError:
        return []
    if not isinstance(root, MappingNode):
        return []

    list_node = None
    for key_node, value_node in root.value:
        if isinstance(key_node, ScalarNode) and key_node.value == key:
            list_node = value_node
            break

    if not isinstance(list_node, SequenceNode):
        return []
    return [entry.start_mark.line + 1 for entry in list_node.value]


def _format_entry_error(file_path: Path, line: int | None, message: str) -> str:
    if line is not None:
        return f"{file_path}:{line}: {message}"
    return f"{file_path}: {message}"


def _format_yaml_error(file_path: Path, error: yaml.YAMLError) -> str:
    mark = getattr(error, "problem_mark", None)
    detail = getattr(error, "problem", None)
    if mark is not None:
        detail = detail or str(error)
        return f"{file_path}:{mark.line + 1}:{mark.column + 1}: {detail}"
    return f"{file_path}: {error}"


def _load_yaml_mapping(file_path: Path) -> tuple[Dict[str, Any], str]:
    text = file_path.read_text(encoding="utf-8")
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(_format_yaml_error(file_path, exc)) from exc
    if raw is None:
        return {}, text
    if not isinstance(raw, dict):
        raise ValueError(f"{file_path}: expected a mapping at document root")
    return raw, text


def _load_entries(
    path: str | Path,
    key: str,
    build: Callable[[Dict[str, Any]], T],
) -> Dict[str, T]:
    """Load a top-level list of id'd mappings, rejecting duplicates.

    Args:
        path: YAML file to read
        key: Top-level key holding the list
        build: Converts one raw mapping into a spec

    Returns:
        Dict mapping id to spec (empty if the file does not exist)

    Raises:
        ValueError: On malformed YAML, non-mapping entries, missing or
            duplicate ids, or a ``build`` failure; messages carry file:line.
    """
    file_path = Path(path)
    if not file_path.exists():
        return {}

    raw, text = _load_yaml_mapping(file_path)
    entries = raw.get(key, [])
    if not isinstance(entries, list):
        raise ValueError(f"{file_path}: {key} must be a list")
    lines = _entry_line_map(text, key)

    out: Dict[str, T] = {}
    seen: Dict[str, int] = {}
    for idx, entry in enumerate(entries):
        line = lines[idx] if idx < len(lines) else None
        if not isinstance(entry, dict):
            raise ValueError(_format_entry_error(file_path, line, f"{key}[{idx}] must be a mapping"))
        entry_id = entry.get("id")
        if not isinstance(entry_id, str) or not entry_id:
            raise ValueError(_format_entry_error(file_path, line, f"{key}[{idx}] id must be a string"))
        if entry_id in seen:
            raise ValueError(_format_entry_error(
                file_path,
                line,
                f"duplicate {key} id '{entry_id}' (first defined at line {seen[entry_id]})",
            ))
        seen[entry_id] = line if line is not None else -1
        try:
            out[entry_id] = build(entry)
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(_format_entry_error(file_path, line, f"{entry_id}: {exc}")) from exc
    return out


def _int_map(raw: Any) -> Dict[str, int]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError("expected a mapping of numbers")
    return {str(k): int(v) for k, v in raw.items()}


def _build_item(it: Dict[str, Any]) -> ItemSpec:
    max_durability = it.get("max_durability")
    return ItemSpec(
        id=it["id"],
        name=it.get("name", it["id"]),
        description=it.get("description", ""),
        item_type=it.get("type", "misc"),
        equip_slot=it.get("equip_slot"),
        category=it.get("category"),
        price=int(it.get("price", 0)),
        max_durability=int(max_durability) if max_durability is not None else None,
        stats=_int_map(it.get("stats")),
        effect=it.get("effect"),
        mining_bonus=int(it.get("mining_bonus", 0)),
        tags=tuple(it.get("tags", [])),
    )


def _build_enemy(en: Dict[str, Any]) -> EnemySpec:
    stats = en["stats"]
    on_hit = en.get("on_hit") or {}
    return EnemySpec(
        id=en["id"],
        name=en.get("name", en["id"]),
        description=en.get("description", ""),
        health=int(stats["health"]),
        max_health=int(stats.get("max_health", stats["health"])),
        attack=int(stats["attack"]),
        defense=int(stats["defense"]),
        gold=int(stats.get("gold", 0)),
        xp=int(stats.get("xp", 0)),
        damage_type=en.get("damage_type", "physical"),
        drops=tuple(LootDrop(d["item_id"], float(d["chance"])) for d in en.get("drops", [])),
        on_hit_effect=on_hit.get("effect"),
        on_hit_chance=float(on_hit.get("chance", 0.0)),
        on_hit_turns=int(on_hit.get("turns", 0)),
    )


def _build_damage_type(dt: Dict[str, Any]) -> DamageTypeSpec:
    return DamageTypeSpec(
        id=dt["id"],
        name=dt.get("name", dt["id"]),
        mana_cost=int(dt["mana_cost"]),
        base_damage=int(dt["base_damage"]),
        spells=tuple(s.lower() for s in dt.get("spells", [])),
        effect=dt.get("effect"),
        effect_chance=float(dt.get("effect_chance", 0.0)),
        effect_turns=int(dt.get("effect_turns", 0)),
    )


def _build_effect(ef: Dict[str, Any]) -> EffectSpec:
    return EffectSpec(
        id=ef["id"],
        name=ef.get("name", ef["id"]),
        damage_per_turn=int(ef.get("damage_per_turn", 0)),
        prevents_action=bool(ef.get("prevents_action", False)),
        stat_modifiers=_int_map(ef.get("stat_modifiers")),
    )


def _build_race(r: Dict[str, Any]) -> RaceSpec:
    return RaceSpec(
        id=r["id"],
        name=r.get("name", r["id"].title()),
        description=r.get("description", ""),
        bonuses=_int_map(r.get("bonuses")),
    )


def _build_class(c: Dict[str, Any]) -> ClassSpec:
    return ClassSpec(
        id=c["id"],
        name=c.get("name", c["id"].title()),
        description=c.get("description", ""),
        bonuses=_int_map(c.get("bonuses")),
    )


def _build_quest(q: Dict[str, Any]) -> QuestSpec:
    objective = q["objective"]
    reward = q.get("reward", {})
    return QuestSpec(
        id=q["id"],
        name=q["name"],
        description=q.get("description", ""),
        objective_type=objective.get("type", "kill"),
        target=objective["target"],
        count=int(objective.get("count", 1)),
        reward_gold=int(reward.get("gold", 0)),
        reward_xp=int(reward.get("xp", 0)),
    )


def _build_recipe(r: Dict[str, Any]) -> RecipeSpec:
    return RecipeSpec(
        id=r["id"],
        station=r["station"],
        materials=_int_map(r["materials"]),
        quantity=int(r.get("quantity", 1)),
        base_chance=int(r.get("base_chance", 70)),
    )


def _build_npc(n: Dict[str, Any]) -> NpcSpec:
    dialogue = n.get("dialogue", [])
    if not dialogue:
        raise ValueError("npc needs at least one dialogue line")
    return NpcSpec(
        id=n["id"],
        name=n["name"],
        description=n.get("description", ""),
        dialogue=tuple(dialogue),
    )


def _build_variants(raw: Any) -> Tuple[DescriptionVariant, ...]:
    return tuple(DescriptionVariant(when=dict(v["when"]), text=v["text"]) for v in raw or [])


def _build_description(raw: Any) -> Description:
    if isinstance(raw, str):
        return Description(kind="static", text=raw)
    if not isinstance(raw, dict):
        raise ValueError("description must be a string or a mapping")
    variants = _build_variants(raw.get("variants"))
    suffixes = _build_variants(raw.get("suffixes"))
    kind = "computed" if variants or suffixes else "static"
    return Description(kind=kind, text=raw.get("text", ""), variants=variants, suffixes=suffixes)


def _build_interactable(name: str, raw: Dict[str, Any]) -> InteractableSpec:
    contents = raw.get("contents") or {}
    return InteractableSpec(
        id=name,
        description=raw.get("description", ""),
        hidden=bool(raw.get("hidden", False)),
        trapped=bool(raw.get("trapped", False)),
        locked=bool(raw.get("locked", False)),
        trap_damage=int(raw.get("trap_damage", 0)),
        contents_gold=int(contents.get("gold", 0)),
        contents_items=tuple(contents.get("items", [])),
    )


def _build_location(loc: Dict[str, Any]) -> LocationSpec:
    shop = {}
    for item_id, entry in (loc.get("shop") or {}).items():
        shop[item_id] = ShopEntrySpec(
            item_id=item_id,
            max=int(entry["max"]),
            restock_chance=float(entry.get("restock_chance", 1.0)),
        )
    actions = {verb: ActionCall.from_raw(a) for verb, a in (loc.get("actions") or {}).items()}
    interactables = {
        name: _build_interactable(name, raw) for name, raw in (loc.get("interactables") or {}).items()
    }
    on_enter = loc.get("on_enter")
    on_look = loc.get("on_look")
    return LocationSpec(
        id=loc["id"],
        name=loc.get("name", loc["id"].title()),
        description=_build_description(loc["description"]),
        long_description=loc.get("long_description", ""),
        npcs=tuple(loc.get("npcs", [])),
        shop=shop,
        actions=actions,
        interactables=interactables,
        on_enter=ActionCall.from_raw(on_enter) if on_enter else None,
        on_look=ActionCall.from_raw(on_look) if on_look else None,
        crafting_stations=tuple(loc.get("crafting_stations", [])),
        services=tuple(loc.get("services", [])),
    )


def load_items(path: str | Path) -> Dict[str, ItemSpec]:
    return _load_entries(path, "items", _build_item)


def load_enemies(path: str | Path) -> Dict[str, EnemySpec]:
    return _load_entries(path, "enemies", _build_enemy)


def load_damage_types(path: str | Path) -> Dict[str, DamageTypeSpec]:
    return _load_entries(path, "damage_types", _build_damage_type)


def load_effects(path: str | Path) -> Dict[str, EffectSpec]:
    return _load_entries(path, "effects", _build_effect)


def load_races(path: str | Path) -> Dict[str, RaceSpec]:
    return _load_entries(path, "races", _build_race)


def load_classes(path: str | Path) -> Dict[str, ClassSpec]:
    return _load_entries(path, "classes", _build_class)


def load_quests(path: str | Path) -> Dict[str, QuestSpec]:
    return _load_entries(path, "quests", _build_quest)


def load_recipes(path: str | Path) -> Dict[str, RecipeSpec]:
    return _load_entries(path, "recipes", _build_recipe)


def load_npcs(path: str | Path) -> Dict[str, NpcSpec]:
    return _load_entries(path, "npcs", _build_npc)


def load_locations(path: str | Path) -> Dict[str, LocationSpec]:
    """Load the world graph from YAML.

    Args:
        path: Path to locations.yaml

    Returns:
        Dict mapping location id to LocationSpec

    Raises:
        ValueError: If the file is malformed or ids are duplicated
    """
    return _load_entries(path, "locations", _build_location)
