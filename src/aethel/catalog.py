from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .content_specs import (
    ClassSpec,
    DamageTypeSpec,
    EffectSpec,
    EnemySpec,
    ItemSpec,
    LocationSpec,
    NpcSpec,
    QuestSpec,
    RaceSpec,
    RecipeSpec,
    load_classes,
    load_damage_types,
    load_effects,
    load_enemies,
    load_items,
    load_locations,
    load_npcs,
    load_quests,
    load_races,
    load_recipes,
)
from .errors import UnknownEffect, UnknownLocation, UnknownSpell, UnknownTemplate

DATA_DIR = Path(__file__).resolve().parents[2] / "data"
logger = logging.getLogger(__name__)

_CATALOG_FILES = [
    "items.yaml",
    "enemies.yaml",
    "spells.yaml",
    "effects.yaml",
    "races.yaml",
    "classes.yaml",
    "quests.yaml",
    "recipes.yaml",
    "npcs.yaml",
    "locations.yaml",
]

# Action parameters that name a catalog entry, checked by validate()
_ITEM_PARAMS = ("item", "requires_item")


@dataclass
class GameCatalog:
    """Read-only game content, keyed by stable string ids."""

    items: Dict[str, ItemSpec] = field(default_factory=dict)
    enemies: Dict[str, EnemySpec] = field(default_factory=dict)
    damage_types: Dict[str, DamageTypeSpec] = field(default_factory=dict)
    effects: Dict[str, EffectSpec] = field(default_factory=dict)
    races: Dict[str, RaceSpec] = field(default_factory=dict)
    classes: Dict[str, ClassSpec] = field(default_factory=dict)
    quests: Dict[str, QuestSpec] = field(default_factory=dict)
    recipes: Dict[str, RecipeSpec] = field(default_factory=dict)
    npcs: Dict[str, NpcSpec] = field(default_factory=dict)
    locations: Dict[str, LocationSpec] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # spell name -> damage type id
        self.spell_index: Dict[str, str] = {}
        for dt in self.damage_types.values():
            for spell in dt.spells:
                self.spell_index[spell] = dt.id

    def item(self, item_id: str) -> ItemSpec:
        try:
            return self.items[item_id]
        except KeyError:
            raise UnknownTemplate(f"Unknown item '{item_id}'.") from None

    def enemy(self, enemy_id: str) -> EnemySpec:
        try:
            return self.enemies[enemy_id]
        except KeyError:
            raise UnknownTemplate(f"Unknown enemy '{enemy_id}'.") from None

    def location(self, location_id: str) -> LocationSpec:
        try:
            return self.locations[location_id]
        except KeyError:
            raise UnknownLocation(f"Location '{location_id}' not found.") from None

    def effect(self, effect_id: str) -> EffectSpec:
        try:
            return self.effects[effect_id]
        except KeyError:
            raise UnknownEffect(f"Unknown status effect '{effect_id}'.") from None

    def race(self, race_id: str) -> RaceSpec:
        try:
            return self.races[race_id.lower()]
        except KeyError:
            raise UnknownTemplate(f"Unknown race '{race_id}'.") from None

    def character_class(self, class_id: str) -> ClassSpec:
        try:
            return self.classes[class_id.lower()]
        except KeyError:
            raise UnknownTemplate(f"Unknown class '{class_id}'.") from None

    def damage_type_for_spell(self, spell: str) -> DamageTypeSpec:
        """Resolve the destruction school a spell belongs to.

        Raises:
            UnknownSpell: If no school lists the spell
        """
        dt_id = self.spell_index.get(spell.lower())
        if dt_id is None:
            raise UnknownSpell(f"The spell '{spell}' has no defined effect.")
        return self.damage_types[dt_id]

    def find_item_by_name(self, name: str) -> Optional[ItemSpec]:
        wanted = name.strip().lower()
        for spec in self.items.values():
            if spec.name.lower() == wanted:
                return spec
        return None

    def find_quest_by_name(self, name: str) -> Optional[QuestSpec]:
        wanted = name.strip().lower()
        for spec in self.quests.values():
            if spec.name.lower() == wanted:
                return spec
        return None

    def find_recipe_by_name(self, name: str) -> Optional[RecipeSpec]:
        item = self.find_item_by_name(name)
        if item is None:
            return None
        return self.recipes.get(item.id)

    def validate(self) -> List[str]:
        """Check that every id referenced by the content resolves.

        Returns:
            List of human-readable problems (empty when the catalog is sound)
        """
        problems: List[str] = []

        for enemy in self.enemies.values():
            for drop in enemy.drops:
                if drop.item_id not in self.items:
                    problems.append(f"enemy {enemy.id}: drop '{drop.item_id}' is not an item")
            if enemy.on_hit_effect and enemy.on_hit_effect not in self.effects:
                problems.append(f"enemy {enemy.id}: on-hit effect '{enemy.on_hit_effect}' is unknown")

        for dt in self.damage_types.values():
            if dt.effect and dt.effect not in self.effects:
                problems.append(f"damage type {dt.id}: effect '{dt.effect}' is unknown")

        for quest in self.quests.values():
            if quest.objective_type == "kill" and quest.target not in self.enemies:
                problems.append(f"quest {quest.id}: target '{quest.target}' is not an enemy")

        for recipe in self.recipes.values():
            if recipe.id not in self.items:
                problems.append(f"recipe {recipe.id}: result is not an item")
            for mat in recipe.materials:
                if mat not in self.items:
                    problems.append(f"recipe {recipe.id}: material '{mat}' is not an item")

        for loc in self.locations.values():
            for npc_id in loc.npcs:
                if npc_id not in self.npcs:
                    problems.append(f"location {loc.id}: npc '{npc_id}' is unknown")
            for item_id in loc.shop:
                if item_id not in self.items:
                    problems.append(f"location {loc.id}: shop item '{item_id}' is unknown")
            for name, inter in loc.interactables.items():
                for item_id in inter.contents_items:
                    if item_id not in self.items:
                        problems.append(f"location {loc.id}: {name} holds unknown item '{item_id}'")
            calls = dict(loc.actions)
            if loc.on_enter is not None:
                calls["on_enter"] = loc.on_enter
            if loc.on_look is not None:
                calls["on_look"] = loc.on_look
            for verb, call in calls.items():
                problems.extend(self._validate_call(loc.id, verb, call.effect, call.params))

        return problems

    def _validate_call(self, loc_id: str, verb: str, effect: str, params: Dict) -> List[str]:
        problems: List[str] = []
        where = f"location {loc_id}: action '{verb}'"
        if effect == "travel" and params.get("to") not in self.locations:
            problems.append(f"{where} travels to unknown location '{params.get('to')}'")
        if effect == "start_combat" and params.get("enemy") not in self.enemies:
            problems.append(f"{where} starts combat with unknown enemy '{params.get('enemy')}'")
        for key in _ITEM_PARAMS:
            if key in params and params[key] not in self.items:
                problems.append(f"{where} references unknown item '{params[key]}'")
        for entry in params.get("table", []):
            if entry.get("item") not in self.items:
                problems.append(f"{where} table references unknown item '{entry.get('item')}'")
        if effect == "reveal" and params.get("interactable") not in self.locations[loc_id].interactables:
            problems.append(f"{where} reveals unknown interactable '{params.get('interactable')}'")
        return problems


_CATALOG_CACHE: Dict[Path, GameCatalog] = {}


def load_catalog(data_dir: Path = DATA_DIR, use_cache: bool = True) -> GameCatalog:
    """Load every catalog file under ``data_dir``.

    Missing files are logged and treated as empty; malformed files raise
    ValueError with file:line context.
    """
    data_dir = Path(data_dir).resolve()
    if use_cache and data_dir in _CATALOG_CACHE:
        return _CATALOG_CACHE[data_dir]

    for name in _CATALOG_FILES:
        if not (data_dir / name).exists():
            logger.warning(f"{name} not found in {data_dir}, treating it as empty")

    catalog = GameCatalog(
        items=load_items(data_dir / "items.yaml"),
        enemies=load_enemies(data_dir / "enemies.yaml"),
        damage_types=load_damage_types(data_dir / "spells.yaml"),
        effects=load_effects(data_dir / "effects.yaml"),
        races=load_races(data_dir / "races.yaml"),
        classes=load_classes(data_dir / "classes.yaml"),
        quests=load_quests(data_dir / "quests.yaml"),
        recipes=load_recipes(data_dir / "recipes.yaml"),
        npcs=load_npcs(data_dir / "npcs.yaml"),
        locations=load_locations(data_dir / "locations.yaml"),
    )
    for problem in catalog.validate():
        logger.warning(f"Catalog problem: {problem}")

    if use_cache:
        _CATALOG_CACHE[data_dir] = catalog
    return catalog
