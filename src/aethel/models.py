from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Deque, Dict, List, Optional

from .action_call import ActionCall
from .constants import (
    EQUIPMENT_SLOTS,
    MAX_EVENT_LOG,
    NIGHT_END_HOUR,
    NIGHT_START_HOUR,
    STARTING_HOUR,
    STARTING_LOCATION,
)
from .content_specs import EnemySpec, LootDrop

if TYPE_CHECKING:
    from .catalog import GameCatalog


@dataclass
class Stats:
    health: int = 100
    max_health: int = 100
    mana: int = 100
    level: int = 1
    experience: int = 0
    xp_to_next_level: int = 100
    attack: int = 10
    defense: int = 10
    strength: int = 10
    dexterity: int = 10
    constitution: int = 10
    intelligence: int = 10
    wisdom: int = 10
    charisma: int = 10
    luck: int = 10
    energy: int = 100
    gold: int = 50

    def copy(self) -> "Stats":
        return replace(self)

    def add(self, stat: str, amount: int) -> None:
        """Add ``amount`` to a stat; unknown stat names are ignored."""
        if hasattr(self, stat):
            setattr(self, stat, getattr(self, stat) + amount)


@dataclass
class ItemInstance:
    uid: int
    template_id: str
    name: str
    item_type: str = "misc"
    equip_slot: Optional[str] = None
    durability: Optional[int] = None
    max_durability: Optional[int] = None
    stats: Dict[str, int] = field(default_factory=dict)
    rarity: Optional[str] = None
    material: Optional[str] = None
    mining_bonus: int = 0

    @property
    def is_broken(self) -> bool:
        return self.durability is not None and self.durability <= 0


@dataclass
class ActiveEffect:
    effect_id: str
    turns_remaining: int


@dataclass
class TransformState:
    is_transformed: bool = False
    form_id: Optional[str] = None
    saved_base_stats: Optional[Stats] = None


@dataclass
class QuestEntry:
    status: str = "accepted"    # accepted/completed
    progress: int = 0


@dataclass
class LastCheck:
    """Most recent check outcome; ``retry`` re-runs the action that made it."""
    check_type: str
    success: bool
    retry: Optional[ActionCall] = None

    @property
    def failed(self) -> bool:
        return not self.success


def _empty_equipment() -> Dict[str, Optional[ItemInstance]]:
    return {slot: None for slot in EQUIPMENT_SLOTS}


@dataclass
class Player:
    name: str = ""
    race: str = "human"
    character_class: str = "warrior"
    gender: str = ""
    age: str = ""
    height: str = ""
    weight: str = ""
    stats: Stats = field(default_factory=Stats)
    equipment: Dict[str, Optional[ItemInstance]] = field(default_factory=_empty_equipment)
    inventory: List[ItemInstance] = field(default_factory=list)
    spells: List[str] = field(default_factory=list)
    known_forms: List[str] = field(default_factory=list)
    active_effects: List[ActiveEffect] = field(default_factory=list)
    cooldowns: Dict[str, int] = field(default_factory=dict)
    flags: Dict[str, Any] = field(default_factory=dict)
    transform: TransformState = field(default_factory=TransformState)
    quest_log: Dict[str, QuestEntry] = field(default_factory=dict)
    last_check: Optional[LastCheck] = None
    mine_floor: int = 0
    next_item_uid: int = 0

    def has_item(self, template_id: str) -> bool:
        """True when the template is carried or equipped."""
        if any(it.template_id == template_id for it in self.inventory):
            return True
        return any(it is not None and it.template_id == template_id for it in self.equipment.values())

    def equipped_items(self) -> List[ItemInstance]:
        return [it for it in self.equipment.values() if it is not None]


@dataclass
class ShopStock:
    current: int
    max: int


@dataclass
class LocationState:
    """Mutable per-location state; the static part lives in the catalog."""
    shop_stock: Dict[str, ShopStock] = field(default_factory=dict)
    last_restock_day: int = 1
    visited: bool = False
    interactables: Dict[str, Dict[str, Any]] = field(default_factory=dict)


@dataclass
class NpcState:
    dialogue_index: int = 0


@dataclass
class World:
    day: int = 1
    hour: int = STARTING_HOUR
    location: str = STARTING_LOCATION
    rng_seed: int = 0
    rng: random.Random = field(default_factory=random.Random)

    @property
    def is_night(self) -> bool:
        return self.hour >= NIGHT_START_HOUR or self.hour < NIGHT_END_HOUR


@dataclass
class EnemyStats:
    health: int
    max_health: int
    attack: int
    defense: int
    gold: int = 0
    xp: int = 0


@dataclass
class Enemy:
    template_id: str
    name: str
    description: str
    stats: EnemyStats
    damage_type: str = "physical"
    drops: List[LootDrop] = field(default_factory=list)
    active_effects: List[ActiveEffect] = field(default_factory=list)
    on_hit_effect: Optional[str] = None
    on_hit_chance: float = 0.0
    on_hit_turns: int = 0

    @classmethod
    def from_spec(cls, spec: EnemySpec) -> "Enemy":
        """Clone a template into a fresh, independently mutable enemy."""
        return cls(
            template_id=spec.id,
            name=spec.name,
            description=spec.description,
            stats=EnemyStats(
                health=spec.health,
                max_health=spec.max_health,
                attack=spec.attack,
                defense=spec.defense,
                gold=spec.gold,
                xp=spec.xp,
            ),
            damage_type=spec.damage_type,
            drops=list(spec.drops),
            active_effects=[],
            on_hit_effect=spec.on_hit_effect,
            on_hit_chance=spec.on_hit_chance,
            on_hit_turns=spec.on_hit_turns,
        )


@dataclass
class Encounter:
    template_id: str
    enemy: Enemy
    round: int = 0


@dataclass
class GameSession:
    schema_version: int = 1
    world: World = field(default_factory=World)
    player: Player = field(default_factory=Player)
    locations: Dict[str, LocationState] = field(default_factory=dict)
    npcs: Dict[str, NpcState] = field(default_factory=dict)
    encounter: Optional[Encounter] = None
    status: str = "playing"     # playing/defeated/quit
    event_log: Deque[dict] = field(default_factory=lambda: deque(maxlen=MAX_EVENT_LOG))
    save_path: Optional[str] = None
    autosave_path: Optional[str] = None
    catalog: Optional["GameCatalog"] = field(default=None, repr=False, compare=False)
    # Events emitted during the current step, handed back to the caller
    outbox: List[dict] = field(default_factory=list, repr=False, compare=False)

    @property
    def in_combat(self) -> bool:
        return self.encounter is not None

    @property
    def location_state(self) -> LocationState:
        return self.locations.setdefault(self.world.location, LocationState())


def log_event(session: GameSession, event_id: str, **params: object) -> None:
    """Log an event to the bounded event log and the current step's outbox."""
    event = {"event_id": event_id, "params": params}
    session.event_log.append(event)
    session.outbox.append(event)
