from __future__ import annotations

import logging
import random
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .catalog import GameCatalog
from .constants import EQUIPMENT_SLOTS
from .errors import MalformedSaveFile, SaveError, SaveFileMissing
from .models import (
    ActiveEffect,
    GameSession,
    ItemInstance,
    LocationState,
    NpcState,
    Player,
    QuestEntry,
    ShopStock,
    Stats,
    TransformState,
    World,
)
from .world import init_world_state

logger = logging.getLogger(__name__)


def session_to_dict(session: GameSession) -> Dict[str, Any]:
    """Serializable snapshot of the mutable game state.

    The catalog, the event log and any active encounter are left out; the
    last skill check is transient and is not persisted either. The RNG is
    stored as its generator state so a reload continues the same sequence.
    """
    player = asdict(session.player)
    player["last_check"] = None
    version, internal, gauss = session.world.rng.getstate()
    return {
        "schema_version": session.schema_version,
        "status": session.status,
        "world": {
            "day": session.world.day,
            "hour": session.world.hour,
            "location": session.world.location,
            "rng_seed": session.world.rng_seed,
            "rng_state": [version, list(internal), gauss],
        },
        "player": player,
        "locations": {loc_id: asdict(state) for loc_id, state in session.locations.items()},
        "npcs": {npc_id: asdict(state) for npc_id, state in session.npcs.items()},
    }


def save_state(session: GameSession, path: Path | str) -> None:
    """Save game state to a YAML file.

    Raises:
        SaveError: If the file cannot be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            yaml.safe_dump(session_to_dict(session), default_flow_style=False, sort_keys=True),
            encoding="utf-8",
        )
    except OSError as e:
        raise SaveError(f"Could not write save file {path}: {e}") from e


def _load_item(raw: Optional[dict]) -> Optional[ItemInstance]:
    if raw is None:
        return None
    data = dict(raw)
    data["stats"] = dict(data.get("stats") or {})
    return ItemInstance(**data)


def _load_player(p: dict) -> Player:
    equipment_raw = p.get("equipment") or {}
    equipment = {slot: _load_item(equipment_raw.get(slot)) for slot in EQUIPMENT_SLOTS}
    inventory = [_load_item(it) for it in p.get("inventory") or []]

    t = p.get("transform") or {}
    saved = t.get("saved_base_stats")
    transform = TransformState(
        is_transformed=bool(t.get("is_transformed", False)),
        form_id=t.get("form_id"),
        saved_base_stats=Stats(**saved) if saved else None,
    )
    if transform.is_transformed and transform.saved_base_stats is None:
        raise ValueError("transformed player has no saved base stats")

    player = Player(
        name=p["name"],
        race=p["race"],
        character_class=p["character_class"],
        gender=p.get("gender", ""),
        age=p.get("age", ""),
        height=p.get("height", ""),
        weight=p.get("weight", ""),
        stats=Stats(**p["stats"]),
        equipment=equipment,
        inventory=inventory,
        spells=list(p.get("spells") or []),
        known_forms=list(p.get("known_forms") or []),
        active_effects=[ActiveEffect(**e) for e in p.get("active_effects") or []],
        cooldowns=dict(p.get("cooldowns") or {}),
        flags=dict(p.get("flags") or {}),
        transform=transform,
        quest_log={k: QuestEntry(**v) for k, v in (p.get("quest_log") or {}).items()},
        mine_floor=int(p.get("mine_floor", 0)),
        next_item_uid=int(p.get("next_item_uid", 0)),
    )

    # Never hand out a uid that an existing instance already holds
    uids = [it.uid for it in player.inventory] + [it.uid for it in player.equipped_items()]
    if uids:
        player.next_item_uid = max(player.next_item_uid, max(uids) + 1)
    return player


def _load_location_state(raw: dict) -> LocationState:
    return LocationState(
        shop_stock={k: ShopStock(**v) for k, v in (raw.get("shop_stock") or {}).items()},
        last_restock_day=int(raw.get("last_restock_day", 1)),
        visited=bool(raw.get("visited", False)),
        interactables={k: dict(v) for k, v in (raw.get("interactables") or {}).items()},
    )


def _mapping(raw: Any, what: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise ValueError(f"'{what}' should be a mapping, got {type(raw).__name__}")
    return raw


def _restore_rng(w: Dict[str, Any], seed: int) -> random.Random:
    rng = random.Random(seed)
    state = w.get("rng_state")
    if state is not None:
        version, internal, gauss = state
        rng.setstate((int(version), tuple(int(x) for x in internal), gauss))
    return rng


def session_from_dict(raw: Dict[str, Any], catalog: Optional[GameCatalog] = None) -> GameSession:
    """Rebuild a session from a snapshot.

    The RNG resumes from the stored generator state; snapshots without one
    are re-seeded from ``rng_seed``.
    """
    s = GameSession(schema_version=raw["schema_version"], catalog=catalog)
    s.status = raw.get("status", "playing")

    w = _mapping(raw["world"], "world")
    s.world = World(day=int(w["day"]), hour=int(w["hour"]), location=w["location"], rng_seed=int(w["rng_seed"]))
    s.world.rng = _restore_rng(w, s.world.rng_seed)
    if catalog is not None and s.world.location not in catalog.locations:
        raise ValueError(f"unknown location '{s.world.location}'")

    s.player = _load_player(_mapping(raw["player"], "player"))
    locations = _mapping(raw.get("locations") or {}, "locations")
    s.locations = {k: _load_location_state(_mapping(v, f"locations.{k}")) for k, v in locations.items()}
    npcs = _mapping(raw.get("npcs") or {}, "npcs")
    s.npcs = {k: NpcState(**_mapping(v, f"npcs.{k}")) for k, v in npcs.items()}
    return s


def load_state(path: Path | str, catalog: Optional[GameCatalog] = None) -> GameSession:
    """Load a session from a YAML save file.

    Raises:
        SaveFileMissing: If there is no file at ``path``
        MalformedSaveFile: If the file is not a valid save
    """
    path = Path(path)
    if not path.exists():
        raise SaveFileMissing(f"No save file found at {path}.")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise MalformedSaveFile(f"Could not read save file {path}: {e}") from e
    if not isinstance(raw, dict):
        raise MalformedSaveFile(f"Save file {path} does not contain a saved game.")

    try:
        return session_from_dict(raw, catalog)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise MalformedSaveFile(f"Save file {path} is malformed: {e}") from e


def restore_session(session: GameSession, loaded: GameSession) -> None:
    """Replace the live session's state with a loaded one.

    The player and clock are replaced wholesale. Location and NPC state is
    merged for ids the catalog still knows; anything missing is recreated.
    """
    catalog = session.catalog
    session.schema_version = loaded.schema_version
    session.world = loaded.world
    session.player = loaded.player
    session.encounter = None
    session.status = "playing"

    for loc_id, state in loaded.locations.items():
        if loc_id in catalog.locations:
            session.locations[loc_id] = state
        else:
            logger.warning(f"Ignoring saved state for unknown location '{loc_id}'")
    for npc_id, state in loaded.npcs.items():
        if npc_id in catalog.npcs:
            session.npcs[npc_id] = state
        else:
            logger.warning(f"Ignoring saved state for unknown NPC '{npc_id}'")
    init_world_state(session)
