from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class ActionCall:
    """A serializable action descriptor: an effect name plus its parameters.

    Location verbs, ``on_enter`` hooks and reroll retries are all stored as
    ActionCalls so that location data and save files never hold callables.
    """

    effect: str
    params: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_raw(raw: Any) -> "ActionCall":
        """Build from YAML: either ``"effect"`` or ``{effect: ..., **params}``."""
        if isinstance(raw, str):
            return ActionCall(raw, {})
        if not isinstance(raw, dict) or not isinstance(raw.get("effect"), str):
            raise ValueError(f"action descriptor needs an 'effect': {raw!r}")
        params = {k: v for k, v in raw.items() if k != "effect"}
        return ActionCall(raw["effect"], params)

    @staticmethod
    def command(raw_input: str) -> "ActionCall":
        return ActionCall("command", {"input": raw_input})
