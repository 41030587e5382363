"""Recoverable game errors.

Every error carries a short ``reason`` code that ends up in the
``action.failed`` event, plus a human-readable message. None of these
propagate past the command that raised them.
"""

from __future__ import annotations


class GameError(Exception):
    reason = "game_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnknownTemplate(GameError):
    reason = "unknown_template"


class UnknownLocation(GameError):
    reason = "unknown_location"


class UnknownSpell(GameError):
    reason = "unknown_spell"


class UnknownEffect(GameError):
    reason = "unknown_effect"


class InsufficientMana(GameError):
    reason = "insufficient_mana"


class InsufficientGold(GameError):
    reason = "insufficient_gold"


class InsufficientStock(GameError):
    reason = "insufficient_stock"


class InvalidSlot(GameError):
    reason = "invalid_slot"


class ItemNotFound(GameError):
    reason = "item_not_found"


class ItemBroken(GameError):
    reason = "item_broken"


class ItemNotUsable(GameError):
    reason = "item_not_usable"


class InvalidAction(GameError):
    reason = "invalid_action"


class SaveError(GameError):
    reason = "save_error"


class SaveFileMissing(SaveError):
    reason = "save_file_missing"


class MalformedSaveFile(SaveError):
    reason = "malformed_save_file"
