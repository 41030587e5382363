"""Tests for hidden, locked and trapped chests."""

from aethel.engine import apply_action, new_game
from aethel.items import give_item


class ScriptedRng:
    """Returns queued values from random()."""

    def __init__(self, *values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


def _ids(result):
    return [e["event_id"] for e in result.events]


def _in_mine(*rolls):
    session = new_game(seed=1)
    session.world.location = "old_abandoned_mine"
    session.world.rng = ScriptedRng(*rolls)
    return session


def _chest(session):
    return session.locations["old_abandoned_mine"].interactables["chest"]


def test_chest_starts_hidden():
    """The chest can't be opened or seen until it is noticed."""
    session = _in_mine()
    result = apply_action(session, "open chest")
    assert result.events[-1]["params"]["message"] == "You don't see a 'chest' here."


def test_looking_around_can_reveal_the_chest():
    """A successful perception check uncovers the chest and changes the description."""
    session = _in_mine(0.99, 0.0)

    result = apply_action(session, "look")
    assert "interactable.unnoticed" in _ids(result)
    assert _chest(session)["hidden"] is True

    result = apply_action(session, "look")
    assert "interactable.revealed" in _ids(result)
    assert _chest(session)["hidden"] is False

    from aethel.world import describe

    assert "dusty old chest" in describe(session)


def test_locked_chest_needs_a_lockpick():
    session = _in_mine()
    _chest(session)["hidden"] = False
    result = apply_action(session, "open chest")
    assert result.events[-1]["params"]["message"] == "The chest is locked. You'll need a lockpick."


def test_failed_lockpick_breaks_the_pick():
    session = _in_mine(0.99)
    _chest(session)["hidden"] = False
    give_item(session, "lockpick")

    result = apply_action(session, "open chest")

    assert "interactable.lockpick_broke" in _ids(result)
    assert not session.player.has_item("lockpick")
    assert _chest(session)["locked"] is True


def test_opening_springs_the_trap_and_takes_contents():
    """Picking the lock of a trapped chest hurts, then yields gold and a potion."""
    session = _in_mine(0.0)
    _chest(session)["hidden"] = False
    give_item(session, "lockpick")
    health = session.player.stats.health

    result = apply_action(session, "open chest")

    ids = _ids(result)
    assert ids.index("interactable.unlocked") < ids.index("interactable.trap_fired") < ids.index("interactable.opened")
    assert session.player.stats.health == health - 10
    assert session.player.stats.gold == 100
    assert session.player.has_item("health_potion")
    assert session.player.has_item("lockpick")

    result = apply_action(session, "open chest")
    assert result.events[-1]["params"]["message"] == "The chest is already open and empty."


def test_disarmed_chest_does_no_damage():
    session = _in_mine(0.0, 0.0)
    _chest(session)["hidden"] = False
    give_item(session, "lockpick")
    health = session.player.stats.health

    result = apply_action(session, "disarm chest")
    assert "interactable.disarmed" in _ids(result)

    result = apply_action(session, "open chest")
    assert "interactable.trap_fired" not in _ids(result)
    assert session.player.stats.health == health

    result = apply_action(session, "disarm chest")
    assert result.events[-1]["event_id"] == "action.failed"


def test_trap_leaves_the_player_standing():
    """A trap bigger than the remaining health leaves 1 HP and the chest is still looted."""
    session = _in_mine(0.0)
    _chest(session)["hidden"] = False
    give_item(session, "lockpick")
    session.player.stats.health = 5

    result = apply_action(session, "open chest")

    assert "player.defeated" not in _ids(result)
    assert "interactable.opened" in _ids(result)
    assert session.status == "playing"
    assert session.player.stats.health == 1
    assert session.player.stats.gold == 100
    assert result.show_location is True


def test_halfling_can_reroll_a_failed_lockpick():
    """The retry for a lock is the open command itself."""
    session = new_game(seed=1, race="halfling")
    session.world.location = "old_abandoned_mine"
    session.world.rng = ScriptedRng(0.99, 0.0)
    _chest(session)["hidden"] = False
    give_item(session, "lockpick", quantity=2)

    apply_action(session, "open chest")
    result = apply_action(session, "reroll")

    assert "interactable.opened" in _ids(result)
    assert _chest(session)["opened"] is True


def test_reroll_is_not_spent_when_the_only_pick_broke():
    """With no lockpick left the retry can't run, so the day's luck stays unused."""
    session = new_game(seed=1, race="halfling")
    session.world.location = "old_abandoned_mine"
    session.world.rng = ScriptedRng(0.99, 0.99, 0.0)
    _chest(session)["hidden"] = False
    give_item(session, "lockpick")

    apply_action(session, "open chest")
    assert not session.player.has_item("lockpick")

    result = apply_action(session, "reroll")
    assert result.events[-1]["params"]["message"] == "The chest is locked. You'll need a lockpick."
    assert not session.player.flags.get("used_luck_today")
    assert _chest(session)["locked"] is True

    give_item(session, "lockpick", quantity=2)
    apply_action(session, "open chest")
    result = apply_action(session, "reroll")

    assert "interactable.opened" in _ids(result)
    assert session.player.flags["used_luck_today"] is True
