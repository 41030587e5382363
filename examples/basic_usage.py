#!/usr/bin/env python3
"""Basic engine usage example.

Drives a short scripted game through the same entry points the CLI uses and
prints the narration for each step.
"""

from aethel.engine import apply_action, new_game
from aethel.messages import render_events
from aethel.view import build_view_model


def main():
    print("=" * 60)
    print("Aethel - Basic Usage Example")
    print("=" * 60)

    # Create a new game
    print("\n1. Creating new game...")
    session = new_game(seed=7, name="Rowan", race="dwarf", character_class="warrior")
    for line in render_events(session.outbox):
        print(f"  {line}")

    # Inspect the view model
    print("\n2. Where are we?")
    vm = build_view_model(session)
    print(f"  Day {vm['time']['day']}, {vm['time']['hour']:02d}:00")
    print(f"  Location: {vm['location']['name']}")
    print(f"  Actions here: {', '.join(vm['location']['actions'])}")

    # Play a few commands
    print("\n3. Playing...")
    for command in ["talk to gideon", "chop", "east", "explore", "shop", "buy torch"]:
        result = apply_action(session, command)
        print(f"\n> {command}")
        for line in render_events(result.events):
            print(f"  {line}")

    # Show the updated character
    print("\n4. Character:")
    vm = build_view_model(session)
    p = vm["player"]
    print(f"  {p['name']} the {p['race']} {p['class']}, level {p['level']}")
    print(f"  Health {p['health']}/{p['max_health']}, gold {p['gold']}")
    print(f"  Inventory: {', '.join(it['name'] for it in vm['inventory']) or 'empty'}")

    # Fight something
    print("\n5. Into the dungeon...")
    for command in ["back", "back", "back", "south", "enter"]:
        apply_action(session, command)
    while session.in_combat:
        result = apply_action(session, "attack")
        for line in render_events(result.events):
            print(f"  {line}")

    print(f"\nFinal status: {session.status}")


if __name__ == "__main__":
    main()
