#!/usr/bin/env python3
"""JSON export example.

This example demonstrates how to export game state and the event history as
JSON, useful for external visualization tools.
"""

import json

from aethel.engine import apply_action, new_game, to_debug_dict
from aethel.view import build_view_model


def main():
    print("=" * 60)
    print("Aethel - JSON Export Example")
    print("=" * 60)

    # Play a little to generate interesting state
    print("\n1. Setting up game state...")
    session = new_game(seed=3)
    for command in ["chop", "east", "explore", "shop", "buy health potion", "back", "blacksmith"]:
        apply_action(session, command)
    print("Commands applied")

    # Export the save-format snapshot
    print("\n2. Exporting state as JSON...")
    state_json = json.dumps(to_debug_dict(session), indent=2, sort_keys=True)
    with open("game_state.json", "w") as f:
        f.write(state_json)
    print("State exported to game_state.json")

    print("\n3. Sample of exported JSON (first 30 lines):")
    print("-" * 60)
    lines = state_json.split("\n")
    for line in lines[:30]:
        print(line)
    if len(lines) > 30:
        print(f"... ({len(lines) - 30} more lines)")
    print("-" * 60)

    # Export the view model shown by the CLI
    print("\n4. Exporting view model...")
    with open("view_model.json", "w") as f:
        json.dump(build_view_model(session), f, indent=2)
    print("View model exported to view_model.json")

    # Export the event history
    print("\n5. Exporting event log...")
    with open("event_log.json", "w") as f:
        json.dump(list(session.event_log), f, indent=2)
    print(f"{len(session.event_log)} events exported to event_log.json")


if __name__ == "__main__":
    main()
