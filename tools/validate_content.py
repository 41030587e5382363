#!/usr/bin/env python3
"""Content validation tool for Aethel.

This tool validates that:
1. Every id referenced by the catalog resolves
2. Every location can be reached from the starting location
3. Skill checks give archetype characters a real chance (not pinned at 5% or 95%)
4. Every race and class combination can start a game

Usage:
    python tools/validate_content.py
"""

import sys
from collections import deque
from pathlib import Path
from typing import Any, Dict, List

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from aethel import engine
from aethel.catalog import GameCatalog, load_catalog
from aethel.checks import compute_chance
from aethel.constants import CHECK_MAX_CHANCE, CHECK_MIN_CHANCE, MINE_ENTRANCE, MINE_FLOOR_LOCATION, STARTING_LOCATION
from aethel.errors import GameError
from aethel.models import GameSession


def create_archetype_sessions(catalog: GameCatalog) -> Dict[str, GameSession]:
    """Create several archetype sessions representing typical characters.

    Returns:
        Dict mapping archetype name to GameSession
    """
    archetypes = {}

    # Archetype 1: Fresh start (default new game)
    archetypes["fresh_start"] = engine.new_game(catalog=catalog, seed=123)

    # Archetype 2: Dwarf miner with racial mining bonus
    archetypes["dwarf_warrior"] = engine.new_game(catalog=catalog, seed=456, race="dwarf", character_class="warrior")

    # Archetype 3: Frail scholar with low strength
    archetypes["gnome_mage"] = engine.new_game(catalog=catalog, seed=789, race="gnome", character_class="mage")

    # Archetype 4: Nimble halfling rogue
    archetypes["halfling_rogue"] = engine.new_game(catalog=catalog, seed=999, race="halfling", character_class="rogue")

    return archetypes


def check_reachability(catalog: GameCatalog) -> List[str]:
    """Walk travel and lift actions from the start and list locations never reached."""
    seen = {STARTING_LOCATION}
    queue = deque([STARTING_LOCATION])
    while queue:
        loc = catalog.locations[queue.popleft()]
        targets = []
        for call in loc.actions.values():
            if call.effect == "travel":
                targets.append(call.params.get("to"))
            elif call.effect == "lift":
                targets.extend([MINE_ENTRANCE, MINE_FLOOR_LOCATION])
        for target in targets:
            if target in catalog.locations and target not in seen:
                seen.add(target)
                queue.append(target)
    return sorted(set(catalog.locations) - seen)


def check_skill_spread(catalog: GameCatalog, archetypes: Dict[str, GameSession]) -> List[Dict[str, Any]]:
    """Find skill checks whose chance is pinned at a clamp bound for every archetype.

    Returns:
        List of {"location", "verb", "skill", "chances"} entries for degenerate checks
    """
    degenerate = []
    for loc in catalog.locations.values():
        calls = dict(loc.actions)
        if loc.on_look is not None:
            calls["look"] = loc.on_look
        for verb, call in sorted(calls.items()):
            skill = call.params.get("skill")
            if not skill:
                continue
            base = int(call.params.get("chance", 50))
            chances = {name: compute_chance(session, skill, base) for name, session in archetypes.items()}
            if all(c in (CHECK_MIN_CHANCE, CHECK_MAX_CHANCE) for c in chances.values()):
                degenerate.append({"location": loc.id, "verb": verb, "skill": skill, "chances": chances})
    return degenerate


def check_character_options(catalog: GameCatalog) -> List[str]:
    failures = []
    for race in sorted(catalog.races):
        for cls in sorted(catalog.classes):
            try:
                session = engine.new_game(catalog=catalog, seed=1, race=race, character_class=cls)
            except GameError as e:
                failures.append(f"{race}/{cls}: {e.message}")
                continue
            if session.player.stats.max_health <= 0:
                failures.append(f"{race}/{cls}: max health {session.player.stats.max_health}")
    return failures


def validate_content() -> Dict[str, Any]:
    """Run all content validation checks.

    Returns:
        Dict with validation results
    """
    catalog = load_catalog(use_cache=False)
    archetypes = create_archetype_sessions(catalog)
    return {
        "counts": {
            "items": len(catalog.items),
            "enemies": len(catalog.enemies),
            "locations": len(catalog.locations),
            "quests": len(catalog.quests),
            "recipes": len(catalog.recipes),
        },
        "problems": catalog.validate(),
        "unreachable_locations": check_reachability(catalog),
        "degenerate_checks": check_skill_spread(catalog, archetypes),
        "character_failures": check_character_options(catalog),
    }


def print_report(results: Dict[str, Any]) -> None:
    """Print validation report to console.

    Args:
        results: Validation results from validate_content()
    """
    print("=" * 70)
    print("AETHEL CONTENT VALIDATION REPORT")
    print("=" * 70)
    print()
    for name, count in results["counts"].items():
        print(f"{name.title()}: {count}")
    print()

    if results["problems"]:
        print("BROKEN REFERENCES:")
        print("-" * 70)
        for problem in results["problems"]:
            print(f"  {problem}")
        print()

    if results["unreachable_locations"]:
        print("UNREACHABLE LOCATIONS:")
        print("-" * 70)
        for loc_id in results["unreachable_locations"]:
            print(f"  {loc_id}")
        print()

    if results["degenerate_checks"]:
        print("DEGENERATE SKILL CHECKS:")
        print("-" * 70)
        for item in results["degenerate_checks"]:
            chances = ", ".join(f"{k}:{v}%" for k, v in item["chances"].items())
            print(f"  {item['location']} '{item['verb']}' ({item['skill']}): {chances}")
        print()

    if results["character_failures"]:
        print("CHARACTER OPTIONS THAT FAIL:")
        print("-" * 70)
        for failure in results["character_failures"]:
            print(f"  {failure}")
        print()

    print("=" * 70)


def main() -> int:
    """Main entry point.

    Returns:
        Exit code (0 = pass, 1 = validation failures)
    """
    print("Loading content and running validation checks...")
    print()

    results = validate_content()
    print_report(results)

    passed = not (
        results["problems"]
        or results["unreachable_locations"]
        or results["degenerate_checks"]
        or results["character_failures"]
    )
    if passed:
        print("PASS: All validation checks passed!")
        return 0
    else:
        print("FAIL: Some validation checks failed.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
