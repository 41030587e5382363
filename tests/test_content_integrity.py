"""Tests that the shipped content is internally consistent."""

from collections import deque

from aethel.catalog import load_catalog
from aethel.constants import MINE_ENTRANCE, MINE_FLOOR_LOCATION, STARTING_LOCATION
from aethel.engine import new_game


def test_catalog_has_no_broken_references():
    """Every id referenced by items, enemies, quests, recipes and locations resolves."""
    catalog = load_catalog()
    assert catalog.validate() == []


def test_every_location_is_reachable_from_start():
    """Walking travel and lift actions from the start visits every location."""
    catalog = load_catalog()
    seen = {STARTING_LOCATION}
    queue = deque([STARTING_LOCATION])
    while queue:
        loc = catalog.locations[queue.popleft()]
        for call in loc.actions.values():
            targets = []
            if call.effect == "travel":
                targets = [call.params["to"]]
            elif call.effect == "lift":
                targets = [MINE_ENTRANCE, MINE_FLOOR_LOCATION]
            for target in targets:
                if target not in seen:
                    seen.add(target)
                    queue.append(target)

    assert seen == set(catalog.locations)


def test_every_spell_belongs_to_one_school():
    """No spell name is listed by two damage types."""
    catalog = load_catalog()
    spells = [spell for dt in catalog.damage_types.values() for spell in dt.spells]
    assert len(spells) == len(set(spells))
    assert catalog.damage_type_for_spell("fireball").id == "fire"


def test_every_race_and_class_can_start():
    """A new game can be created for every race and class combination."""
    catalog = load_catalog()
    for race in catalog.races:
        for cls in catalog.classes:
            session = new_game(catalog=catalog, seed=1, race=race, character_class=cls)
            assert session.player.stats.max_health > 0
            assert session.player.stats.health == session.player.stats.max_health


def test_recipe_stations_exist():
    """Each recipe names a station that some location provides."""
    catalog = load_catalog()
    stations = {s for loc in catalog.locations.values() for s in loc.crafting_stations}
    for recipe in catalog.recipes.values():
        assert recipe.station in stations
