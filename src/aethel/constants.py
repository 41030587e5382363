"""Shared constants for the Aethel engine."""

from __future__ import annotations

# Equipment slots, in display order
EQUIPMENT_SLOTS = ["weapon", "chest", "head", "legs", "feet"]

# Stats that equipment, forms and effects may modify
MODIFIABLE_STATS = [
    "max_health",
    "attack",
    "defense",
    "strength",
    "dexterity",
    "constitution",
    "intelligence",
    "wisdom",
    "charisma",
    "luck",
]

# Baseline every character starts from before race/class bonuses
BASELINE_STATS = {
    "health": 100,
    "max_health": 100,
    "mana": 100,
    "attack": 10,
    "defense": 10,
    "strength": 10,
    "dexterity": 10,
    "constitution": 10,
    "intelligence": 10,
    "wisdom": 10,
    "charisma": 10,
    "luck": 10,
    "energy": 100,
}

STARTING_GOLD = 50
STARTING_LOCATION = "forest"
STARTING_HOUR = 8
STARTING_SPELLS = ["fireball"]

# Rarity tiers, most to least common: (name, chance, stat multiplier)
RARITY_TABLE = [
    ("Very Common", 0.25, 0.8),
    ("Common", 0.4, 1.0),
    ("Uncommon", 0.2, 1.2),
    ("Rare", 0.1, 1.5),
    ("Very Rare", 0.03, 1.8),
    ("Mythical", 0.01, 2.2),
    ("Very Mythical", 0.005, 2.6),
    ("Legendary", 0.002, 3.0),
    ("Very Legendary", 0.001, 3.5),
    ("Divine", 0.0005, 4.0),
    ("Very Divine", 0.0002, 4.5),
    ("Celestial", 0.0001, 5.0),
    ("Very Celestial", 0.00005, 5.5),
    ("Primordial", 0.00002, 6.0),
    ("Very Primordial", 0.00001, 7.0),
]
DEFAULT_RARITY = "Common"

# Ordered metals; rarity rank maps onto this list (clamped to the last entry)
METALS = [
    "iron",
    "steel",
    "mithril",
    "adamant",
    "titanium",
    "copper",
    "brass",
    "bronze",
    "pig iron",
    "dragonite",
    "celestial steel",
]

# Skill check tuning
CHECK_MIN_CHANCE = 5
CHECK_MAX_CHANCE = 95
CHECK_POINTS_PER_ABILITY = 2
ABILITY_BASELINE = 10

SKILL_ABILITIES = {
    "dexterity": "dexterity",
    "stealth": "dexterity",
    "lockpicking": "dexterity",
    "disarm": "dexterity",
    "intelligence": "intelligence",
    "wisdom": "wisdom",
    "perception": "wisdom",
    "strength": "strength",
    "mining": "strength",
    "chopping": "strength",
    "crafting": "strength",
}

RACIAL_SKILL_BONUSES = {
    "dwarf": {"mining": 10, "crafting": 10},
}

# Damage multipliers taken by race, keyed by incoming damage type
RACIAL_DAMAGE_MULTIPLIERS = {
    "undead": {"holy": 1.5, "fire": 1.5},
    "demon": {"holy": 1.5},
    "aasimar": {"holy": 0.5, "necrotic": 0.5},
    "angel": {"holy": 0.5, "necrotic": 0.5},
}

# Effects a dwarf may shrug off with a saving throw
DWARF_RESISTED_EFFECTS = ["burning", "freezing", "frozen", "shocked", "poison"]
DWARF_SAVE_CHANCE = 60

# Racial abilities
RAGE_ATTACK_MULTIPLIER = 1.5
RAGE_DEFENSE_MULTIPLIER = 0.5
LAY_ON_HANDS_FRACTION = 0.3
REGENERATION_PER_HOUR = 1

# Cooldowns reset when an encounter ends; day-stamped ones reset on a new day
PER_COMBAT_COOLDOWNS = ["battle_rage", "hellish_rebuke"]
DAILY_COOLDOWNS = ["lay_on_hands"]
DAILY_FLAGS = ["used_luck_today"]

# Progression
LEVEL_HEALTH_BONUS = 10
LEVEL_ATTACK_BONUS = 2
LEVEL_DEFENSE_BONUS = 1
XP_CURVE_BASE = 100
XP_CURVE_EXPONENT = 1.5
CLASS_CHANGE_COST = 100

# Mine floors
MINE_FLOOR_COUNT = 120
FLOORS_PER_METAL = 10

# Time
HOURS_PER_DAY = 24
NIGHT_START_HOUR = 20
NIGHT_END_HOUR = 6

# Maximum event log entries to keep (prevents unbounded growth)
MAX_EVENT_LOG = 200

COMMAND_ALIASES = {
    "examine": "look",
    "inspect": "look",
    "l": "look",
    "x": "look",
    "inv": "inventory",
    "bag": "inventory",
    "i": "inventory",
    "char": "stats",
    "character": "stats",
    "c": "stats",
    "gear": "equipment",
    "e": "equipment",
    "exit": "quit",
}

# Checked before single-word commands; their arguments may contain spaces
MULTI_WORD_COMMANDS = [
    "talk to",
    "view quests",
    "accept quest",
    "turn in",
    "change class",
]

COMBAT_ALIASES = {
    "a": "attack",
    "c": "cast",
    "u": "use",
    "f": "flee",
}

# Ore item per tier of ten mine floors; deeper floors reuse the last entry
MINE_ORES = [
    "iron_ore",
    "steel_ore",
    "mithril_ore",
    "adamantite_ore",
    "titanium_ore",
    "copper_ore",
    "brass_ore",
    "bronze_ore",
    "pig_iron_ore",
    "dragonite_ore",
    "celestial_steel_ore",
]
MINE_ENTRANCE = "old_abandoned_mine"
MINE_FLOOR_LOCATION = "mine_floor"

# Chests and other interactables
LOCKPICK_CHANCE = 50
DISARM_CHANCE = 45

# Races with a passive trait checked outside the racial tables above
REGENERATING_RACES = ["lizardman"]
DOUBLE_YIELD_RACES = ["dwarf"]
FORM_LEARNING_RACES = ["shapeshifter"]

# Default file locations used by the CLI
DEFAULT_SAVE_PATH = "aethel_save.yaml"
DEFAULT_AUTOSAVE_PATH = "aethel_autosave.yaml"
