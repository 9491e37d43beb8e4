"""Static lexicon for species names, facet keywords, and endpoint requirements.

Architectural role:
    Single source of truth for the lookup tables shared by the pattern matcher,
    the facet/entity extractor, and the intent router.

Determinism:
    Pure data plus precompiled regexes built at import time.
"""

import re

from dexai import config
from dexai.core.classification_types import Facet


# =========================================================
# SPECIES CATALOG
# =========================================================

SPECIES_NAMES = (
    # Generation I
    "bulbasaur", "ivysaur", "venusaur", "charmander", "charmeleon", "charizard",
    "squirtle", "wartortle", "blastoise", "caterpie", "metapod", "butterfree",
    "weedle", "kakuna", "beedrill", "pidgey", "pidgeotto", "pidgeot",
    "rattata", "raticate", "spearow", "fearow", "ekans", "arbok",
    "pichu", "pikachu", "raichu", "sandshrew", "sandslash", "nidoran",
    "nidorina", "nidoqueen", "nidorino", "nidoking", "clefairy", "clefable",
    "vulpix", "ninetales", "jigglypuff", "wigglytuff", "zubat", "golbat",
    "oddish", "gloom", "vileplume", "paras", "parasect", "venonat", "venomoth",
    "diglett", "dugtrio", "meowth", "persian", "psyduck", "golduck",
    "mankey", "primeape", "growlithe", "arcanine", "poliwag", "poliwhirl",
    "poliwrath", "abra", "kadabra", "alakazam", "machop", "machoke", "machamp",
    "bellsprout", "weepinbell", "victreebel", "tentacool", "tentacruel",
    "geodude", "graveler", "golem", "ponyta", "rapidash", "slowpoke", "slowbro",
    "magnemite", "magneton", "seel", "dewgong", "grimer", "muk",
    "shellder", "cloyster", "gastly", "haunter", "gengar", "onix",
    "drowzee", "hypno", "krabby", "kingler", "voltorb", "electrode",
    "exeggcute", "exeggutor", "cubone", "marowak", "hitmonlee", "hitmonchan",
    "lickitung", "koffing", "weezing", "rhyhorn", "rhydon", "rhyperior",
    "chansey", "blissey", "tangela", "kangaskhan", "horsea", "seadra", "kingdra",
    "goldeen", "seaking", "staryu", "starmie", "scyther", "scizor", "jynx",
    "electabuzz", "magmar", "pinsir", "tauros", "magikarp", "gyarados",
    "lapras", "ditto", "eevee", "vaporeon", "jolteon", "flareon",
    "espeon", "umbreon", "leafeon", "glaceon", "sylveon", "porygon", "porygon2",
    "omanyte", "omastar", "kabuto", "kabutops", "aerodactyl", "snorlax",
    "articuno", "zapdos", "moltres", "dratini", "dragonair", "dragonite",
    "mewtwo", "mew",
    # Generation II
    "chikorita", "meganium", "cyndaquil", "typhlosion", "totodile", "feraligatr",
    "forretress", "dunsparce", "gligar", "qwilfish", "heracross", "sneasel",
    "teddiursa", "ursaring", "slugma", "magcargo", "swinub", "piloswine",
    "corsola", "remoraid", "octillery", "delibird", "mantine", "skarmory",
    "houndour", "houndoom", "phanpy", "donphan", "stantler", "smeargle",
    "tyrogue", "hitmontop", "smoochum", "elekid", "magby", "miltank",
    "raikou", "entei", "suicune", "larvitar", "pupitar", "tyranitar",
    "lugia", "ho-oh", "celebi",
    # Later generations
    "kyogre", "groudon", "rayquaza", "latios", "latias", "deoxys", "jirachi",
    "lucario", "garchomp", "dialga", "palkia", "giratina", "arceus", "manaphy",
    "darkrai", "shaymin", "victini", "keldeo", "genesect", "diancie", "hoopa",
    "volcanion", "magearna", "marshadow", "zeraora", "meltan", "melmetal",
    "zarude", "calyrex", "glastrier", "spectrier", "enamorus", "koraidon",
    "miraidon",
)

# Longest first so shorter names cannot claim part of a longer one.
SPECIES_BY_LENGTH = tuple(sorted(set(SPECIES_NAMES), key=lambda name: (-len(name), name)))

SPECIES_PATTERN = re.compile(
    r"(?<![a-z0-9])(?:" + "|".join(re.escape(name) for name in SPECIES_BY_LENGTH) + r")(?![a-z0-9])",
    re.IGNORECASE,
)


# =========================================================
# FACET KEYWORD FAMILIES
# =========================================================

FACET_KEYWORDS = {
    Facet.STATS: ("stat", "stats", "attack", "defense", "speed", "hp", "power", "base"),
    Facet.EVOLUTION: ("evolve", "evolves", "evolution", "evolutions", "level", "grow"),
    Facet.TYPES: (
        "type", "types", "effective", "effectiveness",
        "weakness", "weaknesses", "resist", "resistance",
    ),
    Facet.ABILITIES: ("ability", "abilities", "skill", "skills", "talent"),
    Facet.BREEDING: ("breed", "breeding", "egg", "eggs", "hatch", "genetics"),
    Facet.COMPETITIVE: ("battle", "versus", "vs", "matchup", "competitive", "meta"),
    Facet.MOVES: ("move", "moves", "moveset", "learn", "learns", "tm"),
    Facet.LOCATION: ("habitat", "location", "encounter", "catch", "where"),
}

FACET_PATTERNS = {
    facet: re.compile(r"\b(?:" + "|".join(re.escape(word) for word in words) + r")\b", re.IGNORECASE)
    for facet, words in FACET_KEYWORDS.items()
}

COMPARISON_PATTERN = re.compile(
    r"\b(?:compare|compared|comparison|versus|vs|against|matchup|better|stronger)\b",
    re.IGNORECASE,
)


# =========================================================
# ENDPOINT REQUIREMENTS
# =========================================================

FACET_ENDPOINTS = {
    Facet.STATS: frozenset(),
    Facet.EVOLUTION: frozenset({"pokemon-species", "evolution-chain"}),
    Facet.TYPES: frozenset({"type"}),
    Facet.ABILITIES: frozenset({"ability"}),
    Facet.BREEDING: frozenset({"pokemon-species", "egg-group"}),
    Facet.COMPETITIVE: frozenset({"type"}),
    Facet.MOVES: frozenset({"move"}),
    Facet.LOCATION: frozenset({"pokemon-species", "encounters"}),
    Facet.GENERAL: frozenset({"pokemon-species"}),
}


def endpoints_for(facets) -> frozenset:
    """Union of the base endpoint and every facet's endpoint set."""
    endpoints = {config.BASE_ENDPOINT}
    for facet in facets:
        endpoints.update(FACET_ENDPOINTS.get(facet, frozenset()))
    return frozenset(endpoints)


# =========================================================
# TEMPLATED NAME CAPTURES (unknown species fallback)
# =========================================================

NAME_CAPTURE_PATTERNS = (
    re.compile(r"\btell\s+me\s+about\s+(?:the\s+)?([a-z]+)"),
    re.compile(r"\b(?:info|information|details|data)\s+(?:about|on|for)\s+([a-z]+)"),
    re.compile(r"\bstats\s+for\s+([a-z]+)"),
    re.compile(r"\b(?:pokemon|pokémon)\s+([a-z]+)"),
    re.compile(r"^([a-z]+)(?:\s+pokemon|\s+pokémon|\s+stats|\s+evolution|\s+info)\b"),
    re.compile(r"\b([a-z]+)(?:'s|\s+stats|\s+abilities|\s+type)\b"),
    re.compile(r"\bdoes\s+([a-z]+)\s+(?:belong|evolve)"),
    re.compile(r"\bwhen\s+does\s+([a-z]+)\s+evolve"),
)

CAPTURE_STOP_WORDS = frozenset({
    "the", "what", "how", "where", "when", "why", "who", "which", "is", "are",
    "was", "were", "can", "could", "does", "did", "do", "egg", "group", "pokemon",
    "pokémon", "info", "information", "about", "stats", "stat", "evolution",
    "tell", "me", "good", "best", "first", "last", "some", "any", "all", "type",
    "types", "this", "that", "these", "those", "your", "you", "its", "his", "her",
    "their", "our", "base", "data", "details", "and", "for", "with", "pocket",
    "monster", "monsters", "species", "creature", "abilities", "ability", "weather",
    "today", "something", "anything", "everything", "joke", "yourself", "myself",
    "one", "them", "they", "there", "here", "please", "thanks",
    # Stems of 's contractions ("let's", "she's").
    "let", "she", "everyone", "someone", "nobody", "nothing", "everybody",
    "somebody",
})
