"""Markdown response templates for tool output and general replies.

This module only renders text from already classified and fetched inputs.
Classification, data access and caching happen outside this module.

Design constraints:
    - Deterministic construction for identical inputs.
    - Fixed section order per mode.
    - No I/O and no global state mutation.

Mode layout:
    - fast: one or two lines.
    - balanced: short conversational paragraph plus the section for the primary
      focus.
    - quality: header, detected-parameter summary, then one section per
      requested facet.
"""

import re

from dexai.core.classification_types import GREETING_LABEL, Facet, Mode

STAT_LABELS = {
    "hp": "HP",
    "attack": "Attack",
    "defense": "Defense",
    "special-attack": "Sp. Atk",
    "special-defense": "Sp. Def",
    "speed": "Speed",
}

GREETING_PATTERN = re.compile(r"\b(?:hello|hi|hey|greetings|good (?:morning|evening|afternoon))\b", re.IGNORECASE)
HELP_PATTERN = re.compile(r"\bhelp\b", re.IGNORECASE)


def titleize(value) -> str:
    return " ".join(part.capitalize() for part in str(value).replace("-", " ").split())


def _join_titles(values) -> str:
    return ", ".join(titleize(v) for v in values) if values else "Unknown"


# =========================================================
# SECTIONS
# =========================================================

def stats_table(record) -> str:
    lines = ["| Stat | Base |", "|---|---|"]
    for key, value in record.base_stats.items():
        lines.append(f"| {STAT_LABELS.get(key, titleize(key))} | {value} |")
    lines.append(f"| **Total** | **{record.total_stats}** |")
    return "\n".join(lines)


def stats_section(record) -> str:
    return f"## Base Stats\n\n{stats_table(record)}\n"


def evolution_section(record) -> str:
    if record.evolution_chain:
        body = " → ".join(titleize(stage) for stage in record.evolution_chain)
        if len(record.evolution_chain) == 1:
            body += " (does not evolve)"
    else:
        body = "Evolution data unavailable."
    return f"## Evolution\n\n{body}\n"


def types_section(record) -> str:
    lines = [f"## Types\n\n**Type:** {'/'.join(titleize(t) for t in record.types) or 'Unknown'}"]
    relations = record.type_relations or {}
    if relations:
        lines.append(f"- Weak to: {_join_titles(relations.get('weak_to'))}")
        lines.append(f"- Resists: {_join_titles(relations.get('resists'))}")
        if relations.get("immune_to"):
            lines.append(f"- Immune to: {_join_titles(relations.get('immune_to'))}")
        lines.append(f"- Strong against: {_join_titles(relations.get('strong_against'))}")
    return "\n".join(lines) + "\n"


def abilities_section(record) -> str:
    lines = ["## Abilities\n"]
    for ability in record.abilities:
        effect = (record.ability_effects or {}).get(ability)
        lines.append(f"- **{titleize(ability)}**" + (f": {effect}" if effect else ""))
    if not record.abilities:
        lines.append("- Unknown")
    return "\n".join(lines) + "\n"


def breeding_section(record) -> str:
    lines = [
        "## Breeding\n",
        f"- Egg groups: {_join_titles(record.egg_groups)}",
        f"- Capture rate: {record.capture_rate if record.capture_rate is not None else 'Unknown'}",
        f"- Base happiness: {record.base_happiness if record.base_happiness is not None else 'Unknown'}",
    ]
    return "\n".join(lines) + "\n"


def moves_section(record) -> str:
    return f"## Moves\n\n{_join_titles(record.moves)}\n"


def location_section(record) -> str:
    lines = [f"## Location\n\n- Habitat: {titleize(record.habitat)}"]
    if record.encounter_locations:
        lines.append(f"- Encounter areas: {_join_titles(record.encounter_locations)}")
    else:
        lines.append("- Encounter areas: not found in the wild")
    return "\n".join(lines) + "\n"


def overview_section(record) -> str:
    lines = [
        "## Overview\n",
        f"- Pokedex number: #{record.id}",
        f"- Type: {'/'.join(titleize(t) for t in record.types) or 'Unknown'}",
        f"- Height: {record.height}m",
        f"- Weight: {record.weight}kg",
        f"- Abilities: {_join_titles(record.abilities)}",
        f"- Generation: {titleize(record.generation)}",
    ]
    if record.flavor_text:
        lines.append(f"\n> {record.flavor_text}")
    return "\n".join(lines) + "\n"


FACET_SECTIONS = {
    Facet.STATS: stats_section,
    Facet.EVOLUTION: evolution_section,
    Facet.TYPES: types_section,
    Facet.ABILITIES: abilities_section,
    Facet.BREEDING: breeding_section,
    Facet.COMPETITIVE: types_section,
    Facet.MOVES: moves_section,
    Facet.LOCATION: location_section,
    Facet.GENERAL: overview_section,
}

SECTION_ORDER = (
    Facet.GENERAL,
    Facet.STATS,
    Facet.EVOLUTION,
    Facet.COMPETITIVE,
    Facet.TYPES,
    Facet.ABILITIES,
    Facet.BREEDING,
    Facet.MOVES,
    Facet.LOCATION,
)


def detected_parameters(classification) -> str:
    data = classification.to_dict()
    return (
        "**Detected query parameters:**\n"
        f"- Primary focus: {titleize(data['primary_focus'])}\n"
        f"- Facets: {', '.join(data['facets'])}\n"
        f"- Data endpoints: {', '.join(data['required_endpoints'])}\n"
        f"- Confidence: {round(classification.confidence * 100)}% ({data['source']})\n"
    )


# =========================================================
# ENTITY RESPONSES
# =========================================================

def _fast_entity(record, classification) -> str:
    types = "/".join(titleize(t) for t in record.types)
    stats = record.base_stats
    focus = classification.primary_focus

    if focus == Facet.STATS.value:
        parts = ", ".join(f"{STAT_LABELS.get(k, titleize(k))} {v}" for k, v in stats.items())
        return f"{record.display_name} Stats: {parts}. Total: {record.total_stats}"
    if focus == Facet.EVOLUTION.value and record.evolution_chain:
        return f"{record.display_name} Evolution: {' → '.join(titleize(s) for s in record.evolution_chain)}"

    return (
        f"{record.display_name} (#{record.id}) - {types} type\n"
        f"Stats: HP {stats.get('hp', '?')}, Atk {stats.get('attack', '?')}, "
        f"Def {stats.get('defense', '?')}, Total: {record.total_stats}\n"
        f"Abilities: {_join_titles(record.abilities)}"
    )


def _balanced_entity(record, classification) -> str:
    types = " and ".join(titleize(t) for t in record.types) or "Unknown"
    focus = Facet(classification.primary_focus)

    if focus in (Facet.STATS, Facet.COMPETITIVE):
        opening = f"Great question about {record.display_name}! This {types} type Pokemon is interesting from a strategic perspective."
    elif focus == Facet.EVOLUTION:
        opening = f"{record.display_name} has some fascinating evolutionary characteristics!"
    else:
        opening = f"{record.display_name} is a {types} type Pokemon standing {record.height}m tall and weighing {record.weight}kg."

    section = FACET_SECTIONS[focus](record)
    return (
        f"{opening}\n\n{section}\n"
        f"Would you like to know more about {record.display_name}, like its moves, breeding or type matchups?"
    )


def _quality_entity(record, classification) -> str:
    parts = [f"# {record.display_name} Analysis\n", detected_parameters(classification)]

    requested = set(classification.facets)
    rendered = set()
    for facet in SECTION_ORDER:
        if facet not in requested:
            continue
        renderer = FACET_SECTIONS[facet]
        if renderer in rendered:
            continue
        rendered.add(renderer)
        parts.append(renderer(record))

    if Facet.GENERAL not in requested:
        parts.append(overview_section(record))
    return "\n".join(parts)


def build_entity_response(record, classification, mode) -> str:
    mode = Mode.coerce(mode)
    if mode == Mode.FAST:
        return _fast_entity(record, classification)
    if mode == Mode.QUALITY:
        return _quality_entity(record, classification)
    return _balanced_entity(record, classification)


def build_matchup_response(records, classification, mode) -> str:
    """Side-by-side comparison of two or more species."""
    mode = Mode.coerce(mode)
    names = " vs ".join(r.display_name for r in records)

    if mode == Mode.FAST:
        totals = ", ".join(f"{r.display_name} {r.total_stats}" for r in records)
        return f"{names}: base stat totals {totals}."

    stat_keys = list(STAT_LABELS)
    header = "| Stat | " + " | ".join(r.display_name for r in records) + " |"
    divider = "|---|" + "---|" * len(records)
    rows = [header, divider]
    rows.append("| Type | " + " | ".join("/".join(titleize(t) for t in r.types) for r in records) + " |")
    for key in stat_keys:
        rows.append(f"| {STAT_LABELS[key]} | " + " | ".join(str(r.base_stats.get(key, "?")) for r in records) + " |")
    rows.append("| **Total** | " + " | ".join(f"**{r.total_stats}**" for r in records) + " |")

    parts = [f"# {names}\n"]
    if mode == Mode.QUALITY:
        parts.append(detected_parameters(classification))
    parts.append("\n".join(rows) + "\n")

    advantages = []
    for attacker in records:
        strong = set((attacker.type_relations or {}).get("strong_against", []))
        for defender in records:
            if defender is attacker:
                continue
            hits = sorted(strong & set(defender.types))
            if hits:
                advantages.append(
                    f"- {attacker.display_name} has a type advantage over {defender.display_name} ({_join_titles(hits)})"
                )
    if advantages:
        parts.append("## Type Advantages\n\n" + "\n".join(advantages) + "\n")

    leader = max(records, key=lambda r: r.total_stats)
    parts.append(f"{leader.display_name} has the highest base stat total ({leader.total_stats}).")
    return "\n".join(parts)


# =========================================================
# NO MATCH / ERRORS
# =========================================================

def build_no_match_response(query: str, mode) -> str:
    mode = Mode.coerce(mode)
    if mode == Mode.FAST:
        return "Please specify a Pokemon name (e.g. 'Pikachu', 'Charizard')."
    if mode == Mode.QUALITY:
        return (
            f'I analyzed your query "{query}" but could not identify a specific Pokemon name.\n\n'
            "Please name a species, for example:\n"
            "- Classic favorites: Pikachu, Charizard, Blastoise\n"
            "- Legendary Pokemon: Mewtwo, Articuno, Lugia\n\n"
            "I can then cover base stats, type matchups, breeding data and evolution."
        )
    return (
        "I couldn't identify a specific Pokemon name in your query. Which Pokemon would you like "
        "to know about? For example 'Pikachu' or 'Charizard'."
    )


def build_error_response(subject: str, error: str, mode) -> str:
    mode = Mode.coerce(mode)
    subject = subject or "unknown"
    if mode == Mode.FAST:
        return f"Couldn't find '{subject}': {error}"
    if mode == Mode.QUALITY:
        return (
            f"# Lookup Failed: {titleize(subject)}\n\n"
            f"The data request did not succeed: {error}.\n\n"
            "Check the spelling of the species name or try again in a moment."
        )
    return f"Sorry, I couldn't get information about '{subject}': {error}. Please check the name and try again."


def build_tool_response(output, classification, mode) -> str:
    """Dispatch on `ToolOutput.kind`."""
    if output.kind == "entity_data":
        return build_entity_response(output.records[0], classification, mode)
    if output.kind == "competitive_matchup":
        return build_matchup_response(output.records, classification, mode)
    if output.kind == "error":
        return build_error_response(output.subject, output.error, mode)
    return build_no_match_response(output.query, mode)


# =========================================================
# GENERAL ROUTE
# =========================================================

def is_greeting(task: str, classification=None) -> bool:
    if classification is not None and classification.detected_label == GREETING_LABEL:
        return True
    return bool(GREETING_PATTERN.search(task or ""))


def build_general_response(task: str, mode, classification=None) -> str:
    mode = Mode.coerce(mode)
    greeting = is_greeting(task, classification)
    wants_help = bool(HELP_PATTERN.search(task or ""))

    if mode == Mode.FAST:
        if greeting:
            return "Hello! I'm ready to help with Pokemon questions."
        if wants_help:
            return "I can look up Pokemon stats, types, abilities, evolutions and matchups. What would you like to know?"
        return f'Got it! I\'m best with Pokemon questions. Try asking about a specific Pokemon instead of "{task}".'

    if greeting:
        return (
            "Hello there! It's great to meet you. I'm particularly knowledgeable about Pokemon: "
            "stats, abilities, evolution paths and battle matchups. What can I look up for you?"
        )
    if wants_help:
        return (
            "I'd be happy to help! Ask me about any Pokemon's base stats, types, abilities, "
            "evolution chain, breeding data, moves or where to catch it, or compare two Pokemon."
        )

    reply = f'Thanks for asking about "{task}". My expertise is Pokemon data, so I may not have a good answer here.'
    if mode == Mode.QUALITY and classification is not None:
        reply += f" (classified as general with {round(classification.confidence * 100)}% confidence)"
    return reply + " Is there a particular Pokemon you'd like to explore?"
