"""Rule-based first tier: ordered regex rules per registered tool.

Intent classification logic:
- Rules are evaluated in registry order; within a tool, the static entity table
  (catalog-name rule first, then phrase templates) precedes tool-supplied rules.
- The first hit wins with `config.PATTERN_CONFIDENCE`.

Modes of evaluation:
- `strict`: only unambiguous rules (literal catalog names). Used as the
  quality-mode fast exit.
- `relaxed`: every rule is additionally tried against a normalized form of the
  text (accents folded, punctuation stripped, whitespace collapsed).

Determinism:
- Pure over a rule set compiled once at construction.
"""

import re
import unicodedata

from dexai import config
from dexai.core.classification_types import ScoredIntent, Source
from dexai.nlp.catalog import SPECIES_PATTERN
from dexai.tools.registry import PatternRule


# =========================================================
# STATIC ENTITY RULE TABLE
# =========================================================

_FEATURED = r"(?:pikachu|charizard|bulbasaur|squirtle|charmander|\w+mon)"

CATALOG_NAME_RULE = PatternRule(SPECIES_PATTERN, unambiguous=True, description="catalog species name")

ENTITY_PHRASE_RULES = (
    PatternRule.compile(r"\b(?:pokemon|pokémon|poke)\b", description="domain keyword"),
    PatternRule.compile(rf"\btell me about {_FEATURED}\b", description="tell me about X"),
    PatternRule.compile(rf"\bwhat (?:is|are) {_FEATURED}\b", description="what is X"),
    PatternRule.compile(rf"\b{_FEATURED}\s+(?:stats?|info|information|details|data)\b", description="X stats"),
    PatternRule.compile(rf"\bdoes\s+{_FEATURED}\s+(?:evolve|belong)\b", description="does X evolve"),
    PatternRule.compile(rf"\bwhen does\s+{_FEATURED}\s+evolve\b", description="when does X evolve"),
    PatternRule.compile(
        r"\b(?:evolution|evolve|egg group|generation|habitat)\b.*\b(?:pokemon|pokémon)\b",
        description="facet keyword with domain keyword",
    ),
    PatternRule.compile(
        r"\b(?:pokemon|pokémon)\s+(?:stats?|abilities|evolution|type|height|weight)\b",
        description="domain keyword with facet",
    ),
    PatternRule.compile(r"\bhow does\s+\w+\s+(?:matchup|versus|vs)\s+\w+", description="matchup question"),
    PatternRule.compile(r"\b\w+\s+(?:vs|versus)\s+\w+.*competitive", description="competitive comparison"),
)

STATIC_ENTITY_RULES = (CATALOG_NAME_RULE,) + ENTITY_PHRASE_RULES


# =========================================================
# NORMALIZATION
# =========================================================

def normalize_for_matching(text: str) -> str:
    """
    Fold accents, strip punctuation and collapse whitespace.

    Edge cases:
    - `None`/empty input returns an empty string.
    """
    if not text:
        return ""

    folded = unicodedata.normalize("NFKD", text)
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch))
    folded = re.sub(r"[^\w\s]", " ", folded.lower())
    return re.sub(r"\s+", " ", folded).strip()


# =========================================================
# MATCHER
# =========================================================

class PatternMatcher:
    """Compiled, ordered rule set built from a `ToolRegistry`."""

    def __init__(self, registry) -> None:
        rules = []
        for tool in registry:
            if tool.handles_entity_queries:
                rules.extend((tool.name, rule) for rule in STATIC_ENTITY_RULES)
            rules.extend((tool.name, rule) for rule in tool.pattern_rules)
        self._rules = tuple(rules)

    @property
    def rule_count(self) -> int:
        return len(self._rules)

    def match(self, text: str, relaxed: bool = False, strict: bool = False) -> ScoredIntent | None:
        """
        Return the first matching rule's tool as a scored intent.

        Edge cases:
        - Non-string or blank input never matches.
        - `strict` wins over `relaxed` when both are set.
        """
        if not isinstance(text, str) or not text.strip():
            return None

        candidates = [text]
        if relaxed and not strict:
            normalized = normalize_for_matching(text)
            if normalized and normalized != text:
                candidates.append(normalized)

        for tool_name, rule in self._rules:
            if strict and not rule.unambiguous:
                continue
            if any(rule.pattern.search(candidate) for candidate in candidates):
                return ScoredIntent(tool_name, config.PATTERN_CONFIDENCE, Source.PATTERN)

        return None
