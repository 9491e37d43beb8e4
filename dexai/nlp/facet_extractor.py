"""Facet and entity extraction shared by every classification tier.

Extraction logic:
- Species names: the static catalog is scanned longest-name-first on word
  boundaries; matches never overlap, so "char" cannot be read out of
  "charizard".
- Unknown names: only when the catalog yields nothing, templated captures
  (`tell me about X`, `X stats`, ...) run and are filtered through a stop-word
  list, keeping alphabetic tokens longer than two characters.
- Facets: independent keyword families with OR semantics; every matching family
  is reported. No match yields `{general}`.

Interaction with core:
- Called by `intent_router.classify` after the winning tier is known. The result
  does not depend on which tier fired.

Determinism:
- Fully deterministic for identical input.
"""

from dexai.core.classification_types import ExtractionResult, Facet
from dexai.nlp.catalog import (
    CAPTURE_STOP_WORDS,
    COMPARISON_PATTERN,
    FACET_PATTERNS,
    NAME_CAPTURE_PATTERNS,
    SPECIES_PATTERN,
)


def _ordered_unique(names):
    seen = set()
    ordered = []
    for name in names:
        if name not in seen:
            seen.add(name)
            ordered.append(name)
    return tuple(ordered)


def find_catalog_names(text: str) -> tuple[str, ...]:
    """Return catalog species mentioned in `text`, in first-seen order."""
    if not text:
        return ()
    return _ordered_unique(match.group(0).lower() for match in SPECIES_PATTERN.finditer(text))


def _is_acceptable_capture(candidate: str) -> bool:
    return (
        candidate.isalpha()
        and len(candidate) > 2
        and candidate not in CAPTURE_STOP_WORDS
    )


def capture_candidate_names(text: str) -> tuple[str, ...]:
    """Return names captured by the phrase templates, after stop-word filtering."""
    lowered = text.lower().strip()
    captured = []
    for pattern in NAME_CAPTURE_PATTERNS:
        for match in pattern.finditer(lowered):
            candidate = match.group(1)
            if candidate and _is_acceptable_capture(candidate):
                captured.append(candidate)
    return _ordered_unique(captured)


def detect_facets(text: str) -> frozenset:
    """Return every facet family with at least one keyword hit."""
    facets = {facet for facet, pattern in FACET_PATTERNS.items() if pattern.search(text or "")}
    if not facets:
        return frozenset({Facet.GENERAL})
    return frozenset(facets)


def extract(text: str) -> ExtractionResult:
    """
    Extract species names and requested facets from raw query text.

    Edge cases:
    - Non-string or blank input returns an empty result with `{general}`.
    - Templated captures are only consulted when no catalog name matched.
    """
    if not isinstance(text, str) or not text.strip():
        return ExtractionResult()

    names = find_catalog_names(text)
    catalog_hit = bool(names)
    if not names:
        names = capture_candidate_names(text)

    return ExtractionResult(
        entity_names=names,
        facets=detect_facets(text),
        catalog_hit=catalog_hit,
        comparison_cue=bool(COMPARISON_PATTERN.search(text)),
    )
