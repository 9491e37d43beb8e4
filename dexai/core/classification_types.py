"""Classification data contracts shared by the NLP tiers and the engine.

Architectural role:
    Defines the request, per-tier score, extraction, and final classification
    schemas. `ClassificationResult` is the only structure the intent router
    exposes; the engine and the data tool consume it read-only.

Control-flow interaction:
    - Tiers in `dexai.nlp` emit `ScoredIntent`.
    - `facet_extractor.extract` emits `ExtractionResult`.
    - `intent_router.classify` merges both into `ClassificationResult`.

Determinism:
    All classes are frozen value objects. Determinism depends on the modules that
    populate them.
"""

from dataclasses import dataclass, field
from enum import Enum

from dexai import config


class Mode(str, Enum):
    """Caller-selected performance mode."""

    FAST = "fast"
    BALANCED = "balanced"
    QUALITY = "quality"

    @classmethod
    def coerce(cls, value) -> "Mode":
        """Map arbitrary input onto a valid mode.

        Edge cases:
        - `Mode` instances pass through.
        - Unknown or non-string values fall back to `config.DEFAULT_MODE`.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for mode in cls:
                if mode.value == normalized:
                    return mode
        return cls(config.DEFAULT_MODE)


class Route(str, Enum):
    TOOL = "tool"
    GENERAL = "general"


class Source(str, Enum):
    PATTERN = "pattern"
    LEXICAL = "lexical"
    EMBEDDING = "embedding"
    FLOOR = "floor"


class Facet(str, Enum):
    STATS = "stats"
    EVOLUTION = "evolution"
    TYPES = "types"
    ABILITIES = "abilities"
    BREEDING = "breeding"
    COMPETITIVE = "competitive"
    MOVES = "moves"
    LOCATION = "location"
    GENERAL = "general"


# Tie-break order for `primary_focus`; first detected facet wins.
FOCUS_PRIORITY = (
    Facet.STATS,
    Facet.EVOLUTION,
    Facet.COMPETITIVE,
    Facet.TYPES,
    Facet.ABILITIES,
    Facet.BREEDING,
)


# Intent labels used by the lexical and embedding tiers.
ENTITY_QUERY_LABEL = "entity-query"
GENERAL_LABEL = "general"
GREETING_LABEL = "greeting"


@dataclass(frozen=True)
class ClassificationRequest:
    """Immutable input for one classification call.

    Non-string `text` is coerced to an empty string and `mode` to a valid
    `Mode`, so construction never fails.
    """

    text: str = ""
    mode: Mode = Mode.BALANCED

    def __post_init__(self) -> None:
        text = self.text if isinstance(self.text, str) else ""
        object.__setattr__(self, "text", text)
        object.__setattr__(self, "mode", Mode.coerce(self.mode))

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class ScoredIntent:
    """One tier's vote: label, confidence in [0, 1], and producing tier.

    `facets` carries facets the tier itself detected (embedding tier only).
    """

    label: str
    confidence: float
    source: Source
    facets: frozenset = frozenset()

    def __post_init__(self) -> None:
        bounded = min(1.0, max(0.0, float(self.confidence)))
        object.__setattr__(self, "confidence", bounded)


@dataclass(frozen=True)
class ExtractionResult:
    """Entities and facets found in the query, independent of the winning tier.

    Attributes:
        entity_names: Lowercase names in first-seen order, de-duplicated.
        facets: Requested information facets; `{general}` when none matched.
        catalog_hit: Whether at least one name came from the static catalog.
        comparison_cue: Whether a comparison keyword (vs, compare, ...) occurred.
    """

    entity_names: tuple[str, ...] = ()
    facets: frozenset = frozenset({Facet.GENERAL})
    catalog_hit: bool = False
    comparison_cue: bool = False


@dataclass(frozen=True)
class ClassificationResult:
    """Final routing artifact returned by `intent_router.classify`.

    Invariants:
        - `tool_name` is set iff `route == Route.TOOL`.
        - `confidence` lies in `[CONFIDENCE_FLOOR, CONFIDENCE_CEILING]`.
        - `facets` is never empty.
        - `required_endpoints` always contains `config.BASE_ENDPOINT`.
    """

    route: Route
    confidence: float
    tool_name: str | None = None
    entities: tuple[str, ...] = ()
    facets: frozenset = frozenset({Facet.GENERAL})
    required_endpoints: frozenset = frozenset({config.BASE_ENDPOINT})
    primary_focus: str = Facet.GENERAL.value
    is_multi_entity_comparison: bool = False
    source: Source = Source.FLOOR
    mode: Mode = Mode.BALANCED
    detected_label: str = GENERAL_LABEL

    def __post_init__(self) -> None:
        if (self.route == Route.TOOL) != (self.tool_name is not None):
            raise ValueError("tool_name must be set exactly when route is 'tool'")
        if not self.facets:
            object.__setattr__(self, "facets", frozenset({Facet.GENERAL}))
        if config.BASE_ENDPOINT not in self.required_endpoints:
            object.__setattr__(
                self,
                "required_endpoints",
                frozenset(self.required_endpoints) | {config.BASE_ENDPOINT},
            )

    @property
    def is_tool_route(self) -> bool:
        return self.route == Route.TOOL

    def to_dict(self) -> dict:
        """Serialize to JSON-friendly primitives with stable ordering."""
        return {
            "route": self.route.value,
            "tool_name": self.tool_name,
            "confidence": round(self.confidence, 4),
            "entities": list(self.entities),
            "facets": sorted(f.value for f in self.facets),
            "required_endpoints": sorted(self.required_endpoints),
            "primary_focus": self.primary_focus,
            "is_multi_entity_comparison": self.is_multi_entity_comparison,
            "source": self.source.value,
            "mode": self.mode.value,
            "detected_label": self.detected_label,
        }


@dataclass(frozen=True)
class EmbeddingAnalysis:
    """Embedding-tier output: intent vote plus every facet above threshold."""

    intent: ScoredIntent
    facets: frozenset = field(default_factory=frozenset)
    similarities: dict = field(default_factory=dict, compare=False)
