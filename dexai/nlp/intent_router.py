"""Classification orchestrator producing `ClassificationResult` for the engine.

Intent classification logic:
- Blank or non-string input resolves to the floor result without invoking any
  tier.
- `fast`/`balanced`: pattern matcher first; a hit short-circuits. Otherwise the
  lexical classifier's answer is accepted.
- `quality`: pattern matcher in strict mode (catalog names only); a hit
  short-circuits. Otherwise an ordered strategy list
  `embedding -> lexical -> relaxed pattern -> floor` is walked and the first
  present result wins. The floor strategy always answers.

Merge rules:
- The facet/entity extractor runs on every non-empty request.
- When the embedding tier wins, its facets are unioned with keyword facets and
  `general` is dropped if a specific facet is present.
- `route = tool` iff the winning label resolves to a registered tool or the
  extractor found a catalog name.

Interaction with core:
- `ClassifierContext` bundles the registry and the tiers. It is built once at
  startup and never mutated; there is no module-level classifier state.

Failure handling:
- `classify` never raises. Unexpected errors are logged and yield the floor
  result.
"""

import dataclasses
import logging
from dataclasses import dataclass

from dexai import config
from dexai.core.classification_types import (
    FOCUS_PRIORITY,
    GENERAL_LABEL,
    ClassificationRequest,
    ClassificationResult,
    Facet,
    Mode,
    Route,
    ScoredIntent,
    Source,
)
from dexai.nlp.catalog import endpoints_for
from dexai.nlp.embedding_scorer import EmbeddingScorer
from dexai.nlp.facet_extractor import extract
from dexai.nlp.lexical_classifier import LexicalClassifier
from dexai.nlp.pattern_matcher import PatternMatcher
from dexai.nlp.text_preprocessor import TextPreprocessor
from dexai.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


# =========================================================
# STRATEGIES (quality fallback chain)
# =========================================================

class EmbeddingStrategy:
    name = "embedding"

    def __init__(self, scorer: EmbeddingScorer | None) -> None:
        self.scorer = scorer

    def attempt(self, text: str) -> ScoredIntent | None:
        if self.scorer is None:
            return None
        analysis = self.scorer.analyze(text)
        if analysis is None:
            return None
        return dataclasses.replace(analysis.intent, facets=analysis.facets)


class LexicalStrategy:
    name = "lexical"

    def __init__(self, classifier: LexicalClassifier, mode: Mode = Mode.QUALITY) -> None:
        self.classifier = classifier
        self.mode = mode

    def attempt(self, text: str) -> ScoredIntent | None:
        tokens = self.classifier.tokens_for(text, self.mode)
        return self.classifier.try_classify(tokens, self.mode)


class RelaxedPatternStrategy:
    name = "relaxed_pattern"

    def __init__(self, matcher: PatternMatcher) -> None:
        self.matcher = matcher

    def attempt(self, text: str) -> ScoredIntent | None:
        return self.matcher.match(text, relaxed=True)


class FloorStrategy:
    name = "floor"

    def attempt(self, text: str) -> ScoredIntent:
        return ScoredIntent(GENERAL_LABEL, config.CONFIDENCE_FLOOR, Source.FLOOR)


# =========================================================
# CONTEXT
# =========================================================

@dataclass(frozen=True)
class ClassifierContext:
    """Immutable bundle of everything `classify` needs.

    Attributes:
        registry: Registered data tools, in rule-evaluation order.
        pattern_matcher: Rule tier compiled from `registry`.
        lexical: Trained lexical tier.
        embedding: Optional embedding tier; `None` disables it entirely.
        quality_chain: Ordered fallback strategies for quality mode.
    """

    registry: ToolRegistry
    pattern_matcher: PatternMatcher
    lexical: LexicalClassifier
    embedding: EmbeddingScorer | None = None
    quality_chain: tuple = ()

    def __post_init__(self) -> None:
        if not self.quality_chain:
            object.__setattr__(
                self,
                "quality_chain",
                (
                    EmbeddingStrategy(self.embedding),
                    LexicalStrategy(self.lexical),
                    RelaxedPatternStrategy(self.pattern_matcher),
                    FloorStrategy(),
                ),
            )


def default_registry() -> ToolRegistry:
    from dexai.tools.entity_tool import ENTITY_TOOL_SPEC

    return ToolRegistry([ENTITY_TOOL_SPEC])


def build_classifier_context(
    registry: ToolRegistry | None = None,
    preprocessor: TextPreprocessor | None = None,
    embedding_loader=None,
    enable_embeddings: bool = config.ENABLE_EMBEDDINGS,
) -> ClassifierContext:
    """
    Construct the tiers once.

    The embedding scorer is created in `pending` state; callers start its
    initialization (`initialize()` or `ainitialize()`) when convenient.
    """
    registry = registry if registry is not None else default_registry()
    preprocessor = preprocessor or TextPreprocessor()

    return ClassifierContext(
        registry=registry,
        pattern_matcher=PatternMatcher(registry),
        lexical=LexicalClassifier(preprocessor),
        embedding=EmbeddingScorer(loader=embedding_loader, enabled=enable_embeddings),
    )


# =========================================================
# MERGE HELPERS
# =========================================================

def _clamp_confidence(value: float) -> float:
    return min(config.CONFIDENCE_CEILING, max(config.CONFIDENCE_FLOOR, float(value)))


def primary_focus(facets) -> str:
    for facet in FOCUS_PRIORITY:
        if facet in facets:
            return facet.value
    return Facet.GENERAL.value


def floor_result(mode=Mode.BALANCED) -> ClassificationResult:
    return ClassificationResult(
        route=Route.GENERAL,
        confidence=config.CONFIDENCE_FLOOR,
        facets=frozenset({Facet.GENERAL}),
        required_endpoints=frozenset({config.BASE_ENDPOINT}),
        source=Source.FLOOR,
        mode=Mode.coerce(mode),
        detected_label=GENERAL_LABEL,
    )


def _select_intent(request: ClassificationRequest, context: ClassifierContext) -> ScoredIntent:
    if request.mode == Mode.QUALITY:
        hit = context.pattern_matcher.match(request.text, strict=True)
        if hit is not None:
            return hit

        for strategy in context.quality_chain:
            result = strategy.attempt(request.text)
            if result is not None:
                logger.debug("Quality chain resolved by %s", strategy.name)
                return result
        return FloorStrategy().attempt(request.text)

    hit = context.pattern_matcher.match(request.text)
    if hit is not None:
        return hit

    tokens = context.lexical.tokens_for(request.text, request.mode)
    return context.lexical.classify(tokens, request.mode)


def _merge(request: ClassificationRequest, winner: ScoredIntent, context: ClassifierContext) -> ClassificationResult:
    extraction = extract(request.text)

    facets = set(extraction.facets)
    if winner.source == Source.EMBEDDING and winner.facets:
        facets |= set(winner.facets)
    if len(facets) > 1:
        facets.discard(Facet.GENERAL)
    facets = frozenset(facets)

    tool = context.registry.resolve(winner.label)
    if tool is None and extraction.catalog_hit:
        tool = context.registry.default_entity_tool()

    entities = extraction.entity_names
    is_comparison = len(entities) > 1 and (
        Facet.COMPETITIVE in facets or extraction.comparison_cue
    )

    return ClassificationResult(
        route=Route.TOOL if tool is not None else Route.GENERAL,
        confidence=_clamp_confidence(winner.confidence),
        tool_name=tool.name if tool is not None else None,
        entities=entities,
        facets=facets,
        required_endpoints=endpoints_for(facets),
        primary_focus=primary_focus(facets),
        is_multi_entity_comparison=is_comparison,
        source=winner.source,
        mode=request.mode,
        detected_label=winner.label,
    )


# =========================================================
# PUBLIC API
# =========================================================

def classify(text, mode, context: ClassifierContext) -> ClassificationResult:
    """
    Classify one query into a routing decision plus extracted parameters.

    Edge cases:
    - Non-string or blank `text` -> floor result, no tier invoked.
    - Unknown `mode` -> `config.DEFAULT_MODE`.
    """
    request = ClassificationRequest(text=text, mode=mode)
    if request.is_empty:
        return floor_result(request.mode)

    try:
        winner = _select_intent(request, context)
        result = _merge(request, winner, context)
    except Exception:
        logger.exception("Classification failed; returning floor result")
        return floor_result(request.mode)

    logger.debug(
        "Classified mode=%s route=%s tool=%s source=%s confidence=%.3f focus=%s",
        result.mode.value,
        result.route.value,
        result.tool_name,
        result.source.value,
        result.confidence,
        result.primary_focus,
    )
    return result


class IntentRouter:
    """Convenience wrapper binding `classify` to one context."""

    def __init__(self, context: ClassifierContext) -> None:
        self.context = context

    def classify(self, text, mode=None) -> ClassificationResult:
        return classify(text, mode if mode is not None else config.DEFAULT_MODE, self.context)
