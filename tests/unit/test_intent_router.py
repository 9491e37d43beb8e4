"""Tests for the intent router and its fallback chain."""

import pytest

from dexai import config
from dexai.core.classification_types import (
    GENERAL_LABEL,
    Facet,
    Mode,
    Route,
    ScoredIntent,
    Source,
)
from dexai.nlp.intent_router import (
    ClassifierContext,
    FloorStrategy,
    IntentRouter,
    build_classifier_context,
    classify,
    primary_focus,
)
from fakes import missing_model_loader


class StubStrategy:
    name = "stub"

    def __init__(self, result):
        self.result = result
        self.calls = 0

    def attempt(self, text):
        self.calls += 1
        return self.result


class SilentLexical:
    """Lexical tier whose model never answers."""

    def tokens_for(self, text, mode):
        return []

    def try_classify(self, tokens, mode):
        return None


class ExplodingMatcher:
    def match(self, text, relaxed=False, strict=False):
        raise RuntimeError("rule table corrupted")


# ==========================================
#  REFERENCE SCENARIOS
# ==========================================


def test_bare_species_name_fast(context):
    result = classify("Pikachu", "fast", context)

    assert result.route == Route.TOOL
    assert result.tool_name == "entity_info"
    assert result.confidence == config.PATTERN_CONFIDENCE
    assert result.entities == ("pikachu",)
    assert result.facets == {Facet.GENERAL}
    assert result.primary_focus == "general"
    assert result.source == Source.PATTERN


def test_stats_question_balanced(context):
    result = classify("What are Charizard's attack and defense stats?", "balanced", context)

    assert result.route == Route.TOOL
    assert result.entities == ("charizard",)
    assert result.facets == {Facet.STATS}
    assert result.primary_focus == "stats"
    assert result.required_endpoints == {"pokemon"}


def test_matchup_question_quality(quality_context):
    result = classify("How does Pikachu matchup versus Rhyhorn?", "quality", quality_context)

    assert result.route == Route.TOOL
    assert result.entities == ("pikachu", "rhyhorn")
    assert result.facets == {Facet.COMPETITIVE}
    assert result.is_multi_entity_comparison is True
    assert result.primary_focus == "competitive"
    assert "type" in result.required_endpoints


def test_greeting_balanced(context):
    result = classify("Hello, how are you?", "balanced", context)

    assert result.route == Route.GENERAL
    assert result.tool_name is None
    assert result.confidence >= 0.5


@pytest.mark.parametrize("text", ["", "   ", None, 42])
def test_empty_or_non_string_quality(quality_context, counting_embedder, text):
    before = counting_embedder.calls
    result = classify(text, "quality", quality_context)

    assert result.route == Route.GENERAL
    assert result.confidence == config.CONFIDENCE_FLOOR
    assert result.facets == {Facet.GENERAL}
    assert result.source == Source.FLOOR
    assert counting_embedder.calls == before


def test_unavailable_embeddings_still_route_to_tool(context):
    result = classify("Tell me about the pocket monster Ditto", "quality", context)

    assert result.route == Route.TOOL
    assert result.entities == ("ditto",)


def test_disabled_embeddings_from_builder(preprocessor):
    built = build_classifier_context(preprocessor=preprocessor, enable_embeddings=False)
    built.embedding.initialize()

    result = classify("Tell me about the pocket monster Ditto", "quality", built)
    assert result.route == Route.TOOL
    assert result.entities == ("ditto",)


def test_failed_provider_from_builder(preprocessor):
    built = build_classifier_context(preprocessor=preprocessor, embedding_loader=missing_model_loader)
    built.embedding.initialize()

    assert classify("pocket monster ditto", "quality", built).entities == ("ditto",)


# ==========================================
#  PROPERTIES
# ==========================================


@pytest.mark.parametrize("name", ["pikachu", "Snorlax", "MEWTWO", "ho-oh"])
@pytest.mark.parametrize("mode", list(Mode))
def test_catalog_name_alone_routes_to_tool(context, name, mode):
    result = classify(name, mode, context)

    assert result.route == Route.TOOL
    assert result.confidence == config.PATTERN_CONFIDENCE
    assert result.entities == (name.lower(),)


@pytest.mark.parametrize(
    "text",
    ["Pikachu", "what type is Gengar", "charizard vs blastoise competitive"],
)
def test_pattern_hit_never_invokes_embeddings(quality_context, counting_embedder, text):
    before = counting_embedder.calls
    result = classify(text, "quality", quality_context)
    assert result.route == Route.TOOL
    assert counting_embedder.calls == before


def test_quality_consults_embeddings_without_catalog_name(quality_context, counting_embedder):
    before = counting_embedder.calls
    result = classify("zzz qqq", "quality", quality_context)

    assert counting_embedder.calls == before + 1
    assert result.source == Source.EMBEDDING
    assert result.route == Route.GENERAL


def test_fast_and_balanced_never_invoke_embeddings(quality_context, counting_embedder):
    before = counting_embedder.calls
    classify("what is the weather like", "fast", quality_context)
    classify("what is the weather like", "balanced", quality_context)
    assert counting_embedder.calls == before


@pytest.mark.parametrize(
    "text, mode",
    [
        ("Pikachu", "fast"),
        ("How does Pikachu matchup versus Rhyhorn?", "balanced"),
        ("tell me a joke", "balanced"),
        ("what is the weather", "quality"),
    ],
)
def test_required_endpoints_always_include_base(context, text, mode):
    result = classify(text, mode, context)
    assert config.BASE_ENDPOINT in result.required_endpoints
    assert config.CONFIDENCE_FLOOR <= result.confidence <= config.CONFIDENCE_CEILING


def test_focus_priority_with_several_facets(context):
    result = classify("Pikachu stats vs Rhyhorn competitive battle", "balanced", context)

    assert {Facet.STATS, Facet.COMPETITIVE} <= result.facets
    assert result.primary_focus == "stats"
    assert result.is_multi_entity_comparison is True


def test_primary_focus_order():
    assert primary_focus({Facet.BREEDING, Facet.TYPES}) == "types"
    assert primary_focus({Facet.EVOLUTION, Facet.COMPETITIVE}) == "evolution"
    assert primary_focus({Facet.MOVES, Facet.LOCATION}) == "general"


@pytest.mark.parametrize("mode", list(Mode))
def test_idempotent(quality_context, mode):
    text = "When does Eevee evolve and what are its stats?"
    assert classify(text, mode, quality_context) == classify(text, mode, quality_context)


def test_unknown_mode_uses_default(context):
    assert classify("Pikachu", "turbo", context).mode == Mode(config.DEFAULT_MODE)


# ==========================================
#  MERGE AND FALLBACK BEHAVIOUR
# ==========================================


def test_embedding_facets_are_merged_and_general_dropped(quality_context):
    result = classify("What is it weak against", "quality", quality_context)

    assert result.source == Source.EMBEDDING
    assert Facet.TYPES in result.facets
    assert Facet.GENERAL not in result.facets
    assert "type" in result.required_endpoints


def test_lexical_answers_when_embeddings_unavailable(context):
    result = classify("tell me about pokemon evolution", "quality", context)
    assert result.source == Source.LEXICAL


def test_relaxed_patterns_follow_a_silent_lexical_tier(registry, matcher):
    silent = ClassifierContext(registry=registry, pattern_matcher=matcher, lexical=SilentLexical())
    result = classify("Pokèmon height?", "quality", silent)

    assert result.source == Source.PATTERN
    assert result.route == Route.TOOL


def test_floor_when_every_strategy_is_silent(registry, matcher):
    silent = ClassifierContext(registry=registry, pattern_matcher=matcher, lexical=SilentLexical())
    result = classify("zzz qqq", "quality", silent)

    assert result.source == Source.FLOOR
    assert result.route == Route.GENERAL
    assert result.confidence == config.CONFIDENCE_FLOOR


def test_chain_stops_at_first_answer(registry, matcher, lexical):
    first = StubStrategy(ScoredIntent(GENERAL_LABEL, 0.0, Source.EMBEDDING))
    second = StubStrategy(ScoredIntent("entity-query", 0.8, Source.LEXICAL))
    custom = ClassifierContext(
        registry=registry,
        pattern_matcher=matcher,
        lexical=lexical,
        quality_chain=(first, second, FloorStrategy()),
    )
    result = classify("zzz qqq", "quality", custom)

    assert first.calls == 1
    assert second.calls == 0
    assert result.confidence == config.CONFIDENCE_FLOOR


def test_internal_errors_yield_floor(registry, lexical):
    broken = ClassifierContext(registry=registry, pattern_matcher=ExplodingMatcher(), lexical=lexical)
    result = classify("Pikachu", "balanced", broken)

    assert result.route == Route.GENERAL
    assert result.source == Source.FLOOR
    assert result.mode == Mode.BALANCED


def test_router_wrapper(context):
    router = IntentRouter(context)
    assert router.classify("Pikachu", Mode.FAST).tool_name == "entity_info"
    assert router.classify("").route == Route.GENERAL


@pytest.mark.parametrize("text", ["Let's talk about something else", "she's so cool"])
def test_contractions_do_not_become_entities(context, text):
    result = classify(text, "balanced", context)
    assert result.entities == ()
