"""Tests for classification data contracts and the tool registry."""

import pytest

from dexai import config
from dexai.core.classification_types import (
    ClassificationRequest,
    ClassificationResult,
    Facet,
    Mode,
    Route,
    ScoredIntent,
    Source,
)
from dexai.nlp.catalog import endpoints_for
from dexai.tools.registry import PatternRule, ToolRegistry, ToolSpec


class TestMode:
    def test_coerce_accepts_case_and_whitespace(self):
        assert Mode.coerce("  Quality ") == Mode.QUALITY

    def test_coerce_passes_enum_through(self):
        assert Mode.coerce(Mode.FAST) is Mode.FAST

    @pytest.mark.parametrize("value", ["turbo", None, 3, ""])
    def test_coerce_unknown_falls_back_to_default(self, value):
        assert Mode.coerce(value) == Mode(config.DEFAULT_MODE)


class TestRequestAndScores:
    def test_request_coerces_non_string_text(self):
        request = ClassificationRequest(text=42, mode="fast")
        assert request.text == ""
        assert request.is_empty
        assert request.mode == Mode.FAST

    def test_scored_intent_confidence_is_bounded(self):
        assert ScoredIntent("general", 1.7, Source.LEXICAL).confidence == 1.0
        assert ScoredIntent("general", -0.2, Source.EMBEDDING).confidence == 0.0


class TestClassificationResult:
    def test_tool_route_requires_tool_name(self):
        with pytest.raises(ValueError):
            ClassificationResult(route=Route.TOOL, confidence=0.9)

    def test_general_route_rejects_tool_name(self):
        with pytest.raises(ValueError):
            ClassificationResult(route=Route.GENERAL, confidence=0.5, tool_name="entity_info")

    def test_base_endpoint_and_facets_are_always_present(self):
        result = ClassificationResult(
            route=Route.GENERAL,
            confidence=0.5,
            facets=frozenset(),
            required_endpoints=frozenset({"type"}),
        )
        assert result.facets == {Facet.GENERAL}
        assert result.required_endpoints == {"type", config.BASE_ENDPOINT}

    def test_to_dict_is_sorted_and_primitive(self):
        result = ClassificationResult(
            route=Route.TOOL,
            confidence=0.91234,
            tool_name="entity_info",
            entities=("pikachu",),
            facets=frozenset({Facet.TYPES, Facet.STATS}),
            required_endpoints=endpoints_for({Facet.TYPES, Facet.STATS}),
            primary_focus="stats",
            source=Source.PATTERN,
            mode=Mode.FAST,
            detected_label="entity_info",
        )
        data = result.to_dict()
        assert data["route"] == "tool"
        assert data["confidence"] == 0.9123
        assert data["facets"] == ["stats", "types"]
        assert data["required_endpoints"] == ["pokemon", "type"]
        assert data["entities"] == ["pikachu"]
        assert data["source"] == "pattern"
        assert data["mode"] == "fast"


class TestEndpoints:
    def test_stats_needs_only_the_base_resource(self):
        assert endpoints_for({Facet.STATS}) == {"pokemon"}

    def test_endpoint_sets_are_unioned(self):
        assert endpoints_for({Facet.EVOLUTION, Facet.TYPES}) == {
            "pokemon",
            "pokemon-species",
            "evolution-chain",
            "type",
        }


class TestToolRegistry:
    @pytest.fixture
    def tools(self):
        berries = ToolSpec("berry_info", pattern_rules=(PatternRule.compile(r"\bberr(?:y|ies)\b"),))
        entities = ToolSpec("entity_info", handles_entity_queries=True)
        return ToolRegistry([berries, entities])

    def test_duplicate_names_are_rejected(self):
        with pytest.raises(ValueError):
            ToolRegistry([ToolSpec("a"), ToolSpec("a")])

    def test_order_and_membership(self, tools):
        assert tools.names == ["berry_info", "entity_info"]
        assert len(tools) == 2
        assert "berry_info" in tools
        assert "move_info" not in tools

    def test_default_entity_tool(self, tools):
        assert tools.default_entity_tool().name == "entity_info"
        assert ToolRegistry([ToolSpec("berry_info")]).default_entity_tool() is None

    def test_resolve(self, tools):
        assert tools.resolve("berry_info").name == "berry_info"
        assert tools.resolve("entity-query").name == "entity_info"
        assert tools.resolve("general") is None
        assert tools.resolve("greeting") is None
        assert tools.resolve("") is None

    def test_compiled_rules_ignore_case(self):
        rule = PatternRule.compile(r"\bberry\b")
        assert rule.pattern.search("ORAN BERRY")
        assert rule.unambiguous is False
