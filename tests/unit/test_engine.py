"""Tests for the agent engine pipeline."""

import time

from dexai import config
from dexai.core.classification_types import Mode, Route
from dexai.core.engine import AgentEngine, normalize_task
from dexai.tools.entity_tool import EntityInfoTool


class ExplodingTool(EntityInfoTool):
    def execute(self, query, classification):
        raise RuntimeError("tool crashed")


def test_entity_task(engine):
    outcome = engine.process_task("Tell me about Pikachu", "fast")

    assert outcome.result.startswith("Pikachu (#25) - Electric type")
    assert outcome.cached is False
    assert outcome.performance_mode == Mode.FAST
    assert outcome.classification.route == Route.TOOL


def test_default_mode_is_used(engine):
    outcome = engine.process_task("Pikachu")
    assert outcome.performance_mode == Mode.BALANCED
    assert outcome.classification.mode == Mode.BALANCED


def test_response_cache_is_mode_aware_and_normalized(engine):
    engine.process_task("Tell me about Pikachu", "fast")

    assert engine.process_task("  tell me ABOUT   pikachu ", "fast").cached is True
    assert engine.process_task("Tell me about Pikachu", "balanced").cached is False


def test_zero_ttl_disables_response_cache(context, client):
    engine = AgentEngine(context, tool=EntityInfoTool(client), cache_ttl=0)
    engine.process_task("Pikachu", "fast")
    assert engine.process_task("Pikachu", "fast").cached is False


def test_general_task(engine):
    outcome = engine.process_task("hello there", "balanced")

    assert outcome.classification.route == Route.GENERAL
    assert outcome.result.startswith("Hello there!")


def test_unknown_species_reports_lookup_error(engine):
    outcome = engine.process_task("zorua pokemon stats", "fast")

    assert outcome.classification.entities == ("zorua",)
    assert outcome.result == "Couldn't find 'zorua': Pokemon 'zorua' not found"


def test_matchup_task(engine):
    outcome = engine.process_task("How does Pikachu matchup versus Rhyhorn?", "balanced")

    assert outcome.classification.is_multi_entity_comparison is True
    assert "| Stat | Pikachu | Rhyhorn |" in outcome.result
    assert "Rhyhorn has a type advantage over Pikachu (Electric)" in outcome.result


def test_tool_failure_is_rendered_not_raised(context, client):
    engine = AgentEngine(context, tool=ExplodingTool(client))
    outcome = engine.process_task("Pikachu", "fast")
    assert outcome.result == "Couldn't find 'unknown': tool crashed"


def test_clear_cache_reports_both_caches(engine):
    engine.process_task("Pikachu", "fast")
    assert engine.clear_cache() == {"responses_cleared": 1, "entities_cleared": 1}
    assert engine.process_task("Pikachu", "fast").cached is False


def test_set_default_mode(engine):
    assert engine.set_default_mode("quality") == Mode.QUALITY
    assert engine.default_mode == Mode.QUALITY
    assert engine.set_default_mode("turbo") == Mode(config.DEFAULT_MODE)


def test_status_and_tools(engine):
    engine.process_task("Pikachu", "fast")
    status = engine.status()

    assert status["tasks_processed"] == 1
    assert status["tools"] == ["entity_info"]
    assert status["embedding"]["state"] == "unavailable"
    assert status["response_cache"]["entries"] == 1
    assert status["entity_cache"]["entries"] == 1
    assert engine.tools_info()[0]["name"] == "entity_info"


def test_to_dict(engine):
    data = engine.process_task("Pikachu", "fast").to_dict()
    assert set(data) == {"result", "cached", "performance_mode", "processing_time_ms", "classification"}
    assert data["classification"]["entities"] == ["pikachu"]


def test_normalize_task():
    assert normalize_task("  Hello   WORLD ") == "hello world"
    assert normalize_task(None) == ""


def test_expired_responses_are_swept_on_write(context, client):
    engine = AgentEngine(context, tool=EntityInfoTool(client), cache_ttl=0.01)
    for index in range(50):
        engine.process_task(f"hello number {index}", "fast")
    time.sleep(0.05)

    engine.process_task("hello again", "fast")
    assert engine.status()["response_cache"]["entries"] == 1


def test_response_cache_evicts_oldest_past_cap(context, client):
    engine = AgentEngine(context, tool=EntityInfoTool(client), cache_ttl=60, max_entries=2)
    for task in ("hello one", "hello two", "hello three"):
        engine.process_task(task, "fast")

    assert engine.status()["response_cache"]["entries"] == 2
    assert engine.process_task("hello one", "fast").cached is False
    assert engine.process_task("hello three", "fast").cached is True
