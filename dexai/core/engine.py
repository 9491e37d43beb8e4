"""Core request orchestration: classify, dispatch, render, cache.

Architectural role:
    Provides the execution pipeline used by the HTTP and CLI adapters to turn one
    user task into a rendered answer plus its classification.

Control-flow model:
    1. Normalize the task and mode; consult the response cache.
    2. Classify with `intent_router.classify`.
    3. Tool route: execute the registered tool and render its output.
       General route: render the general reply.
    4. Store the answer in the mode-aware response cache.

Error handling strategy:
    Classification never raises. Tool and rendering failures are logged and
    converted into mode-specific error text so adapters always get a result.

Side effects:
    - Response cache writes.
    - Data-provider HTTP calls through the tool.

Determinism:
    Routing and rendering are deterministic for fixed input and data-provider
    responses.
"""

import logging
import threading
import time
from dataclasses import dataclass

from dexai import config
from dexai.core.classification_types import ClassificationResult, Mode
from dexai.nlp.intent_router import ClassifierContext, build_classifier_context, classify
from dexai.prompting.response_builder import (
    build_error_response,
    build_general_response,
    build_tool_response,
)
from dexai.tools.entity_tool import EntityInfoTool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskResult:
    result: str
    classification: ClassificationResult
    cached: bool
    performance_mode: Mode
    processing_time_ms: float

    def to_dict(self) -> dict:
        return {
            "result": self.result,
            "cached": self.cached,
            "performance_mode": self.performance_mode.value,
            "processing_time_ms": round(self.processing_time_ms, 2),
            "classification": self.classification.to_dict(),
        }


def normalize_task(task) -> str:
    if not isinstance(task, str):
        return ""
    return " ".join(task.lower().split())


class AgentEngine:
    """Per-process orchestrator around one `ClassifierContext`.

    Args:
        context: Immutable classifier context.
        tool: Data tool; defaults to `EntityInfoTool()`.
        cache_ttl: Response cache lifetime in seconds; `0` disables caching.
        default_mode: Mode used when `process_task` gets none.
        max_entries: Response cache size cap; the oldest entry is evicted first.
    """

    def __init__(
        self,
        context: ClassifierContext,
        tool: EntityInfoTool | None = None,
        cache_ttl: float = config.RESPONSE_CACHE_TTL_SECONDS,
        default_mode=config.DEFAULT_MODE,
        max_entries: int = config.RESPONSE_CACHE_MAX_ENTRIES,
    ) -> None:
        self.context = context
        self.tool = tool or EntityInfoTool()
        self.cache_ttl = cache_ttl
        self.max_entries = max(1, max_entries)
        self.default_mode = Mode.coerce(default_mode)

        self._cache = {}
        self._lock = threading.Lock()
        self._started_at = time.time()
        self._tasks_processed = 0

    # =====================================================
    # CACHE
    # =====================================================

    def _cache_get(self, key):
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            expires_at, text, classification = entry
            if expires_at <= time.monotonic():
                del self._cache[key]
                return None
            return text, classification

    def _cache_put(self, key, text: str, classification: ClassificationResult) -> None:
        if self.cache_ttl <= 0:
            return
        with self._lock:
            now = time.monotonic()
            for stale in [k for k, entry in self._cache.items() if entry[0] <= now]:
                del self._cache[stale]
            self._cache.pop(key, None)
            # Dicts keep insertion order, so the first key is the oldest write.
            while self._cache and len(self._cache) >= self.max_entries:
                del self._cache[next(iter(self._cache))]
            self._cache[key] = (now + self.cache_ttl, text, classification)

    def clear_cache(self) -> dict:
        with self._lock:
            responses = len(self._cache)
            self._cache.clear()
        entities = self.tool.client.clear_cache()
        logger.info("Cleared %d cached responses and %d entity records", responses, entities)
        return {"responses_cleared": responses, "entities_cleared": entities}

    # =====================================================
    # PIPELINE
    # =====================================================

    def set_default_mode(self, mode) -> Mode:
        self.default_mode = Mode.coerce(mode)
        logger.info("Default performance mode set to %s", self.default_mode.value)
        return self.default_mode

    def classify(self, text, mode=None) -> ClassificationResult:
        return classify(text, mode if mode is not None else self.default_mode, self.context)

    def _render(self, task: str, classification: ClassificationResult, mode: Mode) -> str:
        if not classification.is_tool_route:
            return build_general_response(task, mode, classification)

        if classification.tool_name != self.tool.name:
            logger.warning("No executor bound for tool %s", classification.tool_name)
            return build_error_response(classification.tool_name, "tool is not available", mode)

        try:
            output = self.tool.execute(task, classification)
            return build_tool_response(output, classification, mode)
        except Exception as exc:
            logger.exception("Tool execution failed for task=%r", task)
            return build_error_response("unknown", str(exc), mode)

    def process_task(self, task: str, mode=None) -> TaskResult:
        """
        Run one task through classification, tool dispatch and rendering.

        Edge cases:
        - `mode=None` uses the engine's default mode.
        - Identical tasks (case and whitespace insensitive) in the same mode
          are served from the response cache until it expires.
        """
        started = time.perf_counter()
        mode = Mode.coerce(mode if mode is not None else self.default_mode)
        key = (mode.value, normalize_task(task))

        cached = self._cache_get(key)
        if cached is not None:
            text, classification = cached
            logger.info("Returning cached response (mode=%s)", mode.value)
            return TaskResult(
                result=text,
                classification=classification,
                cached=True,
                performance_mode=mode,
                processing_time_ms=(time.perf_counter() - started) * 1000,
            )

        classification = classify(task, mode, self.context)
        text = self._render(task, classification, mode)
        self._cache_put(key, text, classification)

        with self._lock:
            self._tasks_processed += 1

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Processed task route=%s tool=%s mode=%s in %.1f ms",
            classification.route.value,
            classification.tool_name,
            mode.value,
            elapsed_ms,
        )
        return TaskResult(
            result=text,
            classification=classification,
            cached=False,
            performance_mode=mode,
            processing_time_ms=elapsed_ms,
        )

    # =====================================================
    # INTROSPECTION
    # =====================================================

    def tools_info(self) -> list[dict]:
        return [
            {
                "name": spec.name,
                "description": spec.description,
                "handles_entity_queries": spec.handles_entity_queries,
            }
            for spec in self.context.registry
        ]

    def status(self) -> dict:
        embedding = self.context.embedding
        with self._lock:
            cached_responses = len(self._cache)
            processed = self._tasks_processed
        return {
            "performance_mode": self.default_mode.value,
            "uptime_seconds": round(time.time() - self._started_at, 1),
            "tasks_processed": processed,
            "tools": self.context.registry.names,
            "embedding": embedding.status() if embedding is not None else {"state": "disabled"},
            "response_cache": {
                "entries": cached_responses,
                "ttl_seconds": self.cache_ttl,
                "max_entries": self.max_entries,
            },
            "entity_cache": self.tool.client.cache_stats(),
        }


def build_engine(client=None, embedding_loader=None, enable_embeddings: bool = config.ENABLE_EMBEDDINGS) -> AgentEngine:
    """Build the default engine: entity tool registry, tiers, and data client.

    The embedding tier is left `pending`; adapters start its initialization.
    """
    context = build_classifier_context(
        embedding_loader=embedding_loader,
        enable_embeddings=enable_embeddings,
    )
    return AgentEngine(context, tool=EntityInfoTool(client))
