"""Embedding-similarity tier for quality mode.

Intent classification logic:
- Each intent group (`entity-query`, `general`, `greeting`) is represented by
  the mean of its exemplar embeddings.
- Each facet is represented by one embedding per exemplar sentence; a facet's
  similarity is the best score over its sentences.
- Vectors are L2-normalized and stored in FAISS inner-product indexes, so
  scores are cosine similarities.
- At call time the query is embedded once. The best intent group above
  `config.EMBEDDING_INTENT_THRESHOLD` is emitted at its similarity; otherwise
  `general` is emitted at that similarity. Every facet above
  `config.EMBEDDING_FACET_THRESHOLD` is accepted.

Lifecycle:
- `pending -> ready | unavailable`. `initialize()` is idempotent and guarded by
  a lock; `ainitialize()` runs it on a worker thread for non-blocking startup.
- While not `ready`, `analyze` returns `None` immediately.

Failure handling:
- Provider load failure is expected and logged once at warning level.
- Runtime errors during scoring degrade to `None`.
"""

import asyncio
import logging
import threading
from enum import Enum

import faiss
import numpy as np

from dexai import config
from dexai.core.classification_types import (
    ENTITY_QUERY_LABEL,
    GENERAL_LABEL,
    GREETING_LABEL,
    EmbeddingAnalysis,
    Facet,
    ScoredIntent,
    Source,
)
from dexai.nlp.embedding_model import get_model

logger = logging.getLogger(__name__)


# =========================================================
# EXEMPLARS
# =========================================================

INTENT_EXEMPLARS = {
    ENTITY_QUERY_LABEL: [
        "Tell me about a Pokemon character",
        "What are the stats of this Pokemon",
        "Pokemon type information and abilities",
        "Show me Pokemon evolution details",
        "Pokemon height weight and characteristics",
    ],
    GENERAL_LABEL: [
        "What is the weather like today",
        "Tell me about programming languages",
        "How does machine learning work",
        "Explain artificial intelligence concepts",
        "What can you help me with today",
    ],
    GREETING_LABEL: [
        "Hello how are you doing",
        "Good morning nice to meet you",
        "Hi there what's up today",
        "Hey can you help me",
        "Greetings and salutations",
    ],
}

FACET_EXEMPLARS = {
    Facet.STATS: [
        "What are the base stats of this Pokemon",
        "How high is its attack defense and speed",
        "Show me the HP and stat totals",
    ],
    Facet.EVOLUTION: [
        "When does this Pokemon evolve",
        "What does it evolve into",
        "Show me the evolution chain",
    ],
    Facet.TYPES: [
        "What type is this Pokemon",
        "What is it weak against",
        "Which types resist its attacks",
    ],
    Facet.ABILITIES: [
        "What abilities does this Pokemon have",
        "Tell me about its hidden ability",
    ],
    Facet.BREEDING: [
        "What egg group is this Pokemon in",
        "How do I breed this Pokemon",
        "How many steps to hatch its egg",
    ],
    Facet.COMPETITIVE: [
        "Is this Pokemon good in competitive battles",
        "How does it match up against another Pokemon",
        "Who wins in a battle between these two",
    ],
    Facet.MOVES: [
        "What moves can this Pokemon learn",
        "What is the best moveset for it",
    ],
    Facet.LOCATION: [
        "Where can I catch this Pokemon",
        "What is its habitat",
        "Where does it appear in the wild",
    ],
}


class ScorerState(str, Enum):
    PENDING = "pending"
    READY = "ready"
    UNAVAILABLE = "unavailable"


def _as_normalized_matrix(vectors) -> np.ndarray:
    matrix = np.array(vectors, dtype="float32")
    if matrix.ndim == 1:
        matrix = matrix.reshape(1, -1)
    matrix = np.ascontiguousarray(matrix)
    faiss.normalize_L2(matrix)
    return matrix


class EmbeddingScorer:
    """Cosine-similarity scorer over precomputed intent and facet prototypes.

    Args:
        loader: Zero-argument callable returning an embedding provider with
            `encode(list[str])`. Defaults to `embedding_model.get_model`.
        enabled: When `False`, `initialize()` goes straight to `unavailable`.
        intent_threshold: Minimum similarity for a non-`general` intent label.
        facet_threshold: Minimum similarity for a facet to be accepted.
    """

    def __init__(
        self,
        loader=None,
        enabled: bool = config.ENABLE_EMBEDDINGS,
        intent_threshold: float = config.EMBEDDING_INTENT_THRESHOLD,
        facet_threshold: float = config.EMBEDDING_FACET_THRESHOLD,
    ) -> None:
        self._loader = loader or get_model
        self._enabled = enabled
        self.intent_threshold = intent_threshold
        self.facet_threshold = facet_threshold

        self._state = ScorerState.PENDING
        self._lock = threading.Lock()
        self._provider = None

        self._intent_labels = []
        self._intent_index = None
        self._facet_labels = []
        self._facet_index = None

    # =====================================================
    # LIFECYCLE
    # =====================================================

    @property
    def state(self) -> ScorerState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == ScorerState.READY

    def initialize(self) -> ScorerState:
        """Load the provider and build prototype indexes once.

        Returns the terminal state. Repeated calls return the stored state
        without reloading.
        """
        with self._lock:
            if self._state != ScorerState.PENDING:
                return self._state

            if not self._enabled:
                logger.info("Embedding tier disabled by configuration")
                self._state = ScorerState.UNAVAILABLE
                return self._state

            try:
                provider = self._loader()
                self._build_indexes(provider)
            except Exception as exc:
                logger.warning("Embedding tier unavailable: %s", exc)
                self._provider = None
                self._state = ScorerState.UNAVAILABLE
                return self._state

            self._provider = provider
            self._state = ScorerState.READY
            logger.info(
                "Embedding tier ready (%d intent groups, %d facet exemplars)",
                len(self._intent_labels),
                len(self._facet_labels),
            )
            return self._state

    async def ainitialize(self) -> ScorerState:
        return await asyncio.to_thread(self.initialize)

    def _build_indexes(self, provider) -> None:
        intent_labels = list(INTENT_EXEMPLARS.keys())
        means = []
        for label in intent_labels:
            vectors = _as_normalized_matrix(provider.encode(list(INTENT_EXEMPLARS[label])))
            means.append(vectors.mean(axis=0))
        intent_matrix = _as_normalized_matrix(means)

        facet_labels = []
        facet_texts = []
        for facet, sentences in FACET_EXEMPLARS.items():
            for sentence in sentences:
                facet_labels.append(facet)
                facet_texts.append(sentence)
        facet_matrix = _as_normalized_matrix(provider.encode(facet_texts))

        dimension = intent_matrix.shape[1]
        intent_index = faiss.IndexFlatIP(dimension)
        intent_index.add(intent_matrix)
        facet_index = faiss.IndexFlatIP(dimension)
        facet_index.add(facet_matrix)

        self._intent_labels = intent_labels
        self._intent_index = intent_index
        self._facet_labels = facet_labels
        self._facet_index = facet_index

    # =====================================================
    # SCORING
    # =====================================================

    def analyze(self, text: str) -> EmbeddingAnalysis | None:
        """
        Score intent and facets from a single embedding call.

        Edge cases:
        - Returns `None` while `pending` or `unavailable`.
        - Returns `None` for blank input and on any runtime error.
        """
        if self._state != ScorerState.READY:
            return None
        if not isinstance(text, str) or not text.strip():
            return None

        try:
            query = _as_normalized_matrix(self._provider.encode([text.strip()]))

            scores, indices = self._intent_index.search(query, len(self._intent_labels))
            similarities = {
                self._intent_labels[idx]: float(score)
                for score, idx in zip(scores[0], indices[0])
                if idx >= 0
            }
            best_label = self._intent_labels[int(indices[0][0])]
            best_score = float(scores[0][0])

            if best_score > self.intent_threshold:
                intent = ScoredIntent(best_label, best_score, Source.EMBEDDING)
            else:
                intent = ScoredIntent(GENERAL_LABEL, best_score, Source.EMBEDDING)

            facet_scores, facet_indices = self._facet_index.search(query, len(self._facet_labels))
            best_per_facet = {}
            for score, idx in zip(facet_scores[0], facet_indices[0]):
                if idx < 0:
                    continue
                facet = self._facet_labels[idx]
                best_per_facet[facet] = max(best_per_facet.get(facet, -1.0), float(score))
        except Exception:
            logger.exception("Embedding analysis failed")
            return None

        accepted = frozenset(
            facet for facet, score in best_per_facet.items() if score > self.facet_threshold
        )
        similarities.update({facet.value: score for facet, score in best_per_facet.items()})

        logger.debug(
            "Embedding analysis label=%s score=%.4f facets=%s",
            intent.label,
            intent.confidence,
            sorted(f.value for f in accepted),
        )
        return EmbeddingAnalysis(intent=intent, facets=accepted, similarities=similarities)

    def score(self, text: str) -> ScoredIntent | None:
        analysis = self.analyze(text)
        return analysis.intent if analysis is not None else None

    def status(self) -> dict:
        return {
            "state": self._state.value,
            "enabled": self._enabled,
            "intent_threshold": self.intent_threshold,
            "facet_threshold": self.facet_threshold,
        }
