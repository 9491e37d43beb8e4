"""Bag-of-words logistic-regression tier over a fixed labeled set.

Intent classification logic:
- Labels: `entity-query` and `general`.
- One model per distinct preprocessing setting (POS filter, stemming), trained
  once and synchronously at construction with scikit-learn
  (`CountVectorizer` over pre-tokenized input + `LogisticRegression`).
- Prediction returns the top label and its probability.

Failure handling:
- `classify` returns `general` at `config.LEXICAL_FAILURE_CONFIDENCE` on any
  model error and never raises.
- `try_classify` returns `None` on error so the quality chain can move on.
"""

import logging

from sklearn.feature_extraction.text import CountVectorizer
from sklearn.linear_model import LogisticRegression

from dexai import config
from dexai.core.classification_types import (
    ENTITY_QUERY_LABEL,
    GENERAL_LABEL,
    Mode,
    ScoredIntent,
    Source,
)
from dexai.nlp.text_preprocessor import TextPreprocessor

logger = logging.getLogger(__name__)


# =========================================================
# TRAINING DATA
# =========================================================

TRAINING_DATA = (
    ("tell me about pikachu", ENTITY_QUERY_LABEL),
    ("what are charizard stats", ENTITY_QUERY_LABEL),
    ("pokemon bulbasaur info", ENTITY_QUERY_LABEL),
    ("does squirtle evolve", ENTITY_QUERY_LABEL),
    ("charmander evolution", ENTITY_QUERY_LABEL),
    ("pokemon height weight", ENTITY_QUERY_LABEL),
    ("egg group abilities", ENTITY_QUERY_LABEL),
    ("how does pikachu matchup versus rhyhorn", ENTITY_QUERY_LABEL),
    ("charizard vs blastoise competitive", ENTITY_QUERY_LABEL),
    ("what is the weather", GENERAL_LABEL),
    ("how are you today", GENERAL_LABEL),
    ("hello how are you", GENERAL_LABEL),
    ("hi there", GENERAL_LABEL),
    ("tell me a joke", GENERAL_LABEL),
    ("what is programming", GENERAL_LABEL),
    ("explain machine learning", GENERAL_LABEL),
    ("best programming language", GENERAL_LABEL),
    ("how to learn coding", GENERAL_LABEL),
)


def _identity(tokens):
    return tokens


def _settings_key(mode) -> tuple[bool, bool]:
    settings = config.MODE_SETTINGS[Mode.coerce(mode).value]
    return settings["pos_filter"], settings["stemming"]


class LexicalClassifier:
    """Small supervised classifier trained at construction.

    Args:
        preprocessor: Shared `TextPreprocessor`; a default one is created when
            omitted.
        training_data: `(text, label)` pairs; defaults to `TRAINING_DATA`.
    """

    def __init__(self, preprocessor: TextPreprocessor | None = None, training_data=TRAINING_DATA) -> None:
        self.preprocessor = preprocessor or TextPreprocessor()
        self._training_data = tuple(training_data)
        self._models = {}

        for mode in Mode:
            key = _settings_key(mode)
            if key not in self._models:
                self._models[key] = self._train(mode)

        logger.info(
            "Lexical classifier trained on %d samples for %d preprocessing settings",
            len(self._training_data),
            len(self._models),
        )

    def _train(self, mode: Mode):
        documents = [self.preprocessor.preprocess(text, mode) for text, _ in self._training_data]
        labels = [label for _, label in self._training_data]

        vectorizer = CountVectorizer(analyzer=_identity)
        features = vectorizer.fit_transform(documents)

        model = LogisticRegression(max_iter=1000)
        model.fit(features, labels)
        return vectorizer, model

    @property
    def labels(self) -> list[str]:
        _, model = next(iter(self._models.values()))
        return [str(label) for label in model.classes_]

    def tokens_for(self, text: str, mode=Mode.BALANCED) -> list[str]:
        return self.preprocessor.preprocess(text, mode)

    def try_classify(self, tokens, mode=Mode.BALANCED) -> ScoredIntent | None:
        """Return the top label and its probability, or `None` on model error."""
        try:
            vectorizer, model = self._models[_settings_key(mode)]
            features = vectorizer.transform([list(tokens)])
            probabilities = model.predict_proba(features)[0]
            best = int(probabilities.argmax())
            return ScoredIntent(str(model.classes_[best]), float(probabilities[best]), Source.LEXICAL)
        except Exception:
            logger.exception("Lexical classification failed")
            return None

    def classify(self, tokens, mode=Mode.BALANCED) -> ScoredIntent:
        """
        Classify pre-tokenized input.

        Edge cases:
        - Unknown tokens are ignored by the vectorizer; an all-unknown input
          yields the model's prior.
        - Any model error maps to `general` at the failure confidence.
        """
        scored = self.try_classify(tokens, mode)
        if scored is None:
            return ScoredIntent(GENERAL_LABEL, config.LEXICAL_FAILURE_CONFIDENCE, Source.LEXICAL)
        return scored
