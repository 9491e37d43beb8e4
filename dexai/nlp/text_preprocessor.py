"""Tokenizer, part-of-speech reducer, and stemmer for the lexical classifier.

Normalization steps (per mode, from `config.MODE_SETTINGS`):
- Lowercase and trim.
- Part-of-speech reduction keeping nouns, verbs, adjectives and proper nouns
  (spaCy). Skipped in `fast`.
- Word tokenization on `[a-z0-9]+`.
- Porter stemming (NLTK). Skipped in `fast`.

Failure handling:
- A missing spaCy package or model disables reduction for the lifetime of the
  preprocessor; the degradation is logged once.
- A reduction that removes every token falls back to the unreduced text.
"""

import logging
import re
import threading

from nltk.stem import PorterStemmer

from dexai import config
from dexai.core.classification_types import Mode

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"[a-z0-9]+")
KEPT_POS_TAGS = frozenset({"NOUN", "VERB", "ADJ", "PROPN"})


def load_spacy_model(name: str = config.SPACY_MODEL):
    """Load the configured spaCy pipeline."""
    import spacy

    return spacy.load(name)


class TextPreprocessor:
    """Mode-aware text normalization shared by training and inference.

    Args:
        nlp_loader: Zero-argument callable returning a spaCy `Language`.
            Defaults to loading `config.SPACY_MODEL`. Loaded lazily on first use.
    """

    def __init__(self, nlp_loader=None) -> None:
        self._nlp_loader = nlp_loader or load_spacy_model
        self._nlp = None
        self._nlp_failed = False
        self._lock = threading.Lock()
        self._stemmer = PorterStemmer()

    # =====================================================
    # BUILDING BLOCKS
    # =====================================================

    def tokenize(self, text: str) -> list[str]:
        if not text:
            return []
        return TOKEN_PATTERN.findall(text.lower())

    def stem(self, token: str) -> str:
        return self._stemmer.stem(token)

    def _get_nlp(self):
        if self._nlp is not None or self._nlp_failed:
            return self._nlp

        with self._lock:
            if self._nlp is None and not self._nlp_failed:
                try:
                    self._nlp = self._nlp_loader()
                except OSError:
                    logger.warning(
                        "spaCy model %r not found; part-of-speech reduction disabled",
                        config.SPACY_MODEL,
                    )
                    self._nlp_failed = True
                except Exception:
                    logger.exception("spaCy unavailable; part-of-speech reduction disabled")
                    self._nlp_failed = True
        return self._nlp

    @property
    def pos_filter_available(self) -> bool:
        return self._get_nlp() is not None

    def reduce_parts_of_speech(self, text: str) -> str:
        """
        Keep only content words, in their original order.

        Edge cases:
        - Returns `text` unchanged when spaCy is unavailable.
        - Returns `text` unchanged when nothing survives the filter, so
          greetings such as "how are you" keep their signal.
        """
        nlp = self._get_nlp()
        if nlp is None:
            return text

        try:
            doc = nlp(text)
        except Exception:
            logger.exception("Part-of-speech tagging failed")
            return text

        kept = [token.text for token in doc if token.pos_ in KEPT_POS_TAGS]
        if not kept:
            return text
        return " ".join(kept)

    # =====================================================
    # PIPELINE
    # =====================================================

    def preprocess(self, text: str, mode=Mode.BALANCED) -> list[str]:
        """Return classifier tokens for `text` under the given mode's settings."""
        if not isinstance(text, str):
            return []

        settings = config.MODE_SETTINGS[Mode.coerce(mode).value]
        processed = text.lower().strip()

        if settings["pos_filter"]:
            processed = self.reduce_parts_of_speech(processed)

        tokens = self.tokenize(processed)

        if settings["stemming"]:
            tokens = [self.stem(token) for token in tokens]

        return tokens
