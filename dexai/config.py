"""Runtime configuration for classification, data access, and adapters.

Architectural role:
    Centralizes thresholds, model names, and endpoint settings consumed by
    `dexai.nlp`, `dexai.data`, `dexai.core`, and the API/CLI adapters.

Determinism:
    Deterministic for a fixed process environment. Values are resolved at import
    time after `load_dotenv()`.

Failure behavior:
    Malformed numeric environment values fall back to the documented default
    rather than aborting startup.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_float(name, default):
    """Read a float environment variable, falling back to `default`."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name, default):
    """Read an int environment variable, falling back to `default`."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_flag(name, default):
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# =========================================================
# PERFORMANCE MODES
# =========================================================

VALID_MODES = ("fast", "balanced", "quality")

DEFAULT_MODE = os.getenv("PERFORMANCE_MODE", "balanced").strip().lower()
if DEFAULT_MODE not in VALID_MODES:
    DEFAULT_MODE = "balanced"

# Preprocessing and tier switches per mode.
MODE_SETTINGS = {
    "fast": {
        "pos_filter": False,
        "stemming": False,
        "use_embeddings": False,
    },
    "balanced": {
        "pos_filter": True,
        "stemming": True,
        "use_embeddings": False,
    },
    "quality": {
        "pos_filter": True,
        "stemming": True,
        "use_embeddings": True,
    },
}

MODE_DESCRIPTIONS = {
    "fast": {
        "description": "Pattern matching with an unstemmed lexical classifier",
        "features": ["Pattern matching", "Bag-of-words classifier", "No embedding inference"],
    },
    "balanced": {
        "description": "Pattern matching plus part-of-speech filtered, stemmed lexical classifier",
        "features": ["Pattern matching", "POS filtering", "Porter stemming", "Response caching"],
    },
    "quality": {
        "description": "Sentence-embedding intent and multi-facet scoring with lexical fallback",
        "features": ["Sentence embeddings", "Multi-facet detection", "Tiered fallback chain"],
    },
}


# =========================================================
# CLASSIFIER CONSTANTS
# =========================================================

PATTERN_CONFIDENCE = _env_float("PATTERN_CONFIDENCE", 0.9)
EMBEDDING_INTENT_THRESHOLD = _env_float("EMBEDDING_INTENT_THRESHOLD", 0.6)
EMBEDDING_FACET_THRESHOLD = _env_float("EMBEDDING_FACET_THRESHOLD", 0.6)

CONFIDENCE_FLOOR = 0.1
CONFIDENCE_CEILING = 1.0
LEXICAL_FAILURE_CONFIDENCE = 0.3

BASE_ENDPOINT = "pokemon"
DEFAULT_TOOL_NAME = "entity_info"


# =========================================================
# MODELS
# =========================================================

ENABLE_EMBEDDINGS = _env_flag("ENABLE_EMBEDDINGS", True)
EMBED_MODEL = os.getenv("EMBED_MODEL", "sentence-transformers/all-MiniLM-L6-v2")
SPACY_MODEL = os.getenv("SPACY_MODEL", "en_core_web_sm")


# =========================================================
# DATA PROVIDER
# =========================================================

POKEAPI_BASE_URL = os.getenv("POKEAPI_BASE_URL", "https://pokeapi.co/api/v2").rstrip("/")
POKEAPI_TIMEOUT = _env_float("POKEAPI_TIMEOUT", 10.0)
DATA_CACHE_TTL_SECONDS = _env_int("DATA_CACHE_TTL", 3600)
DATA_CACHE_MAX_ENTRIES = _env_int("DATA_CACHE_MAX_ENTRIES", 500)


# =========================================================
# ADAPTERS
# =========================================================

RESPONSE_CACHE_TTL_SECONDS = _env_int("CACHE_TTL", 1800)
RESPONSE_CACHE_MAX_ENTRIES = _env_int("CACHE_MAX_ENTRIES", 1000)
MAX_TASK_CHARS = _env_int("MAX_TASK_CHARS", 1000)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()
DEBUG = os.getenv("DEBUG") == "true"

API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = _env_int("API_PORT", 3000)

# Comma-separated browser origins; "*" allows any origin without credentials.
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]
