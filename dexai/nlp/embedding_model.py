"""Sentence-embedding provider bootstrap for the embedding tier.

Architectural role:
    Loads one shared `SentenceTransformer` per model name. The embedding scorer
    receives `get_model` as its default loader; any object exposing
    `encode(list[str])` can stand in for it.

Design intent:
    - Decide CPU vs CUDA once per process.
    - Apply a free-VRAM gate before enabling GPU execution.
    - Import `torch` and `sentence_transformers` lazily so that fast and
      balanced modes never pay for them.
"""

import logging
import os
import threading

from dexai import config

logger = logging.getLogger(__name__)

_models = {}
_lock = threading.Lock()


def has_enough_vram(min_required_mb: int = 800) -> bool:
    """Return whether CUDA is available with more than `min_required_mb` free."""
    import torch

    if not torch.cuda.is_available():
        return False

    free_mem, _ = torch.cuda.mem_get_info()
    free_mb = free_mem / 1024 / 1024
    logger.info("Free VRAM: %.0f MB", free_mb)
    return free_mb > min_required_mb


def select_device() -> str:
    try:
        use_gpu = has_enough_vram()
    except Exception:
        logger.warning("CUDA probe failed; using CPU for embeddings", exc_info=True)
        use_gpu = False

    if not use_gpu:
        os.environ["CUDA_VISIBLE_DEVICES"] = ""
    return "cuda" if use_gpu else "cpu"


def get_model(name: str | None = None):
    """Load and cache the embedding model.

    Args:
        name: Model identifier; defaults to `config.EMBED_MODEL`.

    Raises:
        Whatever `SentenceTransformer` raises when the model cannot be loaded
        (missing package, no network, bad name). Callers treat this as the
        tier being unavailable.
    """
    model_name = name or config.EMBED_MODEL

    with _lock:
        model = _models.get(model_name)
        if model is not None:
            return model

        device = select_device()
        logger.info("Loading embedding model %s on %s", model_name, device.upper())

        from sentence_transformers import SentenceTransformer

        model = SentenceTransformer(model_name, device=device)
        _models[model_name] = model
        return model
