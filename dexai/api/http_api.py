"""
HTTP API adapter for the DexAI engine.

Architectural role:
- Expose JSON endpoints for task processing and direct classification.
- Enforce adapter-level input validation (task presence, type, length, mode).
- Delegate work to `dexai.core.engine.AgentEngine`.

Endpoint responsibilities:
- `POST /api/run_task`: validate, process, return answer plus classification.
- `POST /api/classify`: validate, return the serialized classification only.
- `POST /api/set_performance_mode`: change the engine's default mode.
- `POST /api/clear_cache`: drop response and entity caches.
- `GET /api/health`, `GET /api/status`, `GET /api/tools`,
  `GET /api/performance/modes`: introspection.

Input validation behavior:
- Unparseable JSON body -> HTTP 400.
- Missing or non-string `task`/`text` -> HTTP 400.
- `task` longer than `config.MAX_TASK_CHARS` -> HTTP 400.
- Unknown `mode` -> HTTP 400.

Browser access:
- `CORSMiddleware` answers preflights for `config.CORS_ORIGINS`
  (GET/POST/OPTIONS, `Content-Type` and `Authorization` headers).

Startup:
- The lifespan hook builds the engine and starts embedding initialization in a
  background task; requests never wait for it.

Error handling strategy:
- Validation failures return structured HTTP 400 JSON responses.
- Engine failures return HTTP 500 `{"error": "Task processing failed", ...}`.

Side effects:
- Emits request/response debug logs only when `DEBUG == "true"`.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dexai import config
from dexai.core.classification_types import Mode
from dexai.core.engine import build_engine
from dexai.logging_config import setup_logging

logger = logging.getLogger(__name__)

# Sensitive request/response debug logging is opt-in.
DEBUG = config.DEBUG


# ============================================================
# Validation Helpers
# ============================================================

def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


async def _read_body(request: Request):
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _validate_text(body: dict, field: str):
    value = body.get(field)
    if value is None:
        return None, _bad_request(f"Missing '{field}' field")
    if not isinstance(value, str):
        return None, _bad_request(f"'{field}' must be a string")
    if not value.strip():
        return None, _bad_request(f"'{field}' must not be empty")
    if len(value) > config.MAX_TASK_CHARS:
        return None, _bad_request(f"'{field}' exceeds {config.MAX_TASK_CHARS} characters")
    return value, None


def _validate_mode(body: dict, default: Mode):
    mode = body.get("mode")
    if mode is None:
        return default, None
    if not isinstance(mode, str) or mode.strip().lower() not in config.VALID_MODES:
        return None, _bad_request(
            f"Invalid mode. Expected one of: {', '.join(config.VALID_MODES)}"
        )
    return Mode(mode.strip().lower()), None


# ============================================================
# Application Factory
# ============================================================

def create_app(engine_factory=None, cors_origins=None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        engine_factory: Zero-argument callable returning an `AgentEngine`.
            Defaults to `dexai.core.engine.build_engine`.
        cors_origins: Allowed browser origins. Defaults to `config.CORS_ORIGINS`.
    """
    factory = engine_factory or build_engine

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()
        engine = factory()
        app.state.engine = engine

        embedding = engine.context.embedding
        app.state.embedding_task = (
            asyncio.create_task(embedding.ainitialize()) if embedding is not None else None
        )
        logger.info("DexAI API ready (default mode=%s)", engine.default_mode.value)
        try:
            yield
        finally:
            task = app.state.embedding_task
            if task is not None and not task.done():
                task.cancel()

    app = FastAPI(title="DexAI", lifespan=lifespan)

    origins = cors_origins if cors_origins is not None else config.CORS_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # ============================================================
    # Task Processing
    # ============================================================

    @app.post("/api/run_task")
    async def run_task(request: Request):
        body = await _read_body(request)
        if body is None:
            return _bad_request("Request body must be a JSON object")

        engine = request.app.state.engine
        task, error = _validate_text(body, "task")
        if error is not None:
            return error
        mode, error = _validate_mode(body, engine.default_mode)
        if error is not None:
            return error

        if DEBUG:
            logger.debug("run_task request task=%r mode=%s", task, mode.value)

        try:
            outcome = await asyncio.to_thread(engine.process_task, task, mode)
        except Exception as exc:
            logger.exception("Task processing failed")
            return JSONResponse(
                status_code=500,
                content={"error": "Task processing failed", "message": str(exc)},
            )

        payload = outcome.to_dict()
        if DEBUG:
            logger.debug("run_task response %r", payload)
        return payload

    @app.post("/api/classify")
    async def classify_text(request: Request):
        body = await _read_body(request)
        if body is None:
            return _bad_request("Request body must be a JSON object")

        engine = request.app.state.engine
        text, error = _validate_text(body, "text")
        if error is not None:
            return error
        mode, error = _validate_mode(body, engine.default_mode)
        if error is not None:
            return error

        classification = await asyncio.to_thread(engine.classify, text, mode)
        return classification.to_dict()

    # ============================================================
    # Configuration
    # ============================================================

    @app.post("/api/set_performance_mode")
    async def set_performance_mode(request: Request):
        body = await _read_body(request)
        if body is None or body.get("mode") is None:
            return _bad_request("Missing 'mode' field")

        engine = request.app.state.engine
        mode, error = _validate_mode(body, engine.default_mode)
        if error is not None:
            return error

        engine.set_default_mode(mode)
        return {
            "performance_mode": mode.value,
            "description": config.MODE_DESCRIPTIONS[mode.value]["description"],
        }

    @app.post("/api/clear_cache")
    async def clear_cache(request: Request):
        cleared = request.app.state.engine.clear_cache()
        return {"status": "ok", **cleared}

    # ============================================================
    # Introspection
    # ============================================================

    @app.get("/api/health")
    async def health(request: Request):
        engine = request.app.state.engine
        embedding = engine.context.embedding
        return {
            "status": "ok",
            "performance_mode": engine.default_mode.value,
            "embedding_state": embedding.state.value if embedding is not None else "disabled",
        }

    @app.get("/api/status")
    async def status(request: Request):
        return request.app.state.engine.status()

    @app.get("/api/tools")
    async def tools(request: Request):
        return {"tools": request.app.state.engine.tools_info()}

    @app.get("/api/performance/modes")
    async def performance_modes(request: Request):
        engine = request.app.state.engine
        return {
            "current": engine.default_mode.value,
            "modes": {
                name: {**config.MODE_DESCRIPTIONS[name], "settings": config.MODE_SETTINGS[name]}
                for name in config.VALID_MODES
            },
        }

    return app


app = create_app()


def serve() -> None:
    import uvicorn

    setup_logging()
    uvicorn.run("dexai.api.http_api:app", host=config.API_HOST, port=config.API_PORT)
