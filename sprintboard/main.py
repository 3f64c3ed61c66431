"""ASGI entry point: ``uvicorn sprintboard.main:app``."""

from prometheus_fastapi_instrumentator import Instrumentator

from sprintboard.core.logging import setup_logging
from . import app

setup_logging()


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


# Instrumentation adds a middleware, so it has to run before the first request.
Instrumentator(excluded_handlers=["/health", "/metrics"]).instrument(app).expose(app, include_in_schema=False)
