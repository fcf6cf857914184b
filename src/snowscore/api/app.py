"""
FastAPI application wiring.

This file creates the `FastAPI` instance and mounts the routes.
Business logic lives in `snowscore.recommender`; `snowscore.api.routes` only adapts it to HTTP.
Run with any ASGI server, e.g. `uvicorn snowscore.api.app:app`.
"""

from __future__ import annotations

from fastapi import FastAPI

from snowscore.core.logging import configure_logging

from .routes import router

configure_logging()

app = FastAPI(title="SnowScore API", version="0.1.0")
app.include_router(router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
