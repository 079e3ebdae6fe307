"""FastAPI service exposing competitor collection over HTTP.

Run with ``aitrainer serve`` or ``uvicorn aitrainer.api:create_app --factory``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aitrainer.collection.orchestrator import CompetitorCollector, build_collector
from aitrainer.config import load_config
from aitrainer.errors import AITrainerError, GenerationError, PersistenceError
from aitrainer.schemas.config import CollectorConfig
from aitrainer.schemas.design import CamelModel
from aitrainer.storage.repository import PatternRepository

logger = logging.getLogger(__name__)


class AnalyzeRequest(CamelModel):
    business_type: str = ""


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def create_app(
    config: CollectorConfig | None = None,
    *,
    repository: PatternRepository | None = None,
    collector: CompetitorCollector | None = None,
) -> FastAPI:
    """Build the app; pass ``repository``/``collector`` to skip wiring from config."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owns_repository = repository is None
        cfg = config or load_config()
        repo = repository or PatternRepository.from_url(cfg.require_database_url())
        app.state.repository = repo
        app.state.collector = collector or build_collector(cfg, repo)
        logger.info("API ready")
        try:
            yield
        finally:
            if owns_repository:
                await repo.dispose()

    app = FastAPI(title="AI-Trainer Competitor Collector", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/competitors/analyze")
    async def analyze_competitors(body: AnalyzeRequest, request: Request) -> Any:
        """Top up stored patterns for a business type and report what happened."""
        business_type = body.business_type.strip()
        if not business_type:
            return _error(400, "businessType is required")

        try:
            summary = await request.app.state.collector.run(business_type)
        except GenerationError as exc:
            logger.error("Competitor generation failed for %r: %s", business_type, exc)
            return _error(502, str(exc))
        except AITrainerError as exc:
            logger.error("Collection failed for %r: %s", business_type, exc)
            return _error(500, str(exc))
        except Exception as exc:
            logger.exception("Unexpected error collecting %r", business_type)
            return _error(500, str(exc) or type(exc).__name__)

        return summary.model_dump(mode="json", by_alias=True)

    @app.get("/api/competitors/{business_type}/count")
    async def count_competitors(business_type: str, request: Request) -> Any:
        try:
            count = await request.app.state.repository.count_active(business_type)
        except PersistenceError as exc:
            return _error(500, str(exc))
        return {"businessType": business_type, "count": count}

    @app.get("/api/competitors/{business_type}/patterns")
    async def list_patterns(
        business_type: str,
        request: Request,
        limit: int = Query(10, ge=1, le=100),
    ) -> Any:
        """Best stored patterns for a business type, without raw HTML/CSS."""
        try:
            patterns = await request.app.state.repository.top_patterns(business_type, limit=limit)
        except PersistenceError as exc:
            return _error(500, str(exc))
        return {
            "businessType": business_type,
            "patterns": [
                p.model_dump(mode="json", by_alias=True, exclude={"html_content", "css_content"})
                for p in patterns
            ],
        }

    return app
