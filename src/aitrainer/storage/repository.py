"""Async repository for stored design patterns.

Every write is an independent statement: a failure saving one competitor
never rolls back the ones saved before it. Database errors surface as
``PersistenceError``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from aitrainer.errors import ConfigurationError, PersistenceError
from aitrainer.schemas.pattern import DesignPatternRecord
from aitrainer.storage.models import Base, DesignPattern

logger = logging.getLogger(__name__)

ACTIVE_STATUS = "active"

_table = DesignPattern.__table__

# Columns refreshed when a (business_type, source_url) pair is re-analyzed
_UPSERT_COLUMNS = (
    "html_content",
    "css_content",
    "design_analysis",
    "color_palette",
    "font_families",
    "layout_structure",
    "semantic_analysis",
    "performance_metrics",
    "business_images",
    "css_themes",
    "tags",
    "accessibility_score",
    "design_score",
    "mobile_responsive",
    "confidence_score",
    "quality_score",
    "training_priority",
    "status",
)


def normalize_database_url(url: str) -> str:
    """Map plain Postgres/SQLite URLs onto their async drivers.

    Hosted Postgres providers hand out ``postgres://`` URLs; SQLAlchemy's
    async engine needs an explicit async driver.
    """
    url = url.strip()
    if not url:
        raise ConfigurationError("Database URL is empty")
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    if url.startswith("sqlite://"):
        return "sqlite+aiosqlite://" + url[len("sqlite://"):]
    return url


def make_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    """Create the process-wide async engine (connection pool)."""
    url = normalize_database_url(database_url)
    kwargs.setdefault("pool_pre_ping", True)
    return create_async_engine(url, **kwargs)


def _dump(model: Any) -> Any:
    return model.model_dump(mode="json", by_alias=True)


def record_to_row(record: DesignPatternRecord) -> dict[str, Any]:
    """Column values for a record (JSON columns keep camelCase keys)."""
    design_analysis = {
        "colorPalette": _dump(record.color_palette),
        "fontFamilies": _dump(record.font_families),
        "layoutStructure": _dump(record.layout_structure),
        "semanticAnalysis": _dump(record.semantic_analysis),
        "performanceMetrics": _dump(record.performance_metrics),
        "accessibilityScore": record.accessibility_score,
        "designScore": record.design_score,
        "mobileResponsive": record.mobile_responsive,
    }
    return {
        "business_type": record.business_type,
        "source_url": record.source_url,
        "html_content": record.html_content,
        "css_content": record.css_content,
        "design_analysis": design_analysis,
        "color_palette": design_analysis["colorPalette"],
        "font_families": design_analysis["fontFamilies"],
        "layout_structure": design_analysis["layoutStructure"],
        "semantic_analysis": design_analysis["semanticAnalysis"],
        "performance_metrics": design_analysis["performanceMetrics"],
        "business_images": _dump(record.business_images),
        "css_themes": _dump(record.css_themes),
        "tags": list(record.tags),
        "accessibility_score": record.accessibility_score,
        "design_score": record.design_score,
        "mobile_responsive": record.mobile_responsive,
        "confidence_score": record.confidence_score,
        "quality_score": record.quality_score,
        "training_priority": record.training_priority,
        "status": record.status,
    }


def row_to_record(row: Any, *, include_content: bool = True) -> DesignPatternRecord:
    m = row._mapping
    data: dict[str, Any] = {
        "id": m["id"],
        "business_type": m["business_type"],
        "source_url": m["source_url"],
        "accessibility_score": m["accessibility_score"] or 0,
        "design_score": m["design_score"] or 0,
        "mobile_responsive": bool(m["mobile_responsive"]),
        "confidence_score": m["confidence_score"] or 0.0,
        "quality_score": m["quality_score"] or 0,
        "training_priority": m["training_priority"] or 1,
        "tags": m["tags"] or [],
        "status": m["status"],
    }
    for column in (
        "color_palette",
        "font_families",
        "layout_structure",
        "semantic_analysis",
        "performance_metrics",
        "business_images",
        "css_themes",
    ):
        if m[column] is not None:
            data[column] = m[column]
    if include_content:
        data["html_content"] = m["html_content"] or ""
        data["css_content"] = m["css_content"] or ""
    return DesignPatternRecord.model_validate(data)


def _insert_for(dialect_name: str):
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise PersistenceError(f"Upsert not supported for database dialect {dialect_name!r}")
    return insert


class PatternRepository:
    """Reads and writes ``ai_design_patterns`` rows."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str) -> "PatternRepository":
        return cls(make_engine(database_url))

    @asynccontextmanager
    async def _connect(self, action: str, *, write: bool = False) -> AsyncIterator[AsyncConnection]:
        try:
            if write:
                async with self.engine.begin() as conn:
                    yield conn
            else:
                async with self.engine.connect() as conn:
                    yield conn
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Database error while %s: %s", action, exc)
            raise PersistenceError(f"Database error while {action}: {exc}") from exc

    async def init_schema(self) -> None:
        """Create the table and indexes if they do not exist."""
        async with self._connect("creating schema", write=True) as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Schema ready (%s)", _table.name)

    async def count_active(self, business_type: str) -> int:
        stmt = (
            select(func.count())
            .select_from(_table)
            .where(_table.c.business_type == business_type, _table.c.status == ACTIVE_STATUS)
        )
        async with self._connect("counting patterns") as conn:
            count = (await conn.execute(stmt)).scalar_one()
        logger.info("Found %d active patterns for %r", count, business_type)
        return int(count)

    async def upsert(self, record: DesignPatternRecord) -> int:
        """Insert or overwrite the row for (business_type, source_url); return its id."""
        values = record_to_row(record)
        insert = _insert_for(self.engine.dialect.name)
        stmt = insert(_table).values(**values)
        update_set = {col: stmt.excluded[col] for col in _UPSERT_COLUMNS}
        update_set["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(
            index_elements=["business_type", "source_url"],
            set_=update_set,
        )

        lookup = select(_table.c.id).where(
            _table.c.business_type == record.business_type,
            _table.c.source_url == record.source_url,
        )
        async with self._connect(f"saving {record.source_url}", write=True) as conn:
            await conn.execute(stmt)
            pattern_id = (await conn.execute(lookup)).scalar_one()
        logger.info("Saved pattern %d for %s", pattern_id, record.source_url)
        return int(pattern_id)

    async def get(self, pattern_id: int) -> DesignPatternRecord | None:
        stmt = select(_table).where(_table.c.id == pattern_id)
        async with self._connect(f"loading pattern {pattern_id}") as conn:
            row = (await conn.execute(stmt)).first()
        return row_to_record(row) if row is not None else None

    async def top_patterns(
        self,
        business_type: str,
        *,
        limit: int = 10,
        include_content: bool = False,
    ) -> list[DesignPatternRecord]:
        """Active patterns best suited to seed generation prompts, best first."""
        limit = max(1, min(100, int(limit)))
        stmt = (
            select(_table)
            .where(_table.c.business_type == business_type, _table.c.status == ACTIVE_STATUS)
            .order_by(
                _table.c.training_priority.desc(),
                _table.c.quality_score.desc(),
                _table.c.id.desc(),
            )
            .limit(limit)
        )
        async with self._connect(f"listing patterns for {business_type!r}") as conn:
            rows = (await conn.execute(stmt)).all()
        return [row_to_record(r, include_content=include_content) for r in rows]

    async def business_type_stats(self) -> list[dict[str, Any]]:
        """Active pattern count and average quality per business type."""
        stmt = (
            select(
                _table.c.business_type,
                func.count().label("count"),
                func.avg(_table.c.quality_score).label("avg_quality"),
            )
            .where(_table.c.status == ACTIVE_STATUS)
            .group_by(_table.c.business_type)
            .order_by(_table.c.business_type)
        )
        async with self._connect("computing stats") as conn:
            rows = (await conn.execute(stmt)).all()
        return [
            {
                "business_type": r._mapping["business_type"],
                "count": int(r._mapping["count"]),
                "avg_quality": round(float(r._mapping["avg_quality"] or 0), 1),
            }
            for r in rows
        ]

    async def dispose(self) -> None:
        await self.engine.dispose()
