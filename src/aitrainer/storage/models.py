"""SQLAlchemy model for the ``ai_design_patterns`` table.

One row per analyzed competitor page, unique per (business_type, source_url).
JSON columns become JSONB on PostgreSQL and plain JSON elsewhere (SQLite is
used for local runs and tests).
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


class DesignPattern(Base):
    """A stored competitor design pattern.

    Derived columns (scores, tags, priority, themes) are recomputed from the
    raw content on every save and are never edited independently.
    """

    __tablename__ = "ai_design_patterns"
    __table_args__ = (
        UniqueConstraint("business_type", "source_url", name="uq_ai_design_patterns_type_url"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    business_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    source_url: Mapped[str] = mapped_column(String(2048), nullable=False)

    html_content: Mapped[str | None] = mapped_column(Text)
    css_content: Mapped[str | None] = mapped_column(Text)

    design_analysis: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    color_palette: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    font_families: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    layout_structure: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    semantic_analysis: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    performance_metrics: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    business_images: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    css_themes: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    tags: Mapped[list[str] | None] = mapped_column(JSONType)

    accessibility_score: Mapped[int] = mapped_column(Integer, default=0)
    design_score: Mapped[int] = mapped_column(Integer, default=0)
    mobile_responsive: Mapped[bool] = mapped_column(Boolean, default=False)
    confidence_score: Mapped[float] = mapped_column(Float, default=0.0, index=True)
    quality_score: Mapped[int] = mapped_column(Integer, default=0)
    training_priority: Mapped[int] = mapped_column(Integer, default=1)

    status: Mapped[str] = mapped_column(String(50), default="active", server_default="active", index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<DesignPattern {self.id} {self.business_type} {self.source_url}>"
