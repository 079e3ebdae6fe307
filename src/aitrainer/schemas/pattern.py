"""Pydantic models for competitors, fetched pages, stored patterns and run summaries."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from aitrainer.schemas.design import (
    CamelModel,
    ColorPalette,
    CssTheme,
    FontFamilies,
    LayoutStructure,
    PerformanceMetrics,
    SemanticAnalysis,
)


class Competitor(BaseModel):
    """A candidate competitor site proposed by the completion API."""

    name: str = ""
    url: str
    description: str = ""

    @field_validator("url")
    @classmethod
    def url_must_be_http(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"competitor url must be http(s): {v!r}")
        return v


class SiteImage(CamelModel):
    """An ``<img>`` element found on a fetched page."""

    src: str
    alt: str = ""
    width: int = 0
    height: int = 0
    class_name: str = ""


class FetchedSite(BaseModel):
    """Rendered output of one page visit."""

    url: str
    html_content: str = ""
    css_content: str = ""
    site_images: list[SiteImage] = []


class ImageDimensions(BaseModel):
    width: int = 0
    height: int = 0


class StockImage(BaseModel):
    """A stock photo returned by the image search API."""

    id: str
    url: str
    thumb: str = ""
    description: str = ""
    dimensions: ImageDimensions = ImageDimensions()
    tags: list[str] = []


class BusinessImages(CamelModel):
    site_images: list[SiteImage] = []
    # Stored under the key existing rows already use.
    stock_images: list[StockImage] = Field(default=[], alias="unsplashImages")


class DesignPatternRecord(CamelModel):
    """One analyzed competitor page, as stored in ``ai_design_patterns``."""

    id: int | None = None
    business_type: str
    source_url: str
    html_content: str = ""
    css_content: str = ""
    color_palette: ColorPalette = ColorPalette()
    font_families: FontFamilies = FontFamilies()
    layout_structure: LayoutStructure = LayoutStructure()
    semantic_analysis: SemanticAnalysis = SemanticAnalysis()
    performance_metrics: PerformanceMetrics = PerformanceMetrics()
    accessibility_score: int = 0
    design_score: int = 0
    mobile_responsive: bool = False
    confidence_score: float = 0.0
    quality_score: int = 0
    training_priority: int = 1
    tags: list[str] = []
    css_themes: CssTheme = CssTheme()
    business_images: BusinessImages = BusinessImages()
    status: str = "active"


class ItemResult(CamelModel):
    """Outcome of processing one competitor in a collection run."""

    name: str = ""
    url: str
    success: bool
    saved_id: int | None = None
    error: str | None = None


class CollectionSummary(CamelModel):
    """Result of ``CompetitorCollector.run`` for one business type.

    ``success`` means the batch ran to completion. Compare ``success_count``
    with ``total_processed`` to see how many items actually succeeded.
    """

    success: bool = True
    business_type: str
    existing_count: int = 0
    requested_count: int = 0
    total_processed: int = 0
    success_count: int = 0
    sufficient: bool = False
    message: str = ""
    results: list[ItemResult] = Field(default_factory=list)
