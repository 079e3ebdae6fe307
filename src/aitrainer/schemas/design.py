"""Pydantic models for extracted design tokens and derived scores.

Serialized keys keep the camelCase names stored in the ``ai_design_patterns``
JSON columns (``hasHero``, ``htmlSizeKB`` ...); Python code uses snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ColorPalette(CamelModel):
    """Colors found in CSS and inline HTML, in first-seen order."""

    primary: list[str] = []  # first 5
    all: list[str] = []
    count: int = 0


class FontFamilies(CamelModel):
    """``font-family`` declarations found in CSS, in first-seen order."""

    primary: list[str] = []  # first 3
    all: list[str] = []
    count: int = 0


class StructureFlags(CamelModel):
    has_hero: bool = False
    has_navigation: bool = False
    has_footer: bool = False
    has_sidebar: bool = False
    has_grid: bool = False
    has_responsive: bool = False


class LayoutStructure(CamelModel):
    sections: int = 0
    divs: int = 0
    headers: int = 0
    structure: StructureFlags = StructureFlags()


class SemanticElements(CamelModel):
    header: int = 0
    nav: int = 0
    main: int = 0
    article: int = 0
    aside: int = 0
    footer: int = 0
    section: int = 0


class SemanticAnalysis(CamelModel):
    semantic_score: int = 0
    elements: SemanticElements = SemanticElements()
    has_semantic_structure: bool = False


class PerformanceMetrics(CamelModel):
    html_size_kb: int = Field(default=0, alias="htmlSizeKB")
    css_size_kb: int = Field(default=0, alias="cssSizeKB")
    total_size_kb: int = Field(default=0, alias="totalSizeKB")
    css_rules: int = 0
    media_queries: int = 0


class CssTheme(CamelModel):
    """Theme variables suggested by the top colors and fonts of a page."""

    primary: str | None = None
    secondary: str | None = None
    accent: str | None = None
    font_primary: str | None = None
    font_secondary: str | None = None


class DesignAnalysis(CamelModel):
    """Everything extracted from one page's HTML and CSS."""

    color_palette: ColorPalette = ColorPalette()
    font_families: FontFamilies = FontFamilies()
    layout_structure: LayoutStructure = LayoutStructure()
    semantic_analysis: SemanticAnalysis = SemanticAnalysis()
    performance_metrics: PerformanceMetrics = PerformanceMetrics()
    accessibility_score: int = 0
    design_score: int = 0
    mobile_responsive: bool = False


class PatternScores(CamelModel):
    """Fields derived from a DesignAnalysis at save time."""

    quality_score: int = 0
    confidence_score: float = 0.0
    training_priority: int = 1
    tags: list[str] = []
    css_themes: CssTheme = CssTheme()
