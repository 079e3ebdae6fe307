"""Design token extraction from raw HTML/CSS text.

Everything here is a pure function of its string inputs. The matching is
regex and substring based rather than parse-tree based, so it tolerates
malformed markup and accepts false positives (a class named "navigator"
counts as navigation). No function in this module raises for any string
input; empty input yields empty token lists and all-false flags.
"""

from __future__ import annotations

import re
from typing import Iterable

from aitrainer.schemas.design import (
    ColorPalette,
    FontFamilies,
    LayoutStructure,
    PerformanceMetrics,
    SemanticAnalysis,
    SemanticElements,
    StructureFlags,
)

# Top-N caps for the "primary" subsets
PRIMARY_COLOR_COUNT = 5
PRIMARY_FONT_COUNT = 3

COLOR_RE = re.compile(r"#[0-9a-fA-F]{3,6}|rgb\([^)]+\)|rgba\([^)]+\)|hsl\([^)]+\)")
FONT_FAMILY_RE = re.compile(r"font-family:\s*([^;}]+)", re.IGNORECASE)

_SECTION_BLOCK_RE = re.compile(r"<section[^>]*>[\s\S]*?</section>", re.IGNORECASE)
_DIV_BLOCK_RE = re.compile(r"<div[^>]*>[\s\S]*?</div>", re.IGNORECASE)
_HEADING_BLOCK_RE = re.compile(r"<h[1-6][^>]*>[\s\S]*?</h[1-6]>", re.IGNORECASE)

_CSS_RULE_RE = re.compile(r"\{[^}]*\}")
_MEDIA_RE = re.compile(r"@media", re.IGNORECASE)

SEMANTIC_TAGS = ("header", "nav", "main", "article", "aside", "footer", "section")
_SEMANTIC_TAG_RES = {
    tag: re.compile(rf"<{tag}[^>]*>", re.IGNORECASE) for tag in SEMANTIC_TAGS
}


def _dedupe(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def extract_color_palette(css: str, html: str) -> ColorPalette:
    """Collect hex/rgb()/rgba()/hsl() literals from CSS, then inline HTML."""
    colors = _dedupe(COLOR_RE.findall(css or "") + COLOR_RE.findall(html or ""))
    return ColorPalette(
        primary=colors[:PRIMARY_COLOR_COUNT],
        all=colors,
        count=len(colors),
    )


def extract_font_families(css: str) -> FontFamilies:
    """Collect ``font-family`` values exactly as declared (no normalization)."""
    fonts = _dedupe(
        value.strip()
        for value in FONT_FAMILY_RE.findall(css or "")
        if value.strip()
    )
    return FontFamilies(
        primary=fonts[:PRIMARY_FONT_COUNT],
        all=fonts,
        count=len(fonts),
    )


def analyze_layout_structure(html: str, css: str) -> LayoutStructure:
    """Count block elements and flag common page regions by keyword."""
    html = html or ""
    css = css or ""
    return LayoutStructure(
        sections=len(_SECTION_BLOCK_RE.findall(html)),
        divs=len(_DIV_BLOCK_RE.findall(html)),
        headers=len(_HEADING_BLOCK_RE.findall(html)),
        structure=StructureFlags(
            has_hero="hero" in html or "banner" in html,
            has_navigation="nav" in html or "menu" in html,
            has_footer="footer" in html,
            has_sidebar="sidebar" in html or "aside" in html,
            has_grid="grid" in css or "flex" in css,
            has_responsive="@media" in css,
        ),
    )


def analyze_semantic_structure(html: str) -> SemanticAnalysis:
    """Count HTML5 landmark elements."""
    html = html or ""
    counts = {tag: len(rx.findall(html)) for tag, rx in _SEMANTIC_TAG_RES.items()}
    return SemanticAnalysis(
        semantic_score=sum(counts.values()),
        elements=SemanticElements(**counts),
        has_semantic_structure=any(c > 0 for c in counts.values()),
    )


def _round_kb(size_bytes: int) -> int:
    # Half-up rounding, not Python's banker's rounding.
    return int(size_bytes / 1024 + 0.5)


def calculate_performance_metrics(html: str, css: str) -> PerformanceMetrics:
    """Byte sizes and rule counts of the captured page."""
    html_size = len((html or "").encode("utf-8"))
    css_size = len((css or "").encode("utf-8"))
    return PerformanceMetrics(
        html_size_kb=_round_kb(html_size),
        css_size_kb=_round_kb(css_size),
        total_size_kb=_round_kb(html_size + css_size),
        css_rules=len(_CSS_RULE_RE.findall(css or "")),
        media_queries=len(_MEDIA_RE.findall(css or "")),
    )


def check_mobile_responsive(css: str) -> bool:
    """True when the CSS has media queries plus a flex or grid layout."""
    css = css or ""
    return "@media" in css and ("flex" in css or "grid" in css)
