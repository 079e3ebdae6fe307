"""Full design analysis of one captured page."""

from __future__ import annotations

from aitrainer.analysis.extractors import (
    analyze_layout_structure,
    analyze_semantic_structure,
    calculate_performance_metrics,
    check_mobile_responsive,
    extract_color_palette,
    extract_font_families,
)
from aitrainer.analysis.scoring import (
    calculate_accessibility_score,
    calculate_confidence_score,
    calculate_design_score,
    calculate_quality_score,
    calculate_training_priority,
    generate_css_theme,
    generate_tags,
)
from aitrainer.schemas.design import DesignAnalysis, PatternScores


def analyze_design(html: str, css: str) -> DesignAnalysis:
    """Extract tokens and compute accessibility/design scores.

    Pure: the same HTML and CSS always produce the same analysis.
    """
    colors = extract_color_palette(css, html)
    fonts = extract_font_families(css)
    layout = analyze_layout_structure(html, css)

    return DesignAnalysis(
        color_palette=colors,
        font_families=fonts,
        layout_structure=layout,
        semantic_analysis=analyze_semantic_structure(html),
        performance_metrics=calculate_performance_metrics(html, css),
        accessibility_score=calculate_accessibility_score(html, css),
        design_score=calculate_design_score(colors, fonts, layout),
        mobile_responsive=check_mobile_responsive(css),
    )


def score_pattern(business_type: str, analysis: DesignAnalysis) -> PatternScores:
    """Compute the fields stored alongside an analysis."""
    quality = calculate_quality_score(analysis)
    return PatternScores(
        quality_score=quality,
        confidence_score=calculate_confidence_score(analysis),
        training_priority=calculate_training_priority(quality),
        tags=generate_tags(business_type, analysis),
        css_themes=generate_css_theme(analysis),
    )
