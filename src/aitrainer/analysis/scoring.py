"""Heuristic scores derived from extracted design tokens.

These are linear, additive heuristics. Training-priority bucketing depends
on their exact shape, so every weight and threshold lives in a named
constant below instead of inline in the functions.
"""

from __future__ import annotations

import re

from aitrainer.schemas.design import (
    ColorPalette,
    CssTheme,
    DesignAnalysis,
    FontFamilies,
    LayoutStructure,
)

# Accessibility
ACCESSIBILITY_BASE = 100
PENALTY_IMG_WITHOUT_ALT = 5
PENALTY_INPUT_WITHOUT_LABEL = 3
PENALTY_NO_COLOR_DECLARATION = 10

# Design
DESIGN_BASE = 50
DESIGN_MAX = 100
COLOR_VARIETY_STEPS = ((3, 15), (5, 10))  # (more than N colors, bonus)
FONT_VARIETY_STEPS = ((1, 10), (2, 5))  # (more than N fonts, bonus)
BONUS_HERO = 10
BONUS_NAVIGATION = 5
BONUS_FOOTER = 5
BONUS_GRID = 10
BONUS_RESPONSIVE = 15

# Shared thresholds for confidence, quality and tags
HIGH_DESIGN_THRESHOLD = 70
ACCESSIBLE_THRESHOLD = 80
COLOR_VARIETY_THRESHOLD = 3
COLORFUL_THRESHOLD = 5

# Confidence
CONFIDENCE_BASE = 0.5
CONFIDENCE_MAX = 1.0
CONFIDENCE_HIGH_DESIGN = 0.2
CONFIDENCE_ACCESSIBLE = 0.15
CONFIDENCE_RESPONSIVE = 0.1
CONFIDENCE_COLOR_VARIETY = 0.05

# Quality
QUALITY_BASE = 50
QUALITY_MAX = 100
QUALITY_HIGH_DESIGN = 20
QUALITY_ACCESSIBLE = 15
QUALITY_RESPONSIVE = 10
QUALITY_COLOR_VARIETY = 5

# Training priority: (quality strictly above, priority), checked in order
TRAINING_PRIORITY_BUCKETS = ((80, 5), (60, 3), (40, 2))
TRAINING_PRIORITY_FLOOR = 1

_IMG_TAG_RE = re.compile(r"<img[^>]*>", re.IGNORECASE)
_INPUT_TAG_RE = re.compile(r"<input[^>]*>", re.IGNORECASE)
_ID_ATTR_RE = re.compile(r'id="([^"]*)"')


def calculate_accessibility_score(html: str, css: str = "") -> int:
    """Start at 100 and subtract for missing alt text, unlabeled inputs and no colors.

    An input counts as labeled only when its ``id`` appears in some
    ``for="..."`` attribute of the same document. The no-color penalty applies
    when ``color:`` occurs in neither the HTML nor the CSS, so a bare
    ``<img src="a.jpg"><input type="text">`` page scores 82 on its own and 92
    once any colour is declared.
    """
    html = html or ""
    score = ACCESSIBILITY_BASE

    images_without_alt = sum(1 for tag in _IMG_TAG_RE.findall(html) if "alt=" not in tag)
    score -= images_without_alt * PENALTY_IMG_WITHOUT_ALT

    unlabeled_inputs = 0
    for tag in _INPUT_TAG_RE.findall(html):
        m = _ID_ATTR_RE.search(tag)
        if m is None or f'for="{m.group(1)}"' not in html:
            unlabeled_inputs += 1
    score -= unlabeled_inputs * PENALTY_INPUT_WITHOUT_LABEL

    if "color:" not in html and "color:" not in (css or ""):
        score -= PENALTY_NO_COLOR_DECLARATION

    return max(0, score)


def calculate_design_score(
    colors: ColorPalette,
    fonts: FontFamilies,
    layout: LayoutStructure,
) -> int:
    score = DESIGN_BASE

    for threshold, bonus in COLOR_VARIETY_STEPS:
        if colors.count > threshold:
            score += bonus
    for threshold, bonus in FONT_VARIETY_STEPS:
        if fonts.count > threshold:
            score += bonus

    flags = layout.structure
    if flags.has_hero:
        score += BONUS_HERO
    if flags.has_navigation:
        score += BONUS_NAVIGATION
    if flags.has_footer:
        score += BONUS_FOOTER
    if flags.has_grid:
        score += BONUS_GRID
    if flags.has_responsive:
        score += BONUS_RESPONSIVE

    return min(DESIGN_MAX, score)


def calculate_confidence_score(analysis: DesignAnalysis) -> float:
    confidence = CONFIDENCE_BASE
    if analysis.design_score > HIGH_DESIGN_THRESHOLD:
        confidence += CONFIDENCE_HIGH_DESIGN
    if analysis.accessibility_score > ACCESSIBLE_THRESHOLD:
        confidence += CONFIDENCE_ACCESSIBLE
    if analysis.mobile_responsive:
        confidence += CONFIDENCE_RESPONSIVE
    if analysis.color_palette.count > COLOR_VARIETY_THRESHOLD:
        confidence += CONFIDENCE_COLOR_VARIETY
    # Stored as DECIMAL(5,2); rounding also absorbs float drift at the cap.
    return round(min(CONFIDENCE_MAX, confidence), 2)


def calculate_quality_score(analysis: DesignAnalysis) -> int:
    score = QUALITY_BASE
    if analysis.design_score > HIGH_DESIGN_THRESHOLD:
        score += QUALITY_HIGH_DESIGN
    if analysis.accessibility_score > ACCESSIBLE_THRESHOLD:
        score += QUALITY_ACCESSIBLE
    if analysis.mobile_responsive:
        score += QUALITY_RESPONSIVE
    if analysis.color_palette.count > COLOR_VARIETY_THRESHOLD:
        score += QUALITY_COLOR_VARIETY
    return min(QUALITY_MAX, score)


def calculate_training_priority(quality_score: int) -> int:
    for threshold, priority in TRAINING_PRIORITY_BUCKETS:
        if quality_score > threshold:
            return priority
    return TRAINING_PRIORITY_FLOOR


def generate_tags(business_type: str, analysis: DesignAnalysis) -> list[str]:
    """Coarse labels used for filtering stored patterns."""
    tags = [business_type]
    if analysis.mobile_responsive:
        tags.append("responsive")
    if analysis.design_score > HIGH_DESIGN_THRESHOLD:
        tags.append("high-design")
    if analysis.accessibility_score > ACCESSIBLE_THRESHOLD:
        tags.append("accessible")
    if analysis.color_palette.count > COLORFUL_THRESHOLD:
        tags.append("colorful")
    return tags


def generate_css_theme(analysis: DesignAnalysis) -> CssTheme:
    """Pick theme variables from the leading colors and fonts."""
    theme = CssTheme()

    colors = analysis.color_palette.primary
    if colors:
        theme.primary = colors[0]
        theme.secondary = colors[1] if len(colors) > 1 else colors[0]
        theme.accent = colors[2] if len(colors) > 2 else colors[0]

    fonts = analysis.font_families.primary
    if fonts:
        theme.font_primary = fonts[0]
        theme.font_secondary = fonts[1] if len(fonts) > 1 else fonts[0]

    return theme
