"""Markdown report builder — renders a CollectionSummary to a Markdown document."""

from __future__ import annotations

from datetime import datetime, timezone

from aitrainer.schemas.pattern import CollectionSummary, DesignPatternRecord


def render_collection_report(
    summary: CollectionSummary,
    *,
    top_patterns: list[DesignPatternRecord] | None = None,
    generated_at: datetime | None = None,
) -> str:
    """Render a collection run (and optionally the best stored patterns) as Markdown."""
    generated_at = generated_at or datetime.now(timezone.utc)
    sections: list[str] = []

    sections.append(f"# Competitor Collection: {summary.business_type}\n")
    sections.append(f"*Generated: {generated_at.isoformat(timespec='seconds')}*\n")

    sections.append("## Summary\n")
    sections.append(f"- **Patterns already stored:** {summary.existing_count}")
    if summary.sufficient:
        sections.append("- **Status:** target already reached, nothing collected")
    else:
        sections.append(f"- **Competitors requested:** {summary.requested_count}")
        sections.append(f"- **Processed:** {summary.total_processed}")
        sections.append(f"- **Saved:** {summary.success_count}")
        failed = summary.total_processed - summary.success_count
        if failed:
            sections.append(f"- **Failed:** {failed}")
    if summary.message:
        sections.append(f"\n{summary.message}")
    sections.append("")

    if summary.results:
        sections.append("## Competitors\n")
        sections.append("| # | Name | URL | Result |")
        sections.append("|---|------|-----|--------|")
        for i, item in enumerate(summary.results, 1):
            if item.success:
                outcome = f"✅ saved (id {item.saved_id})"
            else:
                outcome = f"❌ {_cell(item.error or 'failed')}"
            sections.append(f"| {i} | {_cell(item.name) or '-'} | {item.url} | {outcome} |")
        sections.append("")

    if top_patterns:
        sections.append("## Top Stored Patterns\n")
        sections.append(_render_pattern_table(top_patterns))

    return "\n".join(sections)


def _render_pattern_table(patterns: list[DesignPatternRecord]) -> str:
    lines = [
        "| Priority | Quality | Design | Accessibility | Responsive | URL |",
        "|----------|---------|--------|---------------|------------|-----|",
    ]
    for p in patterns:
        responsive = "yes" if p.mobile_responsive else "no"
        lines.append(
            f"| {p.training_priority} | {p.quality_score} | {p.design_score} "
            f"| {p.accessibility_score} | {responsive} | {p.source_url} |"
        )
    return "\n".join(lines) + "\n"


def _cell(text: str) -> str:
    # Keep table rows on one line.
    return text.replace("|", "\\|").replace("\n", " ").strip()
