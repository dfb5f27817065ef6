"""Markdown report renderer for design analysis results.

Renders an AnalysisResult with a packaged Jinja2 template. Output is
deterministic for a given result and timestamp.
"""

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape

from aura.models.analysis import (
    FALLBACK_REASON_KEY,
    LEVEL_RESULT_KEYS,
    REQUESTED_MODE_KEY,
    AnalysisLevel,
    AnalysisResult,
    is_fallback,
)

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "analysis_report.md.j2"

# Work-item sections, highest level first (business brief is rendered separately)
_SECTION_HEADINGS = [
    (AnalysisLevel.INITIATIVE, "Initiatives"),
    (AnalysisLevel.FEATURE, "Features"),
    (AnalysisLevel.EPIC, "Epics"),
    (AnalysisLevel.STORY, "Stories"),
]


def format_datetime(dt: datetime | str | None) -> str:
    """Format datetime for display in reports.

    Args:
        dt: Datetime object or ISO string

    Returns:
        Formatted date string
    """
    if dt is None:
        return "N/A"

    if isinstance(dt, str):
        try:
            dt = datetime.fromisoformat(dt)
        except ValueError:
            return dt

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    return dt.strftime("%Y-%m-%d %H:%M:%S UTC")


class ReportRenderer:
    """Renders analysis results to Markdown.

    Usage:
        renderer = ReportRenderer()
        markdown = renderer.render(result)
    """

    def __init__(self) -> None:
        self._env = Environment(
            loader=PackageLoader("aura", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["format_datetime"] = format_datetime

    def render(
        self,
        result: AnalysisResult,
        generated_at: datetime | None = None,
        template_name: str = DEFAULT_TEMPLATE,
    ) -> str:
        """Render an analysis result to Markdown.

        Args:
            result: Analysis result from the pipeline
            generated_at: Timestamp shown in the header (defaults to now)
            template_name: Template file to use

        Returns:
            Rendered Markdown

        Raises:
            ValueError: If the template is missing or fails to render
        """
        try:
            template = self._env.get_template(template_name)
        except Exception as e:
            logger.error("Failed to load template %s: %s", template_name, e)
            raise ValueError(f"Template not found: {template_name}") from e

        context = self._build_context(result, generated_at or datetime.now(UTC))

        try:
            rendered = template.render(**context)
        except Exception as e:
            logger.error("Template rendering failed: %s", e)
            raise ValueError(f"Template rendering failed: {e}") from e

        logger.debug("Rendered analysis report (%d characters)", len(rendered))
        return rendered

    def _build_context(self, result: AnalysisResult, generated_at: datetime) -> dict[str, Any]:
        sections = []
        for level, heading in _SECTION_HEADINGS:
            items = result.get(LEVEL_RESULT_KEYS[level]) or []
            if items:
                sections.append({"heading": heading, "items": items})

        return {
            "analysis_depth": result.get("analysisDepth", "unknown"),
            "generated_at": generated_at,
            "fallback": is_fallback(result),
            "requested_mode": result.get(REQUESTED_MODE_KEY),
            "fallback_reason": result.get(FALLBACK_REASON_KEY),
            "extracted_insights": result.get("extractedInsights", ""),
            "design_analysis": result.get("designAnalysis", ""),
            "user_flows": result.get("userFlows") or [],
            "accessibility_insights": result.get("accessibilityInsights") or [],
            "business_brief": result.get(LEVEL_RESULT_KEYS[AnalysisLevel.BUSINESS_BRIEF]),
            "sections": sections,
        }

    def render_to_file(
        self,
        result: AnalysisResult,
        output_path: Path,
        generated_at: datetime | None = None,
    ) -> Path:
        """Render a result and write it to output_path."""
        content = self.render(result, generated_at)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
        logger.info("Wrote analysis report to %s", output_path)

        return output_path
