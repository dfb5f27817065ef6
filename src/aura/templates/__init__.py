"""Aura report rendering.

Jinja2-based Markdown rendering of design analysis results.
"""

from aura.templates.renderer import ReportRenderer

__all__ = ["ReportRenderer"]
