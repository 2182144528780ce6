"""Run report generation in HTML.

Uses Jinja2 templates to render per-step validation results of the
aggregate counters workflow.
"""

from .report_generator import ReportGenerator

__all__ = ["ReportGenerator"]
