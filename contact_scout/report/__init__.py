# File: contact_scout/report/__init__.py
"""contact_scout.report: Отчёты (JSON и HTML) по обогащённым элементам, используемые CLI и тестами."""

from __future__ import annotations

from contact_scout.report.html_report import render_html
from contact_scout.report.json_report import render_json

__all__ = ["render_json", "render_html"]
