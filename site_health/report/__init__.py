"""site_health.report: JSON и HTML отчёты по CrawlReport, используемые CLI и тестами."""

from site_health.report.html_report import render_html
from site_health.report.json_report import render_json

__all__ = ["render_json", "render_html"]
