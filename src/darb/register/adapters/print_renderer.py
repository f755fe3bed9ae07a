"""Print-ready HTML documents for station reports and directories.

Templates live next to this module in ``templates/`` and are rendered with
Jinja2 autoescaping on, so asset names, serials, and station details coming
from the backend are always HTML-escaped.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..domain.entities import Department, Station, StationReport
from ..domain.ports import IReportRenderer

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
MISSING = "—"
CURRENCY = "SAR"


def format_currency(value: Optional[Decimal]) -> str:
    """Fixed SAR format with two fraction digits: ``SAR 1,234.50``."""
    amount = Decimal(value or 0)
    if amount < 0:
        return f"-{CURRENCY} {-amount:,.2f}"
    return f"{CURRENCY} {amount:,.2f}"


def format_date(value: Optional[date]) -> str:
    """Locale-neutral ``M/D/YYYY``; missing dates print as a dash."""
    if value is None:
        return MISSING
    if isinstance(value, datetime):
        value = value.date()
    return f"{value.month}/{value.day}/{value.year}"


def or_dash(value: Any) -> Any:
    if value is None or value == "":
        return MISSING
    return value


class HtmlReportRenderer(IReportRenderer):
    """Jinja2 implementation of IReportRenderer."""

    def __init__(self, template_dir: Optional[Path] = None):
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            autoescape=select_autoescape(enabled_extensions=("html", "j2"), default=True),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["sar"] = format_currency
        self.env.filters["short_date"] = format_date
        self.env.filters["or_dash"] = or_dash

    def render_station_report(self, report: StationReport) -> str:
        logger.debug(f"Rendering print report for station {report.station_id} ({len(report.rows)} rows)")
        return self.env.get_template("station_report.html.j2").render(report=report)

    def render_station_directory(self, stations: list[Station]) -> str:
        return self.env.get_template("station_directory.html.j2").render(stations=stations)

    def render_department_directory(self, departments: list[Department]) -> str:
        return self.env.get_template("department_directory.html.j2").render(departments=departments)
