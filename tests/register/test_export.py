"""Tests for station report CSV/Excel export."""

import csv
import io
from datetime import date, datetime
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from src.darb.register.adapters.export import StationReportExporter
from src.darb.register.domain.entities import (
    ReportRow,
    Station,
    StationAggregate,
    StationReport,
)


@pytest.fixture
def exporter():
    return StationReportExporter()


@pytest.fixture
def report():
    rows = [
        ReportRow(
            asset_name="Pump A",
            asset_number="PA-1",
            batch_name="B1",
            purchase_date=date(2024, 1, 10),
            serial_number="S1",
            assignment_date=date(2024, 2, 1),
            value=Decimal("100"),
        ),
        ReportRow(
            asset_name="=HYPERLINK(\"http://evil\")",
            asset_number=None,
            batch_name="Batch #2",
            purchase_date=None,
            serial_number="-S2",
            assignment_date=None,
            value=Decimal("50.25"),
        ),
    ]
    return StationReport(
        station_id=5,
        station=Station(id=5, name="North"),
        aggregate=StationAggregate(total_value=Decimal("150.25")),
        rows=rows,
        generated_at=datetime(2024, 6, 1, 9, 30),
    )


class TestSanitizeCellValue:
    """Formula injection protection."""

    @pytest.mark.parametrize("value", ["=1+1", "+cmd", "-2", "@SUM(A1)", "\tx"])
    def test_formula_prefix_escaped(self, value):
        assert StationReportExporter.sanitize_cell_value(value) == f"'{value}"

    def test_embedded_function_escaped(self):
        assert StationReportExporter.sanitize_cell_value("a =SUM(1)").startswith("'")

    def test_plain_values_untouched(self):
        assert StationReportExporter.sanitize_cell_value("Pump A") == "Pump A"
        assert StationReportExporter.sanitize_cell_value(12.5) == 12.5
        assert StationReportExporter.sanitize_cell_value(None) == ""


class TestCsvExport:
    """Tests for CSV export."""

    @pytest.mark.asyncio
    async def test_csv_rows(self, exporter, report):
        content = await exporter.export(report, "csv")

        assert content.startswith(b"\xef\xbb\xbf")
        rows = list(csv.DictReader(io.StringIO(content.decode("utf-8-sig"))))
        assert len(rows) == 2
        assert rows[0]["asset_name"] == "Pump A"
        assert rows[0]["purchase_date"] == "2024-01-10"
        assert rows[0]["value"] == "100"
        assert rows[1]["asset_name"].startswith("'=")
        assert rows[1]["serial_number"] == "'-S2"
        assert rows[1]["asset_number"] == ""

    @pytest.mark.asyncio
    async def test_unknown_format(self, exporter, report):
        with pytest.raises(ValueError, match="Unsupported export format"):
            await exporter.export(report, "pdf")


class TestExcelExport:
    """Tests for XLSX export."""

    @pytest.mark.asyncio
    async def test_workbook_layout(self, exporter, report):
        content = await exporter.export(report, "xlsx")

        wb = load_workbook(io.BytesIO(content))
        ws = wb.active
        assert ws.title == "Station Assets"
        assert ws.cell(row=1, column=1).value == "Station Assets Report - North"
        assert ws.cell(row=3, column=2).value == pytest.approx(150.25)
        assert ws.cell(row=5, column=1).value == "Asset Name"
        assert ws.cell(row=5, column=7).value == "Value (SAR)"
        assert ws.cell(row=6, column=1).value == "Pump A"
        assert ws.cell(row=6, column=7).value == pytest.approx(100.0)
        assert ws.cell(row=7, column=1).value.startswith("'=")
        assert ws.freeze_panes == "A6"
