"""Station report downloads (CSV and Excel).

Both formats carry the flat one-row-per-item projection. String cells are
sanitized against spreadsheet formula injection because asset names and
serial numbers are free text entered by users. Workbook and CSV building is
offloaded with anyio.to_thread so it never blocks the event loop.
"""

import csv
import io
import logging
import re
from typing import Any

import anyio
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from ..domain.entities import ReportRow, StationReport
from ..domain.ports import IReportExporter

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "xlsx")

COLUMNS = [
    ("asset_name", "Asset Name"),
    ("asset_number", "Asset Number"),
    ("batch_name", "Batch Name"),
    ("purchase_date", "Purchase Date"),
    ("serial_number", "Serial Number"),
    ("assignment_date", "Assignment Date"),
    ("value", "Value (SAR)"),
]

HEADER_FILL = PatternFill(start_color="F97316", end_color="F97316", fill_type="solid")
HEADER_FONT = Font(bold=True, size=11, color="FFFFFF")
TITLE_FONT = Font(bold=True, size=16, color="333333")
ALT_ROW_FILL = PatternFill(start_color="FAFAFA", end_color="FAFAFA", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin", color="DDDDDD"),
    right=Side(style="thin", color="DDDDDD"),
    top=Side(style="thin", color="DDDDDD"),
    bottom=Side(style="thin", color="DDDDDD"),
)
CURRENCY_FORMAT = '"SAR" #,##0.00'
DATE_FORMAT = "m/d/yyyy"


class StationReportExporter(IReportExporter):
    """IReportExporter producing CSV text or an .xlsx workbook."""

    # Characters that could trigger formula interpretation
    FORMULA_CHARS = ("=", "+", "-", "@", "\t", "\r", "\n")

    @classmethod
    def sanitize_cell_value(cls, value: Any) -> Any:
        """Prefix formula-like strings with an apostrophe; None becomes ""."""
        if value is None:
            return ""
        if isinstance(value, str):
            if value and value[0] in cls.FORMULA_CHARS:
                return f"'{value}"
            if "=" in value and re.match(r".*=\s*[A-Za-z]+\(", value):
                return f"'{value}"
        return value

    async def export(self, report: StationReport, fmt: str) -> bytes:
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {fmt}")
        logger.info(f"Exporting station {report.station_id} report as {fmt} ({len(report.rows)} rows)")
        if fmt == "csv":
            return await anyio.to_thread.run_sync(lambda: self.generate_csv(report))
        return await anyio.to_thread.run_sync(lambda: self.generate_excel(report))

    # ----------------------------------------
    # CSV
    # ----------------------------------------

    def generate_csv(self, report: StationReport) -> bytes:
        output = io.StringIO()
        writer = csv.DictWriter(
            output,
            fieldnames=[key for key, _ in COLUMNS],
            quoting=csv.QUOTE_MINIMAL,
        )
        writer.writeheader()
        for row in report.rows:
            writer.writerow(
                {key: self.sanitize_cell_value(value) for key, value in row.to_dict().items()}
            )
        # BOM so spreadsheet apps detect UTF-8
        return output.getvalue().encode("utf-8-sig")

    # ----------------------------------------
    # Excel
    # ----------------------------------------

    def generate_excel(self, report: StationReport) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = "Station Assets"

        ws.cell(row=1, column=1, value=f"Station Assets Report - {report.title}").font = TITLE_FONT
        ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(COLUMNS))
        ws.cell(row=2, column=1, value="Generated:")
        ws.cell(row=2, column=2, value=report.generated_at.strftime("%Y-%m-%d %H:%M:%S"))
        ws.cell(row=3, column=1, value="Total Value:").font = Font(bold=True)
        total_cell = ws.cell(row=3, column=2, value=float(report.total_value))
        total_cell.number_format = CURRENCY_FORMAT
        total_cell.font = Font(bold=True, color="F97316")

        header_row = 5
        for col, (_, header) in enumerate(COLUMNS, start=1):
            cell = ws.cell(row=header_row, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.alignment = Alignment(horizontal="center", vertical="center")
            cell.border = THIN_BORDER

        for offset, row in enumerate(report.rows, start=1):
            self._write_row(ws, header_row + offset, row, alternate=offset % 2 == 0)

        ws.freeze_panes = ws.cell(row=header_row + 1, column=1)
        self._auto_fit_columns(ws)

        output = io.BytesIO()
        wb.save(output)
        return output.getvalue()

    def _write_row(self, ws: Worksheet, row_num: int, row: ReportRow, alternate: bool) -> None:
        values = [
            row.asset_name,
            row.asset_number,
            row.batch_name,
            row.purchase_date,
            row.serial_number,
            row.assignment_date,
            float(row.value),
        ]
        for col, value in enumerate(values, start=1):
            cell = ws.cell(row=row_num, column=col, value=self.sanitize_cell_value(value))
            cell.border = THIN_BORDER
            cell.alignment = Alignment(vertical="center", wrap_text=True)
            if alternate:
                cell.fill = ALT_ROW_FILL
            if col in (4, 6) and value:
                cell.number_format = DATE_FORMAT
            elif col == 7:
                cell.number_format = CURRENCY_FORMAT

    @staticmethod
    def _auto_fit_columns(ws: Worksheet, min_width: int = 10, max_width: int = 50) -> None:
        for column_cells in ws.iter_cols(min_row=5):
            longest = max((len(str(cell.value)) for cell in column_cells if cell.value), default=0)
            letter = get_column_letter(column_cells[0].column)
            ws.column_dimensions[letter].width = min(max(longest + 2, min_width), max_width)
