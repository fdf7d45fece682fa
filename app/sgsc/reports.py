"""
Filtered report generator.

Turns a list of row dicts plus column definitions into a downloadable PDF
(reportlab) or XLSX workbook (openpyxl). Every screen exports its currently
filtered list through `generate_filtered_report`.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO
from typing import Any

from flask import send_file
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.pdfgen import canvas as pdf_canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.sgsc.constants import STATUS_LABELS

DEFAULT_GENERATED_BY = "SGSC System"
NO_FILTERS = "None"

HEADER_RGB = (41, 128, 185)
HEADER_HEX = "2980B9"
ALT_ROW_GREY = 245

MIN_COL_WIDTH = 10
MAX_COL_WIDTH = 50

PDF_MIMETYPE = "application/pdf"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class Column:
    """
    One report column. The heading is `label`, else `header`, else `key`.
    `format`, when given, receives the raw value and returns the cell text.
    """

    key: str
    label: str | None = None
    header: str | None = None
    format: Callable[[Any], Any] | None = None

    @property
    def heading(self) -> str:
        if self.label is not None:
            return self.label
        if self.header is not None:
            return self.header
        return str(self.key)


@dataclass
class ReportData:
    title: str
    headers: list[str]
    data: list[list[Any]]
    generated_at: str = ""
    generated_by: str = DEFAULT_GENERATED_BY
    filters: str = NO_FILTERS
    total_records: int = 0


@dataclass(frozen=True)
class GeneratedReport:
    content: bytes
    filename: str
    mimetype: str
    metadata: dict[str, Any] = field(default_factory=dict)


# ---------- Formatting ----------
def format_rows_for_report(
    rows: Sequence[Mapping[str, Any]], columns: Sequence[Column]
) -> tuple[list[str], list[list[Any]]]:
    headers = [c.heading for c in columns]
    data: list[list[Any]] = []
    for row in rows:
        out: list[Any] = []
        for c in columns:
            value = row.get(c.key)
            if c.format is not None:
                out.append(c.format(value))
            else:
                out.append("" if value is None else value)
        data.append(out)
    return headers, data


def describe_filters(filters: Mapping[str, Any] | None) -> str:
    parts = [f"{k}: {v}" for k, v in (filters or {}).items() if v is not None and v != ""]
    return ", ".join(parts) or NO_FILTERS


def column_widths(headers: Sequence[str], data: Sequence[Sequence[Any]]) -> list[int]:
    widths = []
    for idx, header in enumerate(headers):
        max_len = len(str(header))
        for row in data:
            cell = row[idx] if idx < len(row) else ""
            max_len = max(max_len, len("" if cell is None else str(cell)))
        widths.append(min(max(max_len + 2, MIN_COL_WIDTH), MAX_COL_WIDTH))
    return widths


def report_filename(title: str, ext: str, today: date | None = None) -> str:
    today = today or date.today()
    stem = re.sub(r"\s+", "_", title)
    return f"{stem}_{today.isoformat()}.{ext}"


# ---------- Common formatters ----------
def _to_date(value: Any) -> date | datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, (date, datetime)):
        return value
    s = str(value).strip()
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        return None


def format_date(value: Any) -> str:
    d = _to_date(value)
    if d is None:
        return "" if value in (None, "") else str(value)
    return d.strftime("%d/%m/%Y")


def format_datetime(value: Any) -> str:
    d = _to_date(value)
    if d is None:
        return "" if value in (None, "") else str(value)
    if isinstance(d, datetime):
        return d.strftime("%d/%m/%Y %H:%M")
    return d.strftime("%d/%m/%Y")


def format_currency(value: Any, currency: str = "PEN") -> str:
    if value is None or value == "" or isinstance(value, bool):
        return ""
    try:
        amount = Decimal(str(value))
    except ArithmeticError:
        return ""
    symbol = "$" if (currency or "").upper() == "USD" else "S/"
    return f"{symbol} {amount:,.2f}"


def format_boolean(value: Any) -> str:
    return "Yes" if value else "No"


def format_status(value: Any) -> str:
    if value is None:
        return ""
    return STATUS_LABELS.get(str(value), str(value))


formatters = {
    "date": format_date,
    "datetime": format_datetime,
    "currency": format_currency,
    "boolean": format_boolean,
    "status": format_status,
}


# ---------- PDF ----------
class _NumberedCanvas(pdf_canvas.Canvas):
    """Defers page output until the total page count is known."""

    footer_suffix = "Citizen Security Management System (SGSC)"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states: list[dict] = []

    def showPage(self):  # noqa: N802 (reportlab API)
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int) -> None:
        self.setFont("Helvetica", 8)
        self.setFillGray(0.6)
        self.drawString(36, 20, f"Page {self._pageNumber} of {total} - {self.footer_suffix}")


def build_pdf(report: ReportData) -> bytes:
    buffer = BytesIO()
    pagesize = landscape(A4) if len(report.headers) > 6 else A4
    doc = SimpleDocTemplate(
        buffer,
        pagesize=pagesize,
        leftMargin=36,
        rightMargin=36,
        topMargin=40,
        bottomMargin=40,
        title=report.title,
    )
    styles = getSampleStyleSheet()
    cell_style = styles["BodyText"].clone("ReportCell", fontSize=8, leading=10)
    head_style = cell_style.clone("ReportHead", textColor=colors.white, fontName="Helvetica-Bold")

    story: list[Any] = [Paragraph(report.title, styles["Title"]), Spacer(1, 8)]

    table_data = [[Paragraph(h, head_style) for h in report.headers]]
    for row in report.data:
        table_data.append([Paragraph(_pdf_text(v), cell_style) for v in row])

    if report.headers:
        widths = column_widths(report.headers, report.data)
        scale = doc.width / sum(widths)
        table = Table(table_data, colWidths=[w * scale for w in widths], repeatRows=1)
        grey = ALT_ROW_GREY / 255.0
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.Color(*(c / 255.0 for c in HEADER_RGB))),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.Color(grey, grey, grey)]),
                    ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
                ]
            )
        )
        story.append(table)

    meta_style = styles["Normal"].clone("ReportMeta", fontSize=9, textColor=colors.grey)
    story.append(Spacer(1, 12))
    story.append(Paragraph(f"Generated at: {_pdf_text(report.generated_at)}", meta_style))
    story.append(Paragraph(f"Generated by: {_pdf_text(report.generated_by)}", meta_style))
    story.append(Paragraph(f"Applied filters: {_pdf_text(report.filters)}", meta_style))
    story.append(Paragraph(f"Total records: {report.total_records}", meta_style))

    doc.build(story, canvasmaker=_NumberedCanvas)
    return buffer.getvalue()


def _pdf_text(value: Any) -> str:
    # Paragraph parses a mini-markup; escape the characters it treats specially.
    s = "" if value is None else str(value)
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


# ---------- XLSX ----------
def build_xlsx(report: ReportData) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Report"

    ws.append(report.headers)
    for row in report.data:
        ws.append([_xlsx_value(v) for v in row])

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color=HEADER_HEX, end_color=HEADER_HEX, fill_type="solid")
    centered = Alignment(horizontal="center", vertical="center")
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = centered

    for col_idx, width in enumerate(column_widths(report.headers, report.data), start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width
    ws.freeze_panes = "A2"

    ws_meta = wb.create_sheet("Information")
    ws_meta.append(["Report information"])
    ws_meta.append(["Title", report.title])
    ws_meta.append(["Generated at", report.generated_at])
    ws_meta.append(["Generated by", report.generated_by])
    ws_meta.append(["Applied filters", report.filters])
    ws_meta.append(["Total records", report.total_records])
    ws_meta["A1"].font = Font(bold=True)
    ws_meta.column_dimensions["A"].width = 18
    ws_meta.column_dimensions["B"].width = 60

    out = BytesIO()
    wb.save(out)
    return out.getvalue()


def _xlsx_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value


# ---------- Entry points ----------
def generate_filtered_report(
    title: str,
    rows: Sequence[Mapping[str, Any]],
    columns: Sequence[Column],
    filters: Mapping[str, Any] | None = None,
    fmt: str = "pdf",
    *,
    generated_by: str = DEFAULT_GENERATED_BY,
    now: datetime | None = None,
) -> GeneratedReport:
    """
    Build a PDF or XLSX export of `rows`. `fmt` is "pdf" (default) or
    "excel"/"xlsx"; anything else raises ValueError.
    """
    fmt = (fmt or "pdf").strip().lower()
    if fmt not in ("pdf", "excel", "xlsx"):
        raise ValueError(f"Unsupported report format: {fmt}")

    now = now or datetime.now()
    headers, data = format_rows_for_report(rows, columns)
    report = ReportData(
        title=title,
        headers=headers,
        data=data,
        generated_at=now.strftime("%d/%m/%Y %H:%M:%S"),
        generated_by=generated_by,
        filters=describe_filters(filters),
        total_records=len(rows),
    )
    metadata = {
        "generated_at": report.generated_at,
        "generated_by": report.generated_by,
        "filters": report.filters,
        "total_records": report.total_records,
    }
    if fmt == "pdf":
        return GeneratedReport(build_pdf(report), report_filename(title, "pdf", now.date()), PDF_MIMETYPE, metadata)
    return GeneratedReport(build_xlsx(report), report_filename(title, "xlsx", now.date()), XLSX_MIMETYPE, metadata)


def send_report(report: GeneratedReport):
    return send_file(
        BytesIO(report.content),
        mimetype=report.mimetype,
        as_attachment=True,
        download_name=report.filename,
    )
