import re
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO

import pytest
from openpyxl import load_workbook
from reportlab import rl_config

from app.sgsc.reports import (
    Column,
    column_widths,
    describe_filters,
    format_boolean,
    format_currency,
    format_date,
    format_datetime,
    format_rows_for_report,
    format_status,
    formatters,
    generate_filtered_report,
    report_filename,
)


def test_formatter_output_replaces_raw_value():
    rows = [{"a": 1, "b": "x"}]
    columns = [Column("a"), Column("b", format=lambda v: "#" + v)]
    headers, data = format_rows_for_report(rows, columns)
    assert headers == ["a", "b"]
    assert data == [[1, "#x"]]


def test_row_lengths_match_columns():
    rows = [{"a": 1}, {"a": 2, "b": None, "extra": "ignored"}]
    columns = [Column("a", label="A"), Column("b", header="Bee"), Column("c")]
    headers, data = format_rows_for_report(rows, columns)
    assert headers == ["A", "Bee", "c"]
    assert all(len(r) == 3 for r in data)
    assert data[1] == [2, "", ""]


def test_label_wins_over_header():
    assert Column("k", label="Label", header="Header").heading == "Label"


def test_column_widths_are_clamped():
    headers = ["Id", "Description", "Notes"]
    data = [[1, "short", "n" * 80]]
    assert column_widths(headers, data) == [10, 13, 50]


def test_describe_filters():
    assert describe_filters({}) == "None"
    assert describe_filters(None) == "None"
    assert describe_filters({"status": "pendiente", "q": "", "sector_id": None}) == "status: pendiente"


def test_report_filename_replaces_whitespace():
    assert report_filename("Incident Report", "pdf", date(2024, 3, 5)) == "Incident_Report_2024-03-05.pdf"


def test_common_formatters():
    assert format_date(date(2024, 3, 5)) == "05/03/2024"
    assert format_date("2024-03-05") == "05/03/2024"
    assert format_date(None) == ""
    assert format_currency(Decimal("1234.5")) == "S/ 1,234.50"
    assert format_currency(10, "USD") == "$ 10.00"
    assert format_boolean(True) == "Yes"
    assert format_boolean(0) == "No"
    assert format_status(None) == ""
    assert format_status("unknown_code") == "unknown_code"


def test_formatter_registry():
    assert set(formatters) == {"date", "datetime", "currency", "boolean", "status"}
    assert formatters["datetime"](datetime(2024, 3, 5, 9, 7)) == "05/03/2024 09:07"
    assert format_datetime(date(2024, 3, 5)) == "05/03/2024"
    assert format_datetime("not a date") == "not a date"
    assert formatters["status"]("pendiente") == "Pending"


def _sample():
    rows = [
        {"id": 1, "date": date(2024, 3, 5), "amount": Decimal("12.50"), "status": "pendiente"},
        {"id": 2, "date": date(2024, 3, 6), "amount": Decimal("7"), "status": "aprobado"},
    ]
    columns = [
        Column("id", "ID"),
        Column("date", "Date", format=format_date),
        Column("amount", "Amount"),
        Column("status", "Status", format=format_status),
    ]
    return rows, columns


def test_pdf_report():
    rows, columns = _sample()
    now = datetime(2024, 3, 7, 10, 30, 0)
    report = generate_filtered_report("Voucher Report", rows, columns, {"status": "pendiente"}, "pdf", now=now)
    assert report.content.startswith(b"%PDF")
    assert report.filename == "Voucher_Report_2024-03-07.pdf"
    assert report.mimetype == "application/pdf"
    assert report.metadata["total_records"] == 2
    assert report.metadata["filters"] == "status: pendiente"
    assert report.metadata["generated_at"] == "07/03/2024 10:30:00"
    assert report.metadata["generated_by"] == "SGSC System"


def test_xlsx_report_sheets():
    rows, columns = _sample()
    now = datetime(2024, 3, 7, 10, 30, 0)
    report = generate_filtered_report("Voucher Report", rows, columns, fmt="excel", generated_by="ops@sgsc.local", now=now)
    assert report.filename == "Voucher_Report_2024-03-07.xlsx"

    wb = load_workbook(BytesIO(report.content))
    assert wb.sheetnames == ["Report", "Information"]

    ws = wb["Report"]
    assert [c.value for c in ws[1]] == ["ID", "Date", "Amount", "Status"]
    assert ws.max_row == 3
    assert ws["B2"].value == "05/03/2024"
    assert ws["C2"].value == 12.5

    info = {r[0]: r[1] for r in wb["Information"].iter_rows(min_row=2, values_only=True)}
    assert info["Title"] == "Voucher Report"
    assert info["Generated by"] == "ops@sgsc.local"
    assert info["Applied filters"] == "None"
    assert info["Total records"] == 2


def test_empty_rows_still_produce_a_document():
    report = generate_filtered_report("Empty", [], [Column("a")], fmt="xlsx", now=datetime(2024, 1, 1))
    wb = load_workbook(BytesIO(report.content))
    assert wb["Report"].max_row == 1
    assert report.metadata["total_records"] == 0


def test_formatter_errors_propagate():
    def broken(value):
        raise KeyError(value)

    columns = [Column("a"), Column("b", format=broken)]
    with pytest.raises(KeyError):
        format_rows_for_report([{"a": 1, "b": "x"}], columns)
    with pytest.raises(KeyError):
        generate_filtered_report("Broken", [{"a": 1, "b": "x"}], columns, fmt="pdf")


def test_long_pdf_repeats_header_and_numbers_every_page(monkeypatch):
    # plain page streams so the drawn text can be searched
    monkeypatch.setattr(rl_config, "pageCompression", 0)
    monkeypatch.setattr(rl_config, "useA85", 0)
    rows = [{"code": f"R{i:04d}", "note": "routine round"} for i in range(400)]
    columns = [Column("code", "Refcode"), Column("note", "Note")]
    report = generate_filtered_report("Long Report", rows, columns, now=datetime(2024, 3, 7))

    pages = re.findall(rb"Page (\d+) of (\d+)", report.content)
    totals = {int(total) for _, total in pages}
    assert len(totals) == 1
    total = totals.pop()
    assert total > 1
    assert sorted(int(i) for i, _ in pages) == list(range(1, total + 1))
    assert report.content.count(b"(Refcode)") == total


def test_unknown_format_rejected():
    with pytest.raises(ValueError):
        generate_filtered_report("X", [], [Column("a")], fmt="csv")
