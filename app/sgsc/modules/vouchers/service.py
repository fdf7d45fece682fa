from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from app.sgsc.audit import record_event
from app.sgsc.constants import CURRENCIES, PAYMENT_METHODS, VOUCHER_STATUSES, VOUCHER_TYPES, codes, label_for
from app.sgsc.forms import (
    DATE,
    DECIMAL,
    FILE,
    REF,
    SELECT,
    TEXT,
    TEXTAREA,
    Field,
    apply_payload,
    clean_str,
    filter_date,
    filter_id,
    parse_decimal,
    validate_fields,
)
from app.sgsc.reports import Column, format_currency, format_date

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session
    from app.sgsc.models import User
    from app.sgsc.modules.vouchers.models import Voucher


FIELDS = (
    Field("number", "Voucher number", TEXT, help="Leave blank to generate one"),
    Field("issue_date", "Issue date", DATE, required=True),
    Field("due_date", "Due date", DATE),
    Field("voucher_type", "Type", SELECT, required=True, choices=VOUCHER_TYPES),
    Field("concept", "Concept", TEXTAREA, required=True),
    Field("amount", "Amount", DECIMAL, required=True),
    Field("currency", "Currency", SELECT, required=True, choices=CURRENCIES),
    Field("requester_id", "Requested by", REF, required=True, options="personnel"),
    Field("approver_id", "Authorized by", REF, options="personnel"),
    Field("status", "Status", SELECT, required=True, choices=VOUCHER_STATUSES),
    Field("payment_method", "Payment method", SELECT, choices=PAYMENT_METHODS),
    Field("receipt_number", "Receipt number"),
    Field("payment_date", "Payment date", DATE),
    Field("observations", "Observations", TEXTAREA),
    Field("attachment", "Attachment", FILE),
)

FILTERS = (
    Field("date_from", "Issued from", DATE),
    Field("date_to", "Issued to", DATE),
    Field("voucher_type", "Type", SELECT, choices=VOUCHER_TYPES),
    Field("status", "Status", SELECT, choices=VOUCHER_STATUSES),
    Field("requester_id", "Requested by", REF, options="personnel"),
)

COLUMNS = (
    Column("number", "Number"),
    Column("issue_date", "Issued", format=format_date),
    Column("due_date", "Due", format=format_date),
    Column("voucher_type", "Type", format=lambda v: label_for(VOUCHER_TYPES, v)),
    Column("concept", "Concept"),
    Column("amount", "Amount"),
    Column("requester", "Requested by"),
    Column("approver", "Authorized by"),
    Column("status", "Status", format=lambda v: label_for(VOUCHER_STATUSES, v)),
    Column("payment_method", "Payment", format=lambda v: label_for(PAYMENT_METHODS, v)),
)

REPORT_TITLE = "Voucher Report"


def generate_voucher_number(now: datetime | None = None) -> str:
    """VCH-YYYYMMDD-NNNN, NNNN being the last four digits of the epoch milliseconds."""
    now = now or datetime.now()
    millis = str(int(now.timestamp() * 1000))
    return f"VCH-{now:%Y%m%d}-{millis[-4:]}"


def validate_voucher_payload(s: "Session", payload: dict, *, voucher_id: int | None = None) -> list[str]:
    from app.sgsc.modules.vouchers.models import Voucher

    errors = validate_fields(FIELDS, payload)
    try:
        amount = parse_decimal(payload.get("amount"))
    except ValueError:
        amount = None
    if amount is not None and amount <= 0:
        errors.append("Amount must be greater than zero.")

    number = clean_str(payload.get("number"))
    if number:
        q = s.query(Voucher).filter(Voucher.number == number)
        if voucher_id is not None:
            q = q.filter(Voucher.id != voucher_id)
        if q.first() is not None:
            errors.append("A voucher with this number already exists.")
    return errors


def create_voucher(
    s: "Session", payload: dict, user: "User", *, attachment_key: str | None = None, now: datetime | None = None
) -> "Voucher":
    from app.sgsc.modules.vouchers.models import Voucher

    payload = {**payload, "number": clean_str(payload.get("number")) or generate_voucher_number(now)}
    voucher = Voucher(attachment_key=attachment_key)
    apply_payload(voucher, FIELDS, payload)
    s.add(voucher)
    s.flush()
    record_event(
        s,
        actor=user,
        action="voucher.create",
        entity_type="Voucher",
        entity_id=str(voucher.id),
        metadata={"number": voucher.number, "amount": voucher.amount, "currency": voucher.currency},
    )
    return voucher


def update_voucher(
    s: "Session", voucher: "Voucher", payload: dict, user: "User", *, attachment_key: str | None = None
) -> "Voucher":
    payload = {**payload, "number": clean_str(payload.get("number")) or voucher.number}
    changes = apply_payload(voucher, FIELDS, payload)
    if attachment_key:
        changes["attachment"] = {"old": voucher.attachment_key, "new": attachment_key}
        voucher.attachment_key = attachment_key
    if changes:
        record_event(
            s,
            actor=user,
            action="voucher.update",
            entity_type="Voucher",
            entity_id=str(voucher.id),
            metadata={"number": voucher.number, "changes": changes},
        )
    return voucher


def delete_voucher(s: "Session", voucher: "Voucher", user: "User") -> None:
    record_event(
        s,
        actor=user,
        action="voucher.delete",
        entity_type="Voucher",
        entity_id=str(voucher.id),
        metadata={"number": voucher.number, "amount": voucher.amount, "currency": voucher.currency},
    )
    s.delete(voucher)
    s.flush()


def filtered_query(s: "Session", filters: dict[str, str]) -> "Query":
    from app.sgsc.modules.vouchers.models import Voucher

    q = s.query(Voucher)
    start = filter_date(filters.get("date_from"))
    if start:
        q = q.filter(Voucher.issue_date >= start)
    end = filter_date(filters.get("date_to"))
    if end:
        q = q.filter(Voucher.issue_date <= end)
    if filters.get("voucher_type"):
        q = q.filter(Voucher.voucher_type == filters["voucher_type"])
    if filters.get("status"):
        q = q.filter(Voucher.status == filters["status"])
    if filter_id(filters.get("requester_id")):
        q = q.filter(Voucher.requester_id == filter_id(filters["requester_id"]))
    return q.order_by(Voucher.issue_date.desc(), Voucher.created_at.desc(), Voucher.id.desc())


def voucher_totals(vouchers) -> dict[str, dict[str, Decimal]]:
    """
    Amount totals per currency: {"PEN": {"total": ..., "pendiente": ..., ...}}.
    Every status key is present for each currency that appears.
    """
    totals: dict[str, dict[str, Decimal]] = {}
    for v in vouchers:
        if v.currency not in totals:
            totals[v.currency] = {"total": Decimal("0"), **{code: Decimal("0") for code in codes(VOUCHER_STATUSES)}}
        bucket = totals[v.currency]
        amount = Decimal(v.amount or 0)
        bucket["total"] += amount
        if v.status in bucket:
            bucket[v.status] += amount
    return totals


def totals_summary(totals: dict[str, dict[str, Decimal]]) -> list[tuple[str, str]]:
    """Label/value lines for the list page header."""
    out: list[tuple[str, str]] = []
    for currency in sorted(totals):
        bucket = totals[currency]
        out.append((f"Total {currency}", format_currency(bucket["total"], currency)))
        for code, label in VOUCHER_STATUSES:
            if bucket[code]:
                out.append((f"{label} {currency}", format_currency(bucket[code], currency)))
    return out


def voucher_row(v: "Voucher") -> dict[str, Any]:
    return {
        "id": v.id,
        "number": v.number,
        "issue_date": v.issue_date,
        "due_date": v.due_date,
        "voucher_type": v.voucher_type,
        "concept": v.concept,
        "amount": format_currency(v.amount, v.currency),
        "requester": v.requester.full_name if v.requester else "",
        "approver": v.approver.full_name if v.approver else "",
        "status": v.status,
        "payment_method": v.payment_method,
    }


def voucher_detail(v: "Voucher") -> list[tuple[str, Any]]:
    return [
        ("Number", v.number),
        ("Issue date", format_date(v.issue_date)),
        ("Due date", format_date(v.due_date)),
        ("Type", label_for(VOUCHER_TYPES, v.voucher_type)),
        ("Concept", v.concept),
        ("Amount", format_currency(v.amount, v.currency)),
        ("Requested by", v.requester.full_name if v.requester else ""),
        ("Authorized by", v.approver.full_name if v.approver else ""),
        ("Status", label_for(VOUCHER_STATUSES, v.status)),
        ("Payment method", label_for(PAYMENT_METHODS, v.payment_method)),
        ("Receipt number", v.receipt_number or ""),
        ("Payment date", format_date(v.payment_date)),
        ("Observations", v.observations or ""),
    ]
