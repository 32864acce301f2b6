# Overview: Service-layer operations for reporting; flat sales/inventory/activity datasets and their CSV/HTML forms.

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from flask import render_template

from ..extensions import db
from ..models import ActivityLog, InventoryItem, Sale, Subsidiary, User
from ..persistence import execute_query
from ..time_utils import end_of_day, parse_iso_datetime, shift_months, to_date_label, utcnow
from ..validation import ValidationError


REPORT_TYPES = ("sales", "inventory", "activity")
REPORT_FORMATS = ("json", "csv", "pdf")
TIME_RANGES = ("week", "month", "year")
DEFAULT_TIME_RANGE = "month"

SALES_COLUMNS = ["Date", "Subsidiary", "Sold By", "Item", "Quantity", "Sale Price", "Total"]
INVENTORY_COLUMNS = ["Subsidiary", "Product Name", "SKU", "Quantity", "Sale Price", "Total Value"]
ACTIVITY_COLUMNS = ["Date", "Subsidiary", "User", "Action", "Details"]


class ReportError(ValidationError):
    """Raised when report parameters are invalid."""
    pass


@dataclass(frozen=True)
class ReportWindow:
    start: datetime
    end: datetime
    label: str  # timeRange name, or "custom" for explicit dates


@dataclass
class Report:
    report_type: str
    window: ReportWindow
    columns: list[str]
    rows: list[dict] = field(default_factory=list)

    @property
    def title(self) -> str:
        return f"{self.report_type.capitalize()} Report"

    def filename(self, extension: str) -> str:
        return f"{self.report_type}-report-{self.window.label}.{extension}"


def _money(value: float | None) -> str:
    return f"${(value or 0):.2f}"


def _parse_date(value: str, label: str) -> datetime:
    try:
        parsed = parse_iso_datetime(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ReportError(f"Invalid {label}: expected an ISO-8601 date")
    return parsed


def resolve_window(
    *,
    time_range: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    now: datetime | None = None,
) -> ReportWindow:
    """
    Explicit startDate/endDate win over timeRange; the end date is
    extended to the end of its day. Predefined ranges end at the end of
    today and reach back one week, one calendar month or one year.
    """
    if start_date or end_date:
        if not (start_date and end_date):
            raise ReportError("Both startDate and endDate are required for a custom range")
        start = _parse_date(start_date, "startDate")
        end = end_of_day(_parse_date(end_date, "endDate"))
        if start > end:
            raise ReportError("startDate must not be after endDate")
        return ReportWindow(start=start, end=end, label="custom")

    now = now or utcnow()
    time_range = time_range or DEFAULT_TIME_RANGE
    if time_range == "week":
        start = now - timedelta(days=7)
    elif time_range == "month":
        start = shift_months(now, -1)
    elif time_range == "year":
        start = shift_months(now, -12)
    else:
        raise ReportError(f"Invalid time range. Must be one of: {', '.join(TIME_RANGES)}")
    return ReportWindow(start=start, end=end_of_day(now), label=time_range)


def _name_maps() -> tuple[dict[int, str], dict[int, str]]:
    subsidiaries = {s.id: s.name for s in db.session.query(Subsidiary.id, Subsidiary.name)}
    users = {u.id: u.username for u in db.session.query(User.id, User.username)}
    return subsidiaries, users


def _sales_rows(window: ReportWindow, subsidiary_id: int | None) -> list[dict]:
    subsidiaries, users = _name_maps()
    items = {i.id: i.name for i in db.session.query(InventoryItem.id, InventoryItem.name)}

    query = db.session.query(Sale).filter(Sale.timestamp >= window.start, Sale.timestamp <= window.end)
    if subsidiary_id is not None:
        query = query.filter(Sale.subsidiary_id == subsidiary_id)

    rows = []
    for sale in query.order_by(Sale.timestamp.asc(), Sale.id.asc()):
        rows.append({
            "Date": to_date_label(sale.timestamp),
            "Subsidiary": subsidiaries.get(sale.subsidiary_id, "Unknown"),
            "Sold By": users.get(sale.user_id, "Unknown"),
            "Item": items.get(sale.item_id, "Unknown"),
            "Quantity": sale.quantity,
            "Sale Price": _money(sale.sale_price),
            "Total": _money(sale.total),
        })
    return rows


def _inventory_rows(subsidiary_id: int | None) -> list[dict]:
    # Current stock; the time window does not apply
    subsidiaries, _ = _name_maps()

    query = db.session.query(InventoryItem)
    if subsidiary_id is not None:
        query = query.filter(InventoryItem.subsidiary_id == subsidiary_id)

    rows = []
    for item in query.order_by(InventoryItem.subsidiary_id.asc(), InventoryItem.name.asc(), InventoryItem.id.asc()):
        rows.append({
            "Subsidiary": subsidiaries.get(item.subsidiary_id, "Unknown"),
            "Product Name": item.name,
            "SKU": item.sku,
            "Quantity": item.quantity,
            "Sale Price": _money(item.sale_price),
            "Total Value": _money(item.quantity * item.sale_price),
        })
    return rows


def _activity_rows(window: ReportWindow, subsidiary_id: int | None) -> list[dict]:
    subsidiaries, users = _name_maps()

    query = db.session.query(ActivityLog).filter(
        ActivityLog.timestamp >= window.start, ActivityLog.timestamp <= window.end
    )
    if subsidiary_id is not None:
        query = query.filter(ActivityLog.subsidiary_id == subsidiary_id)

    rows = []
    for log in query.order_by(ActivityLog.timestamp.asc(), ActivityLog.id.asc()):
        rows.append({
            "Date": to_date_label(log.timestamp),
            "Subsidiary": subsidiaries.get(log.subsidiary_id, "MHC") if log.subsidiary_id else "MHC",
            "User": users.get(log.user_id, "System"),
            "Action": log.action,
            "Details": log.details or "",
        })
    return rows


def build_report(report_type: str, window: ReportWindow, *, subsidiary_id: int | None = None) -> Report:
    if report_type == "sales":
        return Report(report_type, window, SALES_COLUMNS,
                      execute_query(lambda: _sales_rows(window, subsidiary_id), "Build sales report"))
    if report_type == "inventory":
        return Report(report_type, window, INVENTORY_COLUMNS,
                      execute_query(lambda: _inventory_rows(subsidiary_id), "Build inventory report"))
    if report_type == "activity":
        return Report(report_type, window, ACTIVITY_COLUMNS,
                      execute_query(lambda: _activity_rows(window, subsidiary_id), "Build activity report"))
    raise ReportError("Invalid report type")


def to_csv(report: Report) -> str:
    """
    Header row plus one line per row. Fields containing commas, quotes
    or newlines are quoted (csv.QUOTE_MINIMAL).
    """
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(report.columns)
    for row in report.rows:
        writer.writerow(["" if row.get(col) is None else row.get(col) for col in report.columns])
    return output.getvalue()


def to_html(report: Report, *, generated_at: datetime | None = None) -> str:
    """Print-ready HTML document (the "pdf" format)."""
    return render_template(
        "report.html",
        report=report,
        generated_on=to_date_label(generated_at or utcnow()),
        range_start=to_date_label(report.window.start),
        range_end=to_date_label(report.window.end),
    )
