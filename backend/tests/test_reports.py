# Overview: Pytest coverage for reports; time windows, CSV quoting and print-ready HTML downloads.

import csv
import io
from datetime import datetime

import pytest

from subsidiary_hub.models import InventoryItem
from subsidiary_hub.services import reporting_service, sales_service
from subsidiary_hub.services.reporting_service import ReportError, resolve_window


@pytest.fixture
def comma_item(db_session, sub_a):
    item = InventoryItem(
        subsidiary_id=sub_a.id,
        sku="ALPHA-COMMA",
        name='Widget, large "XL"',
        category="Misc",
        cost_price=4.0,
        sale_price=10.0,
        quantity=20,
    )
    db_session.add(item)
    db_session.commit()
    return item


class TestResolveWindow:

    def test_week_month_year(self):
        now = datetime(2026, 3, 31, 15, 0)

        week = resolve_window(time_range="week", now=now)
        assert week.start == datetime(2026, 3, 24, 15, 0)
        assert week.end.date() == now.date()
        assert week.label == "week"

        # Month back from March 31 clamps to the end of February
        month = resolve_window(now=now)
        assert month.start == datetime(2026, 2, 28, 15, 0)
        assert month.label == "month"

        year = resolve_window(time_range="year", now=now)
        assert year.start == datetime(2025, 3, 31, 15, 0)

    def test_custom_range_covers_whole_end_day(self):
        window = resolve_window(start_date="2026-01-01", end_date="2026-01-31")
        assert window.label == "custom"
        assert window.start == datetime(2026, 1, 1)
        assert window.end == datetime(2026, 1, 31, 23, 59, 59, 999999)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"time_range": "decade"},
            {"start_date": "2026-01-01"},
            {"start_date": "2026-02-01", "end_date": "2026-01-01"},
            {"start_date": "yesterday", "end_date": "2026-01-01"},
        ],
    )
    def test_invalid_windows(self, kwargs):
        with pytest.raises(ReportError):
            resolve_window(**kwargs)


class TestCsv:

    def test_quoting_round_trips(self, app, db_session, sub_a, comma_item, staff_a):
        sales_service.create_sale(sub_a.id, item_id=comma_item.id, quantity=3, user_id=staff_a.id)

        report = reporting_service.build_report("sales", resolve_window(time_range="week"))
        text = reporting_service.to_csv(report)

        rows = list(csv.reader(io.StringIO(text)))
        assert rows[0] == reporting_service.SALES_COLUMNS
        assert len(rows) == 2
        assert rows[1][1:] == ["Alpha Retail", "staff_a", 'Widget, large "XL"', "3", "$10.00", "$30.00"]
        assert '"Widget, large ""XL"""' in text

    def test_empty_report_has_header_only(self, db_session):
        report = reporting_service.build_report("activity", resolve_window(time_range="week"))
        assert reporting_service.to_csv(report) == "Date,Subsidiary,User,Action,Details\n"


class TestReportEndpoints:

    def test_sales_csv_download(self, client, sub_a, item_a, staff_a_headers, mhc_headers):
        client.post(f"/api/subsidiaries/{sub_a.id}/sales",
                    json={"itemId": item_a.id, "quantity": 2}, headers=staff_a_headers)

        resp = client.get("/api/reports/sales?format=csv&timeRange=week", headers=mhc_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert resp.headers["Content-Disposition"] == "attachment; filename=sales-report-week.csv"

        rows = list(csv.reader(io.StringIO(resp.get_data(as_text=True))))
        assert rows[1][3:] == ["Desk Lamp", "2", "$25.00", "$50.00"]

    def test_json_is_the_default(self, client, item_a, item_b, mhc_headers):
        resp = client.get("/api/reports/inventory", headers=mhc_headers)
        assert resp.status_code == 200
        assert {r["SKU"] for r in resp.json} == {"ALPHA-001", "BETA-001"}

    def test_subsidiary_filter(self, client, sub_b, item_a, item_b, mhc_headers):
        resp = client.get(f"/api/reports/inventory?subsidiaryId={sub_b.id}", headers=mhc_headers)
        assert resp.status_code == 200
        assert resp.json == [{
            "Subsidiary": "Beta Wholesale",
            "Product Name": "Office Chair",
            "SKU": "BETA-001",
            "Quantity": 5,
            "Sale Price": "$150.00",
            "Total Value": "$750.00",
        }]

    def test_pdf_format_is_printable_html(self, client, item_a, mhc_headers):
        resp = client.get("/api/reports/inventory?format=pdf", headers=mhc_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "text/html"
        assert resp.headers["Content-Disposition"] == "attachment; filename=inventory-report-month.html"
        body = resp.get_data(as_text=True)
        assert "Inventory Report" in body
        assert "Desk Lamp" in body

    def test_custom_range_outside_sales(self, client, sub_a, item_a, staff_a_headers, mhc_headers):
        client.post(f"/api/subsidiaries/{sub_a.id}/sales",
                    json={"itemId": item_a.id, "quantity": 1}, headers=staff_a_headers)

        resp = client.get(
            "/api/reports/sales?startDate=2020-01-01&endDate=2020-01-31&format=csv", headers=mhc_headers
        )
        assert resp.status_code == 200
        assert resp.headers["Content-Disposition"] == "attachment; filename=sales-report-custom.csv"
        assert resp.get_data(as_text=True) == ",".join(reporting_service.SALES_COLUMNS) + "\n"

    @pytest.mark.parametrize(
        "query,message",
        [
            ("/api/reports/payroll", "Invalid report type"),
            ("/api/reports/sales?format=xlsx", "Invalid report format"),
            ("/api/reports/sales?timeRange=decade", "Invalid time range. Must be one of: week, month, year"),
            ("/api/reports/sales?subsidiaryId=abc", "subsidiaryId must be an integer"),
        ],
    )
    def test_bad_parameters(self, client, mhc_headers, query, message):
        resp = client.get(query, headers=mhc_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == message

    def test_subsidiary_report_is_scoped(self, client, sub_a, sub_b, item_a, item_b,
                                         staff_a_headers, staff_b_headers):
        resp = client.get(f"/api/subsidiaries/{sub_a.id}/reports/inventory", headers=staff_a_headers)
        assert resp.status_code == 200
        assert [r["SKU"] for r in resp.json] == ["ALPHA-001"]

        denied = client.get(f"/api/subsidiaries/{sub_a.id}/reports/inventory", headers=staff_b_headers)
        assert denied.status_code == 403

    def test_activity_report_resolves_names(self, client, mhc_headers):
        client.post("/api/subsidiaries", json={
            "name": "Gamma", "taxId": "T-G", "email": "g@x.io", "phoneNumber": "5559876543",
        }, headers=mhc_headers)

        resp = client.get("/api/reports/activity", headers=mhc_headers)
        assert resp.status_code == 200
        assert len(resp.json) == 1
        assert resp.json[0]["User"] == "mhc_root"
        assert resp.json[0]["Action"] == "CREATE_SUBSIDIARY"
        assert resp.json[0]["Subsidiary"] == "Gamma"
