# Overview: Flask API routes for reports; sales, inventory and activity datasets as JSON, CSV or print-ready HTML.

"""
Report routes.

Query params (both endpoints):
- format: json (default) | csv | pdf (pdf is an HTML document styled for
  print-to-PDF)
- timeRange: week | month | year (default month), or
- startDate + endDate: ISO dates; endDate is extended to the end of day

GET /api/reports/<type> is MHC-wide and accepts an optional subsidiaryId
filter. GET /api/subsidiaries/<subsidiary_id>/reports/<type> is limited to
one subsidiary.
"""
from flask import Blueprint, Response, jsonify, request

from ..decorators import require_mhc_admin, require_permission, require_subsidiary_access
from ..permissions import Action
from ..services import reporting_service
from ..services.reporting_service import ReportError

reports_bp = Blueprint("reports", __name__, url_prefix="/api")


def _attachment(body: str, mimetype: str, filename: str) -> Response:
    response = Response(body, mimetype=mimetype)
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    return response


def _render_report(report_type: str, subsidiary_id: int | None):
    if report_type not in reporting_service.REPORT_TYPES:
        return jsonify({"message": "Invalid report type"}), 400

    fmt = (request.args.get("format") or "json").lower()
    if fmt not in reporting_service.REPORT_FORMATS:
        return jsonify({"message": "Invalid report format"}), 400

    try:
        window = reporting_service.resolve_window(
            time_range=request.args.get("timeRange"),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        report = reporting_service.build_report(report_type, window, subsidiary_id=subsidiary_id)
    except ReportError as e:
        return jsonify({"message": str(e)}), 400

    if fmt == "csv":
        return _attachment(reporting_service.to_csv(report), "text/csv", report.filename("csv"))
    if fmt == "pdf":
        return _attachment(reporting_service.to_html(report), "text/html", report.filename("html"))
    return jsonify(report.rows), 200


@reports_bp.get("/reports/<report_type>")
@require_mhc_admin
@require_permission(Action.VIEW_REPORTS)
def mhc_report(report_type: str):
    subsidiary_id = request.args.get("subsidiaryId")
    if subsidiary_id is not None:
        try:
            subsidiary_id = int(subsidiary_id)
        except ValueError:
            return jsonify({"message": "subsidiaryId must be an integer"}), 400
    return _render_report(report_type, subsidiary_id)


@reports_bp.get("/subsidiaries/<int:subsidiary_id>/reports/<report_type>")
@require_subsidiary_access
@require_permission(Action.VIEW_SUBSIDIARY_REPORTS)
def subsidiary_report(subsidiary_id: int, report_type: str):
    return _render_report(report_type, subsidiary_id)
