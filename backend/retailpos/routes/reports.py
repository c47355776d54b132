# Overview: Flask API routes for sales reports; parses the date range and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..services import report_service
from ..services.errors import PosError
from ..decorators import require_actor
from retailpos.time_utils import parse_iso_datetime, is_date_only, end_of_day


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _parse_range():
    """start_date and end_date are required; a bare end date runs to end of day."""
    start_raw = request.args.get("start_date")
    end_raw = request.args.get("end_date")
    if not start_raw or not end_raw:
        return None, None, (jsonify({"error": "start_date and end_date are required"}), 400)
    try:
        start_dt = parse_iso_datetime(start_raw)
        end_dt = parse_iso_datetime(end_raw)
    except ValueError:
        return None, None, (jsonify({"error": "start_date and end_date must be ISO-8601 datetimes"}), 400)
    if is_date_only(end_raw):
        end_dt = end_of_day(end_dt)
    return start_dt, end_dt, None


@reports_bp.get("/overview")
@require_actor
def sales_overview_route():
    start, end, error = _parse_range()
    if error:
        return error
    try:
        return jsonify(report_service.sales_overview(start, end)), 200
    except PosError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code


@reports_bp.get("/payment-methods")
@require_actor
def payment_methods_route():
    start, end, error = _parse_range()
    if error:
        return error
    try:
        return jsonify({"items": report_service.payment_method_summary(start, end)}), 200
    except PosError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code


@reports_bp.get("/top-products")
@require_actor
def top_products_route():
    start, end, error = _parse_range()
    if error:
        return error
    limit = request.args.get("limit", 10, type=int)
    try:
        return jsonify({"items": report_service.top_products(start, end, limit=limit)}), 200
    except PosError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code


@reports_bp.get("/cashiers")
@require_actor
def cashier_performance_route():
    start, end, error = _parse_range()
    if error:
        return error
    try:
        return jsonify({"items": report_service.cashier_performance(start, end)}), 200
    except PosError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code
