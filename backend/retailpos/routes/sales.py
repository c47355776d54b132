# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""Sales API routes"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import sales_service
from ..services.errors import PosError
from ..validation import parse_sale_request
from ..decorators import require_actor
from retailpos.time_utils import parse_iso_datetime, is_date_only, end_of_day


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_actor
def create_sale_route():
    """
    Complete a checkout in one request.

    Body: {"lines": [...], "payments": [...], "customer_id"?, "notes"?, "counter"?}
    Returns 201 {"invoice_number", "sale_id"}.
    """
    try:
        sale_request = parse_sale_request(request.get_json(silent=True))

        result = sales_service.create_sale(
            lines=sale_request.lines,
            payments=sale_request.payments,
            actor=g.actor,
            customer_id=sale_request.customer_id,
            notes=sale_request.notes,
            counter=sale_request.counter,
        )

        return jsonify({
            "invoice_number": result.invoice_number,
            "sale_id": result.sale_id,
        }), 201

    except PosError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
@require_actor
def get_sale_route(sale_id: int):
    """Sale with lines and payments (receipt data)."""
    try:
        sale = sales_service.get_sale(sale_id)
        return jsonify({"sale": sale.to_dict(include_lines=True)}), 200
    except PosError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code


@sales_bp.get("")
@require_actor
def list_sales_route():
    """
    Query params: start_date, end_date (ISO-8601; a bare date end is
    inclusive to end of day), cashier_id, customer_id, status, page, limit.
    """
    start_raw = request.args.get("start_date")
    end_raw = request.args.get("end_date")
    try:
        start_dt = parse_iso_datetime(start_raw)
        end_dt = parse_iso_datetime(end_raw)
    except ValueError:
        return jsonify({"error": "start_date and end_date must be ISO-8601 datetimes"}), 400
    if end_dt is not None and is_date_only(end_raw):
        end_dt = end_of_day(end_dt)

    result = sales_service.list_sales(
        start=start_dt,
        end=end_dt,
        cashier_id=request.args.get("cashier_id"),
        customer_id=request.args.get("customer_id", type=int),
        status=request.args.get("status"),
        page=request.args.get("page", type=int),
        limit=request.args.get("limit", type=int),
    )
    return jsonify(result), 200
