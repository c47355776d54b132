# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import inventory_service, catalog_service
from ..services.errors import PosError
from ..validation import parse_adjustment_request
from ..decorators import require_actor
from retailpos.time_utils import parse_iso_datetime, is_date_only, end_of_day

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/adjust")
@require_actor
def adjust_inventory_route():
    """
    Manual stock movement.

    Body: {"product_id", "action", "quantity", "reason", "cost_price_cents"?}
    action: stock_in | stock_out | adjustment | damage | expired
    """
    try:
        adjustment = parse_adjustment_request(request.get_json(silent=True))
        movement = inventory_service.adjust_inventory(adjustment, g.actor)
        return jsonify({
            "quantity_before": movement.quantity_before,
            "quantity_after": movement.quantity_after,
        }), 200
    except PosError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to adjust inventory")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/logs")
@require_actor
def list_logs_route():
    start_raw = request.args.get("start_date")
    end_raw = request.args.get("end_date")
    try:
        start_dt = parse_iso_datetime(start_raw)
        end_dt = parse_iso_datetime(end_raw)
    except ValueError:
        return jsonify({"error": "start_date and end_date must be ISO-8601 datetimes"}), 400
    if end_dt is not None and is_date_only(end_raw):
        end_dt = end_of_day(end_dt)

    result = inventory_service.list_inventory_logs(
        product_id=request.args.get("product_id", type=int),
        action=request.args.get("action"),
        start=start_dt,
        end=end_dt,
        page=request.args.get("page", type=int),
        limit=request.args.get("limit", type=int),
    )
    return jsonify(result), 200


@inventory_bp.get("/low-stock")
@require_actor
def low_stock_route():
    limit = request.args.get("limit", default=50, type=int)
    limit = max(1, min(limit, 500))
    products = catalog_service.get_low_stock_products(limit=limit)
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200
