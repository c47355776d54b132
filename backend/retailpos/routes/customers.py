# Overview: Flask API routes for customer lookup and creation; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import customer_service
from ..services.errors import PosError
from ..validation import parse_customer_request
from ..decorators import require_actor

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_actor
def list_customers_route():
    result = customer_service.search_customers(
        request.args.get("search"),
        page=request.args.get("page", type=int),
        limit=request.args.get("limit", type=int),
    )
    return jsonify(result), 200


@customers_bp.get("/<int:customer_id>")
@require_actor
def get_customer_route(customer_id: int):
    try:
        customer = customer_service.get_customer(customer_id)
    except PosError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code
    return jsonify({"customer": customer.to_dict()}), 200


@customers_bp.post("")
@require_actor
def create_customer_route():
    """Body: {"name", "phone", "email"?, "address"?, "notes"?}"""
    try:
        data = parse_customer_request(request.get_json(silent=True))
        customer = customer_service.create_customer(data, g.actor)
        return jsonify({"customer": customer.to_dict()}), 201
    except PosError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Internal server error"}), 500
