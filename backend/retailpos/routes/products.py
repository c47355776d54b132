# Overview: Flask API routes for product lookup; parses input and returns JSON responses.

from dataclasses import asdict

from flask import Blueprint, request, jsonify

from ..services import catalog_service
from ..services.errors import PosError
from ..decorators import require_actor

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _snapshot_json(snapshot: catalog_service.ProductSnapshot) -> dict:
    data = asdict(snapshot)
    data["discount_percent"] = float(snapshot.discount_percent)
    data["tax_percent"] = float(snapshot.tax_percent)
    return data


@products_bp.get("")
@require_actor
def list_products_route():
    result = catalog_service.search_products(
        request.args.get("search"),
        category=request.args.get("category"),
        status=request.args.get("status"),
        page=request.args.get("page", type=int),
        limit=request.args.get("limit", type=int),
    )
    return jsonify(result), 200


@products_bp.get("/lookup")
@require_actor
def lookup_product_route():
    """Scanner lookup: ?barcode=... or ?sku=..."""
    barcode = request.args.get("barcode")
    sku = request.args.get("sku")
    if not barcode and not sku:
        return jsonify({"error": "barcode or sku required"}), 400

    try:
        if barcode:
            snapshot = catalog_service.find_by_barcode(barcode)
        else:
            snapshot = catalog_service.find_by_sku(sku)
    except PosError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code

    return jsonify({"product": _snapshot_json(snapshot)}), 200


@products_bp.get("/<int:product_id>")
@require_actor
def get_product_route(product_id: int):
    try:
        snapshot = catalog_service.find_by_id(product_id)
    except PosError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code
    return jsonify({"product": _snapshot_json(snapshot)}), 200
