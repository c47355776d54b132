from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from .services.errors import PosError


# Maximum price: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

PAYMENT_METHODS = ("cash", "card", "mobile")

MANUAL_ADJUSTMENT_ACTIONS = ("stock_in", "stock_out", "adjustment", "damage", "expired")


class ValidationError(PosError, ValueError):
    """400-level input problem. Raised before anything is written."""

    status_code = 400


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int
    unit_price_override_cents: int | None = None


@dataclass(frozen=True)
class PaymentInput:
    method: str
    amount_cents: int
    reference: str | None = None


@dataclass(frozen=True)
class SaleRequest:
    lines: list[CartLine]
    payments: list[PaymentInput]
    customer_id: int | None = None
    notes: str | None = None
    counter: str | None = None


@dataclass(frozen=True)
class AdjustmentRequest:
    product_id: int
    action: str
    quantity: int
    reason: str
    cost_price_cents: int | None = None


@dataclass(frozen=True)
class CustomerInput:
    name: str
    phone: str
    email: str | None = None
    address: str | None = None
    notes: str | None = None


def coerce_int(value: Any, name: str) -> int:
    """
    Strict integer coercion for JSON input.

    Rejects bools, floats, decimal strings and scientific notation so that
    quantities and cent amounts are never silently truncated.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{name} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{name} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{name} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{name} must be an integer, not a decimal")
    raise ValidationError(f"{name} must be an integer")


def coerce_optional_int(value: Any, name: str) -> int | None:
    if value is None:
        return None
    return coerce_int(value, name)


def coerce_text(value: Any, name: str, *, max_length: int = 255) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if len(text) > max_length:
        raise ValidationError(f"{name} exceeds max length {max_length}")
    return text or None


def require_price_cents(value: int, name: str) -> int:
    if value < 0:
        raise ValidationError(f"{name} must be >= 0")
    if value > MAX_PRICE_CENTS:
        raise ValidationError(f"{name} cannot exceed {MAX_PRICE_CENTS} (${MAX_PRICE_CENTS / 100:,.2f})")
    return value


def require_percent(value: Any, name: str) -> Decimal:
    try:
        pct = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{name} must be a number")
    if not pct.is_finite() or pct < 0 or pct > 100:
        raise ValidationError(f"{name} must be between 0 and 100")
    return pct


def validate_cart_line(line: CartLine, position: int) -> None:
    if line.quantity < 1:
        raise ValidationError(
            "Quantity must be at least 1",
            details={"line": position, "quantity": line.quantity},
        )
    if line.unit_price_override_cents is not None:
        require_price_cents(line.unit_price_override_cents, f"lines[{position}].unit_price_override_cents")


def validate_payment(payment: PaymentInput, position: int) -> None:
    if payment.method not in PAYMENT_METHODS:
        raise ValidationError(
            f"Invalid payment method: {payment.method}. Must be one of {list(PAYMENT_METHODS)}",
            details={"payment": position},
        )
    if payment.amount_cents < 0:
        raise ValidationError("Payment amount must be >= 0", details={"payment": position})


def validate_sale_request(request: SaleRequest) -> None:
    if not request.lines:
        raise ValidationError("At least one item is required")
    if not request.payments:
        raise ValidationError("At least one payment is required")
    for i, line in enumerate(request.lines):
        validate_cart_line(line, i)
    for i, payment in enumerate(request.payments):
        validate_payment(payment, i)


def parse_sale_request(payload: Any) -> SaleRequest:
    """
    Validate + normalize the checkout JSON body.

    Shape:
        {"lines": [{"product_id", "quantity", "unit_price_override_cents"?}],
         "payments": [{"method", "amount_cents", "reference"?}],
         "customer_id"?, "notes"?, "counter"?}
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    raw_lines = payload.get("lines") or []
    raw_payments = payload.get("payments") or []
    if not isinstance(raw_lines, list) or not isinstance(raw_payments, list):
        raise ValidationError("lines and payments must be lists")

    lines = []
    for i, raw in enumerate(raw_lines):
        if not isinstance(raw, dict):
            raise ValidationError(f"lines[{i}] must be an object")
        if raw.get("product_id") is None or raw.get("quantity") is None:
            raise ValidationError(f"lines[{i}] requires product_id and quantity")
        lines.append(CartLine(
            product_id=coerce_int(raw["product_id"], f"lines[{i}].product_id"),
            quantity=coerce_int(raw["quantity"], f"lines[{i}].quantity"),
            unit_price_override_cents=coerce_optional_int(
                raw.get("unit_price_override_cents"), f"lines[{i}].unit_price_override_cents"
            ),
        ))

    payments = []
    for i, raw in enumerate(raw_payments):
        if not isinstance(raw, dict):
            raise ValidationError(f"payments[{i}] must be an object")
        if raw.get("amount_cents") is None:
            raise ValidationError(f"payments[{i}] requires amount_cents")
        payments.append(PaymentInput(
            method=str(raw.get("method") or "").strip().lower(),
            amount_cents=coerce_int(raw["amount_cents"], f"payments[{i}].amount_cents"),
            reference=coerce_text(raw.get("reference"), f"payments[{i}].reference", max_length=128),
        ))

    request = SaleRequest(
        lines=lines,
        payments=payments,
        customer_id=coerce_optional_int(payload.get("customer_id"), "customer_id"),
        notes=coerce_text(payload.get("notes"), "notes", max_length=2000),
        counter=coerce_text(payload.get("counter"), "counter", max_length=64),
    )
    validate_sale_request(request)
    return request


def validate_adjustment_request(request: AdjustmentRequest) -> None:
    if request.action not in MANUAL_ADJUSTMENT_ACTIONS:
        raise ValidationError(
            f"action must be one of {list(MANUAL_ADJUSTMENT_ACTIONS)}"
        )
    if request.quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    if not request.reason or not request.reason.strip():
        raise ValidationError("Reason is required")
    if request.cost_price_cents is not None:
        require_price_cents(request.cost_price_cents, "cost_price_cents")


def parse_adjustment_request(payload: Any) -> AdjustmentRequest:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    missing = [f for f in ("product_id", "action", "quantity", "reason") if payload.get(f) is None]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    request = AdjustmentRequest(
        product_id=coerce_int(payload["product_id"], "product_id"),
        action=str(payload["action"]).strip().lower(),
        quantity=coerce_int(payload["quantity"], "quantity"),
        reason=coerce_text(payload["reason"], "reason") or "",
        cost_price_cents=coerce_optional_int(payload.get("cost_price_cents"), "cost_price_cents"),
    )
    validate_adjustment_request(request)
    return request


def validate_customer_input(data: CustomerInput) -> None:
    if not data.name or not data.name.strip():
        raise ValidationError("Name is required")
    if not data.phone or not data.phone.strip():
        raise ValidationError("Phone is required")
    if data.email is not None and "@" not in data.email:
        raise ValidationError("Invalid email address", details={"email": data.email})


def parse_customer_request(payload: Any) -> CustomerInput:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    data = CustomerInput(
        name=coerce_text(payload.get("name"), "name") or "",
        phone=coerce_text(payload.get("phone"), "phone", max_length=32) or "",
        email=coerce_text(payload.get("email"), "email"),
        address=coerce_text(payload.get("address"), "address"),
        notes=coerce_text(payload.get("notes"), "notes", max_length=2000),
    )
    validate_customer_input(data)
    return data
