# Overview: Service-layer operations for customers; lookup at the till and customer creation.

from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer
from ..validation import CustomerInput, ValidationError, validate_customer_input
from .audit_service import append_audit_entry
from .errors import NotFoundError
from .pagination import paginate
from .session_service import ActorContext


def search_customers(search: str | None = None, *, page: int | None = None, limit: int | None = None) -> dict:
    """Customers by name, matching on name or phone (case-insensitive)."""
    query = db.session.query(Customer)
    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(or_(Customer.name.ilike(pattern), Customer.phone.ilike(pattern)))

    query = query.order_by(Customer.name.asc(), Customer.id.asc())
    rows, pagination = paginate(query, page, limit)
    return {"items": [row.to_dict() for row in rows], "pagination": pagination}


def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found", details={"customer_id": customer_id})
    return customer


def create_customer(data: CustomerInput, actor: ActorContext) -> Customer:
    """
    Create a customer and commit, with its audit entry in the same transaction.

    Raises:
        ValidationError: missing name/phone, or the phone is already registered
    """
    validate_customer_input(data)
    phone = data.phone.strip()

    existing = db.session.query(Customer.id).filter(Customer.phone == phone).first()
    if existing is not None:
        raise ValidationError(
            "A customer with this phone number already exists",
            details={"phone": phone, "customer_id": existing.id},
        )

    customer = Customer(
        name=data.name.strip(),
        phone=phone,
        email=data.email,
        address=data.address,
        notes=data.notes,
    )
    db.session.add(customer)
    try:
        db.session.flush()
        append_audit_entry(
            actor=actor,
            action="create",
            entity="Customer",
            entity_id=customer.id,
            description=f"Created customer: {customer.name}",
        )
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError("A customer with this phone number already exists", details={"phone": phone})

    return customer
