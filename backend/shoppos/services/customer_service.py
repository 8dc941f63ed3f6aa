# backend/shoppos/services/customer_service.py
"""
Customer directory.

The phone number is the dedup key. Credit origination goes through
get_or_create_customer: a known phone gets its name/address/notes
overwritten with the newly typed values (last write wins), an unknown
phone creates a new record.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Customer
from ..validation import ValidationError
from .concurrency import finish, run_with_retry


def normalize_phone(phone: str | None) -> str:
    return (phone or "").strip()


def find_by_phone(phone: str | None) -> Customer | None:
    phone = normalize_phone(phone)
    if not phone:
        return None
    return db.session.query(Customer).filter_by(phone=phone).first()


def get_or_create_customer(
    name: str,
    phone: str,
    address: str | None = None,
    notes: str | None = None,
    *,
    commit: bool = True,
) -> Customer:
    """
    Resolve a customer by exact phone match, creating it if absent.

    On match, name/address/notes are replaced with the supplied values.
    """
    name = (name or "").strip()
    phone = normalize_phone(phone)
    if not name:
        raise ValidationError("Customer name is required")
    if not phone:
        raise ValidationError("Customer phone is required")

    def _op():
        customer = find_by_phone(phone)
        if customer is None:
            customer = Customer(name=name, phone=phone, address=address, notes=notes)
            db.session.add(customer)
        else:
            customer.name = name
            customer.address = address
            customer.notes = notes
        finish(commit)
        return customer

    if not commit:
        return _op()
    return run_with_retry(_op)


def list_customers(query: str | None = None) -> list[Customer]:
    q = db.session.query(Customer)
    if query:
        needle = query.strip()
        q = q.filter(
            db.or_(
                db.func.lower(Customer.name).like(f"%{needle.lower()}%"),
                Customer.phone.like(f"%{needle}%"),
            )
        )
    return q.order_by(Customer.name.asc(), Customer.id.asc()).all()
