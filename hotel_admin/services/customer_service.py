"""
Customer Service
================
This service handles:
1. Phone number normalization (international format)
2. Name sanitization
3. Guest field validation (email syntax is checked by the CustomerInput schema)
4. Customer creation for a booking (always a new row, no merge by phone/email)
"""

import re
from typing import List

from sqlalchemy.orm import Session

from ..exceptions import ValidationError
from ..models.customer import Customer
from ..schemas.booking import CustomerInput


def normalize_phone(phone: str) -> str:
    """
    Strip formatting from a phone number, keeping a leading '+'.

    Supported formats:
    - +44 20 7946 0958 -> +442079460958
    - 0044 20 7946 0958 -> +442079460958
    - (212) 555-0100 -> 2125550100
    """
    if not phone:
        return ""

    phone = phone.strip()
    has_plus = phone.startswith('+')
    digits_only = re.sub(r'\D', '', phone)

    if not digits_only:
        return ""

    # 00 is the international call prefix in most countries
    if not has_plus and digits_only.startswith('00') and len(digits_only) > 4:
        digits_only = digits_only[2:]
        has_plus = True

    return f"+{digits_only}" if has_plus else digits_only


def sanitize_name(name: str) -> str:
    """
    Clean a guest name:
    - drop characters other than letters, digits, spaces, apostrophes, hyphens, dots
    - collapse repeated whitespace
    """
    if not name:
        return ""

    cleaned = re.sub(r"[^\w\s'.\-]", '', name)
    cleaned = ' '.join(cleaned.split())

    return cleaned.strip()


def validate_customer_info(customer: CustomerInput) -> List[str]:
    """
    Check the guest fields a booking needs.

    Returns a list of problems, empty when the input is usable.
    """
    errors = []

    name = sanitize_name(customer.name)
    if len(name) < 2:
        errors.append("Guest name is required (at least 2 characters)")

    phone = normalize_phone(customer.phone or "")
    email = (customer.email or "").strip()

    if not phone and not email:
        errors.append("A phone number or an email address is required")
    if phone and len(phone.lstrip('+')) < 6:
        errors.append("Phone number is too short")

    return errors


def create_customer(db: Session, customer: CustomerInput) -> Customer:
    """
    Add a Customer row for a booking. Caller owns the transaction.

    Raises ValidationError when the guest fields are unusable.
    """
    errors = validate_customer_info(customer)
    if errors:
        raise ValidationError("Guest details are incomplete", errors)

    email = (customer.email or "").strip()
    row = Customer(
        name=sanitize_name(customer.name),
        phone=normalize_phone(customer.phone or "") or None,
        email=email.lower() or None,
        country=(customer.country or "").strip() or None,
        referral_name=customer.referral_name,
        ref_agency=customer.ref_agency
    )
    db.add(row)
    return row
