"""
Domain: Sale entity and its lifecycle transitions.

A Sale tracks one vehicle listing from creation through purchase and payment
settlement:

    AVAILABLE -> PENDING_PAYMENT -> SOLD
                                 -> CANCELED

SOLD and CANCELED are terminal. Nothing re-enters AVAILABLE.

This module contains only pure domain logic: no I/O, no database, no frameworks.
Entities are immutable; every transition returns a new Sale.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from .errors import ConflictError, ValidationError
from .time import require_utc_timestamp, utc_now


class SaleStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    PENDING_PAYMENT = "PENDING_PAYMENT"
    SOLD = "SOLD"
    CANCELED = "CANCELED"

    @property
    def is_terminal(self) -> bool:
        return self in (SaleStatus.SOLD, SaleStatus.CANCELED)


# Payment gateway status strings, upper-cased. The gateway sends either the
# English or the Portuguese form.
_PAYMENT_STATUS_MAP: dict[str, SaleStatus] = {
    "APPROVED": SaleStatus.SOLD,
    "EFETUADO": SaleStatus.SOLD,
    "CANCELED": SaleStatus.CANCELED,
    "CANCELADO": SaleStatus.CANCELED,
}


def resolve_payment_status(raw_status: str) -> SaleStatus:
    """
    Map a payment gateway status string to the terminal SaleStatus it settles to.

    Matching is case-insensitive and ignores surrounding whitespace.

    Raises:
        ValidationError: If the status string is not recognized
    """

    normalized = (raw_status or "").strip().upper()
    try:
        return _PAYMENT_STATUS_MAP[normalized]
    except KeyError:
        raise ValidationError("invalid payment status") from None


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _coerce_price(value: Any) -> Decimal:
    """Convert an incoming price to Decimal without rounding."""

    if isinstance(value, Decimal):
        price = value
    else:
        try:
            # str() first so floats keep their shortest repr instead of binary noise
            price = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError("price must be greater than zero") from None

    if not price.is_finite() or price <= 0:
        raise ValidationError("price must be greater than zero")
    return price


def _validate_listing_details(brand: str, model: str, price: Any) -> Decimal:
    checked_price = _coerce_price(price)
    if _is_blank(brand) or _is_blank(model):
        raise ValidationError("brand and model are required for listing")
    return checked_price


@dataclass(frozen=True, slots=True)
class Sale:
    """
    Immutable record of a vehicle sale.

    Invariants:
    - sale_id and created_at never change.
    - payment_id is assigned exactly once, when a purchase starts.
    - buyer_cpf and sale_date are set together and never cleared.
    - All timestamps are UTC.
    """

    sale_id: UUID
    vehicle_id: str
    brand: str
    model: str
    price: Decimal
    status: SaleStatus
    created_at: datetime
    updated_at: datetime
    payment_id: Optional[str] = None
    buyer_cpf: Optional[str] = None
    sale_date: Optional[datetime] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        require_utc_timestamp("updated_at", self.updated_at)
        if self.sale_date is not None:
            require_utc_timestamp("sale_date", self.sale_date)
        if (self.buyer_cpf is None) != (self.sale_date is None):
            raise ValueError("buyer_cpf and sale_date must be set together")

    @staticmethod
    def new_listing(
        vehicle_id: str,
        brand: str,
        model: str,
        price: Any,
        *,
        now: Optional[datetime] = None,
    ) -> "Sale":
        """
        Create a new AVAILABLE listing.

        Validation order is fixed: vehicle_id, then price, then brand/model.

        Raises:
            ValidationError: If any field is empty or price is not strictly positive
        """

        if _is_blank(vehicle_id):
            raise ValidationError("vehicle_id cannot be empty")
        checked_price = _validate_listing_details(brand, model, price)

        timestamp = now if now is not None else utc_now()
        return Sale(
            sale_id=uuid4(),
            vehicle_id=vehicle_id,
            brand=brand,
            model=model,
            price=checked_price,
            status=SaleStatus.AVAILABLE,
            created_at=timestamp,
            updated_at=timestamp,
        )

    def with_listing_details(self, brand: str, model: str, price: Any, *, now: datetime) -> "Sale":
        """Return a copy with new descriptive fields. Does not look at status."""

        checked_price = _validate_listing_details(brand, model, price)
        return replace(self, brand=brand, model=model, price=checked_price, updated_at=now)

    def start_purchase(self, buyer_cpf: str, *, payment_id: str, now: datetime) -> "Sale":
        """
        AVAILABLE -> PENDING_PAYMENT.

        Raises:
            ConflictError: If the sale is not AVAILABLE
        """

        if self.status is not SaleStatus.AVAILABLE:
            raise ConflictError("sale is not available for purchase")
        if _is_blank(payment_id):
            raise ValueError("payment_id must be a non-empty identifier")

        return replace(
            self,
            status=SaleStatus.PENDING_PAYMENT,
            payment_id=payment_id,
            buyer_cpf=buyer_cpf,
            sale_date=now,
            updated_at=now,
        )

    def settle_payment(self, outcome: SaleStatus, *, now: datetime) -> "Sale":
        """
        PENDING_PAYMENT -> SOLD | CANCELED.

        Raises:
            ConflictError: If the sale is not PENDING_PAYMENT
        """

        if self.status is not SaleStatus.PENDING_PAYMENT:
            raise ConflictError("sale is not in pending payment status")
        if not outcome.is_terminal:
            raise ValueError(f"payment cannot settle a sale to {outcome.value}")

        return replace(self, status=outcome, updated_at=now)


__all__ = [
    "Sale",
    "SaleStatus",
    "resolve_payment_status",
]
