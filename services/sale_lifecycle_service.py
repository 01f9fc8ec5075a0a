"""
Sale lifecycle service.

Owns the sale state machine and its reconciliation with the payment gateway:

    create_listing          -> AVAILABLE
    update_listing          (descriptive fields only)
    purchase                AVAILABLE -> PENDING_PAYMENT
    handle_payment_webhook  PENDING_PAYMENT -> SOLD | CANCELED

Each operation is synchronous and touches exactly one sale: load through the
store, apply the transition on the entity, persist with a compare-and-swap on
the loaded status and updated_at. A request that loses a race against a
concurrent writer fails with ConflictError instead of overwriting the winner.

Store failures (StoreError) are never handled here; they propagate to the
caller unchanged. Nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, List
from uuid import UUID, uuid4

from domain.errors import ConflictError, ValidationError
from domain.sale import Sale, SaleStatus, resolve_payment_status
from domain.time import utc_now
from repositories.sale_store import SaleStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CreateListingResult:
    sale_id: UUID
    status: SaleStatus
    created_at: datetime


@dataclass(frozen=True, slots=True)
class PurchaseResult:
    payment_id: str


@dataclass(frozen=True, slots=True)
class SaleItem:
    """Flat display shape used by the listing projections."""
    sale_id: UUID
    vehicle_id: str
    brand: str
    model: str
    price: Decimal

    @staticmethod
    def from_sale(sale: Sale) -> "SaleItem":
        return SaleItem(
            sale_id=sale.sale_id,
            vehicle_id=sale.vehicle_id,
            brand=sale.brand,
            model=sale.model,
            price=sale.price,
        )


def _new_payment_id() -> str:
    return str(uuid4())


class SaleLifecycleService:
    """
    State machine for vehicle sales.

    Args:
        store: Persistence port
        restrict_updates_to_available: When True, update_listing rejects sales
            that already left AVAILABLE. Defaults to False, which keeps the
            historical behavior of editing a listing in any status.
        clock: Source of UTC "now"
        payment_id_factory: Generates payment identifiers
    """

    def __init__(
        self,
        store: SaleStore,
        *,
        restrict_updates_to_available: bool = False,
        clock: Callable[[], datetime] = utc_now,
        payment_id_factory: Callable[[], str] = _new_payment_id,
    ) -> None:
        self._store = store
        self._restrict_updates_to_available = restrict_updates_to_available
        self._clock = clock
        self._payment_id_factory = payment_id_factory

    def create_listing(self, vehicle_id: str, brand: str, model: str, price: Any) -> CreateListingResult:
        """
        Create a new AVAILABLE sale for a catalog vehicle.

        Raises:
            ValidationError: If the listing fields are invalid
            StoreError: If the sale cannot be persisted
        """

        sale = Sale.new_listing(vehicle_id, brand, model, price, now=self._clock())
        self._store.create(sale)

        logger.info(
            "Listing created",
            extra={"sale_id": str(sale.sale_id), "vehicle_id": vehicle_id, "status": sale.status.value},
        )
        return CreateListingResult(sale_id=sale.sale_id, status=sale.status, created_at=sale.created_at)

    def update_listing(self, vehicle_id: str, brand: str, model: str, price: Any) -> None:
        """
        Overwrite brand, model and price of the sale listed for a vehicle.

        Raises:
            NotFoundError: If no sale exists for the vehicle
            ValidationError: If the new fields are invalid
            ConflictError: If updates are restricted and the sale is not AVAILABLE,
                or the sale changed while this update was in flight
        """

        sale = self._store.get_by_vehicle_id(vehicle_id)

        if self._restrict_updates_to_available and sale.status is not SaleStatus.AVAILABLE:
            logger.warning(
                "Listing update rejected",
                extra={"sale_id": str(sale.sale_id), "vehicle_id": vehicle_id, "status": sale.status.value},
            )
            raise ConflictError("sale listing can only be updated while available")

        updated = sale.with_listing_details(brand, model, price, now=self._clock())
        self._store.update(
            updated,
            expected_status=sale.status,
            expected_updated_at=sale.updated_at,
        )

        logger.info(
            "Listing updated",
            extra={"sale_id": str(sale.sale_id), "vehicle_id": vehicle_id, "status": sale.status.value},
        )

    def purchase(self, sale_id: UUID, buyer_cpf: str) -> PurchaseResult:
        """
        Start a purchase: AVAILABLE -> PENDING_PAYMENT.

        A fresh payment identifier is generated on every successful call. A
        repeated call on the same sale is rejected; the original payment
        identifier is not returned again.

        Raises:
            ValidationError: If buyer_cpf is empty
            NotFoundError: If the sale does not exist
            ConflictError: If the sale is not AVAILABLE, or it changed between
                load and save
        """

        if buyer_cpf is None or not str(buyer_cpf).strip():
            raise ValidationError("buyer_cpf cannot be empty")

        sale = self._store.get_by_id(sale_id)
        try:
            pending = sale.start_purchase(
                buyer_cpf,
                payment_id=self._payment_id_factory(),
                now=self._clock(),
            )
        except ConflictError:
            logger.warning(
                "Purchase rejected",
                extra={"sale_id": str(sale_id), "status": sale.status.value},
            )
            raise

        self._store.update(
            pending,
            expected_status=SaleStatus.AVAILABLE,
            expected_updated_at=sale.updated_at,
        )

        logger.info(
            "Purchase started",
            extra={"sale_id": str(sale_id), "payment_id": pending.payment_id},
        )
        return PurchaseResult(payment_id=pending.payment_id)

    def handle_payment_webhook(self, payment_id: str, raw_status: str) -> SaleStatus:
        """
        Settle a pending sale from a payment gateway notification.

        Duplicate or late notifications for an already settled sale are
        rejected with ConflictError and leave it untouched. The state check
        runs before the status string is interpreted.

        Returns:
            The status the sale settled to (SOLD or CANCELED)

        Raises:
            NotFoundError: If no sale carries the payment identifier
            ConflictError: If the sale is not PENDING_PAYMENT
            ValidationError: If raw_status is not a recognized payment status
        """

        sale = self._store.get_by_payment_id(payment_id)

        if sale.status is not SaleStatus.PENDING_PAYMENT:
            logger.warning(
                "Payment notification rejected",
                extra={"payment_id": payment_id, "status": sale.status.value, "raw_status": raw_status},
            )
            raise ConflictError("sale is not in pending payment status")

        outcome = resolve_payment_status(raw_status)
        settled = sale.settle_payment(outcome, now=self._clock())
        self._store.update(
            settled,
            expected_status=SaleStatus.PENDING_PAYMENT,
            expected_updated_at=sale.updated_at,
        )

        logger.info(
            "Payment settled",
            extra={"sale_id": str(sale.sale_id), "payment_id": payment_id, "status": outcome.value},
        )
        return outcome

    def list_available(self) -> List[SaleItem]:
        """AVAILABLE sales, cheapest first."""

        return [SaleItem.from_sale(sale) for sale in self._store.list_by_status(SaleStatus.AVAILABLE)]

    def list_sold(self) -> List[SaleItem]:
        """SOLD sales, cheapest first."""

        return [SaleItem.from_sale(sale) for sale in self._store.list_by_status(SaleStatus.SOLD)]


__all__ = [
    "CreateListingResult",
    "PurchaseResult",
    "SaleItem",
    "SaleLifecycleService",
]
