"""
In-memory sale repository.

Process-local SaleStore used by the test suite and by
SALES_STORE_BACKEND=memory. A single lock serializes every read and write, so
the status compare-and-swap in `update` is atomic across request threads.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from domain.errors import ConflictError, NotFoundError
from domain.sale import Sale, SaleStatus


class InMemorySaleRepository:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_id: Dict[UUID, Sale] = {}

    def create(self, sale: Sale) -> None:
        with self._lock:
            if sale.sale_id in self._by_id:
                raise ConflictError("Failed to create sale: sale already exists")
            if sale.payment_id is not None and self._find_payment(sale.payment_id) is not None:
                raise ConflictError("Failed to create sale: payment_id already in use")
            self._by_id[sale.sale_id] = sale

    def update(
        self,
        sale: Sale,
        *,
        expected_status: SaleStatus,
        expected_updated_at: Optional[datetime] = None,
    ) -> None:
        with self._lock:
            stored = self._by_id.get(sale.sale_id)
            if stored is None:
                raise NotFoundError("sale not found")
            if stored.status is not expected_status:
                raise ConflictError(
                    f"sale status changed concurrently (expected {expected_status.value})"
                )
            if expected_updated_at is not None and stored.updated_at != expected_updated_at:
                raise ConflictError("sale was modified concurrently")
            if sale.payment_id is not None:
                owner = self._find_payment(sale.payment_id)
                if owner is not None and owner.sale_id != sale.sale_id:
                    raise ConflictError("Failed to update sale: payment_id already in use")
            # sale_id and created_at are immutable
            self._by_id[sale.sale_id] = Sale(
                sale_id=stored.sale_id,
                vehicle_id=sale.vehicle_id,
                brand=sale.brand,
                model=sale.model,
                price=sale.price,
                status=sale.status,
                created_at=stored.created_at,
                updated_at=sale.updated_at,
                payment_id=sale.payment_id,
                buyer_cpf=sale.buyer_cpf,
                sale_date=sale.sale_date,
            )

    def _find_payment(self, payment_id: str):
        for candidate in self._by_id.values():
            if candidate.payment_id == payment_id:
                return candidate
        return None

    def get_by_id(self, sale_id: UUID) -> Sale:
        with self._lock:
            sale = self._by_id.get(sale_id)
        if sale is None:
            raise NotFoundError("sale not found")
        return sale

    def get_by_vehicle_id(self, vehicle_id: str) -> Sale:
        with self._lock:
            matches = [s for s in self._by_id.values() if s.vehicle_id == vehicle_id]
        if not matches:
            raise NotFoundError("sale listing for the given vehicle_id not found")
        return max(matches, key=lambda s: s.created_at)

    def get_by_payment_id(self, payment_id: str) -> Sale:
        with self._lock:
            sale = self._find_payment(payment_id)
        if sale is None:
            raise NotFoundError("sale not found for the given payment_id")
        return sale

    def list_by_status(self, status: SaleStatus) -> List[Sale]:
        with self._lock:
            matches = [s for s in self._by_id.values() if s.status is status]
        return sorted(matches, key=lambda s: (s.price, s.created_at))


__all__ = ["InMemorySaleRepository"]
