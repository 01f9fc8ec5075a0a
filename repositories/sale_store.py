"""
Sale store contract (persistence port).

The lifecycle service depends only on this protocol. Implementations:
- repositories.sale_repository.SupabaseSaleRepository (production)
- repositories.memory_sale_repository.InMemorySaleRepository (tests, local runs)

Contract:
- Lookups raise NotFoundError when no record matches.
- Any underlying I/O failure raises StoreError.
- `update` is a compare-and-swap: the write only lands if the stored status
  still equals `expected_status` and, when `expected_updated_at` is given, the
  stored updated_at still equals it. Otherwise ConflictError. This closes the
  load/persist race between concurrent requests on the same sale, including a
  listing edit landing between a purchase's load and save.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol
from uuid import UUID

from domain.sale import Sale, SaleStatus


class SaleStore(Protocol):
    def create(self, sale: Sale) -> None:
        ...

    def update(
        self,
        sale: Sale,
        *,
        expected_status: SaleStatus,
        expected_updated_at: Optional[datetime] = None,
    ) -> None:
        """Replace the mutable fields of `sale` if the stored record is unchanged since it was loaded."""
        ...

    def get_by_id(self, sale_id: UUID) -> Sale:
        ...

    def get_by_vehicle_id(self, vehicle_id: str) -> Sale:
        """Most recently created sale for the vehicle."""
        ...

    def get_by_payment_id(self, payment_id: str) -> Sale:
        ...

    def list_by_status(self, status: SaleStatus) -> List[Sale]:
        """All sales in `status`, ascending price."""
        ...


__all__ = ["SaleStore"]
