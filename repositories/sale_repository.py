"""
Sale repository (persistence).

Supabase-backed implementation of the SaleStore contract. This module only
inserts, updates and fetches sale records; lifecycle rules live in the domain
entity and the lifecycle service. The one rule enforced here is the
compare-and-swap on update (status and updated_at), which has to happen
inside the UPDATE statement to be atomic.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, List, Mapping, Optional
from uuid import UUID

import httpx
from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.errors import ConflictError, NotFoundError, StoreError
from domain.sale import Sale, SaleStatus
from domain.time import require_utc_timestamp
from repositories.client import get_supabase_client

logger = logging.getLogger(__name__)

# Supabase table name for sale records.
# Keep this aligned with your database schema.
_SALES_TABLE: str = "sales"

# Postgres unique_violation
_UNIQUE_VIOLATION = "23505"


def _to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def _parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _row_to_sale(row: Mapping[str, Any]) -> Sale:
    """Convert a Supabase row into a Sale."""

    sale_date_val = row.get("sale_date_utc")
    return Sale(
        sale_id=UUID(str(row["sale_id"])),
        vehicle_id=str(row["vehicle_id"]),
        brand=str(row["brand"]),
        model=str(row["model"]),
        price=Decimal(str(row["price"])),
        status=SaleStatus(str(row["status"])),
        created_at=_parse_utc_datetime(row["created_at_utc"]),
        updated_at=_parse_utc_datetime(row["updated_at_utc"]),
        payment_id=row.get("payment_id"),
        buyer_cpf=row.get("buyer_cpf"),
        sale_date=_parse_utc_datetime(sale_date_val) if sale_date_val is not None else None,
    )


def _sale_to_payload(sale: Sale) -> dict[str, Any]:
    return {
        "vehicle_id": sale.vehicle_id,
        "brand": sale.brand,
        "model": sale.model,
        "price": str(sale.price),
        "status": sale.status.value,
        "payment_id": sale.payment_id,
        "buyer_cpf": sale.buyer_cpf,
        "sale_date_utc": _to_iso_utc(sale.sale_date, name="sale_date") if sale.sale_date else None,
        "updated_at_utc": _to_iso_utc(sale.updated_at, name="updated_at"),
    }


def _error_code(error: Any) -> Optional[str]:
    code = getattr(error, "code", None)
    if code is None and isinstance(error, Mapping):
        code = error.get("code")
    return str(code) if code is not None else None


class SupabaseSaleRepository:
    """SaleStore backed by a Supabase (PostgREST) table."""

    def __init__(self, client: Optional[Client] = None, *, table: str = _SALES_TABLE) -> None:
        self._client = client
        self._table = table

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def _execute(self, build: Callable[[], Any], action: str) -> List[Mapping[str, Any]]:
        """
        Run a query and return its rows.

        Client and transport failures surface as StoreError; a unique-key
        violation surfaces as ConflictError.
        """

        try:
            response = build().execute()
        except APIError as e:
            if _error_code(e) == _UNIQUE_VIOLATION:
                raise ConflictError(f"Failed to {action}: sale already exists") from e
            logger.error("Supabase request failed", extra={"action": action, "table": self._table})
            raise StoreError(f"Failed to {action}: {e}") from e
        except httpx.HTTPError as e:
            logger.error("Supabase transport failed", extra={"action": action, "table": self._table})
            raise StoreError(f"Failed to {action}: {e}") from e

        error = getattr(response, "error", None)
        if error:
            if _error_code(error) == _UNIQUE_VIOLATION:
                raise ConflictError(f"Failed to {action}: sale already exists")
            raise StoreError(f"Failed to {action}: {error}")

        return getattr(response, "data", None) or []

    def _table_query(self):
        return self.client.table(self._table)

    def create(self, sale: Sale) -> None:
        payload = _sale_to_payload(sale)
        payload["sale_id"] = str(sale.sale_id)
        payload["created_at_utc"] = _to_iso_utc(sale.created_at, name="created_at")

        self._execute(lambda: self._table_query().insert(payload), "create sale")

    def update(
        self,
        sale: Sale,
        *,
        expected_status: SaleStatus,
        expected_updated_at: Optional[datetime] = None,
    ) -> None:
        """
        Replace the mutable fields of a sale.

        Requirements:
        - Must only update if the stored status still equals expected_status.
        - When expected_updated_at is given, the stored updated_at_utc must
          still equal it.
        """

        payload = _sale_to_payload(sale)

        def build():
            query = (
                self._table_query()
                .update(payload)
                .eq("sale_id", str(sale.sale_id))
                .eq("status", expected_status.value)
            )
            if expected_updated_at is not None:
                query = query.eq(
                    "updated_at_utc", _to_iso_utc(expected_updated_at, name="expected_updated_at")
                )
            return query

        rows = self._execute(build, "update sale")

        if not rows:
            # Either no record exists, or another request changed it first.
            self.get_by_id(sale.sale_id)
            raise ConflictError(
                f"sale was modified concurrently (expected {expected_status.value})"
            )

    def _get_one(self, column: str, value: str, *, not_found: str) -> Sale:
        rows = self._execute(
            lambda: (
                self._table_query()
                .select("*")
                .eq(column, value)
                .order("created_at_utc", desc=True)
                .limit(1)
            ),
            f"get sale by {column}",
        )
        if not rows:
            raise NotFoundError(not_found)
        return _row_to_sale(rows[0])

    def get_by_id(self, sale_id: UUID) -> Sale:
        return self._get_one("sale_id", str(sale_id), not_found="sale not found")

    def get_by_vehicle_id(self, vehicle_id: str) -> Sale:
        return self._get_one(
            "vehicle_id",
            vehicle_id,
            not_found="sale listing for the given vehicle_id not found",
        )

    def get_by_payment_id(self, payment_id: str) -> Sale:
        return self._get_one(
            "payment_id",
            payment_id,
            not_found="sale not found for the given payment_id",
        )

    def list_by_status(self, status: SaleStatus) -> List[Sale]:
        """
        Retrieve all sales in a status, cheapest first.

        Returns:
            List[Sale] (possibly empty)
        """

        rows = self._execute(
            lambda: (
                self._table_query()
                .select("*")
                .eq("status", status.value)
                .order("price")
                .order("created_at_utc")
            ),
            "list sales",
        )
        return [_row_to_sale(row) for row in rows]


__all__ = ["SupabaseSaleRepository"]
