"""
Dependency wiring for the API.

Builds one SaleLifecycleService per process from Settings. Tests replace it
through `app.dependency_overrides[get_sale_service]`.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from repositories.memory_sale_repository import InMemorySaleRepository
from repositories.sale_repository import SupabaseSaleRepository
from repositories.sale_store import SaleStore
from services.sale_lifecycle_service import SaleLifecycleService
from settings import Settings, load_settings

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> SaleStore:
    if settings.store_backend == "memory":
        logger.warning("Using in-memory sale store; data is lost on restart")
        return InMemorySaleRepository()
    return SupabaseSaleRepository(table=settings.sales_table)


def build_sale_service(settings: Settings) -> SaleLifecycleService:
    return SaleLifecycleService(
        build_store(settings),
        restrict_updates_to_available=settings.restrict_listing_updates,
    )


@lru_cache(maxsize=1)
def get_sale_service() -> SaleLifecycleService:
    return build_sale_service(load_settings())
