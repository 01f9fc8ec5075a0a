"""
Pytest configuration and shared fixtures.

Adds the project root to the Python path so tests can import domain,
repositories, services and api directly.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from repositories.memory_sale_repository import InMemorySaleRepository  # noqa: E402
from services.sale_lifecycle_service import SaleLifecycleService  # noqa: E402


@pytest.fixture
def store() -> InMemorySaleRepository:
    return InMemorySaleRepository()


@pytest.fixture
def service(store: InMemorySaleRepository) -> SaleLifecycleService:
    return SaleLifecycleService(store)
