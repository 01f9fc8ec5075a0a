"""
Tests for `settings.py` and the API dependency wiring built from it.
"""

from __future__ import annotations

import pytest

from api.dependencies import build_sale_service, build_store
from repositories.memory_sale_repository import InMemorySaleRepository
from repositories.sale_repository import SupabaseSaleRepository
from settings import Settings, load_settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "SALES_STORE_BACKEND",
        "SUPABASE_URL",
        "SUPABASE_KEY",
        "SALES_TABLE",
        "RESTRICT_LISTING_UPDATES",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env) -> None:
    settings = load_settings()

    assert settings.store_backend == "supabase"
    assert settings.sales_table == "sales"
    assert settings.restrict_listing_updates is False
    assert settings.log_level == "INFO"


@pytest.mark.parametrize("raw, expected", [("true", True), ("1", True), ("YES", True), ("false", False), ("", False)])
def test_restrict_listing_updates_flag(clean_env, raw: str, expected: bool) -> None:
    clean_env.setenv("RESTRICT_LISTING_UPDATES", raw)
    assert load_settings().restrict_listing_updates is expected


def test_invalid_backend_is_rejected(clean_env) -> None:
    clean_env.setenv("SALES_STORE_BACKEND", "mysql")
    with pytest.raises(RuntimeError, match="SALES_STORE_BACKEND"):
        load_settings()


def test_invalid_log_level_is_rejected(clean_env) -> None:
    clean_env.setenv("LOG_LEVEL", "VERBOSE")
    with pytest.raises(RuntimeError, match="LOG_LEVEL"):
        load_settings()


def test_log_level_is_case_insensitive(clean_env) -> None:
    clean_env.setenv("LOG_LEVEL", " debug ")
    assert load_settings().log_level == "DEBUG"


def test_missing_supabase_credentials(clean_env) -> None:
    with pytest.raises(RuntimeError, match="SUPABASE_URL"):
        load_settings().require_supabase_credentials()

    clean_env.setenv("SUPABASE_URL", "https://example.supabase.co")
    with pytest.raises(RuntimeError, match="SUPABASE_KEY"):
        load_settings().require_supabase_credentials()


def test_build_store_selects_backend() -> None:
    assert isinstance(build_store(Settings(store_backend="memory")), InMemorySaleRepository)
    assert isinstance(build_store(Settings(store_backend="supabase")), SupabaseSaleRepository)


def test_build_sale_service_honors_update_restriction() -> None:
    from decimal import Decimal

    from domain.errors import ConflictError

    service = build_sale_service(Settings(store_backend="memory", restrict_listing_updates=True))
    created = service.create_listing("veh-1", "Fiat", "Toro", Decimal("10"))
    service.purchase(created.sale_id, "123")

    with pytest.raises(ConflictError):
        service.update_listing("veh-1", "Fiat", "Toro", Decimal("11"))
