"""
Walk one vehicle through the full sale lifecycle.

Creates a listing, starts a purchase, settles it through the payment webhook
path and then replays the notification to show that a duplicate delivery is
rejected. Uses the store selected by SALES_STORE_BACKEND (default: supabase);
run with SALES_STORE_BACKEND=memory for a dry run without a database.

Usage:
    python scripts/run_sale_scenario.py [--vehicle-id VEH] [--status APPROVED]
"""

import argparse
import logging
import sys
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

# Add parent directory to path so we can import from services
sys.path.insert(0, str(Path(__file__).parent.parent))

from api.dependencies import build_sale_service
from domain.errors import ConflictError
from settings import load_settings


def run_scenario(vehicle_id: str, payment_status: str) -> None:
    settings = load_settings()
    service = build_sale_service(settings)

    print("=" * 50)
    print(f"SALE SCENARIO ({settings.store_backend} store)")
    print("=" * 50)

    created = service.create_listing(vehicle_id, "Fiat", "Toro", Decimal("150000.00"))
    print(f"Listing created:   {created.sale_id} [{created.status.value}]")

    payment = service.purchase(created.sale_id, "12345678900")
    print(f"Purchase started:  payment_id={payment.payment_id}")

    outcome = service.handle_payment_webhook(payment.payment_id, payment_status)
    print(f"Payment settled:   {outcome.value}")

    try:
        service.handle_payment_webhook(payment.payment_id, "CANCELED")
    except ConflictError as e:
        print(f"Duplicate webhook: rejected ({e})")
    else:
        print("[ERROR] Duplicate webhook was applied")
        sys.exit(1)

    print("-" * 50)
    print(f"Available listings: {len(service.list_available())}")
    print(f"Sold listings:      {len(service.list_sold())}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the sale lifecycle scenario")
    parser.add_argument("--vehicle-id", default=f"veh-{uuid4().hex[:8]}")
    parser.add_argument("--status", default="APPROVED", help="Payment status to deliver")
    args = parser.parse_args()

    logging.basicConfig(level=load_settings().log_level)
    run_scenario(args.vehicle_id, args.status)


if __name__ == "__main__":
    main()
