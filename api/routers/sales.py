"""
Sales API Endpoints.

Listing management (internal, called by the catalog service), purchase
initiation, payment gateway webhooks and the public sale listings.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status

from api.dependencies import get_sale_service
from api.models import (
    CreateListingRequest,
    CreateListingResponse,
    ErrorResponse,
    MessageResponse,
    PaymentWebhookRequest,
    PurchaseRequest,
    PurchaseResponse,
    SaleItemResponse,
    UpdateListingRequest,
)
from domain.errors import ConflictError, NotFoundError, SaleError, StoreError, ValidationError
from services.sale_lifecycle_service import SaleItem, SaleLifecycleService

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "Sale not found"},
    409: {"model": ErrorResponse, "description": "Transition not allowed in current status"},
    500: {"model": ErrorResponse, "description": "Persistence failure"},
}

_STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StoreError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def _to_http_exception(error: SaleError) -> HTTPException:
    """Map a lifecycle error kind to its HTTP status."""

    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.message)


def _to_item_response(item: SaleItem) -> SaleItemResponse:
    return SaleItemResponse(
        sale_id=item.sale_id,
        vehicle_id=item.vehicle_id,
        brand=item.brand,
        model=item.model,
        price=item.price,
    )


@router.post(
    "/listings",
    response_model=CreateListingResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
    summary="Create Listing",
    description="Create a sale listing when notified by the catalog service. Internal endpoint.",
)
def create_listing(
    request: CreateListingRequest,
    service: SaleLifecycleService = Depends(get_sale_service),
):
    try:
        result = service.create_listing(request.vehicle_id, request.brand, request.model, request.price)
    except SaleError as e:
        raise _to_http_exception(e) from e

    return CreateListingResponse(
        sale_id=result.sale_id,
        status=result.status.value,
        created_at=result.created_at,
    )


@router.put(
    "/listings/vehicle/{vehicle_id}",
    response_model=MessageResponse,
    responses=_ERROR_RESPONSES,
    summary="Update Listing",
    description="Update a listing's brand, model and price by vehicle ID. Internal endpoint.",
)
def update_listing(
    vehicle_id: str,
    request: UpdateListingRequest,
    service: SaleLifecycleService = Depends(get_sale_service),
):
    try:
        service.update_listing(vehicle_id, request.brand, request.model, request.price)
    except SaleError as e:
        raise _to_http_exception(e) from e

    return MessageResponse(message="Listing updated")


@router.post(
    "/sales/{sale_id}/purchase",
    response_model=PurchaseResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses=_ERROR_RESPONSES,
    summary="Purchase Vehicle",
    description="Start the purchase of an available sale. Payment is confirmed later by webhook.",
)
def purchase(
    sale_id: str,
    request: PurchaseRequest,
    service: SaleLifecycleService = Depends(get_sale_service),
):
    """
    Start a purchase.

    **Example request:**
    ```json
    {"buyer_cpf": "12345678900"}
    ```

    **Success response (202):**
    ```json
    {"payment_id": "3f0b7c1e-8a52-4e55-9a8f-0c1d7a6b2e10"}
    ```

    A sale that is not AVAILABLE returns 409.
    """
    try:
        sale_uuid = UUID(sale_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid UUID format for sale_id")

    try:
        result = service.purchase(sale_uuid, request.buyer_cpf)
    except SaleError as e:
        raise _to_http_exception(e) from e

    return PurchaseResponse(payment_id=result.payment_id)


@router.post(
    "/webhooks/payments",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=_ERROR_RESPONSES,
    summary="Payment Webhook",
    description="Receive a payment status notification from the payment gateway.",
)
def handle_payment_webhook(
    request: PaymentWebhookRequest,
    service: SaleLifecycleService = Depends(get_sale_service),
):
    """
    Settle a pending sale.

    Recognized statuses (case-insensitive): APPROVED / EFETUADO settle to SOLD,
    CANCELED / CANCELADO settle to CANCELED. Duplicate deliveries for an
    already settled sale return 409 and change nothing.
    """
    try:
        service.handle_payment_webhook(request.payment_id, request.status)
    except SaleError as e:
        raise _to_http_exception(e) from e

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/sales/available",
    response_model=List[SaleItemResponse],
    summary="List Available Vehicles",
    description="All vehicles available for sale, sorted by ascending price.",
)
def list_available(service: SaleLifecycleService = Depends(get_sale_service)):
    try:
        items = service.list_available()
    except SaleError as e:
        raise _to_http_exception(e) from e

    return [_to_item_response(item) for item in items]


@router.get(
    "/sales/sold",
    response_model=List[SaleItemResponse],
    summary="List Sold Vehicles",
    description="All sold vehicles, sorted by ascending price.",
)
def list_sold(service: SaleLifecycleService = Depends(get_sale_service)):
    try:
        items = service.list_sold()
    except SaleError as e:
        raise _to_http_exception(e) from e

    return [_to_item_response(item) for item in items]
