"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Field-level rules stay loose on purpose: listing validation belongs to the
domain entity, which reports it as a 400 with the domain message.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


# ============================================================================
# Listing Models
# ============================================================================

class CreateListingRequest(BaseModel):
    """Listing notification from the catalog service."""
    vehicle_id: str
    brand: str
    model: str
    price: Decimal

    class Config:
        json_schema_extra = {
            "example": {
                "vehicle_id": "veh-1",
                "brand": "Fiat",
                "model": "Toro",
                "price": "150000.00"
            }
        }


class CreateListingResponse(BaseModel):
    sale_id: UUID
    status: str
    created_at: datetime


class UpdateListingRequest(BaseModel):
    """Listing edit from the catalog service."""
    brand: str
    model: str
    price: Decimal

    class Config:
        json_schema_extra = {
            "example": {
                "brand": "Fiat",
                "model": "Toro Ranch",
                "price": "155000.00"
            }
        }


# ============================================================================
# Sale Models
# ============================================================================

class SaleItemResponse(BaseModel):
    """Single sale in a listing projection."""
    sale_id: UUID
    vehicle_id: str
    brand: str
    model: str
    price: Decimal


class PurchaseRequest(BaseModel):
    """Request to start a purchase."""
    buyer_cpf: str = Field(..., description="Buyer's CPF (tax identity)")

    class Config:
        json_schema_extra = {
            "example": {
                "buyer_cpf": "12345678900"
            }
        }


class PurchaseResponse(BaseModel):
    payment_id: str


# ============================================================================
# Webhook Models
# ============================================================================

class PaymentWebhookRequest(BaseModel):
    """Payment gateway notification."""
    payment_id: str
    status: str = Field(..., description="APPROVED/EFETUADO or CANCELED/CANCELADO, any case")

    class Config:
        json_schema_extra = {
            "example": {
                "payment_id": "3f0b7c1e-8a52-4e55-9a8f-0c1d7a6b2e10",
                "status": "APPROVED"
            }
        }


# ============================================================================
# Generic Models
# ============================================================================

class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
    error: Optional[str] = None
