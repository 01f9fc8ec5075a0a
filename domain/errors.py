"""
Domain: Sale error taxonomy.

Every failure raised by the sale lifecycle carries a stable kind (the class)
and a human-readable message. Mapping a kind to a transport status is the
boundary layer's job.

    SaleError
    ├── ValidationError   malformed input (caller's fault)
    ├── NotFoundError     referenced sale/vehicle/payment does not exist
    ├── ConflictError     requested transition violates the current state
    └── StoreError        persistence I/O failure
"""

from __future__ import annotations


class SaleError(Exception):
    """Base class for all sale lifecycle errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SaleError, ValueError):
    pass


class NotFoundError(SaleError, LookupError):
    pass


class ConflictError(SaleError):
    pass


class StoreError(SaleError, RuntimeError):
    pass


__all__ = [
    "SaleError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "StoreError",
]
