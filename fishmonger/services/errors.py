"""Typed failures raised by the order engine and the record stores.

Every error carries an operator-readable message; the HTTP layer maps each
kind to a status code in `fishmonger.resilience`.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

from ..utils.error_messages import ErrorMessages as EM
from ..utils.quantities import format_quantity


class OrderServiceError(RuntimeError):
    """Base class for expected, caller-recoverable failures."""

    status_code = 400

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(OrderServiceError):
    status_code = 404

    def __init__(self, resource: str, identifier: str, message: Optional[str] = None):
        super().__init__(
            message or EM.RESOURCE_NOT_FOUND.format(resource=resource, identifier=identifier),
            details={"resource": resource, "id": identifier},
        )
        self.resource = resource
        self.identifier = identifier


class ValidationError(OrderServiceError):
    status_code = 422

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message, details={"field": field} if field else None)
        self.field = field

    @property
    def errors(self) -> Dict[str, list]:
        return {self.field or "general": [self.message]}


class InsufficientStockError(OrderServiceError):
    status_code = 409

    def __init__(self, product_id: str, product_name: str, available: Decimal, requested: Decimal, unit: str = ""):
        super().__init__(
            EM.INSUFFICIENT_STOCK.format(
                product=product_name,
                available=format_quantity(available),
                requested=format_quantity(requested),
                unit=f" {unit}" if unit else "",
            ),
            details={
                "productId": product_id,
                "productName": product_name,
                "available": float(available),
                "requested": float(requested),
            },
        )
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested


class ConflictError(OrderServiceError):
    status_code = 409


class StoreUnavailableError(OrderServiceError):
    """Storage failure (connection loss, lock timeout); writes are never retried."""

    status_code = 503

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        super().__init__(EM.STORE_UNAVAILABLE.format(operation=operation), details={"operation": operation})
        self.operation = operation
        self.__cause__ = cause
