# orders/views/errors.py

"""
API ERROR NORMALIZATION

Maps order workflow errors onto the canonical error body:
    {"error": {"code": "...", "message": "..."}}
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response

from orders.services.exceptions import (
    InvalidStateError,
    NotFoundError,
    OrderWorkflowError,
    PickupCodeExhaustedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order; subclasses before their bases.
ERROR_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (PickupCodeExhaustedError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def error_response(*, code: str, message: str, http_status: int):
    """
    Canonical API error response.
    """
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status,
    )


def status_for(exc: OrderWorkflowError) -> int:
    for exc_class, http_status in ERROR_STATUS:
        if isinstance(exc, exc_class):
            return http_status
    return status.HTTP_400_BAD_REQUEST


def workflow_error_response(exc: OrderWorkflowError):
    http_status = status_for(exc)

    if http_status >= 500:
        logger.error(
            "Order workflow failure",
            extra={"code": exc.code, "error": str(exc)},
        )

    return error_response(code=exc.code, message=str(exc), http_status=http_status)
