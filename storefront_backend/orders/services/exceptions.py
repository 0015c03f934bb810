# orders/services/exceptions.py

"""
ORDER WORKFLOW ERRORS

Centralized domain errors for the order / payment / pickup workflow.

Every error carries a stable machine `code`; the REST layer maps the class
to an HTTP status and renders {"error": {"code", "message"}}.
"""


class OrderWorkflowError(Exception):
    """Base exception for all order workflow failures."""

    default_code = "ORDER_WORKFLOW_ERROR"

    def __init__(self, message: str = "", *, code: str | None = None):
        self.code = code or self.default_code
        super().__init__(message or self.code)


class ValidationError(OrderWorkflowError):
    """Malformed or missing required input (empty cart, missing reason)."""

    default_code = "VALIDATION_ERROR"


class InvalidStateError(OrderWorkflowError):
    """Operation attempted from a state that does not permit it."""

    default_code = "INVALID_STATE"


class NotFoundError(OrderWorkflowError):
    """Referenced order or pickup code does not exist or is not addressable."""

    default_code = "NOT_FOUND"


class AlreadyVerifiedError(InvalidStateError):
    """Repeat verification of an already verified payment."""

    default_code = "PAYMENT_ALREADY_VERIFIED"


class AlreadyCompletedError(InvalidStateError):
    """Repeat redemption of a pickup code whose order is already completed."""

    default_code = "PICKUP_ALREADY_COMPLETED"


class PickupCodeExhaustedError(OrderWorkflowError):
    """No free pickup code could be found within the attempt budget."""

    default_code = "PICKUP_CODE_EXHAUSTED"
