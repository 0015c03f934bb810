# orders/services/__init__.py

from .cancellation_service import cancel_order, refund_order
from .checkout_service import submit_order
from .fulfillment_service import advance_fulfillment
from .payment_verification import reject_payment, upload_payment_bill, verify_payment

__all__ = [
    "submit_order",
    "upload_payment_bill",
    "verify_payment",
    "reject_payment",
    "advance_fulfillment",
    "cancel_order",
    "refund_order",
]
