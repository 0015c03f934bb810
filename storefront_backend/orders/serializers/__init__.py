from .order_command import (
    AdvanceFulfillmentCommandSerializer,
    CancelOrderCommandSerializer,
    CheckoutCommandSerializer,
    PickupCompleteCommandSerializer,
    RefundOrderCommandSerializer,
    RejectPaymentCommandSerializer,
    UploadPaymentBillCommandSerializer,
    VerifyPaymentCommandSerializer,
)
from .order_read import (
    OrderCountsSerializer,
    OrderEventSerializer,
    OrderItemSerializer,
    OrderSerializer,
    PickupOrderSerializer,
)

__all__ = [
    "OrderSerializer",
    "OrderItemSerializer",
    "OrderEventSerializer",
    "OrderCountsSerializer",
    "PickupOrderSerializer",
    "CheckoutCommandSerializer",
    "UploadPaymentBillCommandSerializer",
    "VerifyPaymentCommandSerializer",
    "RejectPaymentCommandSerializer",
    "AdvanceFulfillmentCommandSerializer",
    "CancelOrderCommandSerializer",
    "RefundOrderCommandSerializer",
    "PickupCompleteCommandSerializer",
]
