from .enums import (
    INACTIVE_ORDER_STATUSES,
    PHYSICAL_DELIVERY_METHODS,
    DeliveryMethod,
    DeliveryStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from .order import Order
from .order_event import OrderEvent
from .order_item import OrderItem

__all__ = [
    "INACTIVE_ORDER_STATUSES",
    "PHYSICAL_DELIVERY_METHODS",
    "DeliveryMethod",
    "DeliveryStatus",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "Order",
    "OrderEvent",
    "OrderItem",
]
