# orders/services/cancellation_service.py

"""
CANCELLATION + REFUND (SIDE EXITS)

cancel_order:
- Any non-terminal order (terminal = completed, delivered, cancelled, refunded).
- Customers: own orders only, and only before payment is verified.
- Staff with orders.cancel_any: any non-terminal order.
- Reserved stock is released, the pickup code is cleared, and the payment
  becomes CANCELLED unless it was already verified (money taken stays on
  record for a refund).

refund_order:
- Verified payment on a non-terminal order.
- Order + payment become REFUNDED, stock released, pickup code cleared.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from orders.models import DeliveryStatus, OrderEvent, OrderStatus, PaymentStatus
from orders.services.events import (
    append_internal_note,
    record_transition,
    save_transition,
    snapshot,
)
from orders.services.exceptions import (
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from orders.services.order_lifecycle import (
    is_terminal,
    validate_payment_transition,
    validate_transition,
)
from orders.services.order_queries import lock_order
from permissions.roles import CAP_ORDERS_CANCEL_ANY, user_has_capability
from products.services.inventory import release_order_stock

logger = logging.getLogger(__name__)

_IN_TRANSIT = {DeliveryStatus.SHIPPED, DeliveryStatus.OUT_FOR_DELIVERY}


def _require_not_terminal(order):
    if is_terminal(order.status):
        raise InvalidStateError(
            f"Order {order.order_number} is already {order.status}.",
            code="ORDER_ALREADY_FINAL",
        )


def _mark_returned_if_in_transit(order, fields: list[str]):
    if order.delivery_status in _IN_TRANSIT:
        order.delivery_status = DeliveryStatus.RETURNED
        fields.append("delivery_status")


@transaction.atomic
def cancel_order(*, order_id, actor, reason: str = ""):
    order = lock_order(order_id)

    is_staff_cancel = user_has_capability(actor, CAP_ORDERS_CANCEL_ANY)

    if not is_staff_cancel:
        if order.customer_id != getattr(actor, "pk", None):
            raise NotFoundError(f"Order {order_id} not found", code="ORDER_NOT_FOUND")

        if order.payment_status == PaymentStatus.VERIFIED:
            raise InvalidStateError(
                "Orders with a verified payment can only be cancelled by staff.",
                code="CANCEL_REQUIRES_STAFF",
            )

    _require_not_terminal(order)
    validate_transition(order=order, target_status=OrderStatus.CANCELLED)

    before = snapshot(order)
    fields = ["status", "cancellation_reason", "cancelled_at", "pickup_code"]

    release_order_stock(order=order)

    if order.payment_status != PaymentStatus.VERIFIED:
        validate_payment_transition(order=order, target_status=PaymentStatus.CANCELLED)
        order.payment_status = PaymentStatus.CANCELLED
        fields.append("payment_status")

    order.status = OrderStatus.CANCELLED
    order.cancellation_reason = (reason or "").strip()
    order.cancelled_at = timezone.now()
    order.pickup_code = None
    _mark_returned_if_in_transit(order, fields)

    save_transition(order, fields=fields)

    record_transition(
        order=order,
        event_type=OrderEvent.EVENT_CANCELLED,
        actor=actor,
        before=before,
        payload={"reason": order.cancellation_reason, "by_staff": is_staff_cancel},
    )

    return order


@transaction.atomic
def refund_order(*, order_id, admin, reason):
    clean_reason = str(reason or "").strip()
    if not clean_reason:
        raise ValidationError("A refund reason is required", code="REFUND_REASON_REQUIRED")

    order = lock_order(order_id)

    if order.payment_status != PaymentStatus.VERIFIED:
        raise InvalidStateError(
            f"Order {order.order_number} has no verified payment to refund "
            f"(payment is '{order.payment_status}').",
            code="PAYMENT_NOT_VERIFIED",
        )

    _require_not_terminal(order)
    validate_transition(order=order, target_status=OrderStatus.REFUNDED)
    validate_payment_transition(order=order, target_status=PaymentStatus.REFUNDED)

    before = snapshot(order)
    fields = ["status", "payment_status", "refunded_at", "pickup_code", "internal_notes"]

    release_order_stock(order=order)

    order.status = OrderStatus.REFUNDED
    order.payment_status = PaymentStatus.REFUNDED
    order.refunded_at = timezone.now()
    order.pickup_code = None
    append_internal_note(order, f"Refunded: {clean_reason}", actor=admin)
    _mark_returned_if_in_transit(order, fields)

    save_transition(order, fields=fields)

    logger.info(
        "Order refunded",
        extra={"order_id": str(order.id), "total_amount": str(order.total_amount)},
    )

    record_transition(
        order=order,
        event_type=OrderEvent.EVENT_REFUNDED,
        actor=admin,
        before=before,
        payload={"reason": clean_reason},
    )

    return order
