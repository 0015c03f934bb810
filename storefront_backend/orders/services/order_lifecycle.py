"""
ORDER LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed lifecycle transitions for orders,
their embedded payment record, and the fulfillment paths per delivery method.

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- No side effects
- Single source of truth
"""

from orders.models import (
    INACTIVE_ORDER_STATUSES,
    DeliveryMethod,
    DeliveryStatus,
    OrderStatus,
    PaymentStatus,
)
from orders.services.exceptions import InvalidStateError

# ============================================================
# ORDER STATUS
# ============================================================

TERMINAL_STATES = {
    OrderStatus.COMPLETED,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.REFUNDED,
}

_SIDE_EXITS = {OrderStatus.CANCELLED}
_PAID_SIDE_EXITS = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING_PAYMENT: {
        OrderStatus.PENDING,
        *_SIDE_EXITS,
    },
    OrderStatus.PENDING: {
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.PENDING_PAYMENT,
        *_SIDE_EXITS,
    },
    OrderStatus.CONFIRMED: {
        OrderStatus.PROCESSING,
        OrderStatus.READY,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.COMPLETED,
        *_PAID_SIDE_EXITS,
    },
    OrderStatus.PROCESSING: {
        OrderStatus.READY,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.COMPLETED,
        *_PAID_SIDE_EXITS,
    },
    OrderStatus.READY: {
        OrderStatus.COMPLETED,
        *_PAID_SIDE_EXITS,
    },
    OrderStatus.SHIPPED: {
        # shipped -> shipped is the out_for_delivery delivery sub-step
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        *_PAID_SIDE_EXITS,
    },
}


# ============================================================
# PAYMENT STATUS
# ============================================================

PAYMENT_TERMINAL_STATES = {
    PaymentStatus.COMPLETED,
    PaymentStatus.REFUNDED,
    PaymentStatus.CANCELLED,
}

ALLOWED_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {
        PaymentStatus.PENDING_VERIFICATION,
        PaymentStatus.CANCELLED,
    },
    PaymentStatus.REJECTED: {
        PaymentStatus.PENDING_VERIFICATION,
        PaymentStatus.CANCELLED,
    },
    PaymentStatus.FAILED: {
        PaymentStatus.PENDING_VERIFICATION,
        PaymentStatus.CANCELLED,
    },
    PaymentStatus.PENDING_VERIFICATION: {
        PaymentStatus.VERIFIED,
        PaymentStatus.REJECTED,
        PaymentStatus.CANCELLED,
    },
    PaymentStatus.VERIFIED: {
        PaymentStatus.REFUNDED,
    },
}

# Payment states a customer may upload a bill from.
BILL_UPLOAD_PAYMENT_STATES = {
    PaymentStatus.PENDING,
    PaymentStatus.REJECTED,
}


# ============================================================
# FULFILLMENT PATHS
# ============================================================
# Each step maps to the (order.status, delivery_status) pair it produces.

STEP_CONFIRMED = "confirmed"
STEP_PROCESSING = "processing"
STEP_READY = "ready"
STEP_COMPLETED = "completed"
STEP_SHIPPED = "shipped"
STEP_OUT_FOR_DELIVERY = "out_for_delivery"
STEP_DELIVERED = "delivered"

PICKUP_PATH = (
    STEP_CONFIRMED,
    STEP_PROCESSING,
    STEP_READY,
    STEP_COMPLETED,
)

DELIVERY_PATH = (
    STEP_CONFIRMED,
    STEP_PROCESSING,
    STEP_SHIPPED,
    STEP_OUT_FOR_DELIVERY,
    STEP_DELIVERED,
)

STEP_STATES = {
    STEP_CONFIRMED: (OrderStatus.CONFIRMED, DeliveryStatus.CONFIRMED),
    STEP_PROCESSING: (OrderStatus.PROCESSING, DeliveryStatus.PROCESSING),
    STEP_READY: (OrderStatus.READY, DeliveryStatus.PROCESSING),
    STEP_COMPLETED: (OrderStatus.COMPLETED, DeliveryStatus.DELIVERED),
    STEP_SHIPPED: (OrderStatus.SHIPPED, DeliveryStatus.SHIPPED),
    STEP_OUT_FOR_DELIVERY: (OrderStatus.SHIPPED, DeliveryStatus.OUT_FOR_DELIVERY),
    STEP_DELIVERED: (OrderStatus.DELIVERED, DeliveryStatus.DELIVERED),
}

ALL_STEPS = set(STEP_STATES)


# ============================================================
# CONSISTENCY RULES
# ============================================================

# Delivery cannot outpace payment verification.
_DELIVERY_STATES_REQUIRING_PAYMENT = {
    DeliveryStatus.CONFIRMED,
    DeliveryStatus.PROCESSING,
    DeliveryStatus.SHIPPED,
    DeliveryStatus.OUT_FOR_DELIVERY,
    DeliveryStatus.DELIVERED,
}

_SETTLED_PAYMENT_STATES = {
    PaymentStatus.VERIFIED,
    PaymentStatus.COMPLETED,
    PaymentStatus.REFUNDED,
}

_ORDER_STATES_REQUIRING_PAYMENT = {
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.READY,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
}

_ORDER_STATES_ALLOWING_DELIVERED = {
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
    OrderStatus.REFUNDED,
}


# ============================================================
# DOMAIN RULES
# ============================================================


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATES


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, order, target_status: str):
    if not can_transition(from_status=order.status, to_status=target_status):
        raise InvalidStateError(
            f"Order {order.order_number} cannot transition from "
            f"'{order.status}' to '{target_status}'",
            code="INVALID_ORDER_TRANSITION",
        )


def can_transition_payment(*, from_status: str, to_status: str) -> bool:
    if from_status in PAYMENT_TERMINAL_STATES:
        return False

    return to_status in ALLOWED_PAYMENT_TRANSITIONS.get(from_status, set())


def validate_payment_transition(*, order, target_status: str):
    if not can_transition_payment(
        from_status=order.payment_status,
        to_status=target_status,
    ):
        raise InvalidStateError(
            f"Payment for order {order.order_number} cannot transition from "
            f"'{order.payment_status}' to '{target_status}'",
            code="INVALID_PAYMENT_TRANSITION",
        )


def fulfillment_path(delivery_method: str) -> tuple:
    if delivery_method == DeliveryMethod.STORE_PICKUP:
        return PICKUP_PATH
    return DELIVERY_PATH


def current_step(order) -> str | None:
    """
    Position of the order on its fulfillment path, or None when the order
    has not entered fulfillment (unpaid) or has left it (cancelled/refunded).
    """
    if (
        order.status == OrderStatus.SHIPPED
        and order.delivery_status == DeliveryStatus.OUT_FOR_DELIVERY
    ):
        step = STEP_OUT_FOR_DELIVERY
    else:
        step = str(order.status)

    path = fulfillment_path(order.delivery_method)
    return step if step in path else None


def validate_fulfillment_step(*, order, next_step: str):
    """
    Forward-only movement along the order's fulfillment path.

    Raises:
    - InvalidStateError when the payment is not verified, the step belongs to
      the other delivery method's path, or the move is backward / same-step.
    """
    if order.payment_status != PaymentStatus.VERIFIED:
        raise InvalidStateError(
            f"Order {order.order_number} cannot be fulfilled before payment is verified "
            f"(payment is '{order.payment_status}')",
            code="PAYMENT_NOT_VERIFIED",
        )

    path = fulfillment_path(order.delivery_method)
    if next_step not in path:
        raise InvalidStateError(
            f"Step '{next_step}' is not valid for {order.delivery_method} orders",
            code="INVALID_FULFILLMENT_STEP",
        )

    step = current_step(order)
    if step is None:
        raise InvalidStateError(
            f"Order {order.order_number} is not in fulfillment (status '{order.status}')",
            code="INVALID_ORDER_TRANSITION",
        )

    if path.index(next_step) <= path.index(step):
        raise InvalidStateError(
            f"Order {order.order_number} cannot move from '{step}' back to '{next_step}'",
            code="FULFILLMENT_NOT_FORWARD",
        )

    target_status, _ = STEP_STATES[next_step]
    validate_transition(order=order, target_status=target_status)


def assert_consistent(order):
    """
    Cross-field invariants between order status, payment and delivery.

    Called on every transition right before the row is written; any
    combination not covered here is left to the transition tables above.
    """
    problems = []

    if (
        order.delivery_status in _DELIVERY_STATES_REQUIRING_PAYMENT
        and order.payment_status not in _SETTLED_PAYMENT_STATES
    ):
        problems.append(
            f"delivery status '{order.delivery_status}' requires a verified payment"
        )

    if (
        order.delivery_status == DeliveryStatus.DELIVERED
        and order.status not in _ORDER_STATES_ALLOWING_DELIVERED
    ):
        problems.append(
            f"delivery status 'delivered' is inconsistent with order status '{order.status}'"
        )

    if (
        order.status in _ORDER_STATES_REQUIRING_PAYMENT
        and order.payment_status not in _SETTLED_PAYMENT_STATES
    ):
        problems.append(f"order status '{order.status}' requires a verified payment")

    if order.status == OrderStatus.COMPLETED and not (
        order.delivery_method == DeliveryMethod.STORE_PICKUP and order.pickup_code
    ):
        problems.append("only a store pickup order with a pickup code can be completed")

    if order.status not in INACTIVE_ORDER_STATUSES:
        should_hold_code = (
            order.payment_status == PaymentStatus.VERIFIED
            and order.delivery_method == DeliveryMethod.STORE_PICKUP
        )
        if should_hold_code != bool(order.pickup_code):
            problems.append(
                "pickup code must exist exactly when a store pickup payment is verified"
            )

    if problems:
        raise InvalidStateError(
            f"Order {order.order_number} would become inconsistent: " + "; ".join(problems),
            code="INCONSISTENT_ORDER_STATE",
        )
