# orders/services/pickup_code_service.py

"""
======================================================
PATH: orders/services/pickup_code_service.py
======================================================
PICKUP CODE SERVICE

Purpose:
- mint():   issue a 4-digit counter code when a store pickup payment is verified
- verify(): staff lookup of the active order behind a code
- redeem(): staff completes the pickup; the order becomes COMPLETED

Rules:
- Codes are "0000".."9999" (leading zeros kept), drawn from `secrets`.
- A code identifies at most one ACTIVE order (status not completed /
  cancelled / refunded). The partial unique constraint
  order_unique_active_pickup_code is the final authority; the pre-check
  only avoids burning a savepoint on obvious collisions.
- Completed orders keep their code as history, so a code can be reused
  once its previous holder is completed.
"""

from __future__ import annotations

import logging
import re
import secrets

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from orders.models import (
    INACTIVE_ORDER_STATUSES,
    DeliveryMethod,
    DeliveryStatus,
    Order,
    OrderEvent,
    OrderStatus,
    PaymentStatus,
)
from orders.services.events import (
    append_internal_note,
    record_transition,
    save_transition,
    snapshot,
)
from orders.services.exceptions import (
    AlreadyCompletedError,
    InvalidStateError,
    NotFoundError,
    PickupCodeExhaustedError,
    ValidationError,
)
from orders.services.order_lifecycle import validate_transition

logger = logging.getLogger(__name__)

CODE_SPACE = 10_000
CODE_PATTERN = re.compile(r"^\d{4}$")

REDEEMABLE_STATUSES = (
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.READY,
)

CODE_NOT_FOUND = "PICKUP_CODE_NOT_FOUND"
CODE_ALREADY_COMPLETED = "PICKUP_ALREADY_COMPLETED"


# ============================================================
# HELPERS
# ============================================================

def _max_attempts() -> int:
    return int(getattr(settings, "PICKUP_CODE_MAX_ATTEMPTS", 50) or 50)


def _generate_code() -> str:
    return f"{secrets.randbelow(CODE_SPACE):04d}"


def normalize_code(code) -> str:
    value = str(code or "").strip()
    if not CODE_PATTERN.match(value):
        raise ValidationError(
            "Invalid pickup code format. Must be 4 digits.",
            code="INVALID_PICKUP_CODE",
        )
    return value


def _active_holders(code: str):
    return Order.objects.filter(pickup_code=code).exclude(
        status__in=[s.value for s in INACTIVE_ORDER_STATUSES]
    )


def _all_codes():
    return (f"{n:04d}" for n in range(CODE_SPACE))


def _active_codes() -> set[str]:
    return set(
        Order.objects.exclude(pickup_code__isnull=True)
        .exclude(status__in=[s.value for s in INACTIVE_ORDER_STATUSES])
        .values_list("pickup_code", flat=True)
    )


def _try_assign(order: Order, code: str, *, attempt: int) -> bool:
    """
    Write `code` onto the order under a savepoint.

    Returns False when a concurrent mint took the code first.
    """
    try:
        with transaction.atomic():
            Order.objects.filter(pk=order.pk).update(pickup_code=code)
    except IntegrityError:
        logger.warning(
            "Pickup code collision on write; retrying",
            extra={"order_id": str(order.id), "attempt": attempt},
        )
        return False

    order.pickup_code = code
    logger.info(
        "Pickup code minted",
        extra={"order_id": str(order.id), "attempts": attempt},
    )
    return True


def _latest_completed_holder(code: str) -> Order | None:
    return (
        Order.objects.filter(pickup_code=code, status=OrderStatus.COMPLETED)
        .order_by("-actual_delivery_date", "-updated_at")
        .first()
    )


def _missing_code_error(code: str) -> NotFoundError:
    if _latest_completed_holder(code) is not None:
        return NotFoundError(
            f"Pickup code {code} belongs to an order that was already picked up.",
            code=CODE_ALREADY_COMPLETED,
        )
    return NotFoundError(
        f"Pickup code {code} not found or order not ready for pickup.",
        code=CODE_NOT_FOUND,
    )


# ============================================================
# MINT
# ============================================================

def mint(order: Order) -> str:
    """
    Assign a fresh pickup code to a locked, verified store pickup order.

    Must run inside the caller's transaction (verify_payment). Each attempt
    writes the code under a savepoint so a concurrent mint of the same code
    surfaces as IntegrityError and is retried instead of aborting the
    outer transaction.

    PICKUP_CODE_MAX_ATTEMPTS bounds the random draws only. After that the
    free codes are listed and drawn from directly, so PickupCodeExhaustedError
    means every code is held by an active order.
    """
    if not transaction.get_connection().in_atomic_block:
        raise InvalidStateError("Pickup codes must be minted inside a transaction")

    if order.delivery_method != DeliveryMethod.STORE_PICKUP:
        raise InvalidStateError(
            f"Order {order.order_number} is not a store pickup order",
            code="NOT_STORE_PICKUP",
        )

    if order.pickup_code:
        raise InvalidStateError(
            f"Order {order.order_number} already holds a pickup code",
            code="PICKUP_CODE_ALREADY_ISSUED",
        )

    attempts = _max_attempts()

    for attempt in range(1, attempts + 1):
        code = _generate_code()

        if _active_holders(code).exists():
            continue

        if _try_assign(order, code, attempt=attempt):
            return code

    # Random draws keep missing in a crowded code space: pick from what is free.
    free = sorted(set(_all_codes()) - _active_codes())
    attempt = attempts

    while free:
        attempt += 1
        code = secrets.choice(free)
        free.remove(code)

        if _try_assign(order, code, attempt=attempt):
            return code

    logger.error(
        "Pickup code space exhausted",
        extra={"order_id": str(order.id), "attempts": attempt},
    )
    raise PickupCodeExhaustedError(
        "No free pickup code: every code is held by an active order"
    )


# ============================================================
# VERIFY (READ ONLY)
# ============================================================

def verify(code) -> Order:
    """
    Return the active store pickup order bound to `code` with customer and
    items loaded for counter display.

    Raises NotFoundError with code PICKUP_ALREADY_COMPLETED when the most
    recent holder was already picked up, PICKUP_CODE_NOT_FOUND otherwise.
    """
    value = normalize_code(code)

    order = (
        Order.objects.select_related("customer")
        .prefetch_related("items", "items__product")
        .filter(
            pickup_code=value,
            delivery_method=DeliveryMethod.STORE_PICKUP,
            status__in=[s.value for s in REDEEMABLE_STATUSES],
        )
        .first()
    )

    if order is None:
        raise _missing_code_error(value)

    return order


# ============================================================
# REDEEM
# ============================================================

@transaction.atomic
def redeem(code, actor, notes: str = "") -> Order:
    """
    Complete the pickup for the active order bound to `code`.

    Effects:
    - status COMPLETED, delivery DELIVERED
    - actual_delivery_date = now (the picked-up timestamp)
    - notes appended to internal_notes
    """
    value = normalize_code(code)

    order = (
        Order.objects.select_for_update()
        .filter(pickup_code=value)
        .exclude(status__in=[s.value for s in INACTIVE_ORDER_STATUSES])
        .first()
    )

    if order is None:
        if _latest_completed_holder(value) is not None:
            raise AlreadyCompletedError(
                f"Pickup code {value} has already been redeemed.",
            )
        raise NotFoundError(
            f"Pickup code {value} not found or order not ready for pickup.",
            code=CODE_NOT_FOUND,
        )

    if order.status not in REDEEMABLE_STATUSES:
        raise InvalidStateError(
            f"Order {order.order_number} is not ready for pickup (status '{order.status}')",
            code="NOT_READY_FOR_PICKUP",
        )

    if order.payment_status != PaymentStatus.VERIFIED:
        raise InvalidStateError(
            f"Order {order.order_number} payment is not verified",
            code="PAYMENT_NOT_VERIFIED",
        )

    validate_transition(order=order, target_status=OrderStatus.COMPLETED)

    before = snapshot(order)
    now = timezone.now()
    note = (notes or "").strip()

    order.status = OrderStatus.COMPLETED
    order.delivery_status = DeliveryStatus.DELIVERED
    order.actual_delivery_date = now
    order.delivery_notes = note or "Order picked up successfully"
    append_internal_note(order, note or "Picked up at counter", actor=actor)

    save_transition(
        order,
        fields=[
            "status",
            "delivery_status",
            "actual_delivery_date",
            "delivery_notes",
            "internal_notes",
        ],
    )

    record_transition(
        order=order,
        event_type=OrderEvent.EVENT_PICKUP_COMPLETED,
        actor=actor,
        before=before,
        payload={"pickup_code": value, "picked_up_at": now.isoformat()},
    )

    return order


# ============================================================
# LISTINGS
# ============================================================

def pending_pickups():
    """
    Verified store pickup orders waiting at the counter.
    """
    return (
        Order.objects.select_related("customer")
        .prefetch_related("items")
        .filter(
            delivery_method=DeliveryMethod.STORE_PICKUP,
            status__in=[s.value for s in REDEEMABLE_STATUSES],
            pickup_code__isnull=False,
        )
        .order_by("-order_date")
    )


def pickup_history(*, limit: int = 50):
    """
    Most recent completed pickups.
    """
    return (
        Order.objects.select_related("customer")
        .prefetch_related("items")
        .filter(
            delivery_method=DeliveryMethod.STORE_PICKUP,
            status=OrderStatus.COMPLETED,
        )
        .order_by("-actual_delivery_date")[:limit]
    )
