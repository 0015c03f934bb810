# orders/services/events.py

"""
TRANSITION BOOKKEEPING

Shared tail of every order transition:
- consistency check + row write
- immutable OrderEvent (same transaction)
- customer notification scheduled after commit (fire-and-forget)
"""

from __future__ import annotations

import logging

from django.utils import timezone

from notifications.services.dispatch import notify
from orders.models import OrderEvent
from orders.services.order_lifecycle import assert_consistent

logger = logging.getLogger(__name__)


def snapshot(order) -> tuple[str, str]:
    return str(order.status), str(order.payment_status)


def order_payload(order) -> dict:
    """
    JSON-safe summary attached to events and notifications.
    """
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "status": str(order.status),
        "payment_status": str(order.payment_status),
        "delivery_method": str(order.delivery_method),
        "delivery_status": str(order.delivery_status),
        "pickup_location": order.pickup_location,
        "total_amount": str(order.total_amount),
    }


def save_transition(order, *, fields: list[str]) -> None:
    assert_consistent(order)
    order.save(update_fields=[*fields, "updated_at"])


def record_transition(
    *,
    order,
    event_type: str,
    actor,
    before: tuple[str, str],
    payload: dict | None = None,
    notify_customer: bool = True,
) -> OrderEvent:
    from_status, from_payment_status = before
    extra_payload = dict(payload or {})

    event = OrderEvent.objects.create(
        order=order,
        event_type=event_type,
        actor=actor if getattr(actor, "pk", None) else None,
        from_status=from_status,
        to_status=str(order.status),
        from_payment_status=from_payment_status,
        to_payment_status=str(order.payment_status),
        payload=extra_payload,
    )

    logger.info(
        "Order transition recorded",
        extra={
            "order_id": str(order.id),
            "event_type": event_type,
            "from_status": from_status,
            "to_status": str(order.status),
            "actor_id": str(getattr(actor, "pk", "") or ""),
        },
    )

    if notify_customer:
        notify(order.customer_id, event_type, {**order_payload(order), **extra_payload})

    return event


def append_internal_note(order, note: str, *, actor=None) -> bool:
    """
    Append a timestamped line to internal_notes (admin only, append-only).

    Returns False when there is nothing to append.
    """
    text = (note or "").strip()
    if not text:
        return False

    who = getattr(actor, "email", "") or "system"
    line = f"[{timezone.now().isoformat(timespec='seconds')}] {who}: {text}"
    order.internal_notes = f"{order.internal_notes}\n{line}" if order.internal_notes else line
    return True
