# notifications/services/dispatch.py

"""
NOTIFICATION DISPATCH (FIRE-AND-FORGET)

Order transitions call notify() / notify_staff() inside their transaction.
Delivery is deferred with transaction.on_commit, so:
- a rolled-back transition never notifies anyone
- a failed delivery is logged and never undoes the transition

Kill switch: settings.NOTIFICATIONS_ENABLED.
"""

from __future__ import annotations

import logging
from functools import partial

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q

from notifications.models import Notification
from permissions.roles import ROLE_ADMIN

logger = logging.getLogger(__name__)


# ============================================================
# TEMPLATES (keyed by OrderEvent.event_type)
# ============================================================
# (notification type, priority, title, content format)
EVENT_TEMPLATES: dict[str, tuple[str, str, str, str]] = {
    "order.placed": (
        Notification.TYPE_ORDER,
        Notification.PRIORITY_MEDIUM,
        "Order placed",
        "Order {order_number} was placed. Total: {total_amount}.",
    ),
    "payment.bill_uploaded": (
        Notification.TYPE_PAYMENT,
        Notification.PRIORITY_MEDIUM,
        "Payment bill received",
        "A payment bill for order {order_number} is waiting for verification.",
    ),
    "payment.verified": (
        Notification.TYPE_PAYMENT,
        Notification.PRIORITY_HIGH,
        "Payment verified",
        "Payment for order {order_number} has been verified.",
    ),
    "payment.rejected": (
        Notification.TYPE_PAYMENT,
        Notification.PRIORITY_HIGH,
        "Payment bill rejected",
        "The payment bill for order {order_number} was rejected: {reason}. "
        "Please upload a new bill.",
    ),
    "order.fulfillment_advanced": (
        Notification.TYPE_ORDER,
        Notification.PRIORITY_MEDIUM,
        "Order update",
        "Order {order_number} is now {status} (delivery: {delivery_status}).",
    ),
    "pickup.completed": (
        Notification.TYPE_PICKUP,
        Notification.PRIORITY_MEDIUM,
        "Order picked up",
        "Order {order_number} was picked up. Thank you for shopping with us.",
    ),
    "order.cancelled": (
        Notification.TYPE_ORDER,
        Notification.PRIORITY_HIGH,
        "Order cancelled",
        "Order {order_number} was cancelled.",
    ),
    "order.refunded": (
        Notification.TYPE_PAYMENT,
        Notification.PRIORITY_HIGH,
        "Order refunded",
        "Order {order_number} was refunded.",
    ),
}

STAFF_TEMPLATES: dict[str, tuple[str, str, str, str]] = {
    "order.placed": (
        Notification.TYPE_ORDER,
        Notification.PRIORITY_MEDIUM,
        "New order",
        "New order {order_number} ({delivery_method}). Total: {total_amount}.",
    ),
    "payment.bill_uploaded": (
        Notification.TYPE_PAYMENT,
        Notification.PRIORITY_HIGH,
        "Payment bill to review",
        "Order {order_number} has a payment bill pending verification.",
    ),
}


class _SafeDict(dict):
    def __missing__(self, key):
        return ""


def enabled() -> bool:
    return bool(getattr(settings, "NOTIFICATIONS_ENABLED", True))


def render(event_type: str, payload: dict, *, templates=None):
    """
    Build (type, priority, title, content) for an event.

    Returns None for events nobody is notified about.
    """
    table = EVENT_TEMPLATES if templates is None else templates
    template = table.get(event_type)
    if template is None:
        return None

    kind, priority, title, content = template
    values = _SafeDict({k: v for k, v in (payload or {}).items() if v is not None})
    content = content.format_map(values)

    if event_type == "payment.verified" and values.get("pickup_code"):
        kind = Notification.TYPE_PICKUP
        content = (
            f"{content} Your pickup code is {values['pickup_code']}. "
            f"Show it at {values.get('pickup_location') or 'the store'} to collect your order."
        )

    return kind, priority, title, content


# ============================================================
# DELIVERY (runs after commit)
# ============================================================
def _create(recipient_ids, event_type: str, payload: dict, rendered) -> int:
    kind, priority, title, content = rendered
    order_id = (payload or {}).get("order_id")

    rows = [
        Notification(
            recipient_id=recipient_id,
            type=kind,
            event_type=event_type,
            title=title,
            content=content,
            related_order_id=order_id,
            priority=priority,
            action_data=dict(payload or {}),
        )
        for recipient_id in recipient_ids
    ]
    Notification.objects.bulk_create(rows)
    return len(rows)


def _deliver(customer_id, event_type: str, payload: dict) -> None:
    rendered = render(event_type, payload)
    if rendered is None or customer_id is None:
        return

    try:
        _create([customer_id], event_type, payload, rendered)
    except Exception:
        logger.exception(
            "Customer notification failed",
            extra={
                "customer_id": str(customer_id),
                "event_type": event_type,
                "order_id": (payload or {}).get("order_id"),
            },
        )


def _deliver_staff(event_type: str, payload: dict) -> None:
    rendered = render(event_type, payload, templates=STAFF_TEMPLATES)
    if rendered is None:
        return

    try:
        recipient_ids = list(staff_recipients().values_list("id", flat=True))
        count = _create(recipient_ids, event_type, payload, rendered)
        logger.info(
            "Staff notified",
            extra={"event_type": event_type, "recipients": count},
        )
    except Exception:
        logger.exception(
            "Staff notification failed",
            extra={"event_type": event_type, "order_id": (payload or {}).get("order_id")},
        )


def staff_recipients():
    User = get_user_model()
    return User.objects.filter(is_active=True).filter(
        Q(role=ROLE_ADMIN) | Q(is_superuser=True)
    )


# ============================================================
# PUBLIC API
# ============================================================
def notify(customer_id, event_type: str, payload: dict) -> None:
    """
    Schedule an in-app notification for the order's customer.
    """
    if not enabled():
        return
    transaction.on_commit(partial(_deliver, customer_id, event_type, dict(payload or {})))


def notify_staff(event_type: str, payload: dict) -> None:
    """
    Schedule an in-app notification for every active admin.
    """
    if not enabled():
        return
    transaction.on_commit(partial(_deliver_staff, event_type, dict(payload or {})))
