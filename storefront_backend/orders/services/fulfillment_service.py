# orders/services/fulfillment_service.py

"""
FULFILLMENT SERVICE

Moves a verified order forward along its delivery method's path:

  store pickup:  confirmed -> processing -> ready -> completed
  delivery:      confirmed -> processing -> shipped -> out_for_delivery -> delivered

Rules:
- Forward only; skipping ahead is allowed, going back or repeating is not.
- Payment must be verified.
- `completed` is reachable only through a matching pickup code and is
  delegated to pickup_code_service.redeem().
"""

from __future__ import annotations

from django.db import transaction
from django.utils import timezone

from orders.models import OrderEvent
from orders.services import pickup_code_service
from orders.services.events import (
    append_internal_note,
    record_transition,
    save_transition,
    snapshot,
)
from orders.services.exceptions import ValidationError
from orders.services.order_lifecycle import (
    ALL_STEPS,
    STEP_COMPLETED,
    STEP_DELIVERED,
    STEP_STATES,
    current_step,
    validate_fulfillment_step,
)
from orders.services.order_queries import lock_order


def _normalize_step(next_step) -> str:
    step = str(next_step or "").strip().lower()
    if step not in ALL_STEPS:
        raise ValidationError(
            f"Unknown fulfillment step '{next_step}'",
            code="INVALID_FULFILLMENT_STEP",
        )
    return step


@transaction.atomic
def advance_fulfillment(
    *,
    order_id,
    actor,
    next_step,
    pickup_code=None,
    tracking_number: str = "",
    carrier: str = "",
    notes: str = "",
):
    step = _normalize_step(next_step)

    order = lock_order(order_id)
    validate_fulfillment_step(order=order, next_step=step)

    if step == STEP_COMPLETED:
        if not pickup_code:
            raise ValidationError(
                "A pickup code is required to complete a store pickup order",
                code="PICKUP_CODE_REQUIRED",
            )

        code = pickup_code_service.normalize_code(pickup_code)
        if code != order.pickup_code:
            raise ValidationError(
                "Pickup code does not match this order",
                code="PICKUP_CODE_MISMATCH",
            )

        return pickup_code_service.redeem(code, actor, notes)

    before = snapshot(order)
    from_step = current_step(order)
    status, delivery_status = STEP_STATES[step]

    order.status = status
    order.delivery_status = delivery_status
    fields = ["status", "delivery_status"]

    if (tracking_number or "").strip():
        order.tracking_number = tracking_number.strip()
        fields.append("tracking_number")

    if (carrier or "").strip():
        order.carrier = carrier.strip()
        fields.append("carrier")

    if step == STEP_DELIVERED:
        order.actual_delivery_date = timezone.now()
        fields.append("actual_delivery_date")

    if append_internal_note(order, notes, actor=actor):
        fields.append("internal_notes")

    save_transition(order, fields=fields)

    record_transition(
        order=order,
        event_type=OrderEvent.EVENT_FULFILLMENT_ADVANCED,
        actor=actor,
        before=before,
        payload={
            "from_step": from_step,
            "to_step": step,
            "tracking_number": order.tracking_number,
            "carrier": order.carrier,
        },
    )

    return order
