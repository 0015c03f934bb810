# orders/services/payment_verification.py

"""
======================================================
PATH: orders/services/payment_verification.py
======================================================
PAYMENT VERIFICATION (BANK-TRANSFER BILL WORKFLOW)

Flow:
  customer uploads bill   payment pending|rejected -> pending_verification
                          order   pending_payment  -> pending
  admin verifies          payment pending_verification -> verified
                          order   pending -> confirmed (or processing)
                          pickup code minted for store pickup
  admin rejects           payment pending_verification -> rejected
                          order   pending -> pending_payment, pickup code cleared

Rules:
- Every transition locks the order row and checks preconditions first;
  a violated precondition raises before anything is mutated.
- A second verification raises AlreadyVerifiedError and never re-mints.
- The acting admin is recorded (bill_reviewed_by + OrderEvent.actor);
  role checks belong to the API layer.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from notifications.services.dispatch import notify_staff
from orders.models import (
    DeliveryMethod,
    DeliveryStatus,
    Order,
    OrderEvent,
    OrderStatus,
    PaymentStatus,
)
from orders.services import pickup_code_service
from orders.services.events import (
    order_payload,
    record_transition,
    save_transition,
    snapshot,
)
from orders.services.exceptions import (
    AlreadyVerifiedError,
    InvalidStateError,
    ValidationError,
)
from orders.services.order_lifecycle import (
    BILL_UPLOAD_PAYMENT_STATES,
    STEP_STATES,
    validate_payment_transition,
    validate_transition,
)
from orders.services.order_queries import lock_order

logger = logging.getLogger(__name__)

ALLOWED_STATUSES_AFTER_VERIFICATION = {OrderStatus.CONFIRMED, OrderStatus.PROCESSING}


def _status_after_verification() -> str:
    value = str(getattr(settings, "ORDER_STATUS_AFTER_VERIFICATION", "") or "").strip()
    if value not in ALLOWED_STATUSES_AFTER_VERIFICATION:
        return OrderStatus.CONFIRMED
    return value


def _require_pending_verification(order: Order):
    if order.payment_status == PaymentStatus.VERIFIED:
        raise AlreadyVerifiedError(
            f"Payment for order {order.order_number} is already verified.",
        )

    if order.payment_status != PaymentStatus.PENDING_VERIFICATION:
        raise InvalidStateError(
            f"Payment for order {order.order_number} is '{order.payment_status}', "
            f"not pending verification.",
            code="PAYMENT_NOT_PENDING_VERIFICATION",
        )


# ============================================================
# UPLOAD BILL (CUSTOMER)
# ============================================================

@transaction.atomic
def upload_payment_bill(*, order_id, customer, bill_image) -> Order:
    image = str(bill_image or "").strip()
    if not image:
        raise ValidationError("A payment bill image is required", code="BILL_IMAGE_REQUIRED")

    order = lock_order(order_id, customer=customer)

    if order.payment_status == PaymentStatus.VERIFIED:
        raise AlreadyVerifiedError(
            f"Payment for order {order.order_number} is already verified.",
        )

    if (
        order.payment_status not in BILL_UPLOAD_PAYMENT_STATES
        or order.status != OrderStatus.PENDING_PAYMENT
    ):
        raise InvalidStateError(
            f"A bill cannot be uploaded while payment is '{order.payment_status}' "
            f"and the order is '{order.status}'.",
            code="BILL_UPLOAD_NOT_ALLOWED",
        )

    validate_payment_transition(order=order, target_status=PaymentStatus.PENDING_VERIFICATION)
    validate_transition(order=order, target_status=OrderStatus.PENDING)

    before = snapshot(order)
    now = timezone.now()
    is_resubmission = order.payment_status == PaymentStatus.REJECTED

    order.bill_image = image
    if order.bill_upload_date is None or now > order.bill_upload_date:
        order.bill_upload_date = now
    order.bill_rejection_reason = ""
    order.payment_status = PaymentStatus.PENDING_VERIFICATION
    order.status = OrderStatus.PENDING

    save_transition(
        order,
        fields=[
            "bill_image",
            "bill_upload_date",
            "bill_rejection_reason",
            "payment_status",
            "status",
        ],
    )

    record_transition(
        order=order,
        event_type=OrderEvent.EVENT_BILL_UPLOADED,
        actor=customer,
        before=before,
        payload={"resubmission": is_resubmission},
    )

    notify_staff(
        OrderEvent.EVENT_BILL_UPLOADED,
        {**order_payload(order), "resubmission": is_resubmission},
    )

    return order


# ============================================================
# VERIFY (ADMIN)
# ============================================================

@transaction.atomic
def verify_payment(*, order_id, admin, notes: str = "") -> Order:
    order = lock_order(order_id)

    _require_pending_verification(order)

    target_status = _status_after_verification()
    validate_payment_transition(order=order, target_status=PaymentStatus.VERIFIED)
    validate_transition(order=order, target_status=target_status)

    before = snapshot(order)
    _, delivery_status = STEP_STATES[target_status]

    order.payment_status = PaymentStatus.VERIFIED
    order.bill_verified_date = timezone.now()
    order.bill_reviewed_by = admin if getattr(admin, "pk", None) else None
    if (notes or "").strip():
        order.admin_notes = notes.strip()
    order.status = target_status
    order.delivery_status = delivery_status

    code = None
    if order.delivery_method == DeliveryMethod.STORE_PICKUP:
        code = pickup_code_service.mint(order)

    save_transition(
        order,
        fields=[
            "payment_status",
            "bill_verified_date",
            "bill_reviewed_by",
            "admin_notes",
            "status",
            "delivery_status",
            "pickup_code",
        ],
    )

    payload = {"pickup_code": code} if code else {}

    record_transition(
        order=order,
        event_type=OrderEvent.EVENT_PAYMENT_VERIFIED,
        actor=admin,
        before=before,
        payload=payload,
    )

    if code:
        record_transition(
            order=order,
            event_type=OrderEvent.EVENT_PICKUP_CODE_MINTED,
            actor=admin,
            before=snapshot(order),
            payload=payload,
            notify_customer=False,
        )

    return order


# ============================================================
# REJECT (ADMIN)
# ============================================================

@transaction.atomic
def reject_payment(*, order_id, admin, reason, notes: str = "") -> Order:
    clean_reason = str(reason or "").strip()
    if not clean_reason:
        raise ValidationError("A rejection reason is required", code="REJECTION_REASON_REQUIRED")

    order = lock_order(order_id)

    if order.payment_status != PaymentStatus.PENDING_VERIFICATION:
        raise InvalidStateError(
            f"Payment for order {order.order_number} is '{order.payment_status}', "
            f"not pending verification.",
            code="PAYMENT_NOT_PENDING_VERIFICATION",
        )

    validate_payment_transition(order=order, target_status=PaymentStatus.REJECTED)
    validate_transition(order=order, target_status=OrderStatus.PENDING_PAYMENT)

    before = snapshot(order)
    had_code = bool(order.pickup_code)

    order.payment_status = PaymentStatus.REJECTED
    order.bill_rejection_reason = clean_reason
    order.bill_rejected_date = timezone.now()
    order.bill_reviewed_by = admin if getattr(admin, "pk", None) else None
    if (notes or "").strip():
        order.admin_notes = notes.strip()
    order.status = OrderStatus.PENDING_PAYMENT
    order.delivery_status = DeliveryStatus.PENDING
    order.pickup_code = None

    save_transition(
        order,
        fields=[
            "payment_status",
            "bill_rejection_reason",
            "bill_rejected_date",
            "bill_reviewed_by",
            "admin_notes",
            "status",
            "delivery_status",
            "pickup_code",
        ],
    )

    if had_code:
        logger.warning(
            "Cleared pickup code on payment rejection",
            extra={"order_id": str(order.id)},
        )

    record_transition(
        order=order,
        event_type=OrderEvent.EVENT_PAYMENT_REJECTED,
        actor=admin,
        before=before,
        payload={"reason": clean_reason},
    )

    return order
