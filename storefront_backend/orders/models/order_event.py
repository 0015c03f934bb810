# orders/models/order_event.py

"""
ORDER EVENT (IMMUTABLE AUDIT TRAIL)

One row per accepted transition, written in the same transaction as the
state change. Records who acted and the before/after status pair so the
history of an order can be replayed without trusting updated_at.
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class OrderEvent(models.Model):
    EVENT_PLACED = "order.placed"
    EVENT_BILL_UPLOADED = "payment.bill_uploaded"
    EVENT_PAYMENT_VERIFIED = "payment.verified"
    EVENT_PAYMENT_REJECTED = "payment.rejected"
    EVENT_PICKUP_CODE_MINTED = "pickup.code_minted"
    EVENT_FULFILLMENT_ADVANCED = "order.fulfillment_advanced"
    EVENT_PICKUP_COMPLETED = "pickup.completed"
    EVENT_CANCELLED = "order.cancelled"
    EVENT_REFUNDED = "order.refunded"

    EVENT_CHOICES = [
        (EVENT_PLACED, "Order placed"),
        (EVENT_BILL_UPLOADED, "Payment bill uploaded"),
        (EVENT_PAYMENT_VERIFIED, "Payment verified"),
        (EVENT_PAYMENT_REJECTED, "Payment rejected"),
        (EVENT_PICKUP_CODE_MINTED, "Pickup code minted"),
        (EVENT_FULFILLMENT_ADVANCED, "Fulfillment advanced"),
        (EVENT_PICKUP_COMPLETED, "Pickup completed"),
        (EVENT_CANCELLED, "Order cancelled"),
        (EVENT_REFUNDED, "Order refunded"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="events",
    )

    event_type = models.CharField(max_length=64, choices=EVENT_CHOICES)

    actor = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_events",
    )

    from_status = models.CharField(max_length=32, blank=True, default="")
    to_status = models.CharField(max_length=32, blank=True, default="")
    from_payment_status = models.CharField(max_length=32, blank=True, default="")
    to_payment_status = models.CharField(max_length=32, blank=True, default="")

    payload = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["order", "created_at"], name="order_events_order_idx"),
            models.Index(fields=["event_type"], name="order_events_type_idx"),
        ]

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            raise RuntimeError("OrderEvent records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("OrderEvent records cannot be deleted")

    def __str__(self):
        return f"{self.event_type} | {self.order_id}"
