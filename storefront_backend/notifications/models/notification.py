# notifications/models/notification.py

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class Notification(models.Model):
    """
    In-app notification delivered to one account.

    Written after the triggering transaction commits; the recipient can only
    flip is_read.
    """

    TYPE_ORDER = "order"
    TYPE_PAYMENT = "payment"
    TYPE_PICKUP = "pickup"
    TYPE_SYSTEM = "system"

    TYPE_CHOICES = [
        (TYPE_ORDER, "Order"),
        (TYPE_PAYMENT, "Payment"),
        (TYPE_PICKUP, "Pickup"),
        (TYPE_SYSTEM, "System"),
    ]

    PRIORITY_LOW = "low"
    PRIORITY_MEDIUM = "medium"
    PRIORITY_HIGH = "high"
    PRIORITY_URGENT = "urgent"

    PRIORITY_CHOICES = [
        (PRIORITY_LOW, "Low"),
        (PRIORITY_MEDIUM, "Medium"),
        (PRIORITY_HIGH, "High"),
        (PRIORITY_URGENT, "Urgent"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    recipient = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="notifications",
    )

    type = models.CharField(max_length=16, choices=TYPE_CHOICES, default=TYPE_SYSTEM)
    event_type = models.CharField(max_length=64, blank=True, default="")

    title = models.CharField(max_length=200)
    content = models.TextField()

    related_order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )

    priority = models.CharField(
        max_length=16,
        choices=PRIORITY_CHOICES,
        default=PRIORITY_MEDIUM,
    )

    action_data = models.JSONField(default=dict, blank=True)

    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient", "is_read"], name="notif_recipient_read_idx"),
            models.Index(fields=["recipient", "created_at"], name="notif_recipient_created_idx"),
        ]

    def mark_as_read(self):
        if self.is_read:
            return False
        self.is_read = True
        self.read_at = timezone.now()
        self.save(update_fields=["is_read", "read_at"])
        return True

    def __str__(self):
        return f"{self.title} -> {self.recipient_id}"
