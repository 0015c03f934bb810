# orders/models/order.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from .enums import (
    INACTIVE_ORDER_STATUSES,
    DeliveryMethod,
    DeliveryStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

User = settings.AUTH_USER_MODEL


class Order(models.Model):
    """
    Storefront order aggregate.

    Key rules:
    - Created by checkout in PENDING_PAYMENT; mutated only through
      orders/services transition functions (locked read-modify-write).
    - Payment and delivery sub-records are embedded as prefixed columns.
    - Money fields are server computed and frozen after creation.
    - Never deleted: cancellation and refund are terminal states.
    """

    _IMMUTABLE_FIELDS = (
        "order_number",
        "customer_id",
        "subtotal_amount",
        "tax_amount",
        "shipping_amount",
        "discount_amount",
        "total_amount",
        "order_date",
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_number = models.CharField(
        max_length=64,
        unique=True,
        blank=True,
        help_text="System-generated public order number",
    )

    customer = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    # Money fields (server authoritative)
    subtotal_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    tax_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    shipping_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    discount_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    status = models.CharField(
        max_length=32,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING_PAYMENT,
    )

    # ----------------------------
    # Payment (embedded)
    # ----------------------------
    payment_method = models.CharField(
        max_length=32,
        choices=PaymentMethod.choices,
        default=PaymentMethod.BANK_TRANSFER,
    )
    payment_status = models.CharField(
        max_length=32,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    bill_image = models.TextField(
        blank=True,
        default="",
        help_text="Opaque reference (URL or data blob) to the uploaded transfer bill",
    )
    bill_upload_date = models.DateTimeField(null=True, blank=True)
    bill_verified_date = models.DateTimeField(null=True, blank=True)
    bill_rejected_date = models.DateTimeField(null=True, blank=True)
    bill_reviewed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviewed_order_bills",
    )
    bill_rejection_reason = models.TextField(blank=True, default="")
    admin_notes = models.TextField(blank=True, default="")

    # ----------------------------
    # Delivery (embedded)
    # ----------------------------
    delivery_method = models.CharField(
        max_length=32,
        choices=DeliveryMethod.choices,
        default=DeliveryMethod.STORE_PICKUP,
    )
    delivery_status = models.CharField(
        max_length=32,
        choices=DeliveryStatus.choices,
        default=DeliveryStatus.PENDING,
    )
    pickup_code = models.CharField(max_length=4, null=True, blank=True)
    pickup_location = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Store counter where a store pickup order is collected",
    )
    delivery_address = models.JSONField(null=True, blank=True)
    tracking_number = models.CharField(max_length=120, blank=True, default="")
    carrier = models.CharField(max_length=120, blank=True, default="")
    estimated_delivery_date = models.DateField(null=True, blank=True)
    actual_delivery_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Delivered / picked-up timestamp",
    )
    delivery_notes = models.TextField(blank=True, default="")

    # ----------------------------
    # Bookkeeping
    # ----------------------------
    order_date = models.DateTimeField(default=timezone.now, editable=False)
    customer_notes = models.TextField(blank=True, default="")
    internal_notes = models.TextField(blank=True, default="")
    cancellation_reason = models.TextField(blank=True, default="")
    cancelled_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["payment_status"], name="orders_payment_status_idx"),
            models.Index(fields=["customer", "created_at"], name="orders_customer_created_idx"),
            models.Index(fields=["pickup_code"], name="orders_pickup_code_idx"),
            models.Index(fields=["delivery_method", "status"], name="orders_delivery_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_amount__gte=0),
                name="order_total_non_negative",
            ),
            # A pickup code identifies exactly one active order.
            models.UniqueConstraint(
                fields=["pickup_code"],
                condition=Q(pickup_code__isnull=False)
                & ~Q(status__in=[s.value for s in INACTIVE_ORDER_STATUSES]),
                name="order_unique_active_pickup_code",
            ),
        ]

    # ----------------------------
    # Derived flags
    # ----------------------------
    @property
    def is_store_pickup(self) -> bool:
        return self.delivery_method == DeliveryMethod.STORE_PICKUP

    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_ORDER_STATUSES

    def expected_total(self) -> Decimal:
        return (
            Decimal(self.subtotal_amount or 0)
            + Decimal(self.tax_amount or 0)
            + Decimal(self.shipping_amount or 0)
            - Decimal(self.discount_amount or 0)
        )

    def clean(self):
        if Decimal(self.total_amount or 0) < Decimal("0.00"):
            raise ValidationError("Order total cannot be negative")

        if Decimal(self.total_amount or 0) != self.expected_total():
            raise ValidationError(
                "Order total must equal subtotal + tax + shipping - discount"
            )

        for field in ("subtotal_amount", "tax_amount", "shipping_amount", "discount_amount"):
            if Decimal(getattr(self, field) or 0) < Decimal("0.00"):
                raise ValidationError(f"{field} cannot be negative")

    def _validate_immutable(self, previous: "Order"):
        for field in self._IMMUTABLE_FIELDS:
            if getattr(self, field) != getattr(previous, field):
                raise ValueError(f"Order field '{field}' cannot be changed once created.")

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            previous = Order.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._validate_immutable(previous)

        if not self.order_number:
            prefix = timezone.now().strftime("ORD%Y%m%d")
            self.order_number = f"{prefix}-{uuid.uuid4().hex[:8].upper()}"

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("Orders cannot be deleted; cancel or refund instead")

    def __str__(self):
        return f"{self.order_number} | {self.total_amount} | {self.status}"
