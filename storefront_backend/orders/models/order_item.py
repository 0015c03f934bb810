# orders/models/order_item.py

from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from products.models import Product


class OrderItem(models.Model):
    """
    Line items for Order.

    Rules:
    - unit_price is the live catalog price captured at checkout
    - total_price = quantity * unit_price (server computed)
    - product_name / product_sku snapshot the catalog row
    - written once at checkout; never updated or deleted
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="items",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="order_items",
    )

    product_name = models.CharField(max_length=255, blank=True, default="")
    product_sku = models.CharField(max_length=128, blank=True, default="")

    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="quantity * unit_price (server computed)",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["order"], name="order_items_order_idx"),
            models.Index(fields=["product"], name="order_items_product_idx"),
        ]

    def clean(self):
        if self.quantity is None or int(self.quantity) <= 0:
            raise ValidationError("quantity must be >= 1")

        if self.unit_price is None or Decimal(self.unit_price) < Decimal("0.00"):
            raise ValidationError("unit_price must be >= 0")

        self.total_price = self._line_total()

    def _line_total(self) -> Decimal:
        return (Decimal(self.quantity) * Decimal(self.unit_price)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            raise RuntimeError("Order items are immutable once written")

        if self.product_id and not self.product_name:
            self.product_name = self.product.name
            self.product_sku = self.product.sku

        if self.quantity is not None and self.unit_price is not None:
            self.total_price = self._line_total()

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("Order items cannot be deleted")

    def __str__(self):
        return f"{self.product_name or self.product} x{self.quantity}"
