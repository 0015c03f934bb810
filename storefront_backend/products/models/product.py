# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Product(models.Model):
    """
    Represents a sellable catalog item.

    STOCK MODEL:
    - stock is the on-hand unit count available to online checkout
    - checkout reserves (decrements) stock under a row lock
    - cancellation / refund releases it back
    - unit_price is the live price; orders snapshot it per line item
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, default="")

    unit_price = models.DecimalField(max_digits=12, decimal_places=2)

    stock = models.PositiveIntegerField(default=0)
    low_stock_threshold = models.PositiveIntegerField(default=5)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["name"], name="products_name_idx"),
            models.Index(fields=["is_active"], name="products_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(unit_price__gte=0),
                name="product_unit_price_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if self.unit_price is None or Decimal(self.unit_price) < Decimal("0.00"):
            raise ValidationError("Unit price must be non-negative")

        if self.low_stock_threshold is None:
            raise ValidationError("low_stock_threshold is required")

    @property
    def is_in_stock(self) -> bool:
        return int(self.stock or 0) > 0

    @property
    def is_low_stock(self) -> bool:
        return int(self.stock or 0) <= int(self.low_stock_threshold or 0)
