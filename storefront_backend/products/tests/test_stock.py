# products/tests/test_stock.py

from decimal import Decimal

from django.db import transaction
from django.test import TestCase

from products.models import Product
from products.services.inventory import (
    InsufficientStockError,
    ProductUnavailableError,
    lock_products,
    release_stock,
    require_sellable,
    reserve_stock,
)


class InventoryServiceTests(TestCase):
    """
    GUARANTEES:
    - Reservations decrement stock and never drive it negative
    - Releases put units back
    """

    def setUp(self):
        self.product = Product.objects.create(
            name="NVMe SSD 1TB",
            sku="SSD-1T",
            unit_price=Decimal("79.00"),
            stock=5,
        )

    def test_reserve_decrements_stock(self):
        with transaction.atomic():
            reserve_stock(product=self.product, quantity=2)

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 3)

    def test_reserve_more_than_available_raises(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            with transaction.atomic():
                reserve_stock(product=self.product, quantity=6)

        self.assertEqual(ctx.exception.available, 5)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)

    def test_release_increments_stock(self):
        with transaction.atomic():
            release_stock(product=self.product, quantity=3)

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 8)

    def test_non_integer_quantity_rejected(self):
        with self.assertRaises(ValueError):
            with transaction.atomic():
                reserve_stock(product=self.product, quantity="1.5")

    def test_lock_products_returns_map_by_id(self):
        with transaction.atomic():
            locked = lock_products([self.product.id])

        self.assertIn(str(self.product.id), locked)

    def test_require_sellable_rejects_inactive_and_missing(self):
        self.product.is_active = False
        self.product.save(update_fields=["is_active"])

        with self.assertRaises(ProductUnavailableError):
            require_sellable(self.product)

        with self.assertRaises(ProductUnavailableError):
            require_sellable(None, product_id="missing")
