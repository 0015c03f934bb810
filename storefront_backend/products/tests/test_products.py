# products/tests/test_products.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.test import TestCase
from rest_framework.test import APIClient

from products.models import Product


class ProductModelTests(TestCase):
    """
    Product model tests.

    GUARANTEES:
    - Products can be created safely
    - SKU uniqueness is enforced
    - Pricing is sane
    """

    def test_product_creation(self):
        product = Product.objects.create(
            name="USB-C Cable",
            sku="CBL-USBC",
            unit_price=Decimal("9.99"),
            stock=10,
        )

        self.assertEqual(product.name, "USB-C Cable")
        self.assertTrue(product.is_in_stock)

    def test_sku_must_be_unique(self):
        Product.objects.create(name="Charger", sku="PWR-65", unit_price=Decimal("39.00"))

        with self.assertRaises(IntegrityError):
            Product.objects.create(
                name="Charger Duplicate",
                sku="PWR-65",
                unit_price=Decimal("41.00"),
            )

    def test_negative_price_rejected_by_clean(self):
        product = Product(name="Broken", sku="BRK-1", unit_price=Decimal("-1.00"))

        with self.assertRaises(ValidationError):
            product.full_clean()

    def test_low_stock_flag(self):
        product = Product.objects.create(
            name="Headphones",
            sku="HDP-1",
            unit_price=Decimal("199.00"),
            stock=3,
            low_stock_threshold=5,
        )

        self.assertTrue(product.is_low_stock)

    def test_product_string_representation(self):
        product = Product.objects.create(
            name="Mechanical Keyboard",
            sku="KBD-1",
            unit_price=Decimal("89.50"),
        )

        self.assertIn("Mechanical Keyboard", str(product))


class PublicCatalogApiTests(TestCase):
    """
    GUARANTEES:
    - Anonymous users can browse the catalog
    - Inactive products are never listed
    - The catalog is read only
    """

    def setUp(self):
        self.client = APIClient()
        self.active = Product.objects.create(
            name="Wireless Mouse",
            sku="MSE-1",
            unit_price=Decimal("49.90"),
            stock=4,
        )
        self.sold_out = Product.objects.create(
            name="Wired Mouse",
            sku="MSE-2",
            unit_price=Decimal("19.90"),
            stock=0,
        )
        self.hidden = Product.objects.create(
            name="Discontinued Mouse",
            sku="MSE-3",
            unit_price=Decimal("9.90"),
            stock=7,
            is_active=False,
        )

    def _ids(self, res):
        return {row["id"] for row in res.data["results"]}

    def test_anonymous_can_list_active_products(self):
        res = self.client.get("/api/products/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(self._ids(res), {str(self.active.id), str(self.sold_out.id)})

    def test_in_stock_filter(self):
        res = self.client.get("/api/products/", {"in_stock": "true"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(self._ids(res), {str(self.active.id)})

    def test_search_by_name(self):
        res = self.client.get("/api/products/", {"q": "wireless"})

        self.assertEqual(self._ids(res), {str(self.active.id)})

    def test_inactive_product_detail_is_404(self):
        res = self.client.get(f"/api/products/{self.hidden.id}/")

        self.assertEqual(res.status_code, 404)

    def test_catalog_is_read_only(self):
        res = self.client.post(
            "/api/products/",
            {"name": "X", "sku": "X-1", "unit_price": "1.00"},
            format="json",
        )

        self.assertEqual(res.status_code, 405)
