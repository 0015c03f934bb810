# orders/tests/test_models.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from orders.models import OrderEvent
from orders.tests.helpers import make_customer, make_product, place_order


class OrderImmutabilityTests(TestCase):
    """
    GUARANTEES:
    - Money fields and identity are frozen after creation
    - Orders, items and events are never deleted
    """

    def setUp(self):
        self.customer = make_customer()
        self.product = make_product(sku="HDD-001", unit_price="59.90")
        self.order = place_order(self.customer, self.product, quantity=2)

    def test_order_number_format(self):
        self.assertRegex(self.order.order_number, r"^ORD\d{8}-[0-9A-F]{8}$")

    def test_total_cannot_change(self):
        self.order.total_amount = Decimal("1.00")

        with self.assertRaises(ValueError):
            self.order.save()

    def test_order_cannot_be_deleted(self):
        with self.assertRaises(RuntimeError):
            self.order.delete()

    def test_items_are_immutable(self):
        item = self.order.items.get()
        self.assertEqual(item.total_price, Decimal("119.80"))

        item.quantity = 5
        with self.assertRaises(RuntimeError):
            item.save()

        with self.assertRaises(RuntimeError):
            item.delete()

    def test_events_are_immutable(self):
        event = OrderEvent.objects.get(order=self.order)

        event.payload = {"tampered": True}
        with self.assertRaises(RuntimeError):
            event.save()

        with self.assertRaises(RuntimeError):
            event.delete()

    def test_clean_rejects_inconsistent_total(self):
        self.order.total_amount = self.order.total_amount + Decimal("0.01")

        with self.assertRaises(ValidationError):
            self.order.clean()
