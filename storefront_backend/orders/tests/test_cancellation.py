# orders/tests/test_cancellation.py

from django.test import TestCase

from orders.models import (
    DeliveryMethod,
    DeliveryStatus,
    OrderEvent,
    OrderStatus,
    PaymentStatus,
)
from orders.services import advance_fulfillment, cancel_order, refund_order
from orders.services import pickup_code_service
from orders.services.exceptions import InvalidStateError, NotFoundError, ValidationError
from orders.tests.helpers import (
    make_admin,
    make_customer,
    make_employee,
    make_product,
    place_and_upload,
    place_and_verify,
    place_order,
)


class CancelOrderTests(TestCase):
    """
    GUARANTEES:
    - Customers cancel only their own unpaid orders
    - Cancellation releases reserved stock and clears the pickup code
    - Final orders cannot be cancelled
    """

    def setUp(self):
        self.customer = make_customer()
        self.admin = make_admin()
        self.employee = make_employee()
        self.product = make_product(sku="RTR-001", unit_price="75.00", stock=4)

    def test_customer_cancels_unpaid_order(self):
        order = place_order(self.customer, self.product, quantity=3)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 1)

        order = cancel_order(order_id=order.id, actor=self.customer, reason="changed my mind")

        self.assertEqual(order.status, OrderStatus.CANCELLED)
        self.assertEqual(order.payment_status, PaymentStatus.CANCELLED)
        self.assertEqual(order.cancellation_reason, "changed my mind")
        self.assertIsNotNone(order.cancelled_at)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 4)

    def test_customer_cannot_cancel_someone_elses_order(self):
        order = place_order(self.customer, self.product)
        stranger = make_customer(email="stranger@example.com")

        with self.assertRaises(NotFoundError):
            cancel_order(order_id=order.id, actor=stranger)

    def test_customer_cannot_cancel_verified_order(self):
        order = place_and_verify(self.customer, self.admin, self.product)

        with self.assertRaises(InvalidStateError) as ctx:
            cancel_order(order_id=order.id, actor=self.customer)

        self.assertEqual(ctx.exception.code, "CANCEL_REQUIRES_STAFF")

    def test_admin_cancels_verified_order_and_frees_code(self):
        order = place_and_verify(self.customer, self.admin, self.product)
        code = order.pickup_code

        order = cancel_order(order_id=order.id, actor=self.admin, reason="out of stock")

        self.assertEqual(order.status, OrderStatus.CANCELLED)
        self.assertEqual(order.payment_status, PaymentStatus.VERIFIED)
        self.assertIsNone(order.pickup_code)

        with self.assertRaises(NotFoundError):
            pickup_code_service.verify(code)

    def test_employee_cannot_cancel_foreign_order(self):
        order = place_order(self.customer, self.product)

        with self.assertRaises(NotFoundError):
            cancel_order(order_id=order.id, actor=self.employee)

    def test_completed_order_cannot_be_cancelled(self):
        order = place_and_verify(self.customer, self.admin, self.product)
        pickup_code_service.redeem(order.pickup_code, self.employee)

        with self.assertRaises(InvalidStateError) as ctx:
            cancel_order(order_id=order.id, actor=self.admin)

        self.assertEqual(ctx.exception.code, "ORDER_ALREADY_FINAL")

    def test_in_transit_order_marked_returned(self):
        order = place_and_verify(
            self.customer,
            self.admin,
            self.product,
            delivery_method=DeliveryMethod.HOME_DELIVERY,
        )
        advance_fulfillment(order_id=order.id, actor=self.employee, next_step="shipped")

        order = cancel_order(order_id=order.id, actor=self.admin, reason="lost in transit")

        self.assertEqual(order.delivery_status, DeliveryStatus.RETURNED)

    def test_cancel_records_event(self):
        order = place_and_upload(self.customer, self.product)

        cancel_order(order_id=order.id, actor=self.customer)

        event = OrderEvent.objects.get(order=order, event_type=OrderEvent.EVENT_CANCELLED)
        self.assertEqual(event.from_status, OrderStatus.PENDING)
        self.assertEqual(event.to_payment_status, PaymentStatus.CANCELLED)
        self.assertFalse(event.payload["by_staff"])


class RefundOrderTests(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.admin = make_admin()
        self.product = make_product(sku="NAS-001", unit_price="410.00", stock=2)

    def test_refund_verified_order(self):
        order = place_and_verify(self.customer, self.admin, self.product, quantity=2)

        order = refund_order(order_id=order.id, admin=self.admin, reason="defective unit")

        self.assertEqual(order.status, OrderStatus.REFUNDED)
        self.assertEqual(order.payment_status, PaymentStatus.REFUNDED)
        self.assertIsNotNone(order.refunded_at)
        self.assertIsNone(order.pickup_code)
        self.assertIn("defective unit", order.internal_notes)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 2)

    def test_refund_requires_reason(self):
        order = place_and_verify(self.customer, self.admin, self.product)

        with self.assertRaises(ValidationError):
            refund_order(order_id=order.id, admin=self.admin, reason="")

    def test_refund_requires_verified_payment(self):
        order = place_and_upload(self.customer, self.product)

        with self.assertRaises(InvalidStateError) as ctx:
            refund_order(order_id=order.id, admin=self.admin, reason="duplicate")

        self.assertEqual(ctx.exception.code, "PAYMENT_NOT_VERIFIED")

    def test_refund_is_final(self):
        order = place_and_verify(self.customer, self.admin, self.product)
        refund_order(order_id=order.id, admin=self.admin, reason="defective unit")

        with self.assertRaises(InvalidStateError):
            refund_order(order_id=order.id, admin=self.admin, reason="again")
