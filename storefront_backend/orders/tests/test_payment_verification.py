# orders/tests/test_payment_verification.py

from django.test import TestCase, override_settings

from orders.models import (
    DeliveryMethod,
    DeliveryStatus,
    OrderEvent,
    OrderStatus,
    PaymentStatus,
)
from orders.services import reject_payment, upload_payment_bill, verify_payment
from orders.services.exceptions import (
    AlreadyVerifiedError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from orders.tests.helpers import (
    BILL_URL,
    make_admin,
    make_customer,
    make_product,
    place_and_upload,
    place_order,
)


class UploadPaymentBillTests(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.product = make_product(sku="KB-001", unit_price="49.99")
        self.order = place_order(self.customer, self.product)

    def test_upload_moves_to_pending_verification(self):
        order = upload_payment_bill(
            order_id=self.order.id, customer=self.customer, bill_image=BILL_URL
        )

        self.assertEqual(order.payment_status, PaymentStatus.PENDING_VERIFICATION)
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.bill_image, BILL_URL)
        self.assertIsNotNone(order.bill_upload_date)

    def test_blank_bill_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            upload_payment_bill(order_id=self.order.id, customer=self.customer, bill_image="  ")

        self.assertEqual(ctx.exception.code, "BILL_IMAGE_REQUIRED")

    def test_foreign_order_reported_as_missing(self):
        stranger = make_customer(email="stranger@example.com")

        with self.assertRaises(NotFoundError):
            upload_payment_bill(order_id=self.order.id, customer=stranger, bill_image=BILL_URL)

    def test_second_upload_while_pending_verification_rejected(self):
        upload_payment_bill(order_id=self.order.id, customer=self.customer, bill_image=BILL_URL)

        with self.assertRaises(InvalidStateError) as ctx:
            upload_payment_bill(
                order_id=self.order.id, customer=self.customer, bill_image=BILL_URL
            )

        self.assertEqual(ctx.exception.code, "BILL_UPLOAD_NOT_ALLOWED")


class VerifyPaymentTests(TestCase):
    """
    GUARANTEES:
    - Verification only from PENDING_VERIFICATION
    - Store pickup orders receive exactly one 4-digit code
    - Repeat verification raises and never re-mints
    """

    def setUp(self):
        self.customer = make_customer()
        self.admin = make_admin()
        self.product = make_product(sku="GPU-001", unit_price="699.00")

    def test_verify_store_pickup_mints_code(self):
        order = place_and_upload(self.customer, self.product)

        order = verify_payment(order_id=order.id, admin=self.admin)

        self.assertEqual(order.payment_status, PaymentStatus.VERIFIED)
        self.assertEqual(order.status, OrderStatus.CONFIRMED)
        self.assertEqual(order.delivery_status, DeliveryStatus.CONFIRMED)
        self.assertEqual(order.bill_reviewed_by, self.admin)
        self.assertIsNotNone(order.bill_verified_date)
        self.assertRegex(order.pickup_code, r"^\d{4}$")

        order.refresh_from_db()
        self.assertRegex(order.pickup_code, r"^\d{4}$")

    def test_verify_home_delivery_has_no_code(self):
        order = place_and_upload(
            self.customer, self.product, delivery_method=DeliveryMethod.HOME_DELIVERY
        )

        order = verify_payment(order_id=order.id, admin=self.admin)

        self.assertEqual(order.status, OrderStatus.CONFIRMED)
        self.assertIsNone(order.pickup_code)

    @override_settings(ORDER_STATUS_AFTER_VERIFICATION="processing")
    def test_status_after_verification_is_configurable(self):
        order = place_and_upload(self.customer, self.product)

        order = verify_payment(order_id=order.id, admin=self.admin)

        self.assertEqual(order.status, OrderStatus.PROCESSING)
        self.assertEqual(order.delivery_status, DeliveryStatus.PROCESSING)

    def test_verify_without_upload_raises(self):
        order = place_order(self.customer, self.product)

        with self.assertRaises(InvalidStateError) as ctx:
            verify_payment(order_id=order.id, admin=self.admin)

        self.assertEqual(ctx.exception.code, "PAYMENT_NOT_PENDING_VERIFICATION")
        order.refresh_from_db()
        self.assertEqual(order.payment_status, PaymentStatus.PENDING)

    def test_double_verify_mints_exactly_one_code(self):
        order = place_and_upload(self.customer, self.product)
        first = verify_payment(order_id=order.id, admin=self.admin)

        with self.assertRaises(AlreadyVerifiedError):
            verify_payment(order_id=order.id, admin=self.admin)

        order.refresh_from_db()
        self.assertEqual(order.pickup_code, first.pickup_code)
        self.assertEqual(
            OrderEvent.objects.filter(
                order=order, event_type=OrderEvent.EVENT_PICKUP_CODE_MINTED
            ).count(),
            1,
        )

    def test_already_verified_is_an_invalid_state(self):
        order = place_and_upload(self.customer, self.product)
        verify_payment(order_id=order.id, admin=self.admin)

        with self.assertRaises(InvalidStateError) as ctx:
            verify_payment(order_id=order.id, admin=self.admin)

        self.assertEqual(ctx.exception.code, "PAYMENT_ALREADY_VERIFIED")

    def test_unknown_order_not_found(self):
        with self.assertRaises(NotFoundError):
            verify_payment(order_id="00000000-0000-0000-0000-000000000000", admin=self.admin)

    def test_events_record_actor_and_statuses(self):
        order = place_and_upload(self.customer, self.product)
        verify_payment(order_id=order.id, admin=self.admin)

        event = OrderEvent.objects.get(order=order, event_type=OrderEvent.EVENT_PAYMENT_VERIFIED)
        self.assertEqual(event.actor, self.admin)
        self.assertEqual(event.from_payment_status, PaymentStatus.PENDING_VERIFICATION)
        self.assertEqual(event.to_payment_status, PaymentStatus.VERIFIED)
        self.assertEqual(event.from_status, OrderStatus.PENDING)
        self.assertEqual(event.to_status, OrderStatus.CONFIRMED)


class RejectPaymentTests(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.admin = make_admin()
        self.product = make_product(sku="PSU-001", unit_price="120.00")
        self.order = place_and_upload(self.customer, self.product)

    def test_reject_returns_order_to_pending_payment(self):
        order = reject_payment(order_id=self.order.id, admin=self.admin, reason="blurry receipt")

        self.assertEqual(order.payment_status, PaymentStatus.REJECTED)
        self.assertEqual(order.status, OrderStatus.PENDING_PAYMENT)
        self.assertEqual(order.bill_rejection_reason, "blurry receipt")
        self.assertIsNotNone(order.bill_rejected_date)
        self.assertIsNone(order.pickup_code)

    def test_reason_required(self):
        with self.assertRaises(ValidationError) as ctx:
            reject_payment(order_id=self.order.id, admin=self.admin, reason=" ")

        self.assertEqual(ctx.exception.code, "REJECTION_REASON_REQUIRED")

    def test_reject_then_reupload_then_verify(self):
        reject_payment(order_id=self.order.id, admin=self.admin, reason="blurry receipt")

        order = upload_payment_bill(
            order_id=self.order.id,
            customer=self.customer,
            bill_image="https://cdn.example.com/bills/transfer-002.jpg",
        )
        self.assertEqual(order.payment_status, PaymentStatus.PENDING_VERIFICATION)
        self.assertEqual(order.bill_rejection_reason, "")

        order = verify_payment(order_id=self.order.id, admin=self.admin)
        self.assertEqual(order.payment_status, PaymentStatus.VERIFIED)
        self.assertEqual(order.status, OrderStatus.CONFIRMED)
        self.assertRegex(order.pickup_code, r"^\d{4}$")

    def test_cannot_reject_verified_payment(self):
        verify_payment(order_id=self.order.id, admin=self.admin)

        with self.assertRaises(InvalidStateError):
            reject_payment(order_id=self.order.id, admin=self.admin, reason="late")

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.VERIFIED)
        self.assertIsNotNone(self.order.pickup_code)
