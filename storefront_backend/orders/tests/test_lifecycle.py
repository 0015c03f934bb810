# orders/tests/test_lifecycle.py

from types import SimpleNamespace

from django.test import SimpleTestCase

from orders.models import DeliveryMethod, DeliveryStatus, OrderStatus, PaymentStatus
from orders.services.exceptions import InvalidStateError
from orders.services.order_lifecycle import (
    assert_consistent,
    can_transition,
    can_transition_payment,
    current_step,
    validate_fulfillment_step,
)


def _order(**overrides):
    values = {
        "order_number": "ORD-TEST",
        "status": OrderStatus.PENDING_PAYMENT,
        "payment_status": PaymentStatus.PENDING,
        "delivery_method": DeliveryMethod.STORE_PICKUP,
        "delivery_status": DeliveryStatus.PENDING,
        "pickup_code": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TransitionTableTests(SimpleTestCase):
    def test_terminal_states_never_transition(self):
        for terminal in (
            OrderStatus.COMPLETED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
            OrderStatus.REFUNDED,
        ):
            self.assertFalse(
                can_transition(from_status=terminal, to_status=OrderStatus.PENDING)
            )
            self.assertFalse(
                can_transition(from_status=terminal, to_status=OrderStatus.CANCELLED)
            )

    def test_unpaid_order_cannot_be_refunded(self):
        self.assertFalse(
            can_transition(
                from_status=OrderStatus.PENDING_PAYMENT,
                to_status=OrderStatus.REFUNDED,
            )
        )

    def test_rejection_path_returns_to_pending_payment(self):
        self.assertTrue(
            can_transition(from_status=OrderStatus.PENDING, to_status=OrderStatus.PENDING_PAYMENT)
        )

    def test_payment_verification_only_from_pending_verification(self):
        self.assertTrue(
            can_transition_payment(
                from_status=PaymentStatus.PENDING_VERIFICATION,
                to_status=PaymentStatus.VERIFIED,
            )
        )
        self.assertFalse(
            can_transition_payment(
                from_status=PaymentStatus.PENDING,
                to_status=PaymentStatus.VERIFIED,
            )
        )
        self.assertFalse(
            can_transition_payment(
                from_status=PaymentStatus.VERIFIED,
                to_status=PaymentStatus.VERIFIED,
            )
        )


class FulfillmentStepTests(SimpleTestCase):
    def test_current_step_distinguishes_out_for_delivery(self):
        order = _order(
            status=OrderStatus.SHIPPED,
            payment_status=PaymentStatus.VERIFIED,
            delivery_method=DeliveryMethod.HOME_DELIVERY,
            delivery_status=DeliveryStatus.OUT_FOR_DELIVERY,
        )
        self.assertEqual(current_step(order), "out_for_delivery")

    def test_unverified_payment_blocks_fulfillment(self):
        order = _order(status=OrderStatus.PENDING, payment_status=PaymentStatus.PENDING_VERIFICATION)

        with self.assertRaises(InvalidStateError) as ctx:
            validate_fulfillment_step(order=order, next_step="processing")

        self.assertEqual(ctx.exception.code, "PAYMENT_NOT_VERIFIED")

    def test_delivery_step_rejected_for_pickup_order(self):
        order = _order(
            status=OrderStatus.CONFIRMED,
            payment_status=PaymentStatus.VERIFIED,
            delivery_status=DeliveryStatus.CONFIRMED,
            pickup_code="0420",
        )

        with self.assertRaises(InvalidStateError) as ctx:
            validate_fulfillment_step(order=order, next_step="shipped")

        self.assertEqual(ctx.exception.code, "INVALID_FULFILLMENT_STEP")

    def test_backward_step_rejected(self):
        order = _order(
            status=OrderStatus.READY,
            payment_status=PaymentStatus.VERIFIED,
            delivery_status=DeliveryStatus.PROCESSING,
            pickup_code="0420",
        )

        with self.assertRaises(InvalidStateError) as ctx:
            validate_fulfillment_step(order=order, next_step="processing")

        self.assertEqual(ctx.exception.code, "FULFILLMENT_NOT_FORWARD")

    def test_forward_jump_allowed(self):
        order = _order(
            status=OrderStatus.CONFIRMED,
            payment_status=PaymentStatus.VERIFIED,
            delivery_method=DeliveryMethod.HOME_DELIVERY,
            delivery_status=DeliveryStatus.CONFIRMED,
        )

        validate_fulfillment_step(order=order, next_step="shipped")


class ConsistencyTests(SimpleTestCase):
    def test_verified_pickup_order_must_hold_code(self):
        order = _order(
            status=OrderStatus.CONFIRMED,
            payment_status=PaymentStatus.VERIFIED,
            delivery_status=DeliveryStatus.CONFIRMED,
        )

        with self.assertRaises(InvalidStateError) as ctx:
            assert_consistent(order)

        self.assertEqual(ctx.exception.code, "INCONSISTENT_ORDER_STATE")

    def test_unverified_order_cannot_hold_code(self):
        order = _order(pickup_code="1111")

        with self.assertRaises(InvalidStateError):
            assert_consistent(order)

    def test_delivery_cannot_outpace_payment(self):
        order = _order(delivery_status=DeliveryStatus.SHIPPED)

        with self.assertRaises(InvalidStateError):
            assert_consistent(order)

    def test_completed_requires_store_pickup(self):
        order = _order(
            status=OrderStatus.COMPLETED,
            payment_status=PaymentStatus.VERIFIED,
            delivery_method=DeliveryMethod.HOME_DELIVERY,
            delivery_status=DeliveryStatus.DELIVERED,
        )

        with self.assertRaises(InvalidStateError):
            assert_consistent(order)

    def test_consistent_verified_pickup_order_passes(self):
        order = _order(
            status=OrderStatus.CONFIRMED,
            payment_status=PaymentStatus.VERIFIED,
            delivery_status=DeliveryStatus.CONFIRMED,
            pickup_code="0042",
        )

        assert_consistent(order)
