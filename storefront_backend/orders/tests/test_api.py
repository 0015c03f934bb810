# orders/tests/test_api.py

from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from orders.models import OrderStatus, PaymentStatus
from orders.tests.helpers import (
    BILL_URL,
    make_admin,
    make_customer,
    make_employee,
    make_product,
    place_and_upload,
    place_and_verify,
    place_order,
)


@override_settings(
    ORDER_TAX_RATE=Decimal("0.08"),
    SHIPPING_FEES={
        "home_delivery": Decimal("5.00"),
        "express_delivery": Decimal("15.00"),
        "store_pickup": Decimal("0.00"),
    },
)
class OrderApiFlowTests(TestCase):
    """
    End-to-end over HTTP: checkout -> bill upload -> verification -> pickup.
    """

    def setUp(self):
        self.client = APIClient()
        self.customer = make_customer()
        self.admin = make_admin()
        self.employee = make_employee()
        self.laptop = make_product(sku="LAP-001", unit_price="1000.00", stock=5)
        self.monitor = make_product(sku="MON-001", unit_price="500.00", stock=5)

    def _checkout(self):
        self.client.force_authenticate(self.customer)
        return self.client.post(
            "/api/orders/checkout/",
            {
                "items": [
                    {"product_id": str(self.laptop.id), "quantity": 2},
                    {"product_id": str(self.monitor.id), "quantity": 1},
                ],
                "payment_method": "bank_transfer",
                "delivery_method": "store_pickup",
            },
            format="json",
        )

    def test_full_store_pickup_flow(self):
        res = self._checkout()
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["status"], OrderStatus.PENDING_PAYMENT)
        self.assertEqual(Decimal(res.data["total_amount"]), Decimal("2700.00"))
        self.assertNotIn("internal_notes", res.data)
        order_id = res.data["id"]

        res = self.client.post(
            f"/api/orders/{order_id}/upload-payment-bill/",
            {"bill_image": BILL_URL},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["payment_status"], PaymentStatus.PENDING_VERIFICATION)

        self.client.force_authenticate(self.admin)
        res = self.client.get("/api/orders/pending-verification/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([o["id"] for o in res.data["results"]], [order_id])

        res = self.client.post(f"/api/orders/{order_id}/verify-payment/", {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["status"], OrderStatus.CONFIRMED)
        code = res.data["pickup_code"]
        self.assertRegex(code, r"^\d{4}$")

        self.client.force_authenticate(self.employee)
        res = self.client.get(f"/api/orders/pickup/verify/{code}/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["id"], order_id)

        res = self.client.post(f"/api/orders/pickup/complete/{code}/", {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["status"], OrderStatus.COMPLETED)

        res = self.client.get(f"/api/orders/pickup/verify/{code}/")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data["error"]["code"], "PICKUP_ALREADY_COMPLETED")

    def test_checkout_validation_error_shape(self):
        self.client.force_authenticate(self.customer)

        res = self.client.post(
            "/api/orders/checkout/",
            {"items": [], "delivery_method": "store_pickup"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"]["code"], "EMPTY_CART")

    def test_checkout_requires_authentication(self):
        res = self.client.post("/api/orders/checkout/", {"items": []}, format="json")

        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)


class OrderApiPermissionTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.customer = make_customer()
        self.admin = make_admin()
        self.employee = make_employee()
        self.product = make_product(sku="SSD-001", unit_price="99.00")

    def test_customer_sees_only_own_orders(self):
        mine = place_order(self.customer, self.product)
        other = place_order(make_customer(email="other@example.com"), self.product)

        self.client.force_authenticate(self.customer)
        res = self.client.get("/api/orders/")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        ids = {o["id"] for o in res.data["results"]}
        self.assertEqual(ids, {str(mine.id)})

        res = self.client.get(f"/api/orders/{other.id}/")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_staff_with_view_all_sees_every_order(self):
        place_order(self.customer, self.product)
        place_order(make_customer(email="other@example.com"), self.product)

        self.client.force_authenticate(self.employee)
        res = self.client.get("/api/orders/")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["count"], 2)

    def test_customer_cannot_verify_payment(self):
        order = place_and_upload(self.customer, self.product)

        self.client.force_authenticate(self.customer)
        res = self.client.post(f"/api/orders/{order.id}/verify-payment/", {}, format="json")

        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_employee_cannot_verify_payment_or_refund(self):
        order = place_and_upload(self.customer, self.product)

        self.client.force_authenticate(self.employee)
        res = self.client.post(f"/api/orders/{order.id}/verify-payment/", {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

        res = self.client.post(
            f"/api/orders/{order.id}/refund/", {"reason": "x"}, format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_customer_cannot_use_pickup_counter(self):
        order = place_and_verify(self.customer, self.admin, self.product)

        self.client.force_authenticate(self.customer)
        res = self.client.get(f"/api/orders/pickup/verify/{order.pickup_code}/")

        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_double_verify_returns_conflict(self):
        order = place_and_upload(self.customer, self.product)

        self.client.force_authenticate(self.admin)
        self.client.post(f"/api/orders/{order.id}/verify-payment/", {}, format="json")
        res = self.client.post(f"/api/orders/{order.id}/verify-payment/", {}, format="json")

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"]["code"], "PAYMENT_ALREADY_VERIFIED")

    def test_reject_payment_over_http(self):
        order = place_and_upload(self.customer, self.product)

        self.client.force_authenticate(self.admin)
        res = self.client.post(
            f"/api/orders/{order.id}/reject-payment/",
            {"reason": "blurry receipt"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["payment_status"], PaymentStatus.REJECTED)
        self.assertEqual(res.data["status"], OrderStatus.PENDING_PAYMENT)
        self.assertIsNone(res.data["pickup_code"])

    def test_reject_without_reason_is_400(self):
        order = place_and_upload(self.customer, self.product)

        self.client.force_authenticate(self.admin)
        res = self.client.post(f"/api/orders/{order.id}/reject-payment/", {}, format="json")

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"]["code"], "REJECTION_REASON_REQUIRED")

    def test_unknown_order_is_404(self):
        self.client.force_authenticate(self.admin)
        res = self.client.post(
            "/api/orders/00000000-0000-0000-0000-000000000000/verify-payment/",
            {},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data["error"]["code"], "ORDER_NOT_FOUND")

    def test_customer_cancel_over_http(self):
        order = place_order(self.customer, self.product)

        self.client.force_authenticate(self.customer)
        res = self.client.post(
            f"/api/orders/{order.id}/cancel/", {"reason": "ordered twice"}, format="json"
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["status"], OrderStatus.CANCELLED)

    def test_advance_and_events_for_staff(self):
        order = place_and_verify(self.customer, self.admin, self.product)

        self.client.force_authenticate(self.employee)
        res = self.client.post(
            f"/api/orders/{order.id}/advance/", {"next_step": "ready"}, format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["status"], OrderStatus.READY)

        # employees fulfil but do not read the audit trail
        res = self.client.get(f"/api/orders/{order.id}/events/")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        res = self.client.get(f"/api/orders/{order.id}/events/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertCountEqual(
            [e["event_type"] for e in res.data],
            [
                "order.placed",
                "payment.bill_uploaded",
                "payment.verified",
                "pickup.code_minted",
                "order.fulfillment_advanced",
            ],
        )

    def test_counts_for_admin(self):
        place_order(self.customer, self.product)
        place_and_upload(self.customer, self.product)

        self.client.force_authenticate(self.admin)
        res = self.client.get("/api/orders/counts/")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["total"], 2)
        self.assertEqual(res.data["pending_payment"], 1)
        self.assertEqual(res.data["pending_verification"], 1)

    def test_pickup_pending_listing(self):
        order = place_and_verify(self.customer, self.admin, self.product)

        self.client.force_authenticate(self.employee)
        res = self.client.get("/api/orders/pickup/pending/")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([o["id"] for o in res.data], [str(order.id)])

    def test_pickup_lookup_shows_full_totals_and_location(self):
        order = place_and_verify(self.customer, self.admin, self.product)

        self.client.force_authenticate(self.employee)
        res = self.client.get(f"/api/orders/pickup/verify/{order.pickup_code}/")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        for field in (
            "subtotal_amount",
            "tax_amount",
            "shipping_amount",
            "discount_amount",
            "total_amount",
        ):
            self.assertEqual(Decimal(res.data[field]), getattr(order, field))
        self.assertEqual(res.data["pickup_location"], order.pickup_location)
        self.assertTrue(res.data["pickup_location"])
