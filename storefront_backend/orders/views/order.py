# orders/views/order.py

"""
ORDER VIEWSET

Customer:
    POST /api/orders/checkout/
    GET  /api/orders/                 own orders (staff with orders.view_all: all)
    GET  /api/orders/<id>/
    POST /api/orders/<id>/upload-payment-bill/
    POST /api/orders/<id>/cancel/

Staff (capability protected):
    POST /api/orders/<id>/verify-payment/     orders.verify_payment
    POST /api/orders/<id>/reject-payment/     orders.verify_payment
    POST /api/orders/<id>/advance/            orders.fulfill
    POST /api/orders/<id>/refund/             orders.refund
    GET  /api/orders/pending-verification/    orders.verify_payment
    GET  /api/orders/counts/                  orders.view_all
    GET  /api/orders/<id>/events/             orders.audit_view

Transitions never go through get_object(): the service re-reads the row
under a lock and raises NotFoundError itself.
"""

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from orders.models import Order, OrderEvent
from orders.serializers import (
    AdvanceFulfillmentCommandSerializer,
    CancelOrderCommandSerializer,
    CheckoutCommandSerializer,
    OrderCountsSerializer,
    OrderEventSerializer,
    OrderSerializer,
    RefundOrderCommandSerializer,
    RejectPaymentCommandSerializer,
    UploadPaymentBillCommandSerializer,
    VerifyPaymentCommandSerializer,
)
from orders.services import (
    advance_fulfillment,
    cancel_order,
    refund_order,
    reject_payment,
    submit_order,
    upload_payment_bill,
    verify_payment,
)
from orders.services.exceptions import NotFoundError, OrderWorkflowError
from orders.services.order_queries import (
    order_counts,
    pending_verification_orders,
    visible_orders,
)
from orders.throttles import OrderWriteThrottle
from orders.views.errors import workflow_error_response
from permissions.roles import (
    CAP_ORDERS_AUDIT_VIEW,
    CAP_ORDERS_FULFILL,
    CAP_ORDERS_REFUND,
    CAP_ORDERS_VERIFY_PAYMENT,
    CAP_ORDERS_VIEW_ALL,
    HasCapability,
)

UUID_PATTERN = "[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"

ERROR_RESPONSES = {
    400: OpenApiResponse(description="Validation error"),
    404: OpenApiResponse(description="Order not found"),
    409: OpenApiResponse(description="Order is not in a state that allows this"),
}

# action -> capability required on top of IsAuthenticated
ACTION_CAPABILITIES = {
    "verify_payment": CAP_ORDERS_VERIFY_PAYMENT,
    "reject_payment": CAP_ORDERS_VERIFY_PAYMENT,
    "pending_verification": CAP_ORDERS_VERIFY_PAYMENT,
    "advance": CAP_ORDERS_FULFILL,
    "refund": CAP_ORDERS_REFUND,
    "counts": CAP_ORDERS_VIEW_ALL,
    "events": CAP_ORDERS_AUDIT_VIEW,
}

WRITE_ACTIONS = {"checkout", "upload_payment_bill", "cancel"}


class OrderViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["status", "payment_status", "delivery_method", "delivery_status"]
    lookup_value_regex = UUID_PATTERN

    # Capability hook used by HasCapability
    required_capability = None

    def get_permissions(self):
        capability = ACTION_CAPABILITIES.get(self.action)
        if capability:
            self.required_capability = capability
            return [IsAuthenticated(), HasCapability()]
        return [IsAuthenticated()]

    def get_throttles(self):
        if self.action in WRITE_ACTIONS:
            return [OrderWriteThrottle()]
        return super().get_throttles()

    def get_queryset(self):
        return visible_orders(self.request.user).order_by("-created_at")

    def _render(self, order, *, http_status=status.HTTP_200_OK):
        serializer = OrderSerializer(order, context=self.get_serializer_context())
        return Response(serializer.data, status=http_status)

    # --------------------------------------------------
    # CUSTOMER
    # --------------------------------------------------

    @extend_schema(
        tags=["Orders"],
        request=CheckoutCommandSerializer,
        responses={201: OrderSerializer, **ERROR_RESPONSES},
        description="Submit the cart as a new order (pending payment).",
    )
    @action(detail=False, methods=["post"], url_path="checkout")
    def checkout(self, request):
        command = CheckoutCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)
        data = command.validated_data

        try:
            order = submit_order(
                customer=request.user,
                items=[
                    {"product_id": str(line["product_id"]), "quantity": line["quantity"]}
                    for line in data["items"]
                ],
                payment_method=data["payment_method"],
                delivery_method=data["delivery_method"],
                delivery_address=data.get("delivery_address"),
                pickup_location=data.get("pickup_location", ""),
                customer_notes=data.get("customer_notes", ""),
            )
        except OrderWorkflowError as exc:
            return workflow_error_response(exc)

        return self._render(order, http_status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Orders"],
        request=UploadPaymentBillCommandSerializer,
        responses={200: OrderSerializer, **ERROR_RESPONSES},
        description="Attach a bank transfer bill; payment moves to pending verification.",
    )
    @action(detail=True, methods=["post"], url_path="upload-payment-bill")
    def upload_payment_bill(self, request, pk=None):
        command = UploadPaymentBillCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            order = upload_payment_bill(
                order_id=pk,
                customer=request.user,
                bill_image=command.validated_data["bill_image"],
            )
        except OrderWorkflowError as exc:
            return workflow_error_response(exc)

        return self._render(order)

    @extend_schema(
        tags=["Orders"],
        request=CancelOrderCommandSerializer,
        responses={200: OrderSerializer, **ERROR_RESPONSES},
        description="Cancel an order. Customers may cancel their own orders before payment is verified.",
    )
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        command = CancelOrderCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            order = cancel_order(
                order_id=pk,
                actor=request.user,
                reason=command.validated_data.get("reason", ""),
            )
        except OrderWorkflowError as exc:
            return workflow_error_response(exc)

        return self._render(order)

    # --------------------------------------------------
    # PAYMENT REVIEW (ADMIN)
    # --------------------------------------------------

    @extend_schema(
        tags=["Orders: Payments"],
        request=VerifyPaymentCommandSerializer,
        responses={200: OrderSerializer, **ERROR_RESPONSES},
        description="Approve an uploaded bill. Store pickup orders receive a pickup code.",
    )
    @action(detail=True, methods=["post"], url_path="verify-payment")
    def verify_payment(self, request, pk=None):
        command = VerifyPaymentCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            order = verify_payment(
                order_id=pk,
                admin=request.user,
                notes=command.validated_data.get("notes", ""),
            )
        except OrderWorkflowError as exc:
            return workflow_error_response(exc)

        return self._render(order)

    @extend_schema(
        tags=["Orders: Payments"],
        request=RejectPaymentCommandSerializer,
        responses={200: OrderSerializer, **ERROR_RESPONSES},
        description="Reject an uploaded bill; the customer may upload a new one.",
    )
    @action(detail=True, methods=["post"], url_path="reject-payment")
    def reject_payment(self, request, pk=None):
        command = RejectPaymentCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            order = reject_payment(
                order_id=pk,
                admin=request.user,
                reason=command.validated_data.get("reason", ""),
                notes=command.validated_data.get("notes", ""),
            )
        except OrderWorkflowError as exc:
            return workflow_error_response(exc)

        return self._render(order)

    @extend_schema(
        tags=["Orders: Payments"],
        responses={200: OrderSerializer(many=True)},
        description="Orders whose bill is waiting for review, oldest upload first.",
    )
    @action(detail=False, methods=["get"], url_path="pending-verification")
    def pending_verification(self, request):
        qs = pending_verification_orders()

        page = self.paginate_queryset(qs)
        if page is not None:
            serializer = OrderSerializer(page, many=True, context=self.get_serializer_context())
            return self.get_paginated_response(serializer.data)

        serializer = OrderSerializer(qs, many=True, context=self.get_serializer_context())
        return Response(serializer.data)

    # --------------------------------------------------
    # FULFILLMENT + REFUND (STAFF)
    # --------------------------------------------------

    @extend_schema(
        tags=["Orders: Fulfillment"],
        request=AdvanceFulfillmentCommandSerializer,
        responses={200: OrderSerializer, **ERROR_RESPONSES},
        description="Move a verified order to the next fulfillment step.",
    )
    @action(detail=True, methods=["post"], url_path="advance")
    def advance(self, request, pk=None):
        command = AdvanceFulfillmentCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)
        data = command.validated_data

        try:
            order = advance_fulfillment(
                order_id=pk,
                actor=request.user,
                next_step=data["next_step"],
                pickup_code=data.get("pickup_code") or None,
                tracking_number=data.get("tracking_number", ""),
                carrier=data.get("carrier", ""),
                notes=data.get("notes", ""),
            )
        except OrderWorkflowError as exc:
            return workflow_error_response(exc)

        return self._render(order)

    @extend_schema(
        tags=["Orders: Fulfillment"],
        request=RefundOrderCommandSerializer,
        responses={200: OrderSerializer, **ERROR_RESPONSES},
        description="Refund a verified, non-final order and release its stock.",
    )
    @action(detail=True, methods=["post"], url_path="refund")
    def refund(self, request, pk=None):
        command = RefundOrderCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            order = refund_order(
                order_id=pk,
                admin=request.user,
                reason=command.validated_data.get("reason", ""),
            )
        except OrderWorkflowError as exc:
            return workflow_error_response(exc)

        return self._render(order)

    # --------------------------------------------------
    # BACK OFFICE READS
    # --------------------------------------------------

    @extend_schema(
        tags=["Orders"],
        responses={200: OrderCountsSerializer},
        description="Order counters for the back-office dashboard.",
    )
    @action(detail=False, methods=["get"], url_path="counts")
    def counts(self, request):
        return Response(OrderCountsSerializer(order_counts()).data)

    @extend_schema(
        tags=["Orders"],
        responses={200: OrderEventSerializer(many=True), 404: ERROR_RESPONSES[404]},
        description="Audit trail of an order, oldest first.",
    )
    @action(detail=True, methods=["get"], url_path="events")
    def events(self, request, pk=None):
        if not Order.objects.filter(pk=pk).exists():
            return workflow_error_response(
                NotFoundError(f"Order {pk} not found", code="ORDER_NOT_FOUND")
            )

        events = (
            OrderEvent.objects.select_related("actor")
            .filter(order_id=pk)
            .order_by("created_at")
        )

        return Response(OrderEventSerializer(events, many=True).data)
