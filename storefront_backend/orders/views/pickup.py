# orders/views/pickup.py

"""
STORE PICKUP COUNTER

GET  /api/orders/pickup/verify/<code>/     pickup.verify
POST /api/orders/pickup/complete/<code>/   pickup.redeem
GET  /api/orders/pickup/pending/           pickup.verify | pickup.redeem
GET  /api/orders/pickup/history/           pickup.verify | pickup.redeem
"""

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.serializers import PickupCompleteCommandSerializer, PickupOrderSerializer
from orders.services import pickup_code_service
from orders.services.exceptions import OrderWorkflowError
from orders.throttles import PickupLookupThrottle
from orders.views.errors import workflow_error_response
from permissions.roles import (
    CAP_PICKUP_REDEEM,
    CAP_PICKUP_VERIFY,
    HasAnyCapability,
    HasCapability,
)

PICKUP_ERROR_RESPONSES = {
    400: OpenApiResponse(description="Malformed pickup code"),
    404: OpenApiResponse(description="Unknown code or order already picked up"),
    409: OpenApiResponse(description="Order is not ready for pickup"),
}


class PickupVerifyView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_PICKUP_VERIFY
    throttle_classes = [PickupLookupThrottle]

    @extend_schema(
        tags=["Orders: Pickup"],
        responses={200: PickupOrderSerializer, **PICKUP_ERROR_RESPONSES},
        description="Look up the active store pickup order behind a 4-digit code.",
    )
    def get(self, request, code):
        try:
            order = pickup_code_service.verify(code)
        except OrderWorkflowError as exc:
            return workflow_error_response(exc)

        return Response(PickupOrderSerializer(order).data)


class PickupCompleteView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_PICKUP_REDEEM
    throttle_classes = [PickupLookupThrottle]

    @extend_schema(
        tags=["Orders: Pickup"],
        request=PickupCompleteCommandSerializer,
        responses={200: PickupOrderSerializer, **PICKUP_ERROR_RESPONSES},
        description="Hand over a store pickup order; the order becomes completed.",
    )
    def post(self, request, code):
        command = PickupCompleteCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            order = pickup_code_service.redeem(
                code,
                request.user,
                command.validated_data.get("notes", ""),
            )
        except OrderWorkflowError as exc:
            return workflow_error_response(exc)

        return Response(PickupOrderSerializer(order).data)


class PickupPendingView(APIView):
    permission_classes = [IsAuthenticated, HasAnyCapability]
    required_any_capabilities = {CAP_PICKUP_VERIFY, CAP_PICKUP_REDEEM}

    @extend_schema(
        tags=["Orders: Pickup"],
        responses={200: PickupOrderSerializer(many=True)},
        description="Verified store pickup orders waiting at the counter.",
    )
    def get(self, request):
        qs = pickup_code_service.pending_pickups()
        return Response(PickupOrderSerializer(qs, many=True).data)


class PickupHistoryView(APIView):
    permission_classes = [IsAuthenticated, HasAnyCapability]
    required_any_capabilities = {CAP_PICKUP_VERIFY, CAP_PICKUP_REDEEM}

    @extend_schema(
        tags=["Orders: Pickup"],
        responses={200: PickupOrderSerializer(many=True)},
        description="Most recent completed pickups (latest 50).",
    )
    def get(self, request):
        qs = pickup_code_service.pickup_history()
        return Response(PickupOrderSerializer(qs, many=True).data)
