# orders/serializers/order_command.py

"""
Command serializers for order actions.

These serializers do NOT touch the database; they shape and type-check the
request body. Business rules (state, ownership, stock) belong to
orders/services and surface as OrderWorkflowError.
"""

from rest_framework import serializers

from orders.models import DeliveryMethod, PaymentMethod
from orders.services.order_lifecycle import ALL_STEPS


class CartLineSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class DeliveryAddressSerializer(serializers.Serializer):
    street = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=120, required=False, allow_blank=True)
    state = serializers.CharField(max_length=120, required=False, allow_blank=True)
    zip_code = serializers.CharField(max_length=32, required=False, allow_blank=True)
    country = serializers.CharField(max_length=120, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=40, required=False, allow_blank=True)


class CheckoutCommandSerializer(serializers.Serializer):
    items = CartLineSerializer(many=True, allow_empty=True)
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH_ON_DELIVERY,
    )
    delivery_method = serializers.ChoiceField(
        choices=DeliveryMethod.choices,
        default=DeliveryMethod.HOME_DELIVERY,
    )
    delivery_address = DeliveryAddressSerializer(required=False, allow_null=True)
    pickup_location = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=255
    )
    customer_notes = serializers.CharField(required=False, allow_blank=True, default="")


class UploadPaymentBillCommandSerializer(serializers.Serializer):
    bill_image = serializers.CharField(
        help_text="URL or encoded image of the bank transfer receipt",
    )


class VerifyPaymentCommandSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class RejectPaymentCommandSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class AdvanceFulfillmentCommandSerializer(serializers.Serializer):
    next_step = serializers.ChoiceField(choices=sorted(ALL_STEPS))
    pickup_code = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        max_length=4,
    )
    tracking_number = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=120
    )
    carrier = serializers.CharField(required=False, allow_blank=True, default="", max_length=120)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class CancelOrderCommandSerializer(serializers.Serializer):
    reason = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=500,
    )


class RefundOrderCommandSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)


class PickupCompleteCommandSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")
