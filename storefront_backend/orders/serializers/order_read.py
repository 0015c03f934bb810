# orders/serializers/order_read.py

from rest_framework import serializers

from orders.models import Order, OrderEvent, OrderItem
from permissions.roles import is_staff_user


class OrderItemSerializer(serializers.ModelSerializer):
    """
    Order line (read-only). Name / sku are the snapshot taken at checkout.
    """

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product",
            "product_name",
            "product_sku",
            "quantity",
            "unit_price",
            "total_price",
        ]
        read_only_fields = fields


class OrderEventSerializer(serializers.ModelSerializer):
    actor_email = serializers.SerializerMethodField()

    class Meta:
        model = OrderEvent
        fields = [
            "id",
            "event_type",
            "actor",
            "actor_email",
            "from_status",
            "to_status",
            "from_payment_status",
            "to_payment_status",
            "payload",
            "created_at",
        ]
        read_only_fields = fields

    def get_actor_email(self, obj):
        actor = getattr(obj, "actor", None)
        return getattr(actor, "email", None)


class OrderSerializer(serializers.ModelSerializer):
    """
    CANONICAL ORDER SERIALIZER

    - admin_notes / internal_notes are staff-only and stripped for customers
    - bill_image is returned as stored (opaque reference)
    """

    STAFF_ONLY_FIELDS = ("admin_notes", "internal_notes", "bill_reviewed_by")

    customer_email = serializers.EmailField(source="customer.email", read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer",
            "customer_email",
            "status",
            "order_date",
            "subtotal_amount",
            "tax_amount",
            "shipping_amount",
            "discount_amount",
            "total_amount",
            # payment
            "payment_method",
            "payment_status",
            "bill_image",
            "bill_upload_date",
            "bill_verified_date",
            "bill_rejected_date",
            "bill_rejection_reason",
            "bill_reviewed_by",
            "admin_notes",
            # delivery
            "delivery_method",
            "delivery_status",
            "pickup_code",
            "pickup_location",
            "delivery_address",
            "tracking_number",
            "carrier",
            "estimated_delivery_date",
            "actual_delivery_date",
            "delivery_notes",
            # bookkeeping
            "customer_notes",
            "internal_notes",
            "cancellation_reason",
            "cancelled_at",
            "refunded_at",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)

        request = self.context.get("request")
        user = getattr(request, "user", None)
        if not is_staff_user(user):
            for field in self.STAFF_ONLY_FIELDS:
                data.pop(field, None)

        return data


class PickupOrderSerializer(serializers.ModelSerializer):
    """
    Counter view of a store pickup order.
    """

    customer_email = serializers.EmailField(source="customer.email", read_only=True)
    customer_name = serializers.CharField(source="customer.full_name", read_only=True)
    customer_phone = serializers.CharField(source="customer.phone", read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "payment_status",
            "delivery_status",
            "pickup_code",
            "pickup_location",
            "subtotal_amount",
            "tax_amount",
            "shipping_amount",
            "discount_amount",
            "total_amount",
            "customer_email",
            "customer_name",
            "customer_phone",
            "order_date",
            "actual_delivery_date",
            "delivery_notes",
            "items",
        ]
        read_only_fields = fields


class OrderCountsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    pending_payment = serializers.IntegerField()
    pending = serializers.IntegerField()
    pending_verification = serializers.IntegerField()
    in_fulfillment = serializers.IntegerField()
    completed = serializers.IntegerField()
    cancelled = serializers.IntegerField()
    refunded = serializers.IntegerField()
