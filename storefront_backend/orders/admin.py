# orders/admin.py

"""
ORDERS ADMIN

Read-mostly: orders change state only through orders/services, so the admin
never adds or deletes rows and keeps money / status fields read-only.
"""

from django.contrib import admin

from orders.models import Order, OrderEvent, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "product",
        "product_name",
        "product_sku",
        "quantity",
        "unit_price",
        "total_price",
    )

    def has_add_permission(self, request, obj=None):
        return False


class OrderEventInline(admin.TabularInline):
    model = OrderEvent
    extra = 0
    can_delete = False
    fields = ("created_at", "event_type", "actor", "from_status", "to_status", "payload")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "customer",
        "status",
        "payment_status",
        "delivery_method",
        "pickup_code",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "payment_status", "delivery_method", "delivery_status")
    search_fields = ("order_number", "customer__email", "pickup_code", "tracking_number")
    inlines = [OrderItemInline, OrderEventInline]
    readonly_fields = [field.name for field in Order._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(OrderEvent)
class OrderEventAdmin(admin.ModelAdmin):
    list_display = ("order", "event_type", "actor", "from_status", "to_status", "created_at")
    list_filter = ("event_type",)
    search_fields = ("order__order_number",)
    readonly_fields = [field.name for field in OrderEvent._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
