# orders/services/order_queries.py

"""
Read-side helpers and the single locked loader used by every transition.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Count, Q

from orders.models import Order, OrderStatus, PaymentStatus
from orders.services.exceptions import NotFoundError
from permissions.roles import CAP_ORDERS_VIEW_ALL, user_has_capability


def lock_order(order_id, *, customer=None) -> Order:
    """
    Re-read an order under select_for_update().

    When `customer` is given the order must belong to them; a foreign order
    is reported exactly like a missing one.
    """
    qs = Order.objects.select_for_update()
    if customer is not None:
        qs = qs.filter(customer=customer)

    try:
        return qs.get(pk=order_id)
    except (Order.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"Order {order_id} not found", code="ORDER_NOT_FOUND")


def visible_orders(user):
    """
    Orders the user may read: everything for staff with orders.view_all,
    own orders otherwise.
    """
    qs = Order.objects.select_related("customer", "bill_reviewed_by").prefetch_related(
        "items"
    )
    if user_has_capability(user, CAP_ORDERS_VIEW_ALL):
        return qs
    return qs.filter(customer=user)


def pending_verification_orders():
    return (
        Order.objects.select_related("customer")
        .prefetch_related("items")
        .filter(payment_status=PaymentStatus.PENDING_VERIFICATION)
        .order_by("bill_upload_date")
    )


def order_counts() -> dict:
    """
    Dashboard counters for the back office.
    """
    return Order.objects.aggregate(
        total=Count("id"),
        pending_payment=Count("id", filter=Q(status=OrderStatus.PENDING_PAYMENT)),
        pending=Count("id", filter=Q(status=OrderStatus.PENDING)),
        pending_verification=Count(
            "id", filter=Q(payment_status=PaymentStatus.PENDING_VERIFICATION)
        ),
        in_fulfillment=Count(
            "id",
            filter=Q(
                status__in=[
                    OrderStatus.CONFIRMED,
                    OrderStatus.PROCESSING,
                    OrderStatus.READY,
                    OrderStatus.SHIPPED,
                ]
            ),
        ),
        completed=Count(
            "id", filter=Q(status__in=[OrderStatus.COMPLETED, OrderStatus.DELIVERED])
        ),
        cancelled=Count("id", filter=Q(status=OrderStatus.CANCELLED)),
        refunded=Count("id", filter=Q(status=OrderStatus.REFUNDED)),
    )
