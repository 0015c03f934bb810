# orders/services/checkout_service.py

"""
CHECKOUT SERVICE (APPLICATION SERVICE)

Purpose:
- Turn a submitted cart into an Order in PENDING_PAYMENT (atomic, auditable).
- Resolve live price + stock for every line under row locks.
- Reserve stock at submission; cancellation / refund release it.

Hard rules:
- Quantities are integer units.
- Money values are computed server-side; the client never sends prices.
- total = subtotal + tax + shipping - discount, never negative.

Notes:
- The whole checkout runs inside one DB transaction: stock reservation,
  order row, items and the audit event succeed together or roll back together.
- Notifications are scheduled on commit and never block checkout.
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction

from notifications.services.dispatch import notify_staff
from orders.models import (
    PHYSICAL_DELIVERY_METHODS,
    DeliveryMethod,
    DeliveryStatus,
    Order,
    OrderEvent,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from orders.services.events import order_payload, record_transition
from orders.services.exceptions import ValidationError
from products.services.inventory import (
    InsufficientStockError,
    ProductUnavailableError,
    lock_products,
    require_sellable,
    reserve_stock,
)

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

ADDRESS_REQUIRED_FIELDS = ("street", "city", "country")
ADDRESS_OPTIONAL_FIELDS = ("state", "zip_code", "phone")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _to_int_qty(value) -> int:
    if value is None or value == "":
        return 0

    if isinstance(value, bool):
        raise ValidationError("quantity must be a whole integer unit", code="INVALID_QUANTITY")

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        s = value.strip()
        if s.isdigit():
            return int(s)

    raise ValidationError("quantity must be a whole integer unit", code="INVALID_QUANTITY")


def tax_rate() -> Decimal:
    return Decimal(str(getattr(settings, "ORDER_TAX_RATE", "0.08")))


def default_pickup_location() -> str:
    return str(getattr(settings, "DEFAULT_PICKUP_LOCATION", "") or "Main store").strip()


def shipping_fee(delivery_method: str) -> Decimal:
    fees = getattr(settings, "SHIPPING_FEES", {}) or {}
    if delivery_method not in fees:
        raise ValidationError(
            f"No shipping fee configured for delivery method '{delivery_method}'",
            code="INVALID_DELIVERY_METHOD",
        )
    return _money(fees[delivery_method])


# ============================================================
# INPUT NORMALIZATION
# ============================================================

def _normalize_choice(value, *, choices, field_name: str) -> str:
    v = str(value or "").strip().lower()
    if v not in choices.values:
        raise ValidationError(
            f"Invalid {field_name}: '{value}'",
            code=f"INVALID_{field_name.upper()}",
        )
    return v


def _normalize_items(items) -> dict[str, int]:
    """
    items: [{"product_id": <uuid>, "quantity": <int>}, ...]
    Returns {product_id: quantity} with duplicate lines merged, input order kept.
    """
    if not isinstance(items, (list, tuple)) or not items:
        raise ValidationError("Cart is empty", code="EMPTY_CART")

    merged: dict[str, int] = {}

    for idx, line in enumerate(items):
        if not isinstance(line, dict):
            raise ValidationError(f"Cart line {idx} must be an object", code="INVALID_CART_LINE")

        pid = str(line.get("product_id") or line.get("product") or "").strip()
        if not pid:
            raise ValidationError(f"Cart line {idx} is missing product_id", code="INVALID_CART_LINE")

        try:
            pid = str(uuid.UUID(pid))
        except ValueError:
            raise ValidationError(f"Unknown product {pid}", code="PRODUCT_NOT_FOUND")

        qty = _to_int_qty(line.get("quantity", 1))
        if qty <= 0:
            raise ValidationError(
                f"Cart line {idx} quantity must be >= 1",
                code="INVALID_QUANTITY",
            )

        merged[pid] = merged.get(pid, 0) + qty

    return merged


def _normalize_address(delivery_method: str, address) -> dict | None:
    if delivery_method not in PHYSICAL_DELIVERY_METHODS:
        return None

    if not isinstance(address, dict):
        raise ValidationError(
            "A delivery address is required for home and express delivery",
            code="ADDRESS_REQUIRED",
        )

    out = {}
    for key in ADDRESS_REQUIRED_FIELDS:
        value = str(address.get(key) or "").strip()
        if not value:
            raise ValidationError(f"Delivery address {key} is required", code="ADDRESS_REQUIRED")
        out[key] = value

    for key in ADDRESS_OPTIONAL_FIELDS:
        out[key] = str(address.get(key) or "").strip()

    return out


def _normalize_pickup_location(delivery_method: str, pickup_location) -> str:
    if delivery_method != DeliveryMethod.STORE_PICKUP:
        return ""

    value = str(pickup_location or "").strip()
    if len(value) > 255:
        raise ValidationError(
            "pickup_location must be at most 255 characters",
            code="INVALID_PICKUP_LOCATION",
        )
    return value or default_pickup_location()


def _normalize_discount(discount) -> Decimal:
    try:
        value = _money(discount)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("discount must be a valid amount", code="INVALID_DISCOUNT")

    if value < Decimal("0.00"):
        raise ValidationError("discount cannot be negative", code="INVALID_DISCOUNT")

    return value


# ============================================================
# TOTALS
# ============================================================

def compute_totals(*, lines, delivery_method: str, discount=Decimal("0.00")) -> dict:
    """
    lines: iterable of (unit_price, quantity)

    Returns the five money fields, each quantized to 2dp ROUND_HALF_UP.
    """
    subtotal = Decimal("0.00")
    for unit_price, quantity in lines:
        subtotal += _money(Decimal(str(unit_price)) * int(quantity))
    subtotal = _money(subtotal)

    tax = _money(subtotal * tax_rate())
    shipping = shipping_fee(delivery_method)
    discount = _normalize_discount(discount)

    gross = subtotal + tax + shipping
    if discount > gross:
        raise ValidationError(
            f"Discount {discount} exceeds the order total {gross}",
            code="DISCOUNT_EXCEEDS_TOTAL",
        )

    return {
        "subtotal_amount": subtotal,
        "tax_amount": tax,
        "shipping_amount": shipping,
        "discount_amount": discount,
        "total_amount": _money(gross - discount),
    }


# ============================================================
# SUBMIT
# ============================================================

@transaction.atomic
def submit_order(
    *,
    customer,
    items,
    payment_method: str = PaymentMethod.CASH_ON_DELIVERY,
    delivery_method: str = DeliveryMethod.HOME_DELIVERY,
    delivery_address: dict | None = None,
    pickup_location: str = "",
    customer_notes: str = "",
    discount=Decimal("0.00"),
) -> Order:
    """
    Create an order from a cart.

    Raises ValidationError for an empty cart, unknown / inactive products,
    bad quantities, insufficient stock, a missing delivery address, or a
    discount larger than the pre-discount total.
    Store pickup orders without a pickup_location get DEFAULT_PICKUP_LOCATION.
    """
    if customer is None or not getattr(customer, "pk", None):
        raise ValidationError("A customer is required to place an order", code="CUSTOMER_REQUIRED")

    payment_method = _normalize_choice(
        payment_method, choices=PaymentMethod, field_name="payment_method"
    )
    delivery_method = _normalize_choice(
        delivery_method, choices=DeliveryMethod, field_name="delivery_method"
    )

    cart = _normalize_items(items)
    address = _normalize_address(delivery_method, delivery_address)
    location = _normalize_pickup_location(delivery_method, pickup_location)

    locked = lock_products(cart.keys())

    resolved = []
    for pid, qty in cart.items():
        try:
            product = require_sellable(locked.get(pid), product_id=pid)
        except ProductUnavailableError as exc:
            raise ValidationError(str(exc), code="PRODUCT_UNAVAILABLE") from exc
        resolved.append((product, qty))

    totals = compute_totals(
        lines=[(p.unit_price, qty) for p, qty in resolved],
        delivery_method=delivery_method,
        discount=discount,
    )

    for product, qty in resolved:
        try:
            reserve_stock(product=product, quantity=qty)
        except InsufficientStockError as exc:
            raise ValidationError(str(exc), code="INSUFFICIENT_STOCK") from exc

    order = Order(
        customer=customer,
        status=OrderStatus.PENDING_PAYMENT,
        payment_method=payment_method,
        payment_status=PaymentStatus.PENDING,
        delivery_method=delivery_method,
        delivery_status=DeliveryStatus.PENDING,
        delivery_address=address,
        pickup_location=location,
        customer_notes=(customer_notes or "").strip(),
        **totals,
    )
    order.clean()
    order.save()

    for product, qty in resolved:
        OrderItem.objects.create(
            order=order,
            product=product,
            product_name=product.name,
            product_sku=product.sku,
            quantity=qty,
            unit_price=_money(product.unit_price),
        )

    record_transition(
        order=order,
        event_type=OrderEvent.EVENT_PLACED,
        actor=customer,
        before=("", ""),
        payload={"item_count": len(resolved)},
    )

    notify_staff(OrderEvent.EVENT_PLACED, order_payload(order))

    logger.info(
        "Order submitted",
        extra={
            "order_id": str(order.id),
            "order_number": order.order_number,
            "customer_id": str(customer.pk),
            "total_amount": str(order.total_amount),
        },
    )

    return order
