# products/services/inventory.py

"""
======================================================
PATH: products/services/inventory.py
======================================================
INVENTORY CORE SERVICES

Purpose:
- Lock the catalog rows a checkout touches (select_for_update, stable order).
- Reserve stock at order submission; release it on cancellation / refund.

Rules:
- Quantities are integer units.
- Callers MUST already be inside transaction.atomic(); every helper here
  re-reads the product row under a lock before mutating it.
- Stock never goes negative (PositiveIntegerField + explicit check).
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import F

from products.models import Product

logger = logging.getLogger(__name__)


# ============================================================
# DOMAIN ERRORS
# ============================================================

class InventoryError(Exception):
    pass


class ProductUnavailableError(InventoryError):
    pass


class InsufficientStockError(InventoryError):
    def __init__(self, *, product, requested: int, available: int):
        self.product = product
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {product.name} "
            f"(requested {requested}, available {available})"
        )


def _to_int_qty(value) -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are integer units in this system.
    """
    if isinstance(value, bool):
        raise ValueError("quantity must be a whole integer unit")

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        s = value.strip()
        if s.isdigit():
            return int(s)

    raise ValueError("quantity must be a whole integer unit")


def _require_atomic():
    if not transaction.get_connection().in_atomic_block:
        raise InventoryError("Inventory mutations must run inside transaction.atomic()")


# ============================================================
# LOCKING
# ============================================================

def lock_products(product_ids) -> dict:
    """
    Lock the given products and return {str(id): Product}.

    Rows are locked in primary-key order so two concurrent checkouts over
    overlapping carts cannot deadlock each other.
    """
    _require_atomic()

    ids = sorted({str(pid) for pid in product_ids})
    rows = Product.objects.select_for_update().filter(id__in=ids).order_by("id")
    return {str(p.id): p for p in rows}


def require_sellable(product: Product | None, *, product_id=None) -> Product:
    if product is None:
        raise ProductUnavailableError(f"Product {product_id} does not exist")

    if not product.is_active:
        raise ProductUnavailableError(f"Product {product.name} is not available")

    return product


# ============================================================
# RESERVE / RELEASE
# ============================================================

def reserve_stock(*, product: Product, quantity) -> Product:
    """
    Decrement on-hand stock for a locked product row.

    Raises InsufficientStockError when quantity exceeds what is on hand.
    """
    _require_atomic()

    qty = _to_int_qty(quantity)
    if qty <= 0:
        raise ValueError("quantity must be >= 1")

    locked = Product.objects.select_for_update().get(pk=product.pk)
    available = int(locked.stock or 0)

    if qty > available:
        raise InsufficientStockError(product=locked, requested=qty, available=available)

    Product.objects.filter(pk=locked.pk).update(stock=F("stock") - qty)
    locked.refresh_from_db(fields=["stock"])

    if locked.is_low_stock:
        logger.warning(
            "Product stock is low",
            extra={"product_id": str(locked.id), "sku": locked.sku, "stock": locked.stock},
        )

    return locked


def release_stock(*, product: Product, quantity) -> Product:
    """
    Return previously reserved units to on-hand stock.
    """
    _require_atomic()

    qty = _to_int_qty(quantity)
    if qty <= 0:
        raise ValueError("quantity must be >= 1")

    Product.objects.filter(pk=product.pk).update(stock=F("stock") + qty)
    product.refresh_from_db(fields=["stock"])
    return product


def release_order_stock(*, order) -> int:
    """
    Release every line item of an order back to stock.

    Returns the number of units released.
    """
    _require_atomic()

    released = 0
    for item in order.items.select_related("product").order_by("product_id"):
        release_stock(product=item.product, quantity=int(item.quantity))
        released += int(item.quantity)

    logger.info(
        "Released reserved stock",
        extra={"order_id": str(order.id), "units": released},
    )
    return released
