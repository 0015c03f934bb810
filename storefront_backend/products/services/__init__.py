from .inventory import (
    InsufficientStockError,
    InventoryError,
    ProductUnavailableError,
    lock_products,
    release_order_stock,
    release_stock,
    require_sellable,
    reserve_stock,
)

__all__ = [
    "InsufficientStockError",
    "InventoryError",
    "ProductUnavailableError",
    "lock_products",
    "release_order_stock",
    "release_stock",
    "require_sellable",
    "reserve_stock",
]
