from .order import OrderViewSet
from .pickup import (
    PickupCompleteView,
    PickupHistoryView,
    PickupPendingView,
    PickupVerifyView,
)

__all__ = [
    "OrderViewSet",
    "PickupVerifyView",
    "PickupCompleteView",
    "PickupPendingView",
    "PickupHistoryView",
]
