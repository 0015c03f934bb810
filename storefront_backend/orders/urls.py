# orders/urls.py

"""
ORDERS API URLS

Rules:
- Explicit pickup routes are registered BEFORE router URLs.
- The router lookup only matches UUIDs, so list-level actions
  (checkout, counts, pending-verification) never collide with <pk>.
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from orders.views import (
    OrderViewSet,
    PickupCompleteView,
    PickupHistoryView,
    PickupPendingView,
    PickupVerifyView,
)

router = SimpleRouter()
router.register(r"", OrderViewSet, basename="order")

urlpatterns = [
    path("pickup/verify/<str:code>/", PickupVerifyView.as_view(), name="pickup-verify"),
    path("pickup/complete/<str:code>/", PickupCompleteView.as_view(), name="pickup-complete"),
    path("pickup/pending/", PickupPendingView.as_view(), name="pickup-pending"),
    path("pickup/history/", PickupHistoryView.as_view(), name="pickup-history"),
    path("", include(router.urls)),
]
