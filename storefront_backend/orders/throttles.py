# orders/throttles.py

from rest_framework.throttling import UserRateThrottle


class OrderWriteThrottle(UserRateThrottle):
    """
    For order write endpoints (checkout, bill upload, cancel).
    Uses REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']['order_write'].
    """

    scope = "order_write"


class PickupLookupThrottle(UserRateThrottle):
    """
    For counter pickup code lookups; limits code guessing.
    Uses REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']['pickup_lookup'].
    """

    scope = "pickup_lookup"
