# orders/models/enums.py

"""
Closed status vocabularies for the Order aggregate.

The transition tables that give these states meaning live in
orders/services/order_lifecycle.py.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING_PAYMENT = "pending_payment", "Pending Payment"
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PROCESSING = "processing", "Processing"
    READY = "ready", "Ready"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    REFUNDED = "refunded", "Refunded"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PENDING_VERIFICATION = "pending_verification", "Pending Verification"
    VERIFIED = "verified", "Verified"
    REJECTED = "rejected", "Rejected"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"
    CANCELLED = "cancelled", "Cancelled"


class PaymentMethod(models.TextChoices):
    CREDIT_CARD = "credit_card", "Credit Card"
    DEBIT_CARD = "debit_card", "Debit Card"
    PAYPAL = "paypal", "PayPal"
    STRIPE = "stripe", "Stripe"
    CASH_ON_DELIVERY = "cash_on_delivery", "Cash on Delivery"
    BANK_TRANSFER = "bank_transfer", "Bank Transfer"


class DeliveryMethod(models.TextChoices):
    HOME_DELIVERY = "home_delivery", "Home Delivery"
    STORE_PICKUP = "store_pickup", "Store Pickup"
    EXPRESS_DELIVERY = "express_delivery", "Express Delivery"


class DeliveryStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out for Delivery"
    DELIVERED = "delivered", "Delivered"
    FAILED = "failed", "Failed"
    RETURNED = "returned", "Returned"


# Orders in these states no longer hold a pickup code slot.
INACTIVE_ORDER_STATUSES = (
    OrderStatus.COMPLETED,
    OrderStatus.CANCELLED,
    OrderStatus.REFUNDED,
)

PHYSICAL_DELIVERY_METHODS = (
    DeliveryMethod.HOME_DELIVERY,
    DeliveryMethod.EXPRESS_DELIVERY,
)
