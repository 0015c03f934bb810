# orders/tests/helpers.py

from decimal import Decimal

from django.contrib.auth import get_user_model

from orders.models import DeliveryMethod, PaymentMethod
from orders.services import submit_order, upload_payment_bill, verify_payment
from permissions.roles import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_EMPLOYEE
from products.models import Product

User = get_user_model()

BILL_URL = "https://cdn.example.com/bills/transfer-001.jpg"

HOME_ADDRESS = {
    "street": "12 Circuit Lane",
    "city": "Colombo",
    "state": "Western",
    "zip_code": "00100",
    "country": "LK",
    "phone": "+94 77 000 0000",
}


def make_customer(email="customer@example.com"):
    return User.objects.create_user(email=email, password="pass", role=ROLE_CUSTOMER)


def make_admin(email="admin@example.com"):
    return User.objects.create_user(email=email, password="pass", role=ROLE_ADMIN)


def make_employee(email="employee@example.com"):
    return User.objects.create_user(email=email, password="pass", role=ROLE_EMPLOYEE)


def make_product(*, sku, unit_price="1000.00", stock=10, name=None, is_active=True):
    return Product.objects.create(
        sku=sku,
        name=name or f"Product {sku}",
        unit_price=Decimal(unit_price),
        stock=stock,
        is_active=is_active,
    )


def place_order(customer, product, *, quantity=1, delivery_method=DeliveryMethod.STORE_PICKUP):
    address = HOME_ADDRESS if delivery_method != DeliveryMethod.STORE_PICKUP else None
    return submit_order(
        customer=customer,
        items=[{"product_id": str(product.id), "quantity": quantity}],
        payment_method=PaymentMethod.BANK_TRANSFER,
        delivery_method=delivery_method,
        delivery_address=address,
    )


def place_and_upload(customer, product, **kwargs):
    order = place_order(customer, product, **kwargs)
    return upload_payment_bill(order_id=order.id, customer=customer, bill_image=BILL_URL)


def place_and_verify(customer, admin, product, **kwargs):
    order = place_and_upload(customer, product, **kwargs)
    return verify_payment(order_id=order.id, admin=admin)
