# products/urls.py

"""
PRODUCTS URLS

Mounted under /api/products/:
    GET /api/products/          active catalog (AllowAny)
    GET /api/products/<uuid>/   single product
"""

from django.urls import path

from products.views import ProductViewSet

product_list = ProductViewSet.as_view({"get": "list"})
product_detail = ProductViewSet.as_view({"get": "retrieve"})

urlpatterns = [
    path("", product_list, name="product-list"),
    path("<uuid:pk>/", product_detail, name="product-detail"),
]
