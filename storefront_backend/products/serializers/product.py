# products/serializers/product.py

"""
PRODUCT SERIALIZER

Purpose:
- Read-only catalog representation for the storefront.
- Checkout never trusts prices from the client; unit_price here is display only.
"""

from rest_framework import serializers

from products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    is_in_stock = serializers.BooleanField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "description",
            "unit_price",
            "stock",
            "is_in_stock",
            "is_low_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
