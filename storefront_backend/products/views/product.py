# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Public catalog browsing for the storefront (AllowAny, read only).
- Returns ONLY active products.

Query params:
- q:        search over name / sku
- in_stock: "true" to hide sold-out items
"""

from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.permissions import AllowAny

from products.models import Product
from products.serializers.product import ProductSerializer


class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = ProductSerializer
    permission_classes = [AllowAny]
    filterset_fields = ["sku"]

    def get_queryset(self):
        qs = Product.objects.filter(is_active=True)

        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(name__icontains=q) | Q(sku__icontains=q))

        in_stock = (self.request.query_params.get("in_stock") or "").strip().lower()
        if in_stock in {"1", "true", "yes"}:
            qs = qs.filter(stock__gt=0)

        return qs.order_by("name")

    @extend_schema(
        tags=["Public"],
        parameters=[
            OpenApiParameter(
                name="q",
                type=str,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Optional search query (name or sku).",
            ),
            OpenApiParameter(
                name="in_stock",
                type=bool,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Only return products with stock on hand.",
            ),
        ],
        description="Public storefront browsing (AllowAny).",
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)
