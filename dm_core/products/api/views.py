# dm_core/products/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from dm_core.common.api.pagination import paginate
from dm_core.iam.permissions import ProductPermission
from dm_core.products.api.serializers import ProductSerializer
from dm_core.products.models import Product
from dm_core.products.selectors import ProductSelector


class ProductViewSet(viewsets.ViewSet):
    """
    Read-only catalog. Stock changes only through order creation.
    """
    permission_classes = [ProductPermission]

    serializer_class = ProductSerializer
    queryset = Product.objects.none()

    @extend_schema(
        tags=["Products"],
        responses={200: ProductSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="in_stock",
                type=OpenApiTypes.BOOL,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Only products with stock left.",
            ),
        ],
    )
    def list(self, request):
        in_stock = request.query_params.get("in_stock") in {"1", "true", "True"}
        items = ProductSelector.list_products(q=request.query_params.get("q"), in_stock=in_stock)
        return paginate(request, items, ProductSerializer)

    @extend_schema(tags=["Products"], responses={200: ProductSerializer})
    def retrieve(self, request, pk=None):
        try:
            product = ProductSelector.get_product(product_id=pk)
        except ProductSelector.NotFound:
            raise NotFound("Product not found.")
        return Response(ProductSerializer(product).data, status=status.HTTP_200_OK)
