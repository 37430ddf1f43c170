# dm_core/products/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from dm_core.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "thc_percent",
            "cbd_percent",
            "stock_grams",
            "price_per_gram",
        ]
        read_only_fields = fields
