# dm_core/orders/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from dm_core.orders.models import Order, OrderStatus


class OrderCreateSerializer(serializers.Serializer):
    patient_id = serializers.CharField(max_length=64)
    product_id = serializers.CharField(max_length=64)
    # positivity is a domain rule (InvalidQuantity), not checked here
    quantity_grams = serializers.DecimalField(max_digits=10, decimal_places=2)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


class OrderSerializer(serializers.ModelSerializer):
    patient_id = serializers.CharField(read_only=True)
    product_id = serializers.CharField(read_only=True)
    patient_name = serializers.CharField(source="patient.name", read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "patient_id",
            "patient_name",
            "product_id",
            "product_name",
            "quantity_grams",
            "status",
            "notes",
            "created_at",
            "status_changed_at",
        ]
        read_only_fields = fields


class TopProductSerializer(serializers.Serializer):
    product_id = serializers.CharField()
    name = serializers.CharField()
    sales = serializers.DecimalField(max_digits=14, decimal_places=2)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2)


class DashboardSummarySerializer(serializers.Serializer):
    total_orders = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_grams = serializers.DecimalField(max_digits=12, decimal_places=2)
    avg_order_size_grams = serializers.DecimalField(max_digits=12, decimal_places=2)
    orders_per_day = serializers.DictField(child=serializers.IntegerField())
    top_products = TopProductSerializer(many=True)
    recent_orders = OrderSerializer(many=True)
