# dm_core/orders/admin.py
from __future__ import annotations

from django.contrib import admin

from dm_core.orders.models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Read-only: orders are created and moved through OrderService so that stock
    and prescription totals stay consistent.
    """
    list_display = (
        "id",
        "patient",
        "product",
        "quantity_grams",
        "status",
        "created_at",
        "status_changed_at",
    )
    list_filter = ("status",)
    search_fields = ("id", "patient__medical_id", "product__name")
    ordering = ("-created_at",)
    list_select_related = ("patient", "product")
    readonly_fields = (
        "id",
        "patient",
        "product",
        "quantity_grams",
        "status",
        "notes",
        "created_at",
        "status_changed_at",
        "updated_at",
        "position",
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
