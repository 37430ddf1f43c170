from __future__ import annotations

from django.contrib import admin

from dm_core.products.models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "thc_percent", "cbd_percent", "stock_grams", "price_per_gram", "updated_at")
    search_fields = ("id", "name")
    ordering = ("position", "name")
    # Stock moves only through orders
    readonly_fields = ("stock_grams", "updated_at")
