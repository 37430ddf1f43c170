# dm_core/products/models.py
from decimal import Decimal

from django.db import models
from django.db.models import Q

from dm_core.common.models import RecordModel


class Product(RecordModel):
    """
    Inventory item dispensed by the gram.

    stock_grams only ever decreases, and only through order creation
    (OrderService.create_order). Status changes never touch it.
    """
    name = models.CharField(max_length=255)
    thc_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    cbd_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    stock_grams = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    price_per_gram = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        db_table = "products_product"
        ordering = ["position", "name"]
        constraints = [
            models.CheckConstraint(condition=Q(stock_grams__gte=0), name="ck_product_stock_non_negative"),
            models.CheckConstraint(condition=Q(price_per_gram__gt=0), name="ck_product_price_positive"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.stock_grams} g)"
