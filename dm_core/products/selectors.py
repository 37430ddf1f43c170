# dm_core/products/selectors.py
from __future__ import annotations

from django.db.models import Q

from dm_core.products.models import Product


class ProductSelector:
    class NotFound(Exception):
        pass

    @staticmethod
    def get_product(*, product_id: str) -> Product:
        try:
            return Product.objects.get(id=product_id)
        except Product.DoesNotExist:
            raise ProductSelector.NotFound()

    @staticmethod
    def list_products(*, q: str | None = None, in_stock: bool = False) -> list[Product]:
        """
        Snapshot of the product collection in insertion order.
        """
        qs = Product.objects.all()

        qv = (q or "").strip()
        if qv:
            qs = qs.filter(Q(name__icontains=qv) | Q(id__iexact=qv))
        if in_stock:
            qs = qs.filter(stock_grams__gt=0)

        return list(qs.order_by("position", "name"))
