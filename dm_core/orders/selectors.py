# dm_core/orders/selectors.py
from __future__ import annotations

from dm_core.orders.models import Order


class OrderSelector:
    class NotFound(Exception):
        pass

    @staticmethod
    def get_order(*, order_id: str) -> Order:
        try:
            return Order.objects.select_related("patient", "product").get(id=order_id)
        except Order.DoesNotExist:
            raise OrderSelector.NotFound()

    @staticmethod
    def list_orders(
        *,
        status: str | None = None,
        patient_id: str | None = None,
        product_id: str | None = None,
    ) -> list[Order]:
        qs = Order.objects.select_related("patient", "product").order_by("-created_at", "-position")
        if status:
            qs = qs.filter(status=status)
        if patient_id:
            qs = qs.filter(patient_id=patient_id)
        if product_id:
            qs = qs.filter(product_id=product_id)
        return list(qs)
