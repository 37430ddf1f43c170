# dm_core/orders/read_models.py
"""
Dashboard read model.

Derived figures only; nothing here writes. Rejected orders still count as
orders (total and per-day), but not as sales: revenue, grams, average size
and the top-products ranking skip them.
"""
from __future__ import annotations

from collections import OrderedDict
from decimal import Decimal
from typing import Any, Iterable

from dm_core.orders.models import Order, OrderStatus
from dm_core.orders.validation import to_decimal, utc_datetime
from dm_core.products.models import Product

MONEY = Decimal("0.01")


def _day_key(value) -> str:
    dt = utc_datetime(value)
    if dt is not None:
        return dt.strftime("%Y-%m-%d")
    return str(value)[:10]


def _is_sale(order) -> bool:
    return str(order.status) != OrderStatus.REJECTED.value


def orders_per_day(orders: Iterable[Any]) -> "OrderedDict[str, int]":
    """
    Count of orders per UTC calendar day, keyed "YYYY-MM-DD", oldest day first.
    """
    counts: dict[str, int] = {}
    for order in orders:
        key = _day_key(order.created_at)
        counts[key] = counts.get(key, 0) + 1
    return OrderedDict(sorted(counts.items()))


def top_products(orders: Iterable[Any], products: Iterable[Any], limit: int = 5) -> list[dict]:
    by_id = {str(p.id): p for p in products}

    rows: dict[str, dict] = {}
    for order in orders:
        if not _is_sale(order):
            continue
        product = by_id.get(str(order.product_id))
        if product is None:
            continue

        qty = to_decimal(order.quantity_grams)
        row = rows.setdefault(
            str(product.id),
            {"product_id": str(product.id), "name": product.name, "sales": Decimal("0"), "quantity": Decimal("0")},
        )
        row["sales"] += qty * to_decimal(product.price_per_gram)
        row["quantity"] += qty

    ranked = sorted(rows.values(), key=lambda r: r["sales"], reverse=True)[: max(limit, 0)]
    for row in ranked:
        row["sales"] = row["sales"].quantize(MONEY)
        row["quantity"] = row["quantity"].quantize(MONEY)
    return ranked


def summarize(orders: list[Any], products: list[Any], *, recent: int = 5) -> dict:
    price = {str(p.id): to_decimal(p.price_per_gram) for p in products}

    sales = [o for o in orders if _is_sale(o)]
    total_grams = sum((to_decimal(o.quantity_grams) for o in sales), Decimal("0"))
    total_revenue = sum(
        (to_decimal(o.quantity_grams) * price.get(str(o.product_id), Decimal("0")) for o in sales),
        Decimal("0"),
    )
    avg = (total_grams / len(sales)) if sales else Decimal("0")

    newest = sorted(orders, key=lambda o: (utc_datetime(o.created_at) or o.created_at), reverse=True)

    return {
        "total_orders": len(orders),
        "total_revenue": total_revenue.quantize(MONEY),
        "total_grams": total_grams.quantize(MONEY),
        "avg_order_size_grams": avg.quantize(MONEY),
        "orders_per_day": orders_per_day(orders),
        "top_products": top_products(sales, products),
        "recent_orders": newest[:recent],
    }


def dashboard_summary() -> dict:
    """
    Summary over the whole store. `recent_orders` holds Order instances.
    """
    orders = list(Order.objects.select_related("patient", "product").order_by("created_at", "position"))
    products = list(Product.objects.all())
    return summarize(orders, products)
