# dm_core/products/subscribers.py
from __future__ import annotations

import logging
from decimal import Decimal

from django.conf import settings

from dm_core.common.events import subscribe

logger = logging.getLogger(__name__)


def low_stock_threshold() -> Decimal:
    return Decimal(str(getattr(settings, "DM_LOW_STOCK_GRAMS", "10")))


@subscribe("order.created")
def warn_on_low_stock(payload: dict) -> None:
    stock = Decimal(payload["stock_grams"])
    if stock <= low_stock_threshold():
        logger.warning(
            "Low stock product_id=%s stock_grams=%s after order_id=%s",
            payload["product_id"],
            stock,
            payload["order_id"],
        )
