"""
Order admissibility rules.

Pure functions over snapshots of products, patients and orders: no queries,
no writes. Records are read by attribute (model instances or anything shaped
like them):

    product: id, stock_grams
    patient: id, prescription_limit_grams
    order:   patient_id, quantity_grams, created_at

Boundaries: ordering exactly the remaining stock is allowed, and so is
ordering exactly the remaining monthly allowance. Only going strictly over
either one fails.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from dm_core.orders.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    PatientNotFound,
    PrescriptionLimitExceeded,
    ProductNotFound,
)

GRAMS = Decimal("0.01")


@dataclass(frozen=True)
class OrderCheck:
    """Result of a successful validation."""
    product: Any
    patient: Any
    quantity_grams: Decimal
    month: str
    consumed_this_month: Decimal

    @property
    def remaining_allowance(self) -> Decimal:
        return self.patient_limit - self.consumed_this_month - self.quantity_grams

    @property
    def patient_limit(self) -> Decimal:
        return to_decimal(self.patient.prescription_limit_grams)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_grams(value) -> Decimal:
    """
    Normalize a requested quantity to two decimal places. Raises
    InvalidQuantity for anything that is not a positive number of grams
    expressible in hundredths; finer values are refused, never rounded.
    """
    try:
        qty = to_decimal(value)
        if not qty.is_finite():
            raise InvalidQuantity(quantity=str(value))
        grams = qty.quantize(GRAMS)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidQuantity(quantity=str(value))
    if grams != qty:
        raise InvalidQuantity("Quantity must use at most two decimal places.", quantity=str(value))
    if grams <= 0:
        raise InvalidQuantity(quantity=str(value))
    return grams


def utc_datetime(value) -> Optional[datetime]:
    """
    Accepts an aware/naive datetime or an ISO-8601 string; returns an aware
    UTC datetime. Naive values are taken as UTC. Returns None for anything
    unparseable.
    """
    if isinstance(value, str):
        try:
            value = parse_datetime(value)
        except ValueError:
            return None
        if value is None:
            return None
    if not isinstance(value, datetime):
        return None
    if timezone.is_naive(value):
        return value.replace(tzinfo=dt_timezone.utc)
    return value.astimezone(dt_timezone.utc)


def month_key(value) -> str:
    """
    UTC calendar month of a timestamp as "YYYY-MM".
    """
    dt = utc_datetime(value)
    if dt is not None:
        return dt.strftime("%Y-%m")
    if isinstance(value, date):
        return value.strftime("%Y-%m")
    # date-only ISO strings ("2025-09-01"): same prefix rule
    return str(value)[:7]


def month_bounds(now: datetime) -> tuple[datetime, datetime]:
    """
    [start, end) of the UTC calendar month containing `now`.
    """
    dt = utc_datetime(now)
    start = dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def consumed_in_month(orders: Iterable[Any], patient_id: str, month: str) -> Decimal:
    total = Decimal("0")
    for order in orders:
        if str(order.patient_id) != str(patient_id):
            continue
        if month_key(order.created_at) != month:
            continue
        total += to_decimal(order.quantity_grams)
    return total


def _find(records: Iterable[Any], record_id: str):
    for record in records:
        if str(record.id) == str(record_id):
            return record
    return None


def validate_order(
    *,
    patient_id: str,
    product_id: str,
    quantity_grams,
    products: Iterable[Any],
    patients: Iterable[Any],
    orders: Iterable[Any],
    now: Optional[datetime] = None,
) -> OrderCheck:
    """
    Decide whether an order is admissible against the given snapshot.

    Checks run in this order: quantity, product + stock, patient,
    monthly prescription limit. The first failure is raised.
    """
    qty = to_grams(quantity_grams)

    product = _find(products, product_id)
    if product is None:
        raise ProductNotFound(product_id=product_id)

    stock = to_decimal(product.stock_grams)
    if stock < qty:
        raise InsufficientStock(
            f"Insufficient stock: requested {qty} g, available {stock} g.",
            product_id=product_id,
            requested=str(qty),
            available=str(stock),
        )

    patient = _find(patients, patient_id)
    if patient is None:
        raise PatientNotFound(patient_id=patient_id)

    month = month_key(now or timezone.now())
    consumed = consumed_in_month(orders, patient_id, month)
    limit = to_decimal(patient.prescription_limit_grams)

    if consumed + qty > limit:
        raise PrescriptionLimitExceeded(
            f"Exceeds monthly prescription limit: {consumed} g of {limit} g used in {month}, "
            f"requested {qty} g.",
            patient_id=patient_id,
            month=month,
            limit=str(limit),
            consumed=str(consumed),
            requested=str(qty),
        )

    return OrderCheck(
        product=product,
        patient=patient,
        quantity_grams=qty,
        month=month,
        consumed_this_month=consumed,
    )
