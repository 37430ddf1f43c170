# dm_core/orders/tests/test_order_validation.py
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from dm_core.orders.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    PatientNotFound,
    PrescriptionLimitExceeded,
    ProductNotFound,
)
from dm_core.orders.validation import (
    consumed_in_month,
    month_bounds,
    month_key,
    to_grams,
    validate_order,
)

NOW = datetime(2025, 9, 15, 12, 0, tzinfo=timezone.utc)


def product(pid="prod1", stock="100"):
    return SimpleNamespace(id=pid, stock_grams=Decimal(stock), price_per_gram=Decimal("10"))


def patient(pid="patient1", limit="30"):
    return SimpleNamespace(id=pid, prescription_limit_grams=Decimal(limit))


def order(patient_id="patient1", qty="5", created_at=NOW):
    return SimpleNamespace(patient_id=patient_id, quantity_grams=Decimal(qty), created_at=created_at)


def check(qty, *, products=None, patients=None, orders=(), product_id="prod1", patient_id="patient1"):
    return validate_order(
        patient_id=patient_id,
        product_id=product_id,
        quantity_grams=qty,
        products=products if products is not None else [product()],
        patients=patients if patients is not None else [patient()],
        orders=list(orders),
        now=NOW,
    )


def test_valid_order_reports_consumption():
    result = check(10, orders=[order(qty="5")])
    assert result.quantity_grams == Decimal("10.00")
    assert result.consumed_this_month == Decimal("5")
    assert result.remaining_allowance == Decimal("15")
    assert result.month == "2025-09"


def test_unknown_product():
    with pytest.raises(ProductNotFound) as exc:
        check(5, product_id="nope")
    assert exc.value.code == "product_not_found"


def test_product_checked_before_patient():
    with pytest.raises(ProductNotFound):
        check(5, product_id="nope", patient_id="nobody")


def test_stock_checked_before_patient():
    with pytest.raises(InsufficientStock):
        check(500, patient_id="nobody")


def test_unknown_patient():
    with pytest.raises(PatientNotFound):
        check(5, patient_id="nobody")


def test_exact_stock_is_allowed():
    result = check(30, products=[product(stock="30")], patients=[patient(limit="50")])
    assert result.quantity_grams == Decimal("30.00")


def test_stock_one_gram_short():
    with pytest.raises(InsufficientStock) as exc:
        check(31, products=[product(stock="30")], patients=[patient(limit="50")])
    assert exc.value.context["available"] == "30"


def test_limit_boundary():
    history = [order(qty="20")]
    assert check(10, orders=history).remaining_allowance == Decimal("0")

    with pytest.raises(PrescriptionLimitExceeded) as exc:
        check(11, orders=history)
    assert str(exc.value).startswith("Exceeds monthly prescription limit")
    assert exc.value.context["consumed"] == "20"


def test_previous_month_orders_do_not_count():
    last_month = datetime(2025, 8, 31, 23, 59, tzinfo=timezone.utc)
    result = check(30, orders=[order(qty="25", created_at=last_month)])
    assert result.consumed_this_month == Decimal("0")


def test_other_patients_orders_do_not_count():
    result = check(30, orders=[order(patient_id="patient2", qty="25")])
    assert result.consumed_this_month == Decimal("0")


def test_orders_of_every_status_count_toward_limit():
    history = [
        SimpleNamespace(patient_id="patient1", quantity_grams=Decimal("10"), created_at=NOW, status=s)
        for s in ("pending", "dispensed", "rejected")
    ]
    with pytest.raises(PrescriptionLimitExceeded):
        check(1, orders=history)


@pytest.mark.parametrize("qty", [0, -1, "abc", None])
def test_invalid_quantity(qty):
    with pytest.raises(InvalidQuantity):
        check(qty)


def test_to_grams_quantizes():
    assert to_grams("2.5") == Decimal("2.50")
    assert str(to_grams(3)) == "3.00"


@pytest.mark.parametrize("qty", ["0.004", "0.001", "1.006", "2.505"])
def test_sub_hundredth_quantities_are_refused_not_rounded(qty):
    with pytest.raises(InvalidQuantity):
        check(qty)


@pytest.mark.parametrize("qty", ["1e30", "NaN", "Infinity", "-0.00"])
def test_unrepresentable_quantities_raise_invalid_quantity(qty):
    with pytest.raises(InvalidQuantity):
        to_grams(qty)


def test_month_key_uses_utc():
    # 23:30 at UTC-05:00 on Sep 30 is already October in UTC
    from datetime import timedelta

    local = datetime(2025, 9, 30, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert month_key(local) == "2025-10"
    assert month_key("2025-09-01T10:00:00.000Z") == "2025-09"
    assert month_key("2025-09-01") == "2025-09"


def test_month_bounds_december_rollover():
    start, end = month_bounds(datetime(2025, 12, 10, tzinfo=timezone.utc))
    assert start == datetime(2025, 12, 1, tzinfo=timezone.utc)
    assert end == datetime(2026, 1, 1, tzinfo=timezone.utc)


def test_consumed_in_month_sums_matching_orders():
    orders = [
        order(qty="5"),
        order(qty="2.5"),
        order(patient_id="patient2", qty="9"),
        order(qty="7", created_at=datetime(2025, 10, 1, tzinfo=timezone.utc)),
    ]
    assert consumed_in_month(orders, "patient1", "2025-09") == Decimal("7.5")
