# dm_core/orders/tests/test_order_services.py
import logging
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction

from dm_core.audit.models import AuditEvent
from dm_core.orders.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    InvalidTransition,
    OrderNotFound,
    PatientNotFound,
    PrescriptionLimitExceeded,
    ProductNotFound,
)
from dm_core.orders.models import Order, OrderStatus
from dm_core.orders.services import OrderService

pytestmark = pytest.mark.django_db

NOW = datetime(2025, 9, 15, 12, 0, tzinfo=timezone.utc)


def create(patient, product, qty, **kw):
    return OrderService.create_order(
        patient_id=patient.id,
        product_id=product.id,
        quantity_grams=qty,
        now=kw.pop("now", NOW),
        **kw,
    )


def test_create_order_decrements_stock_and_starts_pending(patient, product):
    order = create(patient, product, "7.5", notes="  walk-in  ")

    product.refresh_from_db()
    assert product.stock_grams == Decimal("92.50")

    order.refresh_from_db()
    assert order.status == OrderStatus.PENDING
    assert order.quantity_grams == Decimal("7.50")
    assert order.notes == "walk-in"
    assert order.created_at == NOW
    assert order.id


def test_create_order_writes_audit_event(patient, product, staff_user):
    from dm_core.iam.session import session_from_user

    order = create(patient, product, 5, actor=session_from_user(staff_user))

    ev = AuditEvent.objects.get(event_code="order.created", entity_id=order.id)
    assert ev.actor_user_id == staff_user.id
    assert ev.metadata["quantity_grams"] == "5.00"
    assert ev.metadata["month"] == "2025-09"


def test_orders_up_to_limit_then_refused(patient, product):
    # limit 30 g
    for _ in range(3):
        create(patient, product, 10)

    with pytest.raises(PrescriptionLimitExceeded):
        create(patient, product, 1)

    product.refresh_from_db()
    assert product.stock_grams == Decimal("70.00")
    assert Order.objects.filter(patient=patient).count() == 3


def test_limit_resets_next_month(patient, product):
    create(patient, product, 30)
    create(patient, product, 30, now=datetime(2025, 10, 1, 0, 0, tzinfo=timezone.utc))
    assert Order.objects.count() == 2


def test_exact_stock_leaves_zero(other_patient, product):
    product.stock_grams = Decimal("40")
    product.save()

    create(other_patient, product, 40)

    product.refresh_from_db()
    assert product.stock_grams == Decimal("0.00")

    with pytest.raises(InsufficientStock):
        create(other_patient, product, "0.01")


def test_failed_create_writes_nothing(patient, product):
    with pytest.raises(ProductNotFound):
        OrderService.create_order(patient_id=patient.id, product_id="missing", quantity_grams=1)
    with pytest.raises(PatientNotFound):
        OrderService.create_order(patient_id="missing", product_id=product.id, quantity_grams=1)

    product.refresh_from_db()
    assert product.stock_grams == Decimal("100.00")
    assert Order.objects.count() == 0
    assert not AuditEvent.objects.filter(event_code="order.created").exists()


@pytest.mark.parametrize("qty", ["0.001", "1.006", "1e30"])
def test_unrepresentable_quantity_is_refused_before_any_write(patient, product, qty):
    with pytest.raises(InvalidQuantity):
        create(patient, product, qty)

    product.refresh_from_db()
    assert product.stock_grams == Decimal("100.00")
    assert Order.objects.count() == 0


def test_status_changes_never_touch_stock(patient, product):
    order = create(patient, product, 5)

    OrderService.approve_order(order_id=order.id)
    OrderService.dispense_order(order_id=order.id)

    order.refresh_from_db()
    product.refresh_from_db()
    assert order.status == OrderStatus.DISPENSED
    assert order.status_changed_at is not None
    assert product.stock_grams == Decimal("95.00")


def test_reject_is_terminal_and_keeps_stock(patient, product):
    order = create(patient, product, 5)
    OrderService.reject_order(order_id=order.id)

    with pytest.raises(InvalidTransition):
        OrderService.dispense_order(order_id=order.id)

    order.refresh_from_db()
    product.refresh_from_db()
    assert order.status == OrderStatus.REJECTED
    assert product.stock_grams == Decimal("95.00")


def test_backward_transition_refused(patient, product):
    order = create(patient, product, 5)
    OrderService.dispense_order(order_id=order.id)

    with pytest.raises(InvalidTransition):
        OrderService.update_order_status(order_id=order.id, status="pending")


def test_same_status_is_noop(patient, product):
    order = create(patient, product, 5)

    OrderService.update_order_status(order_id=order.id, status="pending")

    order.refresh_from_db()
    assert order.status == OrderStatus.PENDING
    assert order.status_changed_at is None
    assert not AuditEvent.objects.filter(event_code="order.status_changed").exists()


def test_unknown_order_leaves_others_unchanged(patient, product):
    a = create(patient, product, 5)
    b = create(patient, product, 5)
    OrderService.approve_order(order_id=b.id)

    with pytest.raises(OrderNotFound):
        OrderService.update_order_status(order_id="missing", status="approved")

    statuses = dict(Order.objects.values_list("id", "status"))
    assert statuses == {a.id: "pending", b.id: "approved"}


def test_status_change_is_audited(patient, product, admin_user):
    from dm_core.iam.session import session_from_user

    order = create(patient, product, 5)
    OrderService.update_order_status(order_id=order.id, status="approved", actor=session_from_user(admin_user))

    ev = AuditEvent.objects.get(event_code="order.status_changed", entity_id=order.id)
    assert ev.metadata == {"from": "pending", "to": "approved"}
    assert ev.actor_user_id == admin_user.id


def test_low_stock_warning_after_commit(patient, product, settings, caplog, django_capture_on_commit_callbacks):
    settings.DM_LOW_STOCK_GRAMS = "10"
    product.stock_grams = Decimal("12")
    product.save()

    with caplog.at_level(logging.WARNING, logger="dm_core.products.subscribers"):
        with django_capture_on_commit_callbacks(execute=True):
            create(patient, product, 3)

    assert any("Low stock product_id=prod1" in r.getMessage() for r in caplog.records)


def test_database_refuses_non_positive_quantity(patient, product):
    with pytest.raises(IntegrityError), transaction.atomic():
        Order.objects.create(patient=patient, product=product, quantity_grams=Decimal("0.00"), created_at=NOW)
