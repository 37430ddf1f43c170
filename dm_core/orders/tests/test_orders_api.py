# dm_core/orders/tests/test_orders_api.py
from decimal import Decimal

import pytest

from dm_core.common.idempotency import IN_FLIGHT
from dm_core.common.models import IdempotencyRecord
from dm_core.orders.models import Order
from dm_core.orders.services import OrderService

pytestmark = pytest.mark.django_db

URL = "/api/v1/orders/"


def _payload(patient, product, qty="5", **extra):
    return {"patient_id": patient.id, "product_id": product.id, "quantity_grams": qty, **extra}


def test_create_order(staff_client, patient, product):
    r = staff_client.post(URL, _payload(patient, product, notes="First order"), format="json")
    assert r.status_code == 201, r.data
    assert r.data["status"] == "pending"
    assert r.data["patient_name"] == "John Doe"
    assert r.data["product_name"] == "Blue Dream"
    assert Decimal(r.data["quantity_grams"]) == Decimal("5")

    product.refresh_from_db()
    assert product.stock_grams == Decimal("95.00")


def test_create_order_requires_auth(anon_client, patient, product):
    r = anon_client.post(URL, _payload(patient, product), format="json")
    assert r.status_code in (401, 403)


def test_user_without_role_is_denied(no_role_user, patient, product):
    from rest_framework.test import APIClient

    c = APIClient()
    c.force_authenticate(user=no_role_user)
    r = c.get(URL)
    assert r.status_code == 403
    assert r.data["error"]["code"] == "permission_denied"


def test_limit_exceeded_returns_409_envelope(staff_client, patient, product):
    r = staff_client.post(URL, _payload(patient, product, qty="31"), format="json")
    assert r.status_code == 409, r.data

    err = r.data["error"]
    assert err["code"] == "prescription_limit_exceeded"
    assert err["message"].startswith("Exceeds monthly prescription limit")
    assert err["details"]["limit"] == "30.00"
    assert err["request_id"]
    assert Order.objects.count() == 0


def test_insufficient_stock_returns_409(staff_client, other_patient, other_product):
    r = staff_client.post(URL, _payload(other_patient, other_product, qty="50.01"), format="json")
    assert r.status_code == 409, r.data
    assert r.data["error"]["code"] == "insufficient_stock"


def test_unknown_product_returns_404(staff_client, patient):
    r = staff_client.post(URL, {"patient_id": patient.id, "product_id": "nope", "quantity_grams": "1"}, format="json")
    assert r.status_code == 404, r.data
    assert r.data["error"]["code"] == "product_not_found"


def test_non_positive_quantity_returns_400(staff_client, patient, product):
    r = staff_client.post(URL, _payload(patient, product, qty="0"), format="json")
    assert r.status_code == 400, r.data
    assert r.data["error"]["code"] == "invalid_quantity"


def test_missing_fields_return_validation_error(staff_client):
    r = staff_client.post(URL, {}, format="json")
    assert r.status_code == 400
    assert r.data["error"]["code"] == "validation_error"
    assert "patient_id" in r.data["error"]["details"]


def test_idempotent_double_post_creates_one_order(staff_client, patient, product):
    headers = {"HTTP_IDEMPOTENCY_KEY": "order-001"}

    r1 = staff_client.post(URL, _payload(patient, product), format="json", **headers)
    r2 = staff_client.post(URL, _payload(patient, product), format="json", **headers)

    assert r1.status_code == 201, r1.data
    assert r2.status_code == 201, r2.data
    assert r1.data["id"] == r2.data["id"]
    assert Order.objects.count() == 1

    product.refresh_from_db()
    assert product.stock_grams == Decimal("95.00")


def test_key_claimed_by_running_request_creates_no_second_order(staff_client, staff_user, patient, product):
    IdempotencyRecord.objects.create(
        user_id=staff_user.id,
        method="POST",
        path=URL,
        idempotency_key="order-002",
        status_code=IN_FLIGHT,
    )

    r = staff_client.post(URL, _payload(patient, product), format="json", HTTP_IDEMPOTENCY_KEY="order-002")

    assert r.status_code == 409, r.data
    assert r.data["error"]["code"] == "idempotency_key_in_use"
    assert Order.objects.count() == 0
    product.refresh_from_db()
    assert product.stock_grams == Decimal("100.00")


def test_refused_create_frees_its_key(staff_client, patient, product):
    headers = {"HTTP_IDEMPOTENCY_KEY": "order-003"}

    r1 = staff_client.post(URL, _payload(patient, product, qty="31"), format="json", **headers)
    assert r1.status_code == 409
    assert not IdempotencyRecord.objects.filter(idempotency_key="order-003").exists()

    r2 = staff_client.post(URL, _payload(patient, product, qty="3"), format="json", **headers)
    assert r2.status_code == 201, r2.data
    assert Order.objects.count() == 1
    assert IdempotencyRecord.objects.get(idempotency_key="order-003").status_code == 201


def test_sub_hundredth_quantity_is_refused(staff_client, patient, product):
    r = staff_client.post(URL, _payload(patient, product, qty="0.004"), format="json")
    assert r.status_code == 400, r.data
    assert Order.objects.count() == 0


def test_list_newest_first_and_filters(staff_client, patient, other_patient, product):
    first = OrderService.create_order(patient_id=patient.id, product_id=product.id, quantity_grams=1)
    second = OrderService.create_order(patient_id=other_patient.id, product_id=product.id, quantity_grams=2)
    OrderService.approve_order(order_id=second.id)

    r = staff_client.get(URL)
    assert r.status_code == 200
    ids = [o["id"] for o in r.data["results"]]
    assert ids == [second.id, first.id]

    r = staff_client.get(URL, {"status": "approved"})
    assert [o["id"] for o in r.data["results"]] == [second.id]

    r = staff_client.get(URL, {"patient_id": patient.id})
    assert [o["id"] for o in r.data["results"]] == [first.id]

    r = staff_client.get(URL, {"status": "shipped"})
    assert r.status_code == 400


def test_retrieve_unknown_order_404(staff_client):
    r = staff_client.get(f"{URL}missing/")
    assert r.status_code == 404
    assert r.data["error"]["code"] == "not_found"


def test_status_endpoint_moves_order(staff_client, patient, product):
    order = OrderService.create_order(patient_id=patient.id, product_id=product.id, quantity_grams=5)

    r = staff_client.post(f"{URL}{order.id}/status/", {"status": "approved"}, format="json")
    assert r.status_code == 200, r.data
    assert r.data["status"] == "approved"
    assert r.data["status_changed_at"]

    r = staff_client.post(f"{URL}{order.id}/dispense/", format="json")
    assert r.status_code == 200, r.data
    assert r.data["status"] == "dispensed"


def test_backward_transition_returns_409(staff_client, patient, product):
    order = OrderService.create_order(patient_id=patient.id, product_id=product.id, quantity_grams=5)
    staff_client.post(f"{URL}{order.id}/reject/", format="json")

    r = staff_client.post(f"{URL}{order.id}/status/", {"status": "pending"}, format="json")
    assert r.status_code == 409, r.data
    assert r.data["error"]["code"] == "invalid_transition"
    assert r.data["error"]["details"]["from_status"] == "rejected"


def test_status_update_unknown_order_404(staff_client):
    r = staff_client.post(f"{URL}missing/approve/", format="json")
    assert r.status_code == 404
    assert r.data["error"]["code"] == "order_not_found"


def test_status_update_rejects_unknown_value(staff_client, patient, product):
    order = OrderService.create_order(patient_id=patient.id, product_id=product.id, quantity_grams=5)
    r = staff_client.post(f"{URL}{order.id}/status/", {"status": "shipped"}, format="json")
    assert r.status_code == 400
    assert r.data["error"]["code"] == "validation_error"


def test_dashboard_summary(staff_client, patient, product, other_product):
    OrderService.create_order(patient_id=patient.id, product_id=product.id, quantity_grams=5)
    rejected = OrderService.create_order(patient_id=patient.id, product_id=other_product.id, quantity_grams=5)
    OrderService.reject_order(order_id=rejected.id)

    r = staff_client.get("/api/v1/dashboard/summary/")
    assert r.status_code == 200, r.data
    assert r.data["total_orders"] == 2
    assert Decimal(r.data["total_revenue"]) == Decimal("50")
    assert Decimal(r.data["total_grams"]) == Decimal("5")
    assert sum(r.data["orders_per_day"].values()) == 2
    assert [row["product_id"] for row in r.data["top_products"]] == ["prod1"]
    assert len(r.data["recent_orders"]) == 2
