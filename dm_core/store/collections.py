# dm_core/store/collections.py
"""
Whole-collection access to the three persisted collections.

Records use the browser-store shapes (camelCase keys, plain JSON numbers):

    products  {id, name, thcPercent, cbdPercent, stockGrams, pricePerGram}
    patients  {id, name, medicalId, prescriptionLimitGrams}
    orders    {id, patientId, productId, quantityGrams, status, notes?, createdAt}

read_collection always returns a fresh list; callers may mutate it freely.
write_collection replaces the stored collection with exactly the given list,
bypassing the order rules (used by seeding and import, not by the API).
"""
from __future__ import annotations

import logging
from datetime import datetime, time, timezone as dt_timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from django.db import transaction
from django.db.models import ProtectedError
from django.utils import timezone
from django.utils.dateparse import parse_date

from dm_core.orders.models import Order, OrderStatus
from dm_core.orders.validation import utc_datetime
from dm_core.patients.models import Patient
from dm_core.products.models import Product

logger = logging.getLogger(__name__)

PRODUCTS = "products"
PATIENTS = "patients"
ORDERS = "orders"

# write order matters: orders reference products and patients
COLLECTIONS = (PRODUCTS, PATIENTS, ORDERS)


class StoreError(Exception):
    pass


class UnknownCollection(StoreError):
    def __init__(self, name: str):
        super().__init__(f"Unknown collection '{name}'. Expected one of: {', '.join(COLLECTIONS)}.")
        self.name = name


# -------------------------------------------------------------------
# value conversion
# -------------------------------------------------------------------

def _num(value: Decimal):
    """Decimal -> JSON number (int when whole)."""
    value = Decimal(value)
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _dec(record: dict, key: str, *, required: bool = True, default=None) -> Decimal:
    raw = record.get(key, default)
    if raw is None:
        if required:
            raise StoreError(f"Missing '{key}' in record {record.get('id')!r}.")
        return None
    try:
        return Decimal(str(raw)).quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError):
        raise StoreError(f"Invalid number for '{key}' in record {record.get('id')!r}: {raw!r}.")


def _str(record: dict, key: str) -> str:
    raw = record.get(key)
    if raw is None or str(raw).strip() == "":
        raise StoreError(f"Missing '{key}' in record {record.get('id')!r}.")
    return str(raw)


def _timestamp(raw) -> datetime:
    if raw in (None, ""):
        return timezone.now()
    dt = utc_datetime(raw)
    if dt is not None:
        return dt
    day = parse_date(str(raw))
    if day is None:
        raise StoreError(f"Invalid createdAt: {raw!r}.")
    return datetime.combine(day, time.min, tzinfo=dt_timezone.utc)


def _iso(dt: datetime) -> str:
    return utc_datetime(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# -------------------------------------------------------------------
# model <-> record
# -------------------------------------------------------------------

def product_record(p: Product) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "thcPercent": _num(p.thc_percent),
        "cbdPercent": _num(p.cbd_percent),
        "stockGrams": _num(p.stock_grams),
        "pricePerGram": _num(p.price_per_gram),
    }


def patient_record(p: Patient) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "medicalId": p.medical_id,
        "prescriptionLimitGrams": _num(p.prescription_limit_grams),
    }


def order_record(o: Order) -> dict:
    rec = {
        "id": o.id,
        "patientId": o.patient_id,
        "productId": o.product_id,
        "quantityGrams": _num(o.quantity_grams),
        "status": str(o.status),
    }
    if o.notes:
        rec["notes"] = o.notes
    rec["createdAt"] = _iso(o.created_at)
    return rec


def _product_fields(rec: dict) -> dict:
    return {
        "name": _str(rec, "name"),
        "thc_percent": _dec(rec, "thcPercent", default=0),
        "cbd_percent": _dec(rec, "cbdPercent", default=0),
        "stock_grams": _dec(rec, "stockGrams"),
        "price_per_gram": _dec(rec, "pricePerGram"),
    }


def _patient_fields(rec: dict) -> dict:
    return {
        "name": _str(rec, "name"),
        "medical_id": _str(rec, "medicalId"),
        "prescription_limit_grams": _dec(rec, "prescriptionLimitGrams"),
    }


def _order_fields(rec: dict) -> dict:
    status = rec.get("status") or OrderStatus.PENDING
    if status not in OrderStatus.values:
        raise StoreError(f"Invalid status {status!r} in order {rec.get('id')!r}.")

    patient_id = _str(rec, "patientId")
    product_id = _str(rec, "productId")
    if not Patient.objects.filter(id=patient_id).exists():
        raise StoreError(f"Order {rec.get('id')!r} references unknown patient {patient_id!r}.")
    if not Product.objects.filter(id=product_id).exists():
        raise StoreError(f"Order {rec.get('id')!r} references unknown product {product_id!r}.")

    return {
        "patient_id": patient_id,
        "product_id": product_id,
        "quantity_grams": _dec(rec, "quantityGrams"),
        "status": status,
        "notes": rec.get("notes") or "",
        "created_at": _timestamp(rec.get("createdAt")),
    }


_REGISTRY: dict[str, tuple[Any, Callable[[Any], dict], Callable[[dict], dict]]] = {
    PRODUCTS: (Product, product_record, _product_fields),
    PATIENTS: (Patient, patient_record, _patient_fields),
    ORDERS: (Order, order_record, _order_fields),
}


def _entry(name: str):
    try:
        return _REGISTRY[name]
    except KeyError:
        raise UnknownCollection(name)


# -------------------------------------------------------------------
# public operations
# -------------------------------------------------------------------

def read_collection(name: str) -> list[dict]:
    """
    Full collection in insertion order.
    """
    model, to_record, _ = _entry(name)
    return [to_record(obj) for obj in model.objects.order_by("position", "pk")]


@transaction.atomic
def write_collection(name: str, records: list[dict]) -> int:
    """
    Replace collection `name` with `records`: listed ids are created or
    overwritten, everything else in the collection is deleted. Records without
    an id get a fresh one. Returns the number of records written.
    """
    model, _, to_fields = _entry(name)

    keep: list[str] = []
    for position, rec in enumerate(records):
        fields = to_fields(rec)
        fields["position"] = position

        record_id = rec.get("id")
        if record_id:
            obj, _created = model.objects.update_or_create(id=str(record_id), defaults=fields)
        else:
            obj = model.objects.create(**fields)
        keep.append(obj.id)

    try:
        deleted, _ = model.objects.exclude(id__in=keep).delete()
    except ProtectedError:
        raise StoreError(f"Cannot drop {name} that existing orders still reference.")

    logger.info("Store collection %s written count=%s deleted=%s", name, len(keep), deleted)
    return len(keep)


def seed_records(now: datetime | None = None) -> dict[str, list[dict]]:
    """
    Sample data for a fresh store.
    """
    now = now or timezone.now()
    return {
        PRODUCTS: [
            {
                "id": "prod1",
                "name": "Blue Dream",
                "thcPercent": 20,
                "cbdPercent": 2,
                "stockGrams": 100,
                "pricePerGram": 10,
            },
            {
                "id": "prod2",
                "name": "OG Kush",
                "thcPercent": 25,
                "cbdPercent": 1,
                "stockGrams": 50,
                "pricePerGram": 12,
            },
        ],
        PATIENTS: [
            {"id": "patient1", "name": "John Doe", "medicalId": "MED123", "prescriptionLimitGrams": 30},
            {"id": "patient2", "name": "Jane Smith", "medicalId": "MED456", "prescriptionLimitGrams": 50},
        ],
        ORDERS: [
            {
                "id": "order1",
                "patientId": "patient1",
                "productId": "prod1",
                "quantityGrams": 5,
                "status": OrderStatus.PENDING.value,
                "createdAt": _iso(now),
                "notes": "First order",
            },
        ],
    }


@transaction.atomic
def ensure_seeded(now: datetime | None = None) -> list[str]:
    """
    Seed each empty collection with the sample data. Collections that already
    hold records are left alone. Returns the names of the seeded collections.
    """
    seeded = []
    data = seed_records(now)
    for name in COLLECTIONS:
        model, _, _ = _entry(name)
        if model.objects.exists():
            continue
        # sample orders point at sample products/patients
        if name == ORDERS and not _seed_targets_exist(data[ORDERS]):
            continue
        write_collection(name, data[name])
        seeded.append(name)

    if seeded:
        logger.info("Store seeded collections=%s", ",".join(seeded))
    return seeded


def _seed_targets_exist(orders: list[dict]) -> bool:
    for rec in orders:
        if not Product.objects.filter(id=rec["productId"]).exists():
            return False
        if not Patient.objects.filter(id=rec["patientId"]).exists():
            return False
    return True
