# dm_core/common/models.py
from __future__ import annotations

import uuid

from django.db import models


def new_record_id() -> str:
    """
    String identity for domain records.

    Seed data and browser-store dumps use readable ids ("prod1", "patient1"),
    so primary keys are strings; freshly created records get a UUID4.
    """
    return str(uuid.uuid4())


class TimeStampedModel(models.Model):
    """
    Standard timestamps for all entities.
    """
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class RecordModel(models.Model):
    """
    Base for the three store collections (products, patients, orders).
    """
    id = models.CharField(primary_key=True, max_length=64, default=new_record_id, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    # insertion order, so collections read back in the order they were written
    position = models.PositiveIntegerField(default=0, db_index=True)

    class Meta:
        abstract = True

    @classmethod
    def next_position(cls) -> int:
        last = cls.objects.aggregate(m=models.Max("position"))["m"]
        return 0 if last is None else last + 1


# -------------------------------------------------------------------
# Durable idempotency (production-safe)
# -------------------------------------------------------------------

class IdempotencyRecord(TimeStampedModel):
    """
    Stores idempotent responses durably.

    Keyed by:
      (user_id, method, path, idempotency_key)

    A client that lost the response of a create-order call can resend the
    same key and gets the stored result instead of a second stock decrement.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # request identity
    user_id = models.BigIntegerField(db_index=True)
    method = models.CharField(max_length=16, db_index=True)
    path = models.CharField(max_length=255, db_index=True)
    idempotency_key = models.CharField(max_length=255, db_index=True)

    # stored response
    status_code = models.PositiveIntegerField(default=200)
    response_data = models.JSONField(default=dict)

    class Meta:
        db_table = "common_idempotency_record"
        constraints = [
            models.UniqueConstraint(
                fields=["user_id", "method", "path", "idempotency_key"],
                name="uq_idempo_user_method_path_key",
            )
        ]

    def __str__(self) -> str:
        return f"{self.method} {self.path} {self.idempotency_key}"
