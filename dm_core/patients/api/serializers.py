# dm_core/patients/api/serializers.py
from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from dm_core.patients.models import Patient


class PatientUpsertSerializer(serializers.Serializer):
    """
    Full-record payload. `id` is optional: when it matches an existing patient
    that record is overwritten, otherwise a new patient is created.
    """
    id = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)
    name = serializers.CharField(max_length=255)
    medical_id = serializers.CharField(max_length=64)
    prescription_limit_grams = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal("0.01"),
    )


class PatientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Patient
        fields = [
            "id",
            "name",
            "medical_id",
            "prescription_limit_grams",
            "updated_at",
        ]
        read_only_fields = fields
