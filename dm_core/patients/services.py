# dm_core/patients/services.py
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from dm_core.audit.services import AuditService
from dm_core.iam.session import SYSTEM_SESSION, SessionContext
from dm_core.patients.models import Patient

logger = logging.getLogger(__name__)


class PatientService:
    """
    Write-model operations for Patients.

    Upsert contract:
    - patient_id matching an existing record => full overwrite of that record
    - patient_id absent or unknown => new record with a fresh id, appended
    """

    @staticmethod
    def _clean(*, name, medical_id, prescription_limit_grams) -> tuple[str, str, Decimal]:
        errors: dict[str, str] = {}

        name = (name or "").strip()
        medical_id = (medical_id or "").strip()

        if not name:
            errors["name"] = "Name is required."
        if not medical_id:
            errors["medical_id"] = "Medical ID is required."

        limit = None
        try:
            limit = Decimal(str(prescription_limit_grams)).quantize(Decimal("0.01"))
        except (InvalidOperation, TypeError, ValueError):
            errors["prescription_limit_grams"] = "Prescription limit must be a number."
        else:
            if limit <= Decimal("0"):
                errors["prescription_limit_grams"] = "Prescription limit must be greater than 0."

        if errors:
            raise ValidationError(errors)
        return name, medical_id, limit

    @staticmethod
    @transaction.atomic
    def upsert_patient(
        *,
        name: str,
        medical_id: str,
        prescription_limit_grams,
        patient_id: str | None = None,
        actor: SessionContext = SYSTEM_SESSION,
    ) -> tuple[Patient, bool]:
        """
        Returns (patient, created).
        """
        name, medical_id, limit = PatientService._clean(
            name=name,
            medical_id=medical_id,
            prescription_limit_grams=prescription_limit_grams,
        )

        existing = None
        if patient_id:
            existing = Patient.objects.select_for_update().filter(id=patient_id).first()

        clash = Patient.objects.filter(medical_id=medical_id)
        if existing is not None:
            clash = clash.exclude(id=existing.id)
        if clash.exists():
            raise ValidationError({"medical_id": "Medical ID already exists."})

        try:
            if existing is not None:
                existing.name = name
                existing.medical_id = medical_id
                existing.prescription_limit_grams = limit
                existing.save(update_fields=["name", "medical_id", "prescription_limit_grams", "updated_at"])
                patient, created = existing, False
            else:
                patient = Patient.objects.create(
                    name=name,
                    medical_id=medical_id,
                    prescription_limit_grams=limit,
                    position=Patient.next_position(),
                )
                created = True
        except IntegrityError:
            # concurrent insert of the same medical id
            raise ValidationError({"medical_id": "Medical ID already exists."})

        AuditService.log(
            event_code="patient.created" if created else "patient.updated",
            entity_type="Patient",
            entity_id=patient.id,
            actor_user_id=actor.user_id,
            metadata={"prescription_limit_grams": str(limit)},
        )
        logger.info(
            "Patient %s id=%s by user_id=%s",
            "created" if created else "replaced",
            patient.id,
            actor.user_id,
        )
        return patient, created
