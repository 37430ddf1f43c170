# dm_core/patients/models.py
from django.db import models
from django.db.models import Q

from dm_core.common.models import RecordModel


class Patient(RecordModel):
    """
    Patient with a monthly prescription limit (grams per UTC calendar month).

    Written only through PatientService.upsert_patient (full overwrite).
    """
    name = models.CharField(max_length=255)
    medical_id = models.CharField(max_length=64)
    prescription_limit_grams = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        db_table = "patients_patient"
        ordering = ["position", "name"]
        constraints = [
            models.UniqueConstraint(fields=["medical_id"], name="uq_patient_medical_id"),
            models.CheckConstraint(
                condition=Q(prescription_limit_grams__gt=0),
                name="ck_patient_limit_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["name"], name="ix_patient_name"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.medical_id})"
