# dm_core/patients/selectors.py
from __future__ import annotations

from django.db.models import Q

from dm_core.patients.models import Patient


class PatientSelector:
    class NotFound(Exception):
        pass

    @staticmethod
    def get_patient(*, patient_id: str) -> Patient:
        try:
            return Patient.objects.get(id=patient_id)
        except Patient.DoesNotExist:
            raise PatientSelector.NotFound()

    @staticmethod
    def list_patients(*, q: str | None = None) -> list[Patient]:
        """
        Snapshot of the patient collection in insertion order, optionally
        filtered by name / medical id.
        """
        qs = Patient.objects.all()

        qv = (q or "").strip()
        if qv:
            qs = qs.filter(Q(name__icontains=qv) | Q(medical_id__icontains=qv))

        return list(qs.order_by("position", "name"))
