# dm_core/patients/admin.py
from django.contrib import admin

from dm_core.patients.models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "medical_id",
        "prescription_limit_grams",
        "id",
        "updated_at",
    )
    search_fields = ("name", "medical_id", "id")
    readonly_fields = ("updated_at",)
    ordering = ("position", "name")
