# dm_core/patients/api/views.py
from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.exceptions import NotFound, ValidationError as DRFValidationError
from rest_framework.response import Response

from dm_core.common.api.pagination import paginate
from dm_core.iam.permissions import PatientPermission
from dm_core.iam.session import session_from_request
from dm_core.patients.api.serializers import PatientSerializer, PatientUpsertSerializer
from dm_core.patients.models import Patient
from dm_core.patients.selectors import PatientSelector
from dm_core.patients.services import PatientService


def _validation_payload(e: DjangoValidationError):
    if hasattr(e, "message_dict"):
        return e.message_dict
    return {"detail": " ".join(e.messages)}


class PatientViewSet(viewsets.ViewSet):
    permission_classes = [PatientPermission]

    serializer_class = PatientSerializer
    queryset = Patient.objects.none()

    @extend_schema(
        tags=["Patients"],
        responses={200: PatientSerializer(many=True)},
        parameters=[
            OpenApiParameter(
                name="q",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Search by name or medical id.",
            ),
        ],
    )
    def list(self, request):
        items = PatientSelector.list_patients(q=request.query_params.get("q"))
        return paginate(request, items, PatientSerializer)

    @extend_schema(tags=["Patients"], responses={200: PatientSerializer})
    def retrieve(self, request, pk=None):
        try:
            patient = PatientSelector.get_patient(patient_id=pk)
        except PatientSelector.NotFound:
            raise NotFound("Patient not found.")
        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Patients"],
        request=PatientUpsertSerializer,
        responses={200: PatientSerializer, 201: PatientSerializer},
    )
    def create(self, request):
        """
        Upsert: overwrite when `id` matches an existing patient (200), else create (201).
        """
        ser = PatientUpsertSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            patient, created = PatientService.upsert_patient(
                patient_id=data.get("id") or None,
                name=data["name"],
                medical_id=data["medical_id"],
                prescription_limit_grams=data["prescription_limit_grams"],
                actor=session_from_request(request),
            )
        except DjangoValidationError as e:
            raise DRFValidationError(_validation_payload(e))

        return Response(
            PatientSerializer(patient).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(tags=["Patients"], request=PatientUpsertSerializer, responses={200: PatientSerializer})
    def update(self, request, pk=None):
        """
        Full overwrite of an existing patient (PUT). Unknown id => 404.
        """
        try:
            PatientSelector.get_patient(patient_id=pk)
        except PatientSelector.NotFound:
            raise NotFound("Patient not found.")

        ser = PatientUpsertSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        body_id = data.get("id")
        if body_id and body_id != pk:
            raise DRFValidationError({"id": "Does not match the patient in the URL."})

        try:
            patient, _created = PatientService.upsert_patient(
                patient_id=pk,
                name=data["name"],
                medical_id=data["medical_id"],
                prescription_limit_grams=data["prescription_limit_grams"],
                actor=session_from_request(request),
            )
        except DjangoValidationError as e:
            raise DRFValidationError(_validation_payload(e))

        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)
