# dm_core/iam/api/me.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from dm_core.iam.api.schema_serializers import MeResponseSerializer
from dm_core.iam.session import session_from_request


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: MeResponseSerializer}, tags=["IAM"])
    def get(self, request):
        """
        Returns user info + the resolved session role.
        The UI uses `role` to decide which screens to show; the API enforces it
        independently through the permission classes.
        """
        session = session_from_request(request)
        return Response(
            {
                "user": {
                    "id": request.user.id,
                    "username": getattr(request.user, "username", None),
                    "email": getattr(request.user, "email", None),
                    "is_superuser": bool(getattr(request.user, "is_superuser", False)),
                },
                "role": session.role,
                "is_admin": session.is_admin,
            },
            status=status.HTTP_200_OK,
        )
