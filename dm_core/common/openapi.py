# dm_core/common/openapi.py
from __future__ import annotations

from drf_spectacular.openapi import AutoSchema
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter


class DMAutoSchema(AutoSchema):
    """
    Global OpenAPI tweaks:

    - Documents the optional Idempotency-Key header on the actions that honor
      it, declared per view as `idempotent_actions`
    """

    IDEMPOTENCY_HEADER = OpenApiParameter(
        name="Idempotency-Key",
        type=OpenApiTypes.STR,
        location=OpenApiParameter.HEADER,
        required=False,
        description=(
            "Optional idempotency key for safely retrying the request. "
            "A repeated key returns the stored response instead of re-running the write."
        ),
    )

    def _is_idempotent_action(self) -> bool:
        actions = getattr(self.view, "idempotent_actions", ()) or ()
        return getattr(self.view, "action", None) in actions

    def get_override_parameters(self):
        params = list(super().get_override_parameters() or [])

        if self.method.upper() != "POST" or not self._is_idempotent_action():
            return params

        if not any(p.name.lower() == "idempotency-key" for p in params):
            params.append(self.IDEMPOTENCY_HEADER)
        return params
