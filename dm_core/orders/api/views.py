# dm_core/orders/api/views.py
from __future__ import annotations

from django.db import transaction
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError as DRFValidationError
from rest_framework.response import Response

from dm_core.common.api.exceptions import BusinessRuleError
from dm_core.common.api.pagination import paginate
from dm_core.common.idempotency import (
    IN_FLIGHT,
    claim_key,
    get_key,
    load_response,
    release_key,
    save_response,
)
from dm_core.iam.permissions import OrderPermission
from dm_core.iam.session import session_from_request
from dm_core.orders.api.serializers import (
    DashboardSummarySerializer,
    OrderCreateSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
)
from dm_core.orders.exceptions import (
    InvalidQuantity,
    OrderError,
    OrderNotFound,
    PatientNotFound,
    ProductNotFound,
)
from dm_core.orders.models import Order, OrderStatus
from dm_core.orders.read_models import dashboard_summary
from dm_core.orders.selectors import OrderSelector
from dm_core.orders.services import OrderService

_NOT_FOUND = (OrderNotFound, PatientNotFound, ProductNotFound)


def _to_api_error(e: OrderError):
    """
    Domain error -> DRF exception (the global handler renders the envelope).
    """
    if isinstance(e, _NOT_FOUND):
        return BusinessRuleError(detail=e.message, code=e.code, status_code=404)
    if isinstance(e, InvalidQuantity):
        return BusinessRuleError(detail={"detail": e.message, **e.context}, code=e.code, status_code=400)
    return BusinessRuleError(detail={"detail": e.message, **e.context}, code=e.code)


class OrderViewSet(viewsets.ViewSet):
    """
    Thin API layer:
    - idempotency caching on create
    - serializers validation
    - delegates writes to OrderService, reads to OrderSelector
    """
    permission_classes = [OrderPermission]

    # drf-spectacular needs these on a plain ViewSet
    serializer_class = OrderSerializer
    queryset = Order.objects.none()

    # create honors Idempotency-Key (see common/idempotency.py)
    idempotent_actions = {"create"}

    def _get_or_404(self, pk):
        try:
            return OrderSelector.get_order(order_id=pk)
        except OrderSelector.NotFound:
            raise NotFound("Order not found.")

    def _transition(self, request, pk, target):
        try:
            OrderService.update_order_status(
                order_id=pk,
                status=target,
                actor=session_from_request(request),
            )
        except OrderError as e:
            raise _to_api_error(e)
        return Response(OrderSerializer(self._get_or_404(pk)).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Orders"],
        responses={200: OrderSerializer(many=True)},
        parameters=[
            OpenApiParameter(
                name="status",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                enum=OrderStatus.values,
            ),
            OpenApiParameter(name="patient_id", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="product_id", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
        operation_id="v1_orders_list",
    )
    def list(self, request):
        status_filter = request.query_params.get("status")
        if status_filter and status_filter not in OrderStatus.values:
            raise DRFValidationError({"status": f"Unknown status '{status_filter}'."})

        items = OrderSelector.list_orders(
            status=status_filter,
            patient_id=request.query_params.get("patient_id"),
            product_id=request.query_params.get("product_id"),
        )
        return paginate(request, items, OrderSerializer)

    @extend_schema(tags=["Orders"], responses={200: OrderSerializer}, operation_id="v1_orders_retrieve")
    def retrieve(self, request, pk=None):
        return Response(OrderSerializer(self._get_or_404(pk)).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Orders"],
        request=OrderCreateSerializer,
        responses={201: OrderSerializer},
        operation_id="v1_orders_create",
    )
    def create(self, request):
        idem = get_key(request)
        idem_scope = (request.user.id, request.method, request.path, idem)
        if idem:
            cached = load_response(*idem_scope)
            if cached is not None:
                cached_status, cached_data = cached
                return Response(cached_data, status=cached_status)

        ser = OrderCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        # the key is claimed in the same transaction as the stock decrement,
        # so a retry racing the first request can never place a second order
        with transaction.atomic():
            if idem:
                claimed = claim_key(*idem_scope)
                if claimed is not None:
                    claimed_status, claimed_data = claimed
                    if claimed_status == IN_FLIGHT:
                        raise BusinessRuleError(
                            detail="A request with this Idempotency-Key is still in progress.",
                            code="idempotency_key_in_use",
                        )
                    return Response(claimed_data, status=claimed_status)

            try:
                order = OrderService.create_order(
                    patient_id=data["patient_id"],
                    product_id=data["product_id"],
                    quantity_grams=data["quantity_grams"],
                    notes=data.get("notes") or "",
                    actor=session_from_request(request),
                )
            except OrderError as e:
                release_key(*idem_scope)
                raise _to_api_error(e)

            out = OrderSerializer(self._get_or_404(order.id)).data

            if idem:
                save_response(*idem_scope, out, status_code=status.HTTP_201_CREATED)

        return Response(out, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Orders"],
        request=OrderStatusUpdateSerializer,
        responses={200: OrderSerializer},
        operation_id="v1_orders_status_update",
    )
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        ser = OrderStatusUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return self._transition(request, pk, ser.validated_data["status"])

    @extend_schema(tags=["Orders"], request=None, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        return self._transition(request, pk, OrderStatus.APPROVED)

    @extend_schema(tags=["Orders"], request=None, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"])
    def dispense(self, request, pk=None):
        return self._transition(request, pk, OrderStatus.DISPENSED)

    @extend_schema(tags=["Orders"], request=None, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        return self._transition(request, pk, OrderStatus.REJECTED)


class DashboardViewSet(viewsets.ViewSet):
    permission_classes = [OrderPermission]

    serializer_class = DashboardSummarySerializer

    @extend_schema(tags=["Dashboard"], responses={200: DashboardSummarySerializer})
    @action(detail=False, methods=["get"])
    def summary(self, request):
        return Response(DashboardSummarySerializer(dashboard_summary()).data, status=status.HTTP_200_OK)
