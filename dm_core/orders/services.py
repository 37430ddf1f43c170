# dm_core/orders/services.py
from __future__ import annotations

import logging
from datetime import datetime

from django.db import transaction
from django.utils import timezone

from dm_core.audit.services import AuditService
from dm_core.common.events import publish_on_commit
from dm_core.iam.session import SYSTEM_SESSION, SessionContext
from dm_core.orders.exceptions import OrderError, OrderNotFound
from dm_core.orders.lifecycle import parse_status, validate_transition
from dm_core.orders.models import Order, OrderStatus
from dm_core.orders.validation import month_bounds, validate_order
from dm_core.patients.models import Patient
from dm_core.products.models import Product

logger = logging.getLogger(__name__)


class OrderService:
    """
    Write-model operations for Orders.
    - create_order validates against a locked snapshot, then inserts the order
      and decrements stock in one transaction
    - update_order_status moves status only; stock and the monthly totals
      are never touched after creation
    """

    @staticmethod
    @transaction.atomic
    def create_order(
        *,
        patient_id: str,
        product_id: str,
        quantity_grams,
        notes: str = "",
        actor: SessionContext = SYSTEM_SESSION,
        now: datetime | None = None,
    ) -> Order:
        now = now or timezone.now()

        # Row locks serialize concurrent orders for the same product/patient,
        # so two requests cannot both pass validation against the same stock.
        products = list(Product.objects.select_for_update().filter(id=product_id))
        patients = list(Patient.objects.select_for_update().filter(id=patient_id))

        start, end = month_bounds(now)
        month_orders = list(
            Order.objects.filter(patient_id=patient_id, created_at__gte=start, created_at__lt=end)
        )

        try:
            check = validate_order(
                patient_id=patient_id,
                product_id=product_id,
                quantity_grams=quantity_grams,
                products=products,
                patients=patients,
                orders=month_orders,
                now=now,
            )
        except OrderError as e:
            logger.warning(
                "Order rejected code=%s patient_id=%s product_id=%s qty=%s",
                e.code,
                patient_id,
                product_id,
                quantity_grams,
            )
            raise

        product = check.product
        order = Order.objects.create(
            patient=check.patient,
            product=product,
            quantity_grams=check.quantity_grams,
            status=OrderStatus.PENDING,
            notes=(notes or "").strip(),
            created_at=now,
            position=Order.next_position(),
        )

        product.stock_grams = product.stock_grams - check.quantity_grams
        product.save(update_fields=["stock_grams", "updated_at"])

        AuditService.log(
            event_code="order.created",
            entity_type="Order",
            entity_id=order.id,
            actor_user_id=actor.user_id,
            metadata={
                "patient_id": str(patient_id),
                "product_id": str(product_id),
                "quantity_grams": str(check.quantity_grams),
                "month": check.month,
            },
        )
        publish_on_commit(
            "order.created",
            {
                "order_id": order.id,
                "patient_id": str(patient_id),
                "product_id": str(product_id),
                "quantity_grams": str(check.quantity_grams),
                "stock_grams": str(product.stock_grams),
            },
        )
        logger.info(
            "Order created id=%s patient_id=%s product_id=%s qty=%s stock_left=%s",
            order.id,
            patient_id,
            product_id,
            check.quantity_grams,
            product.stock_grams,
        )
        return order

    @staticmethod
    @transaction.atomic
    def update_order_status(
        *,
        order_id: str,
        status: str,
        actor: SessionContext = SYSTEM_SESSION,
    ) -> Order:
        """
        Moves one order to `status`. Setting the current status again is a no-op.
        """
        target = parse_status(status)

        order = Order.objects.select_for_update().filter(id=order_id).first()
        if order is None:
            raise OrderNotFound(order_id=order_id)

        if order.status == target:
            return order

        from_status = str(order.status)
        validate_transition(order=order, target_status=target)

        order.status = target
        order.status_changed_at = timezone.now()
        order.save(update_fields=["status", "status_changed_at", "updated_at"])

        AuditService.log(
            event_code="order.status_changed",
            entity_type="Order",
            entity_id=order.id,
            actor_user_id=actor.user_id,
            metadata={"from": from_status, "to": target.value},
        )
        publish_on_commit(
            "order.status_changed",
            {"order_id": order.id, "from": from_status, "to": target.value},
        )
        logger.info("Order %s status %s -> %s by user_id=%s", order.id, from_status, target.value, actor.user_id)
        return order

    @staticmethod
    def approve_order(*, order_id: str, actor: SessionContext = SYSTEM_SESSION) -> Order:
        return OrderService.update_order_status(order_id=order_id, status=OrderStatus.APPROVED, actor=actor)

    @staticmethod
    def dispense_order(*, order_id: str, actor: SessionContext = SYSTEM_SESSION) -> Order:
        return OrderService.update_order_status(order_id=order_id, status=OrderStatus.DISPENSED, actor=actor)

    @staticmethod
    def reject_order(*, order_id: str, actor: SessionContext = SYSTEM_SESSION) -> Order:
        return OrderService.update_order_status(order_id=order_id, status=OrderStatus.REJECTED, actor=actor)
