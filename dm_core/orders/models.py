# dm_core/orders/models.py
from django.db import models
from django.db.models import Q
from django.utils import timezone

from dm_core.common.models import RecordModel
from dm_core.patients.models import Patient
from dm_core.products.models import Product


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    DISPENSED = "dispensed", "Dispensed"
    REJECTED = "rejected", "Rejected"


class Order(RecordModel):
    """
    A request to dispense a quantity of one product to one patient.

    patient, product, quantity_grams and created_at are fixed at creation;
    afterwards only status (and status_changed_at) move, through
    OrderService.update_order_status.
    """
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="orders")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="orders")
    quantity_grams = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(
        max_length=16,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
    )
    notes = models.TextField(blank=True, default="")

    # Explicit default (not auto_now_add) so imported history keeps its timestamps.
    created_at = models.DateTimeField(default=timezone.now, db_index=True, editable=False)
    status_changed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders_order"
        ordering = ["created_at", "position"]
        constraints = [
            models.CheckConstraint(condition=Q(quantity_grams__gt=0), name="ck_order_quantity_positive"),
        ]
        indexes = [
            models.Index(fields=["patient", "created_at"], name="ix_order_patient_created"),
            models.Index(fields=["status", "created_at"], name="ix_order_status_created"),
        ]

    def __str__(self) -> str:
        return f"Order {self.id} ({self.quantity_grams} g, {self.status})"
