# dm_core/api/urls.py
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from dm_core.audit.api.views import AuditEventViewSet
from dm_core.iam.api.auth import LoginView, LogoutView, RefreshView
from dm_core.iam.api.me import MeView
from dm_core.orders.api.views import DashboardViewSet, OrderViewSet
from dm_core.patients.api.views import PatientViewSet
from dm_core.products.api.views import ProductViewSet

router = DefaultRouter()

router.register(r"products", ProductViewSet, basename="products")
router.register(r"patients", PatientViewSet, basename="patients")
router.register(r"orders", OrderViewSet, basename="orders")
router.register(r"dashboard", DashboardViewSet, basename="dashboard")
router.register(r"audit/events", AuditEventViewSet, basename="audit-events")

urlpatterns = [
    # Auth + /me
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("me/", MeView.as_view(), name="me"),

    path("", include(router.urls)),
]
