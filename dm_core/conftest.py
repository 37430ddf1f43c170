# dm_core/conftest.py
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from dm_core.iam.session import Role
from dm_core.patients.models import Patient
from dm_core.products.models import Product

PASSWORD = "Pass@12345"


def _user_with_role(username, role):
    User = get_user_model()
    user = User.objects.create_user(username=username, password=PASSWORD, is_active=True)
    if role:
        group, _ = Group.objects.get_or_create(name=role)
        user.groups.add(group)
    return user


@pytest.fixture
def staff_user(db):
    return _user_with_role("staff", Role.STAFF.value)


@pytest.fixture
def admin_user(db):
    return _user_with_role("admin", Role.ADMIN.value)


@pytest.fixture
def no_role_user(db):
    return _user_with_role("norole", None)


@pytest.fixture
def staff_client(staff_user):
    c = APIClient()
    c.force_authenticate(user=staff_user)
    return c


@pytest.fixture
def admin_client(admin_user):
    c = APIClient()
    c.force_authenticate(user=admin_user)
    return c


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def product(db):
    return Product.objects.create(
        id="prod1",
        name="Blue Dream",
        thc_percent=Decimal("20"),
        cbd_percent=Decimal("2"),
        stock_grams=Decimal("100"),
        price_per_gram=Decimal("10"),
        position=0,
    )


@pytest.fixture
def other_product(db):
    return Product.objects.create(
        id="prod2",
        name="OG Kush",
        thc_percent=Decimal("25"),
        cbd_percent=Decimal("1"),
        stock_grams=Decimal("50"),
        price_per_gram=Decimal("12"),
        position=1,
    )


@pytest.fixture
def patient(db):
    return Patient.objects.create(
        id="patient1",
        name="John Doe",
        medical_id="MED123",
        prescription_limit_grams=Decimal("30"),
        position=0,
    )


@pytest.fixture
def other_patient(db):
    return Patient.objects.create(
        id="patient2",
        name="Jane Smith",
        medical_id="MED456",
        prescription_limit_grams=Decimal("50"),
        position=1,
    )
