# mc_core/conftest.py
import itertools

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from mc_core.applications.models import (
    ApplicationStatus,
    PartnerApplication,
    ProviderApplication,
)
from mc_core.iam.models import UserRole

_seq = itertools.count(1)


@pytest.fixture
def make_user(db):
    """
    Plain account with an active role. Providers created this way are NOT eligible for
    fan-out; use make_provider for that.
    """
    User = get_user_model()

    def _make(*, role=UserRole.PATIENT, name=None, email=None, email_verified=True, **extra):
        n = next(_seq)
        return User.objects.create_user(
            email=email or f"user{n}@example.com",
            password="Pass@12345",
            name=name or f"User {n}",
            role=role,
            email_verified=email_verified,
            **extra,
        )

    return _make


@pytest.fixture
def make_provider(make_user):
    """
    Approved doctor: role set, email verified, approved ProviderApplication.
    """

    def _make(*, provider_type=UserRole.GP, specialization="", **kwargs):
        user = make_user(role=provider_type, **kwargs)
        ProviderApplication.objects.create(
            user=user,
            provider_type=provider_type,
            license_number=f"LIC-{user.id.hex[:8]}",
            specialization=specialization,
            status=ApplicationStatus.APPROVED,
        )
        return user

    return _make


@pytest.fixture
def make_partner(make_user):
    def _make(*, partner_type=UserRole.PHARMACY, business_name=None, **kwargs):
        user = make_user(role=partner_type, **kwargs)
        PartnerApplication.objects.create(
            user=user,
            partner_type=partner_type,
            business_name=business_name or user.name,
            license_number=f"LIC-{user.id.hex[:8]}",
            status=ApplicationStatus.APPROVED,
        )
        return user

    return _make


@pytest.fixture
def patient(make_user):
    return make_user(role=UserRole.PATIENT, name="Pat Patient")


@pytest.fixture
def admin_user(db):
    User = get_user_model()
    return User.objects.create_superuser(email="admin@example.com", password="Admin@12345", name="Admin")


@pytest.fixture
def gp_a(make_provider):
    return make_provider(provider_type=UserRole.GP, name="Alice GP")


@pytest.fixture
def gp_b(make_provider):
    return make_provider(provider_type=UserRole.GP, name="Bob GP")


@pytest.fixture
def cardiologist(make_provider):
    return make_provider(provider_type=UserRole.SPECIALIST, specialization="Cardiology", name="Carla Cardio")


@pytest.fixture
def cardiologist_b(make_provider):
    return make_provider(
        provider_type=UserRole.SPECIALIST,
        specialization="Interventional Cardiology",
        name="Dan Heart",
    )


@pytest.fixture
def pharmacy(make_partner):
    return make_partner(partner_type=UserRole.PHARMACY, name="Corner Pharmacy")


@pytest.fixture
def pharmacy_b(make_partner):
    return make_partner(partner_type=UserRole.PHARMACY, name="Other Pharmacy")


@pytest.fixture
def center_a(make_partner):
    return make_partner(partner_type=UserRole.DIAGNOSTIC_CENTER, name="Center A")


@pytest.fixture
def center_b(make_partner):
    return make_partner(partner_type=UserRole.DIAGNOSTIC_CENTER, name="Center B")


@pytest.fixture
def client_for():
    """
    APIClient authenticated as the given user (force_authenticate bypasses JWT).
    """

    def _client(user):
        c = APIClient()
        c.force_authenticate(user=user)
        return c

    return _client


@pytest.fixture
def accepted_consultation(patient, gp_a):
    from mc_core.consultations.services import ConsultationService

    c = ConsultationService.create_consultation(
        patient_id=patient.id,
        provider_type=UserRole.GP,
        chief_complaint="Persistent cough",
    )
    return ConsultationService.act_on_consultation(consultation_id=c.id, provider_id=gp_a.id, action="accept")


@pytest.fixture
def in_progress_consultation(accepted_consultation, gp_a):
    from mc_core.consultations.services import ConsultationService

    return ConsultationService.start_consultation(consultation_id=accepted_consultation.id, provider_id=gp_a.id)
