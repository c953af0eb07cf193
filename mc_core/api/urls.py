# mc_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from mc_core.applications.api.views import (
    AdminApplicationListView,
    ApplicationApproveView,
    ApplicationRejectView,
    PartnerApplyView,
    ProviderApplyView,
)
from mc_core.consultations.api.views import ConsultationViewSet
from mc_core.diagnostics.api.views import DiagnosticOrderViewSet
from mc_core.iam.api.auth import LoginView, LogoutView, RefreshView, SignupView
from mc_core.iam.api.me import MeView, UserRoleView
from mc_core.notifications.api.views import NotificationViewSet
from mc_core.prescriptions.api.views import PrescriptionViewSet
from mc_core.referrals.api.views import ReferralViewSet

router = DefaultRouter()

# Care-request lifecycles
router.register(r"consultations", ConsultationViewSet, basename="consultations")
router.register(r"referrals", ReferralViewSet, basename="referrals")
router.register(r"prescriptions", PrescriptionViewSet, basename="prescriptions")
router.register(r"diagnostic-orders", DiagnosticOrderViewSet, basename="diagnostic-orders")

router.register(r"notifications", NotificationViewSet, basename="notifications")

urlpatterns = [
    # Auth + /me
    path("auth/signup/", SignupView.as_view(), name="signup"),
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("me/", MeView.as_view(), name="me"),

    # Provider / partner intake
    path("apply/provider/", ProviderApplyView.as_view(), name="apply-provider"),
    path("apply/partner/", PartnerApplyView.as_view(), name="apply-partner"),

    # Admin
    path("admin/applications/", AdminApplicationListView.as_view(), name="admin-applications"),
    path(
        "admin/applications/<str:application_type>/<uuid:application_id>/approve/",
        ApplicationApproveView.as_view(),
        name="admin-application-approve",
    ),
    path(
        "admin/applications/<str:application_type>/<uuid:application_id>/reject/",
        ApplicationRejectView.as_view(),
        name="admin-application-reject",
    ),
    path("admin/users/<uuid:user_id>/role/", UserRoleView.as_view(), name="admin-user-role"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
