from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from mc_core.applications.api.serializers import (
    ApplicationListQuerySerializer,
    PartnerApplicationCreateSerializer,
    PartnerApplicationSerializer,
    ProviderApplicationCreateSerializer,
    ProviderApplicationSerializer,
    RejectApplicationSerializer,
    serialize_application,
)
from mc_core.applications.models import ApplicationType
from mc_core.applications.selectors import partner_applications_qs, provider_applications_qs
from mc_core.applications.services import ApplicationService
from mc_core.common.permissions import AdminOnlyPermission


class ProviderApplyView(APIView):
    permission_classes = [AllowAny]
    authentication_classes: list = []

    @extend_schema(request=ProviderApplicationCreateSerializer, responses={201: ProviderApplicationSerializer},
                   tags=["Applications"])
    def post(self, request):
        ser = ProviderApplicationCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        app = ApplicationService.submit_provider_application(**ser.validated_data)
        return Response(ProviderApplicationSerializer(app).data, status=status.HTTP_201_CREATED)


class PartnerApplyView(APIView):
    permission_classes = [AllowAny]
    authentication_classes: list = []

    @extend_schema(request=PartnerApplicationCreateSerializer, responses={201: PartnerApplicationSerializer},
                   tags=["Applications"])
    def post(self, request):
        ser = PartnerApplicationCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        app = ApplicationService.submit_partner_application(**ser.validated_data)
        return Response(PartnerApplicationSerializer(app).data, status=status.HTTP_201_CREATED)


class AdminApplicationListView(APIView):
    permission_classes = [AdminOnlyPermission]

    @extend_schema(
        tags=["Applications"],
        parameters=[
            OpenApiParameter(name="status", location=OpenApiParameter.QUERY, required=False, type=str),
            OpenApiParameter(name="type", location=OpenApiParameter.QUERY, required=False, type=str),
        ],
    )
    def get(self, request):
        q = ApplicationListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        app_status = q.validated_data.get("status")
        app_type = q.validated_data.get("type")

        out = {}
        if app_type in (None, ApplicationType.PROVIDER):
            out["provider_applications"] = ProviderApplicationSerializer(
                provider_applications_qs(status=app_status), many=True
            ).data
        if app_type in (None, ApplicationType.PARTNER):
            out["partner_applications"] = PartnerApplicationSerializer(
                partner_applications_qs(status=app_status), many=True
            ).data
        return Response(out, status=status.HTTP_200_OK)


class ApplicationApproveView(APIView):
    permission_classes = [AdminOnlyPermission]

    @extend_schema(request=None, tags=["Applications"])
    def post(self, request, application_type=None, application_id=None):
        app = ApplicationService.approve_application(
            application_type=application_type,
            application_id=application_id,
            admin_id=request.user.id,
        )
        return Response(serialize_application(app), status=status.HTTP_200_OK)


class ApplicationRejectView(APIView):
    permission_classes = [AdminOnlyPermission]

    @extend_schema(request=RejectApplicationSerializer, tags=["Applications"])
    def post(self, request, application_type=None, application_id=None):
        ser = RejectApplicationSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        app = ApplicationService.reject_application(
            application_type=application_type,
            application_id=application_id,
            admin_id=request.user.id,
            reason=ser.validated_data["reason"],
        )
        return Response(serialize_application(app), status=status.HTTP_200_OK)
