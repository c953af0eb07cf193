from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from mc_core.common.api.pagination import paginate
from mc_core.common.permissions import DiagnosticOrderPermission, acting_user_id
from mc_core.diagnostics.api.serializers import (
    DiagnosticOrderCreateSerializer,
    DiagnosticOrderSerializer,
    DiagnosticStatusUpdateSerializer,
    TestTypesSerializer,
)
from mc_core.diagnostics.catalogue import TEST_TYPES
from mc_core.diagnostics.models import DiagnosticOrder
from mc_core.diagnostics.selectors import get_order_for_user, visible_orders
from mc_core.diagnostics.services import DiagnosticOrderService


class DiagnosticOrderViewSet(viewsets.ViewSet):
    serializer_class = DiagnosticOrderSerializer
    queryset = DiagnosticOrder.objects.none()
    permission_classes = [DiagnosticOrderPermission]

    @extend_schema(responses={200: DiagnosticOrderSerializer(many=True)}, tags=["Diagnostics"])
    def list(self, request):
        qs = visible_orders(user=request.user)
        status_q = request.query_params.get("status")
        if status_q:
            qs = qs.filter(status=status_q)
        return paginate(request, qs, DiagnosticOrderSerializer)

    @extend_schema(responses={200: DiagnosticOrderSerializer}, tags=["Diagnostics"])
    def retrieve(self, request, pk=None):
        o = get_order_for_user(order_id=pk, user=request.user)
        return Response(DiagnosticOrderSerializer(o).data, status=status.HTTP_200_OK)

    @extend_schema(responses={200: TestTypesSerializer}, tags=["Diagnostics"])
    @action(detail=False, methods=["get"], url_path="test-types")
    def test_types(self, request):
        return Response({"test_types": list(TEST_TYPES)}, status=status.HTTP_200_OK)

    @extend_schema(request=DiagnosticOrderCreateSerializer, responses={200: DiagnosticOrderSerializer},
                   tags=["Diagnostics"])
    @action(detail=False, methods=["post"], url_path="create")
    def place(self, request):
        ser = DiagnosticOrderCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        order = DiagnosticOrderService.create_order(
            patient_id=data["patient_id"],
            doctor_id=acting_user_id(request, data.get("doctor_id")),
            test_types=data["test_types"],
            urgency=data["urgency"],
            special_instructions=data["special_instructions"],
            consultation_id=data["consultation_id"],
            diagnostic_center_id=data["diagnostic_center_id"],
        )
        return Response(DiagnosticOrderSerializer(order).data, status=status.HTTP_200_OK)

    @extend_schema(request=DiagnosticStatusUpdateSerializer, responses={200: DiagnosticOrderSerializer},
                   tags=["Diagnostics"])
    @action(detail=True, methods=["post"], url_path="update-status")
    def update_status(self, request, pk=None):
        ser = DiagnosticStatusUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        order = DiagnosticOrderService.update_status(
            order_id=pk,
            center_id=acting_user_id(request, data.get("diagnostic_center_id")),
            status=data["status"],
            scheduled_date=data["scheduled_date"],
            scheduled_time=data["scheduled_time"],
            results_url=data["results_url"],
            results_notes=data["results_notes"],
        )
        return Response(DiagnosticOrderSerializer(order).data, status=status.HTTP_200_OK)
