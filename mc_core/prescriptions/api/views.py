from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from mc_core.common.api.pagination import paginate
from mc_core.common.permissions import PrescriptionPermission, acting_user_id
from mc_core.prescriptions.api.serializers import (
    AssignPharmacySerializer,
    ClaimQrResponseSerializer,
    ClaimQrSerializer,
    FulfillSerializer,
    PrescriptionCreateSerializer,
    PrescriptionSerializer,
)
from mc_core.prescriptions.models import Prescription
from mc_core.prescriptions.selectors import get_prescription_for_user, visible_prescriptions
from mc_core.prescriptions.services import PrescriptionService


class PrescriptionViewSet(viewsets.ViewSet):
    serializer_class = PrescriptionSerializer
    queryset = Prescription.objects.none()
    permission_classes = [PrescriptionPermission]

    @extend_schema(responses={200: PrescriptionSerializer(many=True)}, tags=["Prescriptions"])
    def list(self, request):
        qs = visible_prescriptions(user=request.user)
        status_q = request.query_params.get("status")
        if status_q:
            qs = qs.filter(status=status_q)
        return paginate(request, qs, PrescriptionSerializer)

    @extend_schema(responses={200: PrescriptionSerializer}, tags=["Prescriptions"])
    def retrieve(self, request, pk=None):
        p = get_prescription_for_user(prescription_id=pk, user=request.user)
        return Response(PrescriptionSerializer(p).data, status=status.HTTP_200_OK)

    @extend_schema(request=PrescriptionCreateSerializer, responses={200: PrescriptionSerializer},
                   tags=["Prescriptions"])
    @action(detail=False, methods=["post"], url_path="create")
    def issue(self, request):
        ser = PrescriptionCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        p = PrescriptionService.create_prescription(
            consultation_id=data["consultation_id"],
            patient_id=data["patient_id"],
            provider_id=acting_user_id(request, data.get("provider_id")),
            medications=data["medications"],
            diagnosis=data["diagnosis"],
            notes=data["notes"],
        )
        return Response(PrescriptionSerializer(p).data, status=status.HTTP_200_OK)

    @extend_schema(request=AssignPharmacySerializer, responses={200: PrescriptionSerializer},
                   tags=["Prescriptions"])
    @action(detail=True, methods=["post"], url_path="assign-pharmacy")
    def assign_pharmacy(self, request, pk=None):
        ser = AssignPharmacySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        p = PrescriptionService.assign_pharmacy(
            prescription_id=pk,
            patient_id=acting_user_id(request, data.get("patient_id")),
            pharmacy_id=data["pharmacy_id"],
        )
        return Response(PrescriptionSerializer(p).data, status=status.HTTP_200_OK)

    @extend_schema(request=ClaimQrSerializer, responses={200: ClaimQrResponseSerializer}, tags=["Prescriptions"])
    @action(detail=False, methods=["post"], url_path="claim-qr")
    def claim_qr(self, request):
        ser = ClaimQrSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        p, claimed = PrescriptionService.claim_by_qr(
            qr_token=data["qr_token"],
            pharmacy_id=acting_user_id(request, data.get("pharmacy_id")),
        )
        return Response({"prescription": PrescriptionSerializer(p).data, "claimed": claimed},
                        status=status.HTTP_200_OK)

    @extend_schema(request=FulfillSerializer, responses={200: PrescriptionSerializer}, tags=["Prescriptions"])
    @action(detail=True, methods=["post"], url_path="fulfill")
    def fulfill(self, request, pk=None):
        ser = FulfillSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        p = PrescriptionService.update_fulfillment_status(
            prescription_id=pk,
            pharmacy_id=acting_user_id(request, data.get("pharmacy_id")),
            status=data["status"],
            notes=data["notes"],
        )
        return Response(PrescriptionSerializer(p).data, status=status.HTTP_200_OK)
