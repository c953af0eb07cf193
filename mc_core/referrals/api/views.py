from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from mc_core.common.api.pagination import paginate
from mc_core.common.permissions import ReferralPermission, acting_user_id
from mc_core.consultations.api.serializers import ConsultationSerializer
from mc_core.referrals.api.serializers import (
    AvailableSpecialistSerializer,
    ReferralActionResponseSerializer,
    ReferralActionSerializer,
    ReferralCompleteSerializer,
    ReferralCreateResponseSerializer,
    ReferralCreateSerializer,
    ReferralSerializer,
)
from mc_core.referrals.models import Referral
from mc_core.referrals.selectors import ReferralSelector
from mc_core.referrals.services import ReferralService


class ReferralViewSet(viewsets.ViewSet):
    serializer_class = ReferralSerializer
    queryset = Referral.objects.none()
    permission_classes = [ReferralPermission]

    @extend_schema(request=ReferralCreateSerializer, responses={200: ReferralCreateResponseSerializer},
                   tags=["Referrals"])
    def create(self, request):
        ser = ReferralCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        referral, specialists = ReferralService.create_referral(
            patient_id=data["patient_id"],
            referring_provider_id=acting_user_id(request, data.get("referring_provider_id")),
            specialization=data["specialization"],
            reason=data["reason"],
            medical_history=data["medical_history"],
            urgency=data["urgency"],
            source_consultation_id=data["consultation_id"],
        )
        return Response(
            {
                "referral": ReferralSerializer(referral).data,
                "available_specialists": AvailableSpecialistSerializer(specialists, many=True).data,
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(responses={200: ReferralSerializer(many=True)}, tags=["Referrals"])
    def list(self, request):
        qs = ReferralSelector.visible_to(user=request.user)
        status_q = request.query_params.get("status")
        if status_q:
            qs = qs.filter(status=status_q)
        return paginate(request, qs, ReferralSerializer)

    @extend_schema(responses={200: ReferralSerializer}, tags=["Referrals"])
    def retrieve(self, request, pk=None):
        r = ReferralSelector.get_for_user(referral_id=pk, user=request.user)
        return Response(ReferralSerializer(r).data, status=status.HTTP_200_OK)

    @extend_schema(request=ReferralActionSerializer, responses={200: ReferralActionResponseSerializer},
                   tags=["Referrals"])
    @action(detail=True, methods=["post"], url_path="action")
    def act(self, request, pk=None):
        ser = ReferralActionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        referral, consultation = ReferralService.act_on_referral(
            referral_id=pk,
            specialist_id=acting_user_id(request, data.get("specialist_id")),
            action=data["action"],
            notes=data["notes"],
        )
        out = {"referral": ReferralSerializer(referral).data}
        if consultation is not None:
            out["consultation"] = ConsultationSerializer(consultation).data
        return Response(out, status=status.HTTP_200_OK)

    @extend_schema(request=ReferralCompleteSerializer, responses={200: ReferralSerializer}, tags=["Referrals"])
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        ser = ReferralCompleteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        referral = ReferralService.complete_referral(
            referral_id=pk,
            specialist_id=acting_user_id(request, ser.validated_data.get("specialist_id")),
        )
        return Response(ReferralSerializer(referral).data, status=status.HTTP_200_OK)
