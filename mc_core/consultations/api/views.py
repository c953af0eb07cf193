from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from mc_core.common.api.pagination import paginate
from mc_core.common.permissions import ConsultationPermission, acting_user_id
from mc_core.consultations.api.serializers import (
    ConsultationActionSerializer,
    ConsultationCancelSerializer,
    ConsultationCompleteSerializer,
    ConsultationCreateSerializer,
    ConsultationProviderSerializer,
    ConsultationSerializer,
)
from mc_core.consultations.models import Consultation
from mc_core.consultations.selectors import ConsultationSelector
from mc_core.consultations.services import ConsultationService


class ConsultationViewSet(viewsets.ViewSet):
    """
    Thin API layer:
    - serializers validate input
    - the acting user comes from the session (admins may act for others)
    - writes go to ConsultationService, reads to ConsultationSelector
    """

    # drf-spectacular needs these on a plain ViewSet
    serializer_class = ConsultationSerializer
    queryset = Consultation.objects.none()
    permission_classes = [ConsultationPermission]

    @extend_schema(request=ConsultationCreateSerializer, responses={201: ConsultationSerializer},
                   tags=["Consultations"])
    def create(self, request):
        ser = ConsultationCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        c = ConsultationService.create_consultation(
            patient_id=acting_user_id(request, data.get("patient_id")),
            provider_type=data["provider_type"],
            chief_complaint=data["chief_complaint"],
            urgency=data["urgency"],
            symptoms=data["symptoms"],
            duration=data["duration"],
            preferred_date=data["preferred_date"],
        )
        return Response(ConsultationSerializer(c).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: ConsultationSerializer(many=True)}, tags=["Consultations"])
    def list(self, request):
        qs = ConsultationSelector.visible_to(user=request.user)
        status_q = request.query_params.get("status")
        if status_q:
            qs = qs.filter(status=status_q)
        return paginate(request, qs, ConsultationSerializer)

    @extend_schema(responses={200: ConsultationSerializer}, tags=["Consultations"])
    def retrieve(self, request, pk=None):
        c = ConsultationSelector.get_for_user(consultation_id=pk, user=request.user)
        return Response(ConsultationSerializer(c).data, status=status.HTTP_200_OK)

    @extend_schema(request=ConsultationActionSerializer, responses={200: ConsultationSerializer},
                   tags=["Consultations"])
    @action(detail=True, methods=["post"], url_path="action")
    def act(self, request, pk=None):
        ser = ConsultationActionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        c = ConsultationService.act_on_consultation(
            consultation_id=pk,
            provider_id=acting_user_id(request, data.get("provider_id")),
            action=data["action"],
        )
        return Response(ConsultationSerializer(c).data, status=status.HTTP_200_OK)

    @extend_schema(request=ConsultationProviderSerializer, responses={200: ConsultationSerializer},
                   tags=["Consultations"])
    @action(detail=True, methods=["post"], url_path="start")
    def start(self, request, pk=None):
        ser = ConsultationProviderSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        c = ConsultationService.start_consultation(
            consultation_id=pk,
            provider_id=acting_user_id(request, ser.validated_data.get("provider_id")),
        )
        return Response(ConsultationSerializer(c).data, status=status.HTTP_200_OK)

    @extend_schema(request=ConsultationCompleteSerializer, responses={200: ConsultationSerializer},
                   tags=["Consultations"])
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        ser = ConsultationCompleteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        c = ConsultationService.complete_consultation(
            consultation_id=pk,
            provider_id=acting_user_id(request, data.get("provider_id")),
            doctor_notes=data["doctor_notes"],
        )
        return Response(ConsultationSerializer(c).data, status=status.HTTP_200_OK)

    @extend_schema(request=ConsultationCancelSerializer, responses={200: ConsultationSerializer},
                   tags=["Consultations"])
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        ser = ConsultationCancelSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        c = ConsultationService.cancel_consultation(
            consultation_id=pk,
            actor_id=request.user.id,
            reason=ser.validated_data["reason"],
        )
        return Response(ConsultationSerializer(c).data, status=status.HTTP_200_OK)
