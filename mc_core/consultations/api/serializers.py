from rest_framework import serializers

from mc_core.applications.models import ProviderType
from mc_core.consultations.models import Consultation, Urgency


class ConsultationSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)
    provider_id = serializers.UUIDField(read_only=True, allow_null=True)
    patient_name = serializers.CharField(source="patient.name", read_only=True)
    provider_name = serializers.CharField(source="provider.name", read_only=True, default=None)

    class Meta:
        model = Consultation
        fields = [
            "id",
            "patient_id",
            "patient_name",
            "provider_id",
            "provider_name",
            "provider_type",
            "chief_complaint",
            "symptoms",
            "duration",
            "urgency",
            "preferred_date",
            "consultation_fee",
            "status",
            "doctor_notes",
            "accepted_at",
            "started_at",
            "completed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ConsultationCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField(required=False)
    provider_type = serializers.ChoiceField(choices=ProviderType.choices)
    chief_complaint = serializers.CharField()
    symptoms = serializers.CharField(required=False, allow_blank=True, default="")
    duration = serializers.CharField(required=False, allow_blank=True, default="")
    urgency = serializers.ChoiceField(choices=Urgency.choices, required=False, default=Urgency.ROUTINE)
    preferred_date = serializers.DateField(required=False, allow_null=True, default=None)


class ConsultationActionSerializer(serializers.Serializer):
    provider_id = serializers.UUIDField(required=False)
    action = serializers.ChoiceField(choices=[("accept", "accept"), ("decline", "decline")])


class ConsultationProviderSerializer(serializers.Serializer):
    provider_id = serializers.UUIDField(required=False)


class ConsultationCompleteSerializer(ConsultationProviderSerializer):
    doctor_notes = serializers.CharField(required=False, allow_blank=True, default="")


class ConsultationCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
