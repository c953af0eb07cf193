from rest_framework import serializers

from mc_core.consultations.api.serializers import ConsultationSerializer
from mc_core.consultations.models import Urgency
from mc_core.referrals.models import Referral


class ReferralSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)
    referring_provider_id = serializers.UUIDField(read_only=True)
    specialist_id = serializers.UUIDField(read_only=True, allow_null=True)
    consultation_id = serializers.UUIDField(read_only=True, allow_null=True)
    source_consultation_id = serializers.UUIDField(read_only=True, allow_null=True)
    patient_name = serializers.CharField(source="patient.name", read_only=True)
    referring_provider_name = serializers.CharField(source="referring_provider.name", read_only=True)
    specialist_name = serializers.CharField(source="specialist.name", read_only=True, default=None)

    class Meta:
        model = Referral
        fields = [
            "id",
            "patient_id",
            "patient_name",
            "referring_provider_id",
            "referring_provider_name",
            "specialist_id",
            "specialist_name",
            "specialization",
            "reason",
            "medical_history",
            "urgency",
            "notes",
            "status",
            "source_consultation_id",
            "consultation_id",
            "accepted_at",
            "completed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AvailableSpecialistSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    specialization = serializers.CharField(source="provider_application.specialization")


class ReferralCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    referring_provider_id = serializers.UUIDField(required=False)
    consultation_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    specialization = serializers.CharField()
    reason = serializers.CharField()
    medical_history = serializers.CharField(required=False, allow_blank=True, default="")
    urgency = serializers.ChoiceField(choices=Urgency.choices, required=False, default=Urgency.ROUTINE)


class ReferralCreateResponseSerializer(serializers.Serializer):
    referral = ReferralSerializer()
    available_specialists = AvailableSpecialistSerializer(many=True)


class ReferralActionSerializer(serializers.Serializer):
    specialist_id = serializers.UUIDField(required=False)
    action = serializers.ChoiceField(choices=[("accept", "accept"), ("decline", "decline")])
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ReferralActionResponseSerializer(serializers.Serializer):
    referral = ReferralSerializer()
    consultation = ConsultationSerializer(required=False)


class ReferralCompleteSerializer(serializers.Serializer):
    specialist_id = serializers.UUIDField(required=False)
