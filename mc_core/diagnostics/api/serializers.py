from rest_framework import serializers

from mc_core.consultations.models import Urgency
from mc_core.diagnostics.models import DiagnosticOrder


class DiagnosticOrderSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)
    doctor_id = serializers.UUIDField(read_only=True)
    diagnostic_center_id = serializers.UUIDField(read_only=True, allow_null=True)
    consultation_id = serializers.UUIDField(read_only=True, allow_null=True)
    patient_name = serializers.CharField(source="patient.name", read_only=True)
    doctor_name = serializers.CharField(source="doctor.name", read_only=True)
    diagnostic_center_name = serializers.CharField(source="diagnostic_center.name", read_only=True, default=None)

    class Meta:
        model = DiagnosticOrder
        fields = [
            "id",
            "patient_id",
            "patient_name",
            "doctor_id",
            "doctor_name",
            "diagnostic_center_id",
            "diagnostic_center_name",
            "consultation_id",
            "test_types",
            "special_instructions",
            "urgency",
            "status",
            "scheduled_date",
            "scheduled_time",
            "scheduled_at",
            "results_url",
            "results_notes",
            "completed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class DiagnosticOrderCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    doctor_id = serializers.UUIDField(required=False)
    consultation_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    diagnostic_center_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    test_types = serializers.ListField(child=serializers.CharField(), allow_empty=False)
    special_instructions = serializers.CharField(required=False, allow_blank=True, default="")
    urgency = serializers.ChoiceField(choices=Urgency.choices, required=False, default=Urgency.ROUTINE)


class DiagnosticStatusUpdateSerializer(serializers.Serializer):
    diagnostic_center_id = serializers.UUIDField(required=False)
    status = serializers.CharField()
    scheduled_date = serializers.DateField(required=False, allow_null=True, default=None)
    scheduled_time = serializers.TimeField(required=False, allow_null=True, default=None)
    results_url = serializers.URLField(required=False, allow_blank=True, default="")
    results_notes = serializers.CharField(required=False, allow_blank=True, default="")


class TestTypesSerializer(serializers.Serializer):
    test_types = serializers.ListField(child=serializers.CharField())
