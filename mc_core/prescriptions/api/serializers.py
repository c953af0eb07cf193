from rest_framework import serializers

from mc_core.prescriptions.models import Prescription


class MedicationSerializer(serializers.Serializer):
    name = serializers.CharField()
    dosage = serializers.CharField()
    frequency = serializers.CharField()
    duration = serializers.CharField()
    instructions = serializers.CharField(required=False, allow_blank=True)


class PrescriptionSerializer(serializers.ModelSerializer):
    consultation_id = serializers.UUIDField(read_only=True)
    patient_id = serializers.UUIDField(read_only=True)
    provider_id = serializers.UUIDField(read_only=True)
    pharmacy_id = serializers.UUIDField(read_only=True, allow_null=True)
    patient_name = serializers.CharField(source="patient.name", read_only=True)
    provider_name = serializers.CharField(source="provider.name", read_only=True)
    pharmacy_name = serializers.CharField(source="pharmacy.name", read_only=True, default=None)
    medications = MedicationSerializer(many=True, read_only=True)

    class Meta:
        model = Prescription
        fields = [
            "id",
            "consultation_id",
            "patient_id",
            "patient_name",
            "provider_id",
            "provider_name",
            "pharmacy_id",
            "pharmacy_name",
            "qr_token",
            "status",
            "medications",
            "diagnosis",
            "notes",
            "pharmacy_notes",
            "fulfilled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PrescriptionCreateSerializer(serializers.Serializer):
    consultation_id = serializers.UUIDField()
    patient_id = serializers.UUIDField()
    provider_id = serializers.UUIDField(required=False)
    # shape is checked in the service so the error carries the offending index
    medications = serializers.ListField(child=serializers.DictField(), allow_empty=True)
    diagnosis = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class AssignPharmacySerializer(serializers.Serializer):
    pharmacy_id = serializers.UUIDField()
    patient_id = serializers.UUIDField(required=False)


class ClaimQrSerializer(serializers.Serializer):
    qr_token = serializers.CharField()
    pharmacy_id = serializers.UUIDField(required=False)


class ClaimQrResponseSerializer(serializers.Serializer):
    prescription = PrescriptionSerializer()
    claimed = serializers.BooleanField()


class FulfillSerializer(serializers.Serializer):
    pharmacy_id = serializers.UUIDField(required=False)
    status = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")
