from rest_framework import serializers

from mc_core.applications.models import (
    ApplicationStatus,
    ApplicationType,
    PartnerApplication,
    PartnerType,
    ProviderApplication,
    ProviderType,
)


class _ApplicantSerializer(serializers.Serializer):
    name = serializers.CharField()
    email = serializers.CharField()
    password = serializers.CharField(write_only=True)
    phone_number = serializers.CharField()


class ProviderApplicationCreateSerializer(_ApplicantSerializer):
    provider_type = serializers.ChoiceField(choices=ProviderType.choices)
    license_number = serializers.CharField()
    specialization = serializers.CharField(required=False, allow_blank=True, default="")
    qualifications = serializers.CharField(required=False, allow_blank=True, default="")
    experience_years = serializers.IntegerField(required=False, min_value=0, default=0)
    hospital_affiliation = serializers.CharField(required=False, allow_blank=True, default="")
    consultation_fee = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True,
                                                default=None)


class PartnerApplicationCreateSerializer(_ApplicantSerializer):
    partner_type = serializers.ChoiceField(choices=PartnerType.choices)
    business_name = serializers.CharField()
    license_number = serializers.CharField()
    address = serializers.CharField(required=False, allow_blank=True, default="")


class ProviderApplicationSerializer(serializers.ModelSerializer):
    user_id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(source="user.name", read_only=True)
    email = serializers.CharField(source="user.email", read_only=True)

    class Meta:
        model = ProviderApplication
        fields = [
            "id",
            "user_id",
            "name",
            "email",
            "provider_type",
            "license_number",
            "specialization",
            "qualifications",
            "experience_years",
            "hospital_affiliation",
            "consultation_fee",
            "status",
            "rejection_reason",
            "verified_at",
            "created_at",
        ]
        read_only_fields = fields


class PartnerApplicationSerializer(serializers.ModelSerializer):
    user_id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(source="user.name", read_only=True)
    email = serializers.CharField(source="user.email", read_only=True)

    class Meta:
        model = PartnerApplication
        fields = [
            "id",
            "user_id",
            "name",
            "email",
            "partner_type",
            "business_name",
            "license_number",
            "address",
            "status",
            "rejection_reason",
            "verified_at",
            "created_at",
        ]
        read_only_fields = fields


class ApplicationListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ApplicationStatus.choices, required=False)
    type = serializers.ChoiceField(choices=ApplicationType.choices, required=False)


class RejectApplicationSerializer(serializers.Serializer):
    reason = serializers.CharField()


def serialize_application(app) -> dict:
    if isinstance(app, ProviderApplication):
        return ProviderApplicationSerializer(app).data
    return PartnerApplicationSerializer(app).data
