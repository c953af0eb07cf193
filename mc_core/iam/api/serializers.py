# mc_core/iam/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from mc_core.iam.models import User, UserRole


class LoginRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()


class DetailResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()


class SignupRequestSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(write_only=True)
    name = serializers.CharField()
    role = serializers.CharField(required=False, default=UserRole.PATIENT)
    phone_number = serializers.CharField(required=False, allow_blank=True, default="")


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "email", "name", "role", "phone_number", "email_verified", "date_joined"]
        read_only_fields = fields


class RoleChangeSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=UserRole.choices)
