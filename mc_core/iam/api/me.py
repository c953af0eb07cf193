# mc_core/iam/api/me.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from mc_core.common.permissions import AdminOnlyPermission
from mc_core.iam.api.serializers import RoleChangeSerializer, UserSerializer
from mc_core.iam.services.signup import SignupService


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: UserSerializer}, tags=["IAM"])
    def get(self, request):
        return Response({"user": UserSerializer(request.user).data}, status=status.HTTP_200_OK)


class UserRoleView(APIView):
    """
    Admin-only: change a user's active role.
    """
    permission_classes = [AdminOnlyPermission]

    @extend_schema(request=RoleChangeSerializer, responses={200: UserSerializer}, tags=["IAM"])
    def post(self, request, user_id=None):
        ser = RoleChangeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        user = SignupService.change_role(user_id=user_id, role=ser.validated_data["role"])
        return Response(UserSerializer(user).data, status=status.HTTP_200_OK)
