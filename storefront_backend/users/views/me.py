# users/views/me.py

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.roles import capabilities_for
from users.serializers import UserSerializer


class MeView(APIView):
    permission_classes = [IsAuthenticated]
    serializer_class = UserSerializer

    @extend_schema(
        responses={200: UserSerializer},
        description="Current authenticated user profile plus effective capabilities",
    )
    def get(self, request):
        data = UserSerializer(request.user).data
        data["capabilities"] = sorted(capabilities_for(request.user))
        return Response(data)
