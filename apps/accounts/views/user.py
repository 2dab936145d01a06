from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle
from rest_framework.views import APIView

from apps.accounts import services
from apps.accounts.serializers import UserSerializer, UserUpdateSerializer


@extend_schema_view(
    get=extend_schema(
        summary="Get Current User",
        responses={200: UserSerializer, 401: "Unauthorized"},
        tags=["Authentication"],
    ),
    patch=extend_schema(
        summary="Update Current User",
        description="Update names, email or password of the authenticated user",
        request=UserUpdateSerializer,
        responses={200: UserSerializer, 400: "Validation Error", 409: "Email taken"},
        tags=["Authentication"],
    ),
    delete=extend_schema(
        summary="Deactivate Current User",
        description="Deactivate the authenticated account and revoke its refresh tokens",
        responses={204: None, 401: "Unauthorized"},
        tags=["Authentication"],
    ),
)
class MeView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [UserRateThrottle]

    def get(self, request: Request) -> Response:
        serializer = UserSerializer(request.user, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    def patch(self, request: Request) -> Response:
        serializer = UserUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        user = services.update_user(request.user, serializer.validated_data)
        return Response(
            UserSerializer(user, context={"request": request}).data,
            status=status.HTTP_200_OK,
        )

    def delete(self, request: Request) -> Response:
        services.deactivate_user(request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)
