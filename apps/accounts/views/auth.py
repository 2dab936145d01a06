import logging
from datetime import timedelta
from typing import Any, Dict

from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle, UserRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts import services
from apps.accounts.exceptions import InvalidCredentials
from apps.accounts.serializers import (
    LoginSerializer,
    LogoutSerializer,
    RefreshSerializer,
    RegisterSerializer,
    TokenResponseSerializer,
    UserSerializer,
)
from apps.common.utils import get_client_ip

logger = logging.getLogger(__name__)
User = get_user_model()


class AuthRateThrottle(AnonRateThrottle):
    """Rate limiting for login and registration attempts"""

    scope = "auth"


def get_tokens_for_user(user: User) -> Dict[str, Any]:
    """
    Generate JWT tokens for user with custom claims
    """
    refresh = RefreshToken.for_user(user)

    refresh["email"] = user.email
    refresh["role"] = user.role

    lifetime = settings.SIMPLE_JWT.get("ACCESS_TOKEN_LIFETIME", timedelta(minutes=60))

    return {
        "access_token": str(refresh.access_token),
        "refresh_token": str(refresh),
        "expires_at": timezone.now() + lifetime,
        "token_type": "Bearer",
    }


def token_response(user: User, request: Request, status_code: int) -> Response:
    tokens = get_tokens_for_user(user)
    user_serializer = UserSerializer(user, context={"request": request})
    return Response({**tokens, "user": user_serializer.data}, status=status_code)


@extend_schema_view(
    post=extend_schema(
        summary="User Registration",
        description="Register a new account and return JWT tokens",
        request=RegisterSerializer,
        responses={
            201: TokenResponseSerializer,
            400: "Validation Error",
            409: "User with this email already exists",
        },
        tags=["Authentication"],
    )
)
class RegisterView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthRateThrottle]

    def post(self, request: Request) -> Response:
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = services.create_user(**serializer.validated_data)
        logger.info(f"Registration from {get_client_ip(request)} for {user.email}")

        return token_response(user, request, status.HTTP_201_CREATED)


@extend_schema_view(
    post=extend_schema(
        summary="User Login",
        description="Authenticate with email and password and return JWT tokens",
        request=LoginSerializer,
        responses={
            200: TokenResponseSerializer,
            400: "Bad Request",
            401: "Invalid credentials",
        },
        tags=["Authentication"],
    )
)
class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthRateThrottle]

    def post(self, request: Request) -> Response:
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = services.authenticate_credentials(
            request,
            serializer.validated_data["email"],
            serializer.validated_data["password"],
        )

        user.last_login = timezone.now()
        user.save(update_fields=["last_login"])
        logger.info(f"User {user.pk} logged in from {get_client_ip(request)}")

        return token_response(user, request, status.HTTP_200_OK)


@extend_schema_view(
    post=extend_schema(
        summary="Refresh Token",
        description="Exchange a refresh token for a new token pair",
        request=RefreshSerializer,
        responses={
            200: TokenResponseSerializer,
            401: "Invalid refresh token",
        },
        tags=["Authentication"],
    )
)
class RefreshView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AnonRateThrottle]

    def post(self, request: Request) -> Response:
        serializer = RefreshSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            token = RefreshToken(serializer.validated_data["refresh"])
            token.check_blacklist()
            user = User.objects.get(pk=token.payload.get("user_id"), is_active=True)
        except (TokenError, User.DoesNotExist):
            raise InvalidCredentials("Invalid refresh token")

        # Rotation: the presented refresh token cannot be used again
        token.blacklist()

        return token_response(user, request, status.HTTP_200_OK)


@extend_schema_view(
    post=extend_schema(
        summary="User Logout",
        description="Logout user and blacklist refresh token",
        request=LogoutSerializer,
        responses={200: "Logout successful", 400: "Bad Request"},
        tags=["Authentication"],
    )
)
class LogoutView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [UserRateThrottle]

    def post(self, request: Request) -> Response:
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            token = RefreshToken(serializer.validated_data["refresh"])
            if str(token.payload.get("user_id")) != str(request.user.pk):
                raise TokenError("Token belongs to another user")
            token.blacklist()
        except TokenError as e:
            logger.warning(f"Logout with unusable refresh token for user {request.user.pk}: {e}")
            raise ValidationError({"refresh": ["Invalid refresh token"]})

        logger.info(f"User {request.user.pk} logged out")
        return Response({"message": "Logout successful"}, status=status.HTTP_200_OK)
