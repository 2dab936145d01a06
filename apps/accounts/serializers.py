from django.contrib.auth import get_user_model, password_validation
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

User = get_user_model()


def _validate_password(value, user=None):
    try:
        password_validation.validate_password(value, user=user)
    except ValidationError as exc:
        raise serializers.ValidationError(list(exc.messages))
    return value


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(source="get_full_name", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "role",
            "is_active",
            "date_joined",
            "updated_at",
        ]
        read_only_fields = fields


class AuthorSerializer(serializers.ModelSerializer):
    """Compact public representation used on posts, comments and likes."""

    full_name = serializers.CharField(source="get_full_name", read_only=True)

    class Meta:
        model = User
        fields = ["id", "email", "first_name", "last_name", "full_name"]
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        write_only=True,
        required=True,
        min_length=6,
        style={"input_type": "password"},
        help_text=_("Password must be at least 6 characters"),
    )
    first_name = serializers.CharField(required=True, max_length=150)
    last_name = serializers.CharField(required=True, max_length=150)

    def validate_email(self, value):
        return value.strip().lower()

    def validate(self, attrs):
        candidate = User(
            email=attrs.get("email"),
            first_name=attrs.get("first_name", ""),
            last_name=attrs.get("last_name", ""),
        )
        _validate_password(attrs["password"], user=candidate)
        return attrs


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField(required=True, help_text=_("Email to authenticate with"))
    password = serializers.CharField(
        max_length=128,
        required=True,
        write_only=True,
        help_text=_("Password for authentication"),
    )


class RefreshSerializer(serializers.Serializer):
    """Refresh token input. ``refresh`` is preferred; ``refresh_token`` is accepted as an alias."""

    refresh = serializers.CharField(required=False)
    refresh_token = serializers.CharField(required=False, write_only=True)

    def validate(self, attrs):
        token = attrs.get("refresh") or attrs.get("refresh_token")
        if not token:
            raise serializers.ValidationError({"refresh": [_("This field is required.")]})
        return {"refresh": token}


class LogoutSerializer(RefreshSerializer):
    pass


class UserUpdateSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False)
    first_name = serializers.CharField(required=False, max_length=150)
    last_name = serializers.CharField(required=False, max_length=150)
    password = serializers.CharField(
        write_only=True,
        required=False,
        min_length=6,
        style={"input_type": "password"},
    )

    def validate_password(self, value):
        return _validate_password(value, user=self.instance)


class TokenResponseSerializer(serializers.Serializer):
    access_token = serializers.CharField()
    refresh_token = serializers.CharField()
    expires_at = serializers.DateTimeField()
    token_type = serializers.CharField()
    user = UserSerializer()
