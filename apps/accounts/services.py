import logging
from typing import Any, Dict

from django.contrib.auth import authenticate, get_user_model
from django.db import IntegrityError, transaction
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken

from .exceptions import DuplicateEmail, InvalidCredentials

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security")
User = get_user_model()


def create_user(email: str, password: str, first_name: str = "", last_name: str = "", **extra) -> User:
    """
    Register a new account.

    Raises DuplicateEmail when the address is taken, including when a
    concurrent registration wins the race on the unique index.
    """
    email = email.strip().lower()
    if User.objects.filter(email=email).exists():
        raise DuplicateEmail()

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                **extra,
            )
    except IntegrityError:
        raise DuplicateEmail()

    logger.info(f"User registered: {user.email}")
    return user


def authenticate_credentials(request, email: str, password: str) -> User:
    user = authenticate(request, email=(email or "").strip().lower(), password=password)
    if user is None or not user.is_active:
        security_logger.warning(f"Failed login attempt for {email}")
        raise InvalidCredentials()
    return user


def update_user(user: User, data: Dict[str, Any]) -> User:
    """Apply a profile update. A new password is hashed before saving."""
    data = dict(data)
    password = data.pop("password", None)

    email = data.get("email")
    if email:
        email = email.strip().lower()
        if User.objects.filter(email=email).exclude(pk=user.pk).exists():
            raise DuplicateEmail()
        data["email"] = email

    for field, value in data.items():
        setattr(user, field, value)

    if password:
        user.set_password(password)

    try:
        with transaction.atomic():
            user.save()
    except IntegrityError:
        raise DuplicateEmail()

    logger.info(f"User {user.pk} updated profile fields: {sorted(data)}")
    return user


def deactivate_user(user: User) -> User:
    """Close an account: clear ``is_active`` and blacklist every refresh token it holds."""
    with transaction.atomic():
        user.is_active = False
        user.save(update_fields=["is_active", "updated_at"])
        for token in OutstandingToken.objects.filter(user=user):
            BlacklistedToken.objects.get_or_create(token=token)
    logger.info(f"User {user.pk} deactivated")
    return user
