from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException, AuthenticationFailed


class DuplicateEmail(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = _("User with this email already exists")
    default_code = "duplicate_email"


class InvalidCredentials(AuthenticationFailed):
    default_detail = _("Invalid credentials")
    default_code = "invalid_credentials"
