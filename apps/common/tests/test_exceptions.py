from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from django.test import SimpleTestCase
from rest_framework import status
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.request import Request
from rest_framework.test import APIRequestFactory

from apps.common.exceptions import Conflict, api_exception_handler, translate_exception


class TranslateExceptionTest(SimpleTestCase):
    def test_django_exceptions_become_api_exceptions(self):
        self.assertIsInstance(translate_exception(Http404("gone")), NotFound)
        self.assertIsInstance(translate_exception(DjangoPermissionDenied()), PermissionDenied)
        self.assertIsInstance(translate_exception(IntegrityError()), Conflict)

        translated = translate_exception(DjangoValidationError({"title": ["Required"]}))
        self.assertIsInstance(translated, ValidationError)
        self.assertEqual(translated.detail["title"][0], "Required")

    def test_unknown_exceptions_are_left_alone(self):
        self.assertIsNone(translate_exception(RuntimeError("boom")))


class ApiExceptionHandlerTest(SimpleTestCase):
    def setUp(self):
        self.factory = APIRequestFactory()

    def handle(self, exc, path="/api/blog/posts/", method="get"):
        request = Request(getattr(self.factory, method)(path))
        return api_exception_handler(exc, {"request": request, "view": None})

    def test_envelope(self):
        response = self.handle(NotFound("Blog post not found"))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        error = response.data["error"]
        self.assertEqual(error["code"], "not_found")
        self.assertEqual(error["message"], "Blog post not found")
        self.assertEqual(error["status_code"], 404)
        self.assertEqual(error["path"], "/api/blog/posts/")
        self.assertEqual(error["method"], "GET")
        self.assertIn("timestamp", error)
        self.assertNotIn("details", error)

    def test_validation_errors_carry_details(self):
        response = self.handle(ValidationError({"title": ["This field is required."]}), method="post")

        error = response.data["error"]
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(error["message"], "Validation failed")
        self.assertEqual(error["details"], {"title": ["This field is required."]})

    def test_integrity_error_is_conflict(self):
        response = self.handle(IntegrityError("UNIQUE constraint failed"))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_unexpected_error_is_500(self):
        with self.assertLogs("apps.common.exceptions", level="ERROR"):
            response = self.handle(RuntimeError("boom"))

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data["error"]["message"], "Internal server error")
