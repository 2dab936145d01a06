import logging

from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle
from rest_framework.views import APIView

from . import storage
from .serializers import FileInfoSerializer, UploadResponseSerializer, UploadSerializer

logger = logging.getLogger(__name__)


class UploadThrottle(UserRateThrottle):
    scope = "uploads"


class BaseUploadView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [UploadThrottle]
    parser_classes = [MultiPartParser, FormParser]

    field_name = "file"
    images_only = False
    allowed_mime_types = None
    success_message = "File uploaded successfully"

    def post(self, request: Request) -> Response:
        stored = storage.save_upload(
            request.FILES.get(self.field_name),
            field_name=self.field_name,
            allowed_mime_types=self.allowed_mime_types,
            images_only=self.images_only,
        )
        logger.info(f"User {request.user.pk} uploaded {stored['filename']}")

        return Response(
            {
                "message": self.success_message,
                "file": stored,
                "uploaded_by": request.user.pk,
            },
            status=status.HTTP_201_CREATED,
        )


@extend_schema_view(
    post=extend_schema(
        summary="Upload Image",
        request={"multipart/form-data": UploadSerializer},
        responses={201: UploadResponseSerializer, 400: "Invalid file"},
        tags=["Uploads"],
    )
)
class ImageUploadView(BaseUploadView):
    images_only = True
    success_message = "Image uploaded successfully"


@extend_schema_view(
    post=extend_schema(
        summary="Upload Document",
        request={"multipart/form-data": UploadSerializer},
        responses={201: UploadResponseSerializer, 400: "Invalid file"},
        tags=["Uploads"],
    )
)
class DocumentUploadView(BaseUploadView):
    allowed_mime_types = storage.DOCUMENT_MIME_TYPES
    success_message = "Document uploaded successfully"


@extend_schema_view(
    get=extend_schema(
        summary="File Info",
        responses={200: FileInfoSerializer, 404: "File not found"},
        tags=["Uploads"],
    )
)
class FileInfoView(APIView):
    permission_classes = [AllowAny]

    def get(self, request: Request, filename: str) -> Response:
        return Response(storage.file_info(filename), status=status.HTTP_200_OK)


@extend_schema_view(
    delete=extend_schema(
        summary="Delete File",
        responses={200: "File deleted", 404: "File not found"},
        tags=["Uploads"],
    )
)
class FileDeleteView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [UploadThrottle]

    def delete(self, request: Request, filename: str) -> Response:
        storage.delete_file(filename)
        logger.info(f"User {request.user.pk} deleted upload {filename}")
        return Response({"message": "File deleted successfully"}, status=status.HTTP_200_OK)
