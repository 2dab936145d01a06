import shutil
import tempfile

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase
from rest_framework_simplejwt.tokens import RefreshToken

User = get_user_model()

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"0" * 24


class UploadAPITestCase(APITestCase):
    def setUp(self):
        cache.clear()
        self.media_root = tempfile.mkdtemp()
        self.settings_override = override_settings(MEDIA_ROOT=self.media_root)
        self.settings_override.enable()

        self.client = APIClient()
        self.user = User.objects.create_user(email="uploader@example.com", password="testpass123")
        refresh = RefreshToken.for_user(self.user)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")

    def tearDown(self):
        self.settings_override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def upload(self, url_name, name, content, content_type):
        upload = SimpleUploadedFile(name, content, content_type=content_type)
        return self.client.post(reverse(url_name), {"file": upload}, format="multipart")

    def test_upload_image(self):
        response = self.upload("uploads:image", "Holiday Photo.PNG", PNG_BYTES, "image/png")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["message"], "Image uploaded successfully")
        self.assertEqual(response.data["uploaded_by"], self.user.pk)

        stored = response.data["file"]
        self.assertTrue(stored["filename"].startswith("file-"))
        self.assertTrue(stored["filename"].endswith(".png"))
        self.assertEqual(stored["original_name"], "Holiday Photo.PNG")
        self.assertEqual(stored["mimetype"], "image/png")
        self.assertEqual(stored["size"], len(PNG_BYTES))
        self.assertEqual(stored["url"], f"/media/uploads/{stored['filename']}")

    def test_upload_image_rejects_pdf(self):
        response = self.upload("uploads:image", "paper.pdf", b"%PDF-1.4", "application/pdf")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "invalid_file_type")

    def test_upload_document(self):
        response = self.upload("uploads:document", "paper.pdf", b"%PDF-1.4", "application/pdf")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["message"], "Document uploaded successfully")

    def test_upload_disallowed_extension(self):
        response = self.upload("uploads:document", "tool.exe", b"MZ", "application/octet-stream")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "File type .exe is not allowed")

    def test_upload_without_file(self):
        response = self.client.post(reverse("uploads:image"), {}, format="multipart")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "No file uploaded")

    @override_settings(UPLOAD_MAX_FILE_SIZE=10)
    def test_upload_too_large(self):
        response = self.upload("uploads:image", "big.png", PNG_BYTES, "image/png")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            response.data["error"]["message"],
            "File size exceeds the maximum allowed limit of 10 Bytes",
        )

    def test_upload_requires_authentication(self):
        self.client.credentials()
        response = self.upload("uploads:image", "photo.png", PNG_BYTES, "image/png")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_file_info_and_delete(self):
        filename = self.upload("uploads:image", "photo.png", PNG_BYTES, "image/png").data["file"]["filename"]

        self.client.credentials()
        info = self.client.get(reverse("uploads:info", kwargs={"filename": filename}))
        self.assertEqual(info.status_code, status.HTTP_200_OK)
        self.assertEqual(info.data["filename"], filename)
        self.assertEqual(info.data["size"], "32 Bytes")

        anonymous_delete = self.client.delete(reverse("uploads:delete", kwargs={"filename": filename}))
        self.assertEqual(anonymous_delete.status_code, status.HTTP_401_UNAUTHORIZED)

        refresh = RefreshToken.for_user(self.user)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        deleted = self.client.delete(reverse("uploads:delete", kwargs={"filename": filename}))
        self.assertEqual(deleted.status_code, status.HTTP_200_OK)

        missing = self.client.get(reverse("uploads:info", kwargs={"filename": filename}))
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(missing.data["error"]["message"], "File not found")

    def test_delete_missing_file(self):
        response = self.client.delete(reverse("uploads:delete", kwargs={"filename": "nothing.png"}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
