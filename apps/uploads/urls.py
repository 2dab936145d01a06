from django.urls import path

from .views import DocumentUploadView, FileDeleteView, FileInfoView, ImageUploadView

app_name = "uploads"

urlpatterns = [
    path("image/", ImageUploadView.as_view(), name="image"),
    path("document/", DocumentUploadView.as_view(), name="document"),
    path("info/<str:filename>/", FileInfoView.as_view(), name="info"),
    path("<str:filename>/", FileDeleteView.as_view(), name="delete"),
]
