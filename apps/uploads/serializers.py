from rest_framework import serializers


class UploadSerializer(serializers.Serializer):
    file = serializers.FileField()


class StoredFileSerializer(serializers.Serializer):
    filename = serializers.CharField()
    original_name = serializers.CharField()
    mimetype = serializers.CharField()
    size = serializers.IntegerField()
    url = serializers.CharField()


class UploadResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    file = StoredFileSerializer()
    uploaded_by = serializers.IntegerField()


class FileInfoSerializer(serializers.Serializer):
    filename = serializers.CharField()
    size = serializers.CharField()
    url = serializers.CharField()
