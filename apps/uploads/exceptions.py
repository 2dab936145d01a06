from rest_framework.exceptions import NotFound, ValidationError


class InvalidFileType(ValidationError):
    """Exception raised when an invalid file type is uploaded."""

    default_detail = "Invalid file type. Please upload a valid file."
    default_code = "invalid_file_type"


class FileSizeExceeded(ValidationError):
    """Exception raised when uploaded file exceeds size limit."""

    default_detail = "File size exceeds the maximum allowed limit."
    default_code = "file_size_exceeded"


class NoFileUploaded(ValidationError):
    default_detail = "No file uploaded"
    default_code = "no_file_uploaded"


class InvalidFilename(ValidationError):
    default_detail = "Invalid filename"
    default_code = "invalid_filename"


class UploadedFileNotFound(NotFound):
    default_detail = "File not found"
    default_code = "file_not_found"
