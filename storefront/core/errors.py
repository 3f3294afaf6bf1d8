"""Typed application errors. Each carries the HTTP status the API boundary maps it to."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """One field-level validation failure."""

    field: str
    message: str


class AppError(Exception):
    """Base for errors raised deliberately by validators and services."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Raised with every violation found, not just the first."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, errors: list[FieldError] | None = None) -> None:
        self.errors = list(errors or [])
        super().__init__(message)


class BadRequestError(AppError):
    status_code = 400
    default_message = "Bad request"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized access"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Access forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Resource conflict"

    def __init__(self, message: str | None = None, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class UploadError(BadRequestError):
    """Rejected file upload. `code` tells the causes apart."""

    code: str = "upload_error"
    default_message = "File upload error"


class FileTooLargeError(UploadError):
    code = "file_too_large"
    default_message = "File size exceeds the upload limit"


class TooManyFilesError(UploadError):
    code = "too_many_files"
    default_message = "Too many files uploaded"


class UnexpectedFileFieldError(UploadError):
    code = "unexpected_field"
    default_message = 'Unexpected file field. Use "images" as the field name'


class UnsupportedFileTypeError(UploadError):
    code = "unsupported_type"
    default_message = "Only image files are allowed (JPEG, PNG, GIF, WebP)"


class StorageUnavailableError(AppError):
    """Raised when the storage backend cannot accept files."""

    status_code = 503
    default_message = "File storage is temporarily unavailable"
