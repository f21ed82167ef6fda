# nomadigma/errors.py
from typing import Optional


class NomadigmaError(Exception):
    """Base error for the service layer"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(NomadigmaError):
    """A required field is missing or has an invalid value"""
    status_code = 400

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"Field {field} is required")
        self.field = field


class PriceInvariantViolation(ValidationError):
    """Price, final price or discount out of range"""


class SlugConflictError(NomadigmaError):
    status_code = 400

    def __init__(self, slug: str):
        super().__init__(f"Slug '{slug}' already exists")
        self.slug = slug


class NotFoundError(NomadigmaError):
    status_code = 404


class PermissionDeniedError(NomadigmaError):
    status_code = 403


class StorageError(NomadigmaError):
    """Blob storage upload failed"""


class TranslationError(NomadigmaError):
    """Base class for translation failures"""

    def __init__(self, message: str):
        super().__init__(f"Translation failed: {message}")


class TranslationServiceError(TranslationError):
    """The model call itself failed (network, auth, quota)"""


class TranslationParseError(TranslationError):
    """The model answer did not contain a JSON object"""


class TranslationValidationError(TranslationError):
    """The JSON object lacks the required fields"""
