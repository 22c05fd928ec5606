"""Error taxonomy for CookIQ.

Every pipeline stage raises one of these and never retries. The caller
(query.py) logs ``kind`` and shows the user a single generic message.
"""

from typing import Any, Optional


class CookIQError(Exception):
    """Base class for all CookIQ failures."""

    kind = "CookIQError"


class GenerationError(CookIQError):
    """Any failure in the recipe generation pipeline."""

    kind = "GenerationError"


class ApiError(GenerationError):
    """Model provider returned a non-2xx status, timed out, or was unreachable.

    Attributes:
        status: HTTP status code, or None when no response arrived.
        payload: Provider error body (parsed JSON when possible).
    """

    kind = "ApiError"

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload


class EmptyResponse(GenerationError):
    """2xx response without a message content field."""

    kind = "EmptyResponse"


class MalformedJson(GenerationError):
    """Content present but no JSON object could be extracted or parsed."""

    kind = "MalformedJson"


class SchemaMismatch(GenerationError):
    """Parsed JSON is missing required recipe-set fields.

    Attributes:
        fields: Dotted paths of the fields that failed validation.
    """

    kind = "SchemaMismatch"

    def __init__(self, message: str, fields: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.fields = fields or []


class SafetyViolation(SchemaMismatch):
    """A recipe uses an item the analysis flagged as toxic, wild/unsafe or non-food."""

    kind = "SafetyViolation"


class ImageAnalysisError(CookIQError):
    """Image-path equivalent of ApiError / EmptyResponse, plus invalid images."""

    kind = "ImageAnalysisError"

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload


class StorageError(CookIQError):
    """History persistence write failed."""

    kind = "StorageError"


class PermissionDenied(CookIQError):
    """Microphone access refused for voice mode."""

    kind = "PermissionDenied"
