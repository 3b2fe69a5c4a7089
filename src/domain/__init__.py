"""Domain layer: errors, schemas, constants."""

from .errors import (
    ColorizeError,
    ConfigurationError,
    ErrorCodes,
    ProcessingError,
    TransientServiceError,
    UnexpectedError,
    ValidationError,
)
from .schemas import (
    ColorizedResult,
    ColorizeFailure,
    ColorizeResponse,
    ColorizeSuccess,
    ErrorState,
    GenerationState,
    UploadedImage,
)

__all__ = [
    "ColorizeError",
    "ValidationError",
    "ConfigurationError",
    "TransientServiceError",
    "ProcessingError",
    "UnexpectedError",
    "ErrorCodes",
    "ColorizeSuccess",
    "ColorizeFailure",
    "ColorizeResponse",
    "ColorizedResult",
    "ErrorState",
    "GenerationState",
    "UploadedImage",
]
