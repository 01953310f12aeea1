"""Domain layer: constants, errors and schemas."""

from .errors import (
    ConfigurationError,
    DetectionError,
    ErrorCodes,
    ReadError,
    SnapMoneyError,
    ValidationError,
)
from .schemas import (
    ConversionResult,
    DetectionOutcome,
    EncodedImage,
    ExtractionRequest,
    Mode,
    PhotoPhase,
)

__all__ = [
    "SnapMoneyError",
    "ValidationError",
    "ConfigurationError",
    "DetectionError",
    "ReadError",
    "ErrorCodes",
    "ConversionResult",
    "DetectionOutcome",
    "EncodedImage",
    "ExtractionRequest",
    "Mode",
    "PhotoPhase",
]
