"""
Amount-Extraction Provider Abstraction.

모델 교체 가능하게 설계.
모델명은 config만 SSOT.
"""

from .base import AmountExtractor, DetectionConfig, build_extraction_request, parse_amounts
from .gemini import GeminiAmountExtractor

__all__ = [
    "AmountExtractor",
    "DetectionConfig",
    "GeminiAmountExtractor",
    "build_extraction_request",
    "parse_amounts",
]
