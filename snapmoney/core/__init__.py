"""
Core layer: 순수 계산/인코딩/표시 모듈.

역할:
- Encoding Adapter (bytes → base64)
- Conversion Engine (amount × rate)
- 로캘 표시 포맷, 로깅 설정
"""

from .conversion import (
    convert,
    convert_all,
    ensure_finite,
    parse_amount,
    parse_rate_as_provided,
    recompute,
    resolve_rate,
)
from .encoding import encode_data_url, encode_file, encode_image, normalize_mime_type
from .formatting import format_krw, format_number, format_thb
from .logging import setup_logging

__all__ = [
    # conversion
    "convert",
    "convert_all",
    "recompute",
    "ensure_finite",
    "parse_amount",
    "resolve_rate",
    "parse_rate_as_provided",
    # encoding
    "encode_image",
    "encode_data_url",
    "encode_file",
    "normalize_mime_type",
    # formatting
    "format_number",
    "format_krw",
    "format_thb",
    # logging
    "setup_logging",
]
