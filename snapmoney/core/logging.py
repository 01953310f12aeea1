"""
Logging setup: snapmoney 루트 로거 + 비밀 마스킹.

규칙:
- 자격 증명(API 키)은 로그에 절대 남기지 않음
- 모듈별 logger = logging.getLogger(__name__)
"""

import logging
import re
from typing import Any

ROOT_LOGGER_NAME = "snapmoney"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# 마스킹할 패턴들 (API 키, 토큰)
SENSITIVE_PATTERNS = [
    (
        r'(api[_-]?key|apikey|key)(["\']?\s*[:=]\s*["\']?)([a-zA-Z0-9_-]{20,})',
        r"\1\2[MASKED]",
    ),
    (r"(AIza[0-9A-Za-z_-]{20,})", r"[MASKED_API_KEY]"),  # Google 스타일
    (r"(Bearer\s+)([a-zA-Z0-9._-]{20,})", r"\1[MASKED_TOKEN]"),
]


def mask_sensitive_data(content: str, secrets: list[str] | None = None) -> str:
    """민감 정보를 마스킹한 문자열 반환."""
    masked = content
    for secret in secrets or []:
        if secret:
            masked = masked.replace(secret, "[MASKED]")
    for pattern, replacement in SENSITIVE_PATTERNS:
        masked = re.sub(pattern, replacement, masked, flags=re.IGNORECASE)
    return masked


class SecretMaskingFilter(logging.Filter):
    """로그 레코드 메시지에서 비밀 값을 마스킹."""

    def __init__(self, secrets: list[str] | None = None) -> None:
        super().__init__()
        self.secrets = [s for s in (secrets or []) if s]

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_sensitive_data(message, self.secrets)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def setup_logging(
    config: dict[str, Any] | None = None,
    secrets: list[str] | None = None,
) -> logging.Logger:
    """
    snapmoney 루트 로거 설정.

    Args:
        config: 설정 (logging.level, logging.format)
        secrets: 로그에서 마스킹할 값 (API 키 등)

    Returns:
        설정된 루트 로거
    """
    log_config = (config or {}).get("logging", {}) or {}
    level_name = str(log_config.get("level", "INFO")).upper()
    fmt = log_config.get("format", DEFAULT_FORMAT)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    # 재호출 시 핸들러 중복 방지
    for handler in list(root_logger.handlers):
        if getattr(handler, "_snapmoney", False):
            root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(SecretMaskingFilter(secrets))
    handler._snapmoney = True  # type: ignore[attr-defined]
    root_logger.addHandler(handler)

    return root_logger
