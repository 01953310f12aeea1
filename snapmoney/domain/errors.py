"""
Error definitions for Snap Money.

규칙:
- 모든 에러는 사용자 액션 지점에서 잡혀 세션 에러 메시지로 변환
- 조용한 실패 금지 → 코드가 있는 명시적 예외
- 금액 0개 감지는 에러가 아님 (DetectionOutcome.is_empty)
"""

from typing import Any


class SnapMoneyError(Exception):
    """
    변환/감지 흐름의 기반 에러.

    Usage:
        raise ValidationError(ErrorCodes.INVALID_AMOUNT, "invalid amount", value="abc")
    """

    def __init__(self, code: str, message: str = "", **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        text = f"[{self.code}] {self.message}".rstrip()
        return f"{text} ({ctx_str})" if ctx_str else text

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


class ValidationError(SnapMoneyError):
    """잘못된 수동 입력 (비숫자, 음수) 또는 업로드 경계 위반."""
    pass


class ConfigurationError(SnapMoneyError):
    """자격 증명 없음/무효. 재시도가 아니라 환경 설정 수정이 필요."""
    pass


class DetectionError(SnapMoneyError):
    """네트워크/엔드포인트 실패 또는 응답 없음."""
    pass


class ReadError(DetectionError):
    """이미지 파일을 읽을 수 없음."""
    pass


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Manual input ===
    EMPTY_AMOUNT = "EMPTY_AMOUNT"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    OUT_OF_RANGE = "OUT_OF_RANGE"

    # === Upload boundary ===
    NO_IMAGE = "NO_IMAGE"
    IMAGE_TOO_LARGE = "IMAGE_TOO_LARGE"
    UNSUPPORTED_MIME = "UNSUPPORTED_MIME"
    READ_FAILED = "READ_FAILED"

    # === Configuration ===
    MISSING_CREDENTIAL = "MISSING_CREDENTIAL"
    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"
    INVALID_RESPONSE_SHAPE = "INVALID_RESPONSE_SHAPE"
    GEMINI_NOT_INSTALLED = "GEMINI_NOT_INSTALLED"

    # === Detection ===
    DETECTION_FAILED = "DETECTION_FAILED"
    DETECTION_TIMEOUT = "DETECTION_TIMEOUT"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"

    # === Session ===
    INVALID_MODE = "INVALID_MODE"
