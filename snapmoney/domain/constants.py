"""
Domain Constants: 변환 전역 상수.

통화, 기본 환율, 표시 자릿수, 감지 프롬프트 등
시스템 전반에서 사용되는 값들.
"""

# =============================================================================
# Currencies (통화)
# =============================================================================

SOURCE_CURRENCY = "THB"  # 태국 바트
TARGET_CURRENCY = "KRW"  # 대한민국 원

# 1 THB = 38.8 KRW (개발 단계의 가상 환율, 실시간 조회 아님)
DEFAULT_EXCHANGE_RATE = 38.8

# =============================================================================
# Display (표시 정책)
# =============================================================================
# 수동 모드는 소수 2자리, 사진 모드 일괄 결과는 소수 0자리.
# 두 값을 통일하지 말 것 (호출 지점별 파라미터).

MANUAL_FRACTION_DIGITS = 2
PHOTO_FRACTION_DIGITS = 0
SOURCE_FRACTION_DIGITS = 3

DEFAULT_LOCALE = "ko-KR"
SOURCE_LOCALE = "en-US"

CURRENCY_SUFFIX = {
    "KRW": "원",
    "THB": "THB",
}

# =============================================================================
# Detection (금액 감지)
# =============================================================================

DEFAULT_DETECT_MODEL = "gemini-2.5-flash"
CREDENTIAL_ENV_VAR = "GOOGLE_API_KEY"

# 응답 형태: "array" → [1, 2], "object" → {"amounts": [1, 2]}
RESPONSE_SHAPE_ARRAY = "array"
RESPONSE_SHAPE_OBJECT = "object"
RESPONSE_SHAPES = (RESPONSE_SHAPE_ARRAY, RESPONSE_SHAPE_OBJECT)
AMOUNTS_FIELD = "amounts"

DETECT_INSTRUCTION = (
    "From the image, extract all distinct numerical values that could "
    "represent prices in Thai Baht. Ignore currency symbols or prefixes like "
    "'฿' or 'THB'. Ignore any numbers that are clearly not prices "
    "(like dates, times, quantities)."
)

SHAPE_INSTRUCTION = {
    RESPONSE_SHAPE_ARRAY: "Return only a JSON array of numbers.",
    RESPONSE_SHAPE_OBJECT: (
        f'Provide the result as a JSON object with a single key "{AMOUNTS_FIELD}", '
        "which must be an array of numbers."
    ),
}

# =============================================================================
# Sessions (세션 저장소)
# =============================================================================
# 인메모리 보관, 초과 시 가장 오래 쓰지 않은 세션부터 제거

DEFAULT_MAX_SESSIONS = 100

# =============================================================================
# MIME Types
# =============================================================================

DEFAULT_IMAGE_MIME = "image/jpeg"

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".heif": "image/heif",
}


def get_mime_type(filename: str) -> str:
    """
    파일명에서 MIME 타입 추출.

    Args:
        filename: 파일명 (확장자 포함)

    Returns:
        MIME 타입 문자열 (알 수 없으면 octet-stream)
    """
    import os

    ext = os.path.splitext(filename)[1].lower()
    return MIME_TYPES.get(ext, "application/octet-stream")


# =============================================================================
# User Messages (사용자 메시지)
# =============================================================================

MSG_EMPTY_AMOUNT = "바트 금액을 입력해주세요."
MSG_INVALID_AMOUNT = '유효한 숫자를 입력해주세요. (예: "1200")'
MSG_NO_IMAGE = "먼저 사진을 선택해주세요."
MSG_IMAGE_TOO_LARGE = "사진 용량이 너무 큽니다. 더 작은 사진을 선택해주세요."
MSG_UNSUPPORTED_MIME = "이미지 파일만 선택할 수 있습니다."
MSG_NO_AMOUNTS = "사진에서 금액을 감지하지 못했습니다. 다른 사진으로 시도해보세요."
MSG_CREDENTIAL = "API 키가 설정되지 않았거나 유효하지 않습니다. 환경 변수를 확인해주세요."
MSG_DETECTION_FAILED = "금액 감지 중 오류가 발생했습니다"
MSG_INVALID_CONFIG = "금액 감지 설정이 올바르지 않습니다. 설정 파일을 확인해주세요."
MSG_OUT_OF_RANGE = "변환 결과가 너무 큽니다. 금액이나 환율을 확인해주세요."
MSG_PROVIDER_NOT_INSTALLED = "금액 감지 모듈이 설치되지 않았습니다. 관리자에게 문의해주세요."
