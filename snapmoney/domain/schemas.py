"""
Data schemas for Snap Money.

규칙:
- 모든 엔티티는 메모리 상주, 세션 범위 (영속화 없음)
- converted는 항상 original × rate 로 재계산 (이전 converted 재사용 금지)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# =============================================================================
# Mode (모드)
# =============================================================================

class Mode(str, Enum):
    """변환 모드 (상호 배타)."""
    MANUAL = "manual"
    PHOTO = "photo"


class PhotoPhase(str, Enum):
    """
    사진 모드 하위 상태.

    no-image → image-selected → detecting → results-shown | error-shown
    """
    NO_IMAGE = "no-image"
    IMAGE_SELECTED = "image-selected"
    DETECTING = "detecting"
    RESULTS_SHOWN = "results-shown"
    ERROR_SHOWN = "error-shown"


# =============================================================================
# Conversion
# =============================================================================

@dataclass(frozen=True)
class ConversionResult:
    """원래 금액(THB)과 변환 금액(KRW) 쌍."""
    original: float
    converted: float

    def to_dict(self) -> dict[str, Any]:
        return {"original": self.original, "converted": self.converted}


# =============================================================================
# Extraction
# =============================================================================

@dataclass(frozen=True)
class EncodedImage:
    """전송용 인코딩 이미지 (data URL 접두어 없는 base64 payload)."""
    data: str
    mime_type: str


@dataclass
class ExtractionRequest:
    """
    추출 요청.

    요청마다 생성, 영속화하지 않음.
    response_schema는 호출 전에 선언되어 엔드포인트 출력을 제약.
    """
    image: EncodedImage
    instruction: str
    response_shape: str
    response_schema: dict[str, Any] = field(default_factory=dict)


@dataclass
class DetectionOutcome:
    """
    감지 결과.

    amounts가 비어 있으면 EmptyResult (에러 아님).
    """
    amounts: list[float] = field(default_factory=list)
    model_used: str | None = None
    response_hash: str | None = None
    request_id: int | None = None
    detected_at: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.amounts

    def to_dict(self) -> dict[str, Any]:
        result = {
            "amounts": self.amounts,
            "model_used": self.model_used,
            "response_hash": self.response_hash,
            "request_id": self.request_id,
            "detected_at": self.detected_at,
        }
        # None 값 제거
        return {k: v for k, v in result.items() if v is not None}
