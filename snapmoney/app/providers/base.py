"""
Amount-Extraction Provider 추상 인터페이스.

- Provider 추상화로 모델 교체 가능
- 자격 증명은 DetectionConfig로 주입 (전역 조회 금지)
- 응답 형태는 호출 전에 스키마로 선언
- 재시도 없음: 사용자 액션당 정확히 1회
"""

import hashlib
import json
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from snapmoney.core.conversion import is_valid_amount
from snapmoney.domain.constants import (
    AMOUNTS_FIELD,
    CREDENTIAL_ENV_VAR,
    DEFAULT_DETECT_MODEL,
    DETECT_INSTRUCTION,
    RESPONSE_SHAPE_ARRAY,
    RESPONSE_SHAPE_OBJECT,
    RESPONSE_SHAPES,
    SHAPE_INSTRUCTION,
)
from snapmoney.domain.errors import ConfigurationError, ErrorCodes
from snapmoney.domain.schemas import DetectionOutcome, EncodedImage, ExtractionRequest

logger = logging.getLogger(__name__)

# =============================================================================
# Configuration
# =============================================================================


@dataclass
class DetectionConfig:
    """
    감지 설정.

    api_key가 None이면 감지는 네트워크 호출 없이 ConfigurationError.
    timeout이 None이면 전송 기본값만 적용.
    """
    api_key: str | None = None
    model: str = DEFAULT_DETECT_MODEL
    response_shape: str = RESPONSE_SHAPE_ARRAY
    timeout: float | None = None

    def __post_init__(self) -> None:
        if self.response_shape not in RESPONSE_SHAPES:
            raise ConfigurationError(
                ErrorCodes.INVALID_RESPONSE_SHAPE,
                "unknown response shape",
                response_shape=self.response_shape,
            )

    def __repr__(self) -> str:
        # api_key는 repr/로그에 노출하지 않음
        masked = "set" if self.api_key else None
        return (
            f"DetectionConfig(api_key={masked!r}, model={self.model!r}, "
            f"response_shape={self.response_shape!r}, timeout={self.timeout!r})"
        )

    @classmethod
    def from_config(
        cls,
        config: dict,
        environ: Mapping[str, str] | None = None,
    ) -> "DetectionConfig":
        """
        설정 + 환경 변수로 생성.

        Args:
            config: 설정 (ai.detect 포함)
            environ: 환경 변수 (None이면 os.environ, 호출 시점에 읽음)
        """
        env = os.environ if environ is None else environ
        detect_config = config.get("ai", {}).get("detect", {}) or {}

        timeout = detect_config.get("timeout")
        return cls(
            api_key=env.get(CREDENTIAL_ENV_VAR) or None,
            model=detect_config.get("model", DEFAULT_DETECT_MODEL),
            response_shape=detect_config.get("response_shape", RESPONSE_SHAPE_ARRAY),
            timeout=float(timeout) if timeout is not None else None,
        )


# =============================================================================
# Request / Response
# =============================================================================


def build_response_schema(response_shape: str) -> dict[str, Any]:
    """응답 형태 → 구조화 출력 스키마."""
    amounts_schema = {"type": "ARRAY", "items": {"type": "NUMBER"}}
    if response_shape == RESPONSE_SHAPE_OBJECT:
        return {
            "type": "OBJECT",
            "properties": {AMOUNTS_FIELD: amounts_schema},
            "required": [AMOUNTS_FIELD],
        }
    return amounts_schema


def build_extraction_request(
    image: EncodedImage,
    response_shape: str = RESPONSE_SHAPE_ARRAY,
) -> ExtractionRequest:
    """인코딩 이미지 + 고정 지시문 + 응답 스키마."""
    instruction = f"{DETECT_INSTRUCTION} {SHAPE_INSTRUCTION[response_shape]}"
    return ExtractionRequest(
        image=image,
        instruction=instruction,
        response_shape=response_shape,
        response_schema=build_response_schema(response_shape),
    )


def parse_amounts(response_text: str | None) -> list[float]:
    """
    응답 텍스트 → 금액 목록 (관대한 파싱).

    - 빈 텍스트, 비JSON, 형식 불일치 → []
    - 배열 또는 {"amounts": [...]} 모두 허용
    - 숫자가 아니거나 음수/비유한인 원소는 버림
    """
    text = (response_text or "").strip()
    if not text:
        return []

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        logger.warning(f"Detection response is not valid JSON ({len(text)} chars)")
        return []

    if isinstance(parsed, dict):
        parsed = parsed.get(AMOUNTS_FIELD)

    if not isinstance(parsed, list):
        logger.warning("Detection response has unexpected shape")
        return []

    amounts = [float(v) for v in parsed if is_valid_amount(v)]
    dropped = len(parsed) - len(amounts)
    if dropped:
        logger.info(f"Dropped {dropped} invalid amount(s) from detection response")
    return amounts


def compute_hash(content: str) -> str:
    """SHA-256 해시 계산."""
    return f"sha256:{hashlib.sha256(content.encode()).hexdigest()[:16]}"


# =============================================================================
# Abstract Provider
# =============================================================================


class AmountExtractor(ABC):
    """
    금액 추출 Provider 추상 인터페이스.

    역할: 이미지 → 후보 금액 목록 (변환 책임 없음)
    """

    def __init__(self, config: DetectionConfig) -> None:
        self.config = config

    @property
    def model(self) -> str:
        return self.config.model

    @abstractmethod
    async def extract_amounts(self, image: EncodedImage) -> DetectionOutcome:
        """
        이미지에서 금액 추출.

        Args:
            image: 인코딩된 이미지

        Returns:
            DetectionOutcome (amounts가 비면 EmptyResult)

        Raises:
            ConfigurationError: 자격 증명 없음/무효
            DetectionError: 네트워크/엔드포인트 실패, 응답 없음
        """
        ...

    def require_credential(self) -> str:
        """
        자격 증명 확인.

        Raises:
            ConfigurationError: 자격 증명 없음 (네트워크 호출 전)
        """
        if not self.config.api_key:
            raise ConfigurationError(
                ErrorCodes.MISSING_CREDENTIAL,
                "missing credential",
                env_var=CREDENTIAL_ENV_VAR,
            )
        return self.config.api_key
