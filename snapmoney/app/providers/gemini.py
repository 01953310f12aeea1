"""
Google Gemini Amount Provider.

예외 정책 (재시도 없음, 1회 시도):
- CREDENTIAL_ERRORS: PermissionDenied, Unauthenticated → ConfigurationError
- 에러 텍스트에 "api key" 포함 → ConfigurationError
- 그 외 모든 예외 → DetectionError (원인 메시지 덧붙임)
"""

import asyncio
import base64
import logging
from datetime import UTC, datetime
from typing import Any

from google.api_core.exceptions import PermissionDenied, Unauthenticated

from snapmoney.domain.constants import MSG_CREDENTIAL, MSG_DETECTION_FAILED
from snapmoney.domain.errors import (
    ConfigurationError,
    DetectionError,
    ErrorCodes,
    SnapMoneyError,
)
from snapmoney.domain.schemas import DetectionOutcome, EncodedImage, ExtractionRequest

from .base import (
    AmountExtractor,
    DetectionConfig,
    build_extraction_request,
    compute_hash,
    parse_amounts,
)

logger = logging.getLogger(__name__)

CREDENTIAL_ERRORS: tuple[type[Exception], ...] = (
    PermissionDenied,   # 권한 오류
    Unauthenticated,    # API 키 오류
)


def is_credential_error(error: Exception) -> bool:
    """자격 증명 관련 실패인지 (예외 타입 또는 메시지 패턴)."""
    if isinstance(error, CREDENTIAL_ERRORS):
        return True
    error_str = str(error).lower()
    return "api key" in error_str or "api_key" in error_str


class GeminiAmountExtractor(AmountExtractor):
    """
    Gemini 금액 추출 Provider.

    Usage:
        provider = GeminiAmountExtractor(
            DetectionConfig(api_key="...", model="gemini-2.5-flash")
        )
        outcome = await provider.extract_amounts(encoded_image)
    """

    def __init__(self, config: DetectionConfig) -> None:
        super().__init__(config)
        self._client: Any = None

    def _get_client(self) -> Any:
        """Gemini 클라이언트 (lazy init)."""
        if self._client is None:
            try:
                import google.generativeai as genai
            except ImportError as e:
                raise ConfigurationError(
                    ErrorCodes.GEMINI_NOT_INSTALLED,
                    "google-generativeai package not installed. "
                    "Run: pip install google-generativeai",
                ) from e

            genai.configure(api_key=self.config.api_key)
            self._client = genai
        return self._client

    async def extract_amounts(self, image: EncodedImage) -> DetectionOutcome:
        """
        이미지에서 금액 추출.

        자격 증명이 없으면 클라이언트 생성 전에 ConfigurationError.
        """
        self.require_credential()
        request = build_extraction_request(image, self.config.response_shape)

        logger.info(
            f"Detecting amounts with {self.model} "
            f"(shape={request.response_shape}, mime={image.mime_type})"
        )

        try:
            response_text = await self._call_with_timeout(request)

        except SnapMoneyError:
            raise

        except TimeoutError as e:
            logger.error(f"Detection timed out after {self.config.timeout}s")
            raise DetectionError(
                ErrorCodes.DETECTION_TIMEOUT,
                f"{MSG_DETECTION_FAILED}: 요청 시간이 초과되었습니다.",
                model=self.model,
            ) from e

        except Exception as e:
            if is_credential_error(e):
                logger.error(f"Credential error from detection endpoint: {type(e).__name__}")
                raise ConfigurationError(
                    ErrorCodes.INVALID_CREDENTIAL,
                    MSG_CREDENTIAL,
                    model=self.model,
                ) from e

            logger.error(f"Detection failed: {e}", exc_info=True)
            raise DetectionError(
                ErrorCodes.DETECTION_FAILED,
                f"{MSG_DETECTION_FAILED}: {e}",
                model=self.model,
            ) from e

        amounts = parse_amounts(response_text)
        logger.info(f"Detected {len(amounts)} amount(s)")

        return DetectionOutcome(
            amounts=amounts,
            model_used=self.model,
            response_hash=compute_hash(response_text),
            detected_at=datetime.now(UTC).isoformat(),
        )

    async def _call_with_timeout(self, request: ExtractionRequest) -> str:
        """timeout이 설정된 경우에만 상한 적용."""
        if self.config.timeout is None:
            return await self._call_api(request)
        return await asyncio.wait_for(self._call_api(request), timeout=self.config.timeout)

    async def _call_api(self, request: ExtractionRequest) -> str:
        """
        실제 Gemini API 호출.

        Returns:
            응답 원문 텍스트 (빈 문자열 가능)

        Raises:
            DetectionError: 응답 자체가 없음
        """
        genai = self._get_client()
        model_instance = genai.GenerativeModel(self.model)

        # SDK가 전송 시 다시 인코딩하므로 inline part에는 원시 바이트를 넣음
        image_part = {
            "mime_type": request.image.mime_type,
            "data": base64.b64decode(request.image.data),
        }
        generation_config = {
            "response_mime_type": "application/json",
            "response_schema": request.response_schema,
        }

        # 동기 SDK 호출은 이벤트 루프 밖에서 실행
        response = await asyncio.to_thread(
            model_instance.generate_content,
            [image_part, request.instruction],
            generation_config=generation_config,
        )

        if response is None:
            raise DetectionError(
                ErrorCodes.EMPTY_RESPONSE,
                f"{MSG_DETECTION_FAILED}: 모델이 응답을 반환하지 않았습니다.",
                model=self.model,
            )

        try:
            text = response.text
        except ValueError as e:
            # 후보가 없거나 차단된 응답
            raise DetectionError(
                ErrorCodes.EMPTY_RESPONSE,
                f"{MSG_DETECTION_FAILED}: 모델이 응답을 반환하지 않았습니다.",
                model=self.model,
            ) from e

        return text or ""
