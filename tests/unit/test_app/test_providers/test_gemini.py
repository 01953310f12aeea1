"""
test_gemini.py - Gemini Amount Provider 테스트

예외 정책 검증 (재시도 없음):
- 자격 증명 없음 → 네트워크 호출 없이 ConfigurationError
- PermissionDenied, Unauthenticated, "api key" 메시지 → ConfigurationError
- 그 외 → DetectionError (원인 메시지 포함)
- 빈/비JSON 응답 → 빈 결과 (에러 아님), 응답 없음 → DetectionError
"""

import asyncio
import base64
import sys
from unittest.mock import MagicMock, PropertyMock, patch

import pytest
from google.api_core.exceptions import (
    InvalidArgument,
    PermissionDenied,
    ServiceUnavailable,
    Unauthenticated,
)

from snapmoney.app.providers.base import DetectionConfig
from snapmoney.app.providers.gemini import (
    CREDENTIAL_ERRORS,
    GeminiAmountExtractor,
    is_credential_error,
)
from snapmoney.domain.errors import ConfigurationError, DetectionError, ErrorCodes
from snapmoney.domain.schemas import EncodedImage

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def image(png_bytes) -> EncodedImage:
    return EncodedImage(data=base64.b64encode(png_bytes).decode(), mime_type="image/png")


@pytest.fixture
def provider():
    """기본 Gemini provider."""
    return GeminiAmountExtractor(
        DetectionConfig(api_key="test-api-key", model="gemini-test")
    )


def install_client(provider: GeminiAmountExtractor, text=None, side_effect=None) -> MagicMock:
    """mock genai 클라이언트 주입. generate_content mock 반환."""
    mock_model = MagicMock()
    if side_effect is not None:
        mock_model.generate_content.side_effect = side_effect
    else:
        mock_response = MagicMock()
        mock_response.text = text
        mock_model.generate_content.return_value = mock_response

    mock_genai = MagicMock()
    mock_genai.GenerativeModel.return_value = mock_model
    provider._client = mock_genai
    return mock_model


# =============================================================================
# 초기화 테스트
# =============================================================================


class TestGeminiAmountExtractorInit:
    """초기화 테스트."""

    def test_model_from_config(self, provider):
        assert provider.model == "gemini-test"

    def test_client_lazy_init(self, provider):
        assert provider._client is None

    def test_credential_errors_defined(self):
        assert PermissionDenied in CREDENTIAL_ERRORS
        assert Unauthenticated in CREDENTIAL_ERRORS


# =============================================================================
# 자격 증명 테스트
# =============================================================================


class TestCredential:
    """자격 증명 전제 조건."""

    @pytest.mark.asyncio
    async def test_missing_credential_no_network(self, image):
        """자격 증명 없음 → 클라이언트 생성 없이 즉시 실패."""
        provider = GeminiAmountExtractor(DetectionConfig(api_key=None))

        with patch.object(GeminiAmountExtractor, "_get_client") as get_client:
            with pytest.raises(ConfigurationError) as exc_info:
                await provider.extract_amounts(image)

        get_client.assert_not_called()
        assert exc_info.value.code == ErrorCodes.MISSING_CREDENTIAL

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            Unauthenticated("invalid credentials"),
            PermissionDenied("forbidden"),
            InvalidArgument("API key not valid. Please pass a valid API key."),
            RuntimeError("Missing api_key"),
        ],
    )
    async def test_credential_failures_map_to_configuration_error(self, provider, image, error):
        install_client(provider, side_effect=error)

        with pytest.raises(ConfigurationError) as exc_info:
            await provider.extract_amounts(image)

        assert exc_info.value.code == ErrorCodes.INVALID_CREDENTIAL
        assert "API 키" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_sdk_not_installed(self, provider, image):
        """SDK 임포트 실패 → ConfigurationError (감지 실패가 아님)."""
        with patch.dict(sys.modules, {"google.generativeai": None}):
            with pytest.raises(ConfigurationError) as exc_info:
                await provider.extract_amounts(image)

        assert exc_info.value.code == ErrorCodes.GEMINI_NOT_INSTALLED

    def test_is_credential_error(self):
        assert is_credential_error(Unauthenticated("x"))
        assert is_credential_error(ValueError("Invalid API Key"))
        assert not is_credential_error(ServiceUnavailable("down"))
        assert not is_credential_error(ConnectionError("reset"))


# =============================================================================
# extract_amounts 테스트 (Mock)
# =============================================================================


class TestExtractAmounts:
    """extract_amounts 메서드 테스트."""

    @pytest.mark.asyncio
    async def test_successful_extraction(self, provider, image, png_bytes):
        mock_model = install_client(provider, text="[120, 45.5, 1000]")

        outcome = await provider.extract_amounts(image)

        assert outcome.amounts == [120.0, 45.5, 1000.0]
        assert outcome.is_empty is False
        assert outcome.model_used == "gemini-test"
        assert outcome.response_hash.startswith("sha256:")
        mock_model.generate_content.assert_called_once()

        provider._client.GenerativeModel.assert_called_once_with("gemini-test")

    @pytest.mark.asyncio
    async def test_request_carries_image_and_schema(self, provider, image, png_bytes):
        mock_model = install_client(provider, text="[]")

        await provider.extract_amounts(image)

        args, kwargs = mock_model.generate_content.call_args
        image_part, instruction = args[0]
        assert image_part == {"mime_type": "image/png", "data": png_bytes}
        assert "Thai Baht" in instruction
        assert kwargs["generation_config"]["response_mime_type"] == "application/json"
        assert kwargs["generation_config"]["response_schema"]["type"] == "ARRAY"

    @pytest.mark.asyncio
    async def test_object_shape(self, image):
        provider = GeminiAmountExtractor(
            DetectionConfig(api_key="k", response_shape="object")
        )
        mock_model = install_client(provider, text='{"amounts": [99]}')

        outcome = await provider.extract_amounts(image)

        assert outcome.amounts == [99.0]
        schema = mock_model.generate_content.call_args.kwargs["generation_config"]["response_schema"]
        assert schema["type"] == "OBJECT"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["[]", "", None, "not json"])
    async def test_empty_or_malformed_is_empty_result(self, provider, image, text):
        """빈/파싱 불가 응답 → EmptyResult (에러 아님)."""
        install_client(provider, text=text)

        outcome = await provider.extract_amounts(image)

        assert outcome.is_empty is True

    @pytest.mark.asyncio
    async def test_missing_response_is_detection_error(self, provider, image):
        mock_model = install_client(provider)
        mock_model.generate_content.return_value = None

        with pytest.raises(DetectionError) as exc_info:
            await provider.extract_amounts(image)

        assert exc_info.value.code == ErrorCodes.EMPTY_RESPONSE

    @pytest.mark.asyncio
    async def test_blocked_response_is_detection_error(self, provider, image):
        """response.text 접근 실패 (후보 없음) → DetectionError."""
        mock_model = install_client(provider)
        response = MagicMock()
        type(response).text = PropertyMock(side_effect=ValueError("no candidates"))
        mock_model.generate_content.return_value = response

        with pytest.raises(DetectionError) as exc_info:
            await provider.extract_amounts(image)

        assert exc_info.value.code == ErrorCodes.EMPTY_RESPONSE

    @pytest.mark.asyncio
    async def test_endpoint_failure_appends_message(self, provider, image):
        mock_model = install_client(provider, side_effect=ServiceUnavailable("backend down"))

        with pytest.raises(DetectionError) as exc_info:
            await provider.extract_amounts(image)

        assert exc_info.value.code == ErrorCodes.DETECTION_FAILED
        assert "금액 감지 중 오류가 발생했습니다" in exc_info.value.message
        assert "backend down" in exc_info.value.message
        # 재시도 없음
        assert mock_model.generate_content.call_count == 1

    @pytest.mark.asyncio
    async def test_timeout(self, image):
        provider = GeminiAmountExtractor(DetectionConfig(api_key="k", timeout=0.01))

        async def slow_call(request):
            await asyncio.sleep(10)

        with patch.object(provider, "_call_api", side_effect=slow_call):
            with pytest.raises(DetectionError) as exc_info:
                await provider.extract_amounts(image)

        assert exc_info.value.code == ErrorCodes.DETECTION_TIMEOUT
