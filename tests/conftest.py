"""
Pytest fixtures for Snap Money tests.

- 네트워크 호출은 모두 mock (FakeExtractor)
- 사진 바이트는 최소 PNG
"""

import base64
from pathlib import Path

import pytest

from snapmoney.app.providers.base import AmountExtractor, DetectionConfig
from snapmoney.domain.schemas import DetectionOutcome, EncodedImage

# 1x1 white pixel PNG
PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8/5+hHgAHggJ/PchI7wAAAABJRU5ErkJggg=="
)


# =============================================================================
# Fake Provider
# =============================================================================


class FakeExtractor(AmountExtractor):
    """
    테스트용 Provider.

    amounts를 그대로 반환하거나 error를 발생시킴.
    calls에 받은 이미지를 기록.
    """

    def __init__(
        self,
        amounts: list[float] | None = None,
        error: Exception | None = None,
        config: DetectionConfig | None = None,
    ):
        super().__init__(config or DetectionConfig(api_key="test-api-key"))
        self.amounts = amounts or []
        self.error = error
        self.calls: list[EncodedImage] = []

    async def extract_amounts(self, image: EncodedImage) -> DetectionOutcome:
        self.calls.append(image)
        if self.error is not None:
            raise self.error
        return DetectionOutcome(amounts=list(self.amounts), model_used=self.model)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def png_bytes() -> bytes:
    """최소 PNG 바이트."""
    return PNG_1X1


@pytest.fixture
def png_file(tmp_path: Path) -> Path:
    """최소 PNG 파일."""
    path = tmp_path / "menu.png"
    path.write_bytes(PNG_1X1)
    return path


@pytest.fixture
def test_config() -> dict:
    """테스트용 설정."""
    return {
        "ai": {
            "detect": {
                "model": "gemini-test",
                "response_shape": "array",
                "timeout": None,
            },
        },
        "conversion": {
            "default_rate": 38.8,
            "locale": "ko-KR",
        },
        "upload": {
            "max_size_mb": None,
            "require_image_mime": False,
        },
        "sessions": {
            "max_sessions": 100,
        },
        "logging": {
            "level": "DEBUG",
        },
    }
