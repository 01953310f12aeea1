"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uv run uvicorn snapmoney.app.main:app --reload
- 프로덕션: uv run uvicorn snapmoney.app.main:app
"""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI

from snapmoney.app.providers import DetectionConfig, GeminiAmountExtractor
from snapmoney.app.providers.base import AmountExtractor

# Routes
from snapmoney.app.routes import converter
from snapmoney.app.services.session import SessionStore
from snapmoney.core.logging import setup_logging
from snapmoney.domain.constants import CREDENTIAL_ENV_VAR

logger = logging.getLogger(__name__)

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = Path(__file__).parent.parent.parent / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


def make_extractor_factory(config: dict):
    """
    감지 Provider 팩토리.

    자격 증명은 호출 시점의 환경 변수에서 읽는다.
    """
    def factory() -> AmountExtractor:
        return GeminiAmountExtractor(DetectionConfig.from_config(config))

    return factory


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: .env/설정 로드, 로깅, 세션 저장소
    종료 시: 세션 폐기 (영속화 없음)
    """
    # Startup
    load_dotenv()
    config = load_config()
    setup_logging(config, secrets=[os.environ.get(CREDENTIAL_ENV_VAR, "")])

    app.state.config = config
    app.state.sessions = SessionStore(config)
    app.state.extractor_factory = make_extractor_factory(config)
    logger.info("Snap Money started")

    yield

    # Shutdown
    logger.info(f"Snap Money stopped ({len(app.state.sessions)} session(s) discarded)")


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="Snap Money",
    description="태국 바트(THB) → 대한민국 원(KRW) 변환",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# Routes
# =============================================================================

# 페이지 라우트 (HTML)
app.include_router(converter.router, prefix="", tags=["Converter"])

# API 라우트
app.include_router(converter.api_router, prefix="/api/sessions", tags=["Converter API"])


@app.get("/health")
async def health() -> dict[str, str]:
    """헬스 체크."""
    return {"status": "ok"}


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "snapmoney.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
