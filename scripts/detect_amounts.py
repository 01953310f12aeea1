#!/usr/bin/env python3
"""
detect_amounts.py - 사진에서 바트 금액을 감지해 원화로 변환

.env의 GOOGLE_API_KEY를 사용해 1회 감지한다 (재시도 없음).

사용법:
    uv run python scripts/detect_amounts.py menu.jpg

    # 환율 지정
    uv run python scripts/detect_amounts.py menu.jpg --rate 40

    # 응답 형태/모델 지정
    uv run python scripts/detect_amounts.py menu.jpg --shape object --model gemini-2.5-flash

종료 코드:
    0: 성공 (금액 없음 포함)
    1: 설정/감지/읽기 실패
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# 프로젝트 루트를 path에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from snapmoney.app.main import load_config
from snapmoney.app.providers import DetectionConfig, GeminiAmountExtractor
from snapmoney.app.providers.base import AmountExtractor
from snapmoney.app.services.session import user_message
from snapmoney.core.conversion import convert_all, ensure_finite, resolve_rate
from snapmoney.core.encoding import encode_file
from snapmoney.core.formatting import format_krw, format_thb
from snapmoney.core.logging import setup_logging
from snapmoney.domain.constants import (
    CREDENTIAL_ENV_VAR,
    DEFAULT_EXCHANGE_RATE,
    MSG_NO_AMOUNTS,
    PHOTO_FRACTION_DIGITS,
    RESPONSE_SHAPES,
)
from snapmoney.domain.errors import SnapMoneyError


async def run(
    image_path: Path,
    rate: float,
    extractor: AmountExtractor,
) -> int:
    """
    감지 1회 실행 후 결과 출력.

    Returns:
        종료 코드
    """
    try:
        encoded = encode_file(image_path)
        outcome = await extractor.extract_amounts(encoded)
        results = ensure_finite(convert_all(outcome.amounts, rate))
    except SnapMoneyError as e:
        print(f"❌ {user_message(e)}")
        return 1

    if outcome.is_empty:
        print(f"⚠️ {MSG_NO_AMOUNTS}")
        return 0

    print(f"📥 {len(outcome.amounts)}개 금액 감지 (환율 1 THB = {rate} KRW)")
    for result in results:
        print(
            f"  {format_thb(result.original)} → "
            f"{format_krw(result.converted, PHOTO_FRACTION_DIGITS)}"
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="사진에서 바트 금액을 감지해 원화로 변환",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("image", type=Path, help="영수증 또는 가격표 사진 경로")
    parser.add_argument(
        "--rate",
        type=str,
        default=None,
        help="적용 환율 (기본: default.yaml의 conversion.default_rate)",
    )
    parser.add_argument(
        "--shape",
        choices=RESPONSE_SHAPES,
        default=None,
        help="응답 형태 (기본: default.yaml의 ai.detect.response_shape)",
    )
    parser.add_argument("--model", type=str, default=None, help="감지 모델 ID")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="설정 파일 경로 (기본: 프로젝트 루트 default.yaml)",
    )

    args = parser.parse_args(argv)

    # .env 파일 로드
    load_dotenv()
    config = load_config(args.config)
    setup_logging(config, secrets=[os.environ.get(CREDENTIAL_ENV_VAR, "")])

    ai_config = config.setdefault("ai", {})
    detect_config = ai_config.get("detect") or {}
    ai_config["detect"] = detect_config
    if args.shape:
        detect_config["response_shape"] = args.shape
    if args.model:
        detect_config["model"] = args.model

    default_rate = float(config.get("conversion", {}).get("default_rate", DEFAULT_EXCHANGE_RATE))
    rate = resolve_rate(args.rate, default_rate)

    try:
        extractor = GeminiAmountExtractor(DetectionConfig.from_config(config))
    except SnapMoneyError as e:
        print(f"❌ {user_message(e)}")
        return 1

    return asyncio.run(run(args.image, rate, extractor))


if __name__ == "__main__":
    sys.exit(main())
