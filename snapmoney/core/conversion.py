"""
Conversion Engine: THB → KRW 계산.

규칙:
- convert(amount, rate) == amount * rate (계산 단계 반올림 없음)
- 항상 원래(THB) 금액에서 재계산, 이전 converted에 다시 곱하지 않음
- 로캘/자릿수는 core/formatting 책임 (여기서는 모름)
"""

import math
from collections.abc import Iterable

from snapmoney.domain.constants import DEFAULT_EXCHANGE_RATE
from snapmoney.domain.errors import ErrorCodes, ValidationError
from snapmoney.domain.schemas import ConversionResult


def convert(amount: float, rate: float) -> float:
    """원래 금액 × 환율. 반올림하지 않음."""
    return amount * rate


def convert_all(amounts: Iterable[float], rate: float) -> list[ConversionResult]:
    """
    금액 목록 일괄 변환.

    Args:
        amounts: 원래 금액 목록 (THB)
        rate: 환율

    Returns:
        입력 순서를 유지한 ConversionResult 목록
    """
    return [ConversionResult(original=a, converted=convert(a, rate)) for a in amounts]


def recompute(
    results: Iterable[ConversionResult],
    rate: float,
) -> list[ConversionResult]:
    """저장된 original에서 새 환율로 재계산."""
    return convert_all((r.original for r in results), rate)


def ensure_finite(results: list[ConversionResult]) -> list[ConversionResult]:
    """
    표시 가능한 결과인지 확인.

    금액과 환율이 각각 유한해도 곱이 float 범위를 넘으면 inf가 된다.

    Raises:
        ValidationError: converted가 유한하지 않은 결과가 있음
    """
    for r in results:
        if not math.isfinite(r.converted):
            raise ValidationError(
                ErrorCodes.OUT_OF_RANGE,
                "converted amount is out of range",
                original=r.original,
            )
    return results


# =============================================================================
# Input Parsing
# =============================================================================


def _to_float(value: str | float | int | None) -> float | None:
    """문자열/숫자 → float. 변환 불가면 None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    s = value.strip().replace(",", "").replace(" ", "")
    if not s:
        return None
    try:
        return float(s)
    except ValueError:
        return None


def is_valid_amount(value: object) -> bool:
    """MonetaryAmount 불변식: 유한하고 0 이상인 숫자 (bool 제외)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def parse_amount(text: str) -> float:
    """
    수동 입력 문자열 → 금액.

    Raises:
        ValidationError: 빈 입력, 비숫자, 비유한, 음수
    """
    if not text or not text.strip():
        raise ValidationError(ErrorCodes.EMPTY_AMOUNT, "amount is empty")

    value = _to_float(text)
    if value is None or not is_valid_amount(value):
        raise ValidationError(
            ErrorCodes.INVALID_AMOUNT,
            "amount must be a non-negative number",
            value=text,
        )
    return value


def resolve_rate(
    text: str | float | None,
    default: float = DEFAULT_EXCHANGE_RATE,
) -> float:
    """
    수동 모드 계산용 환율.

    비숫자/비유한/0 이하 → default.
    """
    value = _to_float(text)
    if value is None or not math.isfinite(value) or value <= 0:
        return default
    return value


def parse_rate_as_provided(text: str | float | None) -> float:
    """
    사진 모드 재계산용 환율.

    입력값을 그대로 사용하며 비숫자만 0.0으로 해석.
    """
    value = _to_float(text)
    if value is None or not math.isfinite(value):
        return 0.0
    return value
