"""
Display formatting: 로캘별 숫자 표시.

Conversion Engine과 분리. 자릿수는 호출 지점이 결정한다
(수동 모드 2자리, 사진 모드 0자리).
"""

import math
from decimal import ROUND_HALF_UP, Decimal, localcontext

from snapmoney.domain.constants import (
    CURRENCY_SUFFIX,
    DEFAULT_LOCALE,
    MANUAL_FRACTION_DIGITS,
    SOURCE_CURRENCY,
    SOURCE_FRACTION_DIGITS,
    SOURCE_LOCALE,
    TARGET_CURRENCY,
)

# 로캘 → (천 단위 구분자, 소수점)
LOCALE_SEPARATORS: dict[str, tuple[str, str]] = {
    "ko-KR": (",", "."),
    "en-US": (",", "."),
    "th-TH": (",", "."),
    "de-DE": (".", ","),
}


def format_number(
    value: float,
    max_fraction_digits: int,
    locale: str = DEFAULT_LOCALE,
) -> str:
    """
    숫자를 로캘 표시 문자열로 변환.

    - half-up 반올림 후 소수 뒤 0 제거
    - 정수부 3자리마다 구분자

    Examples:
        format_number(46560.0, 2) → "46,560"
        format_number(1234.5678, 2) → "1,234.57"
        format_number(1234.5, 0) → "1,235"
    """
    group_sep, decimal_sep = LOCALE_SEPARATORS.get(locale, (",", "."))

    if not math.isfinite(value):
        raise ValueError(f"cannot format non-finite value: {value!r}")

    exact = Decimal(repr(value))
    quantum = Decimal(1).scaleb(-max_fraction_digits)
    with localcontext() as ctx:
        # quantize 결과 자릿수가 기본 정밀도(28)를 넘을 수 있음 (1e30 등)
        ctx.prec = max(ctx.prec, exact.adjusted() + max_fraction_digits + 2)
        rounded = exact.quantize(quantum, rounding=ROUND_HALF_UP)

    sign = "-" if rounded < 0 else ""
    integer_part, _, fraction_part = f"{rounded.copy_abs():f}".partition(".")
    fraction_part = fraction_part.rstrip("0")

    groups = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)

    text = group_sep.join(groups)
    if fraction_part:
        text = f"{text}{decimal_sep}{fraction_part}"

    # -0 표시 방지
    if sign and text.strip("0" + group_sep + decimal_sep) == "":
        sign = ""
    return sign + text


def format_krw(
    value: float,
    fraction_digits: int = MANUAL_FRACTION_DIGITS,
    locale: str = DEFAULT_LOCALE,
) -> str:
    """KRW 표시: "46,560 원"."""
    suffix = CURRENCY_SUFFIX[TARGET_CURRENCY]
    return f"{format_number(value, fraction_digits, locale)} {suffix}"


def format_thb(value: float, locale: str = SOURCE_LOCALE) -> str:
    """THB 표시: "1,200 THB"."""
    suffix = CURRENCY_SUFFIX[SOURCE_CURRENCY]
    return f"{format_number(value, SOURCE_FRACTION_DIGITS, locale)} {suffix}"
