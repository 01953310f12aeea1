"""
test_formatting.py - 표시 포맷 테스트

- 수동 모드: 최대 소수 2자리
- 사진 모드: 소수 0자리
- 천 단위 구분, 뒤 0 제거, half-up 반올림
"""

import math

import pytest

from snapmoney.core.formatting import format_krw, format_number, format_thb


class TestFormatNumber:
    """format_number 테스트."""

    @pytest.mark.parametrize(
        "value,digits,expected",
        [
            (46560.0, 2, "46,560"),
            (1234.5678, 2, "1,234.57"),
            (1234.5, 2, "1,234.5"),
            (1234.5, 0, "1,235"),
            (1234.4, 0, "1,234"),
            (999.0, 0, "999"),
            (1000.0, 0, "1,000"),
            (1234567.891, 3, "1,234,567.891"),
            (0.0, 2, "0"),
        ],
    )
    def test_ko_kr(self, value, digits, expected):
        assert format_number(value, digits, "ko-KR") == expected

    def test_negative(self):
        assert format_number(-1234.5, 0) == "-1,235"

    def test_negative_zero_not_shown(self):
        assert format_number(-0.001, 2) == "0"

    def test_locale_separators(self):
        """de-DE: 점 천 단위, 쉼표 소수점."""
        assert format_number(1234.5, 2, "de-DE") == "1.234,5"

    def test_unknown_locale_defaults(self):
        assert format_number(1234.5, 2, "xx-XX") == "1,234.5"


class TestCurrencyDisplay:
    """통화 표시 테스트."""

    def test_manual_display(self):
        """1200 THB × 38.8 → "46,560 원"."""
        assert format_krw(1200 * 38.8, 2) == "46,560 원"

    def test_photo_display_rounds_to_integer(self):
        assert format_krw(3891.64, 0) == "3,892 원"

    def test_thb_display(self):
        assert format_thb(1200.0) == "1,200 THB"
        assert format_thb(99.5) == "99.5 THB"


class TestLargeValues:
    """기본 Decimal 정밀도(28자리)를 넘는 값."""

    def test_large_finite_value(self):
        assert format_number(1e30, 2) == "1,000,000,000,000,000,000,000,000,000,000"

    def test_max_float(self):
        text = format_krw(1e308, 2)

        assert text.startswith("100,000,000")
        assert text.endswith(" 원")

    @pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
    def test_non_finite_rejected(self, value):
        with pytest.raises(ValueError):
            format_number(value, 2)
