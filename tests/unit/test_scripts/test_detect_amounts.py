"""
test_detect_amounts.py - detect_amounts.py 스크립트 테스트

테스트 케이스:
- TC1: 감지 결과를 THB → KRW로 출력 (소수 0자리)
- TC2: 금액 없음 → 안내 메시지, 종료 코드 0
- TC3: 읽기/감지 실패 → 사용자 메시지, 종료 코드 1
- TC4: 자격 증명 없음 → 종료 코드 1 (네트워크 호출 없음)
"""

import asyncio
import sys
from pathlib import Path

import pytest
from conftest import FakeExtractor

# scripts 모듈 임포트를 위한 경로 추가
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent / "scripts"))

import detect_amounts
from detect_amounts import main, run

from snapmoney.domain.constants import MSG_CREDENTIAL, MSG_NO_AMOUNTS
from snapmoney.domain.errors import DetectionError, ErrorCodes


class TestRun:
    """run() 테스트."""

    def test_prints_conversions(self, png_file, capsys):
        extractor = FakeExtractor([120, 45.5])

        code = asyncio.run(run(png_file, 38.8, extractor))

        out = capsys.readouterr().out
        assert code == 0
        assert "120 THB → 4,656 원" in out
        assert "45.5 THB → 1,765 원" in out
        assert extractor.calls[0].mime_type == "image/png"

    def test_no_amounts(self, png_file, capsys):
        code = asyncio.run(run(png_file, 38.8, FakeExtractor([])))

        assert code == 0
        assert MSG_NO_AMOUNTS in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        extractor = FakeExtractor([1])

        code = asyncio.run(run(tmp_path / "missing.jpg", 38.8, extractor))

        assert code == 1
        assert extractor.calls == []
        assert "❌" in capsys.readouterr().out

    def test_detection_failure(self, png_file, capsys):
        error = DetectionError(ErrorCodes.DETECTION_FAILED, "금액 감지 중 오류가 발생했습니다: down")

        code = asyncio.run(run(png_file, 38.8, FakeExtractor(error=error)))

        assert code == 1
        assert "down" in capsys.readouterr().out


class TestMain:
    """main() 테스트."""

    @pytest.fixture(autouse=True)
    def no_dotenv(self, monkeypatch):
        monkeypatch.setattr(detect_amounts, "load_dotenv", lambda: None)

    def test_missing_credential(self, png_file, tmp_path, monkeypatch, capsys):
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        config_path = tmp_path / "config.yaml"
        config_path.write_text("conversion:\n  default_rate: 40\n", encoding="utf-8")

        code = main([str(png_file), "--config", str(config_path)])

        assert code == 1
        assert MSG_CREDENTIAL in capsys.readouterr().out

    def test_invalid_shape_rejected(self, png_file):
        with pytest.raises(SystemExit):
            main([str(png_file), "--shape", "table"])
