"""
Application Services.

역할:
- session: 모드 상태 머신, 감지 요청 가드, 환율 재계산
"""

from .session import ConverterSession, ManualState, PhotoState, SessionStore

__all__ = [
    "ConverterSession",
    "ManualState",
    "PhotoState",
    "SessionStore",
]
