"""Snap Money: 태국 바트(THB) → 대한민국 원(KRW) 변환."""

__version__ = "0.1.0"
