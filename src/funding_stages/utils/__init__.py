"""Shared utility helpers."""

from funding_stages.utils.numbers import clamp, safe_int

__all__ = ["clamp", "safe_int"]
