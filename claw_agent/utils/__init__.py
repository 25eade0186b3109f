"""Utilities: guarded math helpers."""

from claw_agent.utils.math_helpers import clamp, normalise, safe_delta, safe_ratio

__all__ = [
    "clamp",
    "normalise",
    "safe_delta",
    "safe_ratio",
]
