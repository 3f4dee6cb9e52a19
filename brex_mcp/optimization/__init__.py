"""Payload shaping: size estimation, field projection and limiting"""

from .token_optimizer import (
    LimiterConfig,
    LimiterResult,
    LimiterState,
    PayloadLimiter,
    estimate_tokens,
    project_fields,
    project_object,
)

__all__ = [
    "LimiterConfig",
    "LimiterResult",
    "LimiterState",
    "PayloadLimiter",
    "estimate_tokens",
    "project_fields",
    "project_object",
]
