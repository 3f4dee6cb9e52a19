#!/usr/bin/env python3
"""
Token optimization module for the Brex MCP server.
Keeps responses inside the consuming model's context budget by projecting
large payloads down to summary fields.
"""

import copy
import json
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from brex_mcp.config.constants import (
    CHARS_PER_TOKEN,
    HARD_TOKEN_LIMIT,
    SUMMARY_FIELD_SETS,
)
from brex_mcp.utils.validation import (
    ValidationError,
    validate_bool,
    validate_string_list,
)

logger = logging.getLogger(__name__)


def estimate_tokens(text: str) -> int:
    """
    Approximate the number of LLM tokens a text consumes.

    Uses a fixed ratio of CHARS_PER_TOKEN UTF-8 bytes per token. This is a
    budget check, not a tokenizer: non-ASCII text counts a little heavier,
    which errs on the safe side.

    Examples:
        >>> estimate_tokens("")
        0
        >>> estimate_tokens("abcd")
        1
        >>> estimate_tokens("abcde")
        2
    """
    if not text:
        return 0
    return math.ceil(len(text.encode("utf-8", errors="replace")) / CHARS_PER_TOKEN)


def serialize_for_estimate(data: Any) -> str:
    """Compact JSON, the same shape a naive response would carry."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str)


# =============================================================================
# Field projection
# =============================================================================

_MISSING = object()


def _pick(obj: Any, parts: Sequence[str]) -> Any:
    """Walk a dotted path through nested dicts; _MISSING if any step is absent."""
    current = obj
    for part in parts:
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _assign(target: Dict, parts: Sequence[str], value: Any) -> None:
    """Write value at the nested position, creating intermediate dicts."""
    for part in parts[:-1]:
        child = target.get(part)
        if not isinstance(child, dict):
            child = {}
            target[part] = child
        target = child
    target[parts[-1]] = value


def project_object(obj: Any, fields: Sequence[str]) -> Dict[str, Any]:
    """
    Project a single object onto dotted field paths.

    Paths whose segments are missing are skipped. Values are deep-copied so
    the output never aliases the source.

    Examples:
        >>> project_object({"id": "x", "amount": {"amount": 10, "currency": "USD"}},
        ...                ["amount.amount", "memo"])
        {'amount': {'amount': 10}}
    """
    out: Dict[str, Any] = {}
    if not isinstance(obj, dict):
        return out

    for path in fields:
        parts = path.split(".")
        value = _pick(obj, parts)
        if value is _MISSING:
            continue
        # an ancestor value always contains what its descendants wrote
        _assign(out, parts, copy.deepcopy(value))
    return out


@dataclass
class ProjectionResult:
    """Projected items and whether a projection was actually applied."""

    items: List[Dict[str, Any]]
    applied_projection: bool


def project_fields(items: Sequence[Any], fields: Optional[Sequence[str]]) -> ProjectionResult:
    """
    Project a sequence of objects onto a list of dotted field paths.

    This is the most effective token optimization - returns only requested
    fields, keeping their nesting. Overlapping paths such as "amount.amount"
    and "amount.currency" merge into one "amount" object. Arrays reachable by
    a path are copied whole.

    Args:
        items: Objects to project (order is preserved)
        fields: Dotted paths; None or empty means no projection

    Returns:
        ProjectionResult with the projected items
    """
    if not fields:
        return ProjectionResult(items=list(items), applied_projection=False)

    return ProjectionResult(
        items=[project_object(item, fields) for item in items],
        applied_projection=True,
    )


# =============================================================================
# Payload limiter
# =============================================================================


class LimiterState(str, Enum):
    """How the limiter shaped a payload."""

    NORMAL = "normal"
    FORCED_SUMMARY = "forced_summary"
    AUTO_SUMMARY = "auto_summary"


@dataclass(frozen=True)
class LimiterConfig:
    """Caller shaping hints plus the hard token budget."""

    summary_only: bool = False
    fields: Optional[Tuple[str, ...]] = None
    hard_token_limit: int = HARD_TOKEN_LIMIT

    def __post_init__(self):
        if isinstance(self.hard_token_limit, bool) or not isinstance(
            self.hard_token_limit, int
        ):
            raise ValidationError("hard_token_limit must be an integer")
        if self.hard_token_limit <= 0:
            raise ValidationError("hard_token_limit must be > 0")
        if self.fields is not None:
            object.__setattr__(self, "fields", tuple(self.fields))

    @property
    def explicit_fields(self) -> Optional[Tuple[str, ...]]:
        """Caller fields, or None when absent or empty."""
        return self.fields or None

    @classmethod
    def from_query_params(
        cls, query: Mapping[str, str], hard_token_limit: int = HARD_TOKEN_LIMIT
    ) -> "LimiterConfig":
        """
        Read `fields` (comma-separated) and `summary_only` ("true") from a
        resource URI's query parameters.
        """
        fields = validate_string_list(query.get("fields", ""), "fields")
        return cls(
            summary_only=query.get("summary_only") == "true",
            fields=tuple(fields) or None,
            hard_token_limit=hard_token_limit,
        )

    @classmethod
    def from_arguments(
        cls, arguments: Mapping[str, Any], hard_token_limit: int = HARD_TOKEN_LIMIT
    ) -> "LimiterConfig":
        """Read `fields` and `summary_only` from validated tool arguments."""
        summary_only = arguments.get("summary_only")
        fields = arguments.get("fields")
        return cls(
            summary_only=validate_bool(summary_only, "summary_only")
            if summary_only is not None
            else False,
            fields=tuple(validate_string_list(fields, "fields")) or None
            if fields is not None
            else None,
            hard_token_limit=hard_token_limit,
        )


@dataclass
class LimiterResult:
    """Shaped items with the metadata describing what was done."""

    items: List[Any]
    summary_applied: bool
    estimated_tokens: int
    state: LimiterState = LimiterState.NORMAL
    fields_used: Optional[Tuple[str, ...]] = field(default=None)

    def to_envelope(
        self, key: str, next_cursor: Optional[str] = None, **extra_meta: Any
    ) -> Dict[str, Any]:
        """
        Wrap items with response metadata.

        Examples:
            >>> LimiterResult([{"id": 1}], False, 3).to_envelope("budgets")
            {'budgets': [{'id': 1}], 'meta': {'count': 1, 'next_cursor': None, 'summary_applied': False}}
        """
        meta = {
            "count": len(self.items),
            "next_cursor": next_cursor or None,
            "summary_applied": self.summary_applied,
        }
        meta.update(extra_meta)
        return {key: self.items, "meta": meta}


class PayloadLimiter:
    """
    Decides per request whether a payload goes out verbatim or projected.

    Decision order:
    1. Explicit fields or summary_only: project (FORCED_SUMMARY)
    2. Estimated tokens strictly above the hard limit: project to the data
       kind's default fields (AUTO_SUMMARY)
    3. Otherwise pass the items through untouched (NORMAL)
    """

    def __init__(self, field_sets: Optional[Mapping[str, Sequence[str]]] = None):
        self.field_sets: Mapping[str, Sequence[str]] = (
            SUMMARY_FIELD_SETS if field_sets is None else field_sets
        )

    def default_fields(self, kind: str) -> Tuple[str, ...]:
        """Default summary projection for a data kind."""
        try:
            return tuple(self.field_sets[kind])
        except KeyError:
            raise ValueError(f"No default summary fields for data kind '{kind}'")

    def limit(
        self, items: List[Any], kind: str, config: Optional[LimiterConfig] = None
    ) -> LimiterResult:
        """
        Shape a list of result objects to fit the token budget.

        Args:
            items: Already-fetched, JSON-like result objects
            kind: Data kind keying the default field set (e.g. "expense")
            config: Shaping hints; defaults to LimiterConfig()

        Returns:
            LimiterResult; in the NORMAL state `items` is the input list itself
        """
        config = config or LimiterConfig()
        estimated = estimate_tokens(serialize_for_estimate(items))

        if config.explicit_fields or config.summary_only:
            fields = config.explicit_fields or self.default_fields(kind)
            projected = project_fields(items, fields)
            logger.debug(
                f"Forced summary for {len(items)} {kind} items onto {len(fields)} fields"
            )
            return LimiterResult(
                items=projected.items,
                summary_applied=True,
                estimated_tokens=estimated,
                state=LimiterState.FORCED_SUMMARY,
                fields_used=fields,
            )

        if estimated > config.hard_token_limit:
            fields = self.default_fields(kind)
            projected = project_fields(items, fields)
            logger.info(
                f"Payload of ~{estimated} tokens exceeds limit of "
                f"{config.hard_token_limit}; summarized {len(items)} {kind} items"
            )
            return LimiterResult(
                items=projected.items,
                summary_applied=True,
                estimated_tokens=estimated,
                state=LimiterState.AUTO_SUMMARY,
                fields_used=fields,
            )

        logger.debug(f"Returning {len(items)} {kind} items as-is (~{estimated} tokens)")
        return LimiterResult(
            items=items,
            summary_applied=False,
            estimated_tokens=estimated,
            state=LimiterState.NORMAL,
        )

    def limit_one(
        self, item: Any, kind: str, config: Optional[LimiterConfig] = None
    ) -> Tuple[Any, LimiterResult]:
        """Shape a single object; returns (shaped_object, result)."""
        result = self.limit([item], kind, config)
        return (result.items[0] if result.items else {}), result
