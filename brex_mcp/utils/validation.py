#!/usr/bin/env python3
"""
Argument validation for Brex tool calls, resource query strings and settings.

Every validator either returns the normalized value or raises
ValidationError; the MCP layer maps that to an invalid-params error.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

_URL_PATTERN = re.compile(r"^([a-z][a-z0-9+.-]*)://[^\s/$.?#][^\s]*$", re.IGNORECASE)


class ValidationError(ValueError):
    """Bad caller input: tool arguments, query parameters or settings"""

    pass


def validate_required_args(arguments: Dict[str, Any], required: List[str]) -> None:
    """
    Reject a call when a required argument is absent, None or "".

    Examples:
        >>> validate_required_args({"expense_id": ""}, ["expense_id"])
        ValidationError: Missing required arguments: expense_id
    """
    missing = [name for name in required if arguments.get(name) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required arguments: {', '.join(missing)}")


def validate_positive_int(
    value: Any, name: str, min_value: int = 1, max_value: Optional[int] = None
) -> int:
    """
    Coerce a page size, limit or count to int and check its range.

    Numeric strings are accepted because resource query parameters arrive as
    text. Booleans and fractional floats are rejected.

    Args:
        value: int, integral float or numeric string
        name: Argument name used in the error message
        min_value: Lowest accepted value
        max_value: Highest accepted value, unbounded when None

    Raises:
        ValidationError: Not an integer, or out of range

    Examples:
        >>> validate_positive_int(" 25 ", "page_size")
        25
        >>> validate_positive_int(0, "max_items")
        ValidationError: max_items must be >= 1
        >>> validate_positive_int("101", "limit", max_value=100)
        ValidationError: limit must be <= 100
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {name}: must be an integer, got bool")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"Invalid {name}: must be an integer, got {value}")

    try:
        number = int(value.strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"Invalid {name}: must be an integer, got {type(value).__name__}"
        )

    if number < min_value:
        raise ValidationError(f"{name} must be >= {min_value}")
    if max_value is not None and number > max_value:
        raise ValidationError(f"{name} must be <= {max_value}")
    return number


def validate_non_negative_float(
    value: Any, name: str, max_value: Optional[float] = None
) -> float:
    """
    Coerce an amount or timeout to float; NaN and negatives are rejected.

    Examples:
        >>> validate_non_negative_float("12.5", "min_amount")
        12.5
        >>> validate_non_negative_float(-1, "max_amount")
        ValidationError: max_amount must be >= 0.0
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {name}: must be a number, got bool")

    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"Invalid {name}: must be a number, got {type(value).__name__}"
        )

    if number != number:  # NaN
        raise ValidationError(f"Invalid {name}: must be a number")
    if number < 0:
        raise ValidationError(f"{name} must be >= 0.0")
    if max_value is not None and number > max_value:
        raise ValidationError(f"{name} must be <= {max_value}")
    return number


def validate_string(value: Any, name: str, allow_empty: bool = True) -> str:
    """
    Return a string argument stripped of surrounding whitespace.

    Whitespace-only counts as empty, so `allow_empty=False` rejects "   ".

    Examples:
        >>> validate_string(" Acme ", "merchant_name")
        'Acme'

        >>> validate_string("", "merchant_name", allow_empty=False)
        ValidationError: merchant_name cannot be empty
    """
    if not isinstance(value, str):
        raise ValidationError(
            f"Invalid {name}: must be a string, got {type(value).__name__}"
        )

    value = value.strip()

    if not allow_empty and not value:
        raise ValidationError(f"{name} cannot be empty")
    return value


def validate_choice(value: Any, name: str, choices: Sequence[Any]) -> Any:
    """
    Check an enum-like argument against the values Brex accepts.

    Matching is exact; callers upper-case first where the API is
    case-insensitive.

    Examples:
        >>> validate_choice("CARD", "expense_type", ["CARD", "REIMBURSEMENT"])
        'CARD'
        >>> validate_choice("CASH", "expense_type", ["CARD", "REIMBURSEMENT"])
        ValidationError: expense_type must be one of: CARD, REIMBURSEMENT
    """
    if value not in choices:
        allowed = ", ".join(str(choice) for choice in choices)
        raise ValidationError(f"{name} must be one of: {allowed}")
    return value


def validate_choice_list(value: Any, name: str, choices: Sequence[str]) -> List[str]:
    """
    Validate a single choice or a list of choices, always returning a list.

    Examples:
        >>> validate_choice_list("APPROVED", "status", ["APPROVED", "DRAFT"])
        ['APPROVED']

        >>> validate_choice_list(["APPROVED", "NOPE"], "status", ["APPROVED"])
        ValidationError: status must be one of: APPROVED
    """
    values = value if isinstance(value, list) else [value]
    if not values:
        raise ValidationError(f"{name} must contain at least 1 items")
    return [validate_choice(item, name, choices) for item in values]


def validate_dict(
    value: Any, name: str, required_keys: Optional[List[str]] = None
) -> Dict:
    """
    Require a JSON object, optionally with certain keys present.

    Examples:
        >>> validate_dict({"key": "project"}, "custom_fields[0]", required_keys=["key", "value"])
        ValidationError: custom_fields[0] missing required keys: value
    """
    if not isinstance(value, dict):
        raise ValidationError(
            f"Invalid {name}: must be a dictionary, got {type(value).__name__}"
        )

    absent = [key for key in required_keys or [] if key not in value]
    if absent:
        raise ValidationError(f"{name} missing required keys: {', '.join(absent)}")
    return value


def validate_list(value: Any, name: str, min_length: int = 0) -> List:
    """
    Validate that value is a JSON array with at least `min_length` entries.

    Examples:
        >>> validate_list([{"key": "project", "value": "apollo"}], "custom_fields", min_length=1)
        [{'key': 'project', 'value': 'apollo'}]

        >>> validate_list("merchant", "expand")
        ValidationError: Invalid expand: must be a list, got str
    """
    if not isinstance(value, list):
        raise ValidationError(
            f"Invalid {name}: must be a list, got {type(value).__name__}"
        )
    if len(value) < min_length:
        raise ValidationError(f"{name} must contain at least {min_length} items")
    return value


def validate_string_list(value: Any, name: str) -> List[str]:
    """
    Accept a list of strings or a single comma-separated string.

    Blank entries are dropped.

    Examples:
        >>> validate_string_list("id, amount.amount,", "fields")
        ['id', 'amount.amount']

        >>> validate_string_list(["merchant", " budget "], "expand")
        ['merchant', 'budget']
    """
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    items = validate_list(value, name)
    return [str(item).strip() for item in items if str(item).strip()]


def validate_bool(value: Any, name: str) -> bool:
    """
    Validate a boolean flag. Accepts real booleans and "true"/"false" strings.

    Examples:
        >>> validate_bool("true", "summary_only")
        True

        >>> validate_bool("yes please", "summary_only")
        ValidationError: Invalid summary_only: must be a boolean
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"Invalid {name}: must be a boolean")


def validate_iso_datetime(value: Any, name: str) -> datetime:
    """
    Parse an ISO-8601 date or datetime. Naive values are taken as UTC.

    Examples:
        >>> validate_iso_datetime("2025-08-01T00:00:00Z", "start_date")
        datetime.datetime(2025, 8, 1, 0, 0, tzinfo=datetime.timezone.utc)

        >>> validate_iso_datetime("yesterday", "start_date")
        ValidationError: Invalid start_date: must be a valid ISO date string
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid {name}: must be a valid ISO date string")

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Invalid {name}: must be a valid ISO date string")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def validate_url(
    value: Any, name: str, allowed_schemes: Sequence[str] = ("http", "https")
) -> str:
    """
    Validate an API base URL: scheme, host, and no whitespace.

    Examples:
        >>> validate_url("https://platform.brexapis.com", "BREX_API_URL")
        'https://platform.brexapis.com'

        >>> validate_url("ftp://example.com", "BREX_API_URL")
        ValidationError: BREX_API_URL must use one of these schemes: http, https
    """
    if not isinstance(value, str):
        raise ValidationError(f"Invalid {name}: must be a string")

    match = _URL_PATTERN.match(value.strip())
    if match is None:
        raise ValidationError(f"Invalid {name}: must be a valid URL")

    if match.group(1).lower() not in allowed_schemes:
        raise ValidationError(
            f"{name} must use one of these schemes: {', '.join(allowed_schemes)}"
        )
    return value.strip()
