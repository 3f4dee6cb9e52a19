from datetime import datetime, timezone

import pytest

from brex_mcp.utils.validation import (
    ValidationError,
    validate_bool,
    validate_choice,
    validate_choice_list,
    validate_dict,
    validate_iso_datetime,
    validate_non_negative_float,
    validate_positive_int,
    validate_required_args,
    validate_string,
    validate_string_list,
    validate_url,
)


def test_required_args():
    validate_required_args({"expense_id": "e1"}, ["expense_id"])
    with pytest.raises(ValidationError, match="Missing required arguments: expense_id"):
        validate_required_args({"expense_id": ""}, ["expense_id"])


class TestValidatePositiveInt:
    def test_accepts_strings_and_ints(self):
        assert validate_positive_int("10", "limit") == 10
        assert validate_positive_int(3, "limit") == 3
        assert validate_positive_int(4.0, "limit") == 4

    @pytest.mark.parametrize("value", [True, 1.5, "abc", None])
    def test_rejects_non_integers(self, value):
        with pytest.raises(ValidationError, match="Invalid limit"):
            validate_positive_int(value, "limit")

    def test_bounds(self):
        with pytest.raises(ValidationError, match="limit must be >= 1"):
            validate_positive_int("0", "limit")
        with pytest.raises(ValidationError, match="limit must be <= 100"):
            validate_positive_int(500, "limit", max_value=100)


def test_non_negative_float():
    assert validate_non_negative_float("12.5", "min_amount") == 12.5
    with pytest.raises(ValidationError):
        validate_non_negative_float(-1, "min_amount")
    with pytest.raises(ValidationError):
        validate_non_negative_float(False, "min_amount")


def test_validate_string():
    assert validate_string("  memo ", "memo") == "memo"
    with pytest.raises(ValidationError, match="cannot be empty"):
        validate_string("   ", "memo", allow_empty=False)
    with pytest.raises(ValidationError):
        validate_string(5, "memo")


def test_choices():
    assert validate_choice("CARD", "expense_type", ["CARD", "BILLPAY"]) == "CARD"
    with pytest.raises(ValidationError, match="must be one of"):
        validate_choice("CASH", "expense_type", ["CARD", "BILLPAY"])
    assert validate_choice_list("CARD", "expense_type", ["CARD"]) == ["CARD"]
    assert validate_choice_list(["CARD", "BILLPAY"], "t", ["CARD", "BILLPAY"]) == [
        "CARD",
        "BILLPAY",
    ]


def test_validate_dict_required_keys():
    assert validate_dict({"key": "k", "value": 1}, "cf", required_keys=["key", "value"])
    with pytest.raises(ValidationError, match="missing required keys: value"):
        validate_dict({"key": "k"}, "cf", required_keys=["key", "value"])


def test_string_list():
    assert validate_string_list("id, amount.amount,", "fields") == ["id", "amount.amount"]
    assert validate_string_list(["merchant", " budget "], "expand") == ["merchant", "budget"]
    with pytest.raises(ValidationError):
        validate_string_list(42, "fields")


def test_validate_bool():
    assert validate_bool(True, "summary_only") is True
    assert validate_bool("FALSE", "summary_only") is False
    with pytest.raises(ValidationError, match="must be a boolean"):
        validate_bool(1, "summary_only")


class TestValidateIsoDatetime:
    def test_zulu_suffix(self):
        assert validate_iso_datetime("2025-08-01T00:00:00Z", "start_date") == datetime(
            2025, 8, 1, tzinfo=timezone.utc
        )

    def test_date_only_is_utc_midnight(self):
        assert validate_iso_datetime("2025-08-01", "start_date") == datetime(
            2025, 8, 1, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize("value", ["yesterday", "", None, 20250801])
    def test_rejects_garbage(self, value):
        with pytest.raises(ValidationError, match="valid ISO date string"):
            validate_iso_datetime(value, "start_date")


def test_validate_url():
    assert validate_url("https://platform.brexapis.com", "BREX_API_URL") == (
        "https://platform.brexapis.com"
    )
    with pytest.raises(ValidationError):
        validate_url("ftp://example.com", "BREX_API_URL", allowed_schemes=["http", "https"])
    with pytest.raises(ValidationError):
        validate_url("not a url", "BREX_API_URL")
