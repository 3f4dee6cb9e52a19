"""
Brex API enumerations and payload shape checks.

Entities travel through the server as plain dicts (they are only projected
and re-serialized), so only the enums used for argument validation and a few
structural checks live here.
"""

import logging
from enum import Enum
from typing import Any, List

logger = logging.getLogger(__name__)


class ExpenseType(str, Enum):
    CARD = "CARD"
    BILLPAY = "BILLPAY"
    REIMBURSEMENT = "REIMBURSEMENT"
    CLAWBACK = "CLAWBACK"
    UNSET = "UNSET"


class ExpenseStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    OUT_OF_POLICY = "OUT_OF_POLICY"
    VOID = "VOID"
    CANCELED = "CANCELED"
    SPLIT = "SPLIT"
    SETTLED = "SETTLED"


class ExpensePaymentStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    PROCESSING = "PROCESSING"
    CANCELED = "CANCELED"
    DECLINED = "DECLINED"
    CLEARED = "CLEARED"
    REFUNDING = "REFUNDING"
    REFUNDED = "REFUNDED"
    CASH_ADVANCE = "CASH_ADVANCE"
    CREDITED = "CREDITED"
    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    SCHEDULED = "SCHEDULED"


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    CLOSED = "CLOSED"


class SpendBudgetStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"
    DRAFT = "DRAFT"


class SpendLimitStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class BudgetProgramStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


def enum_values(enum_cls) -> List[str]:
    """Allowed string values of an enum, for validation and input schemas."""
    return [member.value for member in enum_cls]


# Receipt content types accepted by upload_receipt
RECEIPT_CONTENT_TYPES = ["application/pdf", "image/jpeg", "image/png", "image/gif"]


# =============================================================================
# Shape checks
# =============================================================================


def is_expense(obj: Any) -> bool:
    """
    Lenient check: any object carrying an identifier is treated as an expense.

    Examples:
        >>> is_expense({"id": "exp_1"})
        True
        >>> is_expense({"merchant_id": "m_1"})
        True
        >>> is_expense(["exp_1"])
        False
    """
    if not isinstance(obj, dict):
        return False
    has_identifier = any(
        isinstance(obj.get(key), str)
        for key in ("id", "merchant_id", "spending_entity_id")
    )
    if not has_identifier:
        logger.debug(
            f"Expense check failed, keys present: {', '.join(sorted(obj.keys()))}"
        )
    return has_identifier


def is_cash_account(obj: Any) -> bool:
    return (
        isinstance(obj, dict)
        and isinstance(obj.get("id"), str)
        and isinstance(obj.get("name"), str)
        and isinstance(obj.get("current_balance"), dict)
    )


def is_card_account(obj: Any) -> bool:
    return isinstance(obj, dict) and isinstance(obj.get("id"), str)


def is_budget(obj: Any) -> bool:
    return isinstance(obj, dict) and isinstance(obj.get("budget_id"), str)


def is_identified(obj: Any) -> bool:
    """Generic check used for spend limits and budget programs."""
    return isinstance(obj, dict) and isinstance(obj.get("id"), str)
