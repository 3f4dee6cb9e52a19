#!/usr/bin/env python3
"""
Receipt tools.

Both flows go through a pre-signed upload URL: match_receipt hands the URL
back to the caller, upload_receipt PUTs the decoded bytes itself.
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from brex_mcp.api.errors import DataShapeError
from brex_mcp.api.models import RECEIPT_CONTENT_TYPES
from brex_mcp.tools.base import (
    ToolSpec,
    check_arguments,
    object_schema,
    optional,
    required_string,
)
from brex_mcp.utils.validation import ValidationError, validate_choice, validate_string

logger = logging.getLogger(__name__)

DEFAULT_RECEIPT_CONTENT_TYPE = "application/pdf"


def _check_upload_target(response: Any, what: str) -> Dict[str, str]:
    if (
        not isinstance(response, dict)
        or not response.get("id")
        or not response.get("uri")
    ):
        raise DataShapeError(f"Invalid response from {what} request")
    return response


@dataclass(frozen=True)
class MatchReceiptRequest:
    receipt_name: str
    receipt_type: Optional[str] = None
    notify_email: Optional[str] = None

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> "MatchReceiptRequest":
        arguments = check_arguments(arguments)
        return cls(
            receipt_name=required_string(arguments, "receipt_name"),
            receipt_type=optional(arguments, "receipt_type", validate_string) or None,
            notify_email=optional(arguments, "notify_email", validate_string) or None,
        )


async def handle_match_receipt(client, limiter, request: MatchReceiptRequest):
    body = {"receipt_name": request.receipt_name}
    if request.receipt_type:
        body["receipt_type"] = request.receipt_type
    if request.notify_email:
        body["notify_email"] = request.notify_email

    match = _check_upload_target(
        await client.create_receipt_match(body), "receipt match"
    )
    return {
        "status": "success",
        "receipt_id": match["id"],
        "upload_url": match["uri"],
        "message": "Receipt match created. Upload the receipt file to the provided URL.",
        "instructions": (
            "1. PUT the receipt file to this pre-signed URL.\n"
            "2. The URL expires in 30 minutes.\n"
            "3. Once uploaded, Brex will try to match the receipt with an existing expense."
        ),
    }


@dataclass(frozen=True)
class UploadReceiptRequest:
    expense_id: str
    receipt_name: str
    content: bytes = field(repr=False)
    content_type: str = DEFAULT_RECEIPT_CONTENT_TYPE

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> "UploadReceiptRequest":
        arguments = check_arguments(arguments)
        expense_id = required_string(arguments, "expense_id")
        receipt_name = required_string(arguments, "receipt_name")
        encoded = required_string(arguments, "receipt_data")
        try:
            content = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Invalid receipt_data: must be base64-encoded")
        if not content:
            raise ValidationError("receipt_data cannot be empty")

        content_type = optional(
            arguments, "content_type", validate_choice, RECEIPT_CONTENT_TYPES
        )
        return cls(
            expense_id=expense_id,
            receipt_name=receipt_name,
            content=content,
            content_type=content_type or DEFAULT_RECEIPT_CONTENT_TYPE,
        )


async def handle_upload_receipt(client, limiter, request: UploadReceiptRequest):
    """Request an upload slot for the expense, then PUT the bytes to it."""
    target = _check_upload_target(
        await client.create_receipt_upload(
            request.expense_id, {"receipt_name": request.receipt_name}
        ),
        "receipt upload",
    )
    await client.upload_to_presigned_url(
        target["uri"], request.content, request.content_type
    )
    logger.info(
        f"Uploaded receipt {request.receipt_name} ({len(request.content)} bytes) "
        f"for expense {request.expense_id}"
    )
    return {
        "status": "success",
        "receipt_id": target["id"],
        "expense_id": request.expense_id,
        "receipt_name": request.receipt_name,
        "content_type": request.content_type,
        "size_bytes": len(request.content),
        "message": f"Receipt uploaded to expense {request.expense_id}.",
    }


RECEIPT_TOOLS = [
    ToolSpec(
        name="match_receipt",
        description="Create a pre-signed URL to upload a receipt that Brex matches to an expense",
        input_schema=object_schema(
            {
                "receipt_name": {
                    "type": "string",
                    "description": "Name of the receipt file (e.g. 'receipt.pdf')",
                },
                "receipt_type": {
                    "type": "string",
                    "description": "Receipt MIME type (optional)",
                },
                "notify_email": {
                    "type": "string",
                    "description": "Email to notify once matching completes (optional)",
                },
            },
            required=["receipt_name"],
        ),
        request_cls=MatchReceiptRequest,
        handler=handle_match_receipt,
    ),
    ToolSpec(
        name="upload_receipt",
        description="Upload a receipt file to a specific card expense",
        input_schema=object_schema(
            {
                "expense_id": {
                    "type": "string",
                    "description": "ID of the card expense",
                },
                "receipt_data": {
                    "type": "string",
                    "description": "Base64-encoded file content",
                },
                "receipt_name": {
                    "type": "string",
                    "description": "Name of the receipt file (e.g. 'receipt.jpg')",
                },
                "content_type": {
                    "type": "string",
                    "enum": RECEIPT_CONTENT_TYPES,
                    "default": DEFAULT_RECEIPT_CONTENT_TYPE,
                    "description": "MIME type of the receipt",
                },
            },
            required=["expense_id", "receipt_data", "receipt_name"],
        ),
        request_cls=UploadReceiptRequest,
        handler=handle_upload_receipt,
    ),
]
