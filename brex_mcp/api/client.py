#!/usr/bin/env python3
"""
Async Brex API client.

One client (and one aiohttp session) is created at server start-up and
shared by every resource, tool and prompt handler.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from brex_mcp.api.errors import (
    BrexAPIError,
    BrexAuthenticationError,
    BrexNotFoundError,
    DataShapeError,
)
from brex_mcp.config.constants import (
    API_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_BREX_API_URL,
    DEFAULT_LIST_LIMIT,
    MAX_ERROR_BODY_LENGTH,
)
from brex_mcp.utils.helpers import (
    build_api_url,
    build_query_pairs,
    extract_error_message,
)

logger = logging.getLogger(__name__)

# Expansions requested for single expense reads
EXPENSE_DETAIL_EXPAND = [
    "merchant",
    "budget",
    "location",
    "department",
    "receipts.download_uris",
]


def unwrap_page(data: Any, what: str) -> Tuple[List[Any], Optional[str]]:
    """
    Split a Brex list response into (items, next_cursor).

    Raises:
        DataShapeError: If the response carries no `items` list
    """
    if isinstance(data, list):
        return data, None
    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        raise DataShapeError(f"Unexpected response format for {what}: no items list")
    return data["items"], data.get("next_cursor") or None


class BrexClient:
    """Thin async wrapper around the Brex REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BREX_API_URL,
        timeout: float = API_REQUEST_TIMEOUT_SECONDS,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_settings(cls, settings) -> "BrexClient":
        return cls(
            api_key=settings.api_key,
            base_url=settings.api_url,
            timeout=settings.request_timeout,
        )

    async def __aenter__(self) -> "BrexClient":
        self._get_session()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self):
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Any] = None,
    ) -> Any:
        """
        Perform one API request and decode its JSON body.

        Raises:
            BrexAuthenticationError: On HTTP 401
            BrexNotFoundError: On HTTP 404
            BrexAPIError: On any other HTTP error, network failure or timeout
        """
        url = build_api_url(self.base_url, path)
        query = build_query_pairs(params)
        logger.debug(f"HTTP {method} {url} params={query}")

        session = self._get_session()
        try:
            async with session.request(
                method,
                url,
                params=query or None,
                json=json_body,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                logger.debug(f"HTTP response status: {response.status}")

                if response.status >= 400:
                    error_text = (await response.text())[:MAX_ERROR_BODY_LENGTH]
                    self._raise_for_status(response.status, method, path, error_text)

                if response.status == 204:
                    return None
                return await response.json(content_type=None)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Brex API {method} {path} failed - connection error: {e}")
            raise BrexAPIError(
                f"Connection error: {extract_error_message(e)}", method=method, path=path
            ) from e
        except ValueError as e:
            raise DataShapeError(f"Invalid JSON from {method} {path}: {e}") from e

    @staticmethod
    def _raise_for_status(status: int, method: str, path: str, error_text: str):
        if status == 401:
            logger.error(
                "Brex API authentication failed: check BREX_API_KEY "
                f"({method} {path})"
            )
            raise BrexAuthenticationError(
                "Brex API authentication failed: invalid or expired API key",
                status=status,
                method=method,
                path=path,
            )
        if status == 404:
            logger.error(f"Resource not found at {path}")
            raise BrexNotFoundError(
                f"Resource not found: {path}", status=status, method=method, path=path
            )
        logger.error(f"Brex API error: {status} - {error_text}")
        raise BrexAPIError(
            f"Brex API error: {error_text or 'no response body'}",
            status=status,
            method=method,
            path=path,
        )

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, body: Any) -> Any:
        return await self._request("POST", path, json_body=body)

    async def put(self, path: str, body: Any) -> Any:
        return await self._request("PUT", path, json_body=body)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def get_cash_accounts(
        self, cursor: Optional[str] = None, limit: Optional[int] = None
    ) -> Dict[str, Any]:
        return await self.get("/v2/accounts/cash", {"cursor": cursor, "limit": limit})

    async def get_cash_account(self, account_id: str) -> Dict[str, Any]:
        """
        Fetch one cash account, falling back to the account list when the
        single-account endpoint answers 404.
        """
        try:
            return await self.get(f"/v2/accounts/cash/{account_id}")
        except BrexNotFoundError:
            logger.debug(
                f"Account endpoint not found, falling back to accounts list for {account_id}"
            )
            items, _ = unwrap_page(await self.get_cash_accounts(), "cash accounts")
            for account in items:
                if isinstance(account, dict) and account.get("id") == account_id:
                    return account
            raise BrexNotFoundError(
                f"Account with ID {account_id} not found",
                status=404,
                method="GET",
                path=f"/v2/accounts/cash/{account_id}",
            )

    async def get_primary_cash_account(self) -> Dict[str, Any]:
        return await self.get("/v2/accounts/cash/primary")

    async def get_card_accounts(self) -> Any:
        return await self.get("/v2/accounts/card")

    # ------------------------------------------------------------------
    # Statements & transactions
    # ------------------------------------------------------------------

    async def get_cash_account_statements(
        self,
        account_id: str,
        cursor: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Dict[str, Any]:
        return await self.get(
            f"/v2/accounts/cash/{account_id}/statements",
            {"cursor": cursor, "limit": limit},
        )

    async def get_primary_card_statements(
        self, cursor: Optional[str] = None, limit: int = DEFAULT_LIST_LIMIT
    ) -> Dict[str, Any]:
        return await self.get(
            "/v2/accounts/card/primary/statements", {"cursor": cursor, "limit": limit}
        )

    async def get_card_transactions(
        self, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return await self.get("/v2/transactions/card/primary", params)

    async def get_cash_transactions(
        self, account_id: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return await self.get(f"/v2/transactions/cash/{account_id}", params)

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    async def get_expenses(
        self, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return await self.get("/v1/expenses", params)

    async def get_expense(
        self, expense_id: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return await self.get(f"/v1/expenses/{expense_id}", params)

    async def get_card_expenses(
        self, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """List card expenses; merchant data is always expanded."""
        params = dict(params or {})
        expand = list(params.get("expand") or [])
        if "merchant" not in expand:
            expand.append("merchant")
        params["expand"] = expand
        return await self.get("/v1/expenses/card", params)

    async def get_card_expense(
        self, expense_id: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return await self.get(f"/v1/expenses/card/{expense_id}", params)

    async def update_card_expense(
        self, expense_id: str, body: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self.put(f"/v1/expenses/card/{expense_id}", body)

    # ------------------------------------------------------------------
    # Receipts
    # ------------------------------------------------------------------

    async def create_receipt_match(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self.post("/v1/expenses/card/receipt_match", body)

    async def create_receipt_upload(
        self, expense_id: str, body: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self.post(f"/v1/expenses/card/{expense_id}/receipt_upload", body)

    async def upload_to_presigned_url(
        self, url: str, data: bytes, content_type: str
    ) -> None:
        """
        PUT raw bytes to a pre-signed upload URL.

        The URL carries its own credentials, so no Authorization header is sent.
        """
        session = self._get_session()
        logger.debug(f"Uploading {len(data)} bytes to pre-signed URL")
        try:
            async with session.request(
                "PUT",
                url,
                data=data,
                headers={"Content-Type": content_type},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status >= 400:
                    error_text = (await response.text())[:MAX_ERROR_BODY_LENGTH]
                    logger.error(f"Receipt upload failed: {response.status} - {error_text}")
                    raise BrexAPIError(
                        f"Failed to upload file: {error_text or 'no response body'}",
                        status=response.status,
                        method="PUT",
                        path="<presigned-url>",
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Receipt upload failed - connection error: {e}")
            raise BrexAPIError(
                f"Failed to upload file: {extract_error_message(e)}", method="PUT"
            ) from e
        logger.debug("File uploaded successfully")

    # ------------------------------------------------------------------
    # Budgets, spend limits, budget programs
    # ------------------------------------------------------------------

    async def get_budgets(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.get("/v2/budgets", params)

    async def get_budget(self, budget_id: str) -> Dict[str, Any]:
        return await self.get(f"/v2/budgets/{budget_id}")

    async def get_spend_limits(
        self, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return await self.get("/v2/spend_limits", params)

    async def get_spend_limit(self, spend_limit_id: str) -> Dict[str, Any]:
        return await self.get(f"/v2/spend_limits/{spend_limit_id}")

    async def get_budget_programs(
        self, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return await self.get("/v1/budget_programs", params)

    async def get_budget_program(self, budget_program_id: str) -> Dict[str, Any]:
        return await self.get(f"/v1/budget_programs/{budget_program_id}")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_current_user(self) -> Dict[str, Any]:
        return await self.get("/v2/users/me")
