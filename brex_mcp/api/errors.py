"""
Error kinds raised by the Brex API layer.

Callers distinguish failures by type: a bad request from the caller is a
ValidationError (see utils.validation), an upstream failure is a
BrexAPIError, and an upstream payload that does not look like the entity it
claims to be is a DataShapeError.
"""

from typing import Optional


class BrexAPIError(Exception):
    """An upstream Brex API request failed."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        method: Optional[str] = None,
        path: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.method = method
        self.path = path

    def __str__(self):
        base = super().__str__()
        if self.status is None:
            return base
        return f"{base} (HTTP {self.status} {self.method} {self.path})"


class BrexAuthenticationError(BrexAPIError):
    """The API rejected the token (HTTP 401)."""

    pass


class BrexNotFoundError(BrexAPIError):
    """The requested entity does not exist (HTTP 404)."""

    pass


class DataShapeError(Exception):
    """An upstream payload did not have the expected structure."""

    pass
