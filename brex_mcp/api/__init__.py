"""Brex REST API client"""

from .client import BrexClient
from .errors import (
    BrexAPIError,
    BrexAuthenticationError,
    BrexNotFoundError,
    DataShapeError,
)

__all__ = [
    "BrexClient",
    "BrexAPIError",
    "BrexAuthenticationError",
    "BrexNotFoundError",
    "DataShapeError",
]
