from unittest.mock import AsyncMock

import pytest

from brex_mcp.api.client import BrexClient
from brex_mcp.optimization.token_optimizer import PayloadLimiter


@pytest.fixture
def client():
    return AsyncMock(spec=BrexClient)


@pytest.fixture
def limiter():
    return PayloadLimiter()
