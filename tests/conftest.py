from typing import Any, Callable, Dict

import httpx
import pytest

from halo_mocks import (
    MOCK_API_KEY,
    MOCK_HALO_URL,
    MOCK_SIGNER_PRIVATE_KEY,
    make_payment_required_body,
    make_terms,
)
from x402_halo.config import HaloConfig


@pytest.fixture
def requirement_terms() -> Dict[str, Any]:
    return make_terms()


@pytest.fixture
def payment_required_body() -> Dict[str, Any]:
    return make_payment_required_body()


@pytest.fixture
def keyed_config() -> HaloConfig:
    return HaloConfig(signing_key=MOCK_SIGNER_PRIVATE_KEY, api_key=MOCK_API_KEY, halo_url=MOCK_HALO_URL)


@pytest.fixture
def keyless_config() -> HaloConfig:
    return HaloConfig(api_key=MOCK_API_KEY, halo_url=MOCK_HALO_URL)


@pytest.fixture
def http_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory for an ``httpx.AsyncClient`` whose requests go to ``handler``."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory
