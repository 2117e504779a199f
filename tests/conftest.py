"""Pytest configuration and fixtures."""
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

import httpx
import pytest
import yaml

from geocurrency.config import reset_config
from geocurrency.location.heuristics import EnvironmentSnapshot


Route = Union[Dict[str, Any], int, Callable[[httpx.Request], Any]]


class FakeHTTP:
    """Routes requests by host to canned JSON, bare status codes or callables.

    Every request is recorded in ``calls`` (host) and ``requests``.
    Unrouted hosts answer 404.
    """

    def __init__(self, routes: Dict[str, Route]):
        self.routes = routes
        self.calls: List[str] = []
        self.requests: List[httpx.Request] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        self.calls.append(host)
        self.requests.append(request)
        action = self.routes.get(host)
        if action is None:
            return httpx.Response(404, json={"error": "no route"})
        if callable(action):
            result = action(request)
            if hasattr(result, "__await__"):
                result = await result
            return result
        if isinstance(action, int):
            return httpx.Response(action)
        return httpx.Response(200, json=action)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_http():
    """Factory: fake_http({"ipapi.co": {...}}) -> FakeHTTP."""
    return FakeHTTP


@pytest.fixture
def temp_config_file():
    """Create a temporary config file for testing."""
    config_data = {
        'app': {
            'name': 'Test App',
            'version': '0.1.0',
            'debug': True
        },
        'logging': {
            'level': 'DEBUG',
            'format': 'text'
        },
        'location': {
            'timeout': 2,
            'providers': [
                'ipapi.co',
                {'name': 'ip-api.com', 'timeout': 3},
                {'name': 'ipstack.com', 'api_key_env': 'TEST_IPSTACK_KEY'},
            ],
            'cache': {'enabled': True, 'ttl_seconds': 120, 'backend': 'memory'},
            'heuristics': {'enabled': False},
            'arbiter': {'allow_heuristic_override': False},
            'refresh_exchange_rate': False,
        },
        'exchange': {
            'base_currency': 'USD',
            'cache_ttl_seconds': 0,
            'sources': ['exchangerate-api.com', 'freeforexapi.com'],
        },
    }

    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        yaml.dump(config_data, f)
        config_path = f.name

    yield config_path

    # Cleanup
    Path(config_path).unlink()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the host's config overrides and provider keys out of tests."""
    for var in (
        "GEOCURRENCY_CONFIG",
        "LOG_LEVEL",
        "IPINFO_TOKEN",
        "IPSTACK_API_KEY",
        "IPGEOLOCATION_API_KEY",
        "EXCHANGE_RATE_HOST_API_KEY",
        "FIXER_API_KEY",
        "CURRENCYLAYER_API_KEY",
        "FREE_CURRENCY_API_KEY",
        "TEST_IPSTACK_KEY",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def lagos_snapshot():
    """Environment that looks strongly Nigerian: timezone + language."""
    return EnvironmentSnapshot(timezone="Africa/Lagos", languages=["en-NG"], utc_offset_minutes=None)


@pytest.fixture
def neutral_snapshot():
    return EnvironmentSnapshot(timezone="America/Chicago", languages=["en-US"], utc_offset_minutes=-300)


@pytest.fixture
def ipapi_us():
    return {
        "ip": "8.8.8.8",
        "city": "Mountain View",
        "region": "California",
        "country_code": "US",
        "country_name": "United States",
        "timezone": "America/Los_Angeles",
    }


@pytest.fixture
def ipapi_ng():
    return {
        "ip": "41.58.1.1",
        "city": "Lagos",
        "region": "Lagos",
        "country_code": "NG",
        "country_name": "Nigeria",
        "timezone": "Africa/Lagos",
    }


@pytest.fixture
def ip_api_us():
    return {
        "status": "success",
        "query": "8.8.8.8",
        "city": "Ashburn",
        "regionName": "Virginia",
        "countryCode": "US",
        "country": "United States",
        "timezone": "America/New_York",
    }
