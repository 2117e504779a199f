import httpx
import pytest

from geocurrency.providers.base import SourceSettings
from geocurrency.providers.rates import build_rate_sources, get_rate_source
from geocurrency.utils.errors import ProviderMalformedResponse


async def _fetch(fake_http, name, host, payload, api_key=None):
    http = fake_http({host: payload})
    source = get_rate_source(name, api_key=api_key)
    async with http.client() as client:
        rate = await source.fetch(client, "usd", "eur")
    return rate, http.requests[0]


@pytest.mark.asyncio
async def test_exchangerate_host_quotes(fake_http):
    rate, request = await _fetch(
        fake_http, "exchangerate.host", "api.exchangerate.host",
        {"success": True, "quotes": {"USDEUR": 0.86}}, api_key="k",
    )
    assert rate == 0.86
    assert request.url.params["source"] == "USD"
    assert request.url.params["currencies"] == "EUR"
    assert request.url.params["access_key"] == "k"


@pytest.mark.asyncio
async def test_fixer_rates(fake_http):
    rate, request = await _fetch(fake_http, "fixer.io", "api.fixer.io", {"rates": {"EUR": 0.91}}, api_key="k")
    assert rate == 0.91
    assert request.url.params["symbols"] == "EUR"


@pytest.mark.asyncio
async def test_currencylayer_quotes(fake_http):
    rate, _ = await _fetch(
        fake_http, "currencylayer.com", "api.currencylayer.com", {"quotes": {"USDEUR": 0.92}}, api_key="k"
    )
    assert rate == 0.92


@pytest.mark.asyncio
async def test_freecurrencyapi_data(fake_http):
    rate, request = await _fetch(
        fake_http, "freecurrencyapi.com", "api.freecurrencyapi.com", {"data": {"EUR": 0.93}}, api_key="k"
    )
    assert rate == 0.93
    assert request.url.params["apikey"] == "k"
    assert request.url.params["base_currency"] == "USD"


@pytest.mark.asyncio
async def test_api_error_body_is_malformed(fake_http):
    with pytest.raises(ProviderMalformedResponse, match="invalid_access_key"):
        await _fetch(
            fake_http, "exchangerate.host", "api.exchangerate.host",
            {"success": False, "error": {"type": "invalid_access_key", "info": "bad key"}},
        )


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [0, -1.5, None, "abc"])
async def test_non_positive_or_missing_rate(fake_http, value):
    with pytest.raises(ProviderMalformedResponse):
        await _fetch(fake_http, "exchangerate-api.com", "api.exchangerate-api.com", {"rates": {"EUR": value}})


@pytest.mark.asyncio
async def test_non_json_body(fake_http):
    with pytest.raises(ProviderMalformedResponse):
        await _fetch(
            fake_http, "exchangerate-api.com", "api.exchangerate-api.com",
            lambda request: httpx.Response(200, text="<html>down</html>"),
        )


def test_build_rate_sources_skips_missing_keys(monkeypatch):
    monkeypatch.setenv("FIXER_API_KEY", "secret")
    sources = build_rate_sources([
        SourceSettings("exchangerate-api.com", timeout=3),
        SourceSettings("fixer.io"),
        SourceSettings("currencylayer.com"),
        SourceSettings("freeforexapi.com", enabled=False),
        SourceSettings("no-such-source"),
    ])
    assert [s.name for s in sources] == ["exchangerate-api.com", "fixer.io"]
    assert sources[0].timeout == 3
    assert sources[1].api_key == "secret"


def test_unknown_rate_source():
    with pytest.raises(ValueError):
        get_rate_source("nope")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name,host,payload",
    [
        ("exchangerate-api.com", "api.exchangerate-api.com", {"rates": [0.9]}),
        ("freeforexapi.com", "api.freeforexapi.com", {"rates": "USDEUR"}),
        ("currencylayer.com", "api.currencylayer.com", {"quotes": [0.9]}),
        ("freecurrencyapi.com", "api.freecurrencyapi.com", {"data": 0.9}),
    ],
)
async def test_non_object_rate_section(fake_http, name, host, payload):
    with pytest.raises(ProviderMalformedResponse, match=f"^{name}: .*not an object"):
        await _fetch(fake_http, name, host, payload, api_key="k")
