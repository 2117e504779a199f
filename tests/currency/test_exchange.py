import asyncio

import httpx
import pytest

from geocurrency.currency import table
from geocurrency.currency.exchange import ExchangeRateCascade, static_cross_rate
from geocurrency.providers.rates import get_rate_source
from geocurrency.utils.errors import ValidationError


def _sources(*names, timeout=2.0):
    return [get_rate_source(n, timeout=timeout) for n in names]


@pytest.mark.asyncio
async def test_identity_conversion_makes_no_request(fake_http):
    http = fake_http({})
    async with http.client() as client:
        cascade = ExchangeRateCascade(_sources("exchangerate-api.com"), client=client)
        assert await cascade.convert(100, "usd", "usd") == 100
        assert await cascade.convert(100, "USD", "usd") == 100
        assert await cascade.get_rate("ngn", "NGN") == 1.0
    assert http.calls == []


@pytest.mark.asyncio
async def test_first_source_wins(fake_http):
    http = fake_http({
        "api.exchangerate-api.com": {"base": "USD", "rates": {"NGN": 1600.0, "EUR": 0.9}},
        "api.freeforexapi.com": {"rates": {"USDNGN": {"rate": 1.0}}},
    })
    async with http.client() as client:
        cascade = ExchangeRateCascade(_sources("exchangerate-api.com", "freeforexapi.com"), client=client)
        quote = await cascade.get_quote("usd", "ngn")

    assert quote.rate == 1600.0
    assert quote.source == "exchangerate-api.com"
    assert quote.approximate is False
    assert http.calls == ["api.exchangerate-api.com"]
    assert http.requests[0].url.path == "/v4/latest/USD"


@pytest.mark.asyncio
async def test_falls_through_to_next_source(fake_http):
    http = fake_http({
        "api.exchangerate-api.com": 503,
        "api.freeforexapi.com": {"rates": {"USDNGN": {"rate": 1580.5, "timestamp": 1}}},
    })
    async with http.client() as client:
        cascade = ExchangeRateCascade(_sources("exchangerate-api.com", "freeforexapi.com"), client=client)
        rate = await cascade.get_rate("USD", "NGN")

    assert rate == 1580.5
    assert http.calls == ["api.exchangerate-api.com", "api.freeforexapi.com"]
    assert http.requests[1].url.params["pairs"] == "USDNGN"


@pytest.mark.asyncio
async def test_cross_rate_fallback_when_all_sources_fail(fake_http):
    http = fake_http({
        "api.exchangerate-api.com": 500,
        "api.freeforexapi.com": {"rates": {}},
    })
    async with http.client() as client:
        cascade = ExchangeRateCascade(_sources("exchangerate-api.com", "freeforexapi.com"), client=client)
        quote = await cascade.get_quote("usd", "ngn")

    assert quote.approximate is True
    assert quote.rate == pytest.approx(table.approx_rate("ngn"))
    assert quote.rate > 0


@pytest.mark.asyncio
async def test_cross_rate_between_non_base_currencies(fake_http):
    http = fake_http({})
    async with http.client() as client:
        cascade = ExchangeRateCascade(_sources("exchangerate-api.com"), client=client)
        rate = await cascade.get_rate("eur", "ngn")
    assert rate == pytest.approx(table.approx_rate("ngn") / table.approx_rate("eur"))
    assert static_cross_rate("eur", "ngn") == pytest.approx(rate)


@pytest.mark.asyncio
async def test_no_sources_uses_static_table():
    cascade = ExchangeRateCascade([])
    quote = await cascade.get_quote("usd", "kes")
    assert quote.approximate
    assert quote.rate == table.approx_rate("kes")


@pytest.mark.asyncio
async def test_slow_source_times_out(fake_http):
    async def slow(request):
        await asyncio.sleep(1)
        return httpx.Response(200, json={"rates": {"NGN": 1.0}})

    http = fake_http({
        "api.exchangerate-api.com": slow,
        "api.freeforexapi.com": {"rates": {"USDNGN": {"rate": 1555.0}}},
    })
    async with http.client() as client:
        sources = [
            get_rate_source("exchangerate-api.com", timeout=0.05),
            get_rate_source("freeforexapi.com", timeout=2.0),
        ]
        cascade = ExchangeRateCascade(sources, client=client)
        assert await cascade.get_rate("usd", "ngn") == 1555.0


@pytest.mark.asyncio
async def test_live_quotes_are_memoised(fake_http):
    http = fake_http({"api.exchangerate-api.com": {"rates": {"GHS": 15.0}}})
    async with http.client() as client:
        cascade = ExchangeRateCascade(_sources("exchangerate-api.com"), client=client, cache_ttl_seconds=600)
        await cascade.get_rate("usd", "ghs")
        await cascade.get_rate("usd", "ghs")
    assert http.calls == ["api.exchangerate-api.com"]


@pytest.mark.asyncio
async def test_approximate_quotes_are_not_memoised(fake_http):
    http = fake_http({"api.exchangerate-api.com": 500})
    async with http.client() as client:
        cascade = ExchangeRateCascade(_sources("exchangerate-api.com"), client=client, cache_ttl_seconds=600)
        await cascade.get_rate("usd", "ghs")
        await cascade.get_rate("usd", "ghs")
    assert http.calls == ["api.exchangerate-api.com", "api.exchangerate-api.com"]


@pytest.mark.asyncio
async def test_memo_disabled(fake_http):
    http = fake_http({"api.exchangerate-api.com": {"rates": {"GHS": 15.0}}})
    async with http.client() as client:
        cascade = ExchangeRateCascade(_sources("exchangerate-api.com"), client=client, cache_ttl_seconds=0)
        await cascade.get_rate("usd", "ghs")
        await cascade.get_rate("usd", "ghs")
    assert len(http.calls) == 2


@pytest.mark.asyncio
async def test_convert_multiplies(fake_http):
    http = fake_http({"api.exchangerate-api.com": {"rates": {"KES": 130.0}}})
    async with http.client() as client:
        cascade = ExchangeRateCascade(_sources("exchangerate-api.com"), client=client)
        assert await cascade.convert(10, "usd", "kes") == pytest.approx(1300.0)


@pytest.mark.asyncio
async def test_convert_rejects_non_numbers():
    cascade = ExchangeRateCascade([])
    with pytest.raises(ValidationError):
        await cascade.convert("ten", "usd", "eur")


@pytest.mark.asyncio
async def test_rate_to_base_uses_configured_base(fake_http):
    http = fake_http({"api.exchangerate-api.com": {"rates": {"NGN": 1700.0}}})
    async with http.client() as client:
        cascade = ExchangeRateCascade(_sources("exchangerate-api.com"), client=client, base_currency="EUR")
        quote = await cascade.rate_to_base("ngn")
    assert (quote.base, quote.quote) == ("eur", "ngn")
    assert http.requests[0].url.path == "/v4/latest/EUR"


@pytest.mark.asyncio
async def test_check_providers(fake_http):
    http = fake_http({
        "api.exchangerate-api.com": {"rates": {"EUR": 0.9}},
        "api.freeforexapi.com": 500,
    })
    async with http.client() as client:
        cascade = ExchangeRateCascade(_sources("exchangerate-api.com", "freeforexapi.com"), client=client)
        health = await cascade.check_providers()
    assert health == {"exchangerate-api.com": True, "freeforexapi.com": False}


@pytest.mark.asyncio
@pytest.mark.parametrize("rates", [[1, 2], "x", 42])
async def test_malformed_rates_section_falls_back_to_static_rate(fake_http, rates):
    http = fake_http({"api.exchangerate-api.com": {"rates": rates}})
    async with http.client() as client:
        cascade = ExchangeRateCascade(_sources("exchangerate-api.com"), client=client)
        assert await cascade.get_rate("usd", "ngn") == pytest.approx(1530.0)
        assert await cascade.convert(2, "USD", "NGN") == pytest.approx(3060.0)


@pytest.mark.asyncio
async def test_malformed_source_does_not_stop_the_cascade(fake_http):
    http = fake_http({
        "api.exchangerate-api.com": {"rates": ["NGN", 1600.0]},
        "api.freeforexapi.com": {"rates": {"USDNGN": {"rate": 1580.5}}},
    })
    async with http.client() as client:
        cascade = ExchangeRateCascade(_sources("exchangerate-api.com", "freeforexapi.com"), client=client)
        quote = await cascade.get_quote("usd", "ngn")
        health = await cascade.check_providers()
    assert quote.source == "freeforexapi.com"
    assert quote.rate == 1580.5
    assert health["exchangerate-api.com"] is False
