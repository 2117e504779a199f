import pytest

from geocurrency.currency.config import ExchangeConfig
from geocurrency.location.config import LocationConfig
from geocurrency.providers.geo import DEFAULT_GEO_ORDER
from geocurrency.providers.rates import DEFAULT_RATE_ORDER
from geocurrency.utils.errors import ConfigurationError


def test_location_defaults():
    cfg = LocationConfig.from_dict({})
    assert [p.name for p in cfg.providers] == list(DEFAULT_GEO_ORDER)
    assert cfg.cache.enabled is True
    assert cfg.cache.ttl_seconds == 600
    assert cfg.cache.backend == "memory"
    assert cfg.arbiter.allow_heuristic_override is False
    assert cfg.arbiter.override_threshold == 0.9
    assert cfg.heuristics.enabled is True
    assert cfg.default.country_code == "us"
    assert cfg.refresh_exchange_rate is True


def test_location_from_yaml(temp_config_file):
    cfg = LocationConfig.from_yaml(temp_config_file)

    assert [p.name for p in cfg.providers] == ["ipapi.co", "ip-api.com", "ipstack.com"]
    assert cfg.providers[0].timeout == 2
    assert cfg.providers[1].timeout == 3
    assert cfg.providers[2].api_key_env == "TEST_IPSTACK_KEY"
    assert cfg.cache.ttl_seconds == 120
    assert cfg.heuristics.enabled is False
    assert cfg.refresh_exchange_rate is False


def test_location_default_overrides():
    cfg = LocationConfig.from_dict({"default": {"country_code": "GB", "country": "United Kingdom", "city": "London"}})
    assert cfg.default.country_code == "gb"
    assert cfg.default.city == "London"
    assert cfg.default.timezone == "America/New_York"


@pytest.mark.parametrize("providers", ["ipapi.co", {"name": "ipapi.co"}])
def test_location_providers_must_be_list(providers):
    with pytest.raises(ConfigurationError):
        LocationConfig.from_dict({"providers": providers})


def test_provider_entry_without_name():
    with pytest.raises(ConfigurationError):
        LocationConfig.from_dict({"providers": [{"timeout": 3}]})


def test_exchange_defaults():
    cfg = ExchangeConfig.from_dict({})
    assert cfg.base_currency == "usd"
    assert [s.name for s in cfg.sources] == list(DEFAULT_RATE_ORDER)
    assert cfg.cache_ttl_seconds == 600


def test_exchange_from_yaml(temp_config_file):
    cfg = ExchangeConfig.from_yaml(temp_config_file)
    assert cfg.base_currency == "usd"
    assert [s.name for s in cfg.sources] == ["exchangerate-api.com", "freeforexapi.com"]
    assert cfg.cache_ttl_seconds == 0


def test_exchange_sources_must_be_list():
    with pytest.raises(ConfigurationError):
        ExchangeConfig.from_dict({"sources": "fixer.io"})


def test_from_yaml_missing_file():
    with pytest.raises(ConfigurationError):
        LocationConfig.from_yaml("nope/missing.yaml")
