import pytest
from pydantic import ValidationError

from cryptoseek.config import SUPPORTED_CHAINS, Settings


def test_defaults(monkeypatch):
    """Retry and aggregation defaults match the documented behaviour."""

    monkeypatch.delenv("FETCH_MAX_ATTEMPTS", raising=False)
    monkeypatch.delenv("BIG_SWAPS_DEFAULT_LIMIT", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)

    settings = Settings(_env_file=None)

    assert settings.fetch_max_attempts == 3
    assert settings.retry_initial_delay_seconds == 1.0
    assert settings.retry_backoff_factor == 2.0
    assert settings.request_timeout_seconds == 10.0
    assert settings.big_swaps_default_limit == 20
    assert settings.token_filter_requires_source is False
    assert settings.log_format == "auto"
    assert SUPPORTED_CHAINS == ["ethereum", "base", "optimism", "polygon", "arbitrum", "bnb", "blast"]


def test_binance_api_key_alias(monkeypatch):
    """Binance API key should load from the legacy alias when present."""

    monkeypatch.delenv("BINANCE_API_KEY", raising=False)
    monkeypatch.setenv("BINANCE_KEY", "alias-from-legacy")

    settings = Settings(_env_file=None)

    assert settings.binance_api_key == "alias-from-legacy"
    assert settings.has_binance_key is True


def test_base_urls_are_normalized(monkeypatch):
    monkeypatch.setenv("MASTERDEX_BASE_URL", "https://dex.example/")

    settings = Settings(_env_file=None)

    assert settings.masterdex_base_url == "https://dex.example"


def test_retry_settings_are_validated(monkeypatch):
    monkeypatch.setenv("FETCH_MAX_ATTEMPTS", "0")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
