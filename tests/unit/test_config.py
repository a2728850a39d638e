"""Tests for routing and quote-fetch configuration."""

from dataclasses import replace

import pytest

from swap_router.config import (
    DEFAULT_BATCH_PARAMS,
    DEFAULT_ROUTING_CONFIG,
    BatchParams,
    RetryOptions,
    RoutingConfig,
)
from swap_router.models.types import PoolProtocol


class TestRoutingConfig:
    """Tests for RoutingConfig validation and defaults."""

    def test_defaults(self):
        config = RoutingConfig()
        assert config.max_hops == 3
        assert config.distribution_percent == 5
        assert config.min_splits == 1
        assert config.max_splits == 3
        assert config.force_cross_protocol is False
        assert config.protocols == (PoolProtocol.V2, PoolProtocol.V3)

    def test_replace_keeps_default_untouched(self):
        config = replace(DEFAULT_ROUTING_CONFIG, max_splits=5)
        assert config.max_splits == 5
        assert DEFAULT_ROUTING_CONFIG.max_splits == 3

    @pytest.mark.parametrize("step", [1, 2, 5, 10, 25, 50, 100])
    def test_distribution_steps_dividing_100(self, step):
        assert RoutingConfig(distribution_percent=step).distribution_percent == step

    @pytest.mark.parametrize("step", [0, 3, 7, 30, 101, -5])
    def test_distribution_step_must_divide_100(self, step):
        with pytest.raises(ValueError, match="distribution_percent"):
            RoutingConfig(distribution_percent=step)

    def test_negative_max_hops(self):
        with pytest.raises(ValueError, match="max_hops"):
            RoutingConfig(max_hops=-1)

    def test_zero_max_hops_allowed(self):
        """Zero hops is valid; it just yields no routes."""
        assert RoutingConfig(max_hops=0).max_hops == 0

    def test_min_splits_at_least_one(self):
        with pytest.raises(ValueError, match="min_splits"):
            RoutingConfig(min_splits=0)

    def test_max_splits_not_below_min_splits(self):
        with pytest.raises(ValueError, match="max_splits"):
            RoutingConfig(min_splits=3, max_splits=2)


class TestRoutingConfigFromEnv:
    """Tests for reading ROUTER_* environment variables."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in [
            "ROUTER_MAX_HOPS",
            "ROUTER_DISTRIBUTION_PERCENT",
            "ROUTER_MIN_SPLITS",
            "ROUTER_MAX_SPLITS",
            "ROUTER_FORCE_CROSS_PROTOCOL",
        ]:
            monkeypatch.delenv(name, raising=False)

    def test_defaults_when_unset(self):
        assert RoutingConfig.from_env() == RoutingConfig()

    def test_reads_variables(self, monkeypatch):
        monkeypatch.setenv("ROUTER_MAX_HOPS", "2")
        monkeypatch.setenv("ROUTER_DISTRIBUTION_PERCENT", "10")
        monkeypatch.setenv("ROUTER_MIN_SPLITS", "2")
        monkeypatch.setenv("ROUTER_MAX_SPLITS", "4")
        monkeypatch.setenv("ROUTER_FORCE_CROSS_PROTOCOL", "true")

        config = RoutingConfig.from_env()

        assert config.max_hops == 2
        assert config.distribution_percent == 10
        assert config.min_splits == 2
        assert config.max_splits == 4
        assert config.force_cross_protocol is True

    def test_empty_value_uses_default(self, monkeypatch):
        monkeypatch.setenv("ROUTER_MAX_HOPS", "")
        assert RoutingConfig.from_env().max_hops == 3

    def test_invalid_integer(self, monkeypatch):
        monkeypatch.setenv("ROUTER_MAX_SPLITS", "many")
        with pytest.raises(ValueError, match="ROUTER_MAX_SPLITS must be an integer"):
            RoutingConfig.from_env()

    def test_values_are_validated(self, monkeypatch):
        monkeypatch.setenv("ROUTER_DISTRIBUTION_PERCENT", "7")
        with pytest.raises(ValueError, match="distribution_percent"):
            RoutingConfig.from_env()

    @pytest.mark.parametrize("raw,expected", [("1", True), ("YES", True), ("false", False)])
    def test_bool_parsing(self, monkeypatch, raw, expected):
        monkeypatch.setenv("ROUTER_FORCE_CROSS_PROTOCOL", raw)
        assert RoutingConfig.from_env().force_cross_protocol is expected


class TestRetryOptions:
    def test_backoff_grows_then_caps(self):
        options = RetryOptions(retries=5, min_timeout=0.025, max_timeout=0.25, factor=2.0)

        delays = [options.backoff(attempt) for attempt in range(1, 6)]

        assert delays == pytest.approx([0.025, 0.05, 0.1, 0.2, 0.25])

    def test_zero_backoff(self):
        assert RetryOptions(min_timeout=0.0, max_timeout=0.0).backoff(3) == 0.0


class TestBatchParams:
    def test_defaults(self):
        assert DEFAULT_BATCH_PARAMS.multicall_chunk == 150
        assert DEFAULT_BATCH_PARAMS.gas_limit_per_call == 1_000_000
        assert DEFAULT_BATCH_PARAMS.quote_min_success_rate == 0.2

    def test_chunk_must_be_positive(self):
        with pytest.raises(ValueError, match="multicall_chunk"):
            BatchParams(multicall_chunk=0)

    def test_success_rate_range(self):
        with pytest.raises(ValueError, match="quote_min_success_rate"):
            BatchParams(quote_min_success_rate=1.5)
