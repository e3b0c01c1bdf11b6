"""Tests for the reconnect backoff policy."""

import pytest

from realtime_session.config.models import ReconnectConfig
from realtime_session.utils.retry_utils import ReconnectPolicy, calculate_backoff_delay


class TestCalculateBackoffDelay:
    def test_exponential_growth(self):
        assert [calculate_backoff_delay(n, 100, 10_000) for n in range(5)] == [
            100,
            200,
            400,
            800,
            1600,
        ]

    def test_capped_at_max_delay(self):
        assert calculate_backoff_delay(10, 1000, 30000) == 30000

    def test_large_attempt_does_not_overflow(self):
        assert calculate_backoff_delay(5000, 1000, 30000) == 30000

    def test_negative_attempt_rejected(self):
        with pytest.raises(ValueError):
            calculate_backoff_delay(-1, 1000, 30000)


class TestReconnectPolicy:
    @pytest.fixture
    def policy(self):
        return ReconnectPolicy(base_delay_ms=1000, max_delay_ms=30000, max_attempts=5)

    def test_first_delay_is_base_delay(self, policy):
        assert policy.next_delay(0) == 1000

    def test_delay_is_non_decreasing_and_bounded(self, policy):
        delays = [policy.next_delay(n) for n in range(40)]
        assert all(a <= b for a, b in zip(delays, delays[1:]))
        assert max(delays) == 30000

    def test_should_retry_below_max(self, policy):
        assert all(policy.should_retry(n) for n in range(5))

    def test_should_not_retry_at_or_above_max(self, policy):
        assert not any(policy.should_retry(n) for n in range(5, 50))

    def test_explicit_max_attempts_overrides(self, policy):
        assert policy.should_retry(5, 10)
        assert not policy.should_retry(2, 2)

    def test_defaults(self):
        policy = ReconnectPolicy()
        assert policy.next_delay(0) == 1000
        assert policy.max_attempts == 5

    def test_from_config(self):
        config = ReconnectConfig(base_delay_ms=250, max_delay_ms=4000, max_attempts=3)
        policy = ReconnectPolicy.from_config(config)
        assert policy == ReconnectPolicy(250, 4000, 3)

    def test_from_disabled_config_never_retries(self):
        policy = ReconnectPolicy.from_config(ReconnectConfig(enabled=False))
        assert not policy.should_retry(0)

    def test_invalid_values_rejected(self):
        with pytest.raises(ValueError):
            ReconnectPolicy(base_delay_ms=-1)
        with pytest.raises(ValueError):
            ReconnectPolicy(max_attempts=-1)

    def test_policy_is_immutable(self, policy):
        with pytest.raises(AttributeError):
            policy.max_attempts = 10
