"""
Tests for retry backoff and statistics.
"""

from consent_manager.core.config import DeliveryConfig
from consent_manager.services.retry import ExponentialBackoff, RetryPolicy, RetryStats


def test_backoff_doubles_from_base_delay():
    backoff = ExponentialBackoff(base_delay=1.0)

    assert [backoff.calculate_delay(a) for a in range(3)] == [1.0, 2.0, 4.0]


def test_backoff_is_capped():
    backoff = ExponentialBackoff(base_delay=1.0, max_delay=5.0)

    assert backoff.calculate_delay(10) == 5.0


def test_policy_attempts_and_config():
    policy = RetryPolicy.from_config(DeliveryConfig(max_retries=2, base_delay=0.5, attempt_timeout=3))

    assert policy.max_attempts == 3
    assert policy.attempt_timeout == 3
    assert policy.backoff().calculate_delay(1) == 1.0
    assert RetryPolicy().max_attempts == 4


def test_stats_track_outcomes():
    stats = RetryStats()
    stats.record_success(0)
    stats.record_success(2)
    stats.record_failure(4)

    result = stats.get_stats()
    assert result['total_deliveries'] == 3
    assert result['successful_first_attempt'] == 1
    assert result['successful_after_retry'] == 1
    assert result['failed_after_all_retries'] == 1
    assert result['success_rate'] == 66.67
    assert result['average_retries'] == round(5 / 3, 2)

    stats.reset()
    assert stats.get_stats()['total_deliveries'] == 0
