"""
Retry logic with exponential backoff for consent delivery.
"""

from dataclasses import dataclass
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class ExponentialBackoff:
    """
    Exponential backoff calculator for retry delays.
    """

    def __init__(
        self,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        multiplier: float = 2.0
    ):
        """
        Initialize exponential backoff calculator.

        Args:
            base_delay: Base delay in seconds
            max_delay: Maximum delay in seconds
            multiplier: Multiplier for each retry
        """
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.multiplier = multiplier

    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay for a given attempt number.

        Args:
            attempt: Attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        delay = self.base_delay * (self.multiplier ** attempt)
        return min(delay, self.max_delay)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and per-attempt timeout for a delivery."""
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    multiplier: float = 2.0
    attempt_timeout: float = 10.0

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def backoff(self) -> ExponentialBackoff:
        return ExponentialBackoff(self.base_delay, self.max_delay, self.multiplier)

    @classmethod
    def from_config(cls, delivery_config) -> "RetryPolicy":
        """Build a policy from a ``DeliveryConfig``."""
        return cls(
            max_retries=delivery_config.max_retries,
            base_delay=delivery_config.base_delay,
            max_delay=delivery_config.max_delay,
            attempt_timeout=delivery_config.attempt_timeout,
        )


class RetryStats:
    """
    Statistics tracker for retry operations.
    """

    def __init__(self):
        """Initialize retry statistics."""
        self.reset()

    def record_success(self, attempt: int):
        """
        Record a successful delivery.

        Args:
            attempt: Attempt number (0-indexed)
        """
        self.total_deliveries += 1

        if attempt == 0:
            self.successful_first_attempt += 1
        else:
            self.successful_after_retry += 1
            self.total_retry_count += attempt

    def record_failure(self, attempts: int):
        """
        Record a failed delivery after all retries.

        Args:
            attempts: Total number of attempts made
        """
        self.total_deliveries += 1
        self.failed_after_all_retries += 1
        self.total_retry_count += max(attempts - 1, 0)

    def get_stats(self) -> dict:
        """
        Get retry statistics.

        Returns:
            Dictionary of statistics
        """
        success_rate = 0.0
        avg_retries = 0.0
        if self.total_deliveries > 0:
            success_rate = (
                (self.successful_first_attempt + self.successful_after_retry) /
                self.total_deliveries * 100
            )
            avg_retries = self.total_retry_count / self.total_deliveries

        return {
            'total_deliveries': self.total_deliveries,
            'successful_first_attempt': self.successful_first_attempt,
            'successful_after_retry': self.successful_after_retry,
            'failed_after_all_retries': self.failed_after_all_retries,
            'success_rate': round(success_rate, 2),
            'average_retries': round(avg_retries, 2),
            'since': self.last_reset.isoformat()
        }

    def reset(self):
        """Reset statistics."""
        self.total_deliveries = 0
        self.successful_first_attempt = 0
        self.successful_after_retry = 0
        self.failed_after_all_retries = 0
        self.total_retry_count = 0
        self.last_reset = utc_now()
