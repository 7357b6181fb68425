from dataclasses import dataclass
from typing import Optional

from .config import BASE_RETRY_DELAY, MAX_RETRY_DELAY
from .exceptions import ApexConfigurationError


@dataclass(frozen=True)
class BackoffConfig:
    base_delay_ms: int = BASE_RETRY_DELAY
    max_delay_ms: int = MAX_RETRY_DELAY
    multiplier: float = 2.0

    def __post_init__(self):
        if self.base_delay_ms <= 0:
            raise ApexConfigurationError("base_delay_ms must be positive")
        if self.max_delay_ms < self.base_delay_ms:
            raise ApexConfigurationError(
                "max_delay_ms must not be smaller than base_delay_ms"
            )
        if self.multiplier < 1.0:
            raise ApexConfigurationError("multiplier must be at least 1.0")


class BackoffPolicy:
    """
    Computes the delay before an entry is retried.

    The exponent is the entry's configured retry ceiling rather than a running
    failure count, so every retry of a given entry waits the same amount of
    time. The result is always clamped to ``[base_delay_ms, max_delay_ms]``.
    """

    def __init__(self, config: Optional[BackoffConfig] = None):
        self._config = config or BackoffConfig()

    @property
    def config(self) -> BackoffConfig:
        return self._config

    def calculate_delay_ms(self, retry_attempts: int) -> int:
        exponent = max(0, retry_attempts)
        # Large ceilings would overflow float math long before they matter.
        if exponent > 64:
            return self._config.max_delay_ms

        delay = self._config.base_delay_ms * (self._config.multiplier**exponent)
        delay = min(delay, self._config.max_delay_ms)
        return int(max(delay, self._config.base_delay_ms))

    def calculate_delay(self, retry_attempts: int) -> float:
        """Delay in seconds, as consumed by ``loop.call_later``."""
        return self.calculate_delay_ms(retry_attempts) / 1000.0
