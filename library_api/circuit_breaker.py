"""
Circuit breaker guarding database connection acquisition.
Stops hammering the pool while the store is failing; it never retries.
"""
from pybreaker import CircuitBreaker, CircuitBreakerListener
from .logger import api_logger
from .metrics import record_error, update_circuit_breaker_metrics


class BreakerStateListener(CircuitBreakerListener):
    """Log circuit breaker state changes and update metrics."""

    def state_change(self, cb, old_state, new_state):
        old_name = old_state.name if old_state is not None else None
        api_logger.warning(
            f"Circuit breaker '{cb.name}' state changed: {old_name} -> {new_state.name}"
        )
        record_error(f"CircuitBreaker_{cb.name}_{new_state.name}")
        update_circuit_breaker_metrics(cb.name, new_state.name, cb.fail_counter)

    def failure(self, cb, exc):
        update_circuit_breaker_metrics(cb.name, cb.current_state, cb.fail_counter)


def make_db_breaker(fail_max=5, reset_timeout=60):
    """Create the breaker used around ``pool.acquire``."""
    return CircuitBreaker(
        fail_max=fail_max,  # Open after this many consecutive failures
        reset_timeout=reset_timeout,  # Seconds before a trial call is let through
        listeners=[BreakerStateListener()],
        name='database'
    )


def get_breaker_status(breaker):
    """Snapshot of a breaker for health reporting."""
    return {
        'state': breaker.current_state,
        'fail_counter': breaker.fail_counter
    }
