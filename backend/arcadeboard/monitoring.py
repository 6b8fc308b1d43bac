"""
Optional New Relic instrumentation.

Every helper is a no-op unless the agent is installed and a license key is
configured, so the service layer can call them unconditionally.
"""
import contextlib
import functools
import inspect
import logging
from typing import Callable

from arcadeboard.config import get_settings

logger = logging.getLogger(__name__)

# The agent is an optional extra; without it monitoring is disabled
try:
    import newrelic.agent
    NEW_RELIC_AVAILABLE = True
except ImportError:
    NEW_RELIC_AVAILABLE = False


def monitoring_enabled() -> bool:
    return NEW_RELIC_AVAILABLE and bool(get_settings().new_relic_license_key)


def _function_trace(name: str):
    if not monitoring_enabled():
        return contextlib.nullcontext()
    return newrelic.agent.FunctionTrace(name)


def monitor_transaction(name: str = None):
    """
    Decorator tracing a sync or async function as a New Relic function trace.

    Usage:
        @monitor_transaction("Runs/submit")
        def submit_run(...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        trace_name = name or f"{func.__module__}.{func.__name__}"

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                with _function_trace(trace_name):
                    return await func(*args, **kwargs)
            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            with _function_trace(trace_name):
                return func(*args, **kwargs)
        return sync_wrapper

    return decorator


def record_custom_event(event_type: str, attributes: dict):
    """
    Record a custom event in New Relic.

    Args:
        event_type: Type of event (e.g., "RunSubmitted")
        attributes: Dictionary of event attributes
    """
    if not monitoring_enabled():
        return
    try:
        newrelic.agent.record_custom_event(event_type, attributes)
    except Exception as e:
        logger.debug(f"Failed to record custom event: {e}")
