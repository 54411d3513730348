"""
Reliability settings shared by every provider call.

Provides logging configuration, per-backend timeouts, the liveness-probe retry
policy and operation timing with structured logging.
"""

import logging
import sys
import time
from typing import Callable, Optional, TypeVar

import httpx
import structlog
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger(__name__)

# Local inference servers can take minutes to load a model on first use
LOCAL_TIMEOUTS = {
    "connect": 60.0,
    "read": 300.0,
    "write": 60.0,
    "pool": 60.0,
}

CLOUD_TIMEOUTS = {
    "connect": 10.0,
    "read": 120.0,
}

PROBE_RETRY = {
    "max_attempts": 2,
    "min_wait": 0.5,
    "max_wait": 2.0,
    "multiplier": 1.0,
}

T = TypeVar("T")


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Route structlog through the standard library logging module.

    Args:
        level: Root log level name (DEBUG, INFO, WARNING, ...)
        json_output: Render JSON lines instead of the console renderer
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def local_http_timeout(connect: Optional[float] = None, read: Optional[float] = None) -> httpx.Timeout:
    """Build the httpx timeout used for the local inference endpoint."""
    return httpx.Timeout(
        connect=connect or LOCAL_TIMEOUTS["connect"],
        read=read or LOCAL_TIMEOUTS["read"],
        write=LOCAL_TIMEOUTS["write"],
        pool=LOCAL_TIMEOUTS["pool"],
    )


def get_http_client(
    base_url: str,
    timeout: Optional[httpx.Timeout] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """
    Create an HTTP client with the standard headers and timeouts.

    Args:
        base_url: Base URL for requests
        timeout: Timeout override (default: local inference timeouts)
        transport: Optional transport, used by tests to fake the server

    Returns:
        Configured httpx.Client
    """
    client_kwargs = {
        "base_url": base_url.rstrip("/"),
        "headers": {
            "User-Agent": "InterviewCoach/0.1",
            "Accept": "application/json",
        },
        "timeout": timeout or local_http_timeout(),
        "follow_redirects": True,
    }
    if transport is not None:
        client_kwargs["transport"] = transport

    return httpx.Client(**client_kwargs)


def run_probe(
    probe: Callable[[], T],
    exceptions: tuple,
    max_attempts: Optional[int] = None,
) -> T:
    """
    Run a liveness probe with bounded retries.

    Only probes are retried. Real generate calls are never retried here.

    Args:
        probe: Zero-argument callable performing the check
        exceptions: Exception types that trigger another attempt
        max_attempts: Attempts before giving up (default: PROBE_RETRY)

    Returns:
        Whatever the probe returns

    Raises:
        The last exception raised by the probe once attempts are exhausted
    """
    retrying = Retrying(
        stop=stop_after_attempt(max_attempts or PROBE_RETRY["max_attempts"]),
        wait=wait_exponential(
            multiplier=PROBE_RETRY["multiplier"],
            min=PROBE_RETRY["min_wait"],
            max=PROBE_RETRY["max_wait"],
        ),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return retrying(probe)


class OperationTimer:
    """Context manager for timing operations with structured logging."""

    def __init__(self, operation_name: str, **context):
        self.operation_name = operation_name
        self.context = context
        self.start_time = None
        self.duration = None

    def __enter__(self):
        self.start_time = time.monotonic()
        logger.debug("Operation started", operation=self.operation_name, **self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.monotonic() - self.start_time

        if exc_type is None:
            logger.info(
                "Operation completed",
                operation=self.operation_name,
                duration_seconds=round(self.duration, 3),
                **self.context
            )
        else:
            logger.error(
                "Operation failed",
                operation=self.operation_name,
                duration_seconds=round(self.duration, 3),
                error_type=exc_type.__name__,
                error_message=str(exc_val),
                **self.context
            )


def log_api_call(
    provider: str,
    endpoint: str,
    request_size: Optional[int] = None,
    **context
) -> OperationTimer:
    """
    Create an operation timer for a provider call.

    Args:
        provider: Provider display name
        endpoint: Endpoint or model being called
        request_size: Prompt length in characters
        **context: Additional context for logging

    Returns:
        OperationTimer context manager
    """
    timer_context = {
        "provider": provider,
        "endpoint": endpoint,
        **context
    }

    if request_size is not None:
        timer_context["request_size"] = request_size

    return OperationTimer(f"{provider} API Call", **timer_context)


__all__ = [
    "LOCAL_TIMEOUTS",
    "CLOUD_TIMEOUTS",
    "PROBE_RETRY",
    "configure_logging",
    "local_http_timeout",
    "get_http_client",
    "run_probe",
    "OperationTimer",
    "log_api_call",
    "logger",
]
