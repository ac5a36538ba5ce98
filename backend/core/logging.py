"""Logging setup and latency tracking."""

import logging
import time
from functools import wraps
from typing import Callable

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def setup_logging(level: str | int = logging.INFO) -> None:
    """Configure the root logger with a single stream handler."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def log_latency(operation_name: str):
    """Log the latency and outcome of every call to the decorated function."""

    def decorator(func: Callable):
        logger = logging.getLogger(func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                latency_ms = (time.perf_counter() - start) * 1000
                logger.error(
                    "%s | latency_ms=%.2f | status=error | error=%s",
                    operation_name,
                    latency_ms,
                    e,
                )
                raise
            latency_ms = (time.perf_counter() - start) * 1000
            logger.info("%s | latency_ms=%.2f | status=success", operation_name, latency_ms)
            return result

        return wrapper

    return decorator
