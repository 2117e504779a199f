"""Utility decorators for logging and timing."""
import asyncio
import functools
import time
from typing import Callable

from geocurrency.utils.logging import get_logger

logger = get_logger(__name__)


def log_execution(log_args: bool = True, log_result: bool = False):
    """
    Decorator to log function execution with timing.

    Args:
        log_args: Whether to log function arguments
        log_result: Whether to log function result

    Example:
        @log_execution(log_args=False)
        async def resolve(self):
            ...
    """
    def decorator(func: Callable):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            func_name = func.__qualname__

            extra = {"function": func_name}
            if log_args:
                extra["function_args"] = str(args)[:100]
                extra["function_kwargs"] = str(kwargs)[:100]

            logger.debug(f"Starting {func_name}", extra=extra)

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                execution_time = (time.perf_counter() - start_time) * 1000
                logger.error(
                    f"Failed {func_name}",
                    extra={"function": func_name, "execution_time_ms": round(execution_time, 2), "error": str(e)}
                )
                raise

            execution_time = (time.perf_counter() - start_time) * 1000
            log_extra = {"function": func_name, "execution_time_ms": round(execution_time, 2)}
            if log_result:
                log_extra["result"] = str(result)[:100]
            logger.debug(f"Completed {func_name}", extra=log_extra)
            return result

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            func_name = func.__qualname__

            extra = {"function": func_name}
            if log_args:
                extra["function_args"] = str(args)[:100]
                extra["function_kwargs"] = str(kwargs)[:100]

            logger.debug(f"Starting {func_name}", extra=extra)

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                execution_time = (time.perf_counter() - start_time) * 1000
                logger.error(
                    f"Failed {func_name}",
                    extra={"function": func_name, "execution_time_ms": round(execution_time, 2), "error": str(e)}
                )
                raise

            execution_time = (time.perf_counter() - start_time) * 1000
            log_extra = {"function": func_name, "execution_time_ms": round(execution_time, 2)}
            if log_result:
                log_extra["result"] = str(result)[:100]
            logger.debug(f"Completed {func_name}", extra=log_extra)
            return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
