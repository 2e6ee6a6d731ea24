from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Coroutine
from functools import wraps
from typing import cast

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    after_nothing,
    before_nothing,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_fixed,
    wait_random_exponential,
)
from tenacity.retry import retry_base
from tenacity.wait import wait_base

from ..logger import get_logger
from .config import RetryConfig
from .types import BeforeSleepCallback, P, R, RetryCallback

logger = get_logger(__name__)


class RetryLogicError(RuntimeError): ...


class Retry:
    """Retry decorator for coroutine functions, driven by a `RetryConfig`."""

    def __init__(
        self,
        config: RetryConfig,
        before: RetryCallback | None = None,
        after: RetryCallback | None = None,
        before_sleep: BeforeSleepCallback | None = None,
    ) -> None:
        self._config = config
        self._before = before
        self._after = after
        self._before_sleep = before_sleep
        self._stop = stop_after_attempt(config.max_attempts)
        self._wait = self._build_wait(config)
        self._retry_condition = self._build_retry_condition(config)

    @property
    def config(self) -> RetryConfig:
        return self._config

    def _build_wait(self, config: RetryConfig) -> wait_base:
        if config.fixed_wait is not None:
            return wait_fixed(config.fixed_wait)

        # NOTE: Full Jitter from https://aws.amazon.com/blogs/architecture/exponential-backoff-and-jitter/
        return wait_random_exponential(
            multiplier=config.multiplier,
            min=config.wait_min,
            max=config.wait_max,
            exp_base=config.exp_base,
        )

    def _build_retry_condition(self, config: RetryConfig) -> retry_base:
        if config.retry_on_exceptions:
            condition: retry_base = retry_if_exception_type(config.retry_on_exceptions)
        else:
            condition = retry_if_exception_type(Exception)

        if config.never_retry_on:
            condition = condition & retry_if_not_exception_type(config.never_retry_on)

        return condition

    def __call__(
        self, func: Callable[P, Coroutine[object, object, R]]
    ) -> Callable[P, Coroutine[object, object, R]]:
        if not inspect.iscoroutinefunction(func):
            msg = f"retry() only decorates coroutine functions, got {func!r}"
            raise TypeError(msg)

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            async for attempt in AsyncRetrying(
                stop=self._stop,
                wait=self._wait,
                retry=self._retry_condition,
                before=cast(
                    Callable[[RetryCallState], Awaitable[None] | None],
                    self._before or before_nothing,
                ),
                after=cast(
                    Callable[[RetryCallState], Awaitable[None] | None],
                    self._after or after_nothing,
                ),
                before_sleep=self._before_sleep,
                reraise=self._config.reraise,
            ):
                with attempt:
                    return await func(*args, **kwargs)

            raise RetryLogicError("Async retry loop completed without success or failure")

        return wrapper


def log_before_sleep(target: str) -> BeforeSleepCallback:
    """Build a ``before_sleep`` callback that logs each failed attempt."""

    def _log(retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None else None
        logger.warning(
            "Waiting for endpoint",
            target=target,
            attempt=retry_state.attempt_number,
            next_wait_s=retry_state.next_action.sleep if retry_state.next_action else None,
            error=str(error) if error is not None else None,
        )

    return _log


def retry(
    config: RetryConfig | None = None,
    before: RetryCallback | None = None,
    after: RetryCallback | None = None,
    before_sleep: BeforeSleepCallback | None = None,
) -> Retry:
    return Retry(config or RetryConfig(), before, after, before_sleep)
