"""Status polling for remote resources.

Blocks until a remote resource reports a target status, reports an error,
or an overall deadline passes.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from typing import Protocol

from loguru import logger
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_delay,
    wait_fixed,
)

from kitchen_oraclecloud.errors import RemoteError, WaitTimeoutError, format_errors

log = logger.bind(component="wait")


class Pollable(Protocol):
    """Remote resource with an asynchronous status."""

    @property
    def status(self) -> str: ...

    @property
    def error(self) -> bool: ...

    @property
    def errors(self) -> Sequence[str]: ...

    def refresh(self) -> object: ...


class _StatusPendingError(Exception):
    """Resource not yet in target status - retry."""


def wait_for_status(
    resource: Pollable,
    target: str,
    *,
    timeout: float,
    interval: float,
    on_status: Callable[[str], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Wait until ``resource.status`` equals ``target``.

    Each attempt refreshes the resource once. The error flag is checked
    first, so a failed resource aborts immediately without a status
    notification. Otherwise a status different from the previous attempt's
    is logged and passed to ``on_status``.

    Args:
        resource: Resource to poll.
        target: Status string to wait for (e.g., "ready", "stopped").
        timeout: Overall deadline in seconds.
        interval: Seconds to sleep between attempts.
        on_status: Called with each newly observed status.
        sleep: Sleep function, replaceable in tests.

    Raises:
        RemoteError: If the resource reports an error.
        WaitTimeoutError: If the deadline passes first.
    """
    last_status: str | None = None

    def _check() -> None:
        nonlocal last_status
        resource.refresh()
        current = resource.status

        if resource.error:
            errors = _as_list(resource.errors)
            log.error("Request encountered an error: {errors}", errors=format_errors(errors))
            raise RemoteError(errors)

        if current != last_status:
            last_status = current
            log.info("Current status: {status}.", status=current)
            if on_status is not None:
                on_status(current)

        if current != target:
            raise _StatusPendingError(current)

    retrying = Retrying(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(interval),
        retry=retry_if_exception_type(_StatusPendingError),
        sleep=sleep,
    )

    try:
        retrying(_check)
    except RetryError as e:
        error = WaitTimeoutError(timeout)
        log.error(str(error))
        raise error from e


def _as_list(errors: Sequence[str] | str | None) -> list[str]:
    match errors:
        case None:
            return []
        case str():
            return [errors]
        case _:
            return [str(e) for e in errors]
