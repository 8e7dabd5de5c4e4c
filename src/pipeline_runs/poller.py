"""Poll a run at a fixed cadence until it reaches a terminal state."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from .builder import build_status_request
from .types import (
    DecodeError,
    PipelineIdentity,
    PollError,
    RequestError,
    Run,
    RunnerConfig,
    RunnerError,
    Transport,
    check_seconds,
)
from .utils import decode_run, raise_for_status

logger = logging.getLogger(__name__)


def fetch_run(
    identity: PipelineIdentity,
    token: str,
    run_id: int,
    *,
    transport: Transport,
    config: RunnerConfig,
) -> Run:
    """Read the current record of a run. Read-only, safe to repeat."""
    request = build_status_request(identity, token, run_id, config=config)
    try:
        response = transport.send(request)
    except RequestError as exc:
        exc.step = exc.step or "fetch_run"
        raise
    raise_for_status(response, action="retrieve the pipeline run status", step="fetch_run")
    run = decode_run(response, step="fetch_run")
    if run.id != run_id:
        raise DecodeError(
            f"Status response for run {run_id} carried run id {run.id}",
            url=response.url,
            body=response.body,
            step="fetch_run",
        )
    return run


def poll_until_terminal(
    identity: PipelineIdentity,
    token: str,
    run_id: int,
    *,
    transport: Transport,
    config: RunnerConfig,
    interval: float | None = None,
    timeout: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    on_update: Callable[[Run], None] | None = None,
) -> Run:
    """Fetch the run every ``interval`` seconds and return the first terminal record.

    There is no deadline unless ``timeout`` is given. Any failure ends the loop
    as a PollError; polling can be restarted with the same ``run_id``.
    """
    wait = config.poll_interval_seconds if interval is None else interval
    check_seconds("poll interval", wait)
    if timeout is not None:
        check_seconds("poll timeout", timeout)
    deadline = None if timeout is None else clock() + timeout
    attempts = 0

    while True:
        attempts += 1
        try:
            run = fetch_run(identity, token, run_id, transport=transport, config=config)
        except RunnerError as exc:
            logger.error(f"Polling run {run_id} failed on attempt {attempts}: {exc}")
            raise PollError(
                f"Failed to retrieve status of run {run_id}: {exc}", run_id=run_id, attempts=attempts
            ) from exc

        if run.is_terminal:
            logger.info(f"Run {run_id} finished with state {run.state}, result {run.result}")
            return run

        logger.debug(f"Run {run_id} is {run.state} after {attempts} attempt(s)")
        if on_update is not None:
            on_update(run)

        if deadline is not None and clock() + wait > deadline:
            raise PollError(
                f"Run {run_id} still {run.state} after {timeout}s ({attempts} status checks)",
                run_id=run_id,
                attempts=attempts,
            )
        sleep(wait)
