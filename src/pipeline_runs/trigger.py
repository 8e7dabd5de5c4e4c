"""Start a new pipeline run."""

from __future__ import annotations

import logging
from typing import Any

from .builder import build_trigger_request
from .types import PipelineIdentity, RequestError, Run, RunnerConfig, Transport
from .utils import decode_run, raise_for_status

logger = logging.getLogger(__name__)


def trigger_run(
    identity: PipelineIdentity,
    token: str,
    parameters: dict[str, Any] | None = None,
    *,
    transport: Transport,
    config: RunnerConfig,
    ref_name: str | None = None,
) -> Run:
    """Create exactly one remote run and return its initial record.

    Each call starts a new pipeline execution, so nothing here retries.
    """
    request = build_trigger_request(identity, token, parameters, config=config, ref_name=ref_name)
    logger.info(
        f"Triggering pipeline {identity.pipeline_id} in {identity.organization}/{identity.project} "
        f"with {len(parameters or {})} template parameter(s)"
    )
    try:
        response = transport.send(request)
    except RequestError as exc:
        exc.step = exc.step or "trigger"
        raise
    raise_for_status(response, action="trigger the pipeline run", step="trigger")
    run = decode_run(response, step="trigger")
    logger.info(f"Run {run.id} created in state {run.state}")
    return run
