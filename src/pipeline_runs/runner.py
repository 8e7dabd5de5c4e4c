"""High-level coordinator: trigger a run and optionally watch it to completion."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any

from .poller import poll_until_terminal
from .trace import bind_identity
from .trigger import trigger_run
from .types import (
    PipelineIdentity,
    Run,
    RunnerConfig,
    RunnerError,
    TraceSink,
    Transport,
)
from .utils import elapsed_ms


@dataclass
class PipelineRunner:
    """Run the trigger → (optional) watch sequence for one pipeline."""

    config: RunnerConfig
    transport: Transport
    token: str = field(repr=False)

    trace: TraceSink | None = None
    sleep: Callable[[float], None] = time.sleep

    def _trace(self, sink: TraceSink | None, step: str, data: dict[str, object]) -> None:
        if sink is not None:
            try:
                sink.record(step, data)
            except Exception:
                pass

    def run(
        self,
        identity: PipelineIdentity,
        parameters: dict[str, Any] | None = None,
        *,
        watch: bool = False,
        ref_name: str | None = None,
        on_triggered: Callable[[Run], None] | None = None,
        on_update: Callable[[Run], None] | None = None,
    ) -> Run:
        """Trigger one run; when ``watch`` is set, block until it is terminal."""

        trace = bind_identity(self.trace, identity)

        step_started = perf_counter()
        try:
            run = trigger_run(
                identity,
                self.token,
                parameters,
                transport=self.transport,
                config=self.config,
                ref_name=ref_name,
            )
        except RunnerError as exc:
            exc.step = exc.step or "trigger"
            self._trace(
                trace,
                "error",
                {"step": exc.step, "error": str(exc), "duration_ms": elapsed_ms(step_started)},
            )
            raise
        self._trace(
            trace,
            "trigger",
            {
                "run_id": run.id,
                "state": run.state,
                "parameter_names": sorted(parameters or {}),
                "duration_ms": elapsed_ms(step_started),
            },
        )
        if on_triggered is not None:
            on_triggered(run)

        if not watch:
            return run

        step_started = perf_counter()
        try:
            final = poll_until_terminal(
                identity,
                self.token,
                run.id,
                transport=self.transport,
                config=self.config,
                timeout=self.config.poll_timeout_seconds,
                sleep=self.sleep,
                on_update=on_update,
            )
        except RunnerError as exc:
            self._trace(
                trace,
                "error",
                {
                    "step": exc.step or "poll",
                    "run_id": run.id,
                    "error": str(exc),
                    "duration_ms": elapsed_ms(step_started),
                },
            )
            raise
        self._trace(
            trace,
            "poll",
            {
                "run_id": final.id,
                "state": final.state,
                "result": final.result,
                "duration_ms": elapsed_ms(step_started),
            },
        )
        return final
