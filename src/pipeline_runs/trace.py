"""Trace sinks for the trigger and poll steps of a run."""

from __future__ import annotations

import json
import os
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import TextIO

from .types import PipelineIdentity, TraceSink


class JsonlTraceSink:
    """Append trace events to a JSONL file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def record(self, step: str, data: dict[str, object]) -> None:
        payload = {"timestamp": datetime.now(UTC).isoformat(), "step": step, **data}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                json.dump(payload, handle, ensure_ascii=False, default=str)
                handle.write("\n")
        except OSError:
            # Tracing should never abort a run.
            pass


class ConsoleTraceSink:
    """Write one ``[trace] step key=value ...`` line per event.

    Writes to stderr unless another stream is given.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def record(self, step: str, data: dict[str, object]) -> None:
        fields = " ".join(f"{key}={value}" for key, value in data.items() if value is not None)
        print(f"[trace] {step} {fields}".rstrip(), file=self._stream or sys.stderr)


class FanOutTraceSink:
    """Forward each event to every wrapped sink."""

    def __init__(self, *sinks: TraceSink) -> None:
        self._sinks = sinks

    def record(self, step: str, data: dict[str, object]) -> None:
        for sink in self._sinks:
            sink.record(step, data)


class ContextTraceSink:
    """Injects a fixed context payload into every trace event."""

    def __init__(self, sink: TraceSink, context: dict[str, object]) -> None:
        self._sink = sink
        self._context = dict(context)

    def record(self, step: str, data: dict[str, object]) -> None:
        self._sink.record(step, {**self._context, **data})


def bind_identity(trace: TraceSink | None, identity: PipelineIdentity) -> TraceSink | None:
    """Tag every event with the pipeline being run; None passes through."""
    if trace is None:
        return None
    return ContextTraceSink(
        trace,
        {
            "organization": identity.organization,
            "project": identity.project,
            "pipeline_id": identity.pipeline_id,
        },
    )


def daily_trace_path(base: Path | None = None) -> Path:
    if base is None:
        env_dir = os.getenv("TRACE_LOG_DIR", "").strip()
        base = Path(env_dir) if env_dir else Path("logs") / "traces"
    directory = base.resolve()
    filename = datetime.now(UTC).strftime("%Y%m%d.jsonl")
    return directory / filename
