"""Human-readable renderings of run records."""

from __future__ import annotations

from .types import Run


def render(run: Run) -> str:
    parts = [f"Run {run.id} state: {run.state}"]
    if run.result:
        parts.append(f"result: {run.result}")
    text = ", ".join(parts)
    if run.pipeline is not None and run.pipeline.name:
        text = f"{text} (pipeline: {run.pipeline.name})"
    return text


def render_triggered(run: Run) -> str:
    if run.pipeline is None:
        return f"Pipeline triggered successfully, run id = [{run.id}]"
    if not run.pipeline.name:
        return f"Pipeline with id [{run.pipeline.id}] triggered successfully, run id = [{run.id}]"
    return (
        f"Pipeline [{run.pipeline.name}] with id [{run.pipeline.id}] "
        f"triggered successfully, run id = [{run.id}]"
    )


def render_progress(run: Run) -> str:
    return f"Pipeline status: {run.state}"
