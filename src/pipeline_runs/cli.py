"""Command-line entry point: trigger a pipeline run and optionally watch it."""

from __future__ import annotations

import argparse
import logging
import math
import sys
from dataclasses import replace

from .builder import parse_template_parameters
from .config import Settings, load_settings
from .reporter import render, render_progress, render_triggered
from .runner import PipelineRunner
from .trace import ConsoleTraceSink, FanOutTraceSink, JsonlTraceSink, daily_trace_path
from .transport import UrllibTransport
from .types import ConfigurationError, PipelineIdentity, RemoteError, RunnerError, TraceSink, Transport

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid pipeline id: {value!r}") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError(f"pipeline id must be positive: {value!r}")
    return number


def _non_negative_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid number of seconds: {value!r}") from exc
    if not math.isfinite(number):
        raise argparse.ArgumentTypeError(f"seconds must be a finite number: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"seconds must not be negative: {value!r}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pipeline-runs", description="Trigger an Azure Pipelines run and optionally watch it"
    )
    parser.add_argument("-o", "--organization", required=True, help="Azure DevOps organization name")
    parser.add_argument("-p", "--project", required=True, help="Azure DevOps project")
    parser.add_argument("-i", "--pipeline-id", "--pipeline_id", dest="pipeline_id", type=_positive_int, required=True,
                        help="Azure Pipeline ID")
    parser.add_argument("-t", "--template-parameters", "--template_parameters", dest="template_parameters",
                        default="", help="Pipeline template parameters as a JSON object")
    parser.add_argument("-b", "--branch", default=None, help="Branch or ref to run, e.g. refs/heads/main")
    parser.add_argument("-w", "--watch", action="store_true", help="Watch the run and block until it finishes")
    parser.add_argument("--interval", type=_non_negative_float, default=None,
                        help="Seconds between status checks while watching")
    parser.add_argument("--timeout", type=_non_negative_float, default=None,
                        help="Stop watching after this many seconds (default: wait indefinitely)")
    parser.add_argument("--no-log", action="store_true", help="Disable JSONL trace logging")
    parser.add_argument("--trace", action="store_true", help="Print trace events to stderr")
    parser.add_argument("--debug", action="store_true", help="Verbose logging and stack traces")
    return parser


def _build_transport(settings: Settings) -> Transport:
    return UrllibTransport(timeout_seconds=settings.runner.request_timeout_seconds)


def _build_runner(settings: Settings, args: argparse.Namespace) -> PipelineRunner:
    config = settings.runner
    if args.interval is not None:
        config = replace(config, poll_interval_seconds=args.interval)
    if args.timeout is not None:
        config = replace(config, poll_timeout_seconds=args.timeout)

    trace: TraceSink | None = None if args.no_log else JsonlTraceSink(daily_trace_path())
    if args.trace:
        trace = ConsoleTraceSink() if trace is None else FanOutTraceSink(trace, ConsoleTraceSink())

    return PipelineRunner(config=config, transport=_build_transport(settings), token=settings.token, trace=trace)


def _report_error(exc: RunnerError, *, debug: bool) -> None:
    step = getattr(exc, "step", None)
    if step:
        print(f"Error in step '{step}': {exc}", file=sys.stderr)
    else:
        print(f"Error: {exc}", file=sys.stderr)
    remote = exc if isinstance(exc, RemoteError) else exc.__cause__
    if isinstance(remote, RemoteError):
        print(f"Endpoint: {remote.url}\nResponse body: {remote.body}", file=sys.stderr)
    if debug:
        import traceback

        traceback.print_exc()


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    identity = PipelineIdentity(
        organization=args.organization, project=args.project, pipeline_id=args.pipeline_id
    )

    try:
        settings = load_settings()
        parameters = parse_template_parameters(args.template_parameters)
        runner = _build_runner(settings, args)
    except ConfigurationError as exc:
        _report_error(exc, debug=args.debug)
        return EXIT_FAILURE

    try:
        run = runner.run(
            identity,
            parameters,
            watch=args.watch,
            ref_name=args.branch,
            on_triggered=lambda r: print(render_triggered(r)),
            on_update=lambda r: print(render_progress(r), flush=True),
        )
    except RunnerError as exc:
        _report_error(exc, debug=args.debug)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print("Interrupted; the remote run keeps going.", file=sys.stderr)
        return EXIT_INTERRUPTED

    print(render(run))
    if args.watch and not run.succeeded:
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
