"""Trigger Azure Pipelines runs over the REST API and watch them until they finish."""

from .poller import fetch_run, poll_until_terminal
from .reporter import render
from .runner import PipelineRunner
from .transport import UrllibTransport
from .trigger import trigger_run
from .types import (
    ConfigurationError,
    DecodeError,
    PipelineIdentity,
    PollError,
    RemoteError,
    RequestError,
    Run,
    RunnerConfig,
    RunnerError,
)

__all__ = [
    "ConfigurationError",
    "DecodeError",
    "PipelineIdentity",
    "PipelineRunner",
    "PollError",
    "RemoteError",
    "RequestError",
    "Run",
    "RunnerConfig",
    "RunnerError",
    "UrllibTransport",
    "fetch_run",
    "poll_until_terminal",
    "render",
    "trigger_run",
]
