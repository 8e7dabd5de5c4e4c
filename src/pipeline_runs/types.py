"""Shared dataclasses, models and protocols for triggering pipeline runs."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

TERMINAL_STATES = frozenset({"completed", "canceled", "cancelled", "failed"})


@dataclass(frozen=True)
class RunnerConfig:
    """Configuration for talking to the pipelines REST API; durations are validated on construction."""

    base_url: str = "https://dev.azure.com"
    api_version: str = "7.1-preview.1"
    poll_interval_seconds: float = 10.0
    request_timeout_seconds: float = 10.0
    poll_timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        check_seconds("poll interval", self.poll_interval_seconds)
        check_seconds("request timeout", self.request_timeout_seconds, allow_zero=False)
        if self.poll_timeout_seconds is not None:
            check_seconds("poll timeout", self.poll_timeout_seconds)


@dataclass(frozen=True)
class PipelineIdentity:
    """Addresses a single pipeline: organization, project and pipeline id."""

    organization: str
    project: str
    pipeline_id: int


@dataclass(frozen=True)
class HttpRequest:
    """Fully-formed HTTP request descriptor.

    Headers are left out of the repr since they carry the access token.
    """

    method: str
    url: str
    headers: dict[str, str] = field(repr=False)
    body: dict[str, Any] | None = None

    def encoded_body(self) -> bytes | None:
        if self.body is None:
            return None
        return json.dumps(self.body).encode("utf-8")


@dataclass(frozen=True)
class HttpResponse:
    """Status and raw body of a completed HTTP exchange."""

    status: int
    body: str
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.body)


class PipelineReference(BaseModel):
    """The pipeline a run belongs to, as echoed back by the remote system."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    name: str | None = None
    folder: str | None = None
    revision: int | None = None
    url: str | None = None


class Run(BaseModel):
    """One execution of a remote pipeline."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: int
    state: str
    result: str | None = None
    name: str | None = None
    pipeline: PipelineReference | None = None
    created_at: str | None = Field(default=None, alias="createdDate")
    finished_at: str | None = Field(default=None, alias="finishedDate")
    url: str | None = None
    links: dict[str, Any] = Field(default_factory=dict, alias="_links")

    @property
    def is_terminal(self) -> bool:
        return self.state.strip().lower() in TERMINAL_STATES

    @property
    def succeeded(self) -> bool:
        return self.is_terminal and (self.result or "").lower() == "succeeded"


class Transport(Protocol):
    """Sends a request and returns the response for any HTTP status."""

    def send(self, request: HttpRequest) -> HttpResponse:  # pragma: no cover - interface only
        ...


class TraceSink(Protocol):
    """Receives step-wise trace data emitted while triggering and watching runs."""

    def record(self, step: str, data: dict[str, object]) -> None:  # pragma: no cover - interface only
        ...


class RunnerError(RuntimeError):
    """Base class for every error surfaced while triggering or watching a run."""

    def __init__(self, message: str, *, step: str | None = None):
        super().__init__(message)
        self.step = step


class ConfigurationError(RunnerError):
    """Invalid identity, token or template parameters; raised before any network call."""


class RequestError(RunnerError):
    """Network or transport failure."""

    def __init__(self, message: str, *, url: str = "", step: str | None = None):
        super().__init__(message, step=step)
        self.url = url


class RemoteError(RunnerError):
    """The remote system answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        url: str,
        body: str,
        remote_message: str | None = None,
        step: str | None = None,
    ):
        super().__init__(message, step=step)
        self.status = status
        self.url = url
        self.body = body
        self.remote_message = remote_message


class DecodeError(RunnerError):
    """A response did not have the expected shape."""

    def __init__(self, message: str, *, url: str = "", body: str = "", step: str | None = None):
        super().__init__(message, step=step)
        self.url = url
        self.body = body


class PollError(RunnerError):
    """Polling ended before the run reached a terminal state."""

    def __init__(self, message: str, *, run_id: int, attempts: int, step: str | None = "poll"):
        super().__init__(message, step=step)
        self.run_id = run_id
        self.attempts = attempts


def check_seconds(name: str, value: float, *, allow_zero: bool = True) -> float:
    """Reject durations that are negative, non-finite or (optionally) zero."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ConfigurationError(f"{name} must be a finite number of seconds, got {value!r}", step="configure")
    if value < 0 or (value == 0 and not allow_zero):
        bound = "zero or more" if allow_zero else "more than zero"
        raise ConfigurationError(f"{name} must be {bound} seconds, got {value!r}", step="configure")
    return value
