"""Helpers shared by the trigger and status calls."""

from __future__ import annotations

import json
from time import perf_counter

from pydantic import ValidationError

from .types import DecodeError, HttpResponse, RemoteError, Run


def _remote_message(body: str) -> str | None:
    try:
        payload = json.loads(body)
    except (TypeError, ValueError):
        return None
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
    return None


def raise_for_status(response: HttpResponse, *, action: str, step: str) -> None:
    """Raise a RemoteError carrying status and body when the response is not 2xx."""
    if response.ok:
        return
    remote_message = _remote_message(response.body)
    message = f"Failed to {action}, status code: {response.status}"
    if remote_message:
        message = f"{message}\nMessage: {remote_message}"
    raise RemoteError(
        message,
        status=response.status,
        url=response.url,
        body=response.body,
        remote_message=remote_message,
        step=step,
    )


def decode_run(response: HttpResponse, *, step: str) -> Run:
    """Decode a 2xx response body into a Run."""
    try:
        payload = response.json()
    except ValueError as exc:
        raise DecodeError(
            f"Response from {response.url} is not valid JSON: {exc}", url=response.url, body=response.body, step=step
        ) from exc
    if not isinstance(payload, dict):
        raise DecodeError(
            f"Response from {response.url} is not a JSON object", url=response.url, body=response.body, step=step
        )
    try:
        return Run.model_validate(payload)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in exc.errors())
        raise DecodeError(
            f"Unexpected run payload from {response.url} (fields: {fields})",
            url=response.url,
            body=response.body,
            step=step,
        ) from exc


def elapsed_ms(started: float) -> int:
    return int((perf_counter() - started) * 1000)
