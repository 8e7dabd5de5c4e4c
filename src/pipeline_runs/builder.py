"""Construct authenticated requests for the run-trigger and run-status endpoints."""

from __future__ import annotations

import base64
import json
from typing import Any
from urllib.parse import quote

from .types import ConfigurationError, HttpRequest, PipelineIdentity, RunnerConfig


def parse_template_parameters(text: str | None) -> dict[str, Any]:
    """Parse a JSON-object string into template parameters.

    An empty or missing string yields an empty mapping.
    """
    if text is None or not text.strip():
        return {}
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Template parameters are not valid JSON: {exc}", step="configure") from exc
    if not isinstance(parsed, dict):
        raise ConfigurationError(
            f"Template parameters must be a JSON object, got {type(parsed).__name__}", step="configure"
        )
    return parsed


def validate_identity(identity: PipelineIdentity) -> None:
    for name in ("organization", "project"):
        value = getattr(identity, name)
        if not isinstance(value, str) or not value.strip():
            raise ConfigurationError(f"Pipeline {name} must be a non-empty string", step="configure")
    pipeline_id = identity.pipeline_id
    if isinstance(pipeline_id, bool) or not isinstance(pipeline_id, int) or pipeline_id <= 0:
        raise ConfigurationError(
            f"Pipeline id must be a positive integer, got {pipeline_id!r}", step="configure"
        )


def basic_auth_header(token: str) -> str:
    """Encode a personal access token as HTTP Basic credentials with an empty user name."""
    if not token:
        raise ConfigurationError("Access token must not be empty", step="configure")
    encoded = base64.b64encode(f":{token}".encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


def _headers(token: str) -> dict[str, str]:
    return {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "Authorization": basic_auth_header(token),
    }


def runs_url(identity: PipelineIdentity, config: RunnerConfig, run_id: int | None = None) -> str:
    base = config.base_url.rstrip("/")
    org = quote(identity.organization.strip(), safe="")
    project = quote(identity.project.strip(), safe="")
    path = f"{base}/{org}/{project}/_apis/pipelines/{identity.pipeline_id}/runs"
    if run_id is not None:
        path = f"{path}/{run_id}"
    return f"{path}?api-version={config.api_version}"


def build_trigger_body(parameters: dict[str, Any] | None, ref_name: str | None = None) -> dict[str, Any]:
    self_repo: dict[str, Any] = {}
    if ref_name:
        self_repo["refName"] = ref_name
    return {
        "resources": {"repositories": {"self": self_repo}},
        "templateParameters": dict(parameters or {}),
    }


def build_trigger_request(
    identity: PipelineIdentity,
    token: str,
    parameters: dict[str, Any] | None = None,
    *,
    config: RunnerConfig,
    ref_name: str | None = None,
) -> HttpRequest:
    """Build the POST request that creates a new run."""
    validate_identity(identity)
    return HttpRequest(
        method="POST",
        url=runs_url(identity, config),
        headers=_headers(token),
        body=build_trigger_body(parameters, ref_name),
    )


def build_status_request(
    identity: PipelineIdentity,
    token: str,
    run_id: int,
    *,
    config: RunnerConfig,
) -> HttpRequest:
    """Build the GET request that reads the current state of a run."""
    validate_identity(identity)
    return HttpRequest(
        method="GET",
        url=runs_url(identity, config, run_id),
        headers=_headers(token),
    )
