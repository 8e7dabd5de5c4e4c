"""Environment-backed settings, read once at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from .types import ConfigurationError, RunnerConfig, check_seconds

PAT_ENV_VAR = "AZURE_DEVOPS_EXT_PAT"


@dataclass(frozen=True)
class Settings:
    """Access token plus API settings resolved from the environment."""

    token: str = field(repr=False)
    runner: RunnerConfig = field(default_factory=RunnerConfig)


def _float_env(name: str, default: float, *, allow_zero: bool = True) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", step="configure") from exc
    return check_seconds(name, value, allow_zero=allow_zero)


def load_settings(*, dotenv: bool = True) -> Settings:
    """Read the personal access token and optional overrides from the environment."""
    if dotenv:
        load_dotenv()

    token = os.getenv(PAT_ENV_VAR, "").strip()
    if not token:
        raise ConfigurationError(
            f"Please set the {PAT_ENV_VAR} environment variable with your Azure DevOps Personal Access Token.",
            step="configure",
        )

    defaults = RunnerConfig()
    runner = RunnerConfig(
        base_url=os.getenv("AZURE_DEVOPS_BASE_URL", defaults.base_url).strip() or defaults.base_url,
        api_version=os.getenv("AZURE_DEVOPS_API_VERSION", defaults.api_version).strip() or defaults.api_version,
        poll_interval_seconds=_float_env("PIPELINE_RUNS_POLL_INTERVAL", defaults.poll_interval_seconds),
        request_timeout_seconds=_float_env(
            "PIPELINE_RUNS_REQUEST_TIMEOUT", defaults.request_timeout_seconds, allow_zero=False
        ),
    )
    return Settings(token=token, runner=runner)
