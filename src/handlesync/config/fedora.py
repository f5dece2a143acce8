"""Fedora repository configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .errors import InvalidConfigurationError
from .http_resilience import ResilienceConfig, RetryPolicy

FEDORA_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True, slots=True)
class FedoraConfig:
    base_url: str
    username: str
    password: str
    resilience: ResilienceConfig


def get_fedora_config(*, resilience: ResilienceConfig | None = None) -> FedoraConfig:
    values = require_env_vars(("FEDORA_URL", "FEDORA_USER", "FEDORA_PASSWORD"))
    base_url = values["FEDORA_URL"]
    if not base_url.startswith(("http://", "https://")):
        raise InvalidConfigurationError("FEDORA_URL", base_url, "expected an http(s) URL")
    base_url = base_url.rstrip("/")
    username = values["FEDORA_USER"]
    password = values["FEDORA_PASSWORD"]
    return FedoraConfig(
        base_url=base_url,
        username=username,
        password=password,
        resilience=resilience
        or ResilienceConfig(
            name="fedora",
            base_url=base_url,
            timeout_seconds=FEDORA_TIMEOUT_SECONDS,
            retry=RetryPolicy(total=3),
            default_headers={"Accept": "text/xml"},
            auth=(username, password),
        ),
    )
