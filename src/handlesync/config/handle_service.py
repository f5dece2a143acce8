"""Handle service configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from handlesync.domain.dublin_core import DEFAULT_RESOLVER_URL

from .env import optional_env_var, require_env_vars
from .errors import InvalidConfigurationError
from .http_resilience import IDEMPOTENT_METHODS, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_HANDLE_RESOLVER_URL = DEFAULT_RESOLVER_URL
HANDLE_SERVICE_TIMEOUT_SECONDS = 15.0

# POST is left out so a create is never replayed; 500 is left out because a
# DELETE answering 500 is an accepted outcome.
HANDLE_SERVICE_RETRY = RetryPolicy(
    total=3,
    allowed_methods=IDEMPOTENT_METHODS - {"PUT"},
    status_forcelist=frozenset({429, 502, 503, 504}),
)


@dataclass(frozen=True, slots=True)
class HandleServiceConfig:
    """Connection and naming settings for the Handle minting service."""

    service_url: str
    prefix: str
    username: str
    password: str
    target_base_url: str
    resolver_url: str
    resilience: ResilienceConfig

    def handle_for(self, pid: str) -> str:
        return f"{self.prefix}/{pid}"

    def target_url(self, pid: str) -> str:
        return f"{self.target_base_url}/{pid}"


def _normalize_url(name: str, value: str) -> str:
    if not value.startswith(("http://", "https://")):
        raise InvalidConfigurationError(name, value, "expected an http(s) URL")
    return value.rstrip("/")


def get_handle_service_config(*, resilience: ResilienceConfig | None = None) -> HandleServiceConfig:
    values = require_env_vars(
        (
            "HANDLE_SERVICE_URL",
            "HANDLE_PREFIX",
            "HANDLE_SERVICE_USER",
            "HANDLE_SERVICE_PASSWORD",
            "HANDLE_TARGET_BASE_URL",
        )
    )
    service_url = _normalize_url("HANDLE_SERVICE_URL", values["HANDLE_SERVICE_URL"])
    username = values["HANDLE_SERVICE_USER"]
    password = values["HANDLE_SERVICE_PASSWORD"]
    return HandleServiceConfig(
        service_url=service_url,
        prefix=values["HANDLE_PREFIX"].strip("/"),
        username=username,
        password=password,
        target_base_url=_normalize_url("HANDLE_TARGET_BASE_URL", values["HANDLE_TARGET_BASE_URL"]),
        resolver_url=_normalize_url(
            "HANDLE_RESOLVER_URL",
            optional_env_var("HANDLE_RESOLVER_URL", DEFAULT_HANDLE_RESOLVER_URL),
        ),
        resilience=resilience
        or ResilienceConfig(
            name="handle-service",
            base_url=service_url,
            timeout_seconds=HANDLE_SERVICE_TIMEOUT_SECONDS,
            retry=HANDLE_SERVICE_RETRY,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            auth=(username, password),
        ),
    )
