"""Immutable configuration for the bulk export client.

ExportConfig is built once and handed to the executor and the driver at
construction; nothing in the package reads process-wide tuning state.
"""
from __future__ import annotations

import os
import ssl as ssl_module
from dataclasses import dataclass, field, fields
from typing import Mapping, Optional, Union

API_VERSION_PATH = "/v1"
DEFAULT_API_KEY_HEADER = "X-Api-Key"

# The known environments differ only by hostname prefix under the vendor domain.
ENVIRONMENT_HOSTS = {
    "prod": "api",
    "prod-eu": "api.eu",
    "sandbox": "sandbox-api",
    "sandbox-eu": "sandbox-api.eu",
    "staging": "staging-api",
    "dev": "dev-api",
}

ENV_PREFIX = "BULK_EXPORT_"


def resolve_base_url(environment: str, domain: str) -> str:
    """Build the API base URL for a named environment.

    Args:
        environment: One of the keys of ENVIRONMENT_HOSTS
        domain: Vendor domain the environment hosts live under

    Returns:
        Base URL such as ``https://sandbox-api.example.com/v1``

    Raises:
        ValueError: If the environment is unknown or the domain is empty
    """
    env = environment.strip().lower()
    if env not in ENVIRONMENT_HOSTS:
        choices = ", ".join(sorted(ENVIRONMENT_HOSTS))
        raise ValueError(f"Unknown environment '{environment}'. Must be one of: {choices}")
    domain = domain.strip().strip(".")
    if not domain:
        raise ValueError("A domain is required to resolve an environment base URL")
    return f"https://{ENVIRONMENT_HOSTS[env]}.{domain}{API_VERSION_PATH}"


def build_ssl_context() -> ssl_module.SSLContext:
    """Default verifying SSL context that refuses anything older than TLS 1.2."""
    ctx = ssl_module.create_default_context()
    ctx.minimum_version = ssl_module.TLSVersion.TLSv1_2
    return ctx


@dataclass(frozen=True)
class ExportConfig:
    """Tuning and connection settings for one client.

    Attributes:
        base_url: API base URL, must be HTTPS
        api_key_header: Name of the header carrying the static API key
        max_retries: Retries after the first attempt for 429/500/503
        base_delay: Base of the exponential backoff, in seconds
        max_wait: Hard cap on any single retry delay, in seconds
        poll_interval: Seconds between job status polls
        poll_timeout: Wall-clock polling budget, in seconds
        request_timeout: Total timeout of one API request; for downloads, the connect and per-read timeout
        chunk_size: Read size used when streaming downloads to disk
        ssl: None for the TLS 1.2+ default context, an SSLContext, or False
            to disable verification (development only)
    """

    base_url: str
    api_key_header: str = DEFAULT_API_KEY_HEADER
    max_retries: int = 5
    base_delay: int = 2
    max_wait: int = 45
    poll_interval: float = 15
    poll_timeout: float = 30 * 60
    request_timeout: float = 60
    chunk_size: int = 8192
    ssl: Optional[Union[bool, ssl_module.SSLContext]] = field(default=None, compare=False)
    conn_limit: Optional[int] = None
    conn_limit_per_host: Optional[int] = None
    keepalive_timeout: Optional[float] = None

    def __post_init__(self):
        base_url = self.base_url.rstrip("/")
        if not base_url.lower().startswith("https://"):
            raise ValueError("HTTPS is required for the bulk export API base URL")
        object.__setattr__(self, "base_url", base_url)
        if not self.api_key_header:
            raise ValueError("api_key_header must not be empty")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0 or self.max_wait < 0:
            raise ValueError("base_delay and max_wait must be >= 0")
        if self.poll_interval <= 0 or self.poll_timeout <= 0:
            raise ValueError("poll_interval and poll_timeout must be > 0")
        if self.request_timeout <= 0 or self.chunk_size <= 0:
            raise ValueError("request_timeout and chunk_size must be > 0")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ExportConfig":
        """Load configuration from BULK_EXPORT_* environment variables.

        BULK_EXPORT_BASE_URL wins over BULK_EXPORT_ENVIRONMENT + BULK_EXPORT_DOMAIN.
        Keyword overrides win over both. Only non-empty values are used.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            val = env.get(ENV_PREFIX + name)
            return val if val else None

        values = {}
        base_url = get("BASE_URL")
        if base_url is None and get("ENVIRONMENT"):
            domain = get("DOMAIN")
            if domain is None:
                raise ValueError(f"{ENV_PREFIX}DOMAIN is required with {ENV_PREFIX}ENVIRONMENT")
            base_url = resolve_base_url(get("ENVIRONMENT"), domain)
        if base_url is not None:
            values["base_url"] = base_url
        if get("API_KEY_HEADER"):
            values["api_key_header"] = get("API_KEY_HEADER")

        casts = {
            "max_retries": int,
            "base_delay": int,
            "max_wait": int,
            "poll_interval": float,
            "poll_timeout": float,
            "request_timeout": float,
        }
        for name, cast in casts.items():
            raw = get(name.upper())
            if raw is not None:
                try:
                    values[name] = cast(raw)
                except ValueError as e:
                    raise ValueError(f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}") from e

        values.update({k: v for k, v in overrides.items() if v is not None})
        if "base_url" not in values:
            raise ValueError(
                f"No base URL configured; set {ENV_PREFIX}BASE_URL or "
                f"{ENV_PREFIX}ENVIRONMENT and {ENV_PREFIX}DOMAIN"
            )
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise TypeError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")
        return cls(**values)
