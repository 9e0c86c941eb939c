"""Server configuration — reads settings from environment variables.

All settings have sensible defaults for local development.  In production
the values are typically overridden via env vars or a ``.env`` file.
"""

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS — comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Template policy file (None → config/form_policy.yaml from repo root)
    policy_file: str | None = None

    # Logging
    log_level: str = "INFO"

    # Trusted proxy secret — when set, every request that carries
    # X-User-ID must also carry X-Proxy-Secret matching this value, so the
    # identity and role headers can only come from the API gateway.
    trusted_proxy_secret: str | None = None


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*`` environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        policy_file=os.getenv("SERVER_POLICY_FILE") or None,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        trusted_proxy_secret=os.getenv("TRUSTED_PROXY_SECRET") or None,
    )
