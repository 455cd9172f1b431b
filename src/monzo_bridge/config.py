"""
Configuration management (SSOT).

This module defines ALL configuration for monzo-bridge.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- api_url is only overridden to point at a mock server
- client_secret never leaves the OAuth2 layer (token exchange and refresh)
- redirect_url must match the redirect URI registered with Monzo exactly
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_API_URL = "https://api.monzo.com"
DEFAULT_AUTH_URL = "https://auth.monzo.com/"
DEFAULT_TOKEN_URL = "https://api.monzo.com/oauth2/token"
DEFAULT_REDIRECT_URL = "http://localhost:8080/auth/callback"


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


def default_token_path() -> Path:
    """Token file location, e.g. ~/.config/monzo-bridge/token.json."""
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "monzo-bridge" / "token.json"


@dataclass
class MonzoConfig:
    """Monzo API configuration."""

    api_url: str = DEFAULT_API_URL
    # Per-request timeout in seconds (None: no client-side limit)
    timeout: float | None = None


@dataclass
class OAuthConfig:
    """OAuth2 client registration (from the Monzo developer portal)."""

    client_id: str = ""
    client_secret: str = ""
    # Must match the "Redirect URI" registered for the client
    redirect_url: str = DEFAULT_REDIRECT_URL
    auth_url: str = DEFAULT_AUTH_URL
    token_url: str = DEFAULT_TOKEN_URL


@dataclass
class WebConfig:
    """Example web app settings."""

    host: str = "127.0.0.1"
    port: int = 8080
    secret_key: str = "dev-secret-key-change-in-production"


@dataclass
class Config:
    """Application configuration (SSOT)."""

    monzo: MonzoConfig = field(default_factory=MonzoConfig)
    oauth: OAuthConfig = field(default_factory=OAuthConfig)
    web: WebConfig = field(default_factory=WebConfig)
    token_path: Path = field(default_factory=default_token_path)

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if not self.monzo.api_url:
            errors.append("monzo.api_url is required")
        if self.monzo.timeout is not None and self.monzo.timeout <= 0:
            errors.append("monzo.timeout must be positive")

        if not self.oauth.client_id:
            errors.append("oauth.client_id is required")
        if not self.oauth.client_secret:
            errors.append("oauth.client_secret is required")
        if not self.oauth.redirect_url:
            errors.append("oauth.redirect_url is required")

        if not 0 < self.web.port < 65536:
            errors.append("web.port must be between 1 and 65535")

        return errors


def _optional_float(value) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigValidationError(f"Invalid timeout value: {value!r}") from e


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - MONZO_API_URL
    - MONZO_TIMEOUT (seconds)
    - MONZO_CLIENT_ID
    - MONZO_CLIENT_SECRET
    - MONZO_REDIRECT_URL
    - MONZO_TOKEN_PATH
    - MONZO_WEB_HOST
    - MONZO_WEB_PORT
    - DJANGO_SECRET_KEY
    """
    config_path = Path(config_path)
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    if not isinstance(data, dict):
        raise ConfigValidationError(f"{config_path}: expected a mapping at the top level")

    # Monzo API config
    monzo_data = data.get("monzo") or {}
    monzo = MonzoConfig(
        api_url=os.environ.get("MONZO_API_URL", monzo_data.get("api_url", DEFAULT_API_URL)),
        timeout=_optional_float(os.environ.get("MONZO_TIMEOUT", monzo_data.get("timeout"))),
    )

    # OAuth config
    oauth_data = data.get("oauth") or {}
    oauth = OAuthConfig(
        client_id=os.environ.get("MONZO_CLIENT_ID", oauth_data.get("client_id", "")),
        client_secret=os.environ.get("MONZO_CLIENT_SECRET", oauth_data.get("client_secret", "")),
        redirect_url=os.environ.get(
            "MONZO_REDIRECT_URL", oauth_data.get("redirect_url", DEFAULT_REDIRECT_URL)
        ),
        auth_url=oauth_data.get("auth_url", DEFAULT_AUTH_URL),
        token_url=oauth_data.get("token_url", DEFAULT_TOKEN_URL),
    )

    # Web config
    web_data = data.get("web") or {}
    port_value = os.environ.get("MONZO_WEB_PORT", web_data.get("port", 8080))
    try:
        port = int(port_value)
    except (TypeError, ValueError) as e:
        raise ConfigValidationError(f"Invalid web port: {port_value!r}") from e

    web = WebConfig(
        host=os.environ.get("MONZO_WEB_HOST", web_data.get("host", "127.0.0.1")),
        port=port,
        secret_key=os.environ.get(
            "DJANGO_SECRET_KEY",
            web_data.get("secret_key", "dev-secret-key-change-in-production"),
        ),
    )

    # Token file
    token_path = os.environ.get("MONZO_TOKEN_PATH", data.get("token_path"))

    return Config(
        monzo=monzo,
        oauth=oauth,
        web=web,
        token_path=Path(token_path).expanduser() if token_path else default_token_path(),
    )


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# monzo-bridge configuration
#
# Register a client at https://developers.monzo.com/ and copy its id and
# secret here (or export MONZO_CLIENT_ID / MONZO_CLIENT_SECRET).

monzo:
  api_url: "https://api.monzo.com"        # Override only for a mock server
  timeout: null                           # Seconds per request (null: no limit)

oauth:
  client_id: "YOUR_CLIENT_ID"
  client_secret: "YOUR_CLIENT_SECRET"
  redirect_url: "http://localhost:8080/auth/callback"   # Must match the portal exactly
  auth_url: "https://auth.monzo.com/"
  token_url: "https://api.monzo.com/oauth2/token"

# Example web app
web:
  host: "127.0.0.1"
  port: 8080
  secret_key: "dev-secret-key-change-in-production"

# Where the CLI keeps its token (default: ~/.config/monzo-bridge/token.json)
token_path: null
"""

    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
