"""Gateway settings: env vars and .env over an optional TOML config file."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

import tomlkit
import typer
from pydantic import Field, PositiveInt, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
from tomlkit.exceptions import TOMLKitError

CONFIG_PATH = Path.home() / ".config" / "hotline" / "config.toml"

LINEAR_ENDPOINT = "https://api.linear.app/graphql"


class ProxySettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HOTLINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,  # HOTLINE_AUTH_TOKEN= means "not configured"
        extra="ignore",
        frozen=True,
    )

    # Linear — server-side only, never taken from the request
    linear_api_key: SecretStr | None = None
    linear_team_id: str | None = None
    linear_project_id: str | None = None
    linear_endpoint: str = LINEAR_ENDPOINT
    upstream_timeout: float | None = None  # seconds; None leaves the call unbounded

    # Inbound auth
    auth_token: SecretStr | None = None

    # Rate limiting
    rate_limit_strategy: Literal["sliding", "fixed"] = "sliding"
    rate_limit_max: PositiveInt = 20
    rate_limit_window: float = Field(default=600.0, gt=0)  # seconds
    redis_url: SecretStr | None = None  # shared store for the fixed window
    client_ip_header: str | None = None  # e.g. CF-Connecting-IP, set by the trusted edge
    reject_unidentified: bool = False

    # Server
    host: str = "127.0.0.1"
    port: int = 8787
    log_level: str = "INFO"

    def missing_linear_fields(self) -> list[str]:
        fields = {
            "linear_api_key": self.linear_api_key,
            "linear_team_id": self.linear_team_id,
            "linear_project_id": self.linear_project_id,
        }
        return [name for name, value in fields.items() if not value]

    def secrets(self) -> list[str]:
        """Plain values of every configured secret, for redaction."""
        return [s.get_secret_value() for s in (self.linear_api_key, self.auth_token, self.redis_url) if s]


@lru_cache(maxsize=4)
def _load_toml(path: Path) -> tomlkit.TOMLDocument:
    """Load the config file, returning an empty document if missing."""
    if not path.exists():
        return tomlkit.document()
    with path.open() as fh:
        return tomlkit.load(fh)


def get_settings(config_path: Path | None = None) -> ProxySettings:
    """Resolve settings once at startup.

    Precedence (highest to lowest):
    1. HOTLINE_* env vars
    2. .env in cwd
    3. the TOML config file (--config, else ~/.config/hotline/config.toml)
    4. field defaults
    """
    path = config_path or CONFIG_PATH
    try:
        file_defaults = _load_toml(path).unwrap()
    except (OSError, TOMLKitError) as exc:
        typer.echo(f"Could not read config file {path}: {exc}")
        raise typer.Exit(1) from exc

    # Tables are not settings; only top-level scalars are picked up.
    file_defaults = {k: v for k, v in file_defaults.items() if not isinstance(v, dict)}

    from_env = ProxySettings().model_dump(exclude_unset=True)
    return ProxySettings(**{**file_defaults, **from_env})
