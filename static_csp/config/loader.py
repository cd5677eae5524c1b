"""YAML + env var config loading with pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import structlog
import yaml
from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from static_csp.csp.policies import normalize_directive_key
from static_csp.errors import ConfigurationError

logger = structlog.get_logger()

# Input names used by the Netlify build plugin this tool replaces.
_PLUGIN_INPUT_ALIASES = {
    "buildDir": "build_dir",
    "disablePolicies": "disable_policies",
    "disableGeneratedPolicies": "disable_generated_policies",
}


def _load_yaml_config(path: Path) -> dict[str, Any]:
    """Load a YAML config file. An empty file is an empty config."""
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return {_PLUGIN_INPUT_ALIASES.get(key, key): value for key, value in data.items()}


class GeneratorSettings(BaseSettings):
    """Header generation settings from a YAML file and CLI flags, env vars filling the rest."""

    model_config = SettingsConfigDict(
        env_prefix="CSP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    build_dir: str
    exclude: list[str] = Field(default_factory=list)
    policies: dict[str, str] = Field(default_factory=dict)
    disable_policies: list[str] = Field(default_factory=list)
    disable_generated_policies: list[str] = Field(default_factory=list)

    # Output
    headers_file: str = "_headers"
    # Literal path -> policy blocks appended after the generated ones
    extra_headers: dict[str, str] = Field(default_factory=dict)
    fail_on_write_error: bool = False

    # Parallel document processing
    concurrency: int = Field(default=16, ge=1)

    # Cloudflare worker routes: "page" (one route per HTML file) or "scope" (one per header path)
    register_routes: bool = False
    route_strategy: Literal["page", "scope"] = "page"
    route_host: str = ""
    worker_script: str = "nonce"

    @field_validator("policies")
    @classmethod
    def _normalize_policy_keys(cls, value: dict[str, str]) -> dict[str, str]:
        return {normalize_directive_key(key): policy for key, policy in value.items()}

    @field_validator("disable_policies", "disable_generated_policies")
    @classmethod
    def _normalize_disabled_keys(cls, value: list[str]) -> list[str]:
        return [normalize_directive_key(key) for key in value]

    @model_validator(mode="after")
    def _route_host_required(self) -> GeneratorSettings:
        if self.register_routes and not self.route_host:
            raise ValueError("route_host is required when register_routes is enabled")
        return self

    @property
    def headers_path(self) -> Path:
        return Path(self.build_dir) / self.headers_file


class LoggingSettings(BaseSettings):
    """Log output settings, resolved before anything else so every event is formatted."""

    model_config = SettingsConfigDict(
        env_prefix="CSP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "info"
    log_json: bool = False


class CloudflareSettings(BaseSettings):
    """Credentials for the Cloudflare API, read once at the entry point."""

    model_config = SettingsConfigDict(
        env_prefix="CLOUDFLARE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    zone_id: str = ""
    api_token: SecretStr = SecretStr("")
    api_base: str = "https://api.cloudflare.com/client/v4"
    timeout: float = 30.0

    def require_credentials(self) -> None:
        required = {
            "CLOUDFLARE_ZONE_ID": self.zone_id,
            "CLOUDFLARE_API_TOKEN": self.api_token.get_secret_value(),
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(f"Missing Cloudflare credentials: {', '.join(missing)}")


def load_settings(config_file: str | Path | None = None, **overrides: Any) -> GeneratorSettings:
    """Build settings from an optional YAML file plus explicit overrides.

    Overrides (usually CLI flags) win over the file; ``None`` overrides are
    ignored, dict overrides are merged into the file's mapping and list
    overrides extend the file's list. Environment variables fill in anything
    neither provides.
    """
    data: dict[str, Any] = _load_yaml_config(Path(config_file)) if config_file else {}
    for key, value in overrides.items():
        if value is None:
            continue
        current = data.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            data[key] = {**current, **value}
        elif isinstance(value, list) and isinstance(current, list):
            data[key] = [*current, *value]
        else:
            data[key] = value
    try:
        settings = GeneratorSettings(**data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings: {exc}") from exc
    logger.info(
        "config_loaded",
        build_dir=settings.build_dir,
        config_file=str(config_file) if config_file else None,
        register_routes=settings.register_routes,
    )
    return settings


def load_cloudflare_settings() -> CloudflareSettings:
    try:
        return CloudflareSettings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid Cloudflare settings: {exc}") from exc
