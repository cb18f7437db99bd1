"""Configuration loading from YAML and environment.

The GitHub token is taken from the config file, from the GITHUB_TOKEN
environment variable or from a file named by GITHUB_TOKEN_FILE (Docker
secrets). Never put real tokens in config files committed to the repo.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_PATH = Path("config.yaml")


def _read_secret(env_key: str, file_env_key: str) -> str | None:
    """Read secret from env var or from file path in env (e.g. Docker
    secrets)."""
    value = _current_env.get(env_key)
    if value:
        return value.strip()
    file_path = _current_env.get(file_env_key)
    if file_path:
        return Path(file_path).read_text().strip()
    return None


# Injected by load_config so properties can read env/file
_current_env: dict[str, str] = {}


class GitHubConfig(BaseSettings):
    """GitHub API settings."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    token: str | None = Field(default=None, description="PAT; prefer env or secret file")
    api_url: str = Field(default="https://api.github.com", description="API base URL")
    timeout: int = Field(default=30, ge=1, description="Per-request timeout in seconds")


class FiltersConfig(BaseSettings):
    """Filter persistence and search settings."""

    model_config = SettingsConfigDict(env_prefix="FILTERS_", extra="ignore")

    store_path: Path = Field(default=Path(".gitreviewit/filters.yaml"), description="Saved filter configuration")
    search_debounce_ms: int = Field(default=300, ge=0, le=10000, description="Search debounce delay")

    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000


class EnrichmentConfig(BaseSettings):
    """Metadata enrichment settings."""

    model_config = SettingsConfigDict(env_prefix="ENRICHMENT_", extra="ignore")

    # None = one concurrent fetch per pull request
    max_concurrency: int | None = Field(default=None, ge=1, description="Max simultaneous detail fetches")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    filters: FiltersConfig = Field(default_factory=FiltersConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def github_token_resolved(self) -> str | None:
        """Resolve GitHub token from config, env or Docker secret file."""
        t = self.github.token
        if t and not t.startswith("${") and not t.startswith("$"):
            return t
        return _read_secret("GITHUB_TOKEN", "GITHUB_TOKEN_FILE")


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    Missing file -> defaults (still resolving the token from env).
    """
    global _current_env

    _current_env = dict(os.environ)

    path = config_path or DEFAULT_CONFIG_PATH
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw)

    return AppConfig(
        github=GitHubConfig(**(raw.get("github") or {})),
        filters=FiltersConfig(**(raw.get("filters") or {})),
        enrichment=EnrichmentConfig(**(raw.get("enrichment") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
