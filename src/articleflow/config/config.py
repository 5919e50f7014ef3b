"""
Configuration management for ArticleFlow using Pydantic.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, ClassVar, List, Optional, cast

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from articleflow.adapters.transport import DEFAULT_USER_AGENT
from articleflow.models import Backend, RetryPolicy

# --- Setup Logging ---
log = logging.getLogger(__name__)

DEFAULT_EXTRACT_API_URL = "https://news-article-data-extract-and-summarization1.p.rapidapi.com/extract/"
DEFAULT_EXTRACT_API_HOST = "news-article-data-extract-and-summarization1.p.rapidapi.com"

# --- Nested Configuration Models ---


class RetryConfig(BaseModel):
    """Per-adapter retry policy."""

    max_attempts: int = Field(default=3, ge=1, description="Attempts per adapter before falling back.")
    base_delay: float = Field(default=1.0, ge=0.0, description="Delay in seconds after the first failed attempt.")
    backoff_factor: float = Field(default=2.0, ge=1.0, description="Multiplier applied to each following delay.")

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            backoff_factor=self.backoff_factor,
        )


class BackendsConfig(BaseModel):
    """Upstream extraction services and their fallback order."""

    order: List[Backend] = Field(
        default=[Backend.STRUCTURED, Backend.EXTRACT_API, Backend.SCRAPER],
        description="Default fallback order of the extraction backends.",
    )
    structured_url: Optional[str] = Field(
        default=None,
        description="Structured-extraction (Mercury parser) endpoint. The backend is skipped when unset.",
    )
    extract_api_url: str = Field(default=DEFAULT_EXTRACT_API_URL, description="Extraction API endpoint.")
    extract_api_key: Optional[str] = Field(
        default=None,
        description="API key for the extraction API. The backend is skipped when unset.",
    )
    extract_api_host: Optional[str] = Field(default=DEFAULT_EXTRACT_API_HOST, description="Value of X-RapidAPI-Host.")
    scraper_fetch_url: Optional[str] = Field(
        default=None,
        description="Fetch proxy the scraper prefixes to article URLs. Pages are fetched directly when unset.",
    )
    default_timeout_ms: int = Field(default=15000, gt=0, description="Per-attempt timeout in milliseconds.")

    @field_validator("order")
    @classmethod
    def validate_order(cls, v: List[Backend]) -> List[Backend]:
        """Ensure the order names each backend at most once."""
        if not v:
            raise ValueError("order must contain at least one backend")
        if len(set(v)) != len(v):
            raise ValueError("order must not repeat a backend")
        return v


class TransportConfig(BaseModel):
    """HTTP transport shared by all adapters."""

    proxy_prefix: Optional[str] = Field(
        default=None,
        description="CORS forwarding proxy prefixed to every upstream URL. Requests go direct when unset.",
    )
    user_agent: str = Field(default=DEFAULT_USER_AGENT)


class MonitoringConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: Optional[str] = Field(
        default=None,
        description="Path to a JSON log file. If None, logs to the console.",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    retry: RetryConfig = Field(default_factory=RetryConfig)
    backends: BackendsConfig = Field(default_factory=BackendsConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="ARTICLEFLOW_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls()
        return cls(**yaml_data)


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    for path in (current_dir / "config.yaml", current_dir / "config.yml"):
        if path.exists():
            return path
    return None


# --- Lazy Configuration Loader ---


class LazyConfig:
    """
    A proxy for the Config object that delays its loading and validation
    until an attribute is first accessed. This prevents configuration errors
    from crashing the application on import.
    """

    _config: ClassVar[Config | None] = None
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __getattr__(self, name: str) -> Any:
        if self.__class__._config is None:
            with self.__class__._lock:
                if self.__class__._config is None:
                    self.__class__._config = self._load_config_with_fallback()
        return getattr(self.__class__._config, name)

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded configuration; the next access reloads it."""
        with cls._lock:
            cls._config = None

    def _load_config_with_fallback(self) -> Config:
        """Load configuration from file or fall back to defaults."""
        config_path = find_config_file()
        if config_path:
            try:
                log.info("Lazy loading configuration from: %s", config_path)
                return Config.from_yaml(config_path)
            except (ValidationError, yaml.YAMLError) as e:
                log.error(
                    "Failed to load or validate configuration from '%s': %s. "
                    "Falling back to default settings. Please check your config file.",
                    config_path,
                    e,
                    exc_info=log.getEffectiveLevel() <= logging.DEBUG,
                )
        else:
            log.debug("No config file found. Using default settings for lazy load.")

        try:
            return Config()
        except ValidationError as e:
            log.critical("FATAL: Default configuration is invalid: %s", e, exc_info=True)
            raise RuntimeError(f"Default configuration is invalid, cannot start: {e}") from e


# --- Global Settings Instance ---
settings: "Config" = cast("Config", LazyConfig())
