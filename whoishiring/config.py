"""Configuration handling for the Who is Hiring sync service."""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

DEFAULT_HN_BASE_URL = "https://hacker-news.firebaseio.com/v0"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///whoishiring.db"


@dataclass
class HackerNewsConfig:
    """Hacker News API configuration."""

    base_url: str = DEFAULT_HN_BASE_URL
    username: str = "whoishiring"
    request_timeout_sec: float = 10.0


@dataclass
class DatabaseConfig:
    """Relational store configuration."""

    url: str = DEFAULT_DATABASE_URL
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 30
    pool_recycle: int = 1800

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


@dataclass
class SyncConfig:
    """Synchronization and scheduling configuration."""

    # None means one task per new job with no cap
    max_concurrency: Optional[int] = None
    sync_interval_sec: int = 3600


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""

    enable_prometheus: bool = False
    prometheus_port: int = 8000


def _apply_section(target: Any, values: Dict[str, Any]) -> None:
    for key, value in values.items():
        if hasattr(target, key):
            setattr(target, key, value)


@dataclass
class Config:
    """Application configuration combining environment variables and YAML config."""

    hn: HackerNewsConfig = field(default_factory=HackerNewsConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    log_file: str = "logs/whoishiring.log"

    @classmethod
    def from_files(cls, config_path: str, env_path: Optional[str] = None) -> "Config":
        """
        Load configuration from a YAML file and environment variables.

        Values from the YAML file override the defaults and environment
        variables override both.

        Args:
            config_path: Path to YAML configuration file (missing file is allowed)
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            Config instance with merged configuration
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        config = cls()

        if os.path.exists(config_path):
            with open(config_path, "r", encoding="utf-8") as file:
                yaml_config = yaml.safe_load(file) or {}

            sections = {
                "hn": config.hn,
                "database": config.database,
                "sync": config.sync,
                "monitoring": config.monitoring,
            }
            for key, value in yaml_config.items():
                if key in sections:
                    if isinstance(value, dict):
                        _apply_section(sections[key], value)
                elif hasattr(config, key):
                    setattr(config, key, value)

        config._apply_env()
        return config

    def _apply_env(self) -> None:
        """Override configuration values from environment variables."""
        if os.getenv("HN_BASE_URL"):
            self.hn.base_url = os.environ["HN_BASE_URL"]
        if os.getenv("HN_USERNAME"):
            self.hn.username = os.environ["HN_USERNAME"]
        if os.getenv("HN_REQUEST_TIMEOUT_SEC"):
            self.hn.request_timeout_sec = float(os.environ["HN_REQUEST_TIMEOUT_SEC"])
        if os.getenv("DATABASE_URL"):
            self.database.url = os.environ["DATABASE_URL"]
        if os.getenv("SYNC_INTERVAL_SEC"):
            self.sync.sync_interval_sec = int(os.environ["SYNC_INTERVAL_SEC"])
        if os.getenv("SYNC_MAX_CONCURRENCY"):
            self.sync.max_concurrency = int(os.environ["SYNC_MAX_CONCURRENCY"])
        if os.getenv("ENABLE_PROMETHEUS"):
            self.monitoring.enable_prometheus = os.environ["ENABLE_PROMETHEUS"].lower() == "true"
        if os.getenv("PROMETHEUS_PORT"):
            self.monitoring.prometheus_port = int(os.environ["PROMETHEUS_PORT"])

    def validate(self) -> List[str]:
        """
        Validate configuration and return a list of validation errors.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.hn.base_url:
            errors.append("hn.base_url must be specified")
        if not self.hn.username:
            errors.append("hn.username must be specified")
        if self.hn.request_timeout_sec <= 0:
            errors.append("hn.request_timeout_sec must be greater than 0")

        if not self.database.url:
            errors.append("database.url must be specified")

        if self.sync.max_concurrency is not None and self.sync.max_concurrency <= 0:
            errors.append("sync.max_concurrency must be greater than 0 when set")
        if self.sync.sync_interval_sec < 60:
            errors.append("sync.sync_interval_sec must be at least 60 seconds")

        if self.monitoring.enable_prometheus and self.monitoring.prometheus_port <= 0:
            errors.append("monitoring.prometheus_port must be a positive integer")

        return errors
