# restmotor/core/config.py
"""
Connector configuration - single source of truth for all settings.
"""
import os
from dataclasses import dataclass, field
from urllib.parse import urlparse
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _database_from_url(url: str) -> str:
    path = urlparse(url).path.lstrip("/")
    return path.split("?")[0] or "restmotor"


@dataclass
class MongoSettings:
    """MongoDB connection configuration."""
    url: str = field(default_factory=lambda: os.getenv("MONGO_URL", "mongodb://localhost:27017/restmotor"))
    database: str = ""
    server_selection_timeout_ms: int = field(default_factory=lambda: int(os.getenv("MONGO_TIMEOUT_MS", "5000")))

    def __post_init__(self):
        if not self.database:
            self.database = os.getenv("MONGO_DB") or _database_from_url(self.url)


@dataclass
class ConnectorSettings:
    """
    Storage connector behaviour.

    strict_errors: storage failures that are neither cast nor validation
    errors raise UnhandledStorageError. When false they are logged and the
    operation resolves to None.
    create_indexes: create index/unique indexes when a storage handle is
    first initialized.
    """
    strict_errors: bool = field(default_factory=lambda: _env_flag("RESTMOTOR_STRICT_ERRORS", "true"))
    create_indexes: bool = field(default_factory=lambda: _env_flag("RESTMOTOR_CREATE_INDEXES", "true"))


@dataclass
class Settings:
    """Main connector settings."""
    mongo: MongoSettings = field(default_factory=MongoSettings)
    connector: ConnectorSettings = field(default_factory=ConnectorSettings)
    debug: bool = field(default_factory=lambda: _env_flag("RESTMOTOR_DEBUG", "false"))


# Singleton instance
settings = Settings()
