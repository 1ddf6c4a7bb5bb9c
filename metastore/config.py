# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load and validate all configuration from environment
#   variables / .env file. Provides typed config objects
#   to all other modules.
#
# CLASSES:
# --------
# - MySQLConfig (dataclass)
#     host: str          (default "localhost")
#     port: int          (default 3306)
#     user: str          (default "root")
#     password: str      (default "root")
#     database: str      (default "metastore")
#
# - SQLiteConfig (dataclass)
#     path: str          (default "db/metastore.db")
#     timeout: float     (default 30.0, seconds to wait on a locked db)
#
# - FileStoreConfig (dataclass)
#     directory: str     (default "metadata/")
#
# - AppConfig (dataclass)
#     backend: str       ("mysql" | "sqlite" | "file", default "sqlite")
#     table_prefix: str  (default "metastore")
#     log_level: str     (default "INFO")
#     mysql / sqlite / files
#
# FUNCTION:
# ---------
# - get_config() -> AppConfig
#     Load .env using python-dotenv, construct AppConfig.
#     Returns the same singleton on repeated calls.
#
# - reset_config() -> None
#     Drop the cached singleton (tests, CLI overrides).
#
# USAGE:
# ------
#   from metastore.config import get_config
#   config = get_config()
#   print(config.backend, config.table_name)
#
# ==============================================

import os
import re
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from metastore.errors import ConfigError

BACKENDS = ("mysql", "sqlite", "file")

_PREFIX_RE = re.compile(r"^[A-Za-z0-9_]+$")


@dataclass
class MySQLConfig:
    """MySQL database configuration."""
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = "root"
    database: str = "metastore"


@dataclass
class SQLiteConfig:
    """SQLite database configuration."""
    path: str = "db/metastore.db"
    timeout: float = 30.0


@dataclass
class FileStoreConfig:
    """File-backed metadata source configuration."""
    directory: str = "metadata/"


@dataclass
class AppConfig:
    """Main application configuration."""
    backend: str = "sqlite"
    table_prefix: str = "metastore"
    log_level: str = "INFO"
    mysql: MySQLConfig = field(default_factory=MySQLConfig)
    sqlite: SQLiteConfig = field(default_factory=SQLiteConfig)
    files: FileStoreConfig = field(default_factory=FileStoreConfig)

    def __post_init__(self):
        self.backend = self.backend.strip().lower()
        if self.backend not in BACKENDS:
            raise ConfigError(
                f"Unknown metadata backend {self.backend!r}, expected one of {', '.join(BACKENDS)}"
            )
        if not _PREFIX_RE.match(self.table_prefix):
            raise ConfigError(f"Invalid table prefix {self.table_prefix!r}")

    @property
    def table_name(self) -> str:
        return f"{self.table_prefix}_metadatastore"


# Singleton instance
_config_instance: Optional[AppConfig] = None


def _int_env(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _float_env(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.
    
    Returns:
        AppConfig: Application configuration
    
    Raises:
        ConfigError: on an unknown backend or malformed numbers
    """
    global _config_instance
    
    if _config_instance is not None:
        return _config_instance
    
    # .env in the working directory; real environment wins
    load_dotenv()
    
    mysql_config = MySQLConfig(
        host=os.getenv("MYSQL_HOST", "localhost"),
        port=_int_env("MYSQL_PORT", "3306"),
        user=os.getenv("MYSQL_USER", "root"),
        password=os.getenv("MYSQL_PASSWORD", "root"),
        database=os.getenv("MYSQL_DATABASE", "metastore")
    )
    
    sqlite_config = SQLiteConfig(
        path=os.getenv("SQLITE_PATH", "db/metastore.db"),
        timeout=_float_env("SQLITE_TIMEOUT", "30.0")
    )
    
    file_config = FileStoreConfig(
        directory=os.getenv("METASTORE_FILE_DIR", "metadata/")
    )
    
    _config_instance = AppConfig(
        backend=os.getenv("METASTORE_BACKEND", "sqlite"),
        table_prefix=os.getenv("METASTORE_TABLE_PREFIX", "metastore"),
        log_level=os.getenv("METASTORE_LOG_LEVEL", "INFO"),
        mysql=mysql_config,
        sqlite=sqlite_config,
        files=file_config
    )
    
    return _config_instance


def reset_config() -> None:
    global _config_instance
    _config_instance = None
