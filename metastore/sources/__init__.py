# ==============================================
# SOURCES (metadata stores)
# ==============================================
#
# Modules:
# --------
# - base.py        → MetadataSource capability set
# - sql_store.py   → SQLMetadataStore over a RelationalBackend
# - file_store.py  → FileMetadataStore, one JSON file per entry
#
# FUNCTION:
# ---------
# - create_source(config: AppConfig = None, logger=None) -> MetadataSource
#     Build the store selected by config.backend.
#
# ==============================================

import logging
from typing import Optional

from metastore.backends.mysql_client import MySQLClient
from metastore.backends.sqlite_client import SQLiteClient
from metastore.config import AppConfig, get_config
from metastore.errors import ConfigError

from .base import MetadataSource
from .file_store import FileMetadataStore
from .sql_store import SQLMetadataStore


def create_source(config: Optional[AppConfig] = None, logger: Optional[logging.Logger] = None) -> MetadataSource:
    config = config or get_config()

    if config.backend == "file":
        return FileMetadataStore(config.files.directory, logger=logger)

    if config.backend == "sqlite":
        backend = SQLiteClient(config.sqlite.path, timeout=config.sqlite.timeout)
    elif config.backend == "mysql":
        backend = MySQLClient(
            host=config.mysql.host,
            port=config.mysql.port,
            user=config.mysql.user,
            password=config.mysql.password,
            database=config.mysql.database,
        )
    else:
        raise ConfigError(f"Unknown metadata backend: {config.backend}")

    return SQLMetadataStore(backend, table_name=config.table_name, logger=logger)


__all__ = [
    "MetadataSource",
    "SQLMetadataStore",
    "FileMetadataStore",
    "create_source"
]
