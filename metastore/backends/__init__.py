# ==============================================
# BACKENDS (relational databases)
# ==============================================
#
# Modules:
# --------
# - base.py            → RelationalBackend contract + SQL helpers
# - mysql_client.py    → MySQL via pymysql
# - sqlite_client.py   → SQLite via sqlite3
#
# ==============================================

from .base import RelationalBackend
from .mysql_client import MySQLClient
from .sqlite_client import SQLiteClient

__all__ = [
    "RelationalBackend",
    "MySQLClient",
    "SQLiteClient"
]
