# ==============================================
# SQLMetadataStore
# ==============================================
#
# PURPOSE:
#   Metadata store over a single relational table:
#
#     <prefix>_metadatastore(_set, _entity, _value, UNIQUE(_set, _entity))
#
#   Every operation is one backend call. The store keeps no state
#   between calls besides the backend handle, table name and logger,
#   all injected at construction.
#
# ERROR POLICY:
# -------------
#   reads   → BackendError propagates (after logging)
#   upsert  → False on failure
#   delete  → False on failure
#   cleanup → BackendError if enumeration fails, failed deletes
#             are collected in the CleanupReport
#
# ==============================================

import logging
from typing import Any, Dict, Mapping, Optional, Set

from metastore.backends.base import (
    ENTITY_COLUMN,
    KEY_COLUMNS,
    SET_COLUMN,
    VALUE_COLUMN,
    RelationalBackend,
    check_identifier,
)
from metastore.errors import BackendError, DeserializationError, SerializationError
from metastore.expiry import CleanupReport, purge_expired
from metastore.serialization import deserialize, serialize


class SQLMetadataStore:
    """
    Metadata source backed by a RelationalBackend.

    Args:
        backend: MySQLClient, SQLiteClient or anything with the same members
        table_name: Name of the metadata table
        logger: Logger for diagnostics; defaults to this module's logger
    """

    def __init__(
        self,
        backend: RelationalBackend,
        table_name: str = "metastore_metadatastore",
        logger: Optional[logging.Logger] = None,
    ):
        self.backend = backend
        self.table = check_identifier(table_name)
        self.logger = logger or logging.getLogger(__name__)

    def __repr__(self) -> str:
        return f"SQLMetadataStore(backend={self.backend!r}, table={self.table!r})"

    def initialize(self) -> None:
        """Create the metadata table if it is missing. Raises BackendError."""
        self.backend.ensure_metadata_table(self.table)
        self.logger.info("Metadata table %s is ready", self.table)

    def list_sets(self) -> Set[str]:
        query = f"SELECT DISTINCT {SET_COLUMN} FROM {self.table}"
        try:
            rows = self.backend.fetch_all(query)
        except BackendError as e:
            self.logger.error("list_sets failed: %s", e)
            raise
        return {row[0] for row in rows}

    def list_entries(self, set_name: str) -> Dict[str, Dict[str, Any]]:
        ph = self.backend.placeholder
        query = (
            f"SELECT {ENTITY_COLUMN}, {VALUE_COLUMN} FROM {self.table} "
            f"WHERE {SET_COLUMN} = {ph}"
        )
        try:
            rows = self.backend.fetch_all(query, (set_name,))
        except BackendError as e:
            self.logger.error("list_entries failed for set=%s: %s", set_name, e)
            raise

        entries: Dict[str, Dict[str, Any]] = {}
        for entity, blob in rows:
            try:
                entries[entity] = deserialize(blob)
            except DeserializationError as e:
                self.logger.warning(
                    "list_entries: skipping set=%s entity=%s, %s", set_name, entity, e
                )
        return entries

    def get_entry(self, set_name: str, entity: str) -> Optional[Dict[str, Any]]:
        ph = self.backend.placeholder
        query = (
            f"SELECT {VALUE_COLUMN} FROM {self.table} "
            f"WHERE {SET_COLUMN} = {ph} AND {ENTITY_COLUMN} = {ph}"
        )
        try:
            rows = self.backend.fetch_all(query, (set_name, entity))
        except BackendError as e:
            self.logger.error("get_entry failed for set=%s entity=%s: %s", set_name, entity, e)
            raise

        if not rows:
            # Unregistered entity, not an error
            return None
        if len(rows) > 1:
            self.logger.error(
                "get_entry: integrity violation, %d rows for set=%s entity=%s",
                len(rows), set_name, entity,
            )
            return None
        try:
            return deserialize(rows[0][0])
        except DeserializationError as e:
            self.logger.error(
                "get_entry: cannot deserialize set=%s entity=%s, %s", set_name, entity, e
            )
            return None

    def upsert_entry(self, set_name: str, entity: str, value: Mapping[str, Any]) -> bool:
        try:
            blob = serialize(value)
        except SerializationError as e:
            self.logger.error("upsert_entry: set=%s entity=%s rejected, %s", set_name, entity, e)
            return False

        row = {
            SET_COLUMN: set_name,
            ENTITY_COLUMN: entity,
            VALUE_COLUMN: blob,
        }
        try:
            self.backend.insert_or_update(self.table, KEY_COLUMNS, row)
        except BackendError as e:
            self.logger.error("upsert_entry failed for set=%s entity=%s: %s", set_name, entity, e)
            return False
        return True

    def delete_entry(self, set_name: str, entity: str) -> bool:
        ph = self.backend.placeholder
        query = (
            f"DELETE FROM {self.table} "
            f"WHERE {SET_COLUMN} = {ph} AND {ENTITY_COLUMN} = {ph}"
        )
        try:
            self.backend.execute(query, (set_name, entity))
        except BackendError as e:
            self.logger.error("delete_entry failed for set=%s entity=%s: %s", set_name, entity, e)
            return False
        return True

    def cleanup_expired(self, now: Optional[float] = None) -> CleanupReport:
        return purge_expired(self, now=now, logger=self.logger)
