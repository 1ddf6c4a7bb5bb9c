# ==============================================
# FileMetadataStore
# ==============================================
#
# PURPOSE:
#   Metadata source that keeps every record as a JSON file on disk.
#   Useful when no database is available; offers the same operations
#   as SQLMetadataStore.
#
# FILE STRUCTURE:
# ---------------
#   metadata/
#   ├── _idp/                              → one directory per set
#   │   ├── _https%3A%2F%2Fidp.example.json  → one file per entity
#   │   ├── _=9f86d0...json                 → entity id too long to encode
#   │   └── ...
#   ├── _=2c26b4.../                        → set name too long to encode
#   │   ├── .name                           → the set name itself
#   │   └── ...
#   └── _sp/
#
#   Names are percent-encoded and prefixed with "_" so that any
#   string (including "", "." and "..") maps to a safe file name.
#   When the encoded name would exceed MAX_NAME_LENGTH, the name is
#   "_=" + sha256 hex of the original instead ("=" is always
#   percent-encoded, so the two forms never collide):
#     - a hashed entity file stores {"_entity": id, "_value": document}
#     - a hashed set directory keeps the set name in `.name`
#
# ATOMICITY:
#   Upserts write a temp file in the set directory and os.replace()
#   it over the target, so readers see either the old or the new
#   document and concurrent writers resolve to last-write-wins.
#   A set exists while it holds at least one entry; set directories
#   are never removed.
#
# ==============================================

import contextlib
import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Set, Tuple
from urllib.parse import quote, unquote

from metastore.errors import BackendError, DeserializationError, SerializationError
from metastore.expiry import CleanupReport, purge_expired
from metastore.serialization import deserialize, serialize

SUFFIX = ".json"
SET_NAME_FILE = ".name"
HASHED_PREFIX = "_="
# NAME_MAX on common filesystems (ext4, xfs, apfs, ntfs)
MAX_NAME_LENGTH = 255

ENVELOPE_ENTITY = "_entity"
ENVELOPE_VALUE = "_value"


def encode_name(name: str, suffix: str = "") -> str:
    encoded = "_" + quote(name, safe="")
    if len(encoded) + len(suffix) > MAX_NAME_LENGTH:
        return HASHED_PREFIX + hashlib.sha256(name.encode("utf-8")).hexdigest()
    return encoded


def is_hashed(encoded: str) -> bool:
    return encoded.startswith(HASHED_PREFIX)


def decode_name(encoded: str) -> str:
    return unquote(encoded[1:])


class FileMetadataStore:
    """
    File-backed metadata source.

    Args:
        storage_dir: Root directory; created if it doesn't exist
        logger: Logger for diagnostics; defaults to this module's logger
    """

    def __init__(self, storage_dir: str = "metadata/", logger: Optional[logging.Logger] = None):
        self.storage_dir = Path(storage_dir)
        self.logger = logger or logging.getLogger(__name__)

    def __repr__(self) -> str:
        return f"FileMetadataStore(storage_dir={str(self.storage_dir)!r})"

    def initialize(self) -> None:
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackendError("initialize", str(e)) from e
        self.logger.info("Metadata directory %s is ready", self.storage_dir)

    def _set_dir(self, set_name: str) -> Path:
        return self.storage_dir / encode_name(set_name)

    def _entry_path(self, set_name: str, entity: str) -> Path:
        return self._set_dir(set_name) / (encode_name(entity, SUFFIX) + SUFFIX)

    @staticmethod
    def _entry_files(set_dir: Path):
        return [p for p in set_dir.glob("_*" + SUFFIX) if p.is_file()]

    @staticmethod
    def _write_atomic(target: Path, text: str) -> None:
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", newline="", dir=target.parent, prefix=".tmp-", suffix=SUFFIX, delete=False
            ) as f:
                tmp_name = f.name
                f.write(text)
            os.replace(tmp_name, target)
        except OSError:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            raise

    def _set_name(self, set_dir: Path) -> Optional[str]:
        if not is_hashed(set_dir.name):
            return decode_name(set_dir.name)
        try:
            return (set_dir / SET_NAME_FILE).read_bytes().decode("utf-8")
        except (FileNotFoundError, UnicodeDecodeError) as e:
            self.logger.warning("list_sets: skipping %s, set name unreadable: %s", set_dir.name, e)
            return None

    @staticmethod
    def _read_entry(path: Path) -> Tuple[str, Dict[str, Any]]:
        """Return (entity, document) stored in one entry file."""
        stem = path.name[: -len(SUFFIX)]
        document = deserialize(path.read_bytes())
        if not is_hashed(stem):
            return decode_name(stem), document
        entity = document.get(ENVELOPE_ENTITY)
        value = document.get(ENVELOPE_VALUE)
        if not isinstance(entity, str) or not isinstance(value, dict):
            raise DeserializationError(f"{path.name} lacks its entity id envelope")
        return entity, value

    def list_sets(self) -> Set[str]:
        if not self.storage_dir.exists():
            return set()
        try:
            names = {
                self._set_name(d)
                for d in self.storage_dir.iterdir()
                if d.is_dir() and d.name.startswith("_") and self._entry_files(d)
            }
        except OSError as e:
            self.logger.error("list_sets failed: %s", e)
            raise BackendError("list_sets", str(e)) from e
        names.discard(None)
        return names

    def list_entries(self, set_name: str) -> Dict[str, Dict[str, Any]]:
        set_dir = self._set_dir(set_name)
        if not set_dir.is_dir():
            return {}

        entries: Dict[str, Dict[str, Any]] = {}
        try:
            files = self._entry_files(set_dir)
        except OSError as e:
            self.logger.error("list_entries failed for set=%s: %s", set_name, e)
            raise BackendError("list_entries", str(e)) from e

        for path in files:
            try:
                entity, document = self._read_entry(path)
            except FileNotFoundError:
                # deleted between listing and reading
                continue
            except OSError as e:
                self.logger.error("list_entries failed for set=%s: %s", set_name, e)
                raise BackendError("list_entries", str(e)) from e
            except DeserializationError as e:
                stem = path.name[: -len(SUFFIX)]
                entity = stem if is_hashed(stem) else decode_name(stem)
                self.logger.warning(
                    "list_entries: skipping set=%s entity=%s, %s", set_name, entity, e
                )
                continue
            entries[entity] = document
        return entries

    def get_entry(self, set_name: str, entity: str) -> Optional[Dict[str, Any]]:
        path = self._entry_path(set_name, entity)
        try:
            stored_entity, document = self._read_entry(path)
        except FileNotFoundError:
            return None
        except OSError as e:
            self.logger.error("get_entry failed for set=%s entity=%s: %s", set_name, entity, e)
            raise BackendError("get_entry", str(e)) from e
        except DeserializationError as e:
            self.logger.error(
                "get_entry: cannot deserialize set=%s entity=%s, %s", set_name, entity, e
            )
            return None

        if stored_entity != entity:
            self.logger.error(
                "get_entry: integrity violation, %s holds entity=%s, wanted set=%s entity=%s",
                path.name, stored_entity, set_name, entity,
            )
            return None
        return document

    def upsert_entry(self, set_name: str, entity: str, value: Mapping[str, Any]) -> bool:
        try:
            blob = serialize(value)
        except SerializationError as e:
            self.logger.error("upsert_entry: set=%s entity=%s rejected, %s", set_name, entity, e)
            return False

        path = self._entry_path(set_name, entity)
        if is_hashed(path.name):
            # Already validated above, so the envelope serializes too
            blob = serialize({ENVELOPE_ENTITY: entity, ENVELOPE_VALUE: dict(value)})

        set_dir = path.parent
        try:
            set_dir.mkdir(parents=True, exist_ok=True)
            if is_hashed(set_dir.name) and not (set_dir / SET_NAME_FILE).exists():
                self._write_atomic(set_dir / SET_NAME_FILE, set_name)
            self._write_atomic(path, blob)
        except OSError as e:
            self.logger.error("upsert_entry failed for set=%s entity=%s: %s", set_name, entity, e)
            return False
        return True

    def delete_entry(self, set_name: str, entity: str) -> bool:
        try:
            self._entry_path(set_name, entity).unlink(missing_ok=True)
        except OSError as e:
            self.logger.error("delete_entry failed for set=%s entity=%s: %s", set_name, entity, e)
            return False
        return True

    def cleanup_expired(self, now: Optional[float] = None) -> CleanupReport:
        return purge_expired(self, now=now, logger=self.logger)
