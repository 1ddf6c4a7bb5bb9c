# ==============================================
# MetadataSource (capability set)
# ==============================================
#
# PURPOSE:
#   The operations every metadata store offers to the owning
#   application. Implementors are matched structurally, so the
#   SQL store and the file store share no base class.
#
# OPERATIONS:
# -----------
# - list_sets() -> set[str]
#     Distinct set names. Raises BackendError.
#
# - list_entries(set_name) -> dict[str, dict]
#     entity -> document for one set. Undecodable records are
#     logged and skipped. Raises BackendError.
#
# - get_entry(set_name, entity) -> dict | None
#     None for "not found", for a duplicated key and for an
#     undecodable value. Raises BackendError.
#
# - upsert_entry(set_name, entity, value) -> bool
#     Atomic insert-or-update. False on failure, never raises.
#
# - delete_entry(set_name, entity) -> bool
#     Deleting an absent key is a success. False on failure.
#
# - cleanup_expired(now=None) -> CleanupReport
#     Delete every entry whose `expire` < now.
#
# ==============================================

from typing import Any, Dict, Mapping, Optional, Protocol, Set, runtime_checkable

from metastore.expiry import CleanupReport

Document = Dict[str, Any]


@runtime_checkable
class MetadataSource(Protocol):

    def list_sets(self) -> Set[str]:
        ...

    def list_entries(self, set_name: str) -> Dict[str, Document]:
        ...

    def get_entry(self, set_name: str, entity: str) -> Optional[Document]:
        ...

    def upsert_entry(self, set_name: str, entity: str, value: Mapping[str, Any]) -> bool:
        ...

    def delete_entry(self, set_name: str, entity: str) -> bool:
        ...

    def cleanup_expired(self, now: Optional[float] = None) -> CleanupReport:
        ...
