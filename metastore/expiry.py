# ==============================================
# Expiry
# ==============================================
#
# PURPOSE:
#   Decide which documents are past their `expire` timestamp and
#   run the purge pass shared by every metadata source.
#
# RULES:
# ------
#   - `expire` holds a Unix timestamp (int or float).
#   - A document is expired when expire < now (strictly).
#   - No `expire` field          → never expires.
#   - Non-numeric `expire` value → never expires (logged).
#
# FUNCTIONS:
# ----------
# - is_expired(document, now) -> bool
# - purge_expired(source, now=None, logger=None) -> CleanupReport
#     One list_entries() per set, one delete_entry() per expired
#     record. Enumeration failures raise BackendError; a failed
#     delete is recorded in the report and the pass continues.
#
# ==============================================

import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

EXPIRE_FIELD = "expire"

_log = logging.getLogger(__name__)


@dataclass
class CleanupReport:
    """Outcome of one purge pass."""
    checked: int = 0
    removed: List[Tuple[str, str]] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def expiry_of(document: Mapping[str, Any]) -> Optional[float]:
    """Return the `expire` timestamp of a document, or None if it has none."""
    value = document.get(EXPIRE_FIELD)
    # bool is an int subclass but never a timestamp
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def is_expired(document: Mapping[str, Any], now: float) -> bool:
    expire = expiry_of(document)
    return expire is not None and expire < now


def purge_expired(source, now: Optional[float] = None, logger: Optional[logging.Logger] = None) -> CleanupReport:
    log = logger or _log
    if now is None:
        now = time.time()

    report = CleanupReport()
    for set_name in sorted(source.list_sets()):
        entries = source.list_entries(set_name)
        for entity, document in entries.items():
            report.checked += 1
            if EXPIRE_FIELD in document and expiry_of(document) is None:
                log.warning(
                    "cleanup: set=%s entity=%s has non-numeric expire %r, keeping it",
                    set_name, entity, document[EXPIRE_FIELD],
                )
                continue
            if not is_expired(document, now):
                continue
            if source.delete_entry(set_name, entity):
                report.removed.append((set_name, entity))
            else:
                report.failed.append((set_name, entity))

    log.info(
        "cleanup: checked %d entries, removed %d, failed %d",
        report.checked, len(report.removed), len(report.failed),
    )
    return report
