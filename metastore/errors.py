# ==============================================
# Errors
# ==============================================
#
# EXCEPTIONS:
# -----------
# - MetastoreError          → Root of everything raised by this package
# - BackendError            → The backend query/execute call itself failed
# - SerializationError      → A document could not be encoded into a blob
# - DeserializationError    → A stored blob does not decode to a document
# - ConfigError             → Invalid configuration
#
# NOTE:
#   "Not found" is NOT an exception. Reads return None for it.
#
# ==============================================


class MetastoreError(Exception):
    """Base class for all metastore errors."""


class BackendError(MetastoreError):
    """Raised when the underlying database or filesystem call fails."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation}: {message}")


class SerializationError(MetastoreError):
    """Raised when a document cannot be serialized."""


class DeserializationError(MetastoreError):
    """Raised when a stored blob cannot be turned back into a document."""


class ConfigError(MetastoreError):
    """Raised for unknown or malformed configuration values."""
