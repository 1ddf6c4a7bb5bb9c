# ==============================================
# Metastore
# ==============================================
#
# Package Structure:
#
# metastore/
# ├── backends/         # Relational backends (MySQL, SQLite)
# ├── sources/          # Metadata sources (SQL store, file store)
# ├── serialization.py  # Document <-> blob codec
# ├── expiry.py         # Expiry evaluation and purge pass
# ├── errors.py         # Exception taxonomy
# ├── config.py         # Configuration management
# ├── logger.py         # Logger construction
# └── cli.py            # Command line entry point
#
# ==============================================

__version__ = "0.1.0"
