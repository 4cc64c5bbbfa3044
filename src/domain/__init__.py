"""Domain models and operations for the custody ledger.

This package holds the Pydantic record models, their canonical encoding and the
ledger operations. Storage is reached only through the ``StateStore`` protocol so
the operations can be exercised against any transactional key/value backend.
"""

__all__ = [
    "custody",
    "custody_ledger",
    "encoding",
    "state",
]
