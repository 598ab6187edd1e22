"""Binary object storage.

This module handles:
- The backend-agnostic storage contract
- Deterministic object keys per build target
- The local filesystem backend
"""

from gobinaries.storage.base import (
    ObjectNotFoundError,
    Storage,
    StorageError,
    object_key,
)
from gobinaries.storage.local import LocalStorage

__all__ = [
    "LocalStorage",
    "ObjectNotFoundError",
    "Storage",
    "StorageError",
    "object_key",
]
