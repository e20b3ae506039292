from .base import (
    ObjectStore,
    RecordStore,
    RecordStoreError,
    StorageConfigError,
    StorageError,
    UploadError,
)
from .memory_store import InMemoryObjectStore, InMemoryRecordStore
from .supabase_client import SupabaseClient

__all__ = [
    "InMemoryObjectStore",
    "InMemoryRecordStore",
    "ObjectStore",
    "RecordStore",
    "RecordStoreError",
    "StorageConfigError",
    "StorageError",
    "SupabaseClient",
    "UploadError",
]
