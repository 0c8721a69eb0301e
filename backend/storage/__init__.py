"""
Storage module for the mock interview assistant.
Provides the local key-value stores and the session persistence adapter.
"""

from .kv_store import JsonFileStore, MemoryStore, StorageWriteError, create_store
from .persistence import SessionPersistence

__all__ = ['JsonFileStore', 'MemoryStore', 'StorageWriteError', 'create_store', 'SessionPersistence']
