"""
Story Creator Storage

Flat key-value persistence for session state and presets.
"""

from .key_value_store import KeyValueStore, JsonFileStore, MemoryStore
from .session import SessionState, SessionStore

__all__ = [
    'KeyValueStore',
    'JsonFileStore',
    'MemoryStore',
    'SessionState',
    'SessionStore',
]
