"""
Storage Services Package

Provides the abstract state storage interface and its implementations.
The JSON file backend is the default; the in-memory one backs tests.
"""

from spendtalk.services.storage.interface import (
    StateCorruptedError,
    StateStorageInterface,
    StateWriteError,
    StorageError,
)
from spendtalk.services.storage.json_file import JsonFileStateStorage
from spendtalk.services.storage.memory import InMemoryStateStorage

__all__ = [
    # Interface
    "StateStorageInterface",
    # Exceptions
    "StateCorruptedError",
    "StateWriteError",
    "StorageError",
    # Implementations
    "InMemoryStateStorage",
    "JsonFileStateStorage",
]
