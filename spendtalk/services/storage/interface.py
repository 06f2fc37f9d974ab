"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for state persistence.
This allows us to:
1. Keep the JSON file as the default without tying the app to it
2. Use in-memory storage for testing
3. Keep the command flow decoupled from where state lives

The whole application state is saved and loaded as one document, so
the interface is just two operations.
"""

from abc import ABC, abstractmethod

from spendtalk.models.state import AppState


class StateStorageInterface(ABC):
    """
    Abstract interface for application state persistence.

    Any storage implementation (JSON file, in-memory, etc.)
    must implement these methods.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable description of where state lives."""
        pass

    @abstractmethod
    async def load_state(self) -> AppState:
        """
        Load the persisted state.

        Returns:
            The stored state, or an empty AppState when nothing usable
            has been stored yet
        """
        pass

    @abstractmethod
    async def save_state(self, state: AppState) -> bool:
        """
        Persist the complete state, replacing what was stored.

        Args:
            state: The state to save

        Returns:
            True if saved successfully

        Raises:
            StateWriteError: If the state could not be written
        """
        pass


# =============================================================================
# EXCEPTIONS
# =============================================================================

class StorageError(Exception):
    """Base exception for storage errors."""
    pass


class StateCorruptedError(StorageError):
    """Raised when stored state exists but cannot be decoded."""
    pass


class StateWriteError(StorageError):
    """Raised when state could not be written after retries."""
    pass
