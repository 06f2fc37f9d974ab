"""In-memory state storage, used by tests and throwaway sessions."""

from typing import Optional

from spendtalk.models.state import AppState
from spendtalk.services.storage.interface import StateStorageInterface


class InMemoryStateStorage(StateStorageInterface):
    """Keeps the last saved AppState in memory. Counts saves for tests."""

    def __init__(self, initial: Optional[AppState] = None):
        self._state = initial or AppState()
        self.save_count = 0

    @property
    def location(self) -> str:
        return "memory"

    async def load_state(self) -> AppState:
        return self._state

    async def save_state(self, state: AppState) -> bool:
        self._state = state
        self.save_count += 1
        return True
