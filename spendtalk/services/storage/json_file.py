"""
JSON File Storage Implementation

DESIGN DECISION: State is a single local JSON document because:
1. The app has one user and one logical writer
2. No database setup required
3. The file is human-readable and easy to back up or inspect

Document shape (camelCase keys are kept for compatibility):

    {"expenses": [...], "budgets": [...], "undoStack": [...]}

TRADEOFFS:
- The whole document is rewritten on every change (fine at personal scale)
- No concurrent writers (we write atomically via a temp file + rename)
"""

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from spendtalk.audit.logger import AuditLogger, get_logger
from spendtalk.config import get_settings
from spendtalk.config.settings import StorageSettings
from spendtalk.models.state import AppState
from spendtalk.services.storage.interface import (
    StateCorruptedError,
    StateStorageInterface,
    StateWriteError,
)


logger = get_logger(__name__)

_STATE_KEYS = ("expenses", "budgets", "undoStack")


class JsonFileStateStorage(StateStorageInterface):
    """
    Stores AppState in a JSON file.

    Reads are tolerant: a missing file is an empty state, and a file
    that cannot be decoded is reported and treated as empty (it is left
    in place so nothing is lost). Writes are atomic and retried.
    """

    def __init__(
        self,
        settings: Optional[StorageSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        retry_wait: Optional[wait_base] = None,
    ):
        self._settings = settings or get_settings().storage
        self._path = Path(self._settings.state_path)
        self._audit = audit_logger or AuditLogger()

        self._write_with_retry = retry(
            stop=stop_after_attempt(self._settings.write_attempts),
            wait=retry_wait or wait_exponential(multiplier=1, min=2, max=10),
            reraise=True,
        )(self._write_file)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    def _read_file(self) -> AppState:
        """
        Decode the state file.

        Raises:
            StateCorruptedError: If the file is not a valid state document
        """
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StateCorruptedError(f"Unreadable state file: {e}")

        if not isinstance(data, dict):
            raise StateCorruptedError("State document is not a JSON object")

        # Older documents may lack some of the lists
        for key in _STATE_KEYS:
            if data.get(key) is None:
                data[key] = []

        try:
            return AppState.model_validate(data)
        except ValidationError as e:
            raise StateCorruptedError(f"Invalid state document: {e}")

    def _write_file(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, self._path)

    async def load_state(self) -> AppState:
        """Load state from disk, falling back to an empty state."""
        if not self._path.exists():
            logger.info("state_file_missing", path=self.location)
            return AppState()

        try:
            state = self._read_file()
        except StateCorruptedError as e:
            logger.warning("state_file_corrupted", path=self.location, error=str(e))
            await self._audit.log_state_corrupted(
                location=self.location,
                error_message=str(e),
            )
            return AppState()

        await self._audit.log_state_loaded(
            location=self.location,
            expense_count=len(state.expenses),
            budget_count=len(state.budgets),
        )
        return state

    async def save_state(self, state: AppState) -> bool:
        """Write the full state document atomically."""
        payload = state.model_dump_json(by_alias=True, indent=2)
        try:
            self._write_with_retry(payload)
        except OSError as e:
            await self._audit.log_save_failed(
                location=self.location,
                error_message=str(e),
            )
            raise StateWriteError(f"Failed to save state to {self.location}: {e}")

        await self._audit.log_state_saved(
            location=self.location,
            expense_count=len(state.expenses),
        )
        return True
