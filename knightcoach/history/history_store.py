# ==============================================================================
# history_store.py  –  Storage port for the accumulated game history
# ------------------------------------------------------------------------------
# The history is one GameBatch JSON document. Stores expose:
#   • exists() / read()  – current document (None when there is none yet)
#   • backup()           – timestamped copy of the current document
#   • write()            – replace the document
#
# `JsonFileHistoryStore` is the real store; `InMemoryHistoryStore` backs tests.
# Any I/O or decode failure raises HistoryStoreError; nothing is retried.
# A store assumes a single writer at a time.
# ==============================================================================

from __future__ import annotations

import json
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union

from knightcoach.models import GameBatch
from knightcoach.utils.logging_utils import setup_logger

LOGGER = setup_logger("history_store")

DEFAULT_HISTORY_FILE = "lichess-games-history.json"
BACKUP_TIMESTAMP_FMT = "%Y-%m-%d-%H%M%S"


class HistoryStoreError(RuntimeError):
    pass


class HistoryStore(Protocol):
    def exists(self) -> bool: ...

    def read(self) -> Optional[GameBatch]: ...

    def write(self, batch: GameBatch) -> None: ...

    def backup(self) -> Optional[str]: ...


def _decode(text: str, source: str) -> GameBatch:
    try:
        return GameBatch.from_json(text)
    except (ValueError, KeyError, TypeError) as exc:
        raise HistoryStoreError(f"Corrupt history document {source}: {exc}") from exc


# ------------------------------------------------------------------------------
# JSON file store
# ------------------------------------------------------------------------------


class JsonFileHistoryStore:
    """History kept as pretty-printed JSON in `<directory>/<filename>`."""

    def __init__(
        self,
        directory: Union[str, Path] = "output",
        filename: str = DEFAULT_HISTORY_FILE,
    ) -> None:
        self.directory = Path(directory)
        self.filename = filename
        self.path = self.directory / filename

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> Optional[GameBatch]:
        if not self.exists():
            return None
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise HistoryStoreError(f"Cannot read history {self.path}") from exc
        return _decode(text, str(self.path))

    def backup(self) -> Optional[str]:
        """
        Copy the current document to `<timestamp>-<filename>`; None if absent.

        Backups never overwrite each other: a name already taken in the same
        second gets a counter (`<timestamp>-1-<filename>`, ...).
        """
        if not self.exists():
            return None
        stamp = datetime.now().strftime(BACKUP_TIMESTAMP_FMT)
        backup_path = self.directory / f"{stamp}-{self.filename}"
        counter = 0
        while backup_path.exists():
            counter += 1
            backup_path = self.directory / f"{stamp}-{counter}-{self.filename}"
        try:
            shutil.copy2(self.path, backup_path)
        except OSError as exc:
            raise HistoryStoreError(f"Cannot back up history to {backup_path}") from exc
        LOGGER.info("Backed up history → %s", backup_path)
        return str(backup_path)

    def write(self, batch: GameBatch) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(batch.to_json(), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise HistoryStoreError(f"Cannot write history {self.path}") from exc
        LOGGER.info("Wrote %d game(s) to %s", len(batch.games), self.path)


# ------------------------------------------------------------------------------
# In-memory store
# ------------------------------------------------------------------------------


class InMemoryHistoryStore:
    """
    Same contract as the file store, held in memory.

    Documents are kept in JSON form so callers never share game objects
    with the store.
    """

    def __init__(self, initial: Optional[GameBatch] = None) -> None:
        self._document: Optional[Dict[str, Any]] = initial.to_dict() if initial else None
        self.backups: List[Tuple[str, Dict[str, Any]]] = []

    def exists(self) -> bool:
        return self._document is not None

    def read(self) -> Optional[GameBatch]:
        if self._document is None:
            return None
        return _decode(json.dumps(self._document), "<memory>")

    def backup(self) -> Optional[str]:
        if self._document is None:
            return None
        label = f"{datetime.now().strftime(BACKUP_TIMESTAMP_FMT)}-memory"
        self.backups.append((label, json.loads(json.dumps(self._document))))
        return label

    def write(self, batch: GameBatch) -> None:
        self._document = json.loads(batch.to_json())
