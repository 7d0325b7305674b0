import json
import logging
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import pandas as pd

from .models import HistoryEntry, FILTER_ALL

logger = logging.getLogger(__name__)

HISTORY_KEY = 'transactionHistory'


class HistoryStore:
    """Durable storage of the full ordered history log under one key."""

    def load(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def persist(self, log: List[Dict[str, Any]]) -> None:
        raise NotImplementedError

    def remove(self) -> None:
        raise NotImplementedError


class InMemoryHistoryStore(HistoryStore):
    def __init__(self, initial: Optional[List[Dict[str, Any]]] = None):
        self._data = list(initial) if initial is not None else None

    def load(self) -> List[Dict[str, Any]]:
        return list(self._data) if self._data is not None else []

    def persist(self, log: List[Dict[str, Any]]) -> None:
        self._data = list(log)

    def remove(self) -> None:
        self._data = None


class JsonFileHistoryStore(HistoryStore):
    """Keeps the log in one JSON document, as {key: [entries...]}."""

    def __init__(self, path: Union[str, Path], key: str = HISTORY_KEY):
        self.path = Path(path)
        self.key = key

    def load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        with open(self.path, 'r', encoding='utf-8') as f:
            document = json.load(f)
        if not isinstance(document, dict):
            raise ValueError(f"History file {self.path} does not hold a JSON object")
        log = document.get(self.key, [])
        if not isinstance(log, list):
            raise ValueError(f"History key '{self.key}' in {self.path} is not a list")
        return log

    def persist(self, log: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump({self.key: log}, f, indent=2)
        tmp_path.replace(self.path)

    def remove(self) -> None:
        if self.path.exists():
            self.path.unlink()


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def matches(entry: HistoryEntry, search_text: str = '', status_filter: str = FILTER_ALL,
            type_filter: str = FILTER_ALL) -> bool:
    """True if entry passes the search, status and type filters."""
    if search_text:
        needle = search_text.lower()
        haystacks = (entry.from_address, entry.to_address, entry.hash)
        if not any(h and needle in h.lower() for h in haystacks):
            return False
    if status_filter and status_filter != FILTER_ALL and entry.status != status_filter:
        return False
    if type_filter and type_filter != FILTER_ALL and entry.type != type_filter:
        return False
    return True


class TransactionHistory:
    """Append-only log of completed token operations, newest first.

    The whole log is rewritten through the store on every change. Store
    failures never propagate: a bad or missing blob loads as an empty log,
    and a failed save is logged while the in-memory log stays updated.
    """

    def __init__(self, store: HistoryStore, clock: Callable[[], float] = time.time):
        self.store = store
        self.clock = clock
        self._lock = threading.Lock()
        self._last_id = 0
        self._entries: List[HistoryEntry] = self.load_all()

    @property
    def entries(self) -> List[HistoryEntry]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def load_all(self) -> List[HistoryEntry]:
        """Read the persisted log; corrupt or missing data yields []."""
        try:
            raw = self.store.load()
            entries = [HistoryEntry.from_dict(item) for item in raw]
        except Exception as e:
            logger.error(f"Error loading transaction history, starting empty: {e}")
            return []
        for entry in entries:
            if isinstance(entry.id, int) and entry.id > self._last_id:
                self._last_id = entry.id
        logger.debug(f"Loaded {len(entries)} history entries")
        return entries

    def reload(self) -> List[HistoryEntry]:
        entries = self.load_all()
        with self._lock:
            self._entries = entries
        return list(entries)

    def _next_id(self) -> int:
        # millisecond clock, bumped when two appends land in the same ms
        candidate = int(self.clock() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return candidate

    def _save(self) -> None:
        try:
            self.store.persist([e.to_dict() for e in self._entries])
        except Exception as e:
            logger.error(f"Error saving transaction history: {e}")

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        """Stamp id/timestamp if missing, prepend and persist."""
        with self._lock:
            if entry.id is None:
                entry.id = self._next_id()
            elif isinstance(entry.id, int) and entry.id > self._last_id:
                self._last_id = entry.id
            if entry.timestamp is None:
                entry.timestamp = utc_timestamp()
            self._entries.insert(0, entry)
            self._save()
        logger.info(f"Recorded {entry.type} {entry.status}: {entry.hash}")
        return entry

    def record(self, type: str, from_address: Optional[str], to_address: Optional[str],
               amount: Optional[str], status: str, hash: Optional[str]) -> HistoryEntry:
        return self.append(HistoryEntry(
            type=type,
            from_address=from_address,
            to_address=to_address,
            amount=None if amount is None else str(amount),
            status=status,
            hash=hash,
        ))

    def clear(self) -> None:
        with self._lock:
            self._entries = []
            try:
                self.store.remove()
            except Exception as e:
                logger.error(f"Error clearing persisted transaction history: {e}")
        logger.info("Transaction history cleared")

    def filter(self, search_text: str = '', status_filter: str = FILTER_ALL,
               type_filter: str = FILTER_ALL,
               entries: Optional[List[HistoryEntry]] = None) -> List[HistoryEntry]:
        """Project the log (or a given view of it) through the filters."""
        source = self.entries if entries is None else entries
        return [e for e in source if matches(e, search_text, status_filter, type_filter)]

    def counts(self, **filters) -> Tuple[int, int]:
        """(shown, total) for the given filters."""
        entries = self.entries
        return len(self.filter(entries=entries, **filters)), len(entries)

    def export(self, **filters) -> str:
        """Serialize the filtered view as one JSON document."""
        return json.dumps([e.to_dict() for e in self.filter(**filters)], indent=2)

    def export_to_file(self, directory: Union[str, Path] = '.', **filters) -> Path:
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        date = datetime.now(timezone.utc).strftime('%Y-%m-%d')
        path = directory / f"transaction-history-{date}.json"
        path.write_text(self.export(**filters), encoding='utf-8')
        logger.info(f"Transaction history exported to {path}")
        return path

    def export_csv(self, path: Union[str, Path], **filters) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        rows = [e.to_dict() for e in self.filter(**filters)]
        df = pd.DataFrame(rows, columns=['id', 'timestamp', 'type', 'from', 'to', 'amount', 'status', 'hash'])
        df.to_csv(path, index=False)
        logger.info(f"Transaction history exported to {path}")
        return path
