"""Route shape fingerprints and the recent-route history used for deduplication."""

from __future__ import annotations

import json
import logging
import threading
from collections import deque
from pathlib import Path
from typing import Iterable, Sequence

from ...config import settings
from ...persistence.filesystem import FileStorage

logger = logging.getLogger(__name__)

SAMPLE_STRIDE = 5
_HASH_SEED = 5381
_HASH_MULTIPLIER = 33
_UINT32_MASK = 0xFFFFFFFF
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def _round4(value: float) -> float:
    # Half-up on the scaled value, then back to 4 decimals.
    scaled = value * 10000
    rounded = int(scaled // 1) + (1 if scaled % 1 >= 0.5 else 0)
    return rounded / 10000


def _format_number(value: float) -> str:
    if value == int(value):
        return str(int(value))
    return repr(value)


def canonical_shape(coordinates: Sequence[Sequence[float]]) -> str:
    """Serialise every 5th point as a compact ``[[lon,lat],...]`` string, dropping elevation."""
    sampled = [
        f"[{_format_number(_round4(point[0]))},{_format_number(_round4(point[1]))}]"
        for point in coordinates[::SAMPLE_STRIDE]
    ]
    return f"[{','.join(sampled)}]"


def djb2(text: str) -> str:
    """32-bit ``hash * 33 ^ char`` rolling hash rendered in base 36."""
    value = _HASH_SEED
    for char in text:
        value = ((value * _HASH_MULTIPLIER) ^ ord(char)) & _UINT32_MASK
    return _to_base36(value)


def compute_fingerprint(coordinates: Sequence[Sequence[float]]) -> str:
    """Deterministic, lossy identity of a route shape (~11 m precision)."""
    return djb2(canonical_shape(coordinates))


class FingerprintHistory:
    """Bounded FIFO of recently served fingerprints.

    Membership checks never refresh an entry's position; once more than
    ``capacity`` entries are stored the oldest are evicted.
    """

    def __init__(self, capacity: int | None = None, initial: Iterable[str] = ()) -> None:
        self.capacity = capacity if capacity is not None else settings.fingerprint_history_size
        if self.capacity < 1:
            raise ValueError("Fingerprint history capacity must be at least 1.")
        self._entries: deque[str] = deque(initial, maxlen=self.capacity)
        self._lock = threading.Lock()

    def get_all(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def is_duplicate(self, fingerprint: str) -> bool:
        with self._lock:
            return fingerprint in self._entries

    def store(self, fingerprint: str) -> None:
        with self._lock:
            self._entries.append(fingerprint)
            self._persist()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._persist()

    def __len__(self) -> int:
        return len(self._entries)

    def _persist(self) -> None:
        """Hook for durable subclasses; called with the lock held."""


class JsonFingerprintHistory(FingerprintHistory):
    """Fingerprint history mirrored to a JSON array on disk."""

    def __init__(self, path: Path, capacity: int | None = None, storage: FileStorage | None = None) -> None:
        self.path = path
        self.storage = storage or FileStorage()
        super().__init__(capacity=capacity, initial=self._load())

    def _load(self) -> list[str]:
        try:
            parsed = self.storage.read_json(self.path, default=[])
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(f"Ignoring unreadable fingerprint history at {self.path}: {exc}")
            return []
        if not isinstance(parsed, list):
            return []
        return [value for value in parsed if isinstance(value, str)]

    def _persist(self) -> None:
        # Best effort: the in-memory history stays authoritative for this process.
        try:
            self.storage.write_json(self.path, list(self._entries))
        except OSError as exc:
            logger.warning(f"Could not persist fingerprint history to {self.path}: {exc}")


def build_history() -> FingerprintHistory:
    """History configured from settings: file-backed when a history file is set."""
    if settings.fingerprint_history_file:
        storage = FileStorage()
        path = settings.fingerprint_history_file
        if not path.is_absolute():
            path = storage.root / path
        return JsonFingerprintHistory(path, storage=storage)
    return FingerprintHistory()
