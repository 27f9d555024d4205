"""
Session store for HUD Reader.

Holds the shot history (newest first), the transient "current shot" shown
for a few seconds after each extraction, and the processing flags that gate
new extraction triggers. History is loaded once from the key-value store at
construction and rewritten after every mutation.

Threading: All mutations take the store mutex, so the OCR path and the
model-answer path can publish concurrently without interleaving inside a
single append. Signals are emitted after the mutex is released.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from statistics import mean, stdev
from typing import Optional

from PyQt6.QtCore import QMutex, QMutexLocker, QObject, QTimer, pyqtSignal

from hudreader.database.db import KeyValueStore
from hudreader.errors import PersistenceFailure
from hudreader.models.shot import ShotRecord
from hudreader.utils.constants import (
    CURRENT_SHOT_SECONDS,
    EXPORT_PREFIX,
    MEASURED_FIELDS,
    STORAGE_KEY,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionStats:
    """Aggregate statistics over the shot history.

    Attributes:
        total_shots: Number of records in the history.
        averages: Mean per field, over only the records where that field
                  is present. Fields with no values are absent.
        stdevs: Sample standard deviation per field with 2+ values.
        last_shot: Most recent record.
    """
    total_shots: int
    last_shot: ShotRecord
    averages: dict[str, float] = field(default_factory=dict)
    stdevs: dict[str, float] = field(default_factory=dict)


def compute_stats(history: list[ShotRecord]) -> Optional[SessionStats]:
    """Compute aggregate statistics; None for an empty history."""
    if not history:
        return None

    averages = {}
    stdevs = {}
    for name in MEASURED_FIELDS:
        values = [getattr(r, name) for r in history if getattr(r, name) is not None]
        if values:
            averages[name] = mean(values)
        if len(values) > 1:
            stdevs[name] = stdev(values)

    return SessionStats(
        total_shots=len(history),
        last_shot=history[0],
        averages=averages,
        stdevs=stdevs,
    )


class SessionStore(QObject):
    """Shot history with current-shot expiry, stats, and persistence.

    Signals:
        shot_added(ShotRecord): Emitted after a record becomes the history head.
        current_shot_changed(object): ShotRecord, or None when it expires
                                      or is cleared.
        history_cleared(): Emitted after clear().
        processing_changed(bool): Emitted when the trigger flag or the
                                  engine busy flag changes.
    """

    shot_added = pyqtSignal(object)
    current_shot_changed = pyqtSignal(object)
    history_cleared = pyqtSignal()
    processing_changed = pyqtSignal(bool)

    def __init__(
        self,
        storage: KeyValueStore,
        storage_key: str = STORAGE_KEY,
        current_shot_seconds: float = CURRENT_SHOT_SECONDS,
        busy_source=None,
        parent=None,
    ):
        """
        Args:
            storage: Key-value store holding the persisted history.
            storage_key: Key of the JSON history array.
            current_shot_seconds: How long a new shot stays "current".
            busy_source: Object with an `is_busy` attribute (the OCR engine)
                         folded into `is_processing`. If it has a
                         `busy_changed` signal, its edges are re-emitted
                         as `processing_changed`.
        """
        super().__init__(parent)
        self._storage = storage
        self._storage_key = storage_key
        self._busy_source = busy_source
        self._mutex = QMutex()

        self._history: list[ShotRecord] = self._load()
        self._current_shot: Optional[ShotRecord] = None
        self._triggered = False

        self._expiry_timer = QTimer(self)
        self._expiry_timer.setSingleShot(True)
        self._expiry_timer.setInterval(int(current_shot_seconds * 1000))
        self._expiry_timer.timeout.connect(self._expire_current_shot)

        busy_changed = getattr(busy_source, "busy_changed", None)
        if busy_changed is not None:
            busy_changed.connect(self._on_engine_busy_changed)

    # =========================================================================
    # Persistence
    # =========================================================================

    def _load(self) -> list[ShotRecord]:
        """Read the persisted history; any failure means an empty history."""
        try:
            raw = self._storage.get(self._storage_key)
        except (PersistenceFailure, OSError) as e:
            logger.error(f"Error loading saved shots: {e}")
            return []
        if not raw:
            return []

        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError(f"expected a JSON array, got {type(items).__name__}")
            history = [ShotRecord.from_dict(item) for item in items]
        except (ValueError, KeyError, TypeError, OverflowError) as e:
            logger.error(f"Error loading saved shots: {e}")
            return []

        logger.info(f"Loaded {len(history)} saved shots")
        return history

    def _save(self, history: list[ShotRecord]):
        """Best-effort write of the history; in-memory state is kept on failure."""
        payload = json.dumps(
            [r.to_dict() for r in history], separators=(",", ":"),
        )
        try:
            self._storage.set(self._storage_key, payload)
        except (PersistenceFailure, OSError) as e:
            logger.error(f"Error saving shots: {e}")

    # =========================================================================
    # History
    # =========================================================================

    @property
    def history(self) -> tuple[ShotRecord, ...]:
        """Snapshot of the history, newest first."""
        with QMutexLocker(self._mutex):
            return tuple(self._history)

    @property
    def current_shot(self) -> Optional[ShotRecord]:
        return self._current_shot

    def add_shot(self, record: ShotRecord):
        """Make `record` the new history head and the current shot."""
        with QMutexLocker(self._mutex):
            head = self._history[0] if self._history else None
            self._history.insert(0, record)
            self._current_shot = record
            # Written under the lock so stored snapshots never go backwards
            self._save(self._history)

        if head is not None and head.measurements() == record.measurements():
            logger.info(
                "New shot repeats the previous shot's measurements "
                "(possible duplicate trigger)"
            )

        self._expiry_timer.start()
        logger.info(f"Shot recorded: {record.measurements()}")
        self.shot_added.emit(record)
        self.current_shot_changed.emit(record)

    def clear(self):
        """Drop all history, the current shot, flags, and the persisted copy."""
        with QMutexLocker(self._mutex):
            self._history = []
            self._current_shot = None
            self._triggered = False
            try:
                self._storage.remove(self._storage_key)
            except (PersistenceFailure, OSError) as e:
                logger.error(f"Error removing saved shots: {e}")
        self._expiry_timer.stop()

        logger.info("Shot history cleared")
        self.history_cleared.emit()
        self.current_shot_changed.emit(None)
        self.processing_changed.emit(self.is_processing)

    def _expire_current_shot(self):
        self._current_shot = None
        self.current_shot_changed.emit(None)

    def teardown(self):
        """Cancel the pending current-shot expiry."""
        self._expiry_timer.stop()

    # =========================================================================
    # Processing flags
    # =========================================================================

    def set_triggered(self, active: bool):
        """Set the explicit-trigger flag."""
        self._triggered = active
        self.processing_changed.emit(self.is_processing)

    def _on_engine_busy_changed(self, _busy: bool):
        self.processing_changed.emit(self.is_processing)

    @property
    def is_processing(self) -> bool:
        """True while an explicit trigger or an OCR call is in flight."""
        engine_busy = bool(getattr(self._busy_source, "is_busy", False))
        return self._triggered or engine_busy

    # =========================================================================
    # Stats & export
    # =========================================================================

    def stats(self) -> Optional[SessionStats]:
        """Session statistics, or None when there are no shots."""
        return compute_stats(list(self.history))

    def export_json(self) -> str:
        """Pretty-printed JSON of the full history."""
        return json.dumps([r.to_dict() for r in self.history], indent=2)

    def export(self, directory: Path) -> Path:
        """Write the history to golf-shots-YYYY-MM-DD.json in `directory`."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        filepath = directory / f"{EXPORT_PREFIX}-{date.today().isoformat()}.json"
        filepath.write_text(self.export_json())
        logger.info(f"Exported {len(self.history)} shots to {filepath}")
        return filepath
