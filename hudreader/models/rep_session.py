"""
Repetition session model for HUD Reader.

RepQuality: Coarse rating the model gives an evaluated repetition.
RepLogEntry: One logged, evaluated repetition.
RepSession: Running drill session (rep count, start time, drill name,
            detecting flag) and its rep log.

The session is in-memory only; it resets whenever the model stream it
follows is detached.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from PyQt6.QtCore import QMutex, QMutexLocker, QObject, pyqtSignal

from hudreader.models.shot import now_ms, to_epoch_ms
from hudreader.utils.constants import DEFAULT_DRILL

logger = logging.getLogger(__name__)


class RepQuality(str, Enum):
    """Repetition quality rating."""
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class RepLogEntry:
    """A single evaluated repetition.

    Attributes:
        id: Unique entry id ("rep-<epoch ms>-<random>").
        timestamp: When the repetition was logged (UTC).
        quality: Quality rating.
        form_score: Technical form score, 0-100.
        feedback: Short coaching feedback from the model.
        description: What the model observed when it detected the rep.
    """
    quality: RepQuality
    form_score: float
    feedback: str
    description: str
    timestamp: datetime = field(default_factory=now_ms)
    id: str = ""

    def __post_init__(self):
        if not self.id:
            entry_id = f"rep-{to_epoch_ms(self.timestamp)}-{uuid.uuid4().hex[:9]}"
            object.__setattr__(self, "id", entry_id)


class RepSession(QObject):
    """Drill session state and rep log.

    Signals:
        rep_recorded(RepLogEntry): Emitted after a repetition is logged.
        session_reset(): Emitted after reset_session().
        detecting_changed(bool): Emitted when detection starts or stops.
        drill_changed(str): Emitted when the current drill is renamed.
    """

    rep_recorded = pyqtSignal(object)
    session_reset = pyqtSignal()
    detecting_changed = pyqtSignal(bool)
    drill_changed = pyqtSignal(str)

    def __init__(self, drill: str = DEFAULT_DRILL, parent=None):
        super().__init__(parent)
        self._default_drill = drill
        self._mutex = QMutex()
        self._log: list[RepLogEntry] = []
        self.total_reps = 0
        self.session_start_time: Optional[datetime] = None
        self.current_drill = drill
        self.is_detecting = False

    @property
    def rep_log(self) -> tuple[RepLogEntry, ...]:
        """Snapshot of the logged repetitions, oldest first."""
        with QMutexLocker(self._mutex):
            return tuple(self._log)

    def record_rep(
        self,
        quality: RepQuality,
        form_score: float,
        feedback: str,
        description: str,
    ) -> RepLogEntry:
        """Log an evaluated repetition and bump the rep count.

        The first logged repetition starts the session clock.

        Raises:
            ValueError: Unknown quality rating.
        """
        entry = RepLogEntry(
            quality=RepQuality(quality),
            form_score=form_score,
            feedback=feedback,
            description=description,
        )
        with QMutexLocker(self._mutex):
            self._log.append(entry)
            self.total_reps += 1
            if self.session_start_time is None:
                self.session_start_time = entry.timestamp

        logger.info(
            f"Rep {self.total_reps} logged ({entry.quality.value}, "
            f"form {entry.form_score:g})"
        )
        self.rep_recorded.emit(entry)
        return entry

    def set_detecting(self, detecting: bool):
        if detecting != self.is_detecting:
            self.is_detecting = detecting
            self.detecting_changed.emit(detecting)

    def set_current_drill(self, drill: str):
        self.current_drill = drill
        self.drill_changed.emit(drill)

    def reset_session(self):
        """Zero the rep count, clear the log, and stop detecting."""
        with QMutexLocker(self._mutex):
            self._log = []
            self.total_reps = 0
            self.session_start_time = None
            self.current_drill = self._default_drill
        self.set_detecting(False)
        logger.info("Rep session reset")
        self.session_reset.emit()
