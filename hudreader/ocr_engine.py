"""
OCR engine adapter for HUD Reader.

TesseractEngine configures pytesseract for the HUD's digit readouts.
OCREngine owns one lazily created engine for the process lifetime and
exposes it to asyncio code: construction and recognition run in a worker
thread so the event loop keeps servicing the model-answer path.

Concurrent first callers of acquire() share one initialization task, so
the engine is never constructed twice.
"""

import asyncio
import logging
from typing import Callable, Optional

import numpy as np
import pytesseract
from PyQt6.QtCore import QObject, pyqtSignal

from hudreader.errors import EngineFailure
from hudreader.utils.constants import (
    OCR_CHAR_WHITELIST,
    OCR_LANGUAGE,
    OCR_PAGE_SEG_MODE,
    OCR_PRESERVE_INTERWORD_SPACES,
)

logger = logging.getLogger(__name__)


def build_tesseract_config(
    whitelist: str = OCR_CHAR_WHITELIST,
    psm: int = OCR_PAGE_SEG_MODE,
    preserve_interword_spaces: int = OCR_PRESERVE_INTERWORD_SPACES,
) -> str:
    """Tesseract CLI config string for digit-only single-block reads."""
    return (
        f"--psm {psm} "
        f"-c tessedit_char_whitelist={whitelist} "
        f"-c preserve_interword_spaces={preserve_interword_spaces}"
    )


class TesseractEngine:
    """pytesseract wrapper with the HUD recognition settings.

    Construction verifies that the tesseract binary is reachable, so a
    missing install surfaces as an initialization failure rather than on
    the first frame.
    """

    def __init__(self, tesseract_cmd: str = "", language: str = OCR_LANGUAGE):
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.language = language
        self.config = build_tesseract_config()
        self.version = pytesseract.get_tesseract_version()
        logger.info(f"Tesseract {self.version} ready (config: {self.config})")

    def recognize(self, image: np.ndarray) -> str:
        return pytesseract.image_to_string(
            image, lang=self.language, config=self.config,
        )

    def close(self):
        # pytesseract spawns one process per call; nothing is held open.
        pass


class OCREngine(QObject):
    """Single-owner async adapter around a recognition engine.

    `is_busy` is true while any recognize() call is in flight.

    Signals:
        busy_changed(bool): Emitted when `is_busy` flips.
    """

    busy_changed = pyqtSignal(bool)

    def __init__(self, engine_factory: Optional[Callable[[], object]] = None,
                 parent=None):
        """
        Args:
            engine_factory: Zero-argument callable returning an object with
                            `recognize(image) -> str` and `close()`.
                            Defaults to TesseractEngine().
        """
        super().__init__(parent)
        self._engine_factory = engine_factory or TesseractEngine
        self._engine = None
        self._init_task: Optional[asyncio.Task] = None
        self._in_flight = 0

    @property
    def is_busy(self) -> bool:
        return self._in_flight > 0

    @property
    def ready(self) -> bool:
        return self._engine is not None

    async def acquire(self):
        """Return the shared engine, constructing it on first use.

        Raises:
            EngineFailure: Construction failed. Every caller waiting on
                           the same attempt sees the same failure; the
                           next call starts a fresh attempt.
        """
        if self._engine is not None:
            return self._engine

        if self._init_task is None:
            logger.info("OCR: Initializing engine...")
            self._init_task = asyncio.ensure_future(self._construct())

        task = self._init_task
        try:
            engine = await asyncio.shield(task)
        finally:
            if task.done() and self._init_task is task:
                self._init_task = None
        return engine

    async def _construct(self):
        try:
            engine = await asyncio.to_thread(self._engine_factory)
        except Exception as e:
            logger.error(f"OCR: Engine initialization failed: {e}")
            raise EngineFailure(f"OCR engine initialization failed: {e}") from e
        self._engine = engine
        logger.info("OCR: Engine ready")
        return engine

    async def recognize(self, image: np.ndarray) -> str:
        """Recognize text in an enhanced HUD image.

        Raises:
            EngineFailure: Initialization or the recognition call failed.
        """
        self._in_flight += 1
        if self._in_flight == 1:
            self.busy_changed.emit(True)
        try:
            engine = await self.acquire()
            try:
                text = await asyncio.to_thread(engine.recognize, image)
            except Exception as e:
                raise EngineFailure(f"OCR recognition failed: {e}") from e
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self.busy_changed.emit(False)
        logger.debug(f"OCR: Extracted text: {text!r}")
        return text or ""

    def close(self):
        """Release the engine. The next acquire() constructs a new one."""
        if self._engine is not None:
            logger.info("OCR: Terminating engine...")
            try:
                self._engine.close()
            finally:
                self._engine = None
