"""
Golf data tracker: the extraction entry points of HUD Reader.

Two independent paths feed one session store:

  A) OCR: frame → HUD crop → Tesseract → range classifier → reconciler
  B) Model: content stream → GOLF_DATA: parser / tool input → reconciler

Manual entries go straight to the reconciler. No entry point raises;
each returns the published ShotRecord or None, and the explicit-trigger
busy flag is cleared on every exit path.
"""

import logging
from typing import Iterable, Optional

import numpy as np

from hudreader.classifier import classify
from hudreader.errors import AcquisitionUnavailable, EngineFailure
from hudreader.frame_source import FrameSource, has_area
from hudreader.live_stream import LiveContentStream, ModelContent
from hudreader.models.session import SessionStore
from hudreader.models.shot import ShotQuality, ShotRecord, Side
from hudreader.ocr_engine import OCREngine
from hudreader.preprocess import preprocess_region
from hudreader.reconciler import ShotReconciler, reconcile
from hudreader.response_parser import fields_from_tool_input, parse_response
from hudreader.utils.constants import (
    DEFAULT_CLUB,
    DEFAULT_RANGE_RULES,
    GOLF_DATA_SENTINEL,
    MEASURED_FIELDS,
    RangeRule,
)

logger = logging.getLogger(__name__)

EXTRACT_TOOL_NAME = "extract_shot_data"


class GolfDataTracker:
    """Coordinates both extraction paths and the session store.

    Attributes:
        store: Session store receiving every reconciled shot.
        ocr: Shared OCR engine adapter.
    """

    def __init__(
        self,
        store: SessionStore,
        ocr: OCREngine,
        rules: Iterable[RangeRule] = DEFAULT_RANGE_RULES,
        club_type: str = DEFAULT_CLUB,
        preprocess_options: Optional[dict] = None,
    ):
        """
        Args:
            store: Session store (should use `ocr` as its busy source).
            ocr: OCR engine adapter.
            rules: Range table for the numeric classifier.
            club_type: Club recorded on reconciled shots.
            preprocess_options: Keyword overrides for preprocess_region().
        """
        self.store = store
        self.ocr = ocr
        self.rules = tuple(rules)
        self.reconciler = ShotReconciler(store, club_type=club_type)
        self._preprocess_options = preprocess_options or {}
        self._stream: Optional[LiveContentStream] = None

    # =========================================================================
    # Path A: OCR
    # =========================================================================

    async def extract_frame(self, frame: Optional[np.ndarray]) -> Optional[ShotRecord]:
        """Run OCR extraction on one full-resolution frame.

        Returns:
            The published record, or None when the frame has no area, OCR
            failed, or no field was recognized.
        """
        logger.info("OCR: Direct OCR extraction requested")
        self.store.set_triggered(True)
        try:
            if not has_area(frame):
                raise AcquisitionUnavailable("No frame or frame not ready")
            h, w = frame.shape[:2]
            logger.info(f"OCR: Using full resolution: {w}x{h}")

            image = preprocess_region(frame, **self._preprocess_options)
            text = await self.ocr.recognize(image)
            fields = classify(text, self.rules)
            if fields is None:
                logger.info("OCR: No golf data found in text")
                return None
            return self.reconciler.publish(fields, source="OCR")
        except AcquisitionUnavailable as e:
            logger.error(f"OCR: {e}")
            return None
        except EngineFailure as e:
            logger.error(f"OCR: Error: {e}")
            return None
        except Exception:
            logger.exception("OCR: Unexpected extraction error")
            return None
        finally:
            self.store.set_triggered(False)

    async def extract_from_source(self, source: FrameSource) -> Optional[ShotRecord]:
        """Grab a frame from `source` and run OCR extraction on it."""
        try:
            frame = source.read_frame()
        except Exception as e:
            logger.error(f"OCR: Frame source failed: {e}")
            frame = None
        return await self.extract_frame(frame)

    # =========================================================================
    # Path B: model content
    # =========================================================================

    def attach(self, stream: LiveContentStream):
        """Start handling model turns from `stream` (detaching any previous one)."""
        self.detach()
        stream.content.connect(self.handle_content)
        self._stream = stream

    def detach(self):
        """Stop handling model turns from the attached stream."""
        if self._stream is not None:
            self._stream.content.disconnect(self.handle_content)
            self._stream = None

    def handle_content(self, content: ModelContent) -> list[ShotRecord]:
        """Parse every data-bearing part of a model turn and publish it."""
        records = []
        for part in getattr(content, "parts", ()):
            fields = None
            source = ""
            if part.text and GOLF_DATA_SENTINEL in part.text:
                logger.debug(f"Golf: AI Response: {part.text!r}")
                fields = parse_response(part.text)
                source = "model answer"
            elif part.tool_name == EXTRACT_TOOL_NAME and part.tool_input:
                fields = fields_from_tool_input(part.tool_input)
                source = "model tool call"

            if fields is None:
                continue
            try:
                records.append(self.reconciler.publish(fields, source=source))
            except ValueError as e:
                logger.error(f"Golf: Could not record model data: {e}")
        return records

    # =========================================================================
    # Path C: manual entry
    # =========================================================================

    def add_manual_shot(
        self,
        club_type: str = DEFAULT_CLUB,
        side: Side = Side.CENTER,
        shot_quality: ShotQuality = ShotQuality.GOOD,
        **measurements: Optional[float],
    ) -> ShotRecord:
        """Record a shot typed in by the user.

        Args:
            club_type: Club used.
            side: Shot direction.
            shot_quality: Quality rating.
            **measurements: Any of the numeric shot fields; None means unset.

        Raises:
            ValueError: Unknown measurement name or bad side/quality.
        """
        unknown = set(measurements) - set(MEASURED_FIELDS)
        if unknown:
            raise ValueError(f"Unknown shot fields: {', '.join(sorted(unknown))}")

        fields = {k: float(v) for k, v in measurements.items() if v is not None}
        fields["side"] = Side(side)
        fields["shot_quality"] = ShotQuality(shot_quality)
        record = reconcile(fields, club_type=club_type)
        self.store.add_shot(record)
        return record

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def is_processing(self) -> bool:
        return self.store.is_processing

    def close(self):
        """Detach from the stream, cancel timers, and release the OCR engine."""
        self.detach()
        self.store.teardown()
        self.ocr.close()
