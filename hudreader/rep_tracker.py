"""
Repetition tracker: counts drill repetitions from model tool calls.

The model is offered two tools. detect_repetition reports whether the
recent frames show a complete repetition; a confident, plausible detection
is held as pending. evaluate_repetition then grades the pending repetition,
which is logged to the RepSession.

Detections are rejected when the model is not confident enough, when the
description names a non-swing movement (gesture, sitting, ...), or when it
recites every phase of a textbook swing, which is what the model produces
when it hallucinates a rep.

While attached to a stream the tracker can poll the model on a timer; the
poll callable is whatever sends the next frame with the repetition tools.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from PyQt6.QtCore import QTimer

from hudreader.live_stream import LiveContentStream, ModelContent
from hudreader.models.rep_session import RepSession
from hudreader.utils.constants import (
    DEFAULT_FORM_SCORE,
    DEFAULT_REP_FEEDBACK,
    REP_CONFIDENCE_THRESHOLD,
    REP_FALSE_POSITIVE_KEYWORDS,
    REP_HALLUCINATION_PHRASES,
    REP_POLL_SECONDS,
)

logger = logging.getLogger(__name__)

DETECT_TOOL_NAME = "detect_repetition"
EVALUATE_TOOL_NAME = "evaluate_repetition"

DETECT_REPETITION_TOOL = {
    "name": DETECT_TOOL_NAME,
    "description": (
        "Analyze video frames to determine if a repetition occurred. Observe "
        "the person's position, movements, and actions in the video."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "repetition_detected": {
                "type": "boolean",
                "description": (
                    "True if a complete drill repetition was observed, "
                    "false otherwise"
                ),
            },
            "confidence": {
                "type": "number",
                "description": (
                    "Confidence level 0-1 that this was a real repetition "
                    "(1 = very confident)"
                ),
            },
            "movement_phase": {
                "type": "string",
                "description": "Primary movement observed: 'none', 'partial', 'complete'",
            },
            "description": {
                "type": "string",
                "description": (
                    "Objective description of what you observe in the video: "
                    "person's position, posture, and any visible movements "
                    "or actions."
                ),
            },
        },
        "required": [
            "repetition_detected", "confidence", "movement_phase", "description",
        ],
    },
}

EVALUATE_REPETITION_TOOL = {
    "name": EVALUATE_TOOL_NAME,
    "description": (
        "Provides expert evaluation of a detected drill repetition's "
        "quality and form."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "quality": {
                "type": "string",
                "enum": ["good", "fair", "poor"],
                "description": "Overall quality assessment: 'good', 'fair', 'poor'",
            },
            "form_score": {
                "type": "number",
                "description": "Technical form score from 0-100 (100 = perfect form)",
            },
            "feedback": {
                "type": "string",
                "description": "Brief expert feedback on what was good or needs improvement",
            },
            "key_points": {
                "type": "string",
                "description": "Key technical points observed (comma-separated if multiple)",
            },
        },
        "required": ["quality", "form_score", "feedback", "key_points"],
    },
}

REPETITION_TOOLS = [DETECT_REPETITION_TOOL, EVALUATE_REPETITION_TOOL]

REP_PROMPT = (
    "You analyze video frames. Call 'detect_repetition' to describe what you "
    "observe in the recent video frames. In the description field, "
    "objectively describe what you see: the person's position, posture, and "
    "any movements. Be factual and specific about what is visible. Only set "
    "repetition_detected=true if you observe athletic movement that appears "
    "to be a complete sports motion. Most observations should result in "
    "repetition_detected=false. If you detected a repetition, also call "
    "'evaluate_repetition' to grade it."
)


@dataclass(frozen=True)
class PendingRep:
    """An accepted detection waiting for its evaluation."""
    description: str
    confidence: float


def rejection_reason(description: str) -> Optional[str]:
    """Why a confident detection should still be rejected, or None."""
    text = description.lower()
    if any(keyword in text for keyword in REP_FALSE_POSITIVE_KEYWORDS):
        return "False positive filter triggered"
    if all(phrase in text for phrase in REP_HALLUCINATION_PHRASES):
        return "Possible hallucination detected"
    return None


def _number(value, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)


class RepTracker:
    """Handles repetition tool calls from a model content stream.

    Attributes:
        session: Rep session receiving logged repetitions.
        confidence_threshold: Detections must be strictly above this.
    """

    def __init__(
        self,
        session: RepSession,
        confidence_threshold: float = REP_CONFIDENCE_THRESHOLD,
        poll: Optional[Callable[[], object]] = None,
        poll_seconds: float = REP_POLL_SECONDS,
    ):
        """
        Args:
            session: Rep session to log into.
            confidence_threshold: Minimum (exclusive) detection confidence.
            poll: Called every `poll_seconds` while attached, to ask the
                  model for the next detection.
            poll_seconds: Poll interval.
        """
        self.session = session
        self.confidence_threshold = confidence_threshold
        self._pending: Optional[PendingRep] = None
        self._stream: Optional[LiveContentStream] = None
        self._poll = poll
        self._poll_timer = QTimer(session)
        self._poll_timer.setInterval(int(poll_seconds * 1000))
        self._poll_timer.timeout.connect(self._on_poll)

    @property
    def pending(self) -> Optional[PendingRep]:
        return self._pending

    # =========================================================================
    # Stream registration
    # =========================================================================

    def attach(self, stream: LiveContentStream):
        """Follow `stream`, start detecting, and start polling."""
        self.detach()
        stream.content.connect(self.handle_content)
        self._stream = stream
        self.session.set_detecting(True)
        if self._poll is not None:
            logger.info("Reps: Starting periodic detection polls")
            self._poll_timer.start()

    def detach(self):
        """Stop following the stream; the session is reset."""
        if self._stream is None:
            return
        self._poll_timer.stop()
        self._stream.content.disconnect(self.handle_content)
        self._stream = None
        self._pending = None
        self.session.reset_session()

    def _on_poll(self):
        try:
            self._poll()
        except Exception as e:
            logger.error(f"Reps: Detection poll failed: {e}")

    # =========================================================================
    # Tool calls
    # =========================================================================

    def handle_content(self, content: ModelContent) -> list[dict]:
        """Run every repetition tool call in a model turn.

        Returns:
            One tool output dict per repetition tool call, in order.
        """
        outputs = []
        for part in getattr(content, "parts", ()):
            if part.tool_name in (DETECT_TOOL_NAME, EVALUATE_TOOL_NAME):
                outputs.append(self.handle_tool_call(part.tool_name, part.tool_input))
        return outputs

    def handle_tool_call(self, name: str, args: Optional[dict]) -> dict:
        """Run one tool call and return its output. Never raises."""
        args = args or {}
        logger.debug(f"Reps: {name} called with {args}")
        try:
            if name == DETECT_TOOL_NAME:
                return self._detect(args)
            if name == EVALUATE_TOOL_NAME:
                return self._evaluate(args)
        except (TypeError, ValueError, AttributeError) as e:
            logger.error(f"Reps: {name} failed: {e}")
            return {"success": False, "error": str(e)}
        return {"success": False, "error": "Unknown function"}

    def _detect(self, args: dict) -> dict:
        description = str(args.get("description") or "")
        confidence = _number(args.get("confidence"), 0.0)
        phase = args.get("movement_phase")

        if not (args.get("repetition_detected") is True
                and confidence > self.confidence_threshold):
            return {
                "success": True,
                "action": "no_repetition_detected",
                "phase": phase,
                "description": description,
            }

        reason = rejection_reason(description)
        if reason:
            logger.info(f"Reps: Rejected detection ({reason}): {description!r}")
            return {
                "success": True,
                "action": "no_repetition_detected",
                "phase": phase,
                "description": f"Rejected - {reason}",
                "reason": reason,
            }

        self._pending = PendingRep(description=description, confidence=confidence)
        logger.info(f"Reps: Repetition detected (confidence {confidence:.2f})")
        return {
            "success": True,
            "action": "repetition_detected",
            "confidence": confidence,
            "description": description,
            "next_action": "Please call evaluate_repetition to assess this repetition",
        }

    def _evaluate(self, args: dict) -> dict:
        if self._pending is None:
            return {
                "success": True,
                "action": "no_pending_repetition",
                "message": "No pending repetition to evaluate",
            }

        form_score = _number(args.get("form_score"), 0.0) or DEFAULT_FORM_SCORE
        feedback = args.get("feedback") or DEFAULT_REP_FEEDBACK
        entry = self.session.record_rep(
            quality=str(args.get("quality", "")).strip().lower(),
            form_score=form_score,
            feedback=feedback,
            description=self._pending.description,
        )
        self._pending = None
        return {
            "success": True,
            "action": "repetition_logged",
            "repetition_id": entry.id,
            "quality": entry.quality.value,
            "form_score": entry.form_score,
            "total_repetitions": self.session.total_reps,
            "feedback": entry.feedback,
        }

    def close(self):
        self.detach()
