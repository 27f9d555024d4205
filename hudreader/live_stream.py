"""
Model content stream for HUD Reader.

Whatever talks to the vision model (VisionModelClient, or a live session
transport) emits each model turn on a LiveContentStream. Consumers
register a handler with `content.connect(handler)` and must disconnect
that same handler on teardown so reconnects do not stack handlers.
"""

from dataclasses import dataclass, field
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal


@dataclass(frozen=True)
class ContentPart:
    """One part of a model turn.

    Attributes:
        text: Free-text answer, if this is a text part.
        tool_name: Name of the tool the model called, if any.
        tool_input: Arguments of that tool call.
    """
    text: Optional[str] = None
    tool_name: Optional[str] = None
    tool_input: Optional[dict] = None


@dataclass(frozen=True)
class ModelContent:
    """One model turn as a sequence of parts."""
    parts: tuple[ContentPart, ...] = field(default_factory=tuple)

    @classmethod
    def from_text(cls, text: str) -> "ModelContent":
        return cls(parts=(ContentPart(text=text),))


class LiveContentStream(QObject):
    """Event source for model turns.

    Signals:
        content(ModelContent): Emitted for every model turn.
    """

    content = pyqtSignal(object)

    def publish(self, content: ModelContent):
        self.content.emit(content)
