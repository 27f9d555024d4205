"""
Exception types for HUD Reader.

None of these escape an extraction entry point: the tracker catches them,
logs, and reports "no data". An OCR call that succeeds but recognizes no
fields is not an error at all and simply yields None.
"""


class HudReaderError(Exception):
    """Base class for HUD Reader errors."""


class AcquisitionUnavailable(HudReaderError):
    """No frame could be acquired, or the frame has no area."""


class EngineFailure(HudReaderError):
    """The OCR engine could not be initialized or the recognition call failed."""


class PersistenceFailure(HudReaderError):
    """Reading or writing the key-value store failed."""
