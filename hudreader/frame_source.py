"""
Frame sources for HUD Reader.

A frame source hands the tracker one full-resolution BGR frame on demand.
ImageFileSource reads a screenshot from disk; VideoCaptureSource grabs
from a capture device index or a recorded video via OpenCV.
"""

import logging
from pathlib import Path
from typing import Optional, Protocol, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    def read_frame(self) -> Optional[np.ndarray]: ...


def has_area(frame: Optional[np.ndarray]) -> bool:
    """True for a frame with positive width and height."""
    if frame is None or frame.ndim < 2:
        return False
    h, w = frame.shape[:2]
    return w > 0 and h > 0


class ImageFileSource:
    """Reads a still frame (e.g. a saved screenshot) from disk."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def read_frame(self) -> Optional[np.ndarray]:
        frame = cv2.imread(str(self.path), cv2.IMREAD_COLOR)
        if frame is None:
            logger.error(f"Cannot read image: {self.path}")
        return frame


class VideoCaptureSource:
    """Grabs the latest frame from a capture device or video file."""

    def __init__(self, source: Union[int, str] = 0,
                 resolution: Optional[tuple[int, int]] = None):
        """
        Args:
            source: OpenCV camera index or video file path.
            resolution: Requested (width, height) for capture devices.
        """
        self._source = source
        self._resolution = resolution
        self._cap: Optional[cv2.VideoCapture] = None

    def _open(self) -> bool:
        if self._cap is not None and self._cap.isOpened():
            return True
        self._cap = cv2.VideoCapture(self._source)
        if not self._cap.isOpened():
            logger.error(f"Cannot open video source {self._source}")
            return False
        if self._resolution:
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._resolution[0])
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._resolution[1])
        actual_w = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_h = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info(f"Video source opened: {actual_w}x{actual_h}")
        return True

    def read_frame(self) -> Optional[np.ndarray]:
        if not self._open():
            return None
        ret, frame = self._cap.read()
        if not ret:
            logger.warning("Video source returned no frame")
            return None
        return frame

    def release(self):
        if self._cap is not None:
            self._cap.release()
            self._cap = None
