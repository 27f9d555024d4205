"""
HUD region preprocessing for OCR.

Crops the fixed top-left shot-data panel out of a full frame, upscales it,
and pushes bright glyphs to white and dark background to black so
Tesseract sees clean digits. Mid-tone pixels keep their gray level.
"""

import logging

import cv2
import numpy as np

from hudreader.errors import AcquisitionUnavailable
from hudreader.utils.constants import (
    BLACK_THRESHOLD,
    REGION_HEIGHT_FRACTION,
    REGION_SCALE,
    REGION_WIDTH_FRACTION,
    WHITE_THRESHOLD,
)

logger = logging.getLogger(__name__)


def crop_region(
    frame: np.ndarray,
    width_fraction: float = REGION_WIDTH_FRACTION,
    height_fraction: float = REGION_HEIGHT_FRACTION,
) -> np.ndarray:
    """Return the top-left `width_fraction` x `height_fraction` of a frame."""
    h, w = frame.shape[:2]
    region_w = int(w * width_fraction)
    region_h = int(h * height_fraction)
    if region_w <= 0 or region_h <= 0:
        raise AcquisitionUnavailable(
            f"HUD region of a {w}x{h} frame has no area"
        )
    return frame[:region_h, :region_w]


def binarize(image: np.ndarray,
             high: int = WHITE_THRESHOLD,
             low: int = BLACK_THRESHOLD) -> np.ndarray:
    """Threshold the per-pixel channel mean into a single-channel image.

    mean > high → 255, mean < low → 0, anything in between keeps the
    (rounded) mean.
    """
    if image.ndim == 3:
        # Alpha, if any, is ignored
        avg = image[:, :, :3].astype(np.float32).mean(axis=2)
    else:
        avg = image.astype(np.float32)

    out = np.rint(avg)
    out[avg > high] = 255
    out[avg < low] = 0
    return out.astype(np.uint8)


def preprocess_region(
    frame: np.ndarray,
    width_fraction: float = REGION_WIDTH_FRACTION,
    height_fraction: float = REGION_HEIGHT_FRACTION,
    scale: int = REGION_SCALE,
    high: int = WHITE_THRESHOLD,
    low: int = BLACK_THRESHOLD,
) -> np.ndarray:
    """Crop, upscale, and binarize the HUD region of a frame.

    Args:
        frame: BGR, BGRA, or grayscale frame (H x W [x C]).
        width_fraction: Fraction of the width covered by the HUD.
        height_fraction: Fraction of the height covered by the HUD.
        scale: Integer upscale factor.
        high: Mean above which a pixel becomes white.
        low: Mean below which a pixel becomes black.

    Returns:
        Single-channel uint8 image, `scale` times the crop size.

    Raises:
        AcquisitionUnavailable: The frame or its HUD crop has no area.
    """
    if frame is None or frame.size == 0:
        raise AcquisitionUnavailable("Empty frame")

    region = crop_region(frame, width_fraction, height_fraction)
    region_h, region_w = region.shape[:2]
    scaled = cv2.resize(
        np.ascontiguousarray(region),
        (region_w * scale, region_h * scale),
        interpolation=cv2.INTER_CUBIC,
    )
    enhanced = binarize(scaled, high, low)
    logger.debug(f"Preprocessed HUD region: {enhanced.shape[1]}x{enhanced.shape[0]}")
    return enhanced
