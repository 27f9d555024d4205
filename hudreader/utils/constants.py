"""
HUD layout constants, OCR settings, and field range tables for HUD Reader.

The region and range values are tuned to one simulator HUD: the shot data
panel sits in the top-left corner, readings are shown without labels OCR
can rely on, and each metric falls in a characteristic numeric band.
"""

from typing import NamedTuple

# =============================================================================
# HUD Region
# =============================================================================

REGION_WIDTH_FRACTION = 0.25   # Left 25% of the frame
REGION_HEIGHT_FRACTION = 0.8   # Top 80% (skips the bottom control bar)
REGION_SCALE = 3               # Upscale factor before OCR

# Binarization thresholds on the per-pixel channel mean
WHITE_THRESHOLD = 140          # mean > 140 → 255
BLACK_THRESHOLD = 60           # mean < 60  → 0

# =============================================================================
# Tesseract
# =============================================================================

OCR_CHAR_WHITELIST = "0123456789.-"
OCR_PAGE_SEG_MODE = 6          # Single uniform block of text
OCR_PRESERVE_INTERWORD_SPACES = 0
OCR_LANGUAGE = "eng"

# =============================================================================
# Shot Records
# =============================================================================

DEFAULT_CLUB = "Driver"
CURRENT_SHOT_SECONDS = 3.0     # Current shot display window
STORAGE_KEY = "golf-shots"     # Key holding the JSON history array
EXPORT_PREFIX = "golf-shots"

# Marker that activates free-text parsing of model answers
GOLF_DATA_SENTINEL = "GOLF_DATA:"

# Numeric fields of a shot record, in wire order
MEASURED_FIELDS = (
    "ball_speed",
    "club_head_speed",
    "smash_factor",
    "launch_angle",
    "carry_distance",
    "total_distance",
    "spin_rate",
)

# Attribute name → persisted JSON key
WIRE_KEYS = {
    "ball_speed": "ballSpeed",
    "club_head_speed": "clubHeadSpeed",
    "smash_factor": "smashFactor",
    "launch_angle": "launchAngle",
    "carry_distance": "carryDistance",
    "total_distance": "totalDistance",
    "spin_rate": "spinRate",
    "club_type": "clubType",
    "side": "side",
    "shot_quality": "shotQuality",
}

# =============================================================================
# OCR Field Range Table
# =============================================================================


class RangeRule(NamedTuple):
    """One field-assignment rule for unlabeled OCR readings.

    A token is claimed by the first rule whose field is still unset, whose
    inclusive [low, high] band contains the value, and whose value differs
    from every field listed in `excludes` that has already been assigned.
    """
    field: str
    low: float
    high: float
    excludes: tuple[str, ...] = ()


# Priority order matters: carry wins every overlap it takes part in.
DEFAULT_RANGE_RULES = (
    RangeRule("carry_distance", 40, 80),
    RangeRule("total_distance", 50, 90, ("carry_distance",)),
    RangeRule("club_head_speed", 45, 70, ("carry_distance", "total_distance")),
    RangeRule(
        "ball_speed", 45, 70,
        ("club_head_speed", "carry_distance", "total_distance"),
    ),
    RangeRule("spin_rate", 3000, 8000),
    RangeRule("launch_angle", 10, 50, ("carry_distance", "total_distance")),
)

# =============================================================================
# Repetition Tracking
# =============================================================================

DEFAULT_DRILL = "Golf Practice"

# A detection must be strictly more confident than this to count
REP_CONFIDENCE_THRESHOLD = 0.7

# Seconds between detection polls while a stream is attached
REP_POLL_SECONDS = 5.0

DEFAULT_FORM_SCORE = 50
DEFAULT_REP_FEEDBACK = "Repetition completed"

# Any of these in a detection description marks a non-swing movement
REP_FALSE_POSITIVE_KEYWORDS = (
    "thumbs", "gesture", "wave", "point", "sitting", "chair", "desk",
)

# All of these together read like a textbook swing, not an observation
REP_HALLUCINATION_PHRASES = (
    "full golf swing", "setup position", "backswing", "downswing",
    "follow-through",
)
