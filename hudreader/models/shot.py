"""
Data models for extracted shot data in HUD Reader.

Side: Shot direction relative to the target line.
ShotQuality: Coarse quality rating attached to every record.
ShotRecord: One canonical, immutable extracted measurement entry.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from hudreader.utils.constants import DEFAULT_CLUB, MEASURED_FIELDS, WIRE_KEYS

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


class Side(str, Enum):
    """Shot direction."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class ShotQuality(str, Enum):
    """Shot quality rating."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


def now_ms() -> datetime:
    """Current UTC time truncated to millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def to_epoch_ms(ts: datetime) -> int:
    return (ts - EPOCH) // _ONE_MS


def from_epoch_ms(ms: int) -> datetime:
    return EPOCH + timedelta(milliseconds=ms)


@dataclass(frozen=True)
class ShotRecord:
    """A single shot as read off the simulator HUD.

    Attributes:
        timestamp: When the shot was extracted (UTC, millisecond precision).
        ball_speed: Ball speed (mph).
        club_head_speed: Club head speed (mph).
        launch_angle: Launch angle (degrees).
        carry_distance: Carry distance (yards).
        total_distance: Total distance including roll (yards).
        spin_rate: Spin rate (RPM).
        smash_factor: ball_speed / club_head_speed, only when both are set.
        club_type: Name of the club (defaults to "Driver").
        side: Shot direction.
        shot_quality: Quality rating.

    Unset measurements are None, never zero.
    """
    timestamp: datetime = field(default_factory=now_ms)
    ball_speed: Optional[float] = None
    club_head_speed: Optional[float] = None
    launch_angle: Optional[float] = None
    carry_distance: Optional[float] = None
    total_distance: Optional[float] = None
    spin_rate: Optional[float] = None
    smash_factor: Optional[float] = None
    club_type: str = DEFAULT_CLUB
    side: Side = Side.CENTER
    shot_quality: ShotQuality = ShotQuality.GOOD

    def measurements(self) -> dict[str, float]:
        """Numeric fields that are present, keyed by attribute name."""
        values = {}
        for name in MEASURED_FIELDS:
            value = getattr(self, name)
            if value is not None:
                values[name] = value
        return values

    def to_dict(self) -> dict:
        """Serialize to the persisted JSON shape (unset fields omitted)."""
        data = {"timestamp": to_epoch_ms(self.timestamp)}
        for name, value in self.measurements().items():
            data[WIRE_KEYS[name]] = value
        data["clubType"] = self.club_type
        data["side"] = self.side.value
        data["shotQuality"] = self.shot_quality.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ShotRecord":
        """Build a record from its persisted JSON shape.

        Raises:
            KeyError, TypeError, ValueError: On malformed input.
            OverflowError: Timestamp outside the datetime range.
        """
        kwargs = {"timestamp": from_epoch_ms(int(data["timestamp"]))}
        for name in MEASURED_FIELDS:
            value = data.get(WIRE_KEYS[name])
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(f"{WIRE_KEYS[name]} is not a number: {value!r}")
            # ints stay ints so a reload re-serializes byte-for-byte
            kwargs[name] = value
        if "clubType" in data:
            kwargs["club_type"] = str(data["clubType"])
        if "side" in data:
            kwargs["side"] = Side(data["side"])
        if "shotQuality" in data:
            kwargs["shot_quality"] = ShotQuality(data["shotQuality"])
        return cls(**kwargs)
