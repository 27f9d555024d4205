"""
Parsers for vision-model answers.

The model is prompted to answer with a block such as:

    GOLF_DATA:
    Ball Speed: 116.1 mph
    Club Speed: 80.3 mph
    Carry: 135 yds

Text without the GOLF_DATA: marker is conversation, not data, and is
ignored. The model may instead call the extract_shot_data tool, whose
input maps onto the same fields.
"""

import logging
import re
from typing import Optional

from hudreader.models.shot import Side
from hudreader.utils.constants import GOLF_DATA_SENTINEL, MEASURED_FIELDS

logger = logging.getLogger(__name__)

_NUM = r"\s*(\d+(?:\.\d+)?)"

LABEL_PATTERNS = (
    ("ball_speed", re.compile(r"Ball Speed:" + _NUM, re.IGNORECASE)),
    ("club_head_speed", re.compile(r"Club Speed:" + _NUM, re.IGNORECASE)),
    ("carry_distance", re.compile(r"Carry:" + _NUM, re.IGNORECASE)),
    ("total_distance", re.compile(r"Total:" + _NUM, re.IGNORECASE)),
    ("spin_rate", re.compile(r"Spin Rate:" + _NUM, re.IGNORECASE)),
    ("launch_angle", re.compile(r"Launch Angle:" + _NUM, re.IGNORECASE)),
)

# Tool input keys already use the record attribute names
TOOL_NUMERIC_FIELDS = MEASURED_FIELDS


def parse_response(text: str) -> Optional[dict]:
    """Parse a GOLF_DATA: answer into a partial field set.

    Later lines override earlier ones for the same label. smash_factor is
    the unrounded ball/club ratio when both speeds are present.

    Returns:
        The matched fields, or None if the marker is missing or no label
        matched.
    """
    if GOLF_DATA_SENTINEL not in text:
        return None

    fields = {}
    for line in text.split("\n"):
        for name, pattern in LABEL_PATTERNS:
            match = pattern.search(line)
            if match:
                fields[name] = float(match.group(1))

    if not fields:
        return None

    ball = fields.get("ball_speed")
    club = fields.get("club_head_speed")
    if ball is not None and club:
        fields["smash_factor"] = ball / club
    return fields


def fields_from_tool_input(payload: dict) -> Optional[dict]:
    """Map an extract_shot_data tool call onto a partial field set.

    Non-numeric measurements and unknown sides are skipped. With both speeds
    present the smash factor is their raw ratio, whatever the model sent.
    """
    fields = {}
    for key in TOOL_NUMERIC_FIELDS:
        value = payload.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            if value is not None:
                logger.warning(f"Ignoring non-numeric {key}: {value!r}")
            continue
        fields[key] = float(value)

    ball = fields.get("ball_speed")
    club = fields.get("club_head_speed")
    if ball is not None and club:
        fields["smash_factor"] = ball / club

    club_type = payload.get("club_type")
    if isinstance(club_type, str) and club_type.strip():
        fields["club_type"] = club_type.strip()

    side = payload.get("side")
    if isinstance(side, str):
        try:
            fields["side"] = Side(side.strip().lower())
        except ValueError:
            logger.warning(f"Ignoring unknown side: {side!r}")

    if not any(key in fields for key in TOOL_NUMERIC_FIELDS):
        return None
    return fields
