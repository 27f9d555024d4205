"""
Shot record reconciliation.

Every extraction path (OCR, model answer, tool call, manual entry) ends
here: its partial field set is merged over the record defaults and the
resulting ShotRecord is published to the session store.
"""

import logging
from dataclasses import fields as dataclass_fields
from datetime import datetime
from typing import Optional

from hudreader.models.session import SessionStore
from hudreader.models.shot import ShotQuality, ShotRecord, Side, now_ms
from hudreader.utils.constants import DEFAULT_CLUB

logger = logging.getLogger(__name__)

_RECORD_FIELDS = {f.name for f in dataclass_fields(ShotRecord)}


def _smash_factor(ball, club, given):
    if ball is None or not club:
        if given is not None:
            logger.warning("Dropping smash factor without both ball and club speed")
        return None

    ratio = ball / club
    # OCR supplies the 2-place rounding; every other path the raw ratio
    if given is not None and given in (ratio, round(ratio, 2)):
        return given
    if given is not None:
        logger.warning(
            f"Replacing smash factor {given} with ball/club ratio {ratio:.4f}"
        )
    return ratio


def reconcile(
    partial: dict,
    timestamp: Optional[datetime] = None,
    club_type: str = DEFAULT_CLUB,
) -> ShotRecord:
    """Merge a partial field set with the record defaults.

    Explicit fields win over defaults. Unknown keys are dropped. The smash
    factor always agrees with the speeds: it is dropped without both of
    them, and any value other than their ratio (raw or rounded to 2
    places) is replaced by the raw ratio.
    """
    values = {
        "timestamp": timestamp or now_ms(),
        "club_type": club_type,
        "shot_quality": ShotQuality.GOOD,
        "side": Side.CENTER,
    }
    for key, value in partial.items():
        if key not in _RECORD_FIELDS:
            logger.warning(f"Ignoring unknown shot field: {key}")
            continue
        values[key] = value

    values["smash_factor"] = _smash_factor(
        values.get("ball_speed"),
        values.get("club_head_speed"),
        values.get("smash_factor"),
    )
    values["side"] = Side(values["side"])
    values["shot_quality"] = ShotQuality(values["shot_quality"])
    return ShotRecord(**values)


class ShotReconciler:
    """Reconciles partial field sets and publishes them to a session store."""

    def __init__(self, store: SessionStore, club_type: str = DEFAULT_CLUB):
        self.store = store
        self.club_type = club_type

    def publish(self, partial: dict, source: str = "") -> ShotRecord:
        """Reconcile `partial` and append it as the new current shot."""
        record = reconcile(partial, club_type=self.club_type)
        if source:
            logger.info(f"Shot from {source}: {record.measurements()}")
        self.store.add_shot(record)
        return record
