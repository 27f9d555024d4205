"""
Numeric token classifier for OCR'd HUD text.

The HUD readouts come back from OCR without their labels, so each number
is assigned to a field purely by which band it falls in. Bands overlap
(carry, total, and both speeds all share 50-70), so the rule table is
evaluated in a fixed priority order and a value already claimed by one
field is kept out of the fields that list it as an exclusion.

This is a heuristic for one HUD layout: overlapping readings can land in
the wrong field. Changing that means changing the rule table, which is
why the table is a parameter.
"""

import logging
import re
from typing import Iterable, Optional

from hudreader.utils.constants import DEFAULT_RANGE_RULES, RangeRule

logger = logging.getLogger(__name__)

NUMBER_RE = re.compile(r"-?\d+\.?\d*")


def tokenize(text: str) -> list[float]:
    """Numbers in `text`, in first-seen order across non-empty lines."""
    tokens = []
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        tokens.extend(float(m) for m in NUMBER_RE.findall(line))
    return tokens


def _claims(rule: RangeRule, value: float, fields: dict[str, float]) -> bool:
    if rule.field in fields:
        return False
    if not rule.low <= value <= rule.high:
        return False
    return all(fields.get(other) != value for other in rule.excludes)


def assign_tokens(tokens: Iterable[float],
                  rules: Iterable[RangeRule] = DEFAULT_RANGE_RULES) -> dict[str, float]:
    """Assign each token to the first rule that claims it."""
    rules = tuple(rules)
    fields: dict[str, float] = {}
    for value in tokens:
        for rule in rules:
            if _claims(rule, value, fields):
                fields[rule.field] = value
                logger.debug(f"OCR: {value} -> {rule.field}")
                break
        else:
            logger.debug(f"OCR: Discarded token {value}")
    return fields


def classify(text: str,
             rules: Iterable[RangeRule] = DEFAULT_RANGE_RULES) -> Optional[dict[str, float]]:
    """Turn recognized HUD text into a partial field set.

    Args:
        text: Raw OCR output.
        rules: Field-assignment rules in priority order.

    Returns:
        The assigned fields (plus smash_factor rounded to 2 places when
        both speeds were found), or None when no token was assigned.
    """
    fields = assign_tokens(tokenize(text), rules)
    if not fields:
        return None

    ball = fields.get("ball_speed")
    club = fields.get("club_head_speed")
    if ball is not None and club:
        fields["smash_factor"] = round(ball / club, 2)
    return fields


def rules_from_config(raw: Optional[list]) -> tuple[RangeRule, ...]:
    """Build a rule table from config data.

    Each entry is a dict with `field`, `low`, `high` and optional
    `excludes`, or a [field, low, high, excludes] list. None returns the
    built-in table.

    Raises:
        ValueError: An entry is malformed.
    """
    if raw is None:
        return DEFAULT_RANGE_RULES

    rules = []
    for entry in raw:
        try:
            if isinstance(entry, dict):
                rule = RangeRule(
                    entry["field"], float(entry["low"]), float(entry["high"]),
                    tuple(entry.get("excludes", ())),
                )
            else:
                field, low, high, *rest = entry
                excludes = tuple(rest[0]) if rest else ()
                rule = RangeRule(field, float(low), float(high), excludes)
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid range rule {entry!r}: {e}") from e
        if rule.low > rule.high:
            raise ValueError(f"Invalid range rule {entry!r}: low > high")
        rules.append(rule)
    return tuple(rules)
