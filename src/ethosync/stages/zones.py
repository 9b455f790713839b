"""Severity zone classification.

Labels are matched against ordered keyword tables; the first table with a
substring hit decides the zone. A label that matches nothing is treated as
caution (yellow), never as calm.
"""

from __future__ import annotations

from typing import Any

from ethosync.models.schema import Zone

# Tested in order; first hit wins.
ZONE_KEYWORDS: tuple[tuple[Zone, tuple[str, ...]], ...] = (
    (
        Zone.RED,
        (
            "stress",
            "fear",
            "distress",
            "aggress",
            "growl",
            "hiss",
            "flat",
            "tuck",
            "whale",
            "alarm",
            "pain",
            "threat",
            "scream",
        ),
    ),
    (
        Zone.YELLOW,
        (
            "alert",
            "bark",
            "whine",
            "tense",
            "forward",
            "demand",
            "meow",
            "frustrat",
            "complaint",
            "urgent",
            "excitement",
        ),
    ),
    (
        Zone.GREEN,
        (
            "relax",
            "calm",
            "play",
            "soft",
            "purr",
            "loose",
            "happy",
            "greeting",
            "friendly",
        ),
    ),
)

DEFAULT_ZONE = Zone.YELLOW

# Upper bounds (inclusive) of the overall score bands.
SCORE_BANDS: tuple[tuple[float, Zone], ...] = (
    (33.0, Zone.GREEN),
    (66.0, Zone.YELLOW),
)


def coerce_zone(value: Any) -> Zone | None:
    """Read an explicit zone tag, ignoring anything that is not a known zone."""
    if isinstance(value, Zone):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Zone(value.strip().lower())
    except ValueError:
        return None


def classify_zone(label: str | None, explicit: Any = None) -> Zone:
    """Classify a label into a severity zone.

    Args:
        label: Free-text label to match against the keyword tables.
        explicit: Zone tag supplied by the source. A valid tag wins outright.

    Returns:
        The resolved zone; yellow when nothing matches.
    """
    zone = coerce_zone(explicit)
    if zone is not None:
        return zone

    text = (label or "").lower()
    for zone, keywords in ZONE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return zone
    return DEFAULT_ZONE


def zone_for_score(score: float) -> Zone:
    """Map an overall 0-100 distress score to a zone."""
    for upper, zone in SCORE_BANDS:
        if score <= upper:
            return zone
    return Zone.RED
