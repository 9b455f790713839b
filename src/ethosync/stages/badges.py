"""Behavior badges shown beside the overall score."""

from __future__ import annotations

from typing import Any, Mapping

from ethosync.models.schema import AnalysisResult, BehaviorBadge, Zone
from ethosync.stages.sources import VALENCE_ZONES, text_value
from ethosync.stages.zones import coerce_zone

MAX_BADGES = 8


def _verified_badges(markers: list[Any]) -> list[BehaviorBadge]:
    badges: list[BehaviorBadge] = []
    for record in markers:
        if not isinstance(record, Mapping) or record.get("verified") is False:
            continue
        text = text_value(record.get("marker"))
        if not text:
            continue
        code = text_value(record.get("code")) or None
        timestamp = text_value(record.get("timestamp")) or None
        badges.append(
            BehaviorBadge(
                text=text,
                code=code,
                zone=coerce_zone(record.get("zone")) or Zone.YELLOW,
                description=f"{code} at {timestamp}" if code else timestamp,
                timestamp=timestamp,
            )
        )
    return badges


def _facs_badges(codes: list[Any]) -> list[BehaviorBadge]:
    badges: list[BehaviorBadge] = []
    seen: set[str] = set()
    for record in codes:
        if not isinstance(record, Mapping):
            continue
        code = text_value(record.get("code"))
        if not code or code in seen:
            continue
        seen.add(code)

        timestamp = text_value(record.get("timestamp")) or None
        confidence = text_value(record.get("confidence"))
        description = code
        if timestamp:
            description += f" at {timestamp}"
        if confidence:
            description += f" ({confidence} confidence)"

        badges.append(
            BehaviorBadge(
                text=text_value(record.get("description")) or code,
                code=code,
                zone=VALENCE_ZONES.get(text_value(record.get("valence")).lower(), Zone.YELLOW),
                description=description,
                timestamp=timestamp,
            )
        )
    return badges


def summarize_badges(analysis: AnalysisResult) -> list[BehaviorBadge]:
    """Pick the behavior badges for an analysis.

    Verified markers reported by the service take precedence. Without them,
    badges are derived from the detected facial action codes, one per code,
    capped at MAX_BADGES.
    """
    verified = _verified_badges(analysis.behavioral_markers)
    if verified:
        return verified
    return _facs_badges(analysis.visual_analysis.facs_codes_detected)[:MAX_BADGES]
