"""Observation source definitions.

Each list in an analysis result names its fields differently and several
have legacy spellings. A SourceSpec records, for one list, which fields hold
the timestamp, the label and the rationale, in precedence order, so the
fusion engine never has to know a field name.

This module handles:
- Field precedence for timestamps, labels and evidence
- Per-source event type and severity score rules
- Reading source lists out of an AnalysisResult
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from ethosync.models.schema import AnalysisResult, EventType, SourceKind, Zone
from ethosync.stages.timecode import parse_timestamp
from ethosync.stages.zones import coerce_zone

logger = logging.getLogger(__name__)

# Interpretation text fields, newest format first.
POV_TEXT_FIELDS = ("pet_pov", "first_person_interpretation", "interpretation", "text")

ZONE_SCORES = {Zone.RED: 75.0, Zone.YELLOW: 50.0, Zone.GREEN: 25.0}

VALENCE_ZONES = {"negative": Zone.RED, "positive": Zone.GREEN}
VALENCE_SCORES = {"negative": 60.0, "positive": 25.0}

# Audio severity: base score plus the bias of the first matching tier.
AUDIO_BASE_SCORE = 45.0
AUDIO_SCORE_BIAS: tuple[tuple[tuple[str, ...], float], ...] = (
    (("growl", "hiss", "aggress", "scream", "snarl"), 25.0),
    (("demand", "frustrat", "distress", "alarm", "urgent"), 15.0),
)

ScoreRule = Callable[[Mapping[str, Any], str, Zone, float], float]
ZoneRule = Callable[[Mapping[str, Any]], Any]


def text_value(value: Any) -> str:
    """Read a field as stripped text; numbers are stringified, anything else is empty."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def first_text(record: Mapping[str, Any], fields: tuple[str, ...]) -> str:
    """Get the first non-empty text field of a record, in field order."""
    for name in fields:
        text = text_value(record.get(name))
        if text:
            return text
    return ""


def pov_text(record: Mapping[str, Any]) -> str:
    """Get the first-person interpretation text of an interpretation line."""
    return first_text(record, POV_TEXT_FIELDS)


def evidence_list(value: Any) -> list[str]:
    """Normalize an evidence field into a list of non-empty strings."""
    if isinstance(value, list):
        items = [text_value(item) for item in value]
        return [item for item in items if item]
    text = text_value(value)
    return [text] if text else []


def _fallback_score(record: Mapping[str, Any], label: str, zone: Zone, fallback: float) -> float:
    return fallback


def _record_score(record: Mapping[str, Any], label: str, zone: Zone, fallback: float) -> float:
    value = record.get("distress_score")
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
        return min(100.0, float(value))
    return fallback


def _zone_score(record: Mapping[str, Any], label: str, zone: Zone, fallback: float) -> float:
    return ZONE_SCORES[zone]


def audio_score(label: str) -> float:
    """Score a vocalization label, biased upward by aggression or demand language."""
    text = label.lower()
    for keywords, bias in AUDIO_SCORE_BIAS:
        if any(keyword in text for keyword in keywords):
            return AUDIO_BASE_SCORE + bias
    return AUDIO_BASE_SCORE


def _audio_score(record: Mapping[str, Any], label: str, zone: Zone, fallback: float) -> float:
    return audio_score(label)


def _valence(record: Mapping[str, Any]) -> str:
    return text_value(record.get("valence")).lower()


def _facs_score(record: Mapping[str, Any], label: str, zone: Zone, fallback: float) -> float:
    return VALENCE_SCORES.get(_valence(record), 45.0)


def _facs_zone(record: Mapping[str, Any]) -> Zone:
    return VALENCE_ZONES.get(_valence(record), Zone.YELLOW)


def _explicit_zone(record: Mapping[str, Any]) -> Any:
    return record.get("zone")


def _timeline_event_type(record: Mapping[str, Any], default: EventType) -> EventType:
    try:
        return EventType(text_value(record.get("event_type")).lower())
    except ValueError:
        return default


@dataclass(frozen=True)
class SourceSpec:
    """How to read one observation list.

    Attributes:
        kind: Which list this is.
        time_fields: Timestamp fields in precedence order.
        label_fields: Label fields in precedence order; first non-empty wins.
        detail_fields: Appended to the label as "label: detail" when present.
        evidence_fields: Rationale fields copied into marker evidence.
        event_type: Event type assigned to markers from this source.
        score: Rule computing the marker score.
        zone: Rule reading the explicit zone tag, if the source has one.
        honours_event_type: Whether records may override event_type themselves.
    """

    kind: SourceKind
    time_fields: tuple[str, ...]
    label_fields: tuple[str, ...]
    detail_fields: tuple[str, ...] = ()
    evidence_fields: tuple[str, ...] = ()
    event_type: EventType = EventType.BEHAVIORAL
    score: ScoreRule = _fallback_score
    zone: ZoneRule = _explicit_zone
    honours_event_type: bool = False

    def resolve_time(self, record: Mapping[str, Any]) -> float:
        """Get the record's position in seconds from the first present time field."""
        for name in self.time_fields:
            if record.get(name) not in (None, ""):
                return parse_timestamp(record[name])
        return 0.0

    def resolve_label(self, record: Mapping[str, Any]) -> str:
        """Get the record's label, or an empty string when it has none."""
        label = first_text(record, self.label_fields)
        if not label:
            return ""
        detail = first_text(record, self.detail_fields)
        return f"{label}: {detail}" if detail else label

    def resolve_evidence(self, record: Mapping[str, Any]) -> list[str]:
        """Get the record's rationale as evidence strings."""
        evidence: list[str] = []
        for name in self.evidence_fields:
            evidence.extend(evidence_list(record.get(name)))
        return evidence

    def resolve_event_type(self, record: Mapping[str, Any]) -> EventType:
        """Get the event type for a record of this source."""
        if self.honours_event_type:
            return _timeline_event_type(record, self.event_type)
        return self.event_type


SOURCE_SPECS: dict[SourceKind, SourceSpec] = {
    SourceKind.TIMELINE: SourceSpec(
        kind=SourceKind.TIMELINE,
        time_fields=("timestamp",),
        label_fields=("event_description", "event", "context_tag", "observation"),
        evidence_fields=("evidence",),
        score=_record_score,
        honours_event_type=True,
    ),
    SourceKind.INTERPRETATION: SourceSpec(
        kind=SourceKind.INTERPRETATION,
        time_fields=("timestamp",),
        label_fields=("trigger", *POV_TEXT_FIELDS),
        score=_zone_score,
    ),
    SourceKind.VOCALIZATION: SourceSpec(
        kind=SourceKind.VOCALIZATION,
        time_fields=("timestamp_start", "timestamp"),
        label_fields=("type",),
        detail_fields=("subtype",),
        evidence_fields=("interpretation",),
        event_type=EventType.AUDIO,
        score=_audio_score,
    ),
    SourceKind.KEY_MOMENT: SourceSpec(
        kind=SourceKind.KEY_MOMENT,
        time_fields=("timestamp",),
        label_fields=("behavior",),
        evidence_fields=("significance",),
    ),
    SourceKind.FACS: SourceSpec(
        kind=SourceKind.FACS,
        time_fields=("timestamp",),
        label_fields=("code",),
        detail_fields=("description",),
        evidence_fields=("code",),
        score=_facs_score,
        zone=_facs_zone,
    ),
}


@dataclass
class SourceRecords:
    """The records of one source list, with malformed entries dropped."""

    spec: SourceSpec
    records: list[Mapping[str, Any]] = field(default_factory=list)
    skipped: int = 0


def _raw_list(analysis: AnalysisResult, kind: SourceKind) -> list[Any]:
    if kind is SourceKind.TIMELINE:
        return analysis.timeline
    if kind is SourceKind.INTERPRETATION:
        return analysis.interpret_lines
    if kind is SourceKind.VOCALIZATION:
        return analysis.audio_analysis.vocalizations_detected
    if kind is SourceKind.KEY_MOMENT:
        return analysis.visual_analysis.key_behavioral_moments
    return analysis.visual_analysis.facs_codes_detected


def read_source(analysis: AnalysisResult, kind: SourceKind) -> SourceRecords:
    """Read one source list out of an analysis result.

    Non-mapping entries are skipped and counted rather than raised.
    """
    raw = _raw_list(analysis, kind)
    records = [record for record in raw if isinstance(record, Mapping)]
    skipped = len(raw) - len(records)
    if skipped:
        logger.warning(f"Skipped {skipped} malformed {kind.value} record(s)")
    return SourceRecords(spec=SOURCE_SPECS[kind], records=records, skipped=skipped)
