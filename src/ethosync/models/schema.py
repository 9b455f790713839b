"""Pydantic models defining the ethosync annotation schema.

The canonical marker is the single source of truth for everything the
presentation layer draws: chart points, marker dots and the marker list are
all derived from it.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

NEUTRAL_ZONE = "neutral"
INACTIVE_ZONE = "inactive"


class Zone(str, Enum):
    """Severity classification of an observation."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class EventType(str, Enum):
    """Modality an observation came from."""

    BEHAVIORAL = "behavioral"
    AUDIO = "audio"
    ENVIRONMENTAL = "environmental"


class SourceKind(str, Enum):
    """Observation lists produced by the analysis service."""

    TIMELINE = "timeline"
    INTERPRETATION = "interpretation"
    VOCALIZATION = "vocalization"
    KEY_MOMENT = "key_moment"
    FACS = "facs"


class DisplayState(str, Enum):
    """What the annotation view should show for an analysis."""

    READY = "ready"
    NO_MARKERS = "no_markers"
    NO_SUBJECT = "no_subject"
    NO_DATA = "no_data"


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> Any:
    return value if isinstance(value, (dict, BaseModel)) else {}


class AudioAnalysis(BaseModel):
    """Audio section of an analysis result."""

    model_config = ConfigDict(extra="allow")

    vocalizations_detected: list[Any] = Field(default_factory=list)
    environmental_sounds: list[Any] = Field(default_factory=list)

    @field_validator("vocalizations_detected", "environmental_sounds", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> list:
        return _as_list(value)


class VisualAnalysis(BaseModel):
    """Visual section of an analysis result."""

    model_config = ConfigDict(extra="allow")

    key_behavioral_moments: list[Any] = Field(default_factory=list)
    facs_codes_detected: list[Any] = Field(default_factory=list)

    @field_validator("key_behavioral_moments", "facs_codes_detected", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> list:
        return _as_list(value)


class OverallAssessment(BaseModel):
    """Overall assessment block; only the distress score is consumed."""

    model_config = ConfigDict(extra="allow")

    distress_score: float | None = None

    @field_validator("distress_score", mode="before")
    @classmethod
    def _coerce_score(cls, value: Any) -> float | None:
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return None
        try:
            score = float(value)
        except ValueError:
            return None
        if score != score or score in (float("inf"), float("-inf")):
            return None
        return max(0.0, min(100.0, score))


class AnalysisResult(BaseModel):
    """One structured result from the analysis service.

    Every section is optional and malformed sections are coerced to their
    empty form, so validation of a JSON object never fails on shape alone.
    Records inside the observation lists stay as raw mappings; the fusion
    engine decides which fields mean what.
    """

    model_config = ConfigDict(extra="allow")

    timeline: list[Any] = Field(default_factory=list)
    interpret_lines: list[Any] = Field(default_factory=list)
    behavioral_markers: list[Any] = Field(default_factory=list)
    audio_analysis: AudioAnalysis = Field(default_factory=AudioAnalysis)
    visual_analysis: VisualAnalysis = Field(default_factory=VisualAnalysis)
    overall_assessment: OverallAssessment = Field(default_factory=OverallAssessment)
    video_context: str | None = None
    error: Any = None
    error_type: str | None = None
    message: str | None = None

    @field_validator("timeline", "interpret_lines", "behavioral_markers", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> list:
        return _as_list(value)

    @field_validator("audio_analysis", "visual_analysis", "overall_assessment", mode="before")
    @classmethod
    def _coerce_section(cls, value: Any) -> Any:
        return _as_dict(value)

    @field_validator("video_context", "error_type", "message", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None

    @property
    def no_subject_detected(self) -> bool:
        """Whether the service reported that no animal was found in the video."""
        return bool(self.error) and self.error_type == "no_pet_detected"


class CanonicalMarker(BaseModel):
    """A deduplicated, zoned, timestamped observation."""

    model_config = ConfigDict(frozen=True)

    time: float = Field(..., ge=0, description="Position in the video in seconds")
    label: str = Field(..., min_length=1, description="Human-readable observation")
    event_type: EventType = Field(default=EventType.BEHAVIORAL)
    zone: Zone = Field(..., description="Severity zone")
    score: float = Field(..., ge=0, le=100, description="Severity score")
    evidence: list[str] = Field(default_factory=list)
    source: SourceKind = Field(..., description="Observation list that produced this marker")


class ChartPoint(BaseModel):
    """A sample of the severity curve."""

    time_seconds: float = Field(..., ge=0)
    time_label: str = Field(..., description="Sample time formatted as M:SS")
    score: float = Field(..., ge=5, le=95)
    label: str | None = Field(default=None, description="Label of the marker claiming this sample")
    zone: str = Field(default=NEUTRAL_ZONE, description="Marker zone, or 'neutral'")
    event_type: EventType | None = None
    evidence: list[str] = Field(default_factory=list)

    @property
    def is_marker(self) -> bool:
        """Whether this sample carries a clickable marker dot."""
        return self.label is not None


class SubtitleLine(BaseModel):
    """An interpretation line that can be shown as a subtitle."""

    model_config = ConfigDict(frozen=True)

    time: float = Field(..., ge=0)
    text: str
    zone: Zone
    key: str


class SubtitleCue(BaseModel):
    """The subtitle currently on screen."""

    model_config = ConfigDict(frozen=True)

    text: str
    zone: Zone
    key: str


class WaveformBar(BaseModel):
    """One bar of the synthesized audio timeline."""

    index: int = Field(..., ge=0)
    height: float = Field(..., ge=3, le=92)
    zone: str = Field(default=INACTIVE_ZONE, description="Owning event zone, or 'inactive'")
    is_active: bool = False
    time: float = Field(..., ge=0)
    label: str | None = None
    seek_target: float | None = Field(
        default=None, description="Start of the owning event; None for ambient bars"
    )


class SeekCommand(BaseModel):
    """One-way request to move the video playhead."""

    model_config = ConfigDict(frozen=True)

    target: float = Field(..., ge=0)
    resume: bool = True


class NarrationRequest(BaseModel):
    """A text-to-speech request for the current cue."""

    model_config = ConfigDict(frozen=True)

    text: str
    rate: float = 0.9
    pitch: float = 1.1
    volume: float = 0.8


class LegendEntry(BaseModel):
    """Waveform legend item."""

    key: str
    zone: Zone


class BehaviorBadge(BaseModel):
    """A short behavioral marker shown next to the overall score."""

    text: str
    code: str | None = None
    zone: Zone = Zone.YELLOW
    description: str | None = None
    timestamp: str | None = None


class AnnotationBundle(BaseModel):
    """Everything the presentation layer renders for one analysis.

    This is the output of AnnotationPipeline.annotate() and is replaced
    wholesale whenever the analysis or the video duration changes.
    """

    state: DisplayState
    duration: float = Field(..., ge=0)
    overall_score: float = Field(default=50.0, ge=0, le=100)
    overall_zone: Zone = Zone.YELLOW
    message: str | None = Field(default=None, description="Upstream message for NO_SUBJECT")
    markers: list[CanonicalMarker] = Field(default_factory=list)
    chart: list[ChartPoint] = Field(default_factory=list)
    waveform: list[WaveformBar] = Field(default_factory=list)
    legend: list[LegendEntry] = Field(default_factory=list)
    subtitles: list[SubtitleLine] = Field(default_factory=list)
    badges: list[BehaviorBadge] = Field(default_factory=list)

    def to_dict(self) -> dict:
        """Export to dictionary format."""
        return self.model_dump(mode="json")

    def to_json(self, path: str | Path | None = None, indent: int = 2) -> str:
        """Export to JSON string, optionally writing to a file.

        Args:
            path: Optional file path to write JSON to.
            indent: JSON indentation level.

        Returns:
            JSON string representation.
        """
        json_str = self.model_dump_json(indent=indent)
        if path is not None:
            Path(path).write_text(json_str)
        return json_str
