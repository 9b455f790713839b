"""Configuration and settings for ethosync annotation pipelines."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field, model_validator

from ethosync.models.schema import EventType, SourceKind

WAVEFORM_SEED_ENV = "ETHOSYNC_WAVEFORM_SEED"

DEFAULT_SOURCE_PRIORITY = [
    SourceKind.TIMELINE,
    SourceKind.INTERPRETATION,
    SourceKind.VOCALIZATION,
    SourceKind.KEY_MOMENT,
]


class FusionOptions(BaseModel):
    """Options for merging observation sources into canonical markers."""

    fusion_window: float = Field(
        default=1.0, gt=0, description="Seconds within which two observations are the same event"
    )
    window_overrides: dict[EventType, float] = Field(
        default_factory=dict, description="Per-event-type fusion window overrides"
    )
    source_priority: list[SourceKind] = Field(
        default_factory=lambda: list(DEFAULT_SOURCE_PRIORITY),
        description="Primary sources, highest priority first",
    )
    fallback_source: SourceKind | None = Field(
        default=SourceKind.FACS,
        description="Source consulted only when every primary source yields nothing",
    )
    default_score: float = Field(
        default=50.0, ge=0, le=100, description="Overall score used when the analysis has none"
    )

    @model_validator(mode="after")
    def _check_priority(self) -> FusionOptions:
        if len(set(self.source_priority)) != len(self.source_priority):
            raise ValueError("source_priority must not repeat a source")
        if self.fallback_source is not None and self.fallback_source in self.source_priority:
            raise ValueError("fallback_source cannot also be a primary source")
        return self

    def window_for(self, event_type: EventType) -> float:
        """Get the fusion window for candidates of the given event type."""
        return self.window_overrides.get(event_type, self.fusion_window)


class SamplerOptions(BaseModel):
    """Options for the chart score curve."""

    step: float = Field(default=0.5, gt=0, description="Seconds between samples")
    neighbor_window: float = Field(
        default=2.0, gt=0, description="Markers within this many seconds feed a sample"
    )
    exact_window: float = Field(
        default=0.5, gt=0, description="Markers within this many seconds claim a sample"
    )
    marker_jitter: float = Field(default=5.0, ge=0, le=5)
    marker_jitter_frequency: float = Field(default=0.3, gt=0)
    baseline_jitter: float = Field(default=3.0, ge=0, le=3)
    baseline_jitter_frequency: float = Field(default=0.2, gt=0)
    min_score: float = Field(default=5.0, ge=5, le=95)
    max_score: float = Field(default=95.0, ge=5, le=95)


class WaveformOptions(BaseModel):
    """Options for the synthesized audio timeline."""

    total_bars: int = Field(default=150, gt=0, description="Number of bars across the video")
    default_event_length: float = Field(
        default=2.0, gt=0, description="Event length in seconds when no end timestamp is given"
    )
    seed: int | None = Field(
        default=None,
        ge=0,
        description=f"Texture seed. Falls back to {WAVEFORM_SEED_ENV} env var, then 0.",
    )

    def get_seed(self) -> int:
        """Get the texture seed from config or environment."""
        if self.seed is not None:
            return self.seed
        raw = os.environ.get(WAVEFORM_SEED_ENV)
        if raw is None:
            return 0
        try:
            seed = int(raw)
        except ValueError as e:
            raise ValueError(f"{WAVEFORM_SEED_ENV} must be an integer, got {raw!r}") from e
        if seed < 0:
            raise ValueError(f"{WAVEFORM_SEED_ENV} must not be negative, got {seed}")
        return seed


class PlaybackOptions(BaseModel):
    """Options for subtitle and narration sync."""

    cue_duration: float = Field(default=4.0, gt=0, description="Seconds a subtitle stays valid")
    subtitles_enabled: bool = Field(default=True)
    narration_enabled: bool = Field(default=False, description="Speak cues aloud")
    narration_rate: float = Field(default=0.9, gt=0)
    narration_pitch: float = Field(default=1.1, gt=0)
    narration_volume: float = Field(default=0.8, ge=0, le=1)


class AnnotationConfig(BaseModel):
    """Configuration for an ethosync annotation pipeline."""

    default_duration: float = Field(
        default=17.0, gt=0, description="Duration assumed until the video reports its own"
    )
    fusion: FusionOptions = Field(default_factory=FusionOptions)
    sampler: SamplerOptions = Field(default_factory=SamplerOptions)
    waveform: WaveformOptions = Field(default_factory=WaveformOptions)
    playback: PlaybackOptions = Field(default_factory=PlaybackOptions)

    def effective_duration(self, duration: float | None) -> float:
        """Get the duration to annotate against, substituting the default if unknown."""
        if duration is None or not duration > 0 or duration == float("inf"):
            return self.default_duration
        return float(duration)
