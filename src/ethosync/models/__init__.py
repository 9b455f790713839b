"""Data models for ethosync."""

from ethosync.models.schema import (
    AnalysisResult,
    AnnotationBundle,
    CanonicalMarker,
    ChartPoint,
    SubtitleLine,
    WaveformBar,
    Zone,
)

__all__ = [
    "AnalysisResult",
    "AnnotationBundle",
    "CanonicalMarker",
    "ChartPoint",
    "SubtitleLine",
    "WaveformBar",
    "Zone",
]
