"""ethosync: Turn animal behavior analyses into synchronized video annotations."""

from ethosync.config import AnnotationConfig, FusionOptions, PlaybackOptions, SamplerOptions, WaveformOptions
from ethosync.models.schema import (
    AnalysisResult,
    AnnotationBundle,
    CanonicalMarker,
    ChartPoint,
    DisplayState,
    EventType,
    SubtitleLine,
    WaveformBar,
    Zone,
)
from ethosync.pipeline import AnnotationError, AnnotationPipeline
from ethosync.stages.playback import PlaybackSyncController

__version__ = "0.1.0"

__all__ = [
    "AnnotationPipeline",
    "AnnotationConfig",
    "AnnotationError",
    "FusionOptions",
    "SamplerOptions",
    "WaveformOptions",
    "PlaybackOptions",
    "AnalysisResult",
    "AnnotationBundle",
    "CanonicalMarker",
    "ChartPoint",
    "DisplayState",
    "EventType",
    "SubtitleLine",
    "WaveformBar",
    "Zone",
    "PlaybackSyncController",
    "__version__",
]
