"""Processing stages for the ethosync pipeline.

Each stage handles a specific part of turning an analysis into annotations:
- sources: Field precedence for each observation list
- fusion: Deduplication of observations into canonical markers
- sampler: The severity chart curve
- waveform: The synthesized audio-intensity timeline
- playback: Subtitle cues, narration and seeking
- badges: Behavior badges beside the overall score
- progress: Analysis phase tracking while waiting for a result
"""

__all__ = [
    "sources",
    "fusion",
    "sampler",
    "waveform",
    "playback",
    "badges",
    "progress",
]
