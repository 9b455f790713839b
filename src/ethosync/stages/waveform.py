"""Waveform stage: synthesize an audio-intensity timeline from event intervals.

This stage handles:
- Expanding vocalizations and environmental sounds into timed intervals
- Loudness and zone assignment from event subtypes
- Envelope shaping and texture for each bar
- The legend of event kinds shown under the waveform

No audio signal is read here. The inputs are discrete labeled intervals and
the output is a deterministic envelope with seeded texture, so the same
inputs always draw the same waveform.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np

from ethosync.config import WaveformOptions
from ethosync.models.schema import INACTIVE_ZONE, LegendEntry, WaveformBar, Zone
from ethosync.stages.sources import text_value
from ethosync.stages.timecode import parse_timestamp
from ethosync.stages.zones import classify_zone

logger = logging.getLogger(__name__)

ENVIRONMENTAL_LOUDNESS = 0.5
DEFAULT_LOUDNESS = 0.65

# Subtype keyword -> loudness, first hit wins.
LOUDNESS_KEYWORDS: tuple[tuple[str, float], ...] = (
    ("aggressive", 1.0),
    ("demand", 0.85),
    ("frustrat", 0.8),
)

# Video context keyword -> label suffix, first hit wins.
CONTEXT_SUFFIXES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("door",), "at door"),
    (("window",), "at window"),
    (("person", "stranger"), "at person"),
    (("cat", "dog", "animal"), "at animal"),
    (("food", "treat"), "for food"),
    (("play", "toy"), "during play"),
    (("barrier", "gate"), "at barrier"),
    (("camera", "close"), "at camera"),
)

MIN_HEIGHT = 3.0
MAX_HEIGHT = 92.0

# Envelope shape over event progress p in [0, 1].
ATTACK_END = 0.1
RELEASE_START = 0.8
SUSTAIN_LEVEL = 0.85
SUSTAIN_FLUTTER = 0.15

BASE_HEIGHT = 25.0
ENVELOPE_GAIN = 60.0
TEXTURE_GAIN = 25.0

AMBIENT_FLOOR = 5.0
AMBIENT_SPREAD = 8.0
AMBIENT_DRIFT = 2.0


@dataclass(frozen=True)
class WaveformEvent:
    """A vocalization or environmental sound expanded to an interval."""

    start: float
    end: float
    label: str
    zone: Zone
    loudness: float
    interpretation: str = ""
    is_environmental: bool = False
    legend_key: str = ""

    @property
    def duration(self) -> float:
        """Length of the interval in seconds."""
        return self.end - self.start

    def contains(self, t: float) -> bool:
        """Whether t falls inside the closed interval."""
        return self.start <= t <= self.end


def loudness_for(subtype: str) -> float:
    """Get the relative loudness of a vocalization subtype."""
    text = subtype.lower()
    for keyword, loudness in LOUDNESS_KEYWORDS:
        if keyword in text:
            return loudness
    return DEFAULT_LOUDNESS


def context_suffix(video_context: str | None) -> str:
    """Get the label suffix describing where the video was filmed."""
    context = (video_context or "").lower()
    for keywords, suffix in CONTEXT_SUFFIXES:
        if any(keyword in context for keyword in keywords):
            return suffix
    return ""


def describe_vocalization(kind: str, subtype: str, video_context: str | None = None) -> str:
    """Build a readable vocalization label, e.g. "Bark - alert barking at door"."""
    suffix = context_suffix(video_context)
    detail = subtype.replace("_", " ")
    if not kind:
        base = detail or "Vocalization"
    elif detail and detail.lower() != kind.lower():
        base = f"{kind} - {detail}"
    else:
        base = kind
    return f"{base} {suffix}" if suffix else base


def _interval(record: Mapping[str, Any], start_field: str, end_field: str | None, length: float) -> tuple[float, float]:
    start = parse_timestamp(record.get(start_field))
    end = parse_timestamp(record.get(end_field)) if end_field else 0.0
    if end <= start:
        end = start + length
    return start, end


def build_waveform_events(
    vocalizations: list[Any],
    environmental_sounds: list[Any] | None = None,
    video_context: str | None = None,
    default_length: float = 2.0,
) -> list[WaveformEvent]:
    """Expand raw vocalization and environmental-sound records into intervals.

    Args:
        vocalizations: Records with timestamp_start, timestamp_end, type,
            subtype and interpretation.
        environmental_sounds: Records with timestamp, sound and pet_reaction.
        video_context: Free-text filming context used to suffix labels.
        default_length: Interval length when no usable end timestamp exists.

    Returns:
        Vocalization events followed by environmental events, in input order.
        Non-mapping records are skipped.
    """
    events: list[WaveformEvent] = []

    for record in vocalizations if isinstance(vocalizations, list) else []:
        if not isinstance(record, Mapping):
            continue
        kind = text_value(record.get("type"))
        subtype = text_value(record.get("subtype"))
        start, end = _interval(record, "timestamp_start", "timestamp_end", default_length)
        events.append(
            WaveformEvent(
                start=start,
                end=end,
                label=describe_vocalization(kind, subtype, video_context),
                zone=classify_zone(f"{kind} {subtype}"),
                loudness=loudness_for(subtype),
                interpretation=text_value(record.get("interpretation")),
                legend_key=subtype or kind,
            )
        )

    for record in environmental_sounds if isinstance(environmental_sounds, list) else []:
        if not isinstance(record, Mapping):
            continue
        sound = text_value(record.get("sound"))
        start, end = _interval(record, "timestamp", None, default_length)
        events.append(
            WaveformEvent(
                start=start,
                end=end,
                label=f"Sound: {sound}" if sound else "Sound",
                zone=Zone.YELLOW,
                loudness=ENVIRONMENTAL_LOUDNESS,
                interpretation=text_value(record.get("pet_reaction")),
                is_environmental=True,
                legend_key="environmental",
            )
        )

    return events


def envelope(progress: float, flutter: float) -> float:
    """Amplitude envelope at a point of an event.

    Args:
        progress: Position through the event in [0, 1].
        flutter: Uniform sample in [0, 1) used to roughen the sustain plateau.

    Returns:
        Envelope value in [0, 1].
    """
    if progress < ATTACK_END:
        return progress / ATTACK_END
    if progress > RELEASE_START:
        return (1 - progress) / (1 - RELEASE_START)
    return SUSTAIN_LEVEL + flutter * SUSTAIN_FLUTTER


def _clamp_height(height: float) -> float:
    return max(MIN_HEIGHT, min(MAX_HEIGHT, height))


def synthesize_waveform(
    events: list[WaveformEvent],
    duration: float,
    total_bars: int = 150,
    seed: int = 0,
) -> list[WaveformBar]:
    """Render event intervals as a row of bar heights.

    Bar i sits at t = i / total_bars * duration and belongs to the first event
    whose interval contains t. Active bars follow the event envelope plus two
    sine harmonics and a little noise; other bars sit on a low ambient floor
    with slow drift and are marked inactive.

    Args:
        events: Waveform events, in priority order.
        duration: Video duration in seconds.
        total_bars: Number of bars to produce.
        seed: Texture seed; each bar draws from a generator keyed by
            (seed, bar index).

    Returns:
        total_bars WaveformBar objects with heights in [3, 92].
    """
    if not math.isfinite(duration) or duration < 0:
        duration = 0.0

    bars: list[WaveformBar] = []
    active_count = 0

    for i in range(total_bars):
        t = i / total_bars * duration
        rng = np.random.default_rng([seed, i])
        flutter, noise = rng.random(2)
        owner = next((event for event in events if event.contains(t)), None)

        if owner is not None:
            progress = (t - owner.start) / owner.duration if owner.duration > 0 else 0.0
            level = envelope(progress, float(flutter))
            texture = math.sin(i * 1.2) * 0.1 + math.sin(i * 3.7) * 0.05 + (noise - 0.5) * 0.08
            height = BASE_HEIGHT + owner.loudness * level * ENVELOPE_GAIN + texture * TEXTURE_GAIN
            bars.append(
                WaveformBar(
                    index=i,
                    height=_clamp_height(float(height)),
                    zone=owner.zone.value,
                    is_active=True,
                    time=t,
                    label=owner.label,
                    seek_target=owner.start,
                )
            )
            active_count += 1
        else:
            height = AMBIENT_FLOOR + flutter * AMBIENT_SPREAD + math.sin(i * 0.5) * AMBIENT_DRIFT
            bars.append(
                WaveformBar(
                    index=i,
                    height=_clamp_height(float(height)),
                    zone=INACTIVE_ZONE,
                    is_active=False,
                    time=t,
                )
            )

    logger.debug(f"Synthesized {total_bars} waveform bars ({active_count} active) over {duration:.1f}s")
    return bars


def waveform_legend(events: list[WaveformEvent]) -> list[LegendEntry]:
    """Get one legend entry per event kind, in first-seen order."""
    seen: dict[str, Zone] = {}
    for event in events:
        if event.legend_key and event.legend_key not in seen:
            seen[event.legend_key] = event.zone
    return [LegendEntry(key=key, zone=zone) for key, zone in seen.items()]


def synthesize_from_options(
    events: list[WaveformEvent],
    duration: float,
    options: WaveformOptions | None = None,
) -> list[WaveformBar]:
    """Render a waveform using pipeline options."""
    opts = options or WaveformOptions()
    return synthesize_waveform(events, duration, total_bars=opts.total_bars, seed=opts.get_seed())
