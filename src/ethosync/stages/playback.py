"""Playback stage: subtitle selection, narration and seeking.

This stage handles:
- Building the subtitle track from interpretation lines
- Picking the active cue on every playback-time update
- One narration request per new cue, newest request wins
- One-way seek commands from marker and waveform selection

Everything here runs synchronously on the caller's thread. Narration and
seeking are handed to sinks the host application provides; the controller
never waits on either.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any, Mapping, Protocol

from ethosync.config import PlaybackOptions
from ethosync.models.schema import (
    CanonicalMarker,
    NarrationRequest,
    SeekCommand,
    SubtitleCue,
    SubtitleLine,
    WaveformBar,
)
from ethosync.stages.sources import pov_text
from ethosync.stages.timecode import parse_timestamp
from ethosync.stages.zones import classify_zone

logger = logging.getLogger(__name__)


class NarrationSink(Protocol):
    """Text-to-speech backend owned by the host application."""

    def speak(self, request: NarrationRequest) -> None:
        """Start speaking. Must not block until speech finishes."""

    def cancel(self) -> None:
        """Stop any speech in flight. Fire-and-forget."""


class SeekSink(Protocol):
    """Video element owned by the host application."""

    def __call__(self, command: SeekCommand) -> None:
        """Move the playhead. No acknowledgement is expected."""


class NullNarrator:
    """Narration sink that discards every request."""

    def speak(self, request: NarrationRequest) -> None:
        pass

    def cancel(self) -> None:
        pass


class RecordingNarrator:
    """Narration sink that keeps a log of calls, for tests and the CLI replay."""

    def __init__(self) -> None:
        self.requests: list[NarrationRequest] = []
        self.calls: list[str] = []

    def speak(self, request: NarrationRequest) -> None:
        self.requests.append(request)
        self.calls.append("speak")

    def cancel(self) -> None:
        self.calls.append("cancel")

    @property
    def spoken(self) -> list[str]:
        """Texts of every narration request, in order."""
        return [request.text for request in self.requests]


class PlaybackState(str, Enum):
    """Whether a subtitle cue is on screen."""

    IDLE = "idle"
    CUE_ACTIVE = "cue_active"


def build_subtitle_track(interpret_lines: list[Any]) -> list[SubtitleLine]:
    """Build subtitle lines from raw interpretation lines.

    Lines without any interpretation text are dropped. The key combines the
    line time and its position in the input so two lines at the same moment
    stay distinct.

    Returns:
        Subtitle lines sorted ascending by time, input order kept for ties.
    """
    lines: list[SubtitleLine] = []
    for index, record in enumerate(interpret_lines if isinstance(interpret_lines, list) else []):
        if not isinstance(record, Mapping):
            continue
        text = pov_text(record)
        if not text:
            continue
        time = parse_timestamp(record.get("timestamp"))
        lines.append(
            SubtitleLine(
                time=time,
                text=text,
                zone=classify_zone(text, explicit=record.get("zone")),
                key=f"{time:g}-{index}",
            )
        )
    return sorted(lines, key=lambda line: line.time)


class PlaybackSyncController:
    """Keeps the subtitle cue and narration in step with video playback.

    The controller is a two-state machine (IDLE, CUE_ACTIVE). Each
    playback-time update replaces the displayed cue wholesale. A new cue is
    detected by comparing keys with the displayed one, and it is narrated
    only if its key also differs from the last narrated key, so neither
    repeated updates inside one cue nor leaving and re-entering it
    re-trigger speech.

    Example:
        >>> controller = PlaybackSyncController(bundle.subtitles, narrator=narrator)
        >>> controller.on_time_update(video.current_time)
    """

    def __init__(
        self,
        subtitles: list[SubtitleLine] | None = None,
        narrator: NarrationSink | None = None,
        seeker: SeekSink | None = None,
        options: PlaybackOptions | None = None,
    ) -> None:
        self.options = options or PlaybackOptions()
        self._subtitles: list[SubtitleLine] = sorted(subtitles or [], key=lambda line: line.time)
        self._narrator: NarrationSink = narrator or NullNarrator()
        self._seeker = seeker
        self._cue: SubtitleCue | None = None
        self._last_narrated: str | None = None
        self._is_playing = False
        self._subtitles_enabled = self.options.subtitles_enabled
        self._narration_enabled = self.options.narration_enabled

    @property
    def state(self) -> PlaybackState:
        """Current state of the cue state machine."""
        return PlaybackState.IDLE if self._cue is None else PlaybackState.CUE_ACTIVE

    @property
    def current_cue(self) -> SubtitleCue | None:
        """The cue on screen, if any."""
        return self._cue

    @property
    def is_playing(self) -> bool:
        """Whether the video last reported playing."""
        return self._is_playing

    @property
    def subtitles(self) -> list[SubtitleLine]:
        """The subtitle track, sorted by time."""
        return list(self._subtitles)

    def set_subtitles(self, subtitles: list[SubtitleLine]) -> None:
        """Replace the subtitle track, e.g. when a new analysis arrives.

        The displayed cue is cleared and any narration in flight is cancelled;
        the next time update picks the cue from the new track.
        """
        self._subtitles = sorted(subtitles, key=lambda line: line.time)
        self._cue = None
        self._last_narrated = None
        self._narrator.cancel()

    def active_line(self, current_time: float) -> SubtitleLine | None:
        """Find the most recent line whose validity interval contains current_time."""
        if not math.isfinite(current_time):
            return None
        for line in reversed(self._subtitles):
            if line.time <= current_time < line.time + self.options.cue_duration:
                return line
        return None

    def on_time_update(self, current_time: float) -> SubtitleCue | None:
        """Handle a playback-time update.

        Re-entering the last narrated cue after it was cleared shows it again
        but stays silent.

        Args:
            current_time: Playhead position in seconds.

        Returns:
            The cue to display after this update, or None.
        """
        if not self._subtitles_enabled:
            self._cue = None
            return None

        line = self.active_line(current_time)
        if line is None:
            if self._cue is not None:
                logger.debug(f"Cue {self._cue.key} cleared at {current_time:.2f}s")
            self._cue = None
            return None

        if self._cue is not None and self._cue.key == line.key:
            return self._cue

        self._cue = SubtitleCue(text=line.text, zone=line.zone, key=line.key)
        logger.debug(f"Cue {line.key} shown at {current_time:.2f}s")
        if self._narration_enabled and line.key != self._last_narrated:
            self._narrate(line)
        return self._cue

    def on_play(self) -> None:
        """Handle the video starting or resuming."""
        self._is_playing = True

    def on_pause(self) -> None:
        """Handle the video pausing: stop speech but leave the cue on screen."""
        self._is_playing = False
        self._narrator.cancel()

    def set_subtitles_enabled(self, enabled: bool) -> None:
        """Show or hide subtitles. Hiding clears the displayed cue."""
        self._subtitles_enabled = enabled
        if not enabled:
            self._cue = None

    def set_narration_enabled(self, enabled: bool) -> None:
        """Turn narration on or off. Turning it off silences speech in flight."""
        self._narration_enabled = enabled
        if not enabled:
            self._narrator.cancel()

    def seek(self, target: float, resume: bool = True) -> SeekCommand:
        """Send the video a seek command.

        The command is not acknowledged; the next time update is the only
        source of truth for where playback actually is.
        """
        command = SeekCommand(target=max(0.0, target), resume=resume)
        if self._seeker is not None:
            self._seeker(command)
        return command

    def select_marker(self, marker: CanonicalMarker) -> SeekCommand:
        """Seek to a canonical marker."""
        return self.seek(marker.time)

    def select_subtitle(self, line: SubtitleLine) -> SeekCommand:
        """Seek to the start of a subtitle line."""
        return self.seek(line.time)

    def select_bar(self, bar: WaveformBar) -> SeekCommand | None:
        """Seek to the start of the event owning a waveform bar.

        Returns:
            The seek command, or None for ambient bars.
        """
        if not bar.is_active or bar.seek_target is None:
            return None
        return self.seek(bar.seek_target)

    def _narrate(self, line: SubtitleLine) -> None:
        # Newest request wins: cancel before every speak.
        self._narrator.cancel()
        self._last_narrated = line.key
        self._narrator.speak(
            NarrationRequest(
                text=line.text,
                rate=self.options.narration_rate,
                pitch=self.options.narration_pitch,
                volume=self.options.narration_volume,
            )
        )
