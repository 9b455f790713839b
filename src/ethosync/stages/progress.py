"""Analysis phase tracking for the waiting screen.

The analysis service currently reports no phase of its own; the only real
signals are upload progress and the final response. PhaseTracker advances on
those. placeholder_phase() reproduces the fixed-interval stepping the waiting
screen used to fake the rest, and is a placeholder to be replaced as soon as
the service reports phases.
"""

from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)

PLACEHOLDER_STEP_SECONDS = 1.5


class AnalysisPhase(str, Enum):
    """Phases shown while an analysis is running, in order."""

    UPLOAD = "upload"
    DETECT = "detect"
    VISUAL = "visual"
    AUDIO = "audio"
    SYNTHESIS = "synthesis"
    COMPLETE = "complete"

    @property
    def label(self) -> str:
        """Text shown next to the phase."""
        return PHASE_LABELS[self]


PHASE_LABELS = {
    AnalysisPhase.UPLOAD: "Uploading video",
    AnalysisPhase.DETECT: "Detecting pet",
    AnalysisPhase.VISUAL: "Analyzing visual cues",
    AnalysisPhase.AUDIO: "Processing vocalizations",
    AnalysisPhase.SYNTHESIS: "Synthesizing findings",
    AnalysisPhase.COMPLETE: "Analysis complete",
}

PHASE_ORDER = list(AnalysisPhase)


def placeholder_phase(elapsed: float, step: float = PLACEHOLDER_STEP_SECONDS) -> AnalysisPhase:
    """Guess the phase from elapsed time alone. Placeholder only.

    Steps one phase every `step` seconds and stops before COMPLETE, which
    only a real response may reach. This carries no information about the
    actual analysis.
    """
    if elapsed <= 0:
        return AnalysisPhase.UPLOAD
    index = min(int(elapsed // step), len(PHASE_ORDER) - 2)
    return PHASE_ORDER[index]


class PhaseTracker:
    """Tracks the analysis phase from real signals, never moving backwards."""

    def __init__(self) -> None:
        self._phase = AnalysisPhase.UPLOAD
        self.upload_percent = 0

    @property
    def phase(self) -> AnalysisPhase:
        """Current phase."""
        return self._phase

    @property
    def is_complete(self) -> bool:
        """Whether the analysis response has arrived."""
        return self._phase is AnalysisPhase.COMPLETE

    def advance(self, phase: AnalysisPhase) -> AnalysisPhase:
        """Move to a phase reported by the service; earlier phases are ignored."""
        if PHASE_ORDER.index(phase) > PHASE_ORDER.index(self._phase):
            logger.debug(f"Analysis phase {self._phase.value} -> {phase.value}")
            self._phase = phase
        return self._phase

    def on_upload_progress(self, loaded: int, total: int) -> AnalysisPhase:
        """Record upload progress; a finished upload moves on to detection."""
        if total > 0:
            self.upload_percent = round(loaded * 100 / total)
        if self.upload_percent >= 100:
            self.advance(AnalysisPhase.DETECT)
        return self._phase

    def on_response(self) -> AnalysisPhase:
        """Record that the analysis response arrived."""
        return self.advance(AnalysisPhase.COMPLETE)

    def display_phase(self, elapsed: float) -> AnalysisPhase:
        """Phase to show: the tracked phase, or the placeholder guess if it is further along."""
        if self.is_complete:
            return self._phase
        guess = placeholder_phase(elapsed)
        if PHASE_ORDER.index(guess) > PHASE_ORDER.index(self._phase):
            return guess
        return self._phase
