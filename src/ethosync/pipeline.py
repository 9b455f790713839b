"""Main annotation pipeline for ethosync."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any, Mapping

from pydantic import ValidationError
from tqdm import tqdm

from ethosync.config import AnnotationConfig
from ethosync.models.schema import AnalysisResult, AnnotationBundle, DisplayState
from ethosync.stages.badges import summarize_badges
from ethosync.stages.fusion import FusionEngine
from ethosync.stages.playback import NarrationSink, PlaybackSyncController, SeekSink, build_subtitle_track
from ethosync.stages.sampler import sample_timeline
from ethosync.stages.waveform import build_waveform_events, synthesize_from_options, waveform_legend
from ethosync.stages.zones import zone_for_score

logger = logging.getLogger(__name__)

TOTAL_STAGES = 4


class AnnotationError(Exception):
    """Error reading an analysis payload."""

    pass


def _create_pipeline_progress(total_stages: int, desc: str = "Annotating", disable: bool = False) -> tqdm:
    """Create a progress bar for pipeline stages."""
    return tqdm(
        total=total_stages,
        desc=desc,
        unit="stage",
        bar_format="{desc}: {percentage:3.0f}%|{bar}| {n_fmt}/{total_fmt} stages [{elapsed}]",
        leave=False,
        disable=disable,
    )


def fingerprint(analysis: Mapping[str, Any] | AnalysisResult | None) -> str:
    """Content hash of an analysis payload, stable across key order."""
    if isinstance(analysis, AnalysisResult):
        payload: Any = analysis.model_dump(mode="json")
    else:
        payload = analysis
    try:
        canonical = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":"))
    except (TypeError, ValueError):
        # Keys of mixed types cannot be sorted; fall back to an order-sensitive hash.
        canonical = repr(payload)
    return hashlib.md5(canonical.encode("utf-8")).hexdigest()


class AnnotationPipeline:
    """ethosync annotation pipeline.

    Turns one analysis result into the markers, chart curve, waveform and
    subtitle track the annotation view draws. The last result is memoized
    on (duration, analysis content), so calling annotate() again with the
    same inputs returns the same bundle object.

    Example:
        >>> import ethosync
        >>> pipeline = ethosync.AnnotationPipeline()
        >>> bundle = pipeline.annotate(analysis, duration=30.0)
        >>> bundle.markers[0].zone
    """

    def __init__(
        self,
        options: dict[str, Any] | AnnotationConfig | None = None,
        show_progress: bool = False,
    ) -> None:
        """Initialize an annotation pipeline.

        Args:
            options: Configuration dict or AnnotationConfig instance.
            show_progress: Show a tqdm progress bar while annotating.

        Raises:
            pydantic.ValidationError: If the options are invalid.
        """
        if options is None:
            self.config = AnnotationConfig()
        elif isinstance(options, dict):
            self.config = AnnotationConfig(**options)
        else:
            self.config = options

        self._show_progress = show_progress
        self._engine = FusionEngine(self.config.fusion)
        self._memo_key: tuple[float, str] | None = None
        self._memo: AnnotationBundle | None = None

        logger.info(
            f"Annotation pipeline initialized "
            f"(fusion_window={self.config.fusion.fusion_window}s, "
            f"bars={self.config.waveform.total_bars})"
        )

    def annotate(
        self,
        analysis: Mapping[str, Any] | AnalysisResult | None,
        duration: float | None = None,
    ) -> AnnotationBundle:
        """Derive every annotation primitive for an analysis.

        Args:
            analysis: The analysis service result, as a mapping or model.
                None means no analysis is available yet.
            duration: Video duration in seconds; unknown or non-positive
                values fall back to the configured default.

        Returns:
            AnnotationBundle with the display state and all derived
            collections. Never raises on malformed analysis content.
        """
        effective = self.config.effective_duration(duration)
        key = (effective, fingerprint(analysis))
        if self._memo is not None and self._memo_key == key:
            return self._memo

        bundle = self._build(analysis, effective)
        self._memo_key = key
        self._memo = bundle
        return bundle

    def annotate_file(self, source: str | Path, duration: float | None = None) -> AnnotationBundle:
        """Annotate an analysis stored as a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist.
            AnnotationError: If the file is not a JSON object.
        """
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Analysis file not found: {path}")

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise AnnotationError(f"Could not read analysis JSON from {path}: {e}") from e

        # Responses may arrive wrapped as {"success": ..., "data": {...}}
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        if not isinstance(payload, dict):
            raise AnnotationError(f"Analysis JSON in {path} must be an object")

        return self.annotate(payload, duration=duration)

    def controller(
        self,
        bundle: AnnotationBundle,
        narrator: NarrationSink | None = None,
        seeker: SeekSink | None = None,
    ) -> PlaybackSyncController:
        """Create a playback controller for a bundle's subtitle track."""
        return PlaybackSyncController(
            bundle.subtitles,
            narrator=narrator,
            seeker=seeker,
            options=self.config.playback,
        )

    def _build(
        self,
        analysis: Mapping[str, Any] | AnalysisResult | None,
        duration: float,
    ) -> AnnotationBundle:
        start_time = time.perf_counter()

        if analysis is None:
            logger.info("No analysis available")
            return AnnotationBundle(state=DisplayState.NO_DATA, duration=duration)

        result = self._validate(analysis)

        if result.no_subject_detected:
            logger.warning(f"Analysis reported no subject: {result.message or 'no message'}")
            return AnnotationBundle(
                state=DisplayState.NO_SUBJECT,
                duration=duration,
                message=result.message,
            )

        score = result.overall_assessment.distress_score
        if score is None:
            score = self.config.fusion.default_score

        pbar = _create_pipeline_progress(TOTAL_STAGES, disable=not self._show_progress)
        try:
            pbar.set_description("Stage 1: Fusing observations")
            markers = self._engine.fuse_analysis(result)
            pbar.update(1)

            pbar.set_description(f"Stage 2: Sampling chart ({duration:.1f}s)")
            chart = sample_timeline(markers, duration, score, self.config.sampler)
            pbar.update(1)

            pbar.set_description("Stage 3: Synthesizing waveform")
            events = build_waveform_events(
                result.audio_analysis.vocalizations_detected,
                result.audio_analysis.environmental_sounds,
                video_context=result.video_context,
                default_length=self.config.waveform.default_event_length,
            )
            waveform = synthesize_from_options(events, duration, self.config.waveform)
            pbar.update(1)

            pbar.set_description("Stage 4: Building subtitles")
            subtitles = build_subtitle_track(result.interpret_lines)
            badges = summarize_badges(result)
            pbar.update(1)
        finally:
            pbar.close()

        state = DisplayState.READY if markers else DisplayState.NO_MARKERS
        elapsed = time.perf_counter() - start_time
        logger.info(
            f"Annotation complete: {len(markers)} markers, {len(subtitles)} subtitles, "
            f"{sum(bar.is_active for bar in waveform)} active bars in {elapsed * 1000:.1f}ms"
        )

        return AnnotationBundle(
            state=state,
            duration=duration,
            overall_score=score,
            overall_zone=zone_for_score(score),
            markers=markers,
            chart=chart,
            waveform=waveform,
            legend=waveform_legend(events),
            subtitles=subtitles,
            badges=badges,
        )

    def _validate(self, analysis: Mapping[str, Any] | AnalysisResult) -> AnalysisResult:
        if isinstance(analysis, AnalysisResult):
            return analysis
        try:
            return AnalysisResult.model_validate(dict(analysis))
        except (TypeError, ValueError, ValidationError) as e:
            logger.warning(f"Analysis payload could not be read, treating as empty: {e}")
            return AnalysisResult()

