"""Sampling stage: build the severity chart curve from canonical markers."""

from __future__ import annotations

import logging
import math

import numpy as np
from numpy.typing import NDArray

from ethosync.config import SamplerOptions
from ethosync.models.schema import CanonicalMarker, ChartPoint
from ethosync.stages.timecode import format_timestamp

logger = logging.getLogger(__name__)


def sample_count(duration: float, step: float = 0.5) -> int:
    """Number of samples covering [0, duration] inclusive at the given step."""
    if not math.isfinite(duration) or duration <= 0:
        return 1
    return int(math.floor(duration / step)) + 1


def _round_half_up(values: NDArray[np.float64]) -> NDArray[np.float64]:
    return np.floor(values + 0.5)


def sample_timeline(
    markers: list[CanonicalMarker],
    duration: float,
    fallback_score: float,
    options: SamplerOptions | None = None,
) -> list[ChartPoint]:
    """Sample the severity curve at a fixed step from 0 to duration.

    Each sample averages the scores of markers within the neighbor window and
    adds a small sine jitter so flat stretches still read as a live signal.
    Samples with no nearby markers follow the overall score with a smaller
    jitter. The jitter carries no information.

    Args:
        markers: Canonical markers, in fusion order.
        duration: Video duration in seconds.
        fallback_score: Overall score used where no marker is nearby.
        options: Sampler options.

    Returns:
        One ChartPoint per sample. A point carries a marker label only when a
        marker lies within the exact window; the first such marker claims it.
    """
    opts = options or SamplerOptions()
    if not math.isfinite(fallback_score):
        fallback_score = (opts.min_score + opts.max_score) / 2

    count = sample_count(duration, opts.step)
    index = np.arange(count, dtype=np.float64)
    times = index * opts.step

    marker_times = np.array([m.time for m in markers], dtype=np.float64)
    marker_scores = np.array([m.score for m in markers], dtype=np.float64)
    distance = np.abs(times[:, None] - marker_times[None, :])

    nearby = distance < opts.neighbor_window
    nearby_count = nearby.sum(axis=1)
    nearby_sum = (nearby * marker_scores[None, :]).sum(axis=1)
    nearby_mean = np.divide(
        nearby_sum, nearby_count, out=np.zeros(count), where=nearby_count > 0
    )

    marker_curve = nearby_mean + np.sin(index * opts.marker_jitter_frequency) * opts.marker_jitter
    baseline_curve = fallback_score + np.sin(index * opts.baseline_jitter_frequency) * opts.baseline_jitter
    raw = np.where(nearby_count > 0, marker_curve, baseline_curve)
    scores = _round_half_up(np.clip(raw, opts.min_score, opts.max_score))

    exact = distance < opts.exact_window
    has_exact = exact.any(axis=1)
    first_exact = exact.argmax(axis=1) if markers else np.zeros(count, dtype=int)

    points: list[ChartPoint] = []
    for i in range(count):
        t = float(times[i])
        point = ChartPoint(time_seconds=t, time_label=format_timestamp(t), score=float(scores[i]))
        if has_exact[i]:
            marker = markers[int(first_exact[i])]
            point = point.model_copy(
                update={
                    "label": marker.label,
                    "zone": marker.zone.value,
                    "event_type": marker.event_type,
                    "evidence": list(marker.evidence),
                }
            )
        points.append(point)

    logger.debug(
        f"Sampled {count} chart points over {duration:.1f}s "
        f"({int(has_exact.sum())} marker points)"
    )
    return points
