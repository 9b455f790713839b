"""Tests for the chart sampling stage."""

from __future__ import annotations

import math

import pytest

from ethosync.config import SamplerOptions
from ethosync.models.schema import NEUTRAL_ZONE, CanonicalMarker, EventType, SourceKind, Zone
from ethosync.stages.sampler import sample_count, sample_timeline


def make_marker(time: float, score: float = 80.0, label: str = "Growl", zone: Zone = Zone.RED) -> CanonicalMarker:
    return CanonicalMarker(
        time=time,
        label=label,
        zone=zone,
        score=score,
        evidence=[f"seen at {time:g}s"],
        source=SourceKind.TIMELINE,
    )


class TestSampleCount:
    """Tests for sample_count function."""

    @pytest.mark.parametrize(
        ("duration", "expected"),
        [(30.0, 61), (17.0, 35), (10.25, 21), (0.4, 1)],
    )
    def test_counts(self, duration: float, expected: int) -> None:
        """Should cover [0, duration] inclusive at half-second steps."""
        assert sample_count(duration) == expected

    def test_invalid_duration(self) -> None:
        """Non-positive or non-finite durations should give one sample."""
        assert sample_count(0) == 1
        assert sample_count(-5) == 1
        assert sample_count(float("nan")) == 1


class TestSampleTimeline:
    """Tests for sample_timeline function."""

    def test_length_and_times(self) -> None:
        """Should produce floor(duration * 2) + 1 evenly spaced samples."""
        points = sample_timeline([make_marker(5.0)], duration=30.0, fallback_score=50.0)
        assert len(points) == 61
        assert points[0].time_seconds == 0.0
        assert points[-1].time_seconds == 30.0
        assert points[11].time_seconds == 5.5

    def test_time_labels(self) -> None:
        """Each sample should carry an M:SS label."""
        points = sample_timeline([], duration=70.0, fallback_score=50.0)
        assert points[130].time_seconds == 65.0
        assert points[130].time_label == "1:05"

    @pytest.mark.parametrize("score", [0.0, 100.0])
    def test_scores_bounded(self, score: float) -> None:
        """Scores should stay within [5, 95] for extreme inputs."""
        markers = [make_marker(t, score=score) for t in (1.0, 3.0, 9.0)]
        for points in (
            sample_timeline(markers, duration=12.0, fallback_score=score),
            sample_timeline([], duration=12.0, fallback_score=score),
        ):
            assert all(5 <= point.score <= 95 for point in points)

    def test_baseline_follows_overall_score(self) -> None:
        """Samples far from markers should track the overall score with small jitter."""
        points = sample_timeline([], duration=20.0, fallback_score=50.0)
        assert points[0].score == 50.0
        assert all(47 <= point.score <= 53 for point in points)

    def test_neighbor_mean_with_jitter(self) -> None:
        """Samples near a marker should average nearby marker scores plus jitter."""
        points = sample_timeline([make_marker(10.0, score=80.0)], duration=20.0, fallback_score=50.0)
        expected = math.floor(80.0 + math.sin(20 * 0.3) * 5.0 + 0.5)
        assert points[20].score == expected

    def test_neighbor_window_is_strict(self) -> None:
        """A marker exactly two seconds away should not feed a sample."""
        points = sample_timeline([make_marker(10.0, score=90.0)], duration=20.0, fallback_score=20.0)
        # t=8.0 is index 16
        expected = math.floor(20.0 + math.sin(16 * 0.2) * 3.0 + 0.5)
        assert points[16].score == expected

    def test_exact_marker_claims_sample(self) -> None:
        """Only samples within half a second of a marker should carry its label."""
        marker = make_marker(5.0, label="Low growl")
        points = sample_timeline([marker], duration=10.0, fallback_score=50.0)

        assert points[10].label == "Low growl"
        assert points[10].zone == Zone.RED.value
        assert points[10].event_type == EventType.BEHAVIORAL
        assert points[10].evidence == ["seen at 5s"]
        assert points[10].is_marker
        assert points[9].label is None
        assert points[11].label is None

    def test_first_marker_wins_claim(self) -> None:
        """When two markers are within the exact window, the first listed claims the sample."""
        first = make_marker(5.0, label="First")
        second = make_marker(5.3, label="Second")
        points = sample_timeline([first, second], duration=10.0, fallback_score=50.0)

        assert points[10].label == "First"
        assert points[11].label == "Second"

    def test_unclaimed_samples_are_neutral(self) -> None:
        """Samples without a marker should use the neutral zone."""
        points = sample_timeline([make_marker(5.0)], duration=10.0, fallback_score=50.0)
        assert points[0].zone == NEUTRAL_ZONE
        assert not points[0].is_marker

    def test_custom_step(self) -> None:
        """A custom step should change the sample density."""
        points = sample_timeline([], duration=10.0, fallback_score=50.0, options=SamplerOptions(step=1.0))
        assert len(points) == 11

    def test_invalid_duration_gives_single_sample(self) -> None:
        """An unusable duration should still produce a valid single-point chart."""
        points = sample_timeline([make_marker(0.2)], duration=float("nan"), fallback_score=50.0)
        assert len(points) == 1
        assert points[0].label == "Growl"
