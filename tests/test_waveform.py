"""Tests for the waveform synthesis stage."""

from __future__ import annotations

import pytest

from ethosync.config import WaveformOptions
from ethosync.models.schema import INACTIVE_ZONE, Zone
from ethosync.stages.waveform import (
    WaveformEvent,
    build_waveform_events,
    describe_vocalization,
    envelope,
    loudness_for,
    synthesize_from_options,
    synthesize_waveform,
    waveform_legend,
)

GROWL = {
    "timestamp_start": "0:05",
    "timestamp_end": "0:08",
    "type": "Growl",
    "subtype": "growl",
    "interpretation": "Warning off the visitor",
}


class TestWaveformEvent:
    """Tests for WaveformEvent dataclass."""

    def test_duration_property(self) -> None:
        """Should calculate duration correctly."""
        event = WaveformEvent(start=5.0, end=8.0, label="Growl", zone=Zone.RED, loudness=0.65)
        assert event.duration == 3.0

    def test_contains_is_closed(self) -> None:
        """Both interval ends should count as inside."""
        event = WaveformEvent(start=5.0, end=8.0, label="Growl", zone=Zone.RED, loudness=0.65)
        assert event.contains(5.0)
        assert event.contains(8.0)
        assert not event.contains(8.01)


class TestBuildWaveformEvents:
    """Tests for build_waveform_events function."""

    def test_vocalization_interval_and_zone(self) -> None:
        """Should read the interval and classify the zone from type and subtype."""
        events = build_waveform_events([GROWL])
        assert len(events) == 1
        event = events[0]
        assert (event.start, event.end) == (5.0, 8.0)
        assert event.zone == Zone.RED
        assert event.label == "Growl"
        assert event.interpretation == "Warning off the visitor"

    def test_missing_or_backwards_end(self) -> None:
        """An end at or before the start should become start plus the default length."""
        events = build_waveform_events(
            [
                {"timestamp_start": "0:10", "timestamp_end": "0:09", "type": "Bark"},
                {"timestamp_start": "0:20", "type": "Bark"},
            ]
        )
        assert (events[0].start, events[0].end) == (10.0, 12.0)
        assert (events[1].start, events[1].end) == (20.0, 22.0)

    def test_environmental_sounds(self) -> None:
        """Environmental sounds should follow vocalizations with a fixed loudness."""
        events = build_waveform_events(
            [GROWL],
            [{"timestamp": "0:02", "sound": "doorbell", "pet_reaction": "ears up"}],
        )
        sound = events[1]
        assert sound.label == "Sound: doorbell"
        assert sound.is_environmental
        assert sound.zone == Zone.YELLOW
        assert sound.loudness == 0.5
        assert (sound.start, sound.end) == (2.0, 4.0)
        assert sound.interpretation == "ears up"

    def test_skips_malformed_records(self) -> None:
        """Non-mapping records and non-list inputs should be ignored."""
        assert build_waveform_events([None, "growl", 5]) == []
        assert build_waveform_events("nope", {"sound": "x"}) == []  # type: ignore[arg-type]


class TestDescribeVocalization:
    """Tests for vocalization labels."""

    def test_kind_and_subtype_with_context(self) -> None:
        """Should join kind and subtype and add a context suffix."""
        label = describe_vocalization("Bark", "alert_barking", "Dog at the front door")
        assert label == "Bark - alert barking at door"

    def test_animal_context(self) -> None:
        """Contexts mentioning another animal should read "at animal"."""
        assert describe_vocalization("Bark", "alert", "cat outside") == "Bark - alert at animal"
        assert describe_vocalization("Hiss", "", "New dog in the house") == "Hiss at animal"

    def test_repeated_subtype_collapsed(self) -> None:
        """A subtype equal to the kind should not be repeated."""
        assert describe_vocalization("Growl", "growl") == "Growl"

    def test_missing_kind(self) -> None:
        """Without a kind the subtype alone should be used."""
        assert describe_vocalization("", "chirp") == "chirp"
        assert describe_vocalization("", "") == "Vocalization"

    def test_unknown_context(self) -> None:
        """Unrecognized contexts should add no suffix."""
        assert describe_vocalization("Meow", "demand", "In the kitchen") == "Meow - demand"


class TestLoudness:
    """Tests for loudness_for function."""

    @pytest.mark.parametrize(
        ("subtype", "expected"),
        [
            ("aggressive_growl", 1.0),
            ("demand_bark", 0.85),
            ("frustrated_whine", 0.8),
            ("alert", 0.65),
        ],
    )
    def test_subtype_loudness(self, subtype: str, expected: float) -> None:
        """Should map subtypes to relative loudness."""
        assert loudness_for(subtype) == expected


class TestEnvelope:
    """Tests for the amplitude envelope."""

    def test_attack_sustain_release(self) -> None:
        """Should ramp up, hold a plateau, then ramp down."""
        assert envelope(0.0, 0.5) == 0.0
        assert envelope(0.05, 0.5) == pytest.approx(0.5)
        assert envelope(0.5, 0.0) == pytest.approx(0.85)
        assert envelope(0.5, 1.0) == pytest.approx(1.0)
        assert envelope(0.9, 0.5) == pytest.approx(0.5)
        assert envelope(1.0, 0.5) == pytest.approx(0.0)


class TestSynthesizeWaveform:
    """Tests for synthesize_waveform function."""

    def test_growl_bars_taller_than_ambient(self) -> None:
        """Bars inside a growl should be markedly taller than every ambient bar."""
        bars = synthesize_waveform(build_waveform_events([GROWL]), duration=30.0)

        inside = [bar for bar in bars if 5.1 <= bar.time <= 7.9]
        outside = [bar for bar in bars if bar.time < 4.9 or bar.time > 8.1]

        assert inside and outside
        assert all(bar.is_active and bar.zone == Zone.RED.value for bar in inside)
        assert all(not bar.is_active and bar.zone == INACTIVE_ZONE for bar in outside)
        assert min(bar.height for bar in inside) > max(bar.height for bar in outside)

    def test_bar_count_and_times(self) -> None:
        """Should produce total_bars bars spread across the duration."""
        bars = synthesize_waveform([], duration=30.0)
        assert len(bars) == 150
        assert bars[0].time == 0.0
        assert bars[75].time == pytest.approx(15.0)
        assert [bar.index for bar in bars] == list(range(150))

    def test_heights_bounded(self) -> None:
        """Heights should stay within [3, 92] even for the loudest events."""
        events = [
            WaveformEvent(start=0.0, end=30.0, label="Scream", zone=Zone.RED, loudness=1.0)
        ]
        for bars in (synthesize_waveform(events, 30.0), synthesize_waveform([], 30.0)):
            assert all(3 <= bar.height <= 92 for bar in bars)

    def test_seek_target_is_event_start(self) -> None:
        """Active bars should seek to their event start; ambient bars should not seek."""
        bars = synthesize_waveform(build_waveform_events([GROWL]), duration=30.0)
        for bar in bars:
            if bar.is_active:
                assert bar.seek_target == 5.0
                assert bar.label == "Growl"
            else:
                assert bar.seek_target is None
                assert bar.label is None

    def test_first_event_owns_overlap(self) -> None:
        """Overlapping events should resolve to the first listed."""
        events = [
            WaveformEvent(start=0.0, end=10.0, label="First", zone=Zone.GREEN, loudness=0.65),
            WaveformEvent(start=5.0, end=15.0, label="Second", zone=Zone.RED, loudness=1.0),
        ]
        bars = synthesize_waveform(events, duration=15.0, total_bars=15)
        assert bars[7].label == "First"
        assert bars[12].label == "Second"

    def test_deterministic(self) -> None:
        """Same inputs and seed should draw the same waveform."""
        events = build_waveform_events([GROWL])
        first = [bar.height for bar in synthesize_waveform(events, 30.0, seed=3)]
        second = [bar.height for bar in synthesize_waveform(events, 30.0, seed=3)]
        other = [bar.height for bar in synthesize_waveform(events, 30.0, seed=4)]
        assert first == second
        assert first != other

    def test_invalid_duration(self) -> None:
        """A non-finite duration should not raise."""
        bars = synthesize_waveform([], duration=float("nan"), total_bars=10)
        assert len(bars) == 10
        assert all(bar.time == 0.0 for bar in bars)


class TestWaveformOptions:
    """Tests for waveform configuration."""

    def test_custom_bar_count(self, no_waveform_seed_env: None) -> None:
        """Options should control the number of bars."""
        bars = synthesize_from_options([], 10.0, WaveformOptions(total_bars=20))
        assert len(bars) == 20

    def test_default_seed(self, no_waveform_seed_env: None) -> None:
        """Without config or environment the seed should be 0."""
        assert WaveformOptions().get_seed() == 0

    def test_seed_from_env(self, waveform_seed_env: int) -> None:
        """The environment variable should supply the seed when unset."""
        assert WaveformOptions().get_seed() == waveform_seed_env

    def test_explicit_seed_wins(self, waveform_seed_env: int) -> None:
        """An explicit seed should override the environment."""
        assert WaveformOptions(seed=3).get_seed() == 3

    def test_bad_env_seed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A non-integer environment seed should raise."""
        monkeypatch.setenv("ETHOSYNC_WAVEFORM_SEED", "abc")
        with pytest.raises(ValueError, match="must be an integer"):
            WaveformOptions().get_seed()


class TestWaveformLegend:
    """Tests for waveform_legend function."""

    def test_one_entry_per_kind(self) -> None:
        """Should list each event kind once in first-seen order."""
        events = build_waveform_events(
            [
                {"timestamp_start": 1, "type": "Bark", "subtype": "alert"},
                {"timestamp_start": 4, "type": "Bark", "subtype": "alert"},
                {"timestamp_start": 8, "type": "Growl", "subtype": "growl"},
            ],
            [{"timestamp": 12, "sound": "doorbell"}],
        )
        legend = waveform_legend(events)
        assert [(entry.key, entry.zone) for entry in legend] == [
            ("alert", Zone.YELLOW),
            ("growl", Zone.RED),
            ("environmental", Zone.YELLOW),
        ]
