"""Pytest configuration and fixtures for ethosync tests."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import pytest

from ethosync.config import WAVEFORM_SEED_ENV


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_analysis() -> dict[str, Any]:
    """A dog-at-the-door analysis touching every observation list.

    Expected canonical markers at 5s (timeline), 10s (interpretation),
    15s (key moment) and 20s (timeline). The interpretation at 5.4s and the
    growl at 5s fall inside the 5s timeline event's window and are dropped.
    """
    return {
        "timeline": [
            {
                "timestamp": "0:05",
                "event_description": "Low growl at stranger",
                "evidence": ["lip lift", "stiff posture"],
                "distress_score": 72,
            },
            {"timestamp": "0:20", "event": "Relaxed sniffing", "event_type": "behavioral"},
        ],
        "interpret_lines": [
            {"timestamp": 5.4, "pet_pov": "Who are you? Stay back!", "zone": "red"},
            {"timestamp": "0:10", "pet_pov": "I think I can relax now"},
        ],
        "audio_analysis": {
            "vocalizations_detected": [
                {
                    "timestamp_start": "0:05",
                    "timestamp_end": "0:08",
                    "type": "Growl",
                    "subtype": "warning growl",
                    "interpretation": "Warning the stranger",
                }
            ],
            "environmental_sounds": [
                {"timestamp": "0:02", "sound": "doorbell", "pet_reaction": "ears up"}
            ],
        },
        "visual_analysis": {
            "key_behavioral_moments": [
                {"timestamp": "0:15", "behavior": "Tail tucked", "significance": "Fear signal"}
            ],
            "facs_codes_detected": [
                {
                    "code": "EAD103",
                    "description": "Ears flattener",
                    "timestamp": "0:05",
                    "valence": "negative",
                    "confidence": "high",
                }
            ],
        },
        "overall_assessment": {"distress_score": 62},
        "video_context": "Dog at the front door",
    }


@pytest.fixture
def facs_only_analysis() -> dict[str, Any]:
    """An analysis whose only observations are facial action codes."""
    return {
        "timeline": [],
        "interpret_lines": [],
        "visual_analysis": {
            "facs_codes_detected": [
                {
                    "code": "EAD103",
                    "description": "Ears flattener",
                    "timestamp": "0:03",
                    "valence": "negative",
                }
            ]
        },
    }


@pytest.fixture
def no_subject_analysis() -> dict[str, Any]:
    """An analysis where the service found no animal."""
    return {
        "error": True,
        "error_type": "no_pet_detected",
        "message": "No pet was detected in this video.",
    }


@pytest.fixture
def analysis_file(temp_dir: Path, sample_analysis: dict[str, Any]) -> Path:
    """Write the sample analysis to a JSON file."""
    path = temp_dir / "analysis.json"
    path.write_text(json.dumps(sample_analysis))
    return path


@pytest.fixture
def waveform_seed_env():
    """Set the waveform seed environment variable for the duration of a test."""
    original = os.environ.get(WAVEFORM_SEED_ENV)
    os.environ[WAVEFORM_SEED_ENV] = "7"
    yield 7
    if original is None:
        os.environ.pop(WAVEFORM_SEED_ENV, None)
    else:
        os.environ[WAVEFORM_SEED_ENV] = original


@pytest.fixture
def no_waveform_seed_env():
    """Ensure the waveform seed environment variable is not set."""
    original = os.environ.get(WAVEFORM_SEED_ENV)
    os.environ.pop(WAVEFORM_SEED_ENV, None)
    yield
    if original is not None:
        os.environ[WAVEFORM_SEED_ENV] = original
