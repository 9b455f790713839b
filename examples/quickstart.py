#!/usr/bin/env python3
"""ethosync Quickstart Example.

This script demonstrates the basic usage of ethosync to turn an analysis
result into markers, a chart curve, a waveform and subtitles.

Usage:
    python examples/quickstart.py path/to/analysis.json [duration_seconds]
"""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    """Run the quickstart example."""
    import ethosync
    from ethosync.stages.playback import RecordingNarrator

    if len(sys.argv) < 2:
        print("Usage: python quickstart.py <analysis.json> [duration_seconds]")
        print("\nExample:")
        print("  python quickstart.py analysis.json 30")
        sys.exit(1)

    analysis_path = Path(sys.argv[1])
    duration = float(sys.argv[2]) if len(sys.argv) > 2 else None

    if not analysis_path.exists():
        print(f"Error: File not found: {analysis_path}")
        sys.exit(1)

    print(f"ethosync v{ethosync.__version__}")
    print(f"Annotating: {analysis_path}")
    print("-" * 50)

    pipeline = ethosync.AnnotationPipeline(options={"playback": {"narration_enabled": True}})
    bundle = pipeline.annotate_file(analysis_path, duration=duration)

    print(f"\nState: {bundle.state.value}")
    print(f"Duration: {bundle.duration:.1f}s")
    print(f"Overall: {bundle.overall_score:.0f} ({bundle.overall_zone.value})")
    print(f"Chart points: {len(bundle.chart)}")
    print(f"Active waveform bars: {sum(bar.is_active for bar in bundle.waveform)}")

    print("\n" + "=" * 50)
    print("MARKERS")
    print("=" * 50)

    for marker in bundle.markers:
        print(f"\n[{marker.time:.1f}s] ({marker.zone.value}) {marker.label}")
        print(f"  Source: {marker.source.value}, score {marker.score:.0f}")
        if marker.evidence:
            print(f"  Evidence: {'; '.join(marker.evidence)}")

    # Play the video back at 4 updates per second
    narrator = RecordingNarrator()
    controller = pipeline.controller(bundle, narrator=narrator)
    controller.on_play()
    for i in range(int(bundle.duration * 4) + 1):
        controller.on_time_update(i / 4)

    print(f"\nNarrated {len(narrator.spoken)} subtitle cues")

    output_path = analysis_path.with_suffix(".ethosync.json")
    bundle.to_json(output_path)
    print(f"\nOutput saved to: {output_path}")


if __name__ == "__main__":
    main()
