"""Command-line interface for ethosync."""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from tqdm import tqdm

from ethosync import AnnotationError, AnnotationPipeline, __version__
from ethosync.config import WAVEFORM_SEED_ENV, AnnotationConfig
from ethosync.models.schema import DisplayState, NarrationRequest
from ethosync.stages.timecode import format_timestamp

app = typer.Typer(
    name="ethosync",
    help="Turn animal behavior analyses into synchronized video annotations.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"ethosync {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """ethosync: Synchronized annotations for pet behavior videos."""
    pass


class EchoNarrator:
    """Narration sink that prints each request instead of speaking it."""

    def __init__(self) -> None:
        self.count = 0

    def speak(self, request: NarrationRequest) -> None:
        self.count += 1
        tqdm.write(f"    narrate: {request.text}")

    def cancel(self) -> None:
        pass


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


SourceArgument = Annotated[
    Path,
    typer.Argument(
        help="Path to an analysis result JSON file",
        exists=True,
        readable=True,
        dir_okay=False,
    ),
]

DurationOption = Annotated[
    Optional[float],
    typer.Option(
        "--duration",
        help="Video duration in seconds (default: 17s when unknown)",
    ),
]


@app.command()
def annotate(
    source: SourceArgument,
    duration: DurationOption = None,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            help="Output JSON file path (default: stdout)",
        ),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress progress output",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            help="Log per-stage details",
        ),
    ] = False,
) -> None:
    """Annotate an analysis result and print the annotation bundle as JSON.

    Example:
        ethosync annotate analysis.json --duration 30 -o annotations.json
    """
    from ethosync.utils.logging import get_logger, level_for

    get_logger(level=level_for(quiet=quiet, verbose=verbose))

    try:
        pipeline = AnnotationPipeline(show_progress=not quiet)
        bundle = pipeline.annotate_file(source, duration=duration)

        json_output = bundle.to_json(indent=2)

        if output:
            output.write_text(json_output)
            if not quiet:
                typer.echo(f"Output written to: {output}")
        else:
            typer.echo(json_output)

    except AnnotationError as e:
        _fail(f"Error: {e}")
    except FileNotFoundError as e:
        _fail(f"Error: {e}")
    except ValueError as e:
        _fail(f"Error: {e}")


@app.command()
def replay(
    source: SourceArgument,
    duration: DurationOption = None,
    tick: Annotated[
        float,
        typer.Option(
            "--tick",
            help="Seconds between simulated playback-time updates",
            min=0.01,
        ),
    ] = 0.25,
    narrate: Annotated[
        bool,
        typer.Option(
            "--narrate/--no-narrate",
            help="Print a narration request for every new cue",
        ),
    ] = False,
) -> None:
    """Play an analysis back and print every subtitle cue change.

    Example:
        ethosync replay analysis.json --duration 30 --narrate
    """
    from ethosync.utils.logging import get_logger, level_for

    get_logger(level=level_for(quiet=True))

    try:
        pipeline = AnnotationPipeline(options={"playback": {"narration_enabled": narrate}})
        bundle = pipeline.annotate_file(source, duration=duration)
    except (AnnotationError, FileNotFoundError, ValueError) as e:
        _fail(f"Error: {e}")

    if bundle.state in (DisplayState.NO_DATA, DisplayState.NO_SUBJECT):
        typer.echo(bundle.message or "No annotations available for this video.")
        return

    narrator = EchoNarrator()
    controller = pipeline.controller(bundle, narrator=narrator)
    controller.on_play()

    ticks = int(math.floor(bundle.duration / tick)) + 1
    current_key: str | None = None
    cue_changes = 0

    for i in tqdm(range(ticks), desc="Replaying", unit="tick", leave=False):
        t = i * tick
        cue = controller.on_time_update(t)
        key = cue.key if cue is not None else None
        if key == current_key:
            continue
        current_key = key
        cue_changes += 1
        if cue is None:
            tqdm.write(f"[{format_timestamp(t)}] (cleared)")
        else:
            tqdm.write(f"[{format_timestamp(t)}] ({cue.zone.value}) {cue.text}")

    controller.on_pause()
    typer.echo(
        f"Replayed {bundle.duration:.1f}s: {len(bundle.markers)} markers, "
        f"{cue_changes} cue changes, {narrator.count} narration requests"
    )


@app.command()
def info() -> None:
    """Show version and the default annotation configuration."""
    config = AnnotationConfig()
    try:
        seed = config.waveform.get_seed()
    except ValueError as e:
        _fail(f"Error: {e}")

    typer.echo(f"ethosync v{__version__}")
    typer.echo("")
    typer.echo("Defaults:")
    typer.echo(f"  Duration (when unknown): {config.default_duration:g}s")
    typer.echo(f"  Fusion window: {config.fusion.fusion_window:g}s")
    typer.echo(f"  Source priority: {', '.join(kind.value for kind in config.fusion.source_priority)}")
    typer.echo(f"  Chart step: {config.sampler.step:g}s")
    typer.echo(f"  Waveform bars: {config.waveform.total_bars}")
    typer.echo(f"  Waveform seed: {seed} (override with {WAVEFORM_SEED_ENV})")
    typer.echo(f"  Cue duration: {config.playback.cue_duration:g}s")
    typer.echo("")
    typer.echo("Full configuration:")
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    app()
