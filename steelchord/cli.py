"""steelchord CLI entry point."""

import json
import logging
import random
import sys

import click

from steelchord import __version__
from steelchord.cache import VoicingCache
from steelchord.chord_identifier import identify_chord
from steelchord.chord_types import CHORD_TYPES, parse_chord
from steelchord.copedent import Copedent, format_control_combination, load_copedent
from steelchord.default_copedents import DEFAULT_COPEDENT_ID, DEFAULT_COPEDENTS, get_default_copedent
from steelchord.directional import PATTERNS, apply_directional_selection
from steelchord.midi_exporter import MidiExporter
from steelchord.notes import spell_in_chord
from steelchord.voice_leading import (
    Direction,
    DirectionalHints,
    candidates_for_chord,
    optimize_progression,
    quality_score,
)
from steelchord.voicing import Voicing
from steelchord.voicing_search import MAX_DISPLAY_FRET, find_voicings

MAX_RESULTS_PER_FRET = 50


def _load(copedent_id: str, copedent_file: str | None) -> Copedent:
    if copedent_file is not None:
        return load_copedent(copedent_file)
    return get_default_copedent(copedent_id)


def _parse_string_ids(text: str) -> list[int]:
    try:
        return [int(part) for part in text.split(",") if part.strip()]
    except ValueError:
        raise click.BadParameter(f"expected comma-separated string numbers, got {text!r}") from None


def _describe(voicing: Voicing, copedent: Copedent, root_name: str, chord_type: str) -> str:
    controls = format_control_combination(voicing.pedals, voicing.levers, voicing.mechanisms, copedent)
    notes = "  ".join(
        f"{n.string_id}:{spell_in_chord(n.pitch, root_name, chord_type)}"
        for n in voicing.played_notes
        if n.pitch is not None
    )
    return f"  Fret {voicing.fret:>2}  {controls:<28} {notes}"


def _fail(message: str) -> None:
    click.echo(f"  ERROR: {message}", err=True)
    sys.exit(1)


copedent_option = click.option(
    "--copedent",
    "copedent_id",
    type=click.Choice(sorted(DEFAULT_COPEDENTS)),
    default=DEFAULT_COPEDENT_ID,
    show_default=True,
    help="Built-in copedent to use.",
)
copedent_file_option = click.option(
    "--copedent-file",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    default=None,
    metavar="PATH",
    help="Load the copedent from a JSON file instead of the built-ins.",
)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="steelchord")
@click.option("--verbose", "-v", is_flag=True, help="Log search and optimisation details to stderr.")
def main(verbose: bool) -> None:
    """steelchord: pedal steel chord finder and voice-leading optimiser."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ── copedents subcommand ───────────────────────────────────────────────────────

@main.command()
def copedents() -> None:
    """List the built-in copedents."""
    for copedent_id in DEFAULT_COPEDENTS:
        copedent = get_default_copedent(copedent_id)
        click.echo(
            f"{copedent.id:<30} {copedent.name:<32} "
            f"{len(copedent.strings)} strings, {len(copedent.pedals)} pedals, "
            f"{len(copedent.active_levers)} levers"
        )


# ── find subcommand ────────────────────────────────────────────────────────────

@main.command()
@click.argument("root")
@click.argument("chord_type")
@copedent_option
@copedent_file_option
@click.option(
    "--per-fret",
    type=click.IntRange(1, MAX_RESULTS_PER_FRET),
    default=3,
    show_default=True,
    help="Maximum voicings kept per fret.",
)
@click.option("--collapse-unisons", is_flag=True, help="Silence strings doubling the same pitch.")
@click.option("--fret", type=click.IntRange(0, 11), default=None, help="Only show voicings at this fret.")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON.")
def find(
    root: str,
    chord_type: str,
    copedent_id: str,
    copedent_file: str | None,
    per_fret: int,
    collapse_unisons: bool,
    fret: int | None,
    as_json: bool,
) -> None:
    """
    Find voicings of a chord.

    ROOT is the chord root (e.g. C, F#, Bb); CHORD_TYPE a chord type name
    such as "Major Triad" or "Dominant 7".

    \b
    Examples:
      steelchord find C "Major Triad"
      steelchord find Bb "Dominant 7" --per-fret 1 --copedent default-c6-standard
    """
    if chord_type not in CHORD_TYPES:
        _fail(f"Unknown chord type {chord_type!r}")
    try:
        copedent = _load(copedent_id, copedent_file)
        chord = parse_chord(f"{root}:{chord_type}")
    except (ValueError, OSError) as exc:
        _fail(str(exc))

    voicings = find_voicings(copedent, chord.root, chord.intervals, per_fret, True, collapse_unisons)
    if fret is not None:
        voicings = [v for v in voicings if v.fret == fret]

    if as_json:
        click.echo(json.dumps([v.to_dict() for v in voicings], indent=2, ensure_ascii=False))
        return
    if not voicings:
        click.echo(f"No voicings for {chord.name} on {copedent.name}.")
        return

    click.echo(f"{chord.name} on {copedent.name}: {len(voicings)} voicing(s)")
    for voicing in voicings:
        line = _describe(voicing, copedent, root, chord_type)
        if voicing.parent_scale:
            line += f"   [{voicing.parent_scale}]"
        click.echo(line)


# ── identify subcommand ────────────────────────────────────────────────────────

@main.command()
@click.option("--fret", type=click.IntRange(0, 24), required=True, help="Bar position.")
@click.option("--strings", "strings_text", required=True, metavar="LIST", help="Played strings, e.g. 3,4,5.")
@click.option("--pedal", "pedals", multiple=True, metavar="ID", help="Pressed pedal (repeatable).")
@click.option("--lever", "levers", multiple=True, metavar="ID", help="Engaged knee lever (repeatable).")
@click.option("--mechanism", "mechanisms", multiple=True, metavar="ID", help="Engaged mechanism (repeatable).")
@copedent_option
@copedent_file_option
def identify(
    fret: int,
    strings_text: str,
    pedals: tuple[str, ...],
    levers: tuple[str, ...],
    mechanisms: tuple[str, ...],
    copedent_id: str,
    copedent_file: str | None,
) -> None:
    """
    Name the chord sounded by a set of strings.

    \b
    Examples:
      steelchord identify --fret 3 --strings 3,4,5,6 --pedal P1 --pedal P2
    """
    string_ids = _parse_string_ids(strings_text)
    try:
        copedent = _load(copedent_id, copedent_file)
    except (ValueError, OSError) as exc:
        _fail(str(exc))

    candidates = identify_chord(copedent, fret, string_ids, pedals, levers, mechanisms)
    if not candidates:
        click.echo("Fewer than three distinct notes sound; no chord to name.")
        return
    for rank, candidate in enumerate(candidates, start=1):
        click.echo(f"  {rank}. {candidate.name:<40} score {candidate.score:7.1f}")


# ── progression subcommand ─────────────────────────────────────────────────────

@main.command()
@click.argument("chords", nargs=-1, required=True)
@copedent_option
@copedent_file_option
@click.option(
    "--direction",
    type=click.Choice([d.value for d in Direction] + ["up", "down"], case_sensitive=False),
    default=Direction.MIXED.value,
    show_default=True,
    help="Preferred fret movement between chords.",
)
@click.option(
    "--per-fret",
    type=click.IntRange(1, MAX_RESULTS_PER_FRET),
    default=10,
    show_default=True,
    help="Candidate voicings per fret considered for each chord.",
)
@click.option("--strings", "strings_text", default=None, metavar="LIST", help="Only use these strings, e.g. 3,4,5,6.")
@click.option("--midi", "midi_path", default=None, metavar="PATH", help="Also write the result as a MIDI file.")
@click.option(
    "--tempo",
    type=click.IntRange(20, 300),
    default=80,
    show_default=True,
    help="MIDI playback tempo in BPM.",
)
@click.option(
    "--pattern",
    type=click.Choice(PATTERNS, case_sensitive=False),
    default=None,
    help="Walk the neck in a fret pattern instead of minimising movement.",
)
@click.option(
    "--fret-start",
    type=click.IntRange(0, MAX_DISPLAY_FRET),
    default=0,
    show_default=True,
    help="Fret the --pattern walk starts from.",
)
@click.option(
    "--fret-range",
    type=(click.IntRange(0, MAX_DISPLAY_FRET), click.IntRange(0, MAX_DISPLAY_FRET)),
    default=(0, MAX_DISPLAY_FRET),
    show_default=True,
    metavar="LOW HIGH",
    help="Inclusive fret bounds for the --pattern walk.",
)
@click.option(
    "--jump",
    type=click.IntRange(0, MAX_DISPLAY_FRET),
    default=0,
    show_default=True,
    help="Frets moved per chord by --pattern (largest jump for 'random').",
)
@click.option("--seed", type=int, default=None, help="Random seed for --pattern random.")
def progression(
    chords: tuple[str, ...],
    copedent_id: str,
    copedent_file: str | None,
    direction: str,
    per_fret: int,
    strings_text: str | None,
    midi_path: str | None,
    tempo: int,
    pattern: str | None,
    fret_start: int,
    fret_range: tuple[int, int],
    jump: int,
    seed: int | None,
) -> None:
    """
    Voice a chord progression with the smoothest movement.

    CHORDS are symbols (C, Am7, G7) or "ROOT:Type" pairs. With --pattern the
    voicings follow a fret walk (up, down, zigzag or random) instead.

    \b
    Examples:
      steelchord progression C F G7 C
      steelchord progression C G --direction ascending --midi cg.mid
      steelchord progression C F G C --pattern zigzag-up --jump 3
    """
    try:
        copedent = _load(copedent_id, copedent_file)
        parsed = [parse_chord(text) for text in chords]
    except (ValueError, OSError) as exc:
        _fail(str(exc))
    if fret_range[0] > fret_range[1]:
        _fail(f"Fret range {fret_range[0]}-{fret_range[1]} is empty")

    string_ids = _parse_string_ids(strings_text) if strings_text else None
    hints = DirectionalHints(global_direction=Direction.parse(direction))
    cache = VoicingCache()

    if pattern is None:
        result = optimize_progression(copedent, parsed, string_ids, hints, True, per_fret, cache)
        if not result.success:
            if result.failed_chord is not None:
                _fail(f"No voicing for chord {result.failed_step_index + 1} ({result.failed_chord.name})")
            _fail("No path through the progression")
        path = result.path
        report = quality_score(path, hints)
        total_cost = result.total_cost
    else:
        alternatives = []
        for index, chord in enumerate(parsed):
            candidates = candidates_for_chord(copedent, chord, string_ids, True, per_fret, cache)
            if not candidates:
                _fail(f"No voicing for chord {index + 1} ({chord.name})")
            alternatives.append(candidates)
        rng = random.Random(seed)
        path = apply_directional_selection(alternatives, pattern.lower(), fret_start, fret_range, jump, rng=rng)
        report = quality_score(path, hints)
        total_cost = sum(report.costs)

    for chord, voicing in zip(parsed, path):
        click.echo(f"{chord.name:<20}{_describe(voicing, copedent, chord.root, chord.chord_type)}")
    click.echo(f"Total cost {total_cost:.1f}  |  Quality {report.score:.1f}/10")

    if midi_path is not None:
        try:
            MidiExporter(tempo=tempo).export(path, midi_path)
        except OSError as exc:
            _fail(f"Could not write MIDI file: {exc}")
        click.echo(f"Wrote '{midi_path}'.")
