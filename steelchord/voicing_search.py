"""Voicing search: try every fret and control combination, then score and filter."""

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from steelchord.chord_types import full_chord_intervals
from steelchord.combinations import ControlCombination, generate_valid_control_combinations
from steelchord.copedent import Copedent
from steelchord.notes import (
    DEFAULT_OCTAVE,
    SEMITONES_PER_OCTAVE,
    Pitch,
    interval_class,
    parse_pitch,
    spell_in_scale,
)
from steelchord.resolver import resolve_fretted_notes
from steelchord.scales import SCALES, find_parent_scale, scale_degree_name
from steelchord.voicing import Voicing, VoicingNote, VoicingScore

logger = logging.getLogger(__name__)

SEARCH_FRETS = range(0, 12)
MAX_DISPLAY_FRET = 24


@dataclass(frozen=True)
class ScaleNote:
    """A scale tone located on the neck."""

    fret: int
    string_id: int
    note_name: str
    interval_name: str


def as_root(root: Pitch | str) -> Pitch:
    """Accept a Pitch or a note name (octave optional) as a chord root."""
    if isinstance(root, Pitch):
        return root
    return parse_pitch(root, default_octave=DEFAULT_OCTAVE)


# ── Scoring helpers ─────────────────────────────────────────────────────────

def largest_block(string_ids: Iterable[int]) -> int:
    """Length of the longest run of consecutive string ids."""
    ordered = sorted(string_ids)
    if not ordered:
        return 0
    best = run = 1
    for previous, current in zip(ordered, ordered[1:]):
        run = run + 1 if current == previous + 1 else 1
        best = max(best, run)
    return best


def max_gap(string_ids: Iterable[int]) -> int:
    """Largest number of skipped strings between neighbouring played strings."""
    ordered = sorted(string_ids)
    return max((b - a - 1 for a, b in zip(ordered, ordered[1:])), default=0)


def _mark_chord_tones(notes: list[VoicingNote], targets: set[int]) -> list[VoicingNote]:
    for note in notes:
        tone = not note.is_muted and note.interval is not None and note.interval in targets
        note.is_chord_tone = tone
        note.is_played = tone
    return notes


def collapse_unisons(notes: list[VoicingNote]) -> list[VoicingNote]:
    """
    Keep one string from each group of played strings sounding the same pitch.

    Within a group the kept string is chosen by, in order: control efficiency
    (a control shared with other played strings beats an open string, which
    beats a control used only here), the smallest gap left between played
    strings, then the highest string id. Silenced strings stop being chord
    tones. Returns a new list; the input is not modified.
    """
    played = [n for n in notes if n.is_played]
    if len(played) < 2:
        return notes

    control_counts = Counter(c for n in played for c in n.active_controls)
    groups: dict[Pitch | None, list[VoicingNote]] = {}
    for note in played:
        groups.setdefault(note.pitch, []).append(note)

    silenced: set[int] = set()
    for group in groups.values():
        if len(group) < 2:
            continue

        def rank(note: VoicingNote) -> tuple[int, int, int]:
            if not note.active_controls:
                efficiency = 2
            elif any(control_counts[c] > 1 for c in note.active_controls):
                efficiency = 3
            else:
                efficiency = 1
            others = {n.string_id for n in group if n.string_id != note.string_id}
            remaining = [n.string_id for n in played if n.string_id not in others]
            return efficiency, 100 - max_gap(remaining), note.string_id

        ranked = sorted(group, key=rank, reverse=True)
        silenced.update(n.string_id for n in ranked[1:])

    if not silenced:
        return notes
    collapsed = []
    for note in notes:
        note = note.clone()
        if note.string_id in silenced:
            note.is_played = False
            note.is_chord_tone = False
        collapsed.append(note)
    return collapsed


def _filter_supersets(voicings: list[Voicing]) -> list[Voicing]:
    accepted: list[Voicing] = []
    for voicing in voicings:
        controls = voicing.control_ids
        if not any(controls > kept.control_ids for kept in accepted):
            accepted.append(voicing)
    return accepted


def _dedupe_by_notes(voicings: list[Voicing]) -> list[Voicing]:
    seen: set[str] = set()
    unique = []
    for voicing in voicings:
        key = voicing.played_key
        if key not in seen:
            seen.add(key)
            unique.append(voicing)
    return unique


def _excluded_control_sets(copedent: Copedent) -> set[frozenset[str]]:
    return {split.control_ids for split in copedent.splits if not split.is_included}


def _build_voicing(
    copedent: Copedent,
    strings: list,
    combo: ControlCombination,
    root: Pitch,
    fret: int,
    targets: set[int],
    collapse: bool,
) -> Voicing | None:
    notes = resolve_fretted_notes(strings, copedent, combo.pedals, combo.levers, combo.mechanisms, root, fret)
    notes = _mark_chord_tones(notes, targets)
    if collapse:
        notes = collapse_unisons(notes)

    played = [n for n in notes if n.is_played]
    found = {n.interval for n in played}
    if not played or not targets <= found:
        return None

    return Voicing(
        fret=fret,
        pedals=combo.pedals,
        levers=combo.levers,
        mechanisms=combo.mechanisms,
        notes=notes,
        score=VoicingScore(
            largest_block=largest_block(n.string_id for n in played),
            usable_strings=len(played),
            ease_of_play=combo.size,
        ),
    )


# ── Public API ──────────────────────────────────────────────────────────────

def find_voicings(
    copedent: Copedent,
    root: Pitch | str,
    intervals: list[int],
    max_per_fret: int,
    full_access: bool = True,
    collapse_unisons: bool = False,
) -> list[Voicing]:
    """
    Find ways to play a chord at frets 0-11.

    Per fret, qualifying voicings are ranked by largest string block, then
    played-string count (both descending), then control count (ascending).
    A voicing whose controls strictly contain an already accepted voicing's
    controls is dropped, as is one sounding the same (string, pitch) set as
    an accepted voicing. At most ``max_per_fret`` survive per fret.

    Args:
        copedent:         Instrument to search.
        root:             Chord root; its octave only affects semitone offsets.
        intervals:        Chord intervals from the root (mod 12 for matching).
        max_per_fret:     Result cap per fret.
        full_access:      Access tier flag; every tier searches the full copedent.
        collapse_unisons: Silence duplicate pitches before qualifying.

    Returns:
        Voicings in fret order; an empty list if the chord cannot be played.
    """
    root = as_root(root)
    targets = {interval_class(i) for i in intervals}
    full_intervals = full_chord_intervals(intervals)

    excluded = _excluded_control_sets(copedent)
    combos = [
        combo for combo in generate_valid_control_combinations(copedent)
        if frozenset(combo.control_ids) not in excluded
    ]

    found: list[Voicing] = []
    for fret in SEARCH_FRETS:
        at_fret = []
        for combo in combos:
            voicing = _build_voicing(copedent, copedent.strings, combo, root, fret, targets, collapse_unisons)
            if voicing is None:
                continue
            voicing.parent_scale = find_parent_scale(root.name, sorted(voicing.played_intervals), full_intervals)
            at_fret.append(voicing)

        at_fret.sort(key=lambda v: (-v.score.largest_block, -v.score.usable_strings, v.score.ease_of_play))
        kept = _dedupe_by_notes(_filter_supersets(at_fret))[:max_per_fret]
        logger.debug("fret %d: %d qualifying, %d kept", fret, len(at_fret), len(kept))
        found.extend(kept)
    return found


def find_voicings_on_strings(
    copedent: Copedent,
    root: Pitch | str,
    intervals: list[int],
    string_ids: Iterable[int],
) -> list[Voicing]:
    """
    Find the single best voicing per fret using only the given strings.

    Ranking favours more played strings, then fewer controls, then a larger
    string block. Split exclusions only mute strings here; no combination is
    removed up front.
    """
    wanted = set(string_ids)
    strings = [s for s in copedent.strings if s.id in wanted]
    if not strings:
        return []

    root = as_root(root)
    targets = {interval_class(i) for i in intervals}
    combos = generate_valid_control_combinations(copedent)

    found: list[Voicing] = []
    for fret in SEARCH_FRETS:
        at_fret = [
            voicing for combo in combos
            if (voicing := _build_voicing(copedent, strings, combo, root, fret, targets, False)) is not None
        ]
        at_fret.sort(key=lambda v: (-v.score.usable_strings, v.score.ease_of_play, -v.score.largest_block))
        unique = _dedupe_by_notes(_filter_supersets(at_fret))
        if unique:
            found.append(unique[0])
    return found


def octave_duplicates(voicings: list[Voicing], max_fret: int = MAX_DISPLAY_FRET) -> list[Voicing]:
    """Append a copy of each voicing twelve frets higher, where it still fits on the neck."""
    copies = []
    for voicing in voicings:
        if voicing.fret + SEMITONES_PER_OCTAVE > max_fret:
            continue
        copy = voicing.clone()
        copy.fret += SEMITONES_PER_OCTAVE
        for note in copy.notes:
            note.fret += SEMITONES_PER_OCTAVE
            if note.pitch is not None:
                note.pitch = note.pitch.offset(SEMITONES_PER_OCTAVE)
                note.semitones_from_root += SEMITONES_PER_OCTAVE
        copies.append(copy)
    return [*voicings, *copies]


def find_scale_on_fretboard(
    copedent: Copedent,
    root_name: str,
    scale_name: str,
    pedal_ids: Iterable[str] = (),
    lever_ids: Iterable[str] = (),
    mechanism_ids: Iterable[str] = (),
) -> list[ScaleNote]:
    """Locate every tone of a scale at frets 0-11 for one control combination."""
    if scale_name not in SCALES:
        return []
    scale_intervals = set(SCALES[scale_name])
    root = parse_pitch(root_name, default_octave=DEFAULT_OCTAVE)
    pedal_ids, lever_ids, mechanism_ids = tuple(pedal_ids), tuple(lever_ids), tuple(mechanism_ids)

    located = []
    for fret in SEARCH_FRETS:
        for note in resolve_fretted_notes(copedent.strings, copedent, pedal_ids, lever_ids, mechanism_ids, root, fret):
            if note.pitch is None or note.interval not in scale_intervals:
                continue
            degree = scale_degree_name(note.interval, scale_name)
            located.append(
                ScaleNote(
                    fret=fret,
                    string_id=note.string_id,
                    note_name=spell_in_scale(note.pitch, root_name, degree),
                    interval_name=degree,
                )
            )
    return located
