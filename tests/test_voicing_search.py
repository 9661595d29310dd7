"""Unit tests for the voicing search, unison collapsing and scale lookup."""

import pytest

from steelchord.copedent import Copedent
from steelchord.notes import Pitch, parse_pitch
from steelchord.voicing import Voicing, VoicingNote
from steelchord.voicing_search import (
    ScaleNote,
    as_root,
    collapse_unisons,
    find_scale_on_fretboard,
    find_voicings,
    find_voicings_on_strings,
    largest_block,
    max_gap,
    octave_duplicates,
)

C_MAJOR = [0, 4, 7]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _sample_note(string_id: int, name: str, controls: tuple[str, ...] = ()) -> VoicingNote:
    pitch = parse_pitch(name)
    return VoicingNote(
        string_id=string_id,
        open_pitch=pitch,
        fret=0,
        active_controls=controls,
        pitch=pitch,
        semitones_from_root=Pitch(4, 0).semitones_to(pitch),
        is_chord_tone=True,
        is_played=True,
    )


@pytest.fixture(scope="module")
def c_major_voicings() -> list[Voicing]:
    from steelchord.default_copedents import get_default_copedent

    return find_voicings(get_default_copedent(), "C", C_MAJOR, max_per_fret=200)


# ---------------------------------------------------------------------------
# Scoring helpers
# ---------------------------------------------------------------------------

def test_largest_block() -> None:
    assert largest_block([3, 4, 5, 6, 8, 10]) == 4
    assert largest_block([1]) == 1
    assert largest_block([]) == 0


def test_max_gap() -> None:
    assert max_gap([3, 4, 8]) == 3
    assert max_gap([5]) == 0


def test_as_root_defaults_to_octave_four() -> None:
    assert as_root("Bb") == Pitch(4, 10)
    assert as_root(Pitch(2, 1)) == Pitch(2, 1)


# ---------------------------------------------------------------------------
# find_voicings
# ---------------------------------------------------------------------------

def test_fret_three_p1_p2_voicing(c_major_voicings: list[Voicing]) -> None:
    at_three = [v for v in c_major_voicings if v.fret == 3 and v.pedals == ("P1", "P2") and not v.levers]
    assert len(at_three) == 1
    voicing = at_three[0]
    assert [n.string_id for n in voicing.played_notes] == [3, 4, 5, 6, 8, 10]
    assert voicing.score.largest_block == 4
    assert voicing.score.usable_strings == 6
    assert voicing.score.ease_of_play == 2
    assert voicing.parent_scale == "C Ionian"


def test_open_voicing_at_fret_eight(c_major_voicings: list[Voicing]) -> None:
    assert any(v.fret == 8 and not v.control_ids for v in c_major_voicings)


def test_every_voicing_covers_the_chord(c_major_voicings: list[Voicing]) -> None:
    assert c_major_voicings
    for voicing in c_major_voicings:
        assert {0, 4, 7} <= voicing.played_intervals
        assert all(n.is_chord_tone for n in voicing.played_notes)


def test_results_are_ordered_by_fret_then_rank(c_major_voicings: list[Voicing]) -> None:
    frets = [v.fret for v in c_major_voicings]
    assert frets == sorted(frets)
    assert all(0 <= f <= 11 for f in frets)
    for fret in set(frets):
        keys = [
            (-v.score.largest_block, -v.score.usable_strings, v.score.ease_of_play)
            for v in c_major_voicings
            if v.fret == fret
        ]
        assert keys == sorted(keys)


def test_no_duplicate_sounding_notes_per_fret(c_major_voicings: list[Voicing]) -> None:
    seen = set()
    for voicing in c_major_voicings:
        key = (voicing.fret, voicing.played_key)
        assert key not in seen
        seen.add(key)


def test_excluded_split_combination_is_never_tried(c_major_voicings: list[Voicing]) -> None:
    assert not any({"RKR", "RKR2"} <= v.control_ids for v in c_major_voicings)


def test_max_per_fret_caps_results(e9: Copedent) -> None:
    voicings = find_voicings(e9, "C", C_MAJOR, max_per_fret=1)
    frets = [v.fret for v in voicings]
    assert len(frets) == len(set(frets))


def test_access_flag_does_not_change_results(e9: Copedent) -> None:
    full = find_voicings(e9, "G", C_MAJOR, max_per_fret=2, full_access=True)
    limited = find_voicings(e9, "G", C_MAJOR, max_per_fret=2, full_access=False)
    assert [v.to_dict() for v in full] == [v.to_dict() for v in limited]


def test_unplayable_chord_returns_empty() -> None:
    tiny = Copedent.from_dict({"id": "tiny", "strings": ["C4", "E4", "G4"]})
    assert find_voicings(tiny, "C", [0, 1, 2, 3, 4], max_per_fret=3) == []


def test_collapse_mode_leaves_one_string_per_pitch(e9: Copedent) -> None:
    for voicing in find_voicings(e9, "C", C_MAJOR, max_per_fret=3, collapse_unisons=True):
        pitches = [n.pitch for n in voicing.played_notes]
        assert len(pitches) == len(set(pitches))
        assert {0, 4, 7} <= voicing.played_intervals


# ---------------------------------------------------------------------------
# collapse_unisons
# ---------------------------------------------------------------------------

def test_collapse_prefers_shared_control_over_open_string() -> None:
    notes = [
        _sample_note(1, "E4"),
        _sample_note(2, "E4", ("P1",)),
        _sample_note(3, "G4", ("P1",)),
    ]
    collapsed = collapse_unisons(notes)
    assert [n.is_played for n in collapsed] == [False, True, True]
    assert not collapsed[0].is_chord_tone
    assert all(n.is_played for n in notes)


def test_collapse_tie_keeps_highest_string() -> None:
    notes = [_sample_note(1, "E4"), _sample_note(2, "G4"), _sample_note(3, "E4")]
    collapsed = collapse_unisons(notes)
    assert [n.string_id for n in collapsed if n.is_played] == [2, 3]


def test_collapse_open_unison_keeps_higher_string() -> None:
    collapsed = collapse_unisons([_sample_note(1, "E4"), _sample_note(2, "E4")])
    assert [n.string_id for n in collapsed if n.is_played] == [2]


def _silenced(notes: list[VoicingNote]) -> set[int]:
    return {n.string_id for n in notes if not n.is_played}


def test_collapse_is_deterministic() -> None:
    notes = [
        _sample_note(1, "E4"),
        _sample_note(2, "G4", ("P1",)),
        _sample_note(3, "E4"),
        _sample_note(4, "G4", ("P1",)),
        _sample_note(5, "C4"),
        _sample_note(6, "E4", ("LKL",)),
    ]
    first = collapse_unisons(notes)
    second = collapse_unisons(notes)
    reordered = collapse_unisons([notes[i] for i in (5, 3, 0, 4, 1, 2)])

    assert _silenced(first) == {1, 2, 6}
    assert _silenced(second) == _silenced(first)
    assert _silenced(reordered) == _silenced(first)
    assert collapse_unisons(first) == first


def test_collapse_prefers_open_over_dedicated_control() -> None:
    notes = [_sample_note(1, "E4", ("LKL",)), _sample_note(2, "E4"), _sample_note(3, "G4")]
    collapsed = collapse_unisons(notes)
    assert [n.string_id for n in collapsed if n.is_played] == [2, 3]


def test_collapse_without_unisons_is_a_no_op() -> None:
    notes = [_sample_note(1, "E4"), _sample_note(2, "G4")]
    assert collapse_unisons(notes) == notes


# ---------------------------------------------------------------------------
# Restricted strings, octave copies and scales
# ---------------------------------------------------------------------------

def test_find_voicings_on_strings(e9: Copedent) -> None:
    voicings = find_voicings_on_strings(e9, "C", C_MAJOR, [3, 4, 5])
    frets = [v.fret for v in voicings]
    assert len(frets) == len(set(frets))
    assert all([n.string_id for n in v.notes] == [3, 4, 5] for v in voicings)
    at_three = [v for v in voicings if v.fret == 3]
    assert at_three[0].pedals == ("P1", "P2")


def test_find_voicings_on_no_strings(e9: Copedent) -> None:
    assert find_voicings_on_strings(e9, "C", C_MAJOR, []) == []


def test_octave_duplicates(c_major_voicings: list[Voicing]) -> None:
    sample = [v for v in c_major_voicings if v.fret in (3, 11)][:2]
    extended = octave_duplicates(sample, max_fret=20)
    copies = extended[len(sample):]
    assert extended[: len(sample)] == sample
    assert all(copy.fret <= 20 for copy in copies)
    for copy in copies:
        original = next(v for v in sample if v.fret == copy.fret - 12)
        assert copy.midi_notes() == [m + 12 for m in original.midi_notes()]
    assert sample[0].fret in (3, 11)


def test_find_scale_on_fretboard(e9: Copedent) -> None:
    located = find_scale_on_fretboard(e9, "E", "Ionian")
    assert ScaleNote(fret=0, string_id=4, note_name="E4", interval_name="R") in located
    assert ScaleNote(fret=0, string_id=1, note_name="F#4", interval_name="M2") in located
    assert all(0 <= n.fret <= 11 for n in located)


def test_find_scale_on_fretboard_unknown_scale(e9: Copedent) -> None:
    assert find_scale_on_fretboard(e9, "E", "Nonexistent") == []


def test_open_triad_tuning_sounds_exactly_the_chord() -> None:
    triad = Copedent.from_dict(
        {
            "id": "triad",
            "strings": ["G4", "E4", "C4", "A3"],
            "pedals": [{"id": "P1", "name": "A", "changes": {"4": 2}}],
        }
    )
    voicings = find_voicings(triad, "C", C_MAJOR, max_per_fret=5)
    open_voicings = [v for v in voicings if v.fret == 0 and not v.control_ids]
    assert len(open_voicings) == 1
    assert open_voicings[0].played_intervals == {0, 4, 7}
    assert [n.string_id for n in open_voicings[0].played_notes] == [1, 2, 3]
