"""Unit tests for pitch parsing, naming and re-spelling."""

import pytest

from steelchord.notes import (
    Pitch,
    contextual_interval_name,
    interval_class,
    is_valid_note,
    normalize_note_name,
    parse_pitch,
    parse_pitch_class,
    relative_major,
    spell_in_chord,
    spell_root,
)


def test_parse_pitch_sharp_and_flat() -> None:
    assert parse_pitch("F#4") == Pitch(octave=4, pitch_class=6)
    assert parse_pitch("Db3") == Pitch(octave=3, pitch_class=1)
    assert parse_pitch("F♯4") == parse_pitch("Gb4")


def test_parse_pitch_carries_octave_across_b_and_c() -> None:
    assert parse_pitch("B#3") == Pitch(octave=4, pitch_class=0)
    assert parse_pitch("Cb4") == Pitch(octave=3, pitch_class=11)


def test_parse_pitch_double_accidentals() -> None:
    assert parse_pitch("Fx4") == parse_pitch("G4")
    assert parse_pitch("Ebb4") == parse_pitch("D4")
    assert parse_pitch("A𝄫3") == parse_pitch("G3")


def test_parse_pitch_default_octave() -> None:
    assert parse_pitch("Bb", default_octave=4) == Pitch(octave=4, pitch_class=10)


def test_parse_pitch_without_octave_raises() -> None:
    with pytest.raises(ValueError):
        parse_pitch("Bb")


def test_parse_pitch_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        parse_pitch("H2")
    assert not is_valid_note("H2")
    assert is_valid_note("g#")


def test_pitch_midi_and_names() -> None:
    middle_c = parse_pitch("C4")
    assert middle_c.midi == 60
    assert str(parse_pitch("A#2")) == "A#2"
    assert parse_pitch("E2").midi == 40


def test_pitch_arithmetic() -> None:
    e4 = parse_pitch("E4")
    assert e4.offset(8) == parse_pitch("C5")
    assert e4.offset(-5) == parse_pitch("B3")
    assert parse_pitch("C4").semitones_to(parse_pitch("E3")) == -8


def test_pitch_ordering_is_by_height() -> None:
    assert parse_pitch("B3") < parse_pitch("C4") < parse_pitch("C#4")


def test_interval_class_wraps_negative() -> None:
    assert interval_class(-8) == 4
    assert interval_class(14) == 2


def test_normalize_note_name_prefers_sharps() -> None:
    assert normalize_note_name("Bb") == "A#"
    assert normalize_note_name("E#") == "F"
    assert parse_pitch_class("Cb") == 11


def test_contextual_interval_name_depends_on_chord() -> None:
    assert contextual_interval_name(2, "Major Triad") == "M2"
    assert contextual_interval_name(2, "Dominant 9") == "9"
    assert contextual_interval_name(5, "7 sus4") == "11"
    assert contextual_interval_name(6, "Diminished Triad") == "b5"
    assert contextual_interval_name(6, "Major") == "TT"
    assert contextual_interval_name(8, "Augmented Triad") == "#5"
    assert contextual_interval_name(9, "Diminished 7") == "𝄫7"
    assert contextual_interval_name(9, "Dominant 13") == "13"
    assert contextual_interval_name(-2, "") == "m7"


def test_spell_in_chord_uses_chord_degree() -> None:
    assert spell_in_chord(parse_pitch("D#4"), "C", "Minor Triad") == "Eb4"
    assert spell_in_chord(parse_pitch("E4"), "C", "Major Triad") == "E4"
    assert spell_in_chord(parse_pitch("G#4"), "C", "Augmented Triad") == "G#4"


def test_spell_in_chord_keeps_sharp_spelling_without_degree() -> None:
    assert spell_in_chord(parse_pitch("F#4"), "C", "Major") == "F#4"


def test_spell_root_follows_key_signature() -> None:
    assert spell_root(10, "F") == "Bb"
    assert spell_root(10, "G") == "A#"
    assert spell_root(3, "Cm") == "Eb"
    assert relative_major("Dm") == "F"
