"""Chord-type table, the Chord value type and chord-symbol parsing."""

import re
from dataclasses import dataclass

from steelchord.notes import interval_class, normalize_note_name

# ── Interval tables ─────────────────────────────────────────────────────────
# Intervals are listed root, third, fifth, seventh, then tensions; tensions
# above the octave are written mod 12 (9th = 2, 11th = 5, 13th = 9).

TRIADS: dict[str, list[int]] = {
    "Major Triad": [0, 4, 7], "Minor Triad": [0, 3, 7], "Diminished Triad": [0, 3, 6],
    "Augmented Triad": [0, 4, 8], "sus2 Triad": [0, 2, 7], "sus4 Triad": [0, 5, 7],
    "Lydian Triad no 5th": [0, 4, 6], "Lydian Triad no 3rd": [0, 6, 7],
}

SEVENTH_CHORDS: dict[str, list[int]] = {
    "Major 7": [0, 4, 7, 11], "Minor 7": [0, 3, 7, 10], "Dominant 7": [0, 4, 7, 10],
    "Diminished 7": [0, 3, 6, 9], "Minor 7b5": [0, 3, 6, 10], "Minor Major 7": [0, 3, 7, 11],
}

SUS_SEVENTH_CHORDS: dict[str, list[int]] = {
    "Major 7 sus4": [0, 5, 7, 11], "7 sus4": [0, 5, 7, 10], "Diminished 7 sus4": [0, 5, 6, 9],
    "Major 7 sus4 b5": [0, 5, 6, 11], "7 sus4 b5": [0, 5, 6, 10], "Major 7 sus2": [0, 2, 7, 11],
    "7 sus2": [0, 2, 7, 10], "Diminished 7 sus2": [0, 2, 6, 9], "Major 7 sus2 b5": [0, 2, 6, 11],
    "7 sus2 b5": [0, 2, 6, 10],
}

SIXTH_CHORDS: dict[str, list[int]] = {
    "Major 6": [0, 4, 7, 9], "Minor 6": [0, 3, 7, 9], "sus4 6": [0, 5, 7, 9],
}

ADD_9_CHORDS: dict[str, list[int]] = {
    "Major Triad add 9": [0, 4, 7, 2], "Minor Triad add 9": [0, 3, 7, 2],
    "Diminished Triad add 9": [0, 3, 6, 2], "Augmented Triad add 9": [0, 4, 8, 2],
    "Major Triad add b9": [0, 4, 7, 1], "Minor Triad add b9": [0, 3, 7, 1],
    "Diminished Triad add b9": [0, 3, 6, 1], "Augmented Triad add b9": [0, 4, 8, 1],
}

ADD_11_CHORDS: dict[str, list[int]] = {
    "Major Triad add 11": [0, 4, 7, 5], "Minor Triad add 11": [0, 3, 7, 5],
    "Diminished Triad add 11": [0, 3, 6, 5], "Major Triad add #11": [0, 4, 7, 6],
}

ALTERED_SEVENTH_CHORDS: dict[str, list[int]] = {
    "Dominant 7b5": [0, 4, 6, 10], "Dominant 7#5": [0, 4, 8, 10], "Major 7b5": [0, 4, 6, 11],
    "Major 7#5": [0, 4, 8, 11], "Minor 7#5": [0, 3, 8, 10],
}

NINTH_CHORDS: dict[str, list[int]] = {
    "Major 9": [0, 4, 7, 11, 2], "Major b9": [0, 4, 7, 11, 1], "Major #9": [0, 4, 7, 11, 3],
    "Minor 9": [0, 3, 7, 10, 2], "Minor b9": [0, 3, 7, 10, 1], "Dominant 9": [0, 4, 7, 10, 2],
    "Dominant b9": [0, 4, 7, 10, 1], "Dominant #9": [0, 4, 7, 10, 3],
}

ALTERED_NINTH_CHORDS: dict[str, list[int]] = {
    "Dominant 9b5": [0, 4, 6, 10, 2], "Dominant 9#5": [0, 4, 8, 10, 2],
    "Dominant b9b5": [0, 4, 6, 10, 1], "Dominant b9#5": [0, 4, 8, 10, 1],
    "Dominant #9b5": [0, 4, 6, 10, 3], "Dominant #9#5": [0, 4, 8, 10, 3],
    "Major 9b5": [0, 4, 6, 11, 2], "Major 9#5": [0, 4, 8, 11, 2],
    "Major b9b5": [0, 4, 6, 11, 1], "Major b9#5": [0, 4, 8, 11, 1],
    "Major #9b5": [0, 4, 6, 11, 3], "Major #9#5": [0, 4, 8, 11, 3],
    "Minor 9b5": [0, 3, 6, 10, 2], "Minor 9#5": [0, 3, 8, 10, 2],
    "Minor b9b5": [0, 3, 6, 10, 1], "Minor b9#5": [0, 3, 8, 10, 1],
}

SIXTH_NINTH_CHORDS: dict[str, list[int]] = {
    "6/9": [0, 4, 7, 9, 2], "Minor 6/9": [0, 3, 7, 9, 2], "6/9 sus4": [0, 5, 7, 9, 2],
}

ELEVENTH_CHORDS: dict[str, list[int]] = {
    "Major 11": [0, 4, 7, 11, 2, 5], "Major 11b9": [0, 4, 7, 11, 1, 5],
    "Major 11#9": [0, 4, 7, 11, 3, 5], "Minor 11": [0, 3, 7, 10, 2, 5],
    "Minor 11b9": [0, 3, 7, 10, 1, 5], "Dominant 11": [0, 4, 7, 10, 2, 5],
    "Dominant 11b9": [0, 4, 7, 10, 1, 5], "Dominant 11#9": [0, 4, 7, 10, 3, 5],
}

SHARP_ELEVENTH_CHORDS: dict[str, list[int]] = {
    "Major #11": [0, 4, 7, 11, 2, 6], "Major #11b9": [0, 4, 7, 11, 1, 6],
    "Major #11#9": [0, 4, 7, 11, 3, 6], "Minor #11": [0, 3, 7, 10, 2, 6],
    "Minor #11b9": [0, 3, 7, 10, 1, 6], "Dominant #11": [0, 4, 7, 10, 2, 6],
    "Dominant #11b9": [0, 4, 7, 10, 1, 6], "Dominant #11#9": [0, 4, 7, 10, 3, 6],
}

ALTERED_ELEVENTH_CHORDS: dict[str, list[int]] = {
    "Dominant 11b5": [0, 4, 6, 10, 2, 5], "Dominant 11#5": [0, 4, 8, 10, 2, 5],
    "Dominant 11b9b5": [0, 4, 6, 10, 1, 5], "Dominant 11b9#5": [0, 4, 8, 10, 1, 5],
    "Dominant 11#9b5": [0, 4, 6, 10, 3, 5], "Dominant 11#9#5": [0, 4, 8, 10, 3, 5],
    "Major 11b5": [0, 4, 6, 11, 2, 5], "Major 11#5": [0, 4, 8, 11, 2, 5],
    "Major 11b9b5": [0, 4, 6, 11, 1, 5], "Major 11b9#5": [0, 4, 8, 11, 1, 5],
    "Major 11#9b5": [0, 4, 6, 11, 3, 5], "Major 11#9#5": [0, 4, 8, 11, 3, 5],
    "Minor 11b5": [0, 3, 6, 10, 2, 5], "Minor 11#5": [0, 3, 8, 10, 2, 5],
    "Minor 11b9b5": [0, 3, 6, 10, 1, 5], "Minor 11b9#5": [0, 3, 8, 10, 1, 5],
}

THIRTEENTH_CHORDS: dict[str, list[int]] = {
    "Major 13": [0, 4, 7, 11, 2, 5, 9], "Major 13b9": [0, 4, 7, 11, 1, 5, 9],
    "Major 13#9": [0, 4, 7, 11, 3, 5, 9], "Minor 13": [0, 3, 7, 10, 2, 5, 9],
    "Minor 13b9": [0, 3, 7, 10, 1, 5, 9], "Dominant 13": [0, 4, 7, 10, 2, 5, 9],
    "Dominant 13b9": [0, 4, 7, 10, 1, 5, 9], "Dominant 13#9": [0, 4, 7, 10, 3, 5, 9],
}

THIRTEENTH_SHARP_ELEVEN_CHORDS: dict[str, list[int]] = {
    "Major 13#11": [0, 4, 7, 11, 2, 6, 9], "Major 13#11b9": [0, 4, 7, 11, 1, 6, 9],
    "Major 13#11#9": [0, 4, 7, 11, 3, 6, 9], "Minor 13#11": [0, 3, 7, 10, 2, 6, 9],
    "Minor 13#11b9": [0, 3, 7, 10, 1, 6, 9], "Dominant 13#11": [0, 4, 7, 10, 2, 6, 9],
    "Dominant 13#11b9": [0, 4, 7, 10, 1, 6, 9], "Dominant 13#11#9": [0, 4, 7, 10, 3, 6, 9],
}

ALTERED_THIRTEENTH_CHORDS: dict[str, list[int]] = {
    "Dominant 13b5": [0, 4, 6, 10, 2, 5, 9], "Dominant 13#5": [0, 4, 8, 10, 2, 5, 9],
    "Dominant 13b9b5": [0, 4, 6, 10, 1, 5, 9], "Dominant 13b9#5": [0, 4, 8, 10, 1, 5, 9],
    "Dominant 13#9b5": [0, 4, 6, 10, 3, 5, 9], "Dominant 13#9#5": [0, 4, 8, 10, 3, 5, 9],
    "Major 13b5": [0, 4, 6, 11, 2, 5, 9], "Major 13#5": [0, 4, 8, 11, 2, 5, 9],
    "Major 13b9b5": [0, 4, 6, 11, 1, 5, 9], "Major 13b9#5": [0, 4, 8, 11, 1, 5, 9],
    "Major 13#9b5": [0, 4, 6, 11, 3, 5, 9], "Major 13#9#5": [0, 4, 8, 11, 3, 5, 9],
    "Minor 13b5": [0, 3, 6, 10, 2, 5, 9], "Minor 13#5": [0, 3, 8, 10, 2, 5, 9],
    "Minor 13b9b5": [0, 3, 6, 10, 1, 5, 9], "Minor 13b9#5": [0, 3, 8, 10, 1, 5, 9],
}

CHORD_CATEGORIES: list[tuple[str, dict[str, list[int]]]] = [
    ("Triads (3-note)", TRIADS),
    ("Seventh Chords (4-note)", SEVENTH_CHORDS),
    ("Suspended Sevenths (4-note)", SUS_SEVENTH_CHORDS),
    ("Sixth Chords (4-note)", SIXTH_CHORDS),
    ("add 9 Chords (4-note)", ADD_9_CHORDS),
    ("add 11 Chords (4-note)", ADD_11_CHORDS),
    ("Altered 7ths (4-note)", ALTERED_SEVENTH_CHORDS),
    ("Ninth Chords (5-note)", NINTH_CHORDS),
    ("Altered 9ths (5-note)", ALTERED_NINTH_CHORDS),
    ("Sixth/Ninth (5-note)", SIXTH_NINTH_CHORDS),
    ("Eleventh Chords (6-note)", ELEVENTH_CHORDS),
    ("Sharp 11th Chords (6-note)", SHARP_ELEVENTH_CHORDS),
    ("Altered 11ths (6-note)", ALTERED_ELEVENTH_CHORDS),
    ("Thirteenth Chords (7-note)", THIRTEENTH_CHORDS),
    ("13th #11 Chords (7-note)", THIRTEENTH_SHARP_ELEVEN_CHORDS),
    ("Altered 13ths (7-note)", ALTERED_THIRTEENTH_CHORDS),
]

#: Every chord type, in category declaration order.
CHORD_TYPES: dict[str, list[int]] = {
    name: intervals
    for _, chords in CHORD_CATEGORIES
    for name, intervals in chords.items()
}

#: Conventional chord-symbol suffixes accepted by ``parse_chord``.
SYMBOL_SUFFIXES: dict[str, str] = {
    "": "Major Triad",
    "maj": "Major Triad",
    "m": "Minor Triad",
    "min": "Minor Triad",
    "dim": "Diminished Triad",
    "aug": "Augmented Triad",
    "+": "Augmented Triad",
    "sus2": "sus2 Triad",
    "sus4": "sus4 Triad",
    "7": "Dominant 7",
    "maj7": "Major 7",
    "m7": "Minor 7",
    "dim7": "Diminished 7",
    "m7b5": "Minor 7b5",
    "m(maj7)": "Minor Major 7",
    "7sus4": "7 sus4",
    "7sus2": "7 sus2",
    "6": "Major 6",
    "m6": "Minor 6",
    "add9": "Major Triad add 9",
    "madd9": "Minor Triad add 9",
    "add11": "Major Triad add 11",
    "7b5": "Dominant 7b5",
    "7#5": "Dominant 7#5",
    "9": "Dominant 9",
    "maj9": "Major 9",
    "m9": "Minor 9",
    "7b9": "Dominant b9",
    "7#9": "Dominant #9",
    "6/9": "6/9",
    "m6/9": "Minor 6/9",
    "11": "Dominant 11",
    "m11": "Minor 11",
    "maj11": "Major 11",
    "13": "Dominant 13",
    "m13": "Minor 13",
    "maj13": "Major 13",
}

_ROOT_PATTERN = re.compile(r"^\s*([A-Ga-g](?:##|bb|[#♯b♭])?)(.*)$")

# Root and both thirds can never be removed when simplifying a chord.
ESSENTIAL_INTERVALS: frozenset[int] = frozenset({0, 3, 4})
MIN_SIMPLIFIED_INTERVALS = 3


@dataclass(frozen=True)
class Chord:
    """
    A chord request: a root pitch class plus a chord-type name.

    Attributes:
        root:       Root name in internal sharp spelling (no octave), e.g. 'F#'.
        chord_type: Key into CHORD_TYPES, e.g. 'Minor 7'.
        override:   Optional interval list replacing the table entry, used
                    when retrying a simplified chord.
    """

    root: str
    chord_type: str
    override: tuple[int, ...] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", normalize_note_name(self.root))

    @property
    def intervals(self) -> list[int]:
        """Interval list for this chord; empty if the type is unknown."""
        if self.override is not None:
            return list(self.override)
        return list(CHORD_TYPES.get(self.chord_type, []))

    @property
    def name(self) -> str:
        return f"{self.root} {self.chord_type}"

    def simplified(self, intervals: list[int]) -> "Chord":
        """Return this chord with a reduced interval set."""
        return Chord(self.root, self.chord_type, override=tuple(intervals))


def parse_chord(text: str) -> Chord:
    """
    Parse ``"C:Dominant 7"``, ``"C Dominant 7"`` or a symbol like ``"Cm7"``.

    Raises:
        ValueError: If no root can be read or the chord type is unknown.
    """
    if ":" in text:
        root, chord_type = (part.strip() for part in text.split(":", 1))
        if chord_type not in CHORD_TYPES:
            raise ValueError(f"Unknown chord type: {chord_type!r}")
        return Chord(root, chord_type)

    match = _ROOT_PATTERN.match(text)
    if not match:
        raise ValueError(f"Cannot read a chord root from {text!r}")
    root, rest = match.group(1), match.group(2).strip()
    if rest in CHORD_TYPES:
        return Chord(root, rest)
    suffix = rest.replace("♭", "b").replace("♯", "#")
    if suffix in SYMBOL_SUFFIXES:
        return Chord(root, SYMBOL_SUFFIXES[suffix])
    raise ValueError(f"Unknown chord symbol: {text!r}")


def find_chord_type_by_intervals(intervals: list[int]) -> str | None:
    """Return the smallest chord type whose sorted interval list equals ``intervals``."""
    wanted = sorted(intervals)
    by_size = sorted(CHORD_TYPES.items(), key=lambda item: len(item[1]))
    for name, chord_intervals in by_size:
        if sorted(chord_intervals) == wanted:
            return name
    return None


def full_chord_intervals(intervals: list[int]) -> list[int]:
    """Return the table entry that exactly matches ``intervals``, else ``intervals``."""
    for chord_intervals in CHORD_TYPES.values():
        if chord_intervals == list(intervals):
            return chord_intervals
    return list(intervals)


def filter_intervals(full_intervals: list[int], selected: list[int]) -> list[int]:
    """
    Reduce a chord to the selected intervals, keeping essential chord tones.

    The root and any third in ``full_intervals`` are always kept.

    Raises:
        ValueError: If fewer than three intervals would remain.
    """
    chosen = {interval_class(i) for i in selected}
    kept = [
        i for i in full_intervals
        if interval_class(i) in chosen or interval_class(i) in ESSENTIAL_INTERVALS
    ]
    if len(kept) < MIN_SIMPLIFIED_INTERVALS:
        raise ValueError(
            f"A simplified chord needs at least {MIN_SIMPLIFIED_INTERVALS} intervals, got {kept}"
        )
    return kept
