"""Scale tables and chord-to-scale lookups."""

from steelchord.notes import interval_class

MAJOR_MODES: dict[str, list[int]] = {
    "Ionian": [0, 2, 4, 5, 7, 9, 11], "Dorian": [0, 2, 3, 5, 7, 9, 10],
    "Phrygian": [0, 1, 3, 5, 7, 8, 10], "Lydian": [0, 2, 4, 6, 7, 9, 11],
    "Mixolydian": [0, 2, 4, 5, 7, 9, 10], "Aeolian": [0, 2, 3, 5, 7, 8, 10],
    "Locrian": [0, 1, 3, 5, 6, 8, 10],
}

MELODIC_MINOR_MODES: dict[str, list[int]] = {
    "Melodic Minor": [0, 2, 3, 5, 7, 9, 11], "Dorian ♭2": [0, 1, 3, 5, 7, 9, 10],
    "Lydian Augmented": [0, 2, 4, 6, 8, 9, 11], "Lydian Dominant": [0, 2, 4, 6, 7, 9, 10],
    "Mixolydian ♭6": [0, 2, 4, 5, 7, 8, 10], "Locrian ♮2": [0, 2, 3, 5, 6, 8, 10],
    "Super Locrian (Altered Scale)": [0, 1, 3, 4, 6, 8, 10],
}

HARMONIC_MINOR_MODES: dict[str, list[int]] = {
    "Harmonic Minor": [0, 2, 3, 5, 7, 8, 11], "Locrian ♮6": [0, 1, 3, 5, 6, 9, 10],
    "Ionian ♯5": [0, 2, 4, 5, 8, 9, 11], "Dorian ♯4": [0, 2, 3, 6, 7, 9, 10],
    "Phrygian Dominant": [0, 1, 4, 5, 7, 8, 10], "Lydian ♯2": [0, 3, 4, 6, 7, 9, 11],
    "Super Locrian 𝄫7": [0, 1, 3, 4, 6, 8, 9],
}

PENTATONIC_SCALES: dict[str, list[int]] = {
    "Major Pentatonic": [0, 2, 4, 7, 9], "Minor Pentatonic": [0, 3, 5, 7, 10],
    "Blues Scale": [0, 3, 5, 6, 7, 10], "Suspended Pentatonic (Egyptian)": [0, 2, 5, 7, 10],
}

JAPANESE_SCALES: dict[str, list[int]] = {
    "Insen Scale": [0, 1, 5, 7, 10], "Hirajoshi Scale": [0, 2, 3, 7, 8],
}

BEBOP_SCALES: dict[str, list[int]] = {
    "Bebop Dominant": [0, 2, 4, 5, 7, 9, 10, 11], "Bebop Major": [0, 2, 4, 5, 7, 8, 9, 11],
}

SYMMETRIC_SCALES: dict[str, list[int]] = {
    "Whole Tone": [0, 2, 4, 6, 8, 10],
    "Whole-Half Diminished": [0, 2, 3, 5, 6, 8, 9, 11],
    "Half-Whole Diminished": [0, 1, 3, 4, 6, 7, 9, 10],
}

SCALES: dict[str, list[int]] = {
    **MAJOR_MODES, **MELODIC_MINOR_MODES, **HARMONIC_MINOR_MODES, **PENTATONIC_SCALES,
    **JAPANESE_SCALES, **BEBOP_SCALES, **SYMMETRIC_SCALES,
}

#: Order in which parent scales are tried for a chord.
SCALE_PRIORITY: list[str] = [
    "Ionian", "Dorian", "Mixolydian", "Aeolian", "Lydian", "Phrygian", "Melodic Minor",
    "Harmonic Minor", "Lydian Dominant", "Phrygian Dominant", "Super Locrian (Altered Scale)",
    "Dorian ♭2", "Lydian Augmented", "Mixolydian ♭6", "Locrian ♮2", "Locrian ♮6", "Ionian ♯5",
    "Dorian ♯4", "Lydian ♯2", "Super Locrian 𝄫7", "Whole Tone", "Half-Whole Diminished",
    "Whole-Half Diminished", "Locrian",
]

SCALE_DEGREE_NAMES: dict[str, list[str]] = {
    "Ionian": ["R", "M2", "M3", "P4", "P5", "M6", "M7"],
    "Dorian": ["R", "M2", "m3", "P4", "P5", "M6", "m7"],
    "Phrygian": ["R", "♭2", "m3", "P4", "P5", "m6", "m7"],
    "Lydian": ["R", "M2", "M3", "♯4", "P5", "M6", "M7"],
    "Mixolydian": ["R", "M2", "M3", "P4", "P5", "M6", "m7"],
    "Aeolian": ["R", "M2", "m3", "P4", "P5", "m6", "m7"],
    "Locrian": ["R", "♭2", "m3", "P4", "♭5", "m6", "m7"],
    "Melodic Minor": ["R", "M2", "m3", "P4", "P5", "M6", "M7"],
    "Dorian ♭2": ["R", "♭2", "m3", "P4", "P5", "M6", "m7"],
    "Lydian Augmented": ["R", "M2", "M3", "♯4", "♯5", "M6", "M7"],
    "Lydian Dominant": ["R", "M2", "M3", "♯4", "P5", "M6", "m7"],
    "Mixolydian ♭6": ["R", "M2", "M3", "P4", "P5", "♭6", "m7"],
    "Locrian ♮2": ["R", "M2", "m3", "P4", "♭5", "m6", "m7"],
    "Super Locrian (Altered Scale)": ["R", "♭2", "m3", "♭4", "♭5", "♭6", "m7"],
    "Harmonic Minor": ["R", "M2", "m3", "P4", "P5", "m6", "M7"],
    "Locrian ♮6": ["R", "♭2", "m3", "P4", "♭5", "M6", "m7"],
    "Ionian ♯5": ["R", "M2", "M3", "P4", "♯5", "M6", "M7"],
    "Dorian ♯4": ["R", "M2", "m3", "♯4", "P5", "M6", "m7"],
    "Phrygian Dominant": ["R", "♭2", "M3", "P4", "P5", "m6", "m7"],
    "Lydian ♯2": ["R", "♯2", "M3", "♯4", "P5", "M6", "M7"],
    "Super Locrian 𝄫7": ["R", "♭2", "m3", "♭4", "♭5", "♭6", "𝄫7"],
    "Whole Tone": ["R", "M2", "M3", "♯4", "♯5", "♭7"],
    "Whole-Half Diminished": ["R", "M2", "m3", "P4", "♭5", "m6", "M6", "M7"],
    "Half-Whole Diminished": ["R", "♭2", "m3", "♭4", "♭5", "M5", "M6", "m7"],
    "Major Pentatonic": ["R", "M2", "M3", "P5", "M6"],
    "Minor Pentatonic": ["R", "m3", "P4", "P5", "m7"],
    "Blues Scale": ["R", "m3", "P4", "♭5", "P5", "m7"],
    "Suspended Pentatonic (Egyptian)": ["R", "M2", "P4", "P5", "m7"],
    "Insen Scale": ["R", "♭2", "P4", "P5", "m7"],
    "Hirajoshi Scale": ["R", "M2", "m3", "P5", "m6"],
    "Bebop Dominant": ["R", "M2", "M3", "P4", "P5", "M6", "m7", "M7"],
    "Bebop Major": ["R", "M2", "M3", "P4", "P5", "♯5", "M6", "M7"],
}

_MAJOR_MARKERS = ("Ionian", "Lydian")
_MINOR_MARKERS = ("Dorian", "Aeolian", "Phrygian", "Locrian", "Minor")
_DOMINANT_MARKERS = ("Mixolydian", "Dominant")


def _chord_quality(full_intervals: list[int]) -> str:
    if 4 in full_intervals:
        return "dominant" if 10 in full_intervals else "major"
    return "minor"


def find_parent_scale(root_name: str, played_intervals: list[int], full_intervals: list[int]) -> str | None:
    """
    Name the highest-priority scale of the chord's quality containing every played interval.

    Args:
        root_name:        Root spelling used in the returned label.
        played_intervals: Interval classes actually sounding.
        full_intervals:   The chord type's full interval list (decides quality).

    Returns:
        A label such as ``"C Mixolydian"``, or None if no scale fits.
    """
    quality = _chord_quality(full_intervals)
    played = {interval_class(i) for i in played_intervals}
    for scale_name in SCALE_PRIORITY:
        is_major = any(marker in scale_name for marker in _MAJOR_MARKERS)
        is_minor = any(marker in scale_name for marker in _MINOR_MARKERS)
        is_dominant = any(marker in scale_name for marker in _DOMINANT_MARKERS)
        if quality == "major" and not is_major:
            continue
        if quality == "minor" and not is_minor:
            continue
        if quality == "dominant" and not is_dominant:
            continue
        if played <= set(SCALES[scale_name]):
            return f"{root_name} {scale_name}"
    return None


def find_scales_for_chord(chord_intervals: list[int]) -> list[str]:
    """Return every scale that contains all of the chord's interval classes."""
    wanted = {interval_class(i) for i in chord_intervals}
    return [name for name, intervals in SCALES.items() if wanted <= set(intervals)]


def scale_degree_name(semitones: int, scale_name: str) -> str:
    """Name a scale tone by its degree in ``scale_name`` (e.g. '♭6')."""
    s = interval_class(semitones)
    intervals = SCALES.get(scale_name, [])
    names = SCALE_DEGREE_NAMES.get(scale_name, [])
    if s in intervals and intervals.index(s) < len(names):
        return names[intervals.index(s)]
    return f"♭{s}"
