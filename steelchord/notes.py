"""Note model: pitch parsing, enharmonic normalisation and display spelling."""

import re
from dataclasses import dataclass

# ── Pitch-class constants ───────────────────────────────────────────────────
SEMITONES_PER_OCTAVE = 12
MIDDLE_C_MIDI = 60  # C4 in Scientific Pitch Notation
DEFAULT_OCTAVE = 4

# Chromatic pitch class names (index 0 = C), the internal sharp spelling
NOTE_NAMES: list[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
FLAT_NOTE_NAMES: list[str] = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

NOTE_LETTERS: list[str] = ["C", "D", "E", "F", "G", "A", "B"]
_LETTER_PITCH_CLASS: dict[str, int] = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}

_ACCIDENTAL_OFFSETS: dict[str, int] = {
    "": 0,
    "♮": 0,
    "#": 1,
    "♯": 1,
    "b": -1,
    "♭": -1,
    "##": 2,
    "x": 2,
    "𝄪": 2,
    "bb": -2,
    "♭♭": -2,
    "𝄫": -2,
}

_NOTE_PATTERN = re.compile(r"^\s*([A-Ga-g])(##|bb|♭♭|[#♯b♭x♮𝄪𝄫])?(-?\d+)?\s*$")

#: Major keys whose signatures use flats; everything else spells with sharps.
FLAT_KEYS: frozenset[str] = frozenset({"F", "Bb", "Eb", "Ab", "Db", "Gb"})


def pitch_class_to_midi(pitch_class: int, octave: int) -> int:
    """
    Convert a pitch class (0-11) and an octave number to an absolute MIDI note.

    MIDI octave numbering: C-1 = 0, C0 = 12, C1 = 24, ... C4 (Middle C) = 60.
    """
    return (octave + 1) * SEMITONES_PER_OCTAVE + pitch_class


def interval_class(semitones: int) -> int:
    """Reduce a signed semitone distance to its interval class (0-11)."""
    return semitones % SEMITONES_PER_OCTAVE


@dataclass(frozen=True, order=True)
class Pitch:
    """
    An absolute pitch: a pitch class in sharp spelling plus an octave.

    Attributes:
        pitch_class: 0=C, 1=C#, ..., 11=B.
        octave:      Scientific octave number (C4 = middle C).
    """

    octave: int
    pitch_class: int

    def __post_init__(self) -> None:
        if not 0 <= self.pitch_class < SEMITONES_PER_OCTAVE:
            raise ValueError(f"Pitch class out of range: {self.pitch_class}")

    @classmethod
    def from_absolute(cls, semitones_from_c0: int) -> "Pitch":
        octave, pitch_class = divmod(semitones_from_c0, SEMITONES_PER_OCTAVE)
        return cls(octave=octave, pitch_class=pitch_class)

    @property
    def name(self) -> str:
        """Pitch-class name in internal sharp spelling, e.g. 'F#'."""
        return NOTE_NAMES[self.pitch_class]

    @property
    def absolute(self) -> int:
        """Semitones above C0."""
        return self.octave * SEMITONES_PER_OCTAVE + self.pitch_class

    @property
    def midi(self) -> int:
        return pitch_class_to_midi(self.pitch_class, self.octave)

    def offset(self, semitones: int) -> "Pitch":
        """Return the pitch ``semitones`` above (or below, if negative) this one."""
        return Pitch.from_absolute(self.absolute + semitones)

    def semitones_to(self, other: "Pitch") -> int:
        """Signed semitone distance from this pitch up to ``other``."""
        return other.absolute - self.absolute

    def __str__(self) -> str:
        return f"{self.name}{self.octave}"


# ── Parsing ─────────────────────────────────────────────────────────────────

def _split_note(text: str) -> tuple[str, int, int | None]:
    match = _NOTE_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid note format: {text!r}")
    letter, accidental, octave = match.groups()
    offset = _ACCIDENTAL_OFFSETS[accidental or ""]
    return letter.upper(), offset, int(octave) if octave is not None else None


def parse_pitch(text: str, default_octave: int | None = None) -> Pitch:
    """
    Parse a note name such as ``"F♯4"``, ``"Db3"`` or ``"B#3"`` into a Pitch.

    Accidentals are applied arithmetically, so ``B#3`` becomes ``C4`` and
    ``Cb4`` becomes ``B3``.

    Args:
        text:           Note name with optional accidental and octave.
        default_octave: Octave used when ``text`` carries none. If None, an
                        octave is required.

    Raises:
        ValueError: If the note cannot be parsed.
    """
    letter, offset, octave = _split_note(text)
    if octave is None:
        if default_octave is None:
            raise ValueError(f"Note {text!r} has no octave")
        octave = default_octave
    base = Pitch(octave=octave, pitch_class=_LETTER_PITCH_CLASS[letter])
    return base.offset(offset)


def parse_pitch_class(text: str) -> int:
    """Parse a note name (octave ignored) to its pitch class."""
    letter, offset, _ = _split_note(text)
    return (_LETTER_PITCH_CLASS[letter] + offset) % SEMITONES_PER_OCTAVE


def normalize_note_name(text: str) -> str:
    """Return the internal sharp spelling of a pitch-class name, e.g. 'Bb' -> 'A#'."""
    return NOTE_NAMES[parse_pitch_class(text)]


def is_valid_note(text: str) -> bool:
    try:
        _split_note(text)
    except ValueError:
        return False
    return True


# ── Contextual naming ───────────────────────────────────────────────────────

def contextual_interval_name(semitones: int, chord_name: str = "") -> str:
    """
    Name an interval the way it functions inside the named chord.

    The chord name is matched case-insensitively by substring, e.g. a 2 is a
    ``9`` in any chord whose name mentions 9 or sus2, otherwise ``M2``.
    """
    s = interval_class(semitones)
    name = chord_name.lower()
    if s == 0:
        return "R"
    if s == 1:
        return "b9" if "b9" in name else "m2"
    if s == 2:
        return "9" if "sus2" in name or "9" in name else "M2"
    if s == 3:
        return "#9" if "#9" in name else "m3"
    if s == 4:
        return "M3"
    if s == 5:
        return "11" if "sus4" in name or "11" in name else "P4"
    if s == 6:
        if "lydian" in name or "#11" in name:
            return "#11"
        if "diminished" in name or "b5" in name:
            return "b5"
        return "TT"
    if s == 7:
        return "P5"
    if s == 8:
        if "b13" in name:
            return "b13"
        if "augmented" in name or "#5" in name:
            return "#5"
        return "m6"
    if s == 9:
        if "diminished 7" in name:
            return "𝄫7"
        if "13" in name:
            return "13"
        return "M6"
    if s == 10:
        return "m7"
    return "M7"


_ACCIDENTAL_SYMBOLS: dict[int, str] = {1: "#", 2: "x", -1: "b", -2: "𝄫"}


def _spell_by_degree(pitch: Pitch, root_letter: str, degree: int) -> str:
    """Spell ``pitch`` with the letter ``degree - 1`` steps above ``root_letter``."""
    letter_index = (NOTE_LETTERS.index(root_letter) + degree - 1) % len(NOTE_LETTERS)
    letter = NOTE_LETTERS[letter_index]
    natural_pc = _LETTER_PITCH_CLASS[letter]
    # Pick the octave of the natural letter nearest to the target pitch.
    diff = (pitch.pitch_class - natural_pc + 6) % SEMITONES_PER_OCTAVE - 6
    natural = Pitch.from_absolute(pitch.absolute - diff)
    accidental = _ACCIDENTAL_SYMBOLS.get(diff)
    if accidental is None and diff != 0:
        return str(pitch)
    return f"{letter}{accidental or ''}{natural.octave}"


def spell_in_chord(pitch: Pitch, root_name: str, chord_name: str) -> str:
    """
    Re-spell a pitch by its degree in the named chord for display.

    E.g. the minor third of C minor is shown as ``Eb4`` rather than ``D#4``.
    Pitches whose degree name carries no number keep their sharp spelling.
    """
    root_letter = root_name.strip()[0].upper()
    root_pc = parse_pitch_class(root_name)
    interval_name = contextual_interval_name(pitch.pitch_class - root_pc, chord_name)
    if interval_name == "R":
        degree = 1
    else:
        digits = re.search(r"\d+", interval_name)
        if not digits:
            return str(pitch)
        degree = int(digits.group(0))
    return _spell_by_degree(pitch, root_letter, degree)


def spell_in_scale(pitch: Pitch, root_name: str, degree_name: str) -> str:
    """Spell a scale tone using the number in its scale-degree name (e.g. '♭6')."""
    digits = re.search(r"\d+", degree_name)
    if not digits:
        return str(pitch)
    return _spell_by_degree(pitch, root_name.strip()[0].upper(), int(digits.group(0)))


# ── Key-aware root spelling ─────────────────────────────────────────────────

#: Relative major of each minor key (the "twin keys" pairing).
RELATIVE_MAJOR: dict[str, str] = {
    "Am": "C", "A#m": "C#", "Bbm": "Db", "Bm": "D", "Cm": "Eb", "C#m": "E",
    "Dm": "F", "D#m": "F#", "Ebm": "Gb", "Em": "G", "Fm": "Ab", "F#m": "A",
    "Gm": "Bb", "G#m": "B",
}


def relative_major(key: str) -> str:
    """Return the major key that shares a signature with ``key``."""
    key = key.strip().replace("♭", "b").replace("♯", "#")
    if key.endswith("m"):
        return RELATIVE_MAJOR.get(key, key[:-1])
    return key


def spell_root(pitch_class: int, key: str = "C") -> str:
    """
    Spell a chord root the way it is written in ``key``.

    Flat keys (and minor keys whose relative major is a flat key) spell black
    keys with flats; all other keys use sharps.
    """
    major = relative_major(key)
    if major in FLAT_KEYS:
        return FLAT_NOTE_NAMES[pitch_class % SEMITONES_PER_OCTAVE]
    return NOTE_NAMES[pitch_class % SEMITONES_PER_OCTAVE]
