"""Voicing result types and their structural clone functions."""

from dataclasses import dataclass, field, replace
from typing import Any

from steelchord.notes import Pitch, interval_class


@dataclass
class VoicingNote:
    """
    One string's contribution to a voicing.

    Attributes:
        string_id:           String number, 1 = nearest the player's chin.
        open_pitch:          Unfretted, unchanged pitch of the string.
        fret:                Bar position.
        active_controls:     Engaged controls that change this string.
        pitch:               Sounding pitch, or None if a split mutes the string.
        semitones_from_root: Signed distance from the chord root, None if muted.
        is_muted:            True when a split excludes this string.
        is_chord_tone:       The note belongs to the target chord.
        is_played:           The note is sounded in this voicing.
    """

    string_id: int
    open_pitch: Pitch
    fret: int
    active_controls: tuple[str, ...] = ()
    pitch: Pitch | None = None
    semitones_from_root: int | None = None
    is_muted: bool = False
    is_chord_tone: bool = False
    is_played: bool = False

    @property
    def interval(self) -> int | None:
        """Interval class from the root, or None for a muted string."""
        if self.semitones_from_root is None:
            return None
        return interval_class(self.semitones_from_root)

    def clone(self) -> "VoicingNote":
        # All fields are immutable values, so a shallow replace is a full copy.
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "stringId": self.string_id,
            "openNote": str(self.open_pitch),
            "fret": self.fret,
            "activeControls": list(self.active_controls),
            "note": str(self.pitch) if self.pitch is not None else None,
            "semitonesFromRoot": self.semitones_from_root,
            "isMuted": self.is_muted,
            "isChordTone": self.is_chord_tone,
            "isPlayed": self.is_played,
        }


@dataclass
class VoicingScore:
    """Ranking inputs: bigger blocks and more strings first, fewer controls breaks ties."""

    largest_block: int
    usable_strings: int
    ease_of_play: int

    def clone(self) -> "VoicingScore":
        return replace(self)


@dataclass
class Voicing:
    """
    One concrete way to play a chord: a fret, engaged controls and per-string notes.

    Attributes:
        fret:         Bar position (0-11 from search, up to 24 for octave copies).
        pedals:       Pressed pedal ids.
        levers:       Engaged knee-lever ids.
        mechanisms:   Engaged mechanism ids.
        notes:        One VoicingNote per searched string.
        score:        Ranking score; None for voicings built outside the search.
        parent_scale: Label such as 'C Ionian', if one fits the played notes.
        chord_name:   Display label attached by the optimizer or identifier.
    """

    fret: int
    pedals: tuple[str, ...] = ()
    levers: tuple[str, ...] = ()
    mechanisms: tuple[str, ...] = ()
    notes: list[VoicingNote] = field(default_factory=list)
    score: VoicingScore | None = None
    parent_scale: str | None = None
    chord_name: str | None = None

    @property
    def control_ids(self) -> frozenset[str]:
        return frozenset((*self.pedals, *self.levers, *self.mechanisms))

    @property
    def played_notes(self) -> list[VoicingNote]:
        return [note for note in self.notes if note.is_played]

    @property
    def played_intervals(self) -> set[int]:
        return {n.interval for n in self.played_notes if n.interval is not None}

    @property
    def played_key(self) -> str:
        """Identity of the sounding notes, used to drop duplicate voicings."""
        return "|".join(sorted(f"{n.string_id}:{n.pitch}" for n in self.played_notes))

    def midi_notes(self) -> list[int]:
        """MIDI numbers of the played notes, low to high."""
        return sorted(n.pitch.midi for n in self.played_notes if n.pitch is not None)

    def clone(self) -> "Voicing":
        """Return a copy that shares no mutable state with this voicing."""
        return replace(
            self,
            notes=[note.clone() for note in self.notes],
            score=self.score.clone() if self.score is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "fret": self.fret,
            "pedals": list(self.pedals),
            "levers": list(self.levers),
            "mechanisms": list(self.mechanisms),
            "notes": [note.to_dict() for note in self.notes],
            "score": (
                {
                    "largestBlockSize": self.score.largest_block,
                    "usableStrings": self.score.usable_strings,
                    "easeOfPlay": self.score.ease_of_play,
                }
                if self.score is not None
                else None
            ),
            "parentScale": self.parent_scale,
            "chordName": self.chord_name,
        }


def clone_voicings(voicings: list[Voicing]) -> list[Voicing]:
    return [voicing.clone() for voicing in voicings]
