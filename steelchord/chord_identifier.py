"""ChordIdentifier: names the chord sounded by a set of strings at a fret."""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from steelchord.chord_types import CHORD_TYPES
from steelchord.copedent import Copedent
from steelchord.notes import NOTE_NAMES, Pitch, contextual_interval_name, interval_class
from steelchord.resolver import resolve_fretted_notes
from steelchord.voicing import Voicing


@dataclass
class ChordCandidate:
    """
    One interpretation of the sounding notes.

    Attributes:
        name:             Display name including add/no qualifiers, e.g. 'C Major (add 9)'.
        root:             Root pitch (octave of the lowest played note).
        chord_type:       Key into CHORD_TYPES.
        score:            Ranking score; higher is a better explanation.
        played_intervals: Interval classes sounding, relative to ``root``.
        full_intervals:   The chord type's full interval list.
        voicing:          The played voicing, annotated relative to ``root``.
    """

    name: str
    root: Pitch
    chord_type: str
    score: float
    played_intervals: list[int] = field(default_factory=list)
    full_intervals: list[int] = field(default_factory=list)
    voicing: Voicing | None = None


def chord_display_name(
    root_name: str,
    chord_type: str,
    played_intervals: Iterable[int],
    full_intervals: Iterable[int],
) -> str:
    """
    Name a chord so that missing tones are visible.

    A seventh-family chord whose seventh is absent but which sounds an
    extension is renamed as a triad with an ``add``; any other missing tones
    are listed in a ``(no ...)`` suffix.
    """
    full = list(dict.fromkeys(interval_class(i) for i in full_intervals))
    played = set(played_intervals)
    missing = [i for i in full if i not in played]

    seventh_missing = (10 in full and 10 in missing) or (11 in full and 11 in missing)
    has_extension = any(i in (1, 2, 5, 6, 9) for i in played)
    if (10 in full or 11 in full) and seventh_missing and has_extension:
        base = re.sub(r"13|11|9|7", "", chord_type).strip()
        if base in ("Dominant", "Major"):
            base = "Major"
        elif "Minor" in base:
            base = "Minor"
        else:
            base = ""
        highest = max(i for i in played if i not in (0, 3, 4, 7, 8))
        name = f"{root_name} {base} (add {contextual_interval_name(highest, chord_type)})"
        others = [i for i in missing if i not in (10, 11)]
        if others:
            name += f" (no {', '.join(contextual_interval_name(i, chord_type) for i in others)})"
        return re.sub(r"\s+", " ", name).strip()

    if missing:
        names = ", ".join(contextual_interval_name(i, chord_type) for i in missing)
        return f"{root_name} {chord_type} (no {names})"
    return f"{root_name} {chord_type}"


class ChordIdentifier:
    """
    Reverse chord lookup for a fret, a set of played strings and engaged controls.

    Algorithm overview
    ------------------
    1. Resolve the strings and collect the distinct sounding pitches; fewer
       than three means no chord.
    2. For each of the twelve roots and each chord type, the type is a
       candidate if every played interval class belongs to it. Candidates
       that would need a major and a minor third, or a minor and a major
       seventh, together are rejected.
    3. Each candidate is scored on completeness, with bonuses for a sounding
       third, seventh and root, penalties for a required but absent third or
       seventh, a penalty when an extended or altered type is missing its
       defining tension, and a small penalty per chord tone.
    4. The best type per root is kept and the top candidates are returned.
    """

    MIN_DISTINCT_PITCHES = 3
    MAX_RESULTS = 6

    COMPLETENESS_WEIGHT = 1000
    THIRD_AND_SEVENTH_BONUS = 150
    THIRD_BONUS = 75
    SEVENTH_BONUS = 50
    ROOT_BONUS = 25
    MISSING_THIRD_PENALTY = 150
    MISSING_SEVENTH_PENALTY = 100
    MISSING_TENSION_PENALTY = 250
    SIZE_PENALTY = 5

    _TENSION_NAME = re.compile(r"9|11|13")
    _ALTERATION_NAME = re.compile(r"b5|#5|b9|#9|#11|b13")
    _CORE_TONES = frozenset({0, 3, 4, 7, 10, 11})

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _is_contradictory(full: set[int], played: set[int]) -> bool:
        if (4 in full and 3 in played) or (3 in full and 4 in played):
            return True
        return (10 in full and 11 in played) or (11 in full and 10 in played)

    def _score(self, chord_type: str, full: set[int], played: set[int]) -> float:
        score = len(played) / len(full) * self.COMPLETENESS_WEIGHT
        has_third = 3 in played or 4 in played
        has_seventh = 10 in played or 11 in played

        if has_third and has_seventh:
            score += self.THIRD_AND_SEVENTH_BONUS
        if has_third:
            score += self.THIRD_BONUS
        if has_seventh:
            score += self.SEVENTH_BONUS
        if 0 in played:
            score += self.ROOT_BONUS

        if (3 in full or 4 in full) and not has_third:
            score -= self.MISSING_THIRD_PENALTY
        if (10 in full or 11 in full) and not has_seventh:
            score -= self.MISSING_SEVENTH_PENALTY

        if self._TENSION_NAME.search(chord_type) or self._ALTERATION_NAME.search(chord_type):
            if any(t not in played for t in full - self._CORE_TONES):
                score -= self.MISSING_TENSION_PENALTY

        return score - len(full) * self.SIZE_PENALTY

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def identify(
        self,
        copedent: Copedent,
        fret: int,
        played_string_ids: Iterable[int],
        pedal_ids: Iterable[str] = (),
        lever_ids: Iterable[str] = (),
        mechanism_ids: Iterable[str] = (),
    ) -> list[ChordCandidate]:
        """
        Rank chord interpretations of the played strings.

        Args:
            copedent:          Instrument configuration.
            fret:              Bar position.
            played_string_ids: Strings picked.
            pedal_ids:         Pressed pedals.
            lever_ids:         Engaged knee levers.
            mechanism_ids:     Engaged mechanisms.

        Returns:
            At most MAX_RESULTS candidates, best first, one per root; empty
            when fewer than three distinct pitches sound.
        """
        played_ids = set(played_string_ids)
        pedal_ids, lever_ids, mechanism_ids = tuple(pedal_ids), tuple(lever_ids), tuple(mechanism_ids)
        notes = resolve_fretted_notes(
            copedent.strings, copedent, pedal_ids, lever_ids, mechanism_ids, Pitch(4, 0), fret
        )
        pitches = list(dict.fromkeys(n.pitch for n in notes if n.string_id in played_ids and n.pitch is not None))
        if len(pitches) < self.MIN_DISTINCT_PITCHES:
            return []

        octave = min(pitches).octave
        best_by_root: dict[str, ChordCandidate] = {}
        for pitch_class, root_name in enumerate(NOTE_NAMES):
            root = Pitch(octave, pitch_class)
            played = {interval_class(root.semitones_to(p)) for p in pitches}
            for chord_type, intervals in CHORD_TYPES.items():
                full = {interval_class(i) for i in intervals}
                if not played <= full or self._is_contradictory(full, played):
                    continue
                score = self._score(chord_type, full, played)
                current = best_by_root.get(root_name)
                if current is None or score > current.score:
                    best_by_root[root_name] = ChordCandidate(
                        name="",
                        root=root,
                        chord_type=chord_type,
                        score=score,
                        played_intervals=sorted(played),
                        full_intervals=list(intervals),
                    )

        ranked = sorted(best_by_root.values(), key=lambda c: c.score, reverse=True)[: self.MAX_RESULTS]
        for candidate in ranked:
            candidate.name = chord_display_name(
                candidate.root.name, candidate.chord_type, candidate.played_intervals, candidate.full_intervals
            )
            candidate.voicing = self._annotated_voicing(
                notes, candidate, fret, played_ids, pedal_ids, lever_ids, mechanism_ids
            )
        return ranked

    @staticmethod
    def _annotated_voicing(
        notes: list,
        candidate: ChordCandidate,
        fret: int,
        played_ids: set[int],
        pedal_ids: tuple[str, ...],
        lever_ids: tuple[str, ...],
        mechanism_ids: tuple[str, ...],
    ) -> Voicing:
        annotated = []
        for note in notes:
            note = note.clone()
            played = note.string_id in played_ids
            note.is_played = played
            note.is_chord_tone = played
            note.semitones_from_root = (
                candidate.root.semitones_to(note.pitch) if played and note.pitch is not None else None
            )
            annotated.append(note)
        return Voicing(
            fret=fret,
            pedals=pedal_ids,
            levers=lever_ids,
            mechanisms=mechanism_ids,
            notes=annotated,
            chord_name=candidate.name,
        )


def identify_chord(
    copedent: Copedent,
    fret: int,
    played_string_ids: Iterable[int],
    pedal_ids: Iterable[str] = (),
    lever_ids: Iterable[str] = (),
    mechanism_ids: Iterable[str] = (),
) -> list[ChordCandidate]:
    """Convenience wrapper around ``ChordIdentifier().identify``."""
    return ChordIdentifier().identify(copedent, fret, played_string_ids, pedal_ids, lever_ids, mechanism_ids)
