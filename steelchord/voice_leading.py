"""Voice-leading optimisation over per-chord voicing candidates."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from steelchord.cache import VoicingCache, find_voicings_cached
from steelchord.chord_types import Chord
from steelchord.copedent import Copedent
from steelchord.notes import DEFAULT_OCTAVE, Pitch, parse_pitch_class
from steelchord.voicing import Voicing
from steelchord.voicing_search import find_voicings, find_voicings_on_strings

logger = logging.getLogger(__name__)

DEFAULT_RESULTS_PER_FRET = 10


class Direction(str, Enum):
    MIXED = "mixed"
    ASCENDING = "ascending"
    DESCENDING = "descending"
    MINIMAL = "minimal"

    @classmethod
    def parse(cls, value: "Direction | str | None") -> "Direction":
        """Accept a Direction, its value, or the aliases 'up' and 'down'."""
        if value is None:
            return cls.MIXED
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        text = {"up": "ascending", "down": "descending"}.get(text, text)
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"Unknown direction: {value!r}") from None


@dataclass(frozen=True)
class CostWeights:
    fret_movement: float = 10.0
    control_changes: float = 5.0
    voice_leading: float = 1.5


@dataclass
class DirectionalHints:
    """
    Direction preferences and cost weights for an optimisation run.

    Attributes:
        global_direction: Applies to every transition without an override.
        per_chord:        Step index -> direction for the move INTO that step.
        cost_weights:     Weights of the transition-cost terms.
    """

    global_direction: Direction = Direction.MIXED
    per_chord: dict[int, Direction] = field(default_factory=dict)
    cost_weights: CostWeights = field(default_factory=CostWeights)

    def __post_init__(self) -> None:
        self.global_direction = Direction.parse(self.global_direction)
        self.per_chord = {int(k): Direction.parse(v) for k, v in self.per_chord.items()}

    def direction_for(self, step_index: int | None) -> Direction:
        if step_index is not None and step_index in self.per_chord:
            return self.per_chord[step_index]
        return self.global_direction


@dataclass
class ProgressionResult:
    """
    Outcome of an optimisation.

    On failure ``failed_step_index`` names the step that has no voicing and
    ``failed_chord`` the chord requested there; both are -1/None when no
    path could be formed at all.
    """

    success: bool
    path: list[Voicing] = field(default_factory=list)
    total_cost: float = 0.0
    failed_step_index: int | None = None
    failed_chord: Chord | None = None


@dataclass
class ScoredVoicing:
    voicing: Voicing
    score: float


@dataclass
class QualityReport:
    score: float
    costs: list[float] = field(default_factory=list)
    problem_steps: list[int] = field(default_factory=list)


# ── Transition costs ────────────────────────────────────────────────────────

ASCENDING_VIOLATION_PENALTY = 10000
DESCENDING_VIOLATION_PENALTY = 10000
MINIMAL_VIOLATION_PENALTY = 20000

SOFT_DIRECTION_PENALTY = 50
SOFT_MINIMAL_PENALTY = 30
SOFT_MINIMAL_TOLERANCE = 3  # frets

PROBLEM_TRANSITION_COST = 30


def _direction_multiplier(direction: Direction, movement: int) -> int:
    if direction is Direction.ASCENDING and movement < 0:
        return ASCENDING_VIOLATION_PENALTY
    if direction is Direction.DESCENDING and movement > 0:
        return DESCENDING_VIOLATION_PENALTY
    if direction is Direction.MINIMAL and movement != 0:
        return MINIMAL_VIOLATION_PENALTY
    return 1


def _control_changes(a: Voicing, b: Voicing) -> int:
    return len(a.control_ids ^ b.control_ids)


def transition_cost(
    a: Voicing | None,
    b: Voicing | None,
    hints: DirectionalHints | None = None,
    direction: Direction | str | None = None,
) -> float:
    """
    Cost of moving from voicing ``a`` to voicing ``b``; lower is smoother.

    The fret term is multiplied by a prohibitive constant when the move goes
    against ``direction`` (or the hints' global direction). Notes are paired
    by position and only pairs where both sound add voice-leading cost.
    A missing neighbour costs nothing.
    """
    if a is None or b is None:
        return 0.0
    hints = hints or DirectionalHints()
    weights = hints.cost_weights
    effective = Direction.parse(direction) if direction is not None else hints.global_direction

    movement = b.fret - a.fret
    cost = abs(movement) * weights.fret_movement * _direction_multiplier(effective, movement)
    cost += _control_changes(a, b) * weights.control_changes

    note_movement = sum(
        abs(na.pitch.semitones_to(nb.pitch))
        for na, nb in zip(a.notes, b.notes)
        if na.is_played and nb.is_played and na.pitch is not None and nb.pitch is not None
    )
    return cost + note_movement * weights.voice_leading


def soft_transition_cost(
    a: Voicing | None,
    b: Voicing | None,
    hints: DirectionalHints | None = None,
    step_index: int | None = None,
) -> float:
    """Fret and control cost with small additive direction penalties instead of prohibitive ones."""
    if a is None or b is None:
        return 0.0
    hints = hints or DirectionalHints()
    weights = hints.cost_weights
    movement = b.fret - a.fret

    cost = abs(movement) * weights.fret_movement + _control_changes(a, b) * weights.control_changes
    direction = hints.direction_for(step_index)
    if direction is Direction.ASCENDING and movement < 0:
        cost += SOFT_DIRECTION_PENALTY
    elif direction is Direction.DESCENDING and movement > 0:
        cost += SOFT_DIRECTION_PENALTY
    elif direction is Direction.MINIMAL and abs(movement) > SOFT_MINIMAL_TOLERANCE:
        cost += SOFT_MINIMAL_PENALTY
    return cost


# ── Dynamic programming core ────────────────────────────────────────────────

def optimize_candidates(
    candidates_by_step: Sequence[Sequence[Voicing]],
    hints: DirectionalHints | None = None,
) -> ProgressionResult:
    """
    Choose one candidate per step minimising the summed transition cost.

    Ties keep the lowest candidate index, both for predecessors and for the
    final step.
    """
    hints = hints or DirectionalHints()
    if not candidates_by_step:
        return ProgressionResult(success=False, failed_step_index=-1)
    for index, candidates in enumerate(candidates_by_step):
        if not candidates:
            return ProgressionResult(success=False, failed_step_index=index)

    costs = np.zeros(len(candidates_by_step[0]))
    back_pointers: list[np.ndarray] = []
    for step in range(1, len(candidates_by_step)):
        previous, current = candidates_by_step[step - 1], candidates_by_step[step]
        direction = hints.direction_for(step)
        transitions = np.array(
            [[transition_cost(p, c, hints, direction) for c in current] for p in previous],
            dtype=float,
        )
        totals = costs[:, None] + transitions
        best_previous = np.argmin(totals, axis=0)
        back_pointers.append(best_previous)
        costs = totals[best_previous, np.arange(len(current))]
        logger.debug("step %d: %d x %d transitions, best %.1f", step, len(previous), len(current), costs.min())

    if not np.isfinite(costs).any():
        return ProgressionResult(success=False, failed_step_index=-1)

    index = int(np.argmin(costs))
    total = float(costs[index])
    chosen = [index]
    for pointers in reversed(back_pointers):
        index = int(pointers[index])
        chosen.append(index)
    chosen.reverse()

    path = [candidates_by_step[step][i] for step, i in enumerate(chosen)]
    return ProgressionResult(success=True, path=path, total_cost=total)


def candidates_for_chord(
    copedent: Copedent,
    chord: Chord,
    string_ids: Iterable[int] | None = None,
    full_access: bool = True,
    max_per_fret: int = DEFAULT_RESULTS_PER_FRET,
    cache: VoicingCache | None = None,
) -> list[Voicing]:
    """Every voicing of ``chord``, named after it. Ids not on the copedent are ignored."""
    intervals = chord.intervals
    if not intervals:
        return []
    root = Pitch(DEFAULT_OCTAVE, parse_pitch_class(chord.root))
    all_ids = {s.id for s in copedent.strings}
    wanted = set(string_ids) & all_ids if string_ids is not None else all_ids
    if wanted < all_ids:
        voicings = find_voicings_on_strings(copedent, root, intervals, wanted)
    elif cache is not None:
        voicings = find_voicings_cached(cache, copedent, root, intervals, max_per_fret, full_access)
    else:
        voicings = find_voicings(copedent, root, intervals, max_per_fret, full_access)
    for voicing in voicings:
        voicing.chord_name = chord.name
    return voicings


def optimize_progression(
    copedent: Copedent,
    chords: Sequence[Chord],
    string_ids: Iterable[int] | None = None,
    hints: DirectionalHints | None = None,
    full_access: bool = True,
    max_per_fret: int = DEFAULT_RESULTS_PER_FRET,
    cache: VoicingCache | None = None,
) -> ProgressionResult:
    """
    Voice a progression as smoothly as possible.

    Args:
        copedent:     Instrument configuration.
        chords:       Chords in playing order.
        string_ids:   Restrict voicings to these strings; None or all strings
                      means an unrestricted search.
        hints:        Direction preferences and cost weights.
        full_access:  Access tier flag passed to the search.
        max_per_fret: Candidates kept per fret for each chord.
        cache:        Optional search cache.

    Returns:
        A successful result with one voicing per chord, or a failure naming
        the first chord that cannot be voiced.
    """
    wanted = set(string_ids) if string_ids is not None else None
    candidates_by_step = []
    for index, chord in enumerate(chords):
        candidates = candidates_for_chord(copedent, chord, wanted, full_access, max_per_fret, cache)
        logger.debug("chord %d (%s): %d candidates", index, chord.name, len(candidates))
        if not candidates:
            logger.info("No voicing for %s at step %d", chord.name, index)
            return ProgressionResult(success=False, failed_step_index=index, failed_chord=chord)
        candidates_by_step.append(candidates)

    return optimize_candidates(candidates_by_step, hints)


def rank_alternatives_for_step(
    previous: Voicing | None,
    following: Voicing | None,
    chord: Chord,
    copedent: Copedent,
    hints: DirectionalHints | None = None,
    max_per_fret: int = DEFAULT_RESULTS_PER_FRET,
    cache: VoicingCache | None = None,
    step_index: int | None = None,
    string_ids: Iterable[int] | None = None,
) -> list[ScoredVoicing]:
    """
    Rank every voicing of ``chord`` by cost in from ``previous`` plus cost out to ``following``.

    Without ``step_index`` both transitions use the global direction; with it,
    per-chord overrides for this step and the next one apply.
    """
    hints = hints or DirectionalHints()
    wanted = set(string_ids) if string_ids is not None else None
    direction_in = hints.direction_for(step_index)
    direction_out = hints.direction_for(step_index + 1 if step_index is not None else None)

    scored = [
        ScoredVoicing(
            voicing=voicing,
            score=transition_cost(previous, voicing, hints, direction_in)
            + transition_cost(voicing, following, hints, direction_out),
        )
        for voicing in candidates_for_chord(copedent, chord, wanted, True, max_per_fret, cache)
    ]
    scored.sort(key=lambda s: s.score)
    return scored


def _locked_index(alternatives: Sequence[Voicing], current: Voicing | None) -> int:
    if current is None:
        return 0
    for index, alternative in enumerate(alternatives):
        if alternative.fret == current.fret and alternative.pedals == current.pedals:
            return index
    return 0


def reoptimize_with_locks(
    alternatives_by_step: Sequence[Sequence[Voicing]],
    hints: DirectionalHints | None,
    current: Sequence[Voicing],
    locked_steps: Iterable[int] = (),
) -> list[Voicing]:
    """
    Re-run the path search over already computed alternatives, keeping locked steps.

    A locked step keeps the alternative matching its current voicing (same fret
    and pedals, else the first alternative). Transitions, including the move
    into a locked step, use ``soft_transition_cost``. Fewer than two steps
    leaves ``current`` as is.
    """
    hints = hints or DirectionalHints()
    locked = set(locked_steps)
    if len(alternatives_by_step) < 2 or any(not alts for alts in alternatives_by_step):
        return list(current)

    def current_at(step: int) -> Voicing | None:
        return current[step] if step < len(current) else None

    first = alternatives_by_step[0]
    costs = np.zeros(len(first))
    if 0 in locked:
        costs = np.full(len(first), np.inf)
        costs[_locked_index(first, current_at(0))] = 0.0

    back_pointers: list[np.ndarray] = []
    for step in range(1, len(alternatives_by_step)):
        previous, alternatives = alternatives_by_step[step - 1], alternatives_by_step[step]
        step_costs = np.full(len(alternatives), np.inf)
        pointers = np.zeros(len(alternatives), dtype=int)
        allowed = list(range(len(alternatives)))
        if step in locked:
            allowed = [_locked_index(alternatives, current_at(step))]

        for j in allowed:
            for k, before in enumerate(previous):
                if not np.isfinite(costs[k]):
                    continue
                total = costs[k] + soft_transition_cost(before, alternatives[j], hints, step)
                if total < step_costs[j]:
                    step_costs[j] = total
                    pointers[j] = k
        back_pointers.append(pointers)
        costs = step_costs

    index = int(np.argmin(costs))
    chosen = [index]
    for pointers in reversed(back_pointers):
        index = int(pointers[index])
        chosen.append(index)
    chosen.reverse()
    return [alternatives_by_step[step][i] for step, i in enumerate(chosen)]


def quality_score(path: Sequence[Voicing], hints: DirectionalHints | None = None) -> QualityReport:
    """
    Rate a voiced progression from 0 (rough) to 10 (smooth).

    Transitions are costed with the hints' weights and no direction penalty;
    those costing more than 30 are reported as problem steps.
    """
    if len(path) < 2:
        return QualityReport(score=10.0)
    costs = [transition_cost(a, b, hints, Direction.MIXED) for a, b in zip(path, path[1:])]
    average = sum(costs) / len(costs)
    return QualityReport(
        score=max(0.0, min(10.0, 10 - average / 10)),
        costs=costs,
        problem_steps=[i for i, cost in enumerate(costs) if cost > PROBLEM_TRANSITION_COST],
    )
