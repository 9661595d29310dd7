"""Unit tests for transition costs and the voice-leading optimiser."""

from itertools import product

import pytest

from steelchord.cache import VoicingCache
from steelchord.chord_types import Chord
from steelchord.copedent import Copedent
from steelchord.notes import Pitch, parse_pitch
from steelchord.voice_leading import (
    ASCENDING_VIOLATION_PENALTY,
    MINIMAL_VIOLATION_PENALTY,
    CostWeights,
    Direction,
    DirectionalHints,
    candidates_for_chord,
    optimize_candidates,
    optimize_progression,
    quality_score,
    rank_alternatives_for_step,
    reoptimize_with_locks,
    soft_transition_cost,
    transition_cost,
)
from steelchord.voicing import Voicing, VoicingNote


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _voicing(fret: int, pedals: tuple[str, ...] = (), notes: tuple[str | None, ...] = ()) -> Voicing:
    built = []
    for string_id, name in enumerate(notes, start=1):
        pitch = parse_pitch(name) if name is not None else None
        built.append(
            VoicingNote(
                string_id=string_id,
                open_pitch=parse_pitch("E4"),
                fret=fret,
                pitch=pitch,
                semitones_from_root=Pitch(4, 0).semitones_to(pitch) if pitch is not None else None,
                is_chord_tone=pitch is not None,
                is_played=pitch is not None,
            )
        )
    return Voicing(fret=fret, pedals=pedals, notes=built)


C_MAJOR = Chord("C", "Major Triad")
G_MAJOR = Chord("G", "Major Triad")


# ---------------------------------------------------------------------------
# Hints
# ---------------------------------------------------------------------------

def test_direction_aliases() -> None:
    assert Direction.parse("up") is Direction.ASCENDING
    assert Direction.parse("Down") is Direction.DESCENDING
    assert Direction.parse(None) is Direction.MIXED
    with pytest.raises(ValueError):
        Direction.parse("sideways")


def test_per_chord_override_wins() -> None:
    hints = DirectionalHints(global_direction="ascending", per_chord={"2": "descending"})
    assert hints.direction_for(2) is Direction.DESCENDING
    assert hints.direction_for(1) is Direction.ASCENDING
    assert hints.direction_for(None) is Direction.ASCENDING


# ---------------------------------------------------------------------------
# transition_cost
# ---------------------------------------------------------------------------

def test_transition_cost_terms() -> None:
    a = _voicing(3, ("P1",), ("C4", "E4"))
    b = _voicing(5, ("P2",), ("D4", "E4"))
    # 2 frets * 10 + 2 changed pedals * 5 + 2 semitones * 1.5
    assert transition_cost(a, b) == pytest.approx(33.0)


def test_unplayed_strings_do_not_add_voice_leading() -> None:
    a = _voicing(3, (), ("C4", None))
    b = _voicing(3, (), ("C4", "B5"))
    assert transition_cost(a, b) == 0.0


def test_custom_weights() -> None:
    hints = DirectionalHints(cost_weights=CostWeights(fret_movement=1, control_changes=0, voice_leading=0))
    assert transition_cost(_voicing(0, ("P1",)), _voicing(4), hints) == 4.0


def test_missing_neighbour_costs_nothing() -> None:
    assert transition_cost(None, _voicing(3)) == 0.0
    assert transition_cost(_voicing(3), None) == 0.0


def test_direction_violations_are_prohibitive() -> None:
    down = (_voicing(5), _voicing(3))
    assert transition_cost(*down, direction="ascending") == 2 * 10 * ASCENDING_VIOLATION_PENALTY
    assert transition_cost(*down, direction="descending") == 20.0
    assert transition_cost(*down, direction=Direction.MINIMAL) == 2 * 10 * MINIMAL_VIOLATION_PENALTY
    assert transition_cost(_voicing(3), _voicing(3), direction="minimal") == 0.0


def test_soft_cost_adds_small_penalties() -> None:
    hints = DirectionalHints(global_direction="ascending")
    assert soft_transition_cost(_voicing(5), _voicing(3), hints) == 20 + 50
    minimal = DirectionalHints(global_direction="minimal")
    assert soft_transition_cost(_voicing(0), _voicing(3), minimal) == 30
    assert soft_transition_cost(_voicing(0), _voicing(5), minimal) == 50 + 30


# ---------------------------------------------------------------------------
# optimize_candidates
# ---------------------------------------------------------------------------

def test_two_by_two_matches_brute_force() -> None:
    steps = [
        [_voicing(0, ("P1",), ("C4", "E4", "G4")), _voicing(8, (), ("C5", "E4", "G4"))],
        [_voicing(3, ("P1", "P2"), ("B3", "D4", "G4")), _voicing(10, ("P2",), ("D5", "G4", "B4"))],
    ]
    result = optimize_candidates(steps)
    expected = min(transition_cost(a, b) for a, b in product(*steps))
    assert result.success
    assert result.total_cost == pytest.approx(expected)
    assert transition_cost(*result.path) == pytest.approx(expected)


def test_three_steps_backtrack_the_cheapest_path() -> None:
    steps = [[_voicing(0), _voicing(7)], [_voicing(1), _voicing(8)], [_voicing(9)]]
    result = optimize_candidates(steps)
    assert [v.fret for v in result.path] == [7, 8, 9]
    assert result.total_cost == 20.0


def test_ties_keep_the_first_candidate() -> None:
    steps = [[_voicing(2), _voicing(2, ("P9",))], [_voicing(2), _voicing(2)]]
    result = optimize_candidates(steps)
    assert result.path == [steps[0][0], steps[1][0]]
    assert result.path[1] is steps[1][0]


def test_single_step_picks_first() -> None:
    steps = [[_voicing(4), _voicing(6)]]
    result = optimize_candidates(steps)
    assert result.success
    assert result.path == [steps[0][0]]
    assert result.total_cost == 0.0


def test_empty_step_fails() -> None:
    result = optimize_candidates([[_voicing(0)], []])
    assert not result.success
    assert result.failed_step_index == 1
    assert result.failed_chord is None


def test_no_steps_fails() -> None:
    result = optimize_candidates([])
    assert not result.success
    assert result.failed_step_index == -1


def test_ascending_avoids_a_downward_move() -> None:
    steps = [[_voicing(5)], [_voicing(4), _voicing(11)]]
    hints = DirectionalHints(global_direction="ascending")
    assert optimize_candidates(steps).path[1].fret == 4
    assert optimize_candidates(steps, hints).path[1].fret == 11


def test_per_chord_override_applies_to_that_transition_only() -> None:
    steps = [[_voicing(5)], [_voicing(4), _voicing(11)], [_voicing(3), _voicing(6)]]
    hints = DirectionalHints(global_direction="ascending", per_chord={2: "descending"})
    assert [v.fret for v in optimize_candidates(steps, hints).path] == [5, 11, 6]


# ---------------------------------------------------------------------------
# optimize_progression
# ---------------------------------------------------------------------------

def test_optimize_progression_ascending(e9: Copedent) -> None:
    hints = DirectionalHints(global_direction=Direction.ASCENDING)
    result = optimize_progression(e9, [C_MAJOR, G_MAJOR], hints=hints, max_per_fret=3)
    assert result.success
    assert len(result.path) == 2
    assert result.path[1].fret >= result.path[0].fret
    assert [v.chord_name for v in result.path] == ["C Major Triad", "G Major Triad"]
    assert {0, 4, 7} <= result.path[0].played_intervals


def test_unvoiceable_chord_reports_the_step(e9: Copedent) -> None:
    unknown = Chord("D", "Not A Chord")
    result = optimize_progression(e9, [C_MAJOR, unknown, G_MAJOR])
    assert not result.success
    assert result.failed_step_index == 1
    assert result.failed_chord == unknown
    assert result.path == []


def test_optimize_progression_on_string_subset(e9: Copedent) -> None:
    result = optimize_progression(e9, [C_MAJOR, G_MAJOR], string_ids=[3, 4, 5])
    assert result.success
    for voicing in result.path:
        assert [n.string_id for n in voicing.notes] == [3, 4, 5]


def test_unknown_string_ids_are_ignored(e9: Copedent) -> None:
    result = optimize_progression(e9, [C_MAJOR, G_MAJOR], string_ids=[3, 4, 5, 99])
    assert result.success
    for voicing in result.path:
        assert [n.string_id for n in voicing.notes] == [3, 4, 5]


def test_only_unknown_string_ids_fail(e9: Copedent) -> None:
    assert candidates_for_chord(e9, C_MAJOR, string_ids=[98, 99]) == []
    result = optimize_progression(e9, [C_MAJOR], string_ids=[98, 99])
    assert not result.success
    assert result.failed_step_index == 0


def test_candidates_carry_the_chord_name(e9: Copedent) -> None:
    candidates = candidates_for_chord(e9, G_MAJOR, max_per_fret=1)
    assert candidates
    assert {v.chord_name for v in candidates} == {G_MAJOR.name}


def test_optimize_progression_uses_the_cache(e9: Copedent) -> None:
    cache = VoicingCache()
    optimize_progression(e9, [C_MAJOR, G_MAJOR, C_MAJOR], max_per_fret=2, cache=cache)
    stats = cache.stats()
    assert stats.misses == 2
    assert stats.hits == 1


def test_simplified_chord_override(e9: Copedent) -> None:
    chord = Chord("C", "Dominant 13").simplified([0, 4, 10, 9])
    result = optimize_progression(e9, [chord], max_per_fret=1)
    assert result.success
    assert {0, 4, 9, 10} <= result.path[0].played_intervals


# ---------------------------------------------------------------------------
# Alternatives, locks and quality
# ---------------------------------------------------------------------------

def test_rank_alternatives_for_step(e9: Copedent) -> None:
    previous = _voicing(3)
    following = _voicing(5)
    ranked = rank_alternatives_for_step(previous, following, G_MAJOR, e9, max_per_fret=2)
    assert ranked
    scores = [s.score for s in ranked]
    assert scores == sorted(scores)
    best = ranked[0]
    assert best.score == pytest.approx(
        transition_cost(previous, best.voicing) + transition_cost(best.voicing, following)
    )
    assert best.voicing.chord_name == "G Major Triad"


def test_rank_alternatives_without_neighbours(e9: Copedent) -> None:
    ranked = rank_alternatives_for_step(None, None, G_MAJOR, e9, max_per_fret=1)
    assert all(s.score == 0.0 for s in ranked)


def test_reoptimize_keeps_locked_steps() -> None:
    alternatives = [[_voicing(0), _voicing(5)], [_voicing(1), _voicing(6)], [_voicing(2), _voicing(7)]]
    current = [alternatives[0][0], alternatives[1][1], alternatives[2][0]]

    free = reoptimize_with_locks(alternatives, None, current)
    assert [v.fret for v in free] == [0, 1, 2]

    locked = reoptimize_with_locks(alternatives, None, current, locked_steps=[1])
    assert locked[1].fret == 6
    assert [v.fret for v in locked] == [5, 6, 7]


def test_reoptimize_short_progression_is_unchanged() -> None:
    current = [_voicing(4)]
    assert reoptimize_with_locks([[_voicing(0)]], None, current) == current


def test_quality_score() -> None:
    assert quality_score([_voicing(0)]).score == 10.0

    smooth = quality_score([_voicing(3), _voicing(3), _voicing(4)])
    assert smooth.costs == [0.0, 10.0]
    assert smooth.score == pytest.approx(9.5)
    assert smooth.problem_steps == []

    rough = quality_score([_voicing(0), _voicing(11)])
    assert rough.problem_steps == [0]
    assert rough.score == 0.0
