"""Enumerate the pedal, knee-lever and mechanism combinations a player can engage."""

import logging
from dataclasses import dataclass
from itertools import combinations as subsets_of_size

from steelchord.copedent import Copedent, is_lever_combination_valid, pedal_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControlCombination:
    """One set of simultaneously engaged controls, split by control kind."""

    pedals: tuple[str, ...] = ()
    levers: tuple[str, ...] = ()
    mechanisms: tuple[str, ...] = ()

    @property
    def control_ids(self) -> tuple[str, ...]:
        return (*self.pedals, *self.levers, *self.mechanisms)

    @property
    def size(self) -> int:
        return len(self.pedals) + len(self.levers) + len(self.mechanisms)


def _powerset(items: list[str]) -> list[tuple[str, ...]]:
    """All subsets in the order produced by doubling: [], [a], [b], [a, b], [c], ..."""
    subsets: list[tuple[str, ...]] = [()]
    for item in items:
        subsets += [subset + (item,) for subset in subsets]
    return subsets


def pedal_combinations(copedent: Copedent) -> list[tuple[str, ...]]:
    """No pedal, every single pedal, and every pair of adjacent pedals."""
    numbered = sorted(
        (p.id for p in copedent.pedals),
        key=lambda pid: (pedal_number(pid) is None, pedal_number(pid) or 0),
    )
    combos: list[tuple[str, ...]] = [()]
    combos += [(pid,) for pid in numbered]
    for first, second in zip(numbered, numbered[1:]):
        a, b = pedal_number(first), pedal_number(second)
        if a is not None and b is not None and abs(a - b) == 1:
            combos.append((first, second))
    return combos


def lever_combinations(copedent: Copedent) -> list[tuple[str, ...]]:
    """Every subset of the active levers that a player's knees can physically reach."""
    lever_ids = [lever.id for lever in copedent.active_levers]
    return [subset for subset in _powerset(lever_ids) if is_lever_combination_valid(subset)]


def mechanism_combinations(copedent: Copedent) -> list[tuple[str, ...]]:
    """Every subset of mechanisms in which each pair is declared compatible."""
    mechanism_ids = [m.id for m in copedent.mechanisms]
    valid = []
    for subset in _powerset(mechanism_ids):
        if all(
            second in copedent.compatible_partners(first)
            for first, second in subsets_of_size(subset, 2)
        ):
            valid.append(subset)
    return valid


def generate_valid_control_combinations(copedent: Copedent) -> list[ControlCombination]:
    """
    Produce every control combination the voicing search has to try.

    Order: pedal x lever base combinations, then mechanism-only combinations,
    then base combinations merged with mechanisms. A merge is kept only when
    every mechanism lists every base control as a partner. No dedup is done
    here; search results are deduplicated by the notes they produce.

    Args:
        copedent: The instrument configuration.

    Returns:
        List of ControlCombination, starting with the open (empty) combination.
    """
    bases = [
        ControlCombination(pedals=pedals, levers=levers)
        for pedals in pedal_combinations(copedent)
        for levers in lever_combinations(copedent)
    ]
    mechanism_sets = [subset for subset in mechanism_combinations(copedent) if subset]

    merged = []
    for base in bases:
        base_controls = base.control_ids
        if not base_controls:
            continue
        for mechanisms in mechanism_sets:
            if all(
                control_id in copedent.compatible_partners(mechanism_id)
                for mechanism_id in mechanisms
                for control_id in base_controls
            ):
                merged.append(ControlCombination(base.pedals, base.levers, mechanisms))

    mechanism_only = [ControlCombination(mechanisms=mechanisms) for mechanisms in mechanism_sets]
    result = [*bases, *mechanism_only, *merged]
    logger.debug(
        "%s: %d combinations (%d base, %d mechanism-only, %d merged)",
        copedent.id, len(result), len(bases), len(mechanism_only), len(merged),
    )
    return result
