"""Pattern-driven fret paths over precomputed voicing alternatives."""

import logging
import random
from collections.abc import Iterable, Sequence

from steelchord.voicing import Voicing

logger = logging.getLogger(__name__)

PATTERNS = ("up", "down", "zigzag-up", "zigzag-down", "random")


def nearest_voicing(alternatives: Sequence[Voicing], target_fret: int) -> Voicing | None:
    """The alternative closest to ``target_fret``; the earliest wins ties."""
    if not alternatives:
        return None
    return min(alternatives, key=lambda v: abs(v.fret - target_fret))


def up_target(current: int, jump: int, fret_range: tuple[int, int]) -> int:
    """Move up by ``jump``, wrapping to the bottom of the range past its top."""
    low, high = fret_range
    if jump == 0:
        return current
    target = current + jump
    if target <= high:
        return target
    return low + (target - high - 1) % (high - low + 1)


def down_target(current: int, jump: int, fret_range: tuple[int, int]) -> int:
    """Move down by ``jump``, wrapping to the top of the range past its bottom."""
    low, high = fret_range
    if jump == 0:
        return current
    target = current - jump
    if target >= low:
        return target
    return high - (low - target - 1) % (high - low + 1)


def zigzag_target(current: int, jump: int, fret_range: tuple[int, int], going_up: bool) -> tuple[int, bool]:
    """Move by ``jump`` in the current direction, bouncing off the range ends."""
    low, high = fret_range
    if jump == 0:
        return current, going_up
    if going_up:
        target = current + jump
        if target > high:
            return max(low, high - (target - high)), False
        return target, True
    target = current - jump
    if target < low:
        return min(high, low + (low - target)), True
    return target, False


def random_target(fret_range: tuple[int, int], max_jump: int, current: int | None, rng: random.Random) -> int:
    """A random jump of up to ``max_jump`` frets either way, clamped to the range."""
    low, high = fret_range
    if current is not None and max_jump > 0:
        sign = -1 if rng.random() < 0.5 else 1
        target = current + sign * rng.randint(0, max_jump)
        return max(low, min(high, target))
    return rng.randint(low, high)


def apply_directional_selection(
    alternatives_by_step: Sequence[Sequence[Voicing]],
    pattern: str,
    fret_start: int,
    fret_range: tuple[int, int],
    jump_size: int,
    locked_steps: Iterable[int] = (),
    rng: random.Random | None = None,
) -> list[Voicing]:
    """
    Pick one voicing per step by steering towards a moving target fret.

    Args:
        alternatives_by_step: Candidate voicings for each step.
        pattern:              One of PATTERNS.
        fret_start:           Fret the walk starts from.
        fret_range:           Inclusive (low, high) bounds for targets.
        jump_size:            Frets moved per step (maximum jump for 'random').
        locked_steps:         Steps that keep their first alternative.
        rng:                  Random source for the 'random' pattern.

    Returns:
        The chosen voicings; steps without alternatives are skipped.

    Raises:
        ValueError: If ``pattern`` is unknown.
    """
    if pattern not in PATTERNS:
        raise ValueError(f"Unknown pattern {pattern!r}; expected one of {', '.join(PATTERNS)}")
    rng = rng or random.Random()
    locked = set(locked_steps)
    going_up = pattern == "zigzag-up"
    current = fret_start

    chosen: list[Voicing] = []
    for step, alternatives in enumerate(alternatives_by_step):
        if not alternatives:
            logger.debug("step %d: no alternatives", step)
            continue
        if step in locked:
            chosen.append(alternatives[0])
            continue

        if pattern == "up":
            target = up_target(current, jump_size, fret_range)
        elif pattern == "down":
            target = down_target(current, jump_size, fret_range)
        elif pattern == "random":
            target = random_target(fret_range, jump_size, current, rng)
        else:
            target, going_up = zigzag_target(current, jump_size, fret_range, going_up)

        selected = nearest_voicing(alternatives, target)
        chosen.append(selected)
        current = selected.fret
        logger.debug("step %d: target fret %d, chose fret %d", step, target, selected.fret)
    return chosen
