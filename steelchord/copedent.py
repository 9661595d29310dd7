"""Copedent configuration: strings, controls, mechanisms and declared splits."""

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from steelchord.notes import Pitch, parse_pitch

logger = logging.getLogger(__name__)

MAX_PEDALS_PRESSED = 2
VERTICAL_KNEE = "Vertical"


class CopedentError(ValueError):
    """Raised when copedent data is structurally unusable."""


class ControlKind(str, Enum):
    PEDAL = "pedal"
    LEVER = "lever"
    MECHANISM = "mechanism"


class SplitPolicy(str, Enum):
    """How a declared split resolves: use a fixed change, or mute the string."""

    INCLUDE = "include"
    EXCLUDE = "exclude"
    DEFINE = "define"  # detected but not yet decided; behaves like EXCLUDE


@dataclass(frozen=True)
class GuitarString:
    id: int
    open_pitch: Pitch


@dataclass(frozen=True)
class Control:
    """
    A pedal, knee lever or mechanism.

    Attributes:
        id:      Stable identifier ('P1', 'LKL', 'RKR2', 'M1', ...).
        name:    Display name.
        kind:    Pedal, lever or mechanism.
        changes: Semitone change per string id; zero entries never affect a string.
        active:  Inactive levers are ignored by the combination generator.
    """

    id: str
    name: str
    kind: ControlKind
    changes: dict[int, int] = field(default_factory=dict)
    active: bool = True

    def change_for(self, string_id: int) -> int:
        return self.changes.get(string_id, 0)


@dataclass(frozen=True)
class Split:
    """A declared resolution for two or more controls acting on one string."""

    string_id: int
    control_ids: frozenset[str]
    policy: SplitPolicy
    manual_change: int = 0

    @property
    def is_included(self) -> bool:
        return self.policy is SplitPolicy.INCLUDE


@dataclass(frozen=True)
class CombinationCheck:
    valid: bool
    message: str = ""


@dataclass
class Copedent:
    """The full mechanical configuration of one instrument."""

    id: str
    name: str
    strings: list[GuitarString]
    pedals: list[Control] = field(default_factory=list)
    levers: list[Control] = field(default_factory=list)
    mechanisms: list[Control] = field(default_factory=list)
    mechanism_combinations: dict[str, tuple[str, ...]] = field(default_factory=dict)
    splits: list[Split] = field(default_factory=list)

    @property
    def controls(self) -> list[Control]:
        return [*self.pedals, *self.levers, *self.mechanisms]

    @property
    def active_levers(self) -> list[Control]:
        return [lever for lever in self.levers if lever.active]

    def control(self, control_id: str) -> Control | None:
        for control in self.controls:
            if control.id == control_id:
                return control
        return None

    def string(self, string_id: int) -> GuitarString | None:
        for guitar_string in self.strings:
            if guitar_string.id == string_id:
                return guitar_string
        return None

    def compatible_partners(self, mechanism_id: str) -> tuple[str, ...]:
        return self.mechanism_combinations.get(mechanism_id, ())

    def find_split(self, string_id: int, control_ids: frozenset[str]) -> Split | None:
        """Return the split declared for exactly this string and control set."""
        for split in self.splits:
            if split.string_id == string_id and split.control_ids == control_ids:
                return split
        return None

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Copedent":
        """
        Build a copedent from its raw JSON shape.

        Structural problems raise CopedentError. Optional cross-references
        that do not resolve (splits on unknown strings, compatibility entries
        naming unknown controls) are dropped with a warning.
        """
        try:
            copedent_id = str(data["id"])
            raw_strings = data["strings"]
        except (KeyError, TypeError) as exc:
            raise CopedentError(f"Copedent is missing required field {exc}") from exc
        if not raw_strings:
            raise CopedentError(f"Copedent {copedent_id!r} has no strings")

        strings = [
            GuitarString(id=index, open_pitch=_parse_open_note(note, index))
            for index, note in enumerate(raw_strings, start=1)
        ]
        string_ids = {s.id for s in strings}

        pedals = [_parse_control(raw, ControlKind.PEDAL, string_ids) for raw in data.get("pedals", [])]
        levers = [_parse_control(raw, ControlKind.LEVER, string_ids) for raw in data.get("kneeLevers", [])]
        mechanisms = [
            _parse_control(raw, ControlKind.MECHANISM, string_ids) for raw in data.get("mechanisms", [])
        ]

        seen: set[str] = set()
        for control in [*pedals, *levers, *mechanisms]:
            if control.id in seen:
                raise CopedentError(f"Duplicate control id {control.id!r} in {copedent_id!r}")
            seen.add(control.id)

        mechanism_ids = {m.id for m in mechanisms}
        combinations = _parse_mechanism_combinations(
            data.get("mechanismCombinations", {}), mechanism_ids, seen, copedent_id
        )
        splits = _parse_splits(data.get("splits", data.get("detectedSplits", [])), string_ids, seen, copedent_id)

        return cls(
            id=copedent_id,
            name=str(data.get("name", copedent_id)),
            strings=strings,
            pedals=pedals,
            levers=levers,
            mechanisms=mechanisms,
            mechanism_combinations=combinations,
            splits=splits,
        )

    def to_dict(self) -> dict[str, Any]:
        def control_dict(control: Control) -> dict[str, Any]:
            out: dict[str, Any] = {
                "id": control.id,
                "name": control.name,
                "changes": {str(k): v for k, v in control.changes.items()},
            }
            if control.kind is ControlKind.LEVER:
                out["active"] = control.active
            return out

        return {
            "id": self.id,
            "name": self.name,
            "strings": [str(s.open_pitch) for s in self.strings],
            "pedals": [control_dict(p) for p in self.pedals],
            "kneeLevers": [control_dict(l) for l in self.levers],
            "mechanisms": [control_dict(m) for m in self.mechanisms],
            "mechanismCombinations": {k: list(v) for k, v in self.mechanism_combinations.items()},
            "splits": [
                {
                    "stringId": split.string_id,
                    "conflictingControlIds": sorted(split.control_ids),
                    "manualSemitoneChange": split.manual_change,
                    "isIncludedInCalculation": split.policy.value,
                }
                for split in self.splits
            ],
        }


def load_copedent(path: str | Path) -> Copedent:
    """
    Load a copedent from a JSON file.

    Raises:
        OSError:       If the file cannot be read.
        CopedentError: If the content is not a usable copedent.
    """
    with open(path, encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise CopedentError(f"{path}: invalid JSON ({exc})") from exc
    return Copedent.from_dict(data)


# ── Parsing helpers ─────────────────────────────────────────────────────────

def _parse_open_note(note: Any, string_id: int) -> Pitch:
    try:
        return parse_pitch(str(note))
    except ValueError as exc:
        raise CopedentError(f"String {string_id}: {exc}") from exc


def _parse_control(raw: dict[str, Any], kind: ControlKind, string_ids: set[int]) -> Control:
    try:
        control_id = str(raw["id"])
    except (KeyError, TypeError) as exc:
        raise CopedentError(f"{kind.value} entry without an id: {raw!r}") from exc

    changes: dict[int, int] = {}
    for key, value in (raw.get("changes") or {}).items():
        try:
            string_id = int(key)
        except (TypeError, ValueError) as exc:
            raise CopedentError(f"{control_id}: invalid string id {key!r}") from exc
        if isinstance(value, bool) or not isinstance(value, int):
            raise CopedentError(f"{control_id}: change for string {key} must be an integer")
        if string_id not in string_ids:
            logger.warning("%s: ignoring change for unknown string %s", control_id, string_id)
            continue
        if value != 0:
            changes[string_id] = value

    return Control(
        id=control_id,
        name=str(raw.get("name", control_id)),
        kind=kind,
        changes=changes,
        active=bool(raw.get("active", True)),
    )


def _parse_mechanism_combinations(
    raw: dict[str, Any], mechanism_ids: set[str], control_ids: set[str], copedent_id: str
) -> dict[str, tuple[str, ...]]:
    combinations: dict[str, tuple[str, ...]] = {}
    for mechanism_id, partners in (raw or {}).items():
        if mechanism_id not in mechanism_ids:
            logger.warning("%s: compatibility list for unknown mechanism %r dropped", copedent_id, mechanism_id)
            continue
        if not isinstance(partners, (list, tuple)):
            logger.warning("%s: compatibility list for %r is not a list; dropped", copedent_id, mechanism_id)
            continue
        known = tuple(str(p) for p in partners if str(p) in control_ids)
        if len(known) != len(partners):
            logger.warning("%s: %r lists unknown partners; they are ignored", copedent_id, mechanism_id)
        combinations[mechanism_id] = known
    return combinations


def _parse_splits(
    raw_splits: list[Any], string_ids: set[int], control_ids: set[str], copedent_id: str
) -> list[Split]:
    splits: list[Split] = []
    for raw in raw_splits or []:
        try:
            string_id = int(raw["stringId"])
            if "conflictingControlIds" in raw:
                ids = [str(c) for c in raw["conflictingControlIds"]]
            else:
                ids = [str(c["id"]) for c in raw["conflictingControls"]]
            policy = SplitPolicy(str(raw.get("isIncludedInCalculation", "define")).lower())
            manual_change = int(raw.get("manualSemitoneChange") or 0)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("%s: malformed split %r dropped (%s)", copedent_id, raw, exc)
            continue
        if string_id not in string_ids or len(ids) < 2 or not set(ids) <= control_ids:
            logger.warning("%s: split %r references unknown strings or controls; dropped", copedent_id, raw)
            continue
        splits.append(Split(string_id, frozenset(ids), policy, manual_change))
    return splits


# ── Mechanical rules ────────────────────────────────────────────────────────

def pedal_number(pedal_id: str) -> int | None:
    """Numeric position of a pedal ('P3' -> 3), or None if the id has no number."""
    match = re.match(r"^\D*(\d+)", pedal_id)
    return int(match.group(1)) if match else None


def pedals_adjacent(first: str, second: str) -> bool:
    a, b = pedal_number(first), pedal_number(second)
    return a is not None and b is not None and abs(a - b) == 1


def lever_geometry(lever_id: str) -> tuple[str, str | None]:
    """
    Return (knee, direction) for a lever id.

    Ids starting with 'V' are vertical levers with no direction; otherwise the
    first character is the knee and the third the direction ('LKR' -> ('L', 'R')).
    """
    if lever_id.startswith("V"):
        return VERTICAL_KNEE, None
    direction = lever_id[2] if len(lever_id) > 2 else None
    return lever_id[:1], direction


def is_lever_combination_valid(lever_ids: list[str] | tuple[str, ...]) -> bool:
    """A knee cannot push left and right at the same time; vertical levers are exempt."""
    directions: dict[str, set[str]] = {"L": set(), "R": set()}
    for lever_id in lever_ids:
        knee, direction = lever_geometry(lever_id)
        if knee in directions and direction is not None:
            directions[knee].add(direction)
    return all(not {"L", "R"} <= seen for seen in directions.values())


def validate_combination(
    copedent: Copedent,
    pedal_ids: list[str],
    lever_ids: list[str],
    mechanism_ids: list[str],
) -> CombinationCheck:
    """Check a hand-picked control combination against the copedent's rules."""
    if len(pedal_ids) > MAX_PEDALS_PRESSED:
        return CombinationCheck(False, "You can select a maximum of two adjacent pedals.")
    if len(pedal_ids) == 2 and not pedals_adjacent(pedal_ids[0], pedal_ids[1]):
        return CombinationCheck(False, "You can only select two pedals that are adjacent to each other.")
    if not is_lever_combination_valid(lever_ids):
        return CombinationCheck(False, "This knee lever combination is physically impossible.")

    for mechanism_id in mechanism_ids:
        partners = copedent.compatible_partners(mechanism_id)
        mechanism = copedent.control(mechanism_id)
        label = mechanism.name if mechanism else mechanism_id
        for other in [*mechanism_ids, *pedal_ids, *lever_ids]:
            if other != mechanism_id and other not in partners:
                other_control = copedent.control(other)
                other_label = other_control.name if other_control else other
                return CombinationCheck(False, f"Mechanism {label} cannot be combined with {other_label}.")
    return CombinationCheck(True)


def _can_engage_together(a: Control, b: Control, copedent: Copedent) -> bool:
    if a.id == b.id:
        return False
    if ControlKind.MECHANISM in (a.kind, b.kind):
        mechanism, other = (a, b) if a.kind is ControlKind.MECHANISM else (b, a)
        return other.id in copedent.compatible_partners(mechanism.id)
    if a.kind is ControlKind.PEDAL and b.kind is ControlKind.PEDAL:
        return pedals_adjacent(a.id, b.id)
    if a.kind is ControlKind.LEVER and b.kind is ControlKind.LEVER:
        return is_lever_combination_valid([a.id, b.id])
    return True


def detect_splits(copedent: Copedent) -> list[Split]:
    """
    List every pairwise conflict that can occur on the copedent.

    Each detected split defaults to the stacked change of both controls and
    the undecided DEFINE policy, for the user to confirm.
    """
    controls = [*copedent.pedals, *copedent.active_levers, *copedent.mechanisms]
    detected: list[Split] = []
    seen: set[tuple[int, frozenset[str]]] = set()

    for guitar_string in copedent.strings:
        acting = [c for c in controls if c.change_for(guitar_string.id) != 0]
        for i, first in enumerate(acting):
            for second in acting[i + 1:]:
                if not _can_engage_together(first, second, copedent):
                    continue
                key = (guitar_string.id, frozenset({first.id, second.id}))
                if key in seen:
                    continue
                seen.add(key)
                detected.append(
                    Split(
                        string_id=guitar_string.id,
                        control_ids=key[1],
                        policy=SplitPolicy.DEFINE,
                        manual_change=first.change_for(guitar_string.id) + second.change_for(guitar_string.id),
                    )
                )
    return detected


def format_control_combination(
    pedal_ids: list[str] | tuple[str, ...] = (),
    lever_ids: list[str] | tuple[str, ...] = (),
    mechanism_ids: list[str] | tuple[str, ...] = (),
    copedent: Copedent | None = None,
) -> str:
    """
    Render a control combination for display, e.g. ``(P1+P2) + (LKL) + (RKR)``.

    Without a copedent ids are listed as-is; with one, display names are used
    and levers are grouped by knee. An empty combination is ``Open``.
    """
    if copedent is None:
        all_ids = sorted([*pedal_ids, *lever_ids, *mechanism_ids])
        return f"({'+'.join(all_ids)})" if all_ids else "Open"

    def names(ids: list[str]) -> str:
        labels = []
        for control_id in ids:
            control = copedent.control(control_id)
            labels.append(control.name if control else control_id)
        return f"({'+'.join(labels)})"

    parts: list[str] = []
    if pedal_ids:
        parts.append(names(sorted(pedal_ids)))
    left = sorted(l for l in lever_ids if l.startswith(("L", "V")))
    right = sorted(l for l in lever_ids if l.startswith("R"))
    if left:
        parts.append(names(left))
    if right:
        parts.append(names(right))
    if mechanism_ids:
        parts.append(names(sorted(mechanism_ids)))
    return " + ".join(parts) if parts else "Open"
