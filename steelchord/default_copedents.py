"""Built-in copedents, stored in the same raw shape as copedent JSON files."""

from typing import Any

from steelchord.copedent import Copedent

#: Lever slots every built-in copedent declares, in display order.
LEVER_SLOTS: list[str] = ["LKL", "LKR", "VL", "RKL", "RKR", "VR", "LKL2", "LKR2", "VL2", "RKL2", "RKR2", "VR2"]


def _pedal(pedal_id: str, changes: dict[int, int], name: str | None = None) -> dict[str, Any]:
    return {"id": pedal_id, "name": name or pedal_id, "changes": changes}


def _levers(active: dict[str, dict[int, int]], inactive: dict[str, dict[int, int]] | None = None,
            names: dict[str, str] | None = None) -> list[dict[str, Any]]:
    """Fill every lever slot; slots absent from ``active`` are switched off."""
    inactive = inactive or {}
    names = names or {}
    return [
        {
            "id": slot,
            "name": names.get(slot, slot),
            "active": slot in active,
            "changes": active.get(slot, inactive.get(slot, {})),
        }
        for slot in LEVER_SLOTS
    ]


def _split(string_id: int, controls: list[str], change: int, policy: str = "include") -> dict[str, Any]:
    return {
        "stringId": string_id,
        "conflictingControlIds": controls,
        "manualSemitoneChange": change,
        "isIncludedInCalculation": policy,
    }


E9_STANDARD: dict[str, Any] = {
    "id": "default-e9-standard",
    "name": "E9 Standard",
    "strings": ["F#4", "D#4", "G#4", "E4", "B3", "G#3", "F#3", "E3", "D3", "B2"],
    "pedals": [
        _pedal("P1", {5: 2, 10: 2}),
        _pedal("P2", {3: 1, 6: 1}),
        _pedal("P3", {4: 2, 5: 2}),
    ],
    "kneeLevers": _levers(
        {
            "LKL": {4: 1, 8: 1},
            "LKR": {4: -1, 8: -1},
            "VL": {5: -1, 10: -1},
            "RKL": {1: 2, 2: 1, 6: -2},
            "RKR": {2: -2, 9: -1},
            "RKR2": {2: -1},
        },
        names={"RKR2": "RKR-HS"},
    ),
    "mechanisms": [],
    "mechanismCombinations": {},
    "splits": [
        _split(2, ["RKR", "RKR2"], -3, policy="exclude"),
        _split(4, ["P3", "LKL"], 2),
        _split(4, ["P3", "LKR"], 1),
        _split(5, ["P1", "VL"], 1),
        _split(5, ["P3", "VL"], 1),
        _split(6, ["P2", "RKL"], 1),
        _split(10, ["P1", "VL"], 1),
    ],
}

C6_STANDARD: dict[str, Any] = {
    "id": "default-c6-standard",
    "name": "C6 Standard",
    "strings": ["G4", "E4", "C4", "A3", "G3", "E3", "C3", "A2", "F2", "C2"],
    "pedals": [
        _pedal("P1", {4: 2, 8: 2}, name="P4"),
        _pedal("P2", {1: 1, 5: -1, 9: 1, 10: 2}, name="P5"),
        _pedal("P3", {2: 1, 6: -1}, name="P6"),
        _pedal("P4", {3: 2, 4: 2}, name="P7"),
        _pedal("P5", {7: 1, 9: -1, 10: -3}, name="P8"),
    ],
    "kneeLevers": _levers(
        {"RKL": {3: -1}},
        inactive={
            "LKL": {4: 1, 8: 1},
            "LKR": {4: -1, 8: -1},
            "VL": {5: -1, 10: -1},
            "RKR": {2: -2, 9: -1},
            "RKR2": {2: -1},
        },
        names={"RKR2": "RKR-HS"},
    ),
    "mechanisms": [],
    "mechanismCombinations": {},
    "splits": [_split(3, ["P4", "RKL"], 1)],
}

UNIVERSAL_12_STRING: dict[str, Any] = {
    "id": "default-12-string-universal",
    "name": "GFI 12 String Universal Tuning",
    "strings": ["F#4", "D#4", "G#4", "E4", "B3", "G#3", "F#3", "E3", "B2", "G#2", "E2", "B1"],
    "pedals": [
        _pedal("P1", {5: 2, 9: 2}),
        _pedal("P2", {3: 1, 6: 1, 10: 1}),
        _pedal("P3", {4: 2, 5: 2}),
        _pedal("P4", {9: 1, 11: -1, 12: -3}),
        _pedal("P5", {7: -1, 11: 1, 12: 2}),
        _pedal("P6", {4: 1, 8: -2}),
        _pedal("P7", {5: 2, 6: 2}),
    ],
    "kneeLevers": _levers(
        {
            "LKL": {4: 1, 8: 1},
            "LKR": {4: -1, 8: -1},
            "VL": {5: -1},
            "RKL": {1: 1, 7: 1},
            "RKR": {2: -1, 9: 3},
        }
    ),
    "mechanisms": [],
    "mechanismCombinations": {},
    "splits": [
        _split(4, ["P3", "LKL"], 2),
        _split(4, ["P3", "LKR"], 1),
        _split(4, ["P6", "LKL"], 1),
        _split(4, ["P6", "LKR"], 0),
        _split(5, ["P1", "VL"], 1),
        _split(5, ["P3", "VL"], 1),
        _split(5, ["P7", "VL"], 1),
        _split(7, ["P5", "RKL"], 0),
        _split(8, ["P6", "LKL"], -1),
        _split(8, ["P6", "LKR"], -2),
        _split(9, ["P1", "RKR"], 3),
        _split(9, ["P4", "RKR"], 3),
        _split(11, ["P4", "P5"], 0),
        _split(12, ["P4", "P5"], -1),
    ],
}

DEFAULT_COPEDENTS: dict[str, dict[str, Any]] = {
    raw["id"]: raw for raw in (E9_STANDARD, C6_STANDARD, UNIVERSAL_12_STRING)
}

DEFAULT_COPEDENT_ID = E9_STANDARD["id"]


def get_default_copedent(copedent_id: str = DEFAULT_COPEDENT_ID) -> Copedent:
    """
    Build a fresh Copedent for a built-in id.

    Raises:
        KeyError: If ``copedent_id`` is not a built-in copedent.
    """
    try:
        raw = DEFAULT_COPEDENTS[copedent_id]
    except KeyError:
        known = ", ".join(DEFAULT_COPEDENTS)
        raise KeyError(f"Unknown copedent {copedent_id!r}; built-ins are: {known}") from None
    return Copedent.from_dict(raw)
