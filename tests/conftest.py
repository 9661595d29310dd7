"""Shared fixtures for the steelchord test suite."""

from typing import Any

import pytest

from steelchord.copedent import Copedent
from steelchord.default_copedents import get_default_copedent


@pytest.fixture
def e9() -> Copedent:
    return get_default_copedent("default-e9-standard")


@pytest.fixture
def c6() -> Copedent:
    return get_default_copedent("default-c6-standard")


@pytest.fixture
def mechanism_copedent_data() -> dict[str, Any]:
    """Four strings, two pedals, two levers and two mutually compatible mechanisms."""
    return {
        "id": "test-mechanisms",
        "name": "Mechanism Test",
        "strings": ["E4", "B3", "G#3", "E3"],
        "pedals": [
            {"id": "P1", "name": "A", "changes": {"2": 2}},
            {"id": "P2", "name": "B", "changes": {"3": 1}},
        ],
        "kneeLevers": [
            {"id": "LKL", "name": "LKL", "active": True, "changes": {"1": 1}},
            {"id": "LKR", "name": "LKR", "active": True, "changes": {"1": -1}},
        ],
        "mechanisms": [
            {"id": "M1", "name": "Mech 1", "changes": {"4": 2}},
            {"id": "M2", "name": "Mech 2", "changes": {"4": 1}},
        ],
        "mechanismCombinations": {"M1": ["M2", "P1"], "M2": ["M1", "P1"]},
        "splits": [],
    }
