"""Tests for the steelchord command-line interface."""

import json
import re
from pathlib import Path

import pytest
from click.testing import CliRunner

from steelchord.cli import main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def triad_copedent(tmp_path: Path) -> str:
    """Three strings tuned to a C major triad, with no pedals or levers."""
    path = tmp_path / "triad.json"
    path.write_text(json.dumps({"id": "triad", "name": "Triad", "strings": ["G4", "E4", "C4"]}))
    return str(path)


def test_copedents_lists_builtins(runner: CliRunner) -> None:
    result = runner.invoke(main, ["copedents"])
    assert result.exit_code == 0
    assert "default-e9-standard" in result.output
    assert "default-c6-standard" in result.output
    assert "default-12-string-universal" in result.output


def test_find_at_one_fret(runner: CliRunner) -> None:
    result = runner.invoke(main, ["find", "C", "Major Triad", "--fret", "3"])
    assert result.exit_code == 0, result.output
    assert "C Major Triad on E9 Standard" in result.output
    assert "Fret  3" in result.output
    assert "Fret  4" not in result.output


def test_find_json(runner: CliRunner) -> None:
    result = runner.invoke(main, ["find", "A", "Minor 7", "--per-fret", "1", "--json"])
    assert result.exit_code == 0, result.output
    voicings = json.loads(result.output)
    assert voicings
    frets = [v["fret"] for v in voicings]
    assert len(frets) == len(set(frets))


def test_find_unknown_chord_type(runner: CliRunner) -> None:
    result = runner.invoke(main, ["find", "C", "Mystery Chord"])
    assert result.exit_code == 1
    assert "ERROR" in result.output


def test_find_from_copedent_file(runner: CliRunner, triad_copedent: str) -> None:
    result = runner.invoke(main, ["find", "D", "Major Triad", "--copedent-file", triad_copedent])
    assert result.exit_code == 0, result.output
    assert "Fret  2" in result.output


def test_find_with_no_results(runner: CliRunner, triad_copedent: str) -> None:
    result = runner.invoke(main, ["find", "C", "Minor Triad", "--copedent-file", triad_copedent])
    assert result.exit_code == 0
    assert "No voicings" in result.output


def test_identify(runner: CliRunner) -> None:
    result = runner.invoke(main, ["identify", "--fret", "0", "--strings", "3,4,5,6"])
    assert result.exit_code == 0, result.output
    assert "1. E Major Triad" in result.output


def test_identify_too_few_notes(runner: CliRunner) -> None:
    result = runner.invoke(main, ["identify", "--fret", "0", "--strings", "4,8"])
    assert result.exit_code == 0
    assert "Fewer than three" in result.output


def test_identify_rejects_bad_string_list(runner: CliRunner) -> None:
    result = runner.invoke(main, ["identify", "--fret", "0", "--strings", "three,four"])
    assert result.exit_code == 2


def test_progression_with_midi(runner: CliRunner, tmp_path: Path) -> None:
    output = tmp_path / "cg.mid"
    result = runner.invoke(main, ["progression", "C", "G", "--direction", "up", "--midi", str(output)])
    assert result.exit_code == 0, result.output
    assert "C Major Triad" in result.output
    assert "G Major Triad" in result.output
    assert "Quality" in result.output
    assert output.read_bytes()[:4] == b"MThd"


def test_progression_unvoiceable_chord(runner: CliRunner, triad_copedent: str) -> None:
    result = runner.invoke(main, ["progression", "C", "Dm", "--copedent-file", triad_copedent])
    assert result.exit_code == 1
    assert "No voicing for chord 2 (D Minor Triad)" in result.output


def test_progression_bad_symbol(runner: CliRunner) -> None:
    result = runner.invoke(main, ["progression", "C", "Hq7"])
    assert result.exit_code == 1
    assert "ERROR" in result.output


# ---------------------------------------------------------------------------
# progression --pattern
# ---------------------------------------------------------------------------

def _frets(output: str) -> list[int]:
    return [int(fret) for fret in re.findall(r"Fret\s+(\d+)", output)]


def test_progression_pattern_up_never_moves_down(runner: CliRunner) -> None:
    result = runner.invoke(main, ["progression", "C", "C", "C", "--pattern", "up", "--jump", "3"])
    assert result.exit_code == 0, result.output
    frets = _frets(result.output)
    assert len(frets) == 3
    assert frets == sorted(frets)


def test_progression_pattern_down_never_moves_up(runner: CliRunner) -> None:
    result = runner.invoke(
        main, ["progression", "C", "C", "C", "--pattern", "down", "--fret-start", "11", "--jump", "3"]
    )
    assert result.exit_code == 0, result.output
    frets = _frets(result.output)
    assert len(frets) == 3
    assert frets == sorted(frets, reverse=True)


def test_progression_pattern_on_single_voicings(runner: CliRunner, triad_copedent: str) -> None:
    result = runner.invoke(
        main, ["progression", "C", "D", "E", "--copedent-file", triad_copedent, "--pattern", "zigzag-up"]
    )
    assert result.exit_code == 0, result.output
    assert _frets(result.output) == [0, 2, 4]
    assert "Quality" in result.output


def test_progression_random_pattern_is_seeded(runner: CliRunner) -> None:
    args = ["progression", "C", "F", "G", "C", "--pattern", "random", "--jump", "5", "--seed", "7"]
    first = runner.invoke(main, args)
    second = runner.invoke(main, args)
    assert first.exit_code == 0, first.output
    assert first.output == second.output


def test_progression_pattern_unvoiceable_chord(runner: CliRunner, triad_copedent: str) -> None:
    result = runner.invoke(
        main, ["progression", "C", "Dm", "--copedent-file", triad_copedent, "--pattern", "up"]
    )
    assert result.exit_code == 1
    assert "No voicing for chord 2 (D Minor Triad)" in result.output


def test_progression_rejects_empty_fret_range(runner: CliRunner) -> None:
    result = runner.invoke(main, ["progression", "C", "G", "--pattern", "up", "--fret-range", "10", "2"])
    assert result.exit_code == 1
    assert "ERROR" in result.output


def test_progression_rejects_unknown_pattern(runner: CliRunner) -> None:
    result = runner.invoke(main, ["progression", "C", "G", "--pattern", "sideways"])
    assert result.exit_code == 2
