import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from conservation import cli
from conservation.cli import app

runner = CliRunner()


def _invoke(tmp_path: Path, *args: str):
    base = [
        "--state",
        str(tmp_path / "conservation.json"),
        "--settings",
        str(tmp_path / "settings.json"),
        "--log-level",
        "ERROR",
    ]
    return runner.invoke(app, [*base, *args])


def _add_animal(tmp_path: Path, name: str, category: str):
    return _invoke(
        tmp_path,
        "add-animal",
        "--name",
        name,
        "--species",
        "Tiger" if category == "predator" else "Rabbit",
        "--category",
        category,
        "--born",
        "2020-05-15",
        "--acquired",
        "2023-11-20",
        "--sex",
        "female",
    )


def _add_cage(tmp_path: Path, number: str, capacity: int):
    return _invoke(tmp_path, "add-cage", "--number", number, "--description", "Test cage", "--capacity", str(capacity))


def test_add_commands_persist_state(tmp_path: Path) -> None:
    result = _add_animal(tmp_path, "Leo", "predator")
    assert result.exit_code == 0, result.stdout
    payload = json.loads(result.stdout)
    assert payload["animal_id"] == 1
    assert payload["category"] == "PREDATOR"
    assert payload["sex"] == "FEMALE"

    assert _add_cage(tmp_path, "Small-01", 1).exit_code == 0
    keeper = _invoke(tmp_path, "add-keeper", "--first-name", "John", "--surname", "Smith")
    assert json.loads(keeper.stdout)["position"] == "HEAD_KEEPER"

    state = json.loads((tmp_path / "conservation.json").read_text(encoding="utf-8"))
    assert [len(state[key]) for key in ("animals", "cages", "keepers")] == [1, 1, 1]


def test_allocation_and_rule_violation_exit_code(tmp_path: Path) -> None:
    _add_animal(tmp_path, "Leo", "predator")
    _add_animal(tmp_path, "Bugs", "prey")
    _add_cage(tmp_path, "Small-01", 1)

    placed = _invoke(tmp_path, "allocate-animal", "1", "1")
    assert placed.exit_code == 0, placed.stdout
    assert json.loads(placed.stdout)["animal_ids"] == [1]

    state_before = (tmp_path / "conservation.json").read_text(encoding="utf-8")
    rejected = _invoke(tmp_path, "allocate-animal", "2", "1")
    assert rejected.exit_code == 2
    assert json.loads(rejected.stdout)["error"] == "INVALID_PREDATOR_PREY_MIX"
    assert (tmp_path / "conservation.json").read_text(encoding="utf-8") == state_before


def test_invalid_animal_data_exit_code(tmp_path: Path) -> None:
    result = _add_animal(tmp_path, "Leo", "omnivore")
    assert result.exit_code == 2
    assert json.loads(result.stdout)["error"] == "INVALID_ANIMAL_DATA"
    assert not (tmp_path / "conservation.json").exists()


def test_not_found_exit_code(tmp_path: Path) -> None:
    _add_cage(tmp_path, "Small-01", 1)
    result = _invoke(tmp_path, "allocate-animal", "9", "1")
    assert result.exit_code == 3
    assert json.loads(result.stdout) == {"error": "NOT_FOUND", "message": "Animal not found: ID 9"}


def test_state_violation_exit_code(tmp_path: Path) -> None:
    _add_animal(tmp_path, "Bugs", "prey")
    _add_cage(tmp_path, "Large-01", 4)
    _invoke(tmp_path, "allocate-animal", "1", "1")

    result = _invoke(tmp_path, "delete-cage", "1")
    assert result.exit_code == 4
    assert json.loads(result.stdout)["error"] == "STATE_VIOLATION"

    assert _invoke(tmp_path, "delete-animal", "1").exit_code == 0
    deleted = _invoke(tmp_path, "delete-cage", "1")
    assert json.loads(deleted.stdout) == {"deleted": "cage", "id": 1}


def test_keeper_underload_and_allow_underload(tmp_path: Path) -> None:
    _add_cage(tmp_path, "Large-01", 4)
    _invoke(tmp_path, "add-keeper", "--first-name", "John", "--surname", "Smith")
    assigned = _invoke(tmp_path, "allocate-keeper", "1", "1")
    assert json.loads(assigned.stdout)["cage_ids"] == [1]

    refused = _invoke(tmp_path, "remove-keeper-from-cage", "1", "1")
    assert refused.exit_code == 2
    assert json.loads(refused.stdout)["error"] == "KEEPER_UNDERLOAD"

    allowed = _invoke(tmp_path, "remove-keeper-from-cage", "1", "1", "--allow-underload")
    assert allowed.exit_code == 0, allowed.stdout
    assert json.loads(allowed.stdout) == {"keeper_id": 1, "cage_id": 1, "removed": True}

    assert _invoke(tmp_path, "delete-keeper", "1").exit_code == 0


def test_available_and_stats(tmp_path: Path) -> None:
    _add_animal(tmp_path, "Bugs", "prey")
    _add_animal(tmp_path, "Flopsy", "prey")
    _add_cage(tmp_path, "Large-01", 4)
    _invoke(tmp_path, "allocate-animal", "1", "1")

    available = json.loads(_invoke(tmp_path, "available").stdout)
    assert [a["name"] for a in available["animals"]] == ["Flopsy"]
    assert [c["cage_number"] for c in available["cages"]] == ["Large-01"]
    assert available["keepers"] == []

    stats = json.loads(_invoke(tmp_path, "stats").stdout)
    assert stats["animals"] == 2
    assert stats["available_space"] == 3
    assert stats["occupancy_rate"] == 25.0

    text = _invoke(tmp_path, "stats", "--text").stdout
    assert "Occupancy Rate: 25.0%" in text


def test_settings_file_changes_rules(tmp_path: Path) -> None:
    (tmp_path / "settings.json").write_text(
        json.dumps({"keeper_constraints": {"min_cages": 1, "max_cages": 1}}), encoding="utf-8"
    )
    _add_cage(tmp_path, "Large-01", 4)
    _add_cage(tmp_path, "Large-02", 4)
    _invoke(tmp_path, "add-keeper", "--first-name", "John", "--surname", "Smith")
    assert _invoke(tmp_path, "allocate-keeper", "1", "1").exit_code == 0

    result = _invoke(tmp_path, "allocate-keeper", "1", "2")
    assert result.exit_code == 2
    assert json.loads(result.stdout)["error"] == "KEEPER_OVERLOAD"


def test_check_reports_inconsistent_state(tmp_path: Path) -> None:
    _add_cage(tmp_path, "Large-01", 4)
    clean = _invoke(tmp_path, "check")
    assert clean.exit_code == 0
    assert json.loads(clean.stdout) == {"consistent": True, "problems": []}

    path = tmp_path / "conservation.json"
    state = json.loads(path.read_text(encoding="utf-8"))
    state["cages"][0]["animal_ids"] = [5]
    path.write_text(json.dumps(state), encoding="utf-8")

    broken = _invoke(tmp_path, "check")
    assert broken.exit_code == 4
    assert json.loads(broken.stdout)["problems"] == ["Cage 1 lists unknown animal 5"]


def test_unreadable_state_exit_code(tmp_path: Path) -> None:
    (tmp_path / "conservation.json").write_text("{oops", encoding="utf-8")
    result = _invoke(tmp_path, "stats")
    assert result.exit_code == 5
    assert json.loads(result.stdout)["error"] == "PERSISTENCE"


@pytest.mark.parametrize(
    ("flag", "env", "expected"),
    [([], {}, False), (["--log-json"], {}, True), ([], {"CONSERVATION_LOG_JSON": "1"}, True)],
)
def test_log_json_switch(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, flag, env, expected) -> None:
    calls = []
    monkeypatch.setattr(
        cli, "setup_logging", lambda level, use_json_format=False: calls.append((level, use_json_format))
    )
    monkeypatch.delenv("CONSERVATION_LOG_JSON", raising=False)
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    result = runner.invoke(
        app,
        [
            "--state",
            str(tmp_path / "conservation.json"),
            "--settings",
            str(tmp_path / "settings.json"),
            "--log-level",
            "INFO",
            *flag,
            "stats",
        ],
    )
    assert result.exit_code == 0, result.stdout
    assert calls == [("INFO", expected)]
