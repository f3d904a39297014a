"""Tests for the coach-health-check command line entry point."""

import json

import pytest

from coach_workers.check_cli import EXIT_CRITICAL, main

KNEE_SNAPSHOT = {
    "medical_conditions": "Dor no joelho",
    "exercises": [
        {"id": "ex-1", "name": "Agachamento", "exercise_group": "Pernas"},
        {"id": "ex-2", "name": "Supino", "exercise_group": "Peito"},
    ],
    "restrictions": [
        {
            "condition_keyword": "joelho",
            "restricted_exercise_groups": ["Pernas"],
            "severity_level": "warning",
            "recommendation": "Reduza a amplitude",
        }
    ],
}


def _write(tmp_path, data, name="snapshot.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return str(path)


def test_snapshot_caution(tmp_path, capsys):
    code = main(["--snapshot", _write(tmp_path, KNEE_SNAPSHOT)])

    assert code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["riskLevel"] == "caution"
    assert output["compatible"] is True
    assert output["recommendations"] == ["Reduza a amplitude"]
    assert output["warnings"][0]["affectedExercises"] == [
        {"id": "ex-1", "name": "Agachamento", "group": "Pernas"}
    ]
    assert output["summary"]["title"] == "Atenção"
    assert output["conditionMappingVersion"] == "intake_condition_mapping.v1"


def test_snapshot_critical_exit_code(tmp_path, capsys):
    snapshot = {
        "medical_conditions": "cardiopatia",
        "exercises": [{"id": "ex-1", "name": "Corrida", "exercise_group": "Pernas"}],
        "restrictions": [
            {
                "condition_keyword": "cardiopatia",
                "restricted_exercise_groups": ["Pernas"],
                "severity_level": "critical",
            }
        ],
    }
    code = main(["--snapshot", _write(tmp_path, snapshot)])

    assert code == EXIT_CRITICAL
    output = json.loads(capsys.readouterr().out)
    assert output["compatible"] is False
    assert output["summary"]["headline"] == "Treino contraindicado"


def test_snapshot_intake_with_mapping_override(tmp_path, capsys):
    snapshot = {
        "intake": {"has_joint_pain": True, "pain_locations": ["Knee"]},
        "exercises": KNEE_SNAPSHOT["exercises"],
        "restrictions": KNEE_SNAPSHOT["restrictions"],
    }
    mapping = {"version": "custom.v2", "translations": {"Knee": "joelho"}}
    code = main(
        [
            "--snapshot",
            _write(tmp_path, snapshot),
            "--condition-mapping",
            _write(tmp_path, mapping, "mapping.json"),
        ]
    )

    assert code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["riskLevel"] == "caution"
    assert "(Relatado na anamnese)" in output["warnings"][0]["message"]
    assert output["conditionMappingVersion"] == "custom.v2"


def test_invalid_snapshot_is_usage_error(tmp_path):
    bad = {"exercises": [{"id": "ex-1", "name": "X", "exercise_group": "Antebraço"}]}
    with pytest.raises(SystemExit) as exc_info:
        main(["--snapshot", _write(tmp_path, bad)])
    assert exc_info.value.code == 2


def test_missing_snapshot_file_is_usage_error(tmp_path):
    with pytest.raises(SystemExit):
        main(["--snapshot", str(tmp_path / "missing.json")])


def test_source_is_required():
    with pytest.raises(SystemExit):
        main([])


def test_client_id_requires_exercise_source():
    with pytest.raises(SystemExit):
        main(["--client-id", "c-1"])


def test_client_id_requires_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(SystemExit):
        main(["--client-id", "c-1", "--workout-id", "w-1"])
