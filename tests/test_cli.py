# tests/test_cli.py - CLI smoke checks
import json

import pytest

from smart_form_predictor.cli import main


@pytest.fixture
def records(tmp_path):
    p = tmp_path / "forms.jsonl"
    rows = [
        {"firstName": "Ada", "lastName": "Lovelace", "city": "Boston", "email": "ada@example.com"},
        {"firstName": "Ada", "lastName": "Lovelace", "city": "Bogota"},
        {"firstName": "Grace", "lastName": "Hopper", "city": "Boston"},
    ]
    p.write_text("\n".join(json.dumps(r) for r in rows) + "\n\nnot json\n", encoding="utf-8")
    return p


@pytest.fixture
def state(tmp_path):
    return str(tmp_path / "state.json")


def test_learn_then_suggest_and_predict(records, state, capsys):
    assert main(["--state", state, "learn", str(records)]) == 0
    out = capsys.readouterr().out
    assert "Learnt 3 record(s)" in out
    assert "bad json" in out

    assert main(["--state", state, "suggest", "city", "Bo"]) == 0
    out = capsys.readouterr().out
    assert "Boston" in out and "Bogota" in out

    assert main(["--state", state, "predict", "city"]) == 0
    assert "Boston" in capsys.readouterr().out


def test_budget_and_reset(records, state, capsys):
    main(["--state", state, "learn", str(records)])
    capsys.readouterr()
    main(["--state", state, "budget"])
    assert "0.700" in capsys.readouterr().out
    main(["--state", state, "budget", "--reset"])
    assert "1.000" in capsys.readouterr().out


def test_profile_and_graph(records, capsys):
    assert main(["profile", str(records)]) == 0
    assert "Ada Lovelace" in capsys.readouterr().out
    assert main(["graph", str(records)]) == 0
    assert "firstName->lastName" in capsys.readouterr().out


def test_validate_exit_codes(capsys):
    assert main(["validate", "email", "ada@example.com"]) == 0
    assert main(["validate", "email", "nope"]) == 1
    assert main(["validate", "code", "12", "--pattern", r"^\d{4}$"]) == 1


def test_missing_file(state, capsys):
    assert main(["--state", state, "learn", "/no/such/file.jsonl"]) == 2
    assert "No such file" in capsys.readouterr().out
