# tests/test_config.py
import json

import pytest

from smart_form_predictor.utils.config_manager import DEFAULTS, Config


def test_defaults_in_memory():
    cfg = Config()
    assert cfg["max_suggestions"] == 3
    assert cfg["privacy_budget"] == pytest.approx(1.0)
    assert cfg.get("missing", "x") == "x"
    cfg.set("cache_size", "50")  # no path, nothing written
    assert cfg["cache_size"] == 50


def test_file_overlay_ignores_unknown_keys(tmp_path):
    p = tmp_path / "cfg.json"
    p.write_text(json.dumps({"max_suggestions": 5, "bogus": 1}), encoding="utf-8")
    cfg = Config(str(p))
    assert cfg["max_suggestions"] == 5
    assert "bogus" not in cfg.data


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    p = tmp_path / "cfg.json"
    p.write_text("{oops", encoding="utf-8")
    assert Config(str(p)).data == DEFAULTS


def test_set_persists_and_coerces(tmp_path):
    p = tmp_path / "cfg.json"
    cfg = Config(str(p))
    cfg.set("anonymize", "false")
    cfg.set("epsilon_per_learn", "0.25")
    saved = json.loads(p.read_text(encoding="utf-8"))
    assert saved["anonymize"] is False
    assert saved["epsilon_per_learn"] == pytest.approx(0.25)


def test_unknown_option_rejected():
    with pytest.raises(KeyError):
        Config().set("nope", 1)


def test_overrides_are_not_written(tmp_path):
    p = tmp_path / "cfg.json"
    Config(str(p), overrides={"knn_k": 5})
    assert not p.exists()
