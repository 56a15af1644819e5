# tests/test_state_store.py
import json

from smart_form_predictor.core.protocols import PersistenceProtocol
from smart_form_predictor.utils.state_store import JsonStateStore


def test_round_trip(tmp_path):
    store = JsonStateStore(str(tmp_path / "nested" / "state.json"))
    state = {"version": 1, "trainingData": {"city": [{"value": "Boston", "timestamp": 1.0, "context": {}}]}}
    store.save_state(state)
    assert store.load_state() == state


def test_missing_file_is_none(tmp_path):
    assert JsonStateStore(str(tmp_path / "none.json")).load_state() is None


def test_corrupt_or_non_object_is_none(tmp_path):
    p = tmp_path / "state.json"
    p.write_text("{not json", encoding="utf-8")
    assert JsonStateStore(str(p)).load_state() is None
    p.write_text(json.dumps([1, 2]), encoding="utf-8")
    assert JsonStateStore(str(p)).load_state() is None


def test_save_failure_is_swallowed(tmp_path):
    # a directory where the file should be
    target = tmp_path / "state.json"
    target.mkdir()
    JsonStateStore(str(target)).save_state({"version": 1})


def test_clear(tmp_path):
    store = JsonStateStore(str(tmp_path / "state.json"))
    store.save_state({"version": 1})
    store.clear()
    store.clear()
    assert store.load_state() is None


def test_satisfies_protocol(tmp_path):
    assert isinstance(JsonStateStore(str(tmp_path / "s.json")), PersistenceProtocol)
