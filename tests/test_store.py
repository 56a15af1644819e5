# tests/test_store.py
from smart_form_predictor.core.field_models import ModelKind
from smart_form_predictor.core.store import PredictionStore


def test_examples_patterns_and_lazy_model():
    s = PredictionStore()
    s.add_example("city", "Boston", 1.0, {"field.state": "MA"})
    s.add_example("city", "Denver", 2.0)
    s.add_example("city", "Boston", 3.0)
    assert [ex.value for ex in s.examples("city")] == ["Boston", "Denver", "Boston"]
    assert s.values("city") == ["Boston", "Denver"]
    assert s.model_kind("city") is ModelKind.MARKOV_CHAIN
    assert s.field_kinds["city"] == "text"


def test_unknown_field_reads_are_empty():
    s = PredictionStore()
    assert s.examples("nope") == []
    assert s.values("nope") == []
    assert s.model_kind("nope") is None


def test_declared_kind_picks_model():
    s = PredictionStore()
    s.declare_kind("plan", "select")
    s.add_example("plan", "pro", 1.0)
    assert s.model_kind("plan") is ModelKind.FREQUENCY_VOTE


def test_redeclaring_kind_rebuilds_model():
    s = PredictionStore()
    s.add_example("plan", "pro", 1.0, {"context.deviceType": "mobile"})
    assert s.model_kind("plan") is ModelKind.MARKOV_CHAIN
    s.declare_kind("plan", "radio")
    assert s.model_kind("plan") is ModelKind.FREQUENCY_VOTE
    assert len(s.models["plan"].state.examples) == 1


def test_export_load_rebuilds_models():
    s = PredictionStore()
    s.add_example("email", "ada@example.com", 1.0, {"field.firstName": "Ada"})
    s.add_example("age", 31, 2.0)
    exported = s.export()

    other = PredictionStore()
    other.load(exported["trainingData"], exported["patterns"], exported["fieldKinds"])
    assert other.values("email") == ["ada@example.com"]
    assert other.model_kind("email") is ModelKind.K_NEAREST
    assert other.model_kind("age") is ModelKind.LINEAR_SCORE
    assert other.examples("email")[0].context == {"field.firstName": "Ada"}


def test_load_merges_extra_patterns():
    s = PredictionStore()
    s.load({"city": [{"value": "Boston", "timestamp": 1}]}, patterns={"city": ["Bogota", "Boston"]})
    assert s.values("city") == ["Boston", "Bogota"]
