# tests/test_field_models.py
import random

import pytest

from smart_form_predictor.core import field_models
from smart_form_predictor.core.field_models import (
    ModelKind,
    context_similarity,
    create_model,
    detect_field_kind,
    euclidean_distance,
    kind_for_field,
)


@pytest.mark.parametrize("kind, model", [
    ("select", ModelKind.FREQUENCY_VOTE),
    ("categorical", ModelKind.FREQUENCY_VOTE),
    ("number", ModelKind.LINEAR_SCORE),
    ("text", ModelKind.MARKOV_CHAIN),
    ("email", ModelKind.K_NEAREST),
    (None, ModelKind.K_NEAREST),
])
def test_kind_for_field(kind, model):
    assert kind_for_field(kind) is model


def test_detect_field_kind():
    assert detect_field_kind("age", 31) == "numerical"
    assert detect_field_kind("subscribed", True) == "categorical"
    assert detect_field_kind("workEmail", "a@b.c") == "email"
    assert detect_field_kind("notes", "hello") == "text"
    assert detect_field_kind("blob", None) == "generic"


def test_frequency_vote_weighted_by_similarity():
    m = create_model("plan", ModelKind.FREQUENCY_VOTE)
    ctx1 = {"device": "mobile", "time": "morning"}
    ctx2 = {"device": "mobile", "time": "morning"}
    ctx3 = {"device": "desktop", "time": "evening"}
    field_models.train(m, ctx1, "X")
    field_models.train(m, ctx2, "X")
    field_models.train(m, ctx3, "Y")
    assert field_models.predict(m, {"device": "mobile", "time": "morning"}) == "X"


def test_frequency_vote_nothing_similar():
    m = create_model("plan", ModelKind.FREQUENCY_VOTE)
    field_models.train(m, {"device": "desktop"}, "Y")
    assert field_models.predict(m, {"device": "mobile"}) is None


def test_frequency_vote_first_label_wins_tie():
    m = create_model("plan", ModelKind.FREQUENCY_VOTE)
    field_models.train(m, {"d": 1}, "first")
    field_models.train(m, {"d": 1}, "second")
    assert field_models.predict(m, {"d": 1}) == "first"


def test_linear_score_truncates_to_shorter():
    m = create_model("amount", ModelKind.LINEAR_SCORE)
    field_models.train(m, {}, 10)
    assert field_models.predict(m, {"a": 1, "b": 2, "c": 3, "d": 4}) == pytest.approx(1.7)
    assert field_models.predict(m, {"a": 2}) == pytest.approx(1.0)
    assert field_models.predict(m, {}) == 0.0


def test_markov_variant():
    m = create_model("street", ModelKind.MARKOV_CHAIN, rng=random.Random(0))
    for label in ["go north", "go south", "go north"]:
        field_models.train(m, {}, label)
    assert field_models.predict(m, partial="go") == "north"
    assert field_models.predict(m, partial="stop") == ""


def test_knn_top_one():
    m = create_model("email", ModelKind.K_NEAREST, k=3)
    field_models.train(m, {"x": 0.0, "y": 0.0}, "origin")
    field_models.train(m, {"x": 10.0, "y": 10.0}, "far")
    assert field_models.predict(m, {"x": 1.0, "y": 1.0}) == "origin"
    assert field_models.predict(m, {"x": 9.0, "y": 9.5}) == "far"


def test_knn_one_hot_strings():
    m = create_model("email", ModelKind.K_NEAREST)
    field_models.train(m, {"field.firstName": "Ada"}, "ada@example.com")
    field_models.train(m, {"field.firstName": "Grace"}, "grace@example.com")
    assert field_models.predict(m, {"field.firstName": "Grace"}) == "grace@example.com"


def test_knn_empty():
    assert field_models.predict(create_model("x", ModelKind.K_NEAREST), {"a": 1}) is None


def test_distance_and_similarity_helpers():
    assert euclidean_distance({"a": 3}, {"b": 4}) == pytest.approx(5.0)
    assert euclidean_distance({}, {}) == 0.0
    assert context_similarity({"a": 1, "b": 2}, {"a": 1, "b": 3, "c": 4}) == pytest.approx(0.5)
    assert context_similarity({"a": 1}, {"b": 1}) == 0.0


@pytest.mark.parametrize("kind", list(ModelKind))
def test_serialization_keeps_predictions(kind):
    m = create_model("f", kind, rng=random.Random(1))
    field_models.train(m, {"k": "v", "n": 1.0}, "one two")
    field_models.train(m, {"k": "w", "n": 5.0}, "one three")
    restored = field_models.from_dict(field_models.to_dict(m))
    assert restored.kind is kind
    query = {"k": "v", "n": 1.0}
    if kind is ModelKind.MARKOV_CHAIN:
        assert field_models.predict(restored, partial="one") == field_models.predict(m, partial="one")
    else:
        assert field_models.predict(restored, query) == field_models.predict(m, query)
