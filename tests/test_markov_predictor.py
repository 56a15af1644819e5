# tests/test_markov_predictor.py
import random

from smart_form_predictor.core.markov_predictor import MarkovConfig, MarkovPredictor


def test_most_frequent_successor():
    m = MarkovPredictor()
    m.train_many(["go north", "go south", "go north"])
    assert m.predict("go") == "north"


def test_unseen_last_word_gives_empty():
    m = MarkovPredictor()
    m.train_sentence("go north")
    assert m.predict("stop") == ""


def test_no_partial_picks_a_starter():
    m = MarkovPredictor(rng=random.Random(5))
    m.train_many(["alpha beta", "gamma delta", "alpha omega"])
    for _ in range(10):
        assert m.predict("") in {"alpha", "gamma"}


def test_empty_model_has_no_starter():
    assert MarkovPredictor().predict(None) == ""


def test_top_next_shares_and_order():
    m = MarkovPredictor()
    m.train_many(["a b", "a c", "a b"])
    assert m.top_next("a") == [("b", 2 / 3), ("c", 1 / 3)]


def test_case_sensitive_by_default_and_lowercase_option():
    m = MarkovPredictor()
    m.train_sentence("Go North")
    assert m.predict("go") == ""
    lower = MarkovPredictor(MarkovConfig(lowercase=True))
    lower.train_sentence("Go North")
    assert lower.predict("GO") == "north"


def test_state_round_trip():
    m = MarkovPredictor()
    m.train_many(["new york city", "new jersey"])
    other = MarkovPredictor()
    other.load_state(m.save_state())
    assert other.transitions == m.transitions
    assert other.starters == {"new": 2}
    assert other.vocabulary_size() == 4
