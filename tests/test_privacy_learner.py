# tests/test_privacy_learner.py
import pytest

from smart_form_predictor.core.privacy_budget import PrivacyBudgetManager
from smart_form_predictor.core.privacy_learner import (
    PrivacyLearner,
    generalize_age,
    generalize_income,
    generalize_location,
    mask_identifier,
)


@pytest.mark.parametrize("age, bucket", [
    (10, "minor"), (18, "young-adult"), (29, "young-adult"), (45, "middle-aged"),
    (50, "senior"), (64, "senior"), (70, "elderly"), ("45", "middle-aged"),
])
def test_generalize_age(age, bucket):
    assert generalize_age(age) == bucket


@pytest.mark.parametrize("income, bucket", [
    (12000, "low"), (30000, "medium"), (75000, "high"), (250000, "very-high"),
])
def test_generalize_income(income, bucket):
    assert generalize_income(income) == bucket


def test_non_numeric_age_left_alone():
    assert generalize_age("unknown") == "unknown"


def test_mask_identifier_keeps_ends():
    assert mask_identifier("123-45-6789") == "12*******89"
    assert mask_identifier("abc") == "***"


def test_generalize_location_city_only():
    assert generalize_location("Boston, MA 02110") == "Boston"
    assert generalize_location("Boston") == "Boston"


def test_contact_fields_preserved_and_statistics_generalized():
    learner = PrivacyLearner(seed=7)
    record = {"email": "ada@example.com", "phone": "+1 555 0100", "age": "45",
              "ssn": "123456789", "location": "Denver, CO"}
    out = learner.learn_with_privacy([record], 0.1)[0]
    assert out["email"] == "ada@example.com"
    assert out["phone"] == "+1 555 0100"
    assert out["age"] == "middle-aged"
    assert out["ssn"] == "12*****89"
    assert out["location"] == "Denver"


def test_numeric_values_get_noise_but_bools_do_not():
    learner = PrivacyLearner(seed=1)
    out = learner.add_laplace_noise([{"score": 10.0, "ok": True, "name": "x"}], 1.0)[0]
    assert out["score"] != 10.0
    assert out["ok"] is True
    assert out["name"] == "x"


def test_noise_is_reproducible_with_seed():
    a = PrivacyLearner(seed=42).add_laplace_noise([5.0], 0.5)
    b = PrivacyLearner(seed=42).add_laplace_noise([5.0], 0.5)
    assert a == b


def test_exhausted_budget_passes_records_through():
    budget = PrivacyBudgetManager(total=0.1)
    learner = PrivacyLearner(budget, seed=3)
    learner.learn_with_privacy([{"age": 30}], 0.1)
    record = {"age": 45, "income": 50000}
    assert learner.learn_with_privacy([record], 0.1) == [record]
    assert learner.remaining_budget() == 0.0


def test_learn_consumes_budget():
    learner = PrivacyLearner(seed=0)
    learner.learn_with_privacy([{"a": "b"}], 0.25)
    assert learner.remaining_budget() == pytest.approx(0.75)
    learner.reset_budget()
    assert learner.remaining_budget() == pytest.approx(1.0)
