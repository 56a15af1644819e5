# tests/test_field_validator.py
import logging

import pytest

from smart_form_predictor.core.field_validator import (
    FieldValidator,
    InvalidRuleError,
    validate_date,
    validate_email,
    validate_number,
    validate_phone,
    validate_url,
)
from smart_form_predictor.core.records import FieldDescriptor


@pytest.fixture
def validator():
    return FieldValidator()


def test_builtin_rules():
    assert validate_email("ada@example.com")
    assert not validate_email("ada@example")
    assert validate_phone("(555) 123-4567")
    assert not validate_phone("123")
    assert validate_url("https://example.com/x")
    assert not validate_url("example")
    assert validate_number("3.5")
    assert not validate_number("three")
    assert validate_date("2024-05-06")
    assert validate_date("05/06/2024")
    assert not validate_date("someday")


def test_empty_passes_all_but_required(validator):
    desc = FieldDescriptor(name="email", kind="email", required=True)
    res = validator.validate(desc, "")
    assert not res.valid
    assert res.errors == ["email is required"]


def test_length_constraints(validator):
    desc = FieldDescriptor(name="zip", min_length=5, max_length=5)
    assert validator.validate(desc, "02110").valid
    res = validator.validate(desc, "021")
    assert not res.valid
    assert "zip must be at least 5 characters" in res.errors


def test_pattern(validator):
    desc = FieldDescriptor(name="code", pattern=r"^\d{4}$")
    assert validator.validate(desc, "1234").valid
    assert not validator.validate(desc, "12a4").valid


def test_malformed_pattern_passes_with_warning(validator, caplog):
    desc = FieldDescriptor(name="code", pattern="([unclosed")
    with caplog.at_level(logging.WARNING):
        res = validator.validate(desc, "anything")
    assert res.valid
    assert len(res.warnings) == 1
    assert "Invalid pattern" in caplog.text


def test_name_based_rule(validator):
    res = validator.validate(FieldDescriptor(name="workEmail"), "not-an-email")
    assert not res.valid
    assert res.errors == ["Please enter a valid email address"]


def test_custom_rule(validator):
    validator.add_rule("postcode", lambda v: str(v).isdigit())
    desc = FieldDescriptor(name="pc", kind="postcode")
    assert validator.validate(desc, "02110").valid
    assert not validator.validate(desc, "AB1").valid


def test_non_callable_rule_rejected(validator):
    with pytest.raises(InvalidRuleError):
        validator.add_rule("bad", 42)
    with pytest.raises(TypeError):
        validator.add_rule("bad", "nope")


def test_validate_form(validator):
    out = validator.validate_form(
        {"email": "ada@example.com", "phone": "12"},
        {"phone": FieldDescriptor(name="phone", kind="tel")},
    )
    assert not out["valid"]
    assert out["fields"]["email"].valid
    assert not out["fields"]["phone"].valid


def test_result_to_dict(validator):
    d = validator.validate(FieldDescriptor(name="n", required=True), "").to_dict()
    assert d["valid"] is False
    assert d["validations"][0] == {"rule": "required", "valid": False, "message": "n is required"}
