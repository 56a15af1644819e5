# smart_form_predictor/core/field_validator.py
"""
FieldValidator
Checks a value against a field's declared constraints and its kind.
 - built-in rules: email, phone, url, number, date, required
 - constraint checks: required, pattern, minLength, maxLength
 - name-based checks (a field called "work_email" is checked as an e-mail)
 - custom rules via add_rule(); a non-callable rule is rejected right away

Empty values pass every rule except `required`. A pattern that does not
compile is skipped (the value passes) and reported in `warnings`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.parse import urlparse

from smart_form_predictor.core.records import FieldDescriptor

logger = logging.getLogger(__name__)

Rule = Callable[[Any], bool]

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[+]?[\d\s\-()]{10,}$")
DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%d.%m.%Y", "%Y/%m/%d", "%B %d, %Y", "%b %d, %Y")


class InvalidRuleError(TypeError):
    """Raised when a custom validation rule is not callable."""


def _empty(value: Any) -> bool:
    return value is None or value == ""


def validate_email(value: Any) -> bool:
    return _empty(value) or bool(EMAIL_RE.match(str(value)))


def validate_phone(value: Any) -> bool:
    return _empty(value) or bool(PHONE_RE.match(str(value)))


def validate_url(value: Any) -> bool:
    if _empty(value):
        return True
    parsed = urlparse(str(value))
    return bool(parsed.scheme) and bool(parsed.netloc or parsed.path)


def validate_number(value: Any) -> bool:
    if _empty(value):
        return True
    try:
        float(value)
    except (TypeError, ValueError):
        return False
    return True


def validate_date(value: Any) -> bool:
    if _empty(value):
        return True
    text = str(value).strip()
    try:
        datetime.fromisoformat(text)
        return True
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            datetime.strptime(text, fmt)
            return True
        except ValueError:
            continue
    return False


def validate_required(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


@dataclass
class Check:
    rule: str
    valid: bool
    message: str


@dataclass
class ValidationResult:
    valid: bool
    validations: List[Check] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def errors(self) -> List[str]:
        return [c.message for c in self.validations if not c.valid]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "validations": [c.__dict__ for c in self.validations],
            "errors": self.errors,
            "warnings": list(self.warnings),
        }


# name keyword -> (rule, message)
_NAME_RULES = (
    (("email",), "email", "Please enter a valid email address"),
    (("phone", "tel"), "phone", "Please enter a valid phone number"),
    (("url", "website"), "url", "Please enter a valid URL"),
    (("number", "count", "amount"), "number", "Please enter a valid number"),
)


class FieldValidator:
    def __init__(self):
        self.rules: Dict[str, Rule] = {
            "email": validate_email,
            "phone": validate_phone,
            "tel": validate_phone,
            "url": validate_url,
            "number": validate_number,
            "date": validate_date,
            "required": validate_required,
        }

    def add_rule(self, name: str, rule: Rule) -> None:
        if not callable(rule):
            raise InvalidRuleError(f"validator for rule '{name}' must be callable")
        self.rules[name] = rule

    def validate(self, field_desc: FieldDescriptor, value: Any) -> ValidationResult:
        name = field_desc.name or "unknown"
        checks: List[Check] = []
        warnings: List[str] = []

        if field_desc.required:
            checks.append(Check("required", self.rules["required"](value), f"{name} is required"))

        if field_desc.pattern:
            ok, warning = self._check_pattern(value, field_desc.pattern)
            if warning:
                warnings.append(warning)
            checks.append(Check("pattern", ok, f"{name} does not match the required pattern"))

        if field_desc.min_length:
            ok = _empty(value) or len(str(value)) >= int(field_desc.min_length)
            checks.append(Check("minLength", ok, f"{name} must be at least {field_desc.min_length} characters"))

        if field_desc.max_length:
            ok = _empty(value) or len(str(value)) <= int(field_desc.max_length)
            checks.append(Check("maxLength", ok, f"{name} must be no more than {field_desc.max_length} characters"))

        kind = (field_desc.kind or "").lower()
        if kind in self.rules and kind != "required":
            checks.append(Check(kind, bool(self.rules[kind](value)), f"{name} is not a valid {kind}"))

        by_name = self._name_based_check(name, value)
        if by_name is not None:
            checks.append(by_name)

        return ValidationResult(valid=all(c.valid for c in checks), validations=checks, warnings=warnings)

    def validate_form(self,
                      form_data: Mapping[str, Any],
                      descriptors: Optional[Mapping[str, FieldDescriptor]] = None) -> Dict[str, Any]:
        descriptors = descriptors or {}
        results = {
            name: self.validate(descriptors.get(name) or FieldDescriptor(name=name), value)
            for name, value in form_data.items()
        }
        return {"valid": all(r.valid for r in results.values()), "fields": results}

    # Internal helpers ------------------------------------------------
    @staticmethod
    def _check_pattern(value: Any, pattern: str):
        if _empty(value):
            return True, None
        try:
            rx = re.compile(pattern)
        except re.error as e:
            msg = f"Invalid pattern regex {pattern!r}: {e}"
            logger.warning("[FieldValidator] %s", msg)
            return True, msg
        return bool(rx.search(str(value))), None

    def _name_based_check(self, name: str, value: Any) -> Optional[Check]:
        lowered = name.lower()
        for keywords, rule, message in _NAME_RULES:
            if any(k in lowered for k in keywords):
                return Check(rule, bool(self.rules[rule](value)), message)
        return None
