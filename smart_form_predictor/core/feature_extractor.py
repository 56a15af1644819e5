# smart_form_predictor/core/feature_extractor.py
"""
FeatureExtractor - explainable feature bundles for a field being filled in.

Responsibilities
- Read a form snapshot (field -> value/focus state) and a field descriptor
- Produce four independent groups, each from simple fixed rules:
    form_context: filled fields, fill sequence, focus durations
    behavior:     typing speed, correction pattern, hesitation time
    semantic:     field category, expected format, relationship strength
    context:      device class, time-of-day bucket, weekday, caller overrides
- Stay deterministic: the clock and the platform string are injected, never
  read from the environment

No scaling is applied; the values are consumed as-is by the field models and
serialized verbatim into cache keys.

Example:
    ext = FeatureExtractor(platform="Mozilla/5.0 (Windows NT 10.0)")
    bundle = ext.extract(
        FieldDescriptor(name="email", kind="email"),
        {"firstName": {"value": "Ada", "focused": False}},
        now=datetime(2024, 5, 6, 9, 30),
    )
    # bundle.semantic -> {'fieldCategory': 'personal', 'expectedFormat': 'email', ...}
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from smart_form_predictor.core.records import FieldDescriptor, FieldState, coerce_snapshot

# Keyword tables (order matters: first matching category wins)
CATEGORY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("personal", ("name", "email", "phone", "address", "firstname", "lastname")),
    ("professional", ("company", "title", "department", "position")),
    ("temporal", ("date", "time", "birthday", "dob", "year")),
    ("location", ("city", "state", "country", "zipcode", "postal", "location")),
    ("financial", ("card", "credit", "payment", "price", "cost")),
    ("identification", ("id", "passport", "ssn", "social")),
)

TYPE_CATEGORIES = {
    "email": "personal",
    "tel": "personal",
    "phone": "personal",
    "date": "temporal",
    "number": "financial",
}

TYPE_FORMATS = {
    "email": "email",
    "tel": "phone",
    "phone": "phone",
    "date": "date",
    "number": "number",
}

NAME_FORMATS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("email", ("email",)),
    ("phone", ("phone", "tel")),
    ("date", ("date", "birthday")),
    ("zipcode", ("zip", "postal")),
)

# checked in order; only android is case-insensitive
DEVICE_PATTERNS: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("android", re.compile(r"android", re.I)),
    ("ios", re.compile(r"iPad|iPhone|iPod")),
    ("windows", re.compile(r"Win")),
    ("mac", re.compile(r"Mac")),
    ("linux", re.compile(r"Linux")),
)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass
class FeatureBundle:
    field_name: str
    form_context: Dict[str, Any] = field(default_factory=dict)
    behavior: Dict[str, Any] = field(default_factory=dict)
    semantic: Dict[str, Any] = field(default_factory=dict)
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {
            "formContext": dict(self.form_context),
            "userBehavior": dict(self.behavior),
            "semantic": dict(self.semantic),
            "userContext": dict(self.context),
        }

    def flatten(self) -> Dict[str, Any]:
        """Dotted single-level view, e.g. {'semantic.fieldCategory': 'personal'}."""
        flat: Dict[str, Any] = {}
        for group, values in self.to_dict().items():
            for k, v in values.items():
                flat[f"{group}.{k}"] = v
        return flat

    def serialize(self) -> str:
        """Deterministic JSON used for cache keys."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"), default=str)


# Pure helpers ------------------------------------------------------------------
def jaccard_similarity(a: str, b: str) -> float:
    s1, s2 = set(a.lower()), set(b.lower())
    union = s1 | s2
    return len(s1 & s2) / len(union) if union else 0.0


def classify_device(platform: Optional[str]) -> str:
    signal = platform or ""
    for label, rx in DEVICE_PATTERNS:
        if rx.search(signal):
            return label
    return "desktop"


def time_of_day(hour: int) -> str:
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 22:
        return "evening"
    return "night"


def day_of_week(moment: datetime) -> str:
    return WEEKDAYS[moment.weekday()]


def _epoch_ms(moment: datetime) -> float:
    return moment.timestamp() * 1000.0


class FeatureExtractor:
    """
    Build FeatureBundles.

    Args:
    clock: zero-arg callable returning the current datetime (default datetime.now)
    platform: platform / user-agent signal used for device classification
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None, platform: str = ""):
        self.clock = clock or datetime.now
        self.platform = platform
        # field name -> epoch ms of first observed keystroke
        self.typing_start_times: Dict[str, float] = {}

    def mark_typing_start(self, field_name: str, timestamp_ms: float) -> None:
        """Record the first keystroke time for a field (later calls are ignored)."""
        self.typing_start_times.setdefault(field_name, float(timestamp_ms))

    def clear_typing_start(self, field_name: str) -> None:
        self.typing_start_times.pop(field_name, None)

    # Primary API -----------------------------------------------------------
    def extract(self,
                field_desc: FieldDescriptor,
                form_snapshot: Optional[Mapping[str, Any]] = None,
                user_context: Optional[Mapping[str, Any]] = None,
                *,
                now: Optional[datetime] = None,
                platform: Optional[str] = None) -> FeatureBundle:
        moment = now or self.clock()
        now_ms = _epoch_ms(moment)
        snapshot = coerce_snapshot(form_snapshot)

        return FeatureBundle(
            field_name=field_desc.name,
            form_context={
                "filledFields": self.filled_fields(snapshot),
                "fieldValues": self.field_values(snapshot, field_desc.name),
                "fieldSequence": self.field_sequence(snapshot),
                "timeSpent": self.time_spent_per_field(snapshot, now_ms),
                "currentValue": field_desc.current_value,
            },
            behavior={
                "typingSpeed": self.typing_speed(field_desc, now_ms),
                "correctionPattern": "unknown",  # needs keystroke tracking
                "hesitationTime": 0,
            },
            semantic={
                "fieldCategory": self.categorize_field(field_desc),
                "expectedFormat": self.detect_expected_format(field_desc),
                "relationshipStrength": self.relationship_strength(field_desc, snapshot),
            },
            context=self.context_features(moment, platform, user_context),
        )

    def context_features(self,
                         moment: datetime,
                         platform: Optional[str] = None,
                         overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        ctx: Dict[str, Any] = {
            "deviceType": classify_device(self.platform if platform is None else platform),
            "timeOfDay": time_of_day(moment.hour),
            "dayOfWeek": day_of_week(moment),
        }
        ctx.update(overrides or {})
        return ctx

    # form context -------------------------------------------------------------
    @staticmethod
    def filled_fields(snapshot: Mapping[str, FieldState]) -> List[str]:
        return [name for name, st in snapshot.items() if st.filled]

    @staticmethod
    def field_values(snapshot: Mapping[str, FieldState], exclude: str = "") -> Dict[str, Any]:
        """Values of the filled fields other than `exclude`, in declaration order."""
        return {name: st.value for name, st in snapshot.items() if st.filled and name != exclude}

    @staticmethod
    def field_sequence(snapshot: Mapping[str, FieldState]) -> List[str]:
        # declaration order; there is no focus history to go by
        return [name for name, st in snapshot.items() if st.focused or st.filled]

    @staticmethod
    def time_spent_per_field(snapshot: Mapping[str, FieldState], now_ms: float) -> Dict[str, float]:
        return {
            name: now_ms - st.focus_start_time
            for name, st in snapshot.items()
            if st.focus_start_time
        }

    # behavior -------------------------------------------------------------------
    def typing_speed(self, field_desc: FieldDescriptor, now_ms: float) -> float:
        """Characters per minute since the first recorded keystroke."""
        start = self.typing_start_times.get(field_desc.name, now_ms)
        minutes = (now_ms - start) / 1000.0 / 60.0
        if minutes > 0:
            return len(field_desc.current_value) / minutes
        return 0.0

    # semantic -------------------------------------------------------------------
    @staticmethod
    def categorize_field(field_desc: FieldDescriptor) -> str:
        name = field_desc.name.lower()
        kind = (field_desc.kind or "").lower()
        for category, keywords in CATEGORY_KEYWORDS:
            if any(k in name or k in kind for k in keywords):
                return category
        return TYPE_CATEGORIES.get(kind, "generic")

    @staticmethod
    def detect_expected_format(field_desc: FieldDescriptor) -> str:
        kind = (field_desc.kind or "").lower()
        if kind in TYPE_FORMATS:
            return TYPE_FORMATS[kind]
        name = field_desc.name.lower()
        for fmt, keywords in NAME_FORMATS:
            if any(k in name for k in keywords):
                return fmt
        if field_desc.pattern:
            return "custom"
        return "text"

    @staticmethod
    def relationship_strength(field_desc: FieldDescriptor, snapshot: Mapping[str, FieldState]) -> float:
        strength = 0.0
        for other in FeatureExtractor.filled_fields(snapshot):
            if other != field_desc.name:
                strength = max(strength, jaccard_similarity(field_desc.name, other))
        return strength
