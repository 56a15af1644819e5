# smart_form_predictor/core/records.py
# Value objects passed between the host and the core.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from smart_form_predictor.core.protocols import (
    FieldDescriptorDict,
    FieldStateDict,
    PredictionDict,
    TrainingExampleDict,
)


@dataclass(frozen=True)
class FieldDescriptor:
    """A named, typed input slot plus its declared constraints."""
    name: str
    kind: str = "text"
    required: bool = False
    pattern: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    current_value: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldDescriptor":
        return cls(
            name=str(data.get("name", "")),
            kind=str(data.get("kind") or data.get("type") or "text"),
            required=bool(data.get("required", False)),
            pattern=data.get("pattern") or None,
            min_length=data.get("minLength", data.get("min_length")),
            max_length=data.get("maxLength", data.get("max_length")),
            current_value=str(data.get("currentValue", data.get("current_value")) or ""),
        )

    @classmethod
    def coerce(cls, value: Union["FieldDescriptor", FieldDescriptorDict, str]) -> "FieldDescriptor":
        if isinstance(value, FieldDescriptor):
            return value
        if isinstance(value, str):
            return cls(name=value)
        return cls.from_dict(value)


@dataclass(frozen=True)
class FieldState:
    """One entry of a form snapshot."""
    value: Any = ""
    type: str = "text"
    focused: bool = False
    focus_start_time: Optional[float] = None  # epoch ms

    @property
    def filled(self) -> bool:
        return self.value is not None and str(self.value).strip() != ""

    @classmethod
    def coerce(cls, value: Union["FieldState", FieldStateDict, Mapping[str, Any]]) -> "FieldState":
        if isinstance(value, FieldState):
            return value
        start = value.get("focusStartTime", value.get("focus_start_time"))
        try:
            start = float(start) if start not in (None, "") else None
        except (TypeError, ValueError):
            start = None
        return cls(
            value=value.get("value", ""),
            type=str(value.get("type") or "text"),
            focused=bool(value.get("focused", False)),
            focus_start_time=start,
        )


def coerce_snapshot(snapshot: Optional[Mapping[str, Any]]) -> Dict[str, FieldState]:
    """Normalize a raw form snapshot, keeping declaration order."""
    return {name: FieldState.coerce(state) for name, state in (snapshot or {}).items()}


@dataclass
class TrainingExample:
    value: Any
    timestamp: float
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> TrainingExampleDict:
        return {"value": self.value, "timestamp": self.timestamp, "context": dict(self.context)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TrainingExample":
        return cls(
            value=data.get("value"),
            timestamp=float(data.get("timestamp", 0.0)),
            context=dict(data.get("context") or {}),
        )


MAX_ALTERNATIVES = 5


@dataclass
class Prediction:
    value: Any = None
    confidence: float = 0.0
    alternatives: List[Any] = field(default_factory=list)
    source: str = "unknown"
    model: Optional[str] = None

    def __post_init__(self):
        self.confidence = min(1.0, max(0.0, float(self.confidence)))
        self.alternatives = list(self.alternatives)[:MAX_ALTERNATIVES]

    @classmethod
    def unknown(cls) -> "Prediction":
        return cls(value=None, confidence=0.0, alternatives=[], source="unknown")

    def to_dict(self) -> PredictionDict:
        return {
            "value": self.value,
            "confidence": self.confidence,
            "alternatives": list(self.alternatives),
            "source": self.source,
            "model": self.model,
        }
