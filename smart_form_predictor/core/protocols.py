# smart_form_predictor/core/protocols.py
"""
Protocol interfaces and wire shapes for the form predictor.

The orchestrator only relies on these small surfaces, so hosts can hand in
their own storage adapter (or a mock in tests) without subclassing anything.
Keep this file stable.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Union, runtime_checkable
from typing_extensions import TypedDict


# Wire structures (camelCase, as produced by the host page) ------------------

class FieldDescriptorDict(TypedDict, total=False):
    """
    Example:
      {"name": "email", "kind": "email", "required": True, "currentValue": "jo"}
    """
    name: str
    kind: str
    required: bool
    pattern: str
    minLength: int
    maxLength: int
    currentValue: str


class FieldStateDict(TypedDict, total=False):
    value: Any
    type: str
    focused: bool
    focusStartTime: Optional[float]  # epoch milliseconds


FormSnapshotDict = Dict[str, FieldStateDict]
SubmissionRecord = Dict[str, Union[str, int, float, bool, None]]


class PredictionDict(TypedDict):
    value: Any
    confidence: float
    alternatives: List[Any]
    source: str  # "training-data" | "generic" | "unknown"
    model: Optional[str]


class TrainingExampleDict(TypedDict, total=False):
    value: Any
    timestamp: float
    context: Dict[str, Any]


class PersistedState(TypedDict, total=False):
    """What export_state() hands to the storage collaborator."""
    version: int
    trainingData: Dict[str, List[TrainingExampleDict]]
    patterns: Dict[str, List[Any]]
    budget: Dict[str, float]
    fieldKinds: Dict[str, str]


# Protocols ------------------------------------------------------------------

@runtime_checkable
class PersistenceProtocol(Protocol):
    """External storage collaborator. The core never touches disk itself."""

    def save_state(self, state: PersistedState) -> None:
        ...

    def load_state(self) -> Optional[PersistedState]:
        """Return previously saved state, or None when nothing is stored."""
        ...


class ValidatorFn(Protocol):
    def __call__(self, value: Any) -> bool:
        ...
