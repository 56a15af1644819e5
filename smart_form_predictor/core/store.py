# smart_form_predictor/core/store.py
"""
PredictionStore - everything learned per field, owned by one orchestrator.

 - training examples (append-only, {value, timestamp, context})
 - patterns: distinct values in first-seen order, used for prefix suggestions
 - the field's model, created lazily on first sight and trained in place
 - the declared/detected field kind that picked the model
"""

from __future__ import annotations

import random
from typing import Any, Dict, Iterable, List, Mapping, Optional

from smart_form_predictor.core import field_models
from smart_form_predictor.core.field_models import FieldModel, ModelKind
from smart_form_predictor.core.records import TrainingExample


class PredictionStore:
    def __init__(self,
                 similarity_threshold: float = field_models.SIMILARITY_THRESHOLD,
                 knn_k: int = field_models.DEFAULT_K,
                 rng: Optional[random.Random] = None):
        self.similarity_threshold = similarity_threshold
        self.knn_k = knn_k
        self.rng = rng
        self.training_data: Dict[str, List[TrainingExample]] = {}
        # dict used as an insertion-ordered set
        self.patterns: Dict[str, Dict[Any, None]] = {}
        self.models: Dict[str, FieldModel] = {}
        self.field_kinds: Dict[str, str] = {}

    # Writes -------------------------------------------------------------------
    def add_example(self, field_name: str, value: Any, timestamp: float,
                    context: Optional[Mapping[str, Any]] = None) -> TrainingExample:
        ex = TrainingExample(value=value, timestamp=timestamp, context=dict(context or {}))
        self.training_data.setdefault(field_name, []).append(ex)
        self.patterns.setdefault(field_name, {})[value] = None
        self.train_model(field_name, ex)
        return ex

    def train_model(self, field_name: str, example: TrainingExample) -> FieldModel:
        model = self.model_for(field_name, example.value)
        field_models.train(model, example.context, example.value)
        return model

    def model_for(self, field_name: str, sample_value: Any = None) -> FieldModel:
        model = self.models.get(field_name)
        if model is None:
            kind_name = self.field_kinds.get(field_name)
            if kind_name is None:
                kind_name = field_models.detect_field_kind(field_name, sample_value)
                self.field_kinds[field_name] = kind_name
            model = field_models.create_model(
                field_name,
                field_models.kind_for_field(kind_name),
                threshold=self.similarity_threshold,
                k=self.knn_k,
                rng=self.rng,
            )
            self.models[field_name] = model
        return model

    def declare_kind(self, field_name: str, kind: str) -> None:
        """
        Fix the kind used when the model gets created. Has no effect on a model
        that already exists unless its variant would change, in which case the
        model is rebuilt from the stored examples.
        """
        self.field_kinds[field_name] = kind
        model = self.models.get(field_name)
        if model is not None and model.kind is not field_models.kind_for_field(kind):
            del self.models[field_name]
            self._replay(field_name)

    # Reads ----------------------------------------------------------------------
    def examples(self, field_name: str) -> List[TrainingExample]:
        return self.training_data.get(field_name, [])

    def values(self, field_name: str) -> List[Any]:
        return list(self.patterns.get(field_name, {}))

    def model_kind(self, field_name: str) -> Optional[ModelKind]:
        model = self.models.get(field_name)
        return model.kind if model else None

    # Persistence ----------------------------------------------------------------
    def export(self) -> Dict[str, Any]:
        return {
            "trainingData": {
                name: [ex.to_dict() for ex in exs] for name, exs in self.training_data.items()
            },
            "patterns": {name: list(vals) for name, vals in self.patterns.items()},
            "fieldKinds": dict(self.field_kinds),
        }

    def load(self, training_data: Mapping[str, Iterable[Mapping[str, Any]]],
             patterns: Optional[Mapping[str, Iterable[Any]]] = None,
             field_kinds: Optional[Mapping[str, str]] = None) -> None:
        """Replace everything and rebuild the models from the examples."""
        self.training_data = {
            name: [TrainingExample.from_dict(ex) for ex in exs]
            for name, exs in training_data.items()
        }
        self.field_kinds = dict(field_kinds or {})
        self.patterns = {}
        for name, exs in self.training_data.items():
            self.patterns[name] = {ex.value: None for ex in exs}
        for name, vals in (patterns or {}).items():
            bucket = self.patterns.setdefault(name, {})
            for v in vals:
                bucket.setdefault(v, None)
        self.models = {}
        for name in self.training_data:
            self._replay(name)

    def _replay(self, field_name: str) -> None:
        for ex in self.training_data.get(field_name, []):
            self.train_model(field_name, ex)
