# smart_form_predictor/core/orchestrator.py
"""
PredictionOrchestrator - learns from submitted forms and predicts field values.
Purpose:
 - learn(record): privacy processing -> relationship graph + cross-session
   profile -> per-field model training -> hand exported state to the
   persistence collaborator (if one is attached)
 - predict(field, snapshot): feature extraction -> cache check -> model
   inference -> cache store
 - get_suggestions(field, partial): prefix matches over values seen for a field
 - export_state()/import_state() for the external storage collaborator

Everything mutable (store, graph, cache, budget) belongs to this instance.
Calls are synchronous; a predict issued after learn() returns sees the learn.

 e.g takes a half-filled form and returns a ranked guess for one field
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import replace
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import numpy as np

from smart_form_predictor.core import field_models
from smart_form_predictor.core.feature_extractor import FeatureBundle, FeatureExtractor
from smart_form_predictor.core.field_models import ModelKind
from smart_form_predictor.core.field_validator import FieldValidator, Rule, ValidationResult
from smart_form_predictor.core.prediction_cache import PredictionCache
from smart_form_predictor.core.privacy_budget import PrivacyBudgetManager
from smart_form_predictor.core.privacy_learner import PrivacyLearner
from smart_form_predictor.core.profile_builder import CrossSessionProfileBuilder, UserProfile
from smart_form_predictor.core.protocols import PersistedState, PersistenceProtocol
from smart_form_predictor.core.records import FieldDescriptor, Prediction
from smart_form_predictor.core.relationship_graph import RelationshipGraph
from smart_form_predictor.core.store import PredictionStore
from smart_form_predictor.utils.config_manager import Config
from smart_form_predictor.utils.logger_utils import Log

logger = logging.getLogger(__name__)

STATE_VERSION = 1
PREFIX_CONFIDENCE_CAP = 0.95
FREQUENCY_CONFIDENCE_CAP = 0.9

# Generic guesses used before a field has any training data
_GENERIC_PREDICTIONS = (
    ("email", "user@example.com", 0.3, ["user@example.com", "person@gmail.com"]),
    ("phone", "(555) 123-4567", 0.3, ["(555) 123-4567", "(555) 987-6543"]),
    ("fullname", "John Doe", 0.2, ["John Doe", "Jane Smith", "Michael Johnson"]),
)


class StateFormatError(ValueError):
    """Raised when import_state() is handed something that is not a state mapping."""


FieldLike = Union[FieldDescriptor, Mapping[str, Any], str]


class PredictionOrchestrator:
    """
    Public API:
      - register_field(descriptor), mark_typing_start(field, ts)
      - learn(record, context=None)
      - predict(field, snapshot=None, user_context=None)
      - suggest(field, snapshot=None)    only when confident enough
      - get_suggestions(field_name, partial)
      - validate(field, value), add_validation_rule(name, fn)
      - relationships(), profile, budget_remaining(), reset_budget()
      - export_state(), import_state(state)
    """

    def __init__(self,
                 config: Optional[Config] = None,
                 *,
                 persistence: Optional[PersistenceProtocol] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 platform: str = "",
                 seed: Optional[int] = None,
                 tz: Optional[tzinfo] = None):
        self.cfg = config or Config()
        self.persistence = persistence
        self.clock = clock or datetime.now

        self.budget = PrivacyBudgetManager(total=float(self.cfg["privacy_budget"]))
        self.privacy = PrivacyLearner(self.budget, rng=np.random.default_rng(seed))
        self.extractor = FeatureExtractor(clock=self.clock, platform=platform)
        self.graph = RelationshipGraph()
        self.profile_builder = CrossSessionProfileBuilder(clock=self.clock, tz=tz)
        self.store = PredictionStore(
            similarity_threshold=float(self.cfg["similarity_threshold"]),
            knn_k=int(self.cfg["knn_k"]),
            rng=random.Random(seed),
        )
        self.cache = PredictionCache(capacity=int(self.cfg["cache_size"]))
        self.validator = FieldValidator()

        # processed sessions (+ timestamp/device) feeding the profile builder
        self._sessions: List[Dict[str, Any]] = []

    # -------------------------
    # Field declarations
    # -------------------------
    def register_field(self, field_like: FieldLike) -> FieldDescriptor:
        desc = FieldDescriptor.coerce(field_like)
        if desc.name:
            self.store.declare_kind(desc.name, desc.kind)
            self.cache.invalidate_field(desc.name)
        return desc

    def mark_typing_start(self, field_name: str, timestamp_ms: Optional[float] = None) -> None:
        """First keystroke in a field (epoch ms, default now); feeds typingSpeed until the next learn."""
        if timestamp_ms is None:
            timestamp_ms = self.clock().timestamp() * 1000.0
        self.extractor.mark_typing_start(field_name, timestamp_ms)

    # -------------------------
    # Learn path
    # -------------------------
    def learn(self, record: Mapping[str, Any], context: Optional[Mapping[str, Any]] = None) -> None:
        """
        Learn from one submitted form. `context` holds caller overrides for the
        ambient context features (same keys as FeatureBundle.context).
        """
        if not self.cfg["learning"] or not record:
            return

        with Log.time_block("orchestrator.learn"):
            processed = self._privacy_processing(dict(record))

            moment = self.clock()
            now_ms = moment.timestamp() * 1000.0
            ambient = self.extractor.context_features(moment, overrides=context)

            # graph / profile
            self.graph.discover([processed])
            self._sessions.append({**processed, "timestamp": now_ms, "deviceType": ambient["deviceType"]})
            self.profile_builder.aggregate(self._sessions)

            # model training
            for name, value in processed.items():
                ctx = self._training_context(name, processed, ambient)
                self.store.add_example(name, value, now_ms, ctx)
                self.cache.invalidate_field(name)
                self.extractor.clear_typing_start(name)

            self._persist_handoff()
        logger.debug("[Orchestrator] learned %d field(s)", len(processed))

    def _privacy_processing(self, record: Dict[str, Any]) -> Dict[str, Any]:
        if not self.cfg["anonymize"]:
            return record
        return self.privacy.learn_with_privacy([record], float(self.cfg["epsilon_per_learn"]))[0]

    @staticmethod
    def _training_context(target: str, record: Mapping[str, Any], ambient: Mapping[str, Any]) -> Dict[str, Any]:
        ctx = {f"field.{k}": v for k, v in record.items() if k != target}
        ctx.update({f"context.{k}": v for k, v in ambient.items()})
        return ctx

    def _persist_handoff(self) -> None:
        if self.persistence is None:
            return
        try:
            self.persistence.save_state(self.export_state())
        except Exception as e:
            Log.warning(f"[Orchestrator] persistence handoff failed: {e}")

    # -------------------------
    # Predict path
    # -------------------------
    def predict(self,
                field_like: Optional[FieldLike],
                snapshot: Optional[Mapping[str, Any]] = None,
                user_context: Optional[Mapping[str, Any]] = None) -> Prediction:
        if field_like is None:
            return Prediction.unknown()
        desc = FieldDescriptor.coerce(field_like)
        if not desc.name:
            return Prediction.unknown()

        bundle = self.extractor.extract(desc, snapshot, user_context)
        key = PredictionCache.make_key(desc.name, bundle.serialize())

        cached = self.cache.get(key)
        if cached is None:
            cached = self._model_inference(desc, bundle)
            self.cache.set(key, cached)
        # callers get their own copy; the cached entry stays untouched
        return replace(cached, alternatives=list(cached.alternatives))

    def suggest(self,
                field_like: FieldLike,
                snapshot: Optional[Mapping[str, Any]] = None,
                user_context: Optional[Mapping[str, Any]] = None) -> Optional[Prediction]:
        """Prediction only when it clears the configured confidence threshold."""
        p = self.predict(field_like, snapshot, user_context)
        if p.value is not None and p.confidence >= float(self.cfg["confidence_threshold"]):
            return p
        return None

    def _model_inference(self,
                         desc: FieldDescriptor,
                         bundle: FeatureBundle) -> Prediction:
        examples = self.store.examples(desc.name)
        if not examples:
            return self.generic_prediction(desc)

        partial = desc.current_value
        candidates = examples
        cap = FREQUENCY_CONFIDENCE_CAP
        prefix_matched = False
        if partial:
            needle = partial.lower()
            matches = [ex for ex in examples if ex.value is not None and str(ex.value).lower().startswith(needle)]
            if matches:
                candidates, cap = matches, PREFIX_CONFIDENCE_CAP
                prefix_matched = True

        counts = Counter(str(ex.value) for ex in candidates)
        ranked = [v for v, _ in counts.most_common()]
        value, confidence = ranked[0], min(cap, counts[ranked[0]] / len(candidates))

        model = self.store.models.get(desc.name)
        kind = model.kind if model else None
        linear_estimate: Optional[str] = None
        if kind is ModelKind.MARKOV_CHAIN:
            # the chain only completes typed text
            guess = field_models.predict(model, None, partial) if partial.strip() else ""
            if guess:
                value = f"{partial.rstrip()} {guess}"
                shares = dict(model.state.chain.top_next(partial.split()[-1]))
                confidence = min(cap, shares.get(guess, 0.0))
        elif kind is ModelKind.LINEAR_SCORE:
            # the score is an estimate, not a seen value: offered as the first alternative
            score = field_models.predict(model, self._query_context(bundle), partial)
            if not prefix_matched:
                linear_estimate = str(round(score, 2))
        elif model is not None:
            guess = field_models.predict(model, self._query_context(bundle), partial)
            if guess is not None and str(guess) in counts:
                value = str(guess)
                confidence = min(cap, counts[value] / len(candidates))

        alternatives = [value] + [v for v in ranked if v != value]
        if linear_estimate is not None and linear_estimate not in alternatives:
            alternatives.insert(1, linear_estimate)
        return Prediction(
            value=value,
            confidence=confidence,
            alternatives=alternatives,
            source="training-data",
            model=kind.value if kind else None,
        )

    @staticmethod
    def _query_context(bundle: FeatureBundle) -> Dict[str, Any]:
        """Same shape as the training context, read only from the bundle the cache key covers."""
        query = {f"field.{name}": v for name, v in bundle.form_context.get("fieldValues", {}).items()}
        query.update({f"context.{k}": v for k, v in bundle.context.items()})
        return query

    @staticmethod
    def generic_prediction(desc: FieldDescriptor) -> Prediction:
        lowered = desc.name.lower().replace("_", "")
        for keyword, value, confidence, alternatives in _GENERIC_PREDICTIONS:
            if keyword in lowered:
                return Prediction(value=value, confidence=confidence,
                                  alternatives=alternatives, source="generic")
        return Prediction(value=None, confidence=0.0, alternatives=[], source="generic")

    # -------------------------
    # Suggestions
    # -------------------------
    def get_suggestions(self, field_name: str, partial_value: str = "") -> List[Any]:
        limit = int(self.cfg["max_suggestions"])
        out: List[Any] = []
        for v in self.store.values(field_name):
            if str(v).startswith(partial_value or ""):
                out.append(v)
                if len(out) >= limit:
                    break
        return out

    # -------------------------
    # Validation
    # -------------------------
    def validate(self, field_like: FieldLike, value: Any) -> ValidationResult:
        return self.validator.validate(FieldDescriptor.coerce(field_like), value)

    def add_validation_rule(self, name: str, rule: Rule) -> None:
        self.validator.add_rule(name, rule)

    # -------------------------
    # Introspection
    # -------------------------
    @property
    def profile(self) -> UserProfile:
        return self.profile_builder.get_user_profile()

    def relationships(self) -> Dict[str, Any]:
        return self.graph.to_dict()

    def budget_remaining(self) -> float:
        return self.budget.remaining()

    def reset_budget(self) -> None:
        self.budget.reset()

    # -------------------------
    # Persisted state
    # -------------------------
    def export_state(self) -> PersistedState:
        data = self.store.export()
        return {
            "version": STATE_VERSION,
            "trainingData": data["trainingData"],
            "patterns": data["patterns"],
            "fieldKinds": data["fieldKinds"],
            "budget": self.budget.to_dict(),
        }

    def import_state(self, state: Optional[Mapping[str, Any]]) -> None:
        if state is None:
            return
        if not isinstance(state, Mapping):
            raise StateFormatError("persisted state must be a mapping")
        if state.get("version", STATE_VERSION) != STATE_VERSION:
            Log.warning(f"[Orchestrator] state version {state.get('version')} not supported; ignoring")
            return

        self.store.load(
            state.get("trainingData") or {},
            patterns=state.get("patterns") or {},
            field_kinds=state.get("fieldKinds") or {},
        )
        if state.get("budget"):
            restored = PrivacyBudgetManager.from_dict(state["budget"])
            self.budget.total, self.budget.used = restored.total, restored.used
        self.cache.clear()
        Log.write(f"[Orchestrator] restored {len(self.store.training_data)} field(s)")

    def load_from_persistence(self) -> bool:
        """Pull state from the attached collaborator; False when there was none."""
        if self.persistence is None:
            return False
        state = self.persistence.load_state()
        if not state:
            return False
        self.import_state(state)
        return True
