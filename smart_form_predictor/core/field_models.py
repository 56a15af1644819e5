# smart_form_predictor/core/field_models.py
"""
Per-field predictive models.

A FieldModel is a tagged variant: `kind` says which algorithm it is and
`state` holds only what that algorithm needs. Training and prediction are
plain functions looked up by kind, so a model is just data and can be
serialized, compared and tested without any hidden closures.

Variants
 - FREQUENCY_VOTE   categorical fields, similarity-weighted vote over stored contexts
 - LINEAR_SCORE     numerical fields, dot product with fixed coefficients
 - MARKOV_CHAIN     free text, next-word prediction
 - K_NEAREST        everything else, nearest stored context by Euclidean distance
"""

from __future__ import annotations

import logging
import numbers
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import numpy as np

from smart_form_predictor.core.markov_predictor import MarkovPredictor

logger = logging.getLogger(__name__)

Context = Mapping[str, Any]
Example = Tuple[Dict[str, Any], Any]  # (context, label)

SIMILARITY_THRESHOLD = 0.7
# placeholder coefficients, no least-squares fit is performed
DEFAULT_COEFFICIENTS = (0.5, 0.3, 0.2)
DEFAULT_K = 3


class ModelKind(str, Enum):
    FREQUENCY_VOTE = "frequency_vote"
    LINEAR_SCORE = "linear_score"
    MARKOV_CHAIN = "markov_chain"
    K_NEAREST = "k_nearest_neighbor"


CATEGORICAL_KINDS = frozenset({"categorical", "select", "select-one", "radio", "checkbox", "boolean"})
NUMERICAL_KINDS = frozenset({"numerical", "number", "range", "integer", "float"})
TEXT_KINDS = frozenset({"text", "textarea", "search", "free-text"})


def kind_for_field(field_kind: Optional[str]) -> ModelKind:
    k = (field_kind or "").lower()
    if k in CATEGORICAL_KINDS:
        return ModelKind.FREQUENCY_VOTE
    if k in NUMERICAL_KINDS:
        return ModelKind.LINEAR_SCORE
    if k in TEXT_KINDS:
        return ModelKind.MARKOV_CHAIN
    return ModelKind.K_NEAREST


def detect_field_kind(field_name: str, value: Any) -> str:
    """Guess a field kind from its name and a sample value."""
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return "numerical"
    if isinstance(value, bool):
        return "categorical"
    if isinstance(value, str):
        lowered = field_name.lower()
        if "email" in lowered:
            return "email"
        if "phone" in lowered:
            return "phone"
        if "date" in lowered:
            return "date"
        return "text"
    return "generic"


# Variant state ---------------------------------------------------------------
@dataclass
class FrequencyVoteState:
    examples: List[Example] = field(default_factory=list)
    threshold: float = SIMILARITY_THRESHOLD


@dataclass
class LinearScoreState:
    coefficients: Tuple[float, ...] = DEFAULT_COEFFICIENTS
    n_examples: int = 0


@dataclass
class MarkovChainState:
    chain: MarkovPredictor = field(default_factory=MarkovPredictor)


@dataclass
class KNearestState:
    examples: List[Example] = field(default_factory=list)
    k: int = DEFAULT_K


@dataclass
class FieldModel:
    field_name: str
    kind: ModelKind
    state: Any


def create_model(field_name: str,
                 kind: ModelKind,
                 *,
                 threshold: float = SIMILARITY_THRESHOLD,
                 k: int = DEFAULT_K,
                 rng: Optional[random.Random] = None) -> FieldModel:
    if kind is ModelKind.FREQUENCY_VOTE:
        state: Any = FrequencyVoteState(threshold=threshold)
    elif kind is ModelKind.LINEAR_SCORE:
        state = LinearScoreState()
    elif kind is ModelKind.MARKOV_CHAIN:
        state = MarkovChainState(chain=MarkovPredictor(rng=rng))
    else:
        state = KNearestState(k=k)
    return FieldModel(field_name=field_name, kind=kind, state=state)


# Shared math -------------------------------------------------------------------
def context_similarity(a: Context, b: Context) -> float:
    """Fraction of equal values among the keys present in both contexts."""
    shared = [key for key in a if key in b]
    if not shared:
        return 0.0
    return sum(1 for key in shared if a[key] == b[key]) / len(shared)


def vectorize(context: Context) -> Dict[str, float]:
    """Numbers stay numbers; any other value becomes a one-hot 'key=value' entry."""
    vec: Dict[str, float] = {}
    for key, value in context.items():
        if isinstance(value, numbers.Real):
            vec[key] = float(value)
        elif value is None or value == "":
            continue
        else:
            vec[f"{key}={value}"] = 1.0
    return vec


def euclidean_distance(a: Context, b: Context) -> float:
    va, vb = vectorize(a), vectorize(b)
    keys = list(dict.fromkeys([*va, *vb]))
    if not keys:
        return 0.0
    x = np.array([va.get(key, 0.0) for key in keys], dtype=float)
    y = np.array([vb.get(key, 0.0) for key in keys], dtype=float)
    return float(np.linalg.norm(x - y))


# FrequencyVote ----------------------------------------------------------------------
def _train_vote(state: FrequencyVoteState, context: Context, label: Any) -> None:
    state.examples.append((dict(context), label))


def find_similar_contexts(state: FrequencyVoteState, query: Context) -> List[Tuple[float, Any]]:
    matches = []
    for ctx, label in state.examples:
        sim = context_similarity(query, ctx)
        if sim >= state.threshold:
            matches.append((sim, label))
    return matches


def weighted_vote(matches: List[Tuple[float, Any]]) -> Any:
    """Similarity-weighted vote; the first label to reach the top total wins."""
    votes: Dict[Any, float] = {}
    winner, best = None, 0.0
    for sim, label in matches:
        votes[label] = votes.get(label, 0.0) + sim
        if votes[label] > best:
            best, winner = votes[label], label
    return winner


def _predict_vote(state: FrequencyVoteState, query: Context, partial: Optional[str]) -> Any:
    return weighted_vote(find_similar_contexts(state, query))


# LinearScore ------------------------------------------------------------------------
def _train_linear(state: LinearScoreState, context: Context, label: Any) -> None:
    state.n_examples += 1
    state.coefficients = DEFAULT_COEFFICIENTS


def _predict_linear(state: LinearScoreState, query: Context, partial: Optional[str]) -> float:
    values = list(vectorize(query).values())
    n = min(len(values), len(state.coefficients))
    if n == 0:
        return 0.0
    return float(np.dot(values[:n], state.coefficients[:n]))


# MarkovChain -------------------------------------------------------------------------
def _train_markov(state: MarkovChainState, context: Context, label: Any) -> None:
    if label is None:
        return
    state.chain.train_sentence(str(label))


def _predict_markov(state: MarkovChainState, query: Context, partial: Optional[str]) -> str:
    return state.chain.predict(partial)


# KNearestNeighbor ---------------------------------------------------------------------
def _train_knn(state: KNearestState, context: Context, label: Any) -> None:
    state.examples.append((dict(context), label))


def nearest_neighbors(state: KNearestState, query: Context) -> List[Tuple[float, Any]]:
    dists = [(euclidean_distance(query, ctx), label) for ctx, label in state.examples]
    dists.sort(key=lambda d: d[0])
    return dists[:state.k]


def _predict_knn(state: KNearestState, query: Context, partial: Optional[str]) -> Any:
    # TODO: majority vote over the k neighbours once the expected tie rules are settled
    nearest = nearest_neighbors(state, query)
    return nearest[0][1] if nearest else None


# Dispatch -------------------------------------------------------------------------------
_TRAINERS: Dict[ModelKind, Callable[[Any, Context, Any], None]] = {
    ModelKind.FREQUENCY_VOTE: _train_vote,
    ModelKind.LINEAR_SCORE: _train_linear,
    ModelKind.MARKOV_CHAIN: _train_markov,
    ModelKind.K_NEAREST: _train_knn,
}

_PREDICTORS: Dict[ModelKind, Callable[[Any, Context, Optional[str]], Any]] = {
    ModelKind.FREQUENCY_VOTE: _predict_vote,
    ModelKind.LINEAR_SCORE: _predict_linear,
    ModelKind.MARKOV_CHAIN: _predict_markov,
    ModelKind.K_NEAREST: _predict_knn,
}


def train(model: FieldModel, context: Context, label: Any) -> None:
    _TRAINERS[model.kind](model.state, context, label)


def predict(model: FieldModel, query: Optional[Context] = None, partial: Optional[str] = None) -> Any:
    return _PREDICTORS[model.kind](model.state, query or {}, partial)


# Serialization ------------------------------------------------------------------------------
def to_dict(model: FieldModel) -> Dict[str, Any]:
    s = model.state
    if model.kind is ModelKind.MARKOV_CHAIN:
        payload: Dict[str, Any] = s.chain.save_state()
    elif model.kind is ModelKind.LINEAR_SCORE:
        payload = {"coefficients": list(s.coefficients), "n_examples": s.n_examples}
    elif model.kind is ModelKind.FREQUENCY_VOTE:
        payload = {"examples": [[c, lbl] for c, lbl in s.examples], "threshold": s.threshold}
    else:
        payload = {"examples": [[c, lbl] for c, lbl in s.examples], "k": s.k}
    return {"field": model.field_name, "kind": model.kind.value, "state": payload}


def from_dict(data: Mapping[str, Any]) -> FieldModel:
    kind = ModelKind(data["kind"])
    payload = data.get("state", {})
    model = create_model(
        data.get("field", ""),
        kind,
        threshold=float(payload.get("threshold", SIMILARITY_THRESHOLD)),
        k=int(payload.get("k", DEFAULT_K)),
    )
    if kind is ModelKind.MARKOV_CHAIN:
        model.state.chain.load_state(payload)
    elif kind is ModelKind.LINEAR_SCORE:
        model.state.coefficients = tuple(payload.get("coefficients", DEFAULT_COEFFICIENTS))
        model.state.n_examples = int(payload.get("n_examples", 0))
    else:
        model.state.examples = [(dict(c), lbl) for c, lbl in payload.get("examples", [])]
    return model
