"""
smart_form_predictor.core

The prediction engine. No storage I/O happens in here.
Contains:
 - privacy budget accounting and the Laplace/generalization layer
 - feature extraction from a live form snapshot
 - the field relationship graph and cross-session profile
 - per-field models (frequency vote, linear score, Markov chain, k-NN)
 - the prediction cache and the orchestrator tying them together
"""

from .privacy_budget import PrivacyBudgetManager
from .privacy_learner import PrivacyLearner
from .feature_extractor import FeatureBundle, FeatureExtractor
from .relationship_graph import RelationshipGraph
from .field_models import FieldModel, ModelKind
from .markov_predictor import MarkovPredictor
from .profile_builder import CrossSessionProfileBuilder, UserProfile
from .prediction_cache import PredictionCache
from .store import PredictionStore
from .field_validator import FieldValidator, InvalidRuleError, ValidationResult
from .orchestrator import PredictionOrchestrator, StateFormatError

__all__ = [
    "PrivacyBudgetManager",
    "PrivacyLearner",
    "FeatureBundle",
    "FeatureExtractor",
    "RelationshipGraph",
    "FieldModel",
    "ModelKind",
    "MarkovPredictor",
    "CrossSessionProfileBuilder",
    "UserProfile",
    "PredictionCache",
    "PredictionStore",
    "FieldValidator",
    "InvalidRuleError",
    "ValidationResult",
    "PredictionOrchestrator",
    "StateFormatError",
]
