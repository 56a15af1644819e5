"""
smart_form_predictor

On-device smart form predictor: learns from submitted forms under a privacy
budget and predicts values for the fields of the next one.
"""

from .core.orchestrator import PredictionOrchestrator, StateFormatError
from .core.records import FieldDescriptor, FieldState, Prediction
from .utils.config_manager import Config
from .utils.state_store import JsonStateStore

__all__ = [
    "PredictionOrchestrator",
    "StateFormatError",
    "FieldDescriptor",
    "FieldState",
    "Prediction",
    "Config",
    "JsonStateStore",
]

__version__ = "0.1.0"
