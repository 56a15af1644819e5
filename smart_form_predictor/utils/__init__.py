# smart_form_predictor/utils/__init__.py
# logging, config and file persistence helpers

from .logger_utils import Log
from .config_manager import Config
from .state_store import JsonStateStore

__all__ = ["Log", "Config", "JsonStateStore"]
