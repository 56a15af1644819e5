# config_manager.py - JSON config manager

import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    "learning": True,
    "anonymize": True,            # run records through the privacy layer before learning
    "privacy_budget": 1.0,        # total epsilon
    "epsilon_per_learn": 0.1,
    "confidence_threshold": 0.7,
    "max_suggestions": 3,
    "cache_size": 100,
    "similarity_threshold": 0.7,  # FrequencyVote context match
    "knn_k": 3,
}


class Config:
    """
    Predictor settings. Backed by a JSON file when `path` is given, otherwise
    kept in memory only. Unknown keys in the file are ignored.
    """

    def __init__(self, path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None):
        self.path = path
        self.data: Dict[str, Any] = dict(DEFAULTS)
        if path:
            self._load()
        for k, v in (overrides or {}).items():
            self.set(k, v, persist=False)

    def _load(self):
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r", encoding="utf8") as f:
                loaded = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"[Config] load failed, using defaults: {e}")
            return
        for k, v in loaded.items():
            if k in self.data:
                self.data[k] = self._coerce(k, v)

    def save(self):
        if not self.path:
            return
        with open(self.path, "w", encoding="utf8") as f:
            json.dump(self.data, f, indent=2)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, val: Any, persist: bool = True):
        if key not in self.data:
            raise KeyError(f"No such option: {key}")
        self.data[key] = self._coerce(key, val)
        if persist:
            self.save()

    def _coerce(self, key: str, val: Any) -> Any:
        kind = type(DEFAULTS[key])
        if kind is bool and isinstance(val, str):
            return val.strip().lower() in ("1", "true", "yes", "on")
        return kind(val)
