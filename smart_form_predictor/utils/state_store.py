# state_store.py - JSON file persistence for the predictor's exported state

# implements PersistenceProtocol for hosts without their own storage:
# - save_state(state): writes the orchestrator's export_state() dict
# - load_state(): reads it back (None when missing or unreadable)
# - clear(): removes the file
# Storage is best effort: errors are logged and swallowed so a failing disk
# never breaks learning or prediction.

import json
import os
from typing import Any, Dict, Optional

from smart_form_predictor.utils.logger_utils import Log

# Configuration -------------------
DEFAULT_STATE_PATH = os.path.join("data", "smart_form_state.json")


class JsonStateStore:
    """
    Args:
        path (str): the JSON file holding the state. Parent folders are
            created on the first save, not at construction.
    """

    def __init__(self, path: str = DEFAULT_STATE_PATH):
        self.path = path

    def save_state(self, state: Dict[str, Any]) -> None:
        try:
            folder = os.path.dirname(self.path)
            if folder:
                os.makedirs(folder, exist_ok=True)
            tmp = f"{self.path}.tmp"
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(state, f, indent=2, default=str)
            os.replace(tmp, self.path)
            Log.write(f"[StateStore] saved state ({len(state.get('trainingData', {}))} fields)")
        except (OSError, TypeError, ValueError) as e:
            Log.warning(f"[StateStore] save_state error: {e}")

    def load_state(self) -> Optional[Dict[str, Any]]:
        """
        Returns:
            dict: the stored state, or None if missing/there is an error.
        """
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            Log.warning(f"[StateStore] load_state error: {e}")
            return None
        if not isinstance(data, dict):
            Log.warning(f"[StateStore] ignoring non-object state in {self.path}")
            return None
        return data

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            Log.warning(f"[StateStore] clear error: {e}")
