# smart_form_predictor/core/privacy_budget.py
"""
PrivacyBudgetManager
--------------------
Tracks how much differential-privacy budget (epsilon) has been spent.

 - consume(requested) grants at most what is left
 - a grant of 0.0 means the budget is gone and the caller should pass the
   record through unprotected
 - `used` only grows until reset()
"""

from __future__ import annotations

import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)

# remainders below this are treated as exhausted (0.1 * 10 != 1.0 in floats)
EPSILON_TOLERANCE = 1e-9


class PrivacyBudgetManager:
    def __init__(self, total: float = 1.0, used: float = 0.0):
        if total <= 0:
            raise ValueError("privacy budget total must be positive")
        self.total = float(total)
        self.used = min(self.total, max(0.0, float(used)))

    def consume(self, requested: float) -> float:
        """Return the granted epsilon, clamped to what remains."""
        if requested <= 0:
            raise ValueError("requested epsilon must be positive")

        granted = float(requested)
        if self.used + granted > self.total:
            granted = self.total - self.used
            logger.warning("[PrivacyBudget] budget exceeded, reducing allocation to %.6f", max(granted, 0.0))
            if granted <= EPSILON_TOLERANCE:
                return 0.0

        self.used = min(self.total, self.used + granted)
        return granted

    def remaining(self) -> float:
        return max(0.0, self.total - self.used)

    def exhausted(self) -> bool:
        return self.remaining() <= EPSILON_TOLERANCE

    def reset(self) -> None:
        """Operator action: start a fresh budget."""
        self.used = 0.0
        logger.info("[PrivacyBudget] reset (total=%.3f)", self.total)

    # Persistence ------------------------------------------------------------
    def to_dict(self) -> Dict[str, float]:
        return {"total": self.total, "used": self.used}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrivacyBudgetManager":
        return cls(total=float(data.get("total", 1.0)), used=float(data.get("used", 0.0)))
