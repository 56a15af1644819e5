# smart_form_predictor/core/privacy_learner.py
"""
PrivacyLearner - noise + generalization applied to submissions before learning.

Policy (one policy, applied everywhere):
 - numeric values get Laplace noise with scale 1/epsilon
 - statistical fields are generalized: age and income become bucket labels,
   national-ID-like fields are masked, locations are cut to city level
 - contact fields (email, phone) are kept byte-identical so they can still
   be shown back to the user as suggestions

When the budget manager grants nothing the records pass through untouched.
"""

from __future__ import annotations

import logging
import numbers
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from smart_form_predictor.core.privacy_budget import PrivacyBudgetManager

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

AGE_FIELDS = frozenset({"age"})
INCOME_FIELDS = frozenset({"income", "salary", "annualincome", "annual_income"})
NATIONAL_ID_FIELDS = frozenset({
    "ssn", "nationalid", "national_id", "idnumber", "id_number", "passport", "socialsecurity",
})
LOCATION_FIELDS = frozenset({"location"})


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _as_number(value: Any) -> Optional[float]:
    if _is_number(value):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


# Generalizers -------------------------------------------------------------
def generalize_age(age: Any) -> Any:
    n = _as_number(age)
    if n is None:
        return age
    if n < 18:
        return "minor"
    if n < 30:
        return "young-adult"
    if n < 50:
        return "middle-aged"
    if n < 65:
        return "senior"
    return "elderly"


def generalize_income(income: Any) -> Any:
    n = _as_number(income)
    if n is None:
        return income
    if n < 30000:
        return "low"
    if n < 60000:
        return "medium"
    if n < 100000:
        return "high"
    return "very-high"


def mask_identifier(value: Any, keep_prefix: int = 2, keep_suffix: int = 2) -> Any:
    """'123-45-6789' -> '12*******89'. Short values are masked entirely."""
    if value is None:
        return value
    s = str(value)
    if len(s) <= keep_prefix + keep_suffix:
        return "*" * len(s)
    hidden = len(s) - keep_prefix - keep_suffix
    return s[:keep_prefix] + "*" * hidden + s[len(s) - keep_suffix:]


def generalize_location(location: Any) -> Any:
    """Keep only the city: 'Boston, MA 02110' -> 'Boston'."""
    if isinstance(location, str):
        parts = location.split(",")
        if len(parts) > 1:
            return parts[0].strip()
    return location


_GENERALIZERS: Dict[frozenset, Callable[[Any], Any]] = {
    AGE_FIELDS: generalize_age,
    INCOME_FIELDS: generalize_income,
    NATIONAL_ID_FIELDS: mask_identifier,
    LOCATION_FIELDS: generalize_location,
}


def _generalizer_for(field_name: str) -> Optional[Callable[[Any], Any]]:
    key = field_name.lower()
    for names, fn in _GENERALIZERS.items():
        if key in names:
            return fn
    return None


class PrivacyLearner:
    """
    Public API:
        learn_with_privacy(records, epsilon) -> processed records
        add_laplace_noise(records, epsilon)
        generalize_sensitive_fields(records)
        remaining_budget(), reset_budget()
    """

    def __init__(self,
                 budget: Optional[PrivacyBudgetManager] = None,
                 rng: Optional[np.random.Generator] = None,
                 seed: Optional[int] = None):
        self.budget = budget or PrivacyBudgetManager()
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def learn_with_privacy(self, records: Sequence[Any], epsilon: float) -> List[Any]:
        granted = self.budget.consume(epsilon)
        if granted <= 0:
            logger.warning("[PrivacyLearner] budget exhausted, passing %d record(s) through unprotected",
                           len(records))
            return list(records)

        noisy = self.add_laplace_noise(records, granted)
        return self.generalize_sensitive_fields(noisy)

    # Laplace mechanism ---------------------------------------------------------
    def laplace_noise(self, scale: float) -> float:
        return float(self.rng.laplace(0.0, scale))

    def add_laplace_noise(self, records: Sequence[Any], epsilon: float) -> List[Any]:
        if epsilon <= 0:
            raise ValueError("epsilon must be positive")
        scale = 1.0 / epsilon
        out: List[Any] = []
        for record in records:
            if isinstance(record, dict):
                out.append({
                    k: (v + self.laplace_noise(scale) if _is_number(v) else v)
                    for k, v in record.items()
                })
            elif _is_number(record):
                out.append(record + self.laplace_noise(scale))
            else:
                out.append(record)
        return out

    # Generalization -------------------------------------------------------------
    def generalize_sensitive_fields(self, records: Sequence[Any]) -> List[Any]:
        out: List[Any] = []
        for record in records:
            if not isinstance(record, dict):
                out.append(record)
                continue
            generalized: Record = dict(record)
            for key, value in record.items():
                fn = _generalizer_for(key)
                if fn is not None:
                    generalized[key] = fn(value)
            out.append(generalized)
        return out

    def remaining_budget(self) -> float:
        return self.budget.remaining()

    def reset_budget(self) -> None:
        self.budget.reset()
