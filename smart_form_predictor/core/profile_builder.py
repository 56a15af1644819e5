# profile_builder.py
# Long-term per-user profile built from many submitted sessions.
# Where the prediction store learns field by field, this learns the person:
#  - names they go by ("firstName lastName")
#  - where they live (city-state)
#  - where they work (company-title)
#  - when they usually fill forms (hour of day)
#  - which device they usually use
# The profile is recomputed wholesale from the sessions handed in.
# ---------------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)

Session = Mapping[str, Any]


@dataclass
class UserProfile:
    preferred_names: List[str] = field(default_factory=list)
    preferred_location: Optional[str] = None
    preferred_work_info: Optional[str] = None
    preferred_hour: Optional[int] = None
    preferred_device: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def is_empty(self) -> bool:
        return not self.preferred_names and all(
            v is None for v in (self.preferred_location, self.preferred_work_info,
                                 self.preferred_hour, self.preferred_device)
        )


def most_frequent(counts: Mapping[Any, int]) -> Optional[Any]:
    """Highest count wins; on a tie the first key seen keeps its place."""
    best, best_count = None, 0
    for key, count in counts.items():
        if count > best_count:
            best, best_count = key, count
    return best


class CrossSessionProfileBuilder:
    """
    User-specific profile engine.

    Session keys it reads: firstName, lastName, city, state, company, title,
    timestamp (epoch ms), deviceType. Everything else is ignored.
    """

    def __init__(self,
                 clock: Optional[Callable[[], datetime]] = None,
                 tz: Optional[tzinfo] = None):
        self.tz = tz or timezone.utc
        self.clock = clock or (lambda: datetime.now(self.tz))
        self.profile = UserProfile()

    def aggregate(self, sessions: Iterable[Session]) -> UserProfile:
        """Recompute the profile from scratch and replace the current one."""
        self.profile = self._build(list(sessions))
        return self.profile

    def update_user_profile(self, sessions: Iterable[Session]) -> UserProfile:
        """
        Shallow merge: fields the new sessions say something about overwrite
        the stored ones, the rest are kept. No weighting or decay.
        """
        fresh = self._build(list(sessions))
        for key, value in fresh.to_dict().items():
            if value not in (None, []):
                setattr(self.profile, key, value)
        return self.profile

    def get_user_profile(self) -> UserProfile:
        return self.profile

    # Extraction ------------------------------------------------------------------
    def _build(self, sessions: List[Session]) -> UserProfile:
        names: Dict[str, None] = {}
        locations: Dict[str, int] = {}
        work: Dict[str, int] = {}
        hours: Dict[int, int] = {}
        devices: Dict[str, int] = {}

        for s in sessions:
            first, last = s.get("firstName"), s.get("lastName")
            if first and last:
                names.setdefault(f"{first} {last}", None)

            # city alone is enough; state and address are optional
            if s.get("city"):
                loc = f"{s['city']}-{s.get('state') or ''}"
                locations[loc] = locations.get(loc, 0) + 1

            if s.get("company") and s.get("title"):
                combo = f"{s['company']}-{s['title']}"
                work[combo] = work.get(combo, 0) + 1

            hour = self._hour_of(s.get("timestamp"))
            hours[hour] = hours.get(hour, 0) + 1

            device = s.get("deviceType") or "unknown"
            devices[device] = devices.get(device, 0) + 1

        profile = UserProfile(
            preferred_names=list(names),
            preferred_location=most_frequent(locations),
            preferred_work_info=most_frequent(work),
            preferred_hour=most_frequent(hours),
            preferred_device=most_frequent(devices),
        )
        logger.debug("[ProfileBuilder] aggregated %d session(s)", len(sessions))
        return profile

    def _hour_of(self, timestamp_ms: Any) -> int:
        if timestamp_ms in (None, ""):
            return self.clock().hour
        try:
            return datetime.fromtimestamp(float(timestamp_ms) / 1000.0, tz=self.tz).hour
        except (TypeError, ValueError, OverflowError, OSError):
            return self.clock().hour
