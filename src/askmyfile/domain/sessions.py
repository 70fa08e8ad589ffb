"""Domain models for upstream sessions."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SessionRecord:
    """Upstream session cookie captured for a user."""

    user_id: str
    credential: str
    updated_at: datetime
