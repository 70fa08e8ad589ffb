"""Per-user upstream session storage."""

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from askmyfile.domain.sessions import SessionRecord


class SessionStore(Protocol):
    """Maps a user id to the session cookie captured from upstream."""

    def get(self, user_id: str) -> str | None:
        """Return the stored credential for a user, if any."""

    def put(self, user_id: str, credential: str) -> None:
        """Replace the stored credential for a user."""


@dataclass
class InMemorySessionStore(SessionStore):
    """Process-wide session store with last-write-wins semantics.

    Entries are never evicted and are lost when the process restarts. The lock
    only guards the dict operations, so it is never held across network I/O.
    """

    _records: dict[str, SessionRecord] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self, user_id: str) -> str | None:
        """Return the stored credential for a user, if any."""
        record = self.get_record(user_id)
        return record.credential if record else None

    def get_record(self, user_id: str) -> SessionRecord | None:
        """Return the full session record, including when it was captured."""
        with self._lock:
            return self._records.get(user_id)

    def put(self, user_id: str, credential: str) -> None:
        """Store a credential, replacing any previous one for the user."""
        record = SessionRecord(
            user_id=user_id,
            credential=credential,
            updated_at=datetime.now(tz=UTC),
        )
        with self._lock:
            self._records[user_id] = record
