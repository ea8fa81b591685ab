"""Session/Implementation Tracker - per-client working file and component status.

Each client identifier owns at most one WorkingFileSession. A session lives
for SESSION_TTL seconds measured from when the file was set (not from last
access); reads past that point delete it and report no session.

Reading a session counts as activity and refreshes ``last_accessed``.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from .integrations.figma_url import ParsedFigmaUrl
from .logging_config import get_session_logger
from .models import (
    ComponentListItem,
    ComponentStatus,
    ImplementationQueue,
    ImplementationStats,
    ImplementationSummary,
    StatusValue,
    WorkingFileSession,
)
from .settings import SESSION_TTL

logger = get_session_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class SessionStore(ABC):
    """Backing storage for SessionManager, keyed by client identifier."""

    @abstractmethod
    def get(self, client_id: str) -> Optional[WorkingFileSession]:
        ...

    @abstractmethod
    def set(self, client_id: str, session: WorkingFileSession) -> None:
        ...

    @abstractmethod
    def delete(self, client_id: str) -> bool:
        ...

    @abstractmethod
    def items(self) -> List[tuple]:
        """Snapshot of (client_id, session) pairs."""

    @abstractmethod
    def __len__(self) -> int:
        ...


class MemorySessionStore(SessionStore):
    def __init__(self):
        self._sessions: Dict[str, WorkingFileSession] = {}

    def get(self, client_id: str) -> Optional[WorkingFileSession]:
        return self._sessions.get(client_id)

    def set(self, client_id: str, session: WorkingFileSession) -> None:
        self._sessions[client_id] = session

    def delete(self, client_id: str) -> bool:
        return self._sessions.pop(client_id, None) is not None

    def items(self) -> List[tuple]:
        return list(self._sessions.items())

    def __len__(self) -> int:
        return len(self._sessions)


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


def _partition(
    components: Iterable[ComponentListItem],
    status_map: Dict[str, ComponentStatus],
) -> ImplementationQueue:
    queue = ImplementationQueue()
    for component in components:
        queue.total += 1
        tracked = status_map.get(component.id)
        status = tracked.status if tracked is not None else "pending"
        if status == "in-progress":
            queue.in_progress.append(component)
        elif status == "implemented":
            queue.implemented.append(component)
        elif status == "needs-update":
            queue.needs_update.append(component)
        else:
            queue.pending.append(component)
    return queue


def _completion(implemented: int, total: int) -> int:
    if total == 0:
        return 0
    # Half-up, so 2 of 3 reports 67 and 1 of 8 reports 13
    return (implemented * 200 + total) // (total * 2)


class SessionManager:
    """Tracks working files and implementation status per client.

    Args:
        store: Backing store. Defaults to a MemorySessionStore.
        ttl: Session lifetime in seconds, measured from ``set_at``.
        clock: Returns the current aware datetime (injectable for tests).
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        ttl: float = SESSION_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store if store is not None else MemorySessionStore()
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.RLock()

    def _expired(self, session: WorkingFileSession, now: datetime) -> bool:
        return (now - session.set_at).total_seconds() > self.ttl

    def set_working_file(
        self,
        client_id: str,
        parsed_url: ParsedFigmaUrl,
        file_name: Optional[str] = None,
    ) -> WorkingFileSession:
        """Start a fresh session for ``client_id``, replacing any previous one."""
        now = self._clock()
        session = WorkingFileSession(
            file_id=parsed_url.file_id,
            file_name=file_name or parsed_url.file_name,
            url=parsed_url.url,
            set_at=now,
            last_accessed=now,
        )
        with self._lock:
            self._store.set(client_id, session)
        logger.info(
            f"Working file set: client={client_id}, file={session.file_id}, "
            f"name={session.file_name!r}"
        )
        return session

    def get_working_file(self, client_id: str) -> Optional[WorkingFileSession]:
        """Live session for ``client_id`` (touching ``last_accessed``), or None."""
        with self._lock:
            session = self._store.get(client_id)
            if session is None:
                return None
            now = self._clock()
            if self._expired(session, now):
                self._store.delete(client_id)
                logger.warning(f"Session expired: client={client_id}, file={session.file_id}")
                return None
            session.last_accessed = now
            return session

    def update_component_status(
        self,
        client_id: str,
        component_id: str,
        component_name: str,
        status: StatusValue,
        notes: Optional[str] = None,
        framework: Optional[str] = None,
    ) -> bool:
        """Record a component's status. Returns False when no live session exists.

        ``implemented_at`` is stamped when the status becomes ``implemented``
        from any other state and is otherwise carried over unchanged.
        """
        with self._lock:
            session = self.get_working_file(client_id)
            if session is None:
                return False

            now = self._clock()
            existing = session.status_map.get(component_id)
            implemented_at = existing.implemented_at if existing is not None else None
            was_implemented = existing is not None and existing.status == "implemented"
            if status == "implemented" and not was_implemented:
                implemented_at = now

            session.status_map[component_id] = ComponentStatus(
                component_id=component_id,
                component_name=component_name,
                status=status,
                last_modified=now,
                implemented_at=implemented_at,
                notes=notes,
                framework=framework,
            )
            session.last_accessed = now

        logger.info(
            f"Component status updated: client={client_id}, component={component_id}, "
            f"name={component_name!r}, status={status}, framework={framework}"
        )
        return True

    def get_component_status(self, client_id: str, component_id: str) -> Optional[ComponentStatus]:
        session = self.get_working_file(client_id)
        if session is None:
            return None
        return session.status_map.get(component_id)

    def get_implementation_queue(
        self,
        client_id: str,
        components: Iterable[ComponentListItem],
    ) -> ImplementationQueue:
        """Partition ``components`` by tracked status; untracked ones are pending."""
        session = self.get_working_file(client_id)
        status_map = session.status_map if session is not None else {}
        return _partition(components, status_map)

    def get_implementation_summary(
        self,
        client_id: str,
        components: Optional[Iterable[ComponentListItem]] = None,
    ) -> ImplementationSummary:
        """Aggregate status counts and completion percentage.

        With ``components`` the counts cover that candidate list (untracked
        components count as pending). Without it they cover tracked statuses.
        """
        session = self.get_working_file(client_id)
        if session is None:
            return ImplementationSummary(has_working_file=False)

        if components is not None:
            queue = _partition(components, session.status_map)
            counts = {
                "pending": len(queue.pending),
                "in-progress": len(queue.in_progress),
                "implemented": len(queue.implemented),
                "needs-update": len(queue.needs_update),
            }
            total = queue.total
        else:
            counts = {"pending": 0, "in-progress": 0, "implemented": 0, "needs-update": 0}
            for tracked in session.status_map.values():
                counts[tracked.status] += 1
            total = len(session.status_map)

        stats = ImplementationStats(
            total=total,
            pending=counts["pending"],
            in_progress=counts["in-progress"],
            implemented=counts["implemented"],
            needs_update=counts["needs-update"],
            completion_percentage=_completion(counts["implemented"], total),
        )
        return ImplementationSummary(has_working_file=True, working_file=session, stats=stats)

    def clear_working_file(self, client_id: str) -> bool:
        with self._lock:
            deleted = self._store.delete(client_id)
        if deleted:
            logger.info(f"Working file cleared: client={client_id}")
        return deleted

    def cleanup(self) -> int:
        """Delete every session past its TTL. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [
                client_id for client_id, session in self._store.items()
                if self._expired(session, now)
            ]
            for client_id in expired:
                self._store.delete(client_id)
        if expired:
            logger.info(f"Cleaned up expired sessions: count={len(expired)}")
        return len(expired)

    def session_count(self) -> int:
        with self._lock:
            return len(self._store)
