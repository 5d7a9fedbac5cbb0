"""In-memory view sessions holding each mounted view's expansion state."""

import logging
import uuid

from src.core.exceptions import NotFoundError, ValidationError
from src.modules.dashboard.builders import VIEW_LEVELS
from src.modules.reporting.expansion import ViewExpansion

logger = logging.getLogger(__name__)


class ViewSession:
    """Expansion state of one mounted view, created empty."""

    def __init__(self, session_id: str, view: str):
        self.id = session_id
        self.view = view
        self.expansion = ViewExpansion(VIEW_LEVELS.get(view, ()))

    def toggle(self, level: str, key: str) -> bool:
        if not self.expansion.has_level(level):
            allowed = ", ".join(self.expansion.levels) or "none"
            raise ValidationError(
                f"View '{self.view}' has no expansion level '{level}' (levels: {allowed})",
                field="level",
            )
        return self.expansion.toggle(level, key)


class ViewSessionStore:
    """
    Sessions live from view mount (create) to unmount (discard).

    Only touched from request handlers on the event loop; nothing persists
    across restarts.
    """

    def __init__(self):
        self._sessions: dict[str, ViewSession] = {}

    def create(self, view: str) -> ViewSession:
        session = ViewSession(uuid.uuid4().hex, view)
        self._sessions[session.id] = session
        logger.debug("Opened %s view session %s", view, session.id)
        return session

    def get(self, session_id: str) -> ViewSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError("View session", session_id)
        return session

    def get_for_view(self, session_id: str | None, view: str) -> ViewSession | None:
        """Session of ``view`` or None when no session id was given."""
        if session_id is None:
            return None
        session = self.get(session_id)
        if session.view != view:
            raise ValidationError(
                f"Session {session_id} belongs to the {session.view} view", field="session_id"
            )
        return session

    def toggle(self, session_id: str, level: str, key: str) -> tuple[ViewSession, bool]:
        """Toggle a row of a session; returns the session and the row's new state."""
        session = self.get(session_id)
        return session, session.toggle(level, key)

    def discard(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise NotFoundError("View session", session_id)

    def __len__(self) -> int:
        return len(self._sessions)
