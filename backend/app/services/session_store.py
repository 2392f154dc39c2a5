"""
Wizard session storage.
"""
import copy
import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from app import models
from app.schemas import WizardSession

logger = logging.getLogger(__name__)


class SessionStore:
    """Interface for persisting wizard sessions."""

    def load(self, session_id: str) -> Optional[WizardSession]:
        raise NotImplementedError

    def save(self, session: WizardSession) -> None:
        raise NotImplementedError

    def delete(self, session_id: str) -> None:
        raise NotImplementedError


class InMemorySessionStore(SessionStore):
    """Process-local store."""

    def __init__(self):
        self._sessions: Dict[str, WizardSession] = {}

    def load(self, session_id: str) -> Optional[WizardSession]:
        session = self._sessions.get(session_id)
        # Callers mutate what they load; hand out copies
        return copy.deepcopy(session) if session else None

    def save(self, session: WizardSession) -> None:
        self._sessions[session.id] = copy.deepcopy(session)

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)


class DatabaseSessionStore(SessionStore):
    """Stores each session as a JSON document in the wizard_sessions table."""

    def __init__(self, db: Session):
        self.db = db

    def load(self, session_id: str) -> Optional[WizardSession]:
        record = self.db.get(models.WizardSessionRecord, session_id)
        if record is None:
            return None
        # Pick up writes made by other requests
        self.db.refresh(record)
        return WizardSession.model_validate(record.state)

    def save(self, session: WizardSession) -> None:
        record = self.db.get(models.WizardSessionRecord, session.id)
        state = session.model_dump(mode="json")
        if record is None:
            record = models.WizardSessionRecord(
                id=session.id,
                stage=session.stage.value,
                state=state,
                expires_at=session.expires_at,
            )
            self.db.add(record)
        else:
            record.stage = session.stage.value
            record.state = state
            record.expires_at = session.expires_at
        self.db.commit()
        logger.debug(f"Saved wizard session {session.id} at stage {session.stage.value}")

    def delete(self, session_id: str) -> None:
        record = self.db.get(models.WizardSessionRecord, session_id)
        if record is not None:
            self.db.delete(record)
            self.db.commit()
