"""Server-side session state keyed by the session cookie.

Handlers depend on the ``SessionStore`` interface only; ``create_app`` picks
the backing from settings. ``InMemorySessionStore`` lives and dies with the
process. ``DatabaseSessionStore`` keeps sessions in a SQLAlchemy database so
several server processes can share them.
"""
import secrets
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from recordvault.core.errors import SessionStoreError
from recordvault.core.logger import get_logger
from recordvault.db.base import Base, create_db_engine, create_session_factory
from recordvault.db.models import SessionRecord

logger = get_logger(__name__)


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


@dataclass(frozen=True)
class SessionState:
    session_id: str
    is_authenticated: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionStore(ABC):
    @abstractmethod
    def create(self, is_authenticated: bool = False) -> SessionState:
        """Start a new session under a freshly generated id."""

    @abstractmethod
    def get(self, session_id: str) -> Optional[SessionState]:
        """Return the session, or None when the id is unknown."""

    @abstractmethod
    def destroy(self, session_id: str) -> None:
        """Forget the session. Unknown ids are ignored."""

    def is_authenticated(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        state = self.get(session_id)
        return bool(state and state.is_authenticated)

    def close(self) -> None:
        pass


class InMemorySessionStore(SessionStore):
    def __init__(self):
        self._sessions: Dict[str, SessionState] = {}
        self._lock = threading.Lock()

    def create(self, is_authenticated: bool = False) -> SessionState:
        state = SessionState(session_id=new_session_id(), is_authenticated=is_authenticated)
        with self._lock:
            self._sessions[state.session_id] = state
        return state

    def get(self, session_id: str) -> Optional[SessionState]:
        with self._lock:
            state = self._sessions.get(session_id)
        return state

    def destroy(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)


class DatabaseSessionStore(SessionStore):
    def __init__(self, url: str):
        self.engine = create_db_engine(url)
        database = self.engine.url.database
        if self.engine.url.get_backend_name() == "sqlite" and database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        Base.metadata.create_all(bind=self.engine)
        self.SessionLocal = create_session_factory(self.engine)

    @staticmethod
    def _to_state(record: SessionRecord) -> SessionState:
        created_at = record.created_at
        if created_at is not None and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return SessionState(
            session_id=record.session_id,
            is_authenticated=bool(record.is_authenticated),
            created_at=created_at,
        )

    def create(self, is_authenticated: bool = False) -> SessionState:
        record = SessionRecord(
            session_id=new_session_id(),
            is_authenticated=is_authenticated,
            created_at=datetime.now(timezone.utc),
        )
        db = self.SessionLocal()
        try:
            db.add(record)
            db.commit()
            db.refresh(record)
            return self._to_state(record)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create session: {e}")
            raise SessionStoreError(str(e)) from e
        finally:
            db.close()

    def get(self, session_id: str) -> Optional[SessionState]:
        db = self.SessionLocal()
        try:
            record = db.get(SessionRecord, session_id)
            return self._to_state(record) if record else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load session: {e}")
            raise SessionStoreError(str(e)) from e
        finally:
            db.close()

    def destroy(self, session_id: str) -> None:
        db = self.SessionLocal()
        try:
            db.query(SessionRecord).filter(SessionRecord.session_id == session_id).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to destroy session: {e}")
            raise SessionStoreError(str(e)) from e
        finally:
            db.close()

    def close(self) -> None:
        self.engine.dispose()


def build_session_store(backend: str, database_url: Optional[str] = None) -> SessionStore:
    if backend == "memory":
        return InMemorySessionStore()
    if backend == "database":
        if not database_url:
            raise ValueError("database session backend needs a database url")
        return DatabaseSessionStore(database_url)
    raise ValueError(f"Unknown session backend: {backend}")
