from datetime import datetime
from typing import Callable, Optional

from fastapi import Depends, Request

from recordvault.config import Settings
from recordvault.core.errors import SessionStoreError, Unauthorized
from recordvault.core.filenames import utc_now
from recordvault.core.logger import get_logger
from recordvault.services.catalog import RecordingCatalog
from recordvault.services.file_store import FileStore
from recordvault.services.session_store import SessionState, SessionStore
from recordvault.services.uploader import UploadHandler

logger = get_logger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_file_store(request: Request) -> FileStore:
    return request.app.state.file_store


def get_clock() -> Callable[[], datetime]:
    return utc_now


def get_session_id(request: Request, settings: Settings = Depends(get_app_settings)) -> Optional[str]:
    return request.cookies.get(settings.session_cookie_name)


def require_auth(
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
) -> SessionState:
    """Gate for protected routes; resolves to the caller's session."""
    if not session_id:
        raise Unauthorized()
    try:
        state = store.get(session_id)
    except SessionStoreError as e:
        logger.error(f"Session lookup failed: {e}")
        raise Unauthorized() from e
    if state is None or not state.is_authenticated:
        raise Unauthorized()
    return state


def get_catalog(file_store: FileStore = Depends(get_file_store)) -> RecordingCatalog:
    return RecordingCatalog(file_store)


def get_upload_handler(
    file_store: FileStore = Depends(get_file_store),
    settings: Settings = Depends(get_app_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> UploadHandler:
    return UploadHandler(
        file_store,
        clock=clock,
        max_size=settings.max_upload_size,
        max_files=settings.max_files_per_upload,
    )
