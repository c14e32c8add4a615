import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from recordvault.api.deps import get_session_id, get_session_store, get_app_settings
from recordvault.config import Settings
from recordvault.core.errors import InternalError, InvalidCredentials, SessionStoreError
from recordvault.core.logger import get_logger
from recordvault.schemas.auth import AuthStatus, LoginRequest, MessageResponse
from recordvault.services.session_store import SessionStore

router = APIRouter(prefix="/api", tags=["auth"])
logger = get_logger(__name__)


async def read_credentials(request: Request) -> LoginRequest:
    """Accept credentials as a JSON object or as form fields."""
    content_type = request.headers.get("content-type", "")
    data = {}
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            data = body
    elif content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        async with request.form() as form:
            data = dict(form)

    def text(value) -> Optional[str]:
        return value if isinstance(value, str) else None

    return LoginRequest(username=text(data.get("username")), password=text(data.get("password")))


def credentials_match(credentials: LoginRequest, settings: Settings) -> bool:
    if credentials.username is None or credentials.password is None:
        return False
    username_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), settings.username.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), settings.password.encode("utf-8")
    )
    return username_ok and password_ok


@router.post("/login", response_model=MessageResponse)
async def login(
    request: Request,
    response: Response,
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_app_settings),
) -> MessageResponse:
    """Authenticate against the configured account and start a session."""
    credentials = await read_credentials(request)
    if not credentials_match(credentials, settings):
        logger.warning(f"Failed login attempt for user {credentials.username!r}")
        raise InvalidCredentials()

    try:
        if session_id:
            await run_in_threadpool(store.destroy, session_id)
        state = await run_in_threadpool(store.create, is_authenticated=True)
    except SessionStoreError as e:
        raise InternalError("Login failed") from e

    response.set_cookie(
        settings.session_cookie_name,
        state.session_id,
        max_age=settings.session_max_age,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    logger.info(f"User {credentials.username!r} logged in")
    return MessageResponse(message="Login successful")


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_app_settings),
) -> MessageResponse:
    if session_id:
        try:
            store.destroy(session_id)
        except SessionStoreError as e:
            raise InternalError("Logout failed") from e
    response.delete_cookie(
        settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return MessageResponse(message="Logout successful")


@router.get("/check-auth", response_model=AuthStatus)
def check_auth(
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
) -> AuthStatus:
    try:
        authenticated = store.is_authenticated(session_id)
    except SessionStoreError as e:
        logger.error(f"Session lookup failed: {e}")
        authenticated = False
    return AuthStatus(is_authenticated=authenticated)
