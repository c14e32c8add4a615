from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from recordvault.api import auth, recordings
from recordvault.config import Settings, get_settings
from recordvault.core.errors import RecordVaultError
from recordvault.core.logger import configure_logging, get_logger
from recordvault.services.file_store import FileStore
from recordvault.services.session_store import build_session_store

logger = get_logger(__name__)


async def handle_recordvault_error(request: Request, exc: RecordVaultError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    # The upload directory must exist before the first request
    file_store = FileStore(settings.upload_dir)
    file_store.ensure_exists()
    session_store = build_session_store(
        settings.session_backend, settings.session_database_url
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Serving recordings from {file_store.root}")
        yield
        session_store.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.file_store = file_store
    app.state.session_store = session_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RecordVaultError, handle_recordvault_error)

    app.include_router(auth.router)
    app.include_router(recordings.router)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    # Mounted last so the API routes take precedence
    if settings.public_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.public_dir, html=True), name="public")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("recordvault.main:app", host=settings.host, port=settings.port, reload=True)
