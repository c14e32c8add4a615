from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse

from recordvault.api.deps import get_catalog, get_upload_handler, require_auth
from recordvault.core.filenames import to_iso
from recordvault.schemas.auth import MessageResponse
from recordvault.schemas.recording import RecordingEntry, UploadedFile, UploadResponse
from recordvault.services.catalog import RecordingCatalog
from recordvault.services.uploader import UploadHandler

router = APIRouter(dependencies=[Depends(require_auth)], tags=["recordings"])


@router.post("/api/upload", response_model=UploadResponse)
async def upload_recordings(
    request: Request,
    handler: UploadHandler = Depends(get_upload_handler),
) -> UploadResponse:
    """Upload up to ten audio files sent under the ``recordings`` field.

    Args:
        request (Request): The multipart request.
        handler (UploadHandler): Validates and stores the parts.
    Returns:
        UploadResponse: One descriptor per stored file.
    """
    async with request.form() as form:
        parts = handler.collect_parts(form)
        stored = await handler.store(parts)

    files = [
        UploadedFile(
            filename=item.filename,
            originalname=item.originalname,
            size=item.size,
            mimetype=item.mimetype,
            path=str(item.path),
            uploaded_at=to_iso(item.uploaded_at),
        )
        for item in stored
    ]
    return UploadResponse(files=files, total=len(files))


@router.get("/api/recordings", response_model=List[RecordingEntry])
async def list_recordings(
    catalog: RecordingCatalog = Depends(get_catalog),
) -> List[RecordingEntry]:
    """List every stored recording, newest first.

    Returns:
        List[RecordingEntry]: All recordings; there is no paging.
    """
    return await catalog.list()


@router.get("/uploads/{filename}")
async def fetch_recording(
    filename: str, catalog: RecordingCatalog = Depends(get_catalog)
) -> FileResponse:
    """Stream the raw bytes of a stored recording.

    Args:
        filename (str): The stored filename.
    Returns:
        FileResponse: The file, typed from its extension.
    """
    path = await catalog.fetch(filename)
    return FileResponse(path)


@router.delete("/api/recordings/{filename}", response_model=MessageResponse)
async def delete_recording(
    filename: str, catalog: RecordingCatalog = Depends(get_catalog)
) -> MessageResponse:
    """Delete a stored recording.

    Args:
        filename (str): The stored filename.
    Returns:
        MessageResponse: The deletion status.
    """
    await catalog.delete(filename)
    return MessageResponse(message="Recording deleted")
