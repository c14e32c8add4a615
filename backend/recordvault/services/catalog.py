from datetime import datetime, timezone
from pathlib import Path
from typing import List

from recordvault.core.errors import DeleteFailed, InternalError, NotFound, RecordVaultError
from recordvault.core.filenames import display_name, to_iso
from recordvault.core.logger import get_logger
from recordvault.schemas.recording import RecordingEntry
from recordvault.services.file_store import FileStore

logger = get_logger(__name__)

UPLOADS_URL_PREFIX = "/uploads"


class RecordingCatalog:
    """Listing, lookup and removal of stored recordings.

    There is no index: every call reads the upload directory.
    """

    def __init__(self, file_store: FileStore):
        self.file_store = file_store

    async def list(self) -> List[RecordingEntry]:
        try:
            entries = await self.file_store.entries()
        except OSError as e:
            logger.error(f"Failed to list recordings: {e}")
            raise InternalError("Failed to list recordings") from e

        recordings = []
        for name, stats in entries:
            changed = datetime.fromtimestamp(stats.st_ctime, tz=timezone.utc)
            recordings.append(
                (
                    changed,
                    RecordingEntry(
                        filename=name,
                        originalname=display_name(name),
                        size=stats.st_size,
                        uploaded_at=to_iso(changed),
                        url=f"{UPLOADS_URL_PREFIX}/{name}",
                    ),
                )
            )
        # Newest first
        recordings.sort(key=lambda item: item[0], reverse=True)
        return [entry for _, entry in recordings]

    async def fetch(self, filename: str) -> Path:
        try:
            path = self.file_store.resolve(filename)
        except RecordVaultError:
            logger.warning(f"Refused to serve {filename!r}")
            raise NotFound()
        if not await self.file_store.is_file(filename):
            raise NotFound()
        return path

    async def delete(self, filename: str) -> None:
        try:
            await self.file_store.remove(filename)
        except OSError as e:
            logger.error(f"Failed to delete recording {filename}: {e}")
            raise DeleteFailed() from e
        logger.info(f"Deleted recording {filename}")
