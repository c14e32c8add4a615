from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Sequence

from starlette.datastructures import FormData, UploadFile

from recordvault.constants import ALLOWED_MIME_TYPES, UPLOAD_FIELD_NAME
from recordvault.core.errors import (
    InvalidFileType,
    NoFilesProvided,
    RecordVaultError,
    InternalError,
    TooManyFiles,
    UnexpectedFileField,
)
from recordvault.core.filenames import derive_filename
from recordvault.core.logger import get_logger
from recordvault.services.file_store import FileStore

logger = get_logger(__name__)


@dataclass
class StoredRecording:
    filename: str
    originalname: str
    size: int
    mimetype: str
    path: Path
    uploaded_at: datetime


class UploadHandler:
    """Validates multipart file parts and writes them to the file store.

    A batch is all-or-nothing: every part is type checked before anything is
    written, and if any write fails the files already stored for the batch
    are removed again.
    """

    def __init__(
        self,
        file_store: FileStore,
        clock: Callable[[], datetime],
        max_size: int,
        max_files: int,
        field_name: str = UPLOAD_FIELD_NAME,
        allowed_types: Sequence[str] = ALLOWED_MIME_TYPES,
    ):
        self.file_store = file_store
        self.clock = clock
        self.max_size = max_size
        self.max_files = max_files
        self.field_name = field_name
        self.allowed_types = tuple(allowed_types)

    def collect_parts(self, form: FormData) -> List[UploadFile]:
        """Pick the file parts out of a parsed form."""
        parts = []
        for key, value in form.multi_items():
            if not isinstance(value, UploadFile):
                continue
            if key != self.field_name:
                raise UnexpectedFileField(f"Unexpected file field: {key}")
            parts.append(value)
        if len(parts) > self.max_files:
            raise TooManyFiles(f"At most {self.max_files} files per upload")
        return parts

    def check_type(self, part: UploadFile) -> None:
        if part.content_type not in self.allowed_types:
            logger.warning(f"Rejected upload {part.filename!r} with type {part.content_type!r}")
            raise InvalidFileType()

    async def store(self, parts: List[UploadFile]) -> List[StoredRecording]:
        if not parts:
            raise NoFilesProvided()

        for part in parts:
            self.check_type(part)

        # One reading per batch so every part shares the same stamp
        received_at = self.clock()
        stored: List[StoredRecording] = []
        try:
            for part in parts:
                original = part.filename or ""
                filename = derive_filename(original, received_at)
                path, size = await self.file_store.save(part, filename, self.max_size)
                stored.append(
                    StoredRecording(
                        filename=filename,
                        originalname=original,
                        size=size,
                        mimetype=part.content_type,
                        path=path,
                        uploaded_at=received_at,
                    )
                )
                logger.info(f"Stored upload {original!r} as {filename} ({size} bytes)")
        except (RecordVaultError, OSError) as e:
            for item in stored:
                await self.file_store.discard(item.filename)
            if stored:
                logger.warning(f"Upload batch failed, removed {len(stored)} stored file(s)")
            if isinstance(e, OSError):
                logger.error(f"Failed to write upload: {e}")
                raise InternalError("Failed to store uploaded file") from e
            raise
        return stored
