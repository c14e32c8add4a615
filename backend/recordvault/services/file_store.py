import os
import stat
from pathlib import Path
from typing import List, Tuple

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from recordvault.constants import COPY_CHUNK_SIZE
from recordvault.core.errors import FileTooLarge, InvalidFilename
from recordvault.core.filenames import validate_stored_name
from recordvault.core.logger import get_logger

logger = get_logger(__name__)


class FileStore:
    """The upload directory. Directory entries are the only record of a file."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def ensure_exists(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def resolve(self, filename: str) -> Path:
        """Map a stored filename to its path, refusing anything outside root."""
        validate_stored_name(filename)
        path = self.root / filename
        if path.resolve().parent != self.root.resolve():
            raise InvalidFilename(f"Invalid filename: {filename!r}")
        return path

    async def save(self, upload: UploadFile, filename: str, max_size: int) -> Tuple[Path, int]:
        """Stream ``upload`` to ``filename``; returns the path and byte count.

        Existing files with the same name are overwritten. When the stream
        grows past ``max_size`` the partial file is removed and
        ``FileTooLarge`` is raised.
        """
        path = self.resolve(filename)
        written = 0
        try:
            async with aiofiles.open(path, "wb") as out:
                while True:
                    chunk = await upload.read(COPY_CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > max_size:
                        raise FileTooLarge(
                            f"{upload.filename} exceeds the upload size limit"
                        )
                    await out.write(chunk)
        except Exception:
            await self.discard(filename)
            raise
        return path, written

    async def discard(self, filename: str) -> None:
        """Remove a file if it exists."""
        path = self.resolve(filename)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass

    async def remove(self, filename: str) -> None:
        await aiofiles.os.remove(self.resolve(filename))

    async def is_file(self, filename: str) -> bool:
        return await aiofiles.os.path.isfile(self.resolve(filename))

    async def entries(self) -> List[Tuple[str, os.stat_result]]:
        """Regular files in the store with their stat results."""
        result = []
        for name in await aiofiles.os.listdir(self.root):
            try:
                stats = await aiofiles.os.stat(self.root / name)
            except FileNotFoundError:
                # Removed between listdir and stat
                logger.debug(f"Skipping vanished entry {name}")
                continue
            # Directories and other non-regular entries are not recordings
            if not stat.S_ISREG(stats.st_mode):
                continue
            result.append((name, stats))
        return result

