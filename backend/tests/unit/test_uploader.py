import io
import pytest
from datetime import datetime, timezone
from unittest.mock import patch
from starlette.datastructures import FormData, Headers, UploadFile

from recordvault.constants import ALLOWED_MIME_TYPES, MAX_FILES_PER_UPLOAD, MAX_UPLOAD_SIZE
from recordvault.core.errors import (
    FileTooLarge,
    InternalError,
    InvalidFileType,
    NoFilesProvided,
    TooManyFiles,
    UnexpectedFileField,
)
from recordvault.services.file_store import FileStore
from recordvault.services.uploader import UploadHandler

MOMENT = datetime(2024, 3, 1, 10, 0, 0, tzinfo=timezone.utc)


def make_upload(name: str, payload: bytes = b"audio", mimetype: str = "audio/mpeg") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(payload), filename=name, headers=Headers({"content-type": mimetype})
    )


@pytest.fixture
def file_store(tmp_path):
    store = FileStore(tmp_path / "uploads")
    store.ensure_exists()
    return store


@pytest.fixture
def handler(file_store):
    return UploadHandler(file_store, clock=lambda: MOMENT, max_size=64, max_files=3)


def test_defaults():
    assert MAX_UPLOAD_SIZE == 50 * 1024 * 1024
    assert MAX_FILES_PER_UPLOAD == 10
    assert set(ALLOWED_MIME_TYPES) == {
        "audio/mpeg",
        "audio/wav",
        "audio/mp3",
        "audio/webm",
        "audio/amr",
        "audio/x-m4a",
    }


def test_collect_parts_ignores_text_fields(handler):
    upload = make_upload("a.mp3")
    form = FormData([("title", "standup"), ("recordings", upload)])
    assert handler.collect_parts(form) == [upload]


def test_collect_parts_rejects_other_field(handler):
    form = FormData([("audio", make_upload("a.mp3"))])
    with pytest.raises(UnexpectedFileField):
        handler.collect_parts(form)


def test_collect_parts_limits_count(handler):
    form = FormData([("recordings", make_upload(f"{i}.mp3")) for i in range(4)])
    with pytest.raises(TooManyFiles):
        handler.collect_parts(form)


@pytest.mark.asyncio
async def test_store_without_parts(handler):
    with pytest.raises(NoFilesProvided):
        await handler.store([])


@pytest.mark.asyncio
@pytest.mark.parametrize("mimetype", ALLOWED_MIME_TYPES)
async def test_store_accepts_allowed_types(handler, file_store, mimetype):
    stored = await handler.store([make_upload("take.bin", b"12345", mimetype)])
    assert stored[0].mimetype == mimetype
    assert stored[0].filename == "take-20240301100000.bin"
    assert stored[0].size == 5
    assert stored[0].path == file_store.root / "take-20240301100000.bin"


@pytest.mark.asyncio
@pytest.mark.parametrize("mimetype", ["video/mp4", "audio/ogg", "application/octet-stream", ""])
async def test_store_rejects_other_types(handler, file_store, mimetype):
    with pytest.raises(InvalidFileType):
        await handler.store([make_upload("a.mp3"), make_upload("b.mp3", mimetype=mimetype)])
    assert list(file_store.root.iterdir()) == []


@pytest.mark.asyncio
async def test_store_rolls_back_on_oversized_part(handler, file_store):
    parts = [make_upload("a.mp3"), make_upload("b.mp3"), make_upload("c.mp3", b"x" * 65)]
    with pytest.raises(FileTooLarge):
        await handler.store(parts)
    assert list(file_store.root.iterdir()) == []


@pytest.mark.asyncio
async def test_store_translates_write_errors(handler, file_store):
    with patch("aiofiles.open", side_effect=OSError("read-only filesystem")):
        with pytest.raises(InternalError):
            await handler.store([make_upload("a.mp3")])


@pytest.mark.asyncio
async def test_store_keeps_original_name(handler):
    stored = await handler.store([make_upload("测试录音.m4a", mimetype="audio/x-m4a")])
    assert stored[0].originalname == "测试录音.m4a"
    assert stored[0].filename == "测试录音-20240301100000.m4a"


@pytest.mark.asyncio
async def test_store_stamps_batch_with_single_clock_reading(file_store):
    ticks = iter(datetime(2024, 3, 1, 10, 0, second, tzinfo=timezone.utc) for second in range(59, 0, -1))
    handler = UploadHandler(file_store, clock=lambda: next(ticks), max_size=64, max_files=3)

    stored = await handler.store([make_upload("a.mp3"), make_upload("b.mp3"), make_upload("c.mp3")])

    assert [item.filename for item in stored] == [
        "a-20240301100059.mp3",
        "b-20240301100059.mp3",
        "c-20240301100059.mp3",
    ]
    assert {item.uploaded_at for item in stored} == {datetime(2024, 3, 1, 10, 0, 59, tzinfo=timezone.utc)}
