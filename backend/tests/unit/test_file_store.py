import io
import pytest
from starlette.datastructures import Headers, UploadFile

from recordvault.core.errors import FileTooLarge, InvalidFilename
from recordvault.services.file_store import FileStore


def make_upload(payload: bytes, name: str = "clip.mp3") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(payload),
        filename=name,
        headers=Headers({"content-type": "audio/mpeg"}),
    )


@pytest.fixture
def store(tmp_path):
    s = FileStore(tmp_path / "uploads")
    s.ensure_exists()
    return s


def test_ensure_exists_creates_directory(tmp_path):
    store = FileStore(tmp_path / "a" / "b")
    store.ensure_exists()
    assert (tmp_path / "a" / "b").is_dir()


def test_resolve_inside_root(store):
    assert store.resolve("clip.mp3") == store.root / "clip.mp3"


@pytest.mark.parametrize("name", ["..", "../x.mp3", "sub/x.mp3", ""])
def test_resolve_rejects_escaping_names(store, name):
    with pytest.raises(InvalidFilename):
        store.resolve(name)


@pytest.mark.asyncio
async def test_save_streams_payload(store):
    payload = bytes(range(256)) * 4096  # 1 MiB, spans several reads
    payload += b"tail"
    path, size = await store.save(make_upload(payload), "clip-1.mp3", max_size=2 * 1024 * 1024)
    assert size == len(payload)
    assert path.read_bytes() == payload


@pytest.mark.asyncio
async def test_save_overwrites_existing(store):
    (store.root / "same.mp3").write_bytes(b"old contents")
    await store.save(make_upload(b"new"), "same.mp3", max_size=100)
    assert (store.root / "same.mp3").read_bytes() == b"new"


@pytest.mark.asyncio
async def test_save_too_large_leaves_nothing(store):
    with pytest.raises(FileTooLarge):
        await store.save(make_upload(b"x" * 101), "big.mp3", max_size=100)
    assert not (store.root / "big.mp3").exists()


@pytest.mark.asyncio
async def test_remove_and_discard(store):
    (store.root / "a.mp3").write_bytes(b"a")
    await store.remove("a.mp3")
    assert not (store.root / "a.mp3").exists()

    with pytest.raises(FileNotFoundError):
        await store.remove("a.mp3")
    # discard tolerates missing files
    await store.discard("a.mp3")


@pytest.mark.asyncio
async def test_entries_lists_regular_files_only(store):
    (store.root / "one.mp3").write_bytes(b"1")
    (store.root / "two.wav").write_bytes(b"22")
    (store.root / "folder").mkdir()

    entries = dict(await store.entries())
    assert set(entries) == {"one.mp3", "two.wav"}
    assert entries["two.wav"].st_size == 2


@pytest.mark.asyncio
async def test_is_file(store):
    (store.root / "one.mp3").write_bytes(b"1")
    (store.root / "folder").mkdir()
    assert await store.is_file("one.mp3")
    assert not await store.is_file("folder")
    assert not await store.is_file("missing.mp3")
