import re
from datetime import datetime, timezone
from typing import Tuple

from recordvault.core.errors import InvalidFilename

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

_RECORDING_PREFIX = re.compile(r"^recording-\d+-\d+")


def repair_filename_encoding(name: str) -> str:
    """Recover a UTF-8 filename that was decoded one byte per character.

    Multipart clients send the filename as raw UTF-8 bytes, and some parsers
    decode them as Latin-1, so ``测试录音.m4a`` arrives as ``æµ\\x8bè¯\\x95...``.
    Re-encoding such text as Latin-1 gives back the original bytes, which are
    then decoded as UTF-8.

    Input: any ``str``. Output: the repaired text, or the input unchanged when
    it cannot be Latin-1 mojibake (it holds characters above U+00FF, or its
    Latin-1 bytes are not valid UTF-8). Plain ASCII is returned unchanged.
    """
    try:
        return name.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return name


def strip_directories(name: str) -> str:
    """Keep only the last path component of a client supplied name."""
    return re.split(r"[\\/]", name)[-1]


def split_extension(name: str) -> Tuple[str, str]:
    """Split ``name`` into base and extension.

    The extension starts at the last dot; a single leading dot (``.bashrc``)
    does not start an extension, and a name made only of dots (``..``) has
    none.
    """
    index = name.rfind(".")
    if index <= 0 or not name.strip("."):
        return name, ""
    return name[:index], name[index:]


def format_timestamp(moment: datetime) -> str:
    """Format ``moment`` in UTC as ``YYYYMMDDHHmmss``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def derive_filename(original_name: str, moment: datetime) -> str:
    """Build the stored name ``{base}-{timestamp}{ext}`` for an upload."""
    name = strip_directories(repair_filename_encoding(original_name))
    base, ext = split_extension(name)
    return f"{base}-{format_timestamp(moment)}{ext}"


def validate_stored_name(filename: str) -> str:
    """Reject names that are not a single path component."""
    if (
        not filename
        or filename in (".", "..")
        or "/" in filename
        or "\\" in filename
        or "\x00" in filename
    ):
        raise InvalidFilename(f"Invalid filename: {filename!r}")
    return filename


def display_name(filename: str) -> str:
    # recording-<ts>-<n>.webm -> recording.webm
    return _RECORDING_PREFIX.sub("recording", filename, count=1)


def to_iso(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
