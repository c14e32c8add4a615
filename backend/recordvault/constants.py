from pathlib import Path

APP_DIR = Path(__file__).resolve().parent

UPLOAD_FIELD_NAME = "recordings"

ALLOWED_MIME_TYPES = (
    "audio/mpeg",
    "audio/wav",
    "audio/mp3",
    "audio/webm",
    "audio/amr",
    "audio/x-m4a",
)

MAX_UPLOAD_SIZE = 50 * 1024 * 1024  # 50 MiB per file
MAX_FILES_PER_UPLOAD = 10

# Bytes copied per read while streaming an upload to disk
COPY_CHUNK_SIZE = 1024 * 1024
