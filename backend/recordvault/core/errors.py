"""Error kinds surfaced to HTTP clients.

Every error carries the status code it is rendered with and a default
message. The exception handler installed by ``create_app`` turns any of them
into ``{"success": false, "message": ...}``.
"""
from typing import Optional


class RecordVaultError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message}


class Unauthorized(RecordVaultError):
    status_code = 401
    default_message = "Login required"


class InvalidCredentials(RecordVaultError):
    status_code = 401
    default_message = "Invalid username or password"


class InvalidFileType(RecordVaultError):
    status_code = 400
    default_message = "Only audio files may be uploaded (mp3, wav, webm, amr, m4a)"


class FileTooLarge(RecordVaultError):
    status_code = 413
    default_message = "File exceeds the upload size limit"


class NoFilesProvided(RecordVaultError):
    status_code = 400
    default_message = "No files uploaded"


class TooManyFiles(RecordVaultError):
    status_code = 400
    default_message = "Too many files in one upload"


class UnexpectedFileField(RecordVaultError):
    status_code = 400
    default_message = "Unexpected file field"


class InvalidFilename(RecordVaultError):
    status_code = 400
    default_message = "Invalid filename"


class NotFound(RecordVaultError):
    status_code = 404
    default_message = "File not found"


class DeleteFailed(RecordVaultError):
    status_code = 500
    default_message = "Failed to delete recording"


class InternalError(RecordVaultError):
    status_code = 500


class SessionStoreError(Exception):
    """Raised by session backends when the underlying store fails."""
