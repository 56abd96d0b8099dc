from __future__ import annotations


class ViewerError(Exception):
    """Base for failures that are reported to the user and never retried."""

    title = "Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.user_message = message


class DirectoryReadFailure(ViewerError):
    title = "Could not open folder"


class EncodeFailure(ViewerError):
    title = "Could not encode image"


class WriteFailure(ViewerError):
    title = "Save failed"


class TrashFailure(ViewerError):
    title = "Delete failed"


class SaveInProgress(ViewerError):
    title = "Save in progress"
