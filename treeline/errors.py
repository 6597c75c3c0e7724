"""Named failure outcomes shared by the export and upgrade paths."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class TreelineError(Exception):
    """Base error; `code` names the outcome for exit-code mapping."""

    def __init__(self, message: str, code: str = "error"):
        super().__init__(message)
        self.code = code


class TransportError(TreelineError):
    """Remote API unreachable or rejected the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, code="transport_error")
        self.status_code = status_code


class NotAuthenticated(TreelineError):
    def __init__(self, message: str = "This computer is not logged in to Treeline."):
        super().__init__(message, code="not_logged_in")


class AlreadyExists(TreelineError):
    """Something already occupies a path we were asked to write."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        super().__init__(f"A file or folder already exists at {self.path}", code="already_exists")


class FeatureNotImplemented(TreelineError):
    def __init__(self, message: str):
        super().__init__(message, code="not_implemented")


class FileSystemError(TreelineError):
    def __init__(self, path: Path | str, message: str):
        self.path = Path(path)
        super().__init__(f"{message}: {self.path}", code="filesystem_error")


class PatchFailure(TreelineError):
    """A stale generated file could not be overwritten with its template."""

    def __init__(self, path: Path | str, reason: str = ""):
        self.path = Path(path)
        msg = f"Could not patch {self.path}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg, code="patch_failed")
