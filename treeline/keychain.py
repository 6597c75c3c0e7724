"""Read the Treeline keychain file written at login."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import fs
from .config import DEFAULT_KEYCHAIN_PATH
from .errors import FileSystemError, NotAuthenticated, TreelineError


@dataclass(frozen=True)
class Credentials:
    username: str
    secret: str


def read_keychain(path: Optional[Path | str] = None) -> Credentials:
    keychain_path = Path(path).expanduser() if path else DEFAULT_KEYCHAIN_PATH
    if not fs.exists(keychain_path):
        raise NotAuthenticated()
    try:
        data = fs.read_json(keychain_path)
    except FileSystemError as exc:
        raise TreelineError(f"Keychain is unreadable: {exc}") from exc
    if not isinstance(data, dict) or not data.get("username") or not data.get("secret"):
        raise TreelineError(f"Keychain at {keychain_path} is missing username or secret")
    return Credentials(username=str(data["username"]), secret=str(data["secret"]))
