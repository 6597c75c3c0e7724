"""Filesystem primitives used by export and upgrade.

Every failure surfaces as FileSystemError (or AlreadyExists for refused
overwrites) so callers can tell disk trouble apart from transport errors.
"""

from __future__ import annotations

import json
import os
import shutil
from pathlib import Path
from typing import Any

from .errors import AlreadyExists, FileSystemError


def exists(path: Path | str) -> bool:
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except NotADirectoryError:
        return False
    except OSError as exc:
        raise FileSystemError(path, f"Cannot stat ({exc.strerror})") from exc
    return True


def copy(source: Path | str, destination: Path | str) -> None:
    """Copy a single file over `destination`, creating parent folders."""
    try:
        Path(destination).parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, destination)
    except OSError as exc:
        raise FileSystemError(destination, f"Copy from {source} failed ({exc.strerror})") from exc


def rmrf(path: Path | str) -> None:
    """Remove a file or folder tree. A missing path is not an error."""
    p = Path(path)
    try:
        if p.is_dir() and not p.is_symlink():
            shutil.rmtree(p)
        else:
            p.unlink()
    except FileNotFoundError:
        return
    except OSError as exc:
        raise FileSystemError(p, f"Remove failed ({exc.strerror})") from exc


def read_json(path: Path | str) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as exc:
        raise FileSystemError(path, "File does not exist") from exc
    except json.JSONDecodeError as exc:
        raise FileSystemError(path, f"Invalid JSON ({exc.msg})") from exc
    except OSError as exc:
        raise FileSystemError(path, f"Read failed ({exc.strerror})") from exc


def write_text(path: Path | str, text: str, force: bool = False) -> None:
    p = Path(path)
    if not force and exists(p):
        raise AlreadyExists(p)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise FileSystemError(p, f"Write failed ({exc.strerror})") from exc


def write_json(path: Path | str, data: Any, force: bool = False) -> None:
    write_text(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n", force=force)
