"""Refuse to export over an existing path unless forced."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .. import fs
from ..errors import AlreadyExists
from ..models import PackSummary


def default_destination(pack: PackSummary, cwd: Optional[Path] = None) -> Path:
    return (cwd or Path.cwd()) / pack.display_name.lower()


def check_destination(path: Path, force: bool = False) -> None:
    if fs.exists(path) and not force:
        raise AlreadyExists(path)
