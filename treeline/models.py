"""Shared records for projects and remote packs."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

APP = "app"
MACHINEPACK = "machinepack"
PROJECT_TYPES = (APP, MACHINEPACK)


@dataclass
class ProjectRef:
    """A local Treeline project targeted by an upgrade."""

    root: Path
    type: str = APP

    def __post_init__(self):
        self.root = Path(self.root).resolve()
        if self.type not in PROJECT_TYPES:
            raise ValueError(f"Unknown project type {self.type!r} (expected one of {PROJECT_TYPES})")

    @property
    def is_machinepack(self) -> bool:
        return self.type == MACHINEPACK


@dataclass(frozen=True)
class PackSummary:
    id: str
    display_name: str

    @classmethod
    def from_dict(cls, d: dict) -> "PackSummary":
        return cls(id=str(d.get("id") or d.get("_id") or ""), display_name=d.get("displayName") or d.get("friendlyName") or "")


@dataclass
class PackData:
    """One record of an export payload: the chosen pack or one of its dependencies."""

    id: str
    is_main: bool
    name: str
    friendly_name: str = ""
    version: str = "0.0.0"
    description: str = ""
    machines: list = field(default_factory=list)
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "PackData":
        pid = str(d.get("_id") or d.get("id") or "")
        friendly = d.get("friendlyName") or d.get("displayName") or ""
        name = d.get("name") or d.get("identity") or friendly.lower().replace(" ", "-") or pid
        return cls(
            id=pid,
            is_main=bool(d.get("isMain", False)),
            name=name,
            friendly_name=friendly or name,
            version=str(d.get("version") or "0.0.0"),
            description=d.get("description") or "",
            machines=list(d.get("machines") or []),
            raw=dict(d),
        )
