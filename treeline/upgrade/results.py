"""Outcome records for upgrade units."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..models import ProjectRef

# Unit statuses
OK = "ok"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class UnitResult:
    name: str
    status: str = OK
    detail: str = ""

    @classmethod
    def ok(cls, name: str, detail: str = "") -> "UnitResult":
        return cls(name, OK, detail)

    @classmethod
    def skipped(cls, name: str, detail: str = "") -> "UnitResult":
        return cls(name, SKIPPED, detail)

    @classmethod
    def failed(cls, name: str, detail: str = "") -> "UnitResult":
        return cls(name, FAILED, detail)


@dataclass
class UpgradeReport:
    """Every unit's outcome. The upgrade itself never fails once joined."""

    project: ProjectRef
    results: list[UnitResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return True

    @property
    def failed(self) -> list[UnitResult]:
        return [r for r in self.results if r.status == FAILED]

    def get(self, name: str) -> Optional[UnitResult]:
        for r in self.results:
            if r.name == name:
                return r
        return None

    def to_dict(self) -> dict:
        return {
            "project": str(self.project.root),
            "type": self.project.type,
            "results": [{"name": r.name, "status": r.status, "detail": r.detail} for r in self.results],
        }
