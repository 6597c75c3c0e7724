"""Upgrade projects generated by CLI v2 so they run under v3."""

from __future__ import annotations

from .orchestrator import run_upgrade
from .probe import Classification, ExecutionProbe, FileCache, NodeScriptRunner, StalenessDetector
from .results import UnitResult, UpgradeReport

__all__ = [
    "Classification",
    "ExecutionProbe",
    "FileCache",
    "NodeScriptRunner",
    "StalenessDetector",
    "UnitResult",
    "UpgradeReport",
    "run_upgrade",
]
