"""Export remote machinepacks to local folders."""

from __future__ import annotations

from .destination import check_destination, default_destination
from .materializer import generate_local_dependency, generate_local_pack, materialize
from .pipeline import ExportResult, export_pack
from .resolver import resolve_pack

__all__ = [
    "ExportResult",
    "check_destination",
    "default_destination",
    "export_pack",
    "generate_local_dependency",
    "generate_local_pack",
    "materialize",
    "resolve_pack",
]
