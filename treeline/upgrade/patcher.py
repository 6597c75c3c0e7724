"""Replace legacy response files with the bundled v3 templates."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from .. import fs
from ..errors import FileSystemError, PatchFailure
from ..models import ProjectRef
from .probe import Classification, FileCache, PatchTarget, ScriptRunner
from .results import UnitResult

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


def template_path(target: PatchTarget) -> Path:
    return TEMPLATES_DIR / target.template


def patch_file(root: Path, target: PatchTarget, cache: FileCache) -> Path:
    """Copy the template over the target and drop any cached copy of it."""
    destination = Path(root) / target.relpath
    try:
        fs.copy(template_path(target), destination)
    except FileSystemError as exc:
        raise PatchFailure(destination, str(exc)) from exc
    cache.invalidate(destination)
    return destination


async def remediate_file(
    project: ProjectRef,
    target: PatchTarget,
    cache: FileCache,
    runner: Optional[ScriptRunner] = None,
) -> UnitResult:
    """Probe one generated file and patch it if it is the legacy template."""
    if project.is_machinepack:
        return UnitResult.skipped(target.name, "not an app")

    detector = target.detector
    if runner is not None and hasattr(detector, "with_runner"):
        detector = detector.with_runner(runner)

    verdict = await detector.classify(project.root, cache)
    if verdict is not Classification.NEEDS_PATCH:
        return UnitResult.skipped(target.name, verdict.value)

    logger.info("Upgrade from CLI V2: Patching %s file.", target.relpath)
    try:
        await asyncio.to_thread(patch_file, project.root, target, cache)
    except PatchFailure as exc:
        logger.warning(
            "Upgrade from CLI V2: Could not patch file.  Please contact support for more info.  Continuing... (%s)",
            exc,
        )
        return UnitResult.failed(target.name, str(exc))
    return UnitResult.ok(target.name, f"patched {target.relpath}")
