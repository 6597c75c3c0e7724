"""Upgrade a CLI v2 project for v3: all remediations run at once, none can fail the run."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from ..models import ProjectRef
from .legacy import remove_api_machines_folder, remove_postinstall, remove_sails_hook_machines
from .links import Linker, migrate_link
from .patcher import remediate_file
from .probe import PATCH_TARGETS, FileCache, ScriptRunner
from .results import UnitResult, UpgradeReport

logger = logging.getLogger(__name__)

UNIT_NAMES = (
    *(t.name for t in PATCH_TARGETS),
    "removeApiMachinesFolder",
    "removeSailsHookMachines",
    "removePostinstall",
    "updateLinkFile",
)


async def run_upgrade(
    project: ProjectRef,
    *,
    api_base_url: str,
    keychain_path: Optional[Path | str] = None,
    runner: Optional[ScriptRunner] = None,
    linker: Optional[Linker] = None,
    cache: Optional[FileCache] = None,
) -> UpgradeReport:
    cache = cache or FileCache()
    cache.clear()

    units = [
        *(remediate_file(project, target, cache, runner) for target in PATCH_TARGETS),
        remove_api_machines_folder(project),
        remove_sails_hook_machines(project),
        remove_postinstall(project),
        migrate_link(project, api_base_url=api_base_url, keychain_path=keychain_path, linker=linker),
    ]
    outcomes = await asyncio.gather(*units, return_exceptions=True)

    report = UpgradeReport(project=project)
    for name, outcome in zip(UNIT_NAMES, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning("Upgrade from CLI V2: %s failed unexpectedly: %s", name, outcome)
            outcome = UnitResult.failed(name, f"{type(outcome).__name__}: {outcome}")
        report.results.append(outcome)

    logger.info(
        "Upgrade of %s finished: %d unit(s), %d failed",
        project.root, len(report.results), len(report.failed),
    )
    return report
