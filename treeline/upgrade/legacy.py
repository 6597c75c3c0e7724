"""Remove v2 scaffolding that v3 no longer uses.

- api/machines/                      (apps only)
- node_modules/sails-hook-machines/  (apps only; also dropped from package.json)
- node_modules/postinstall.js        (every project type)
"""

from __future__ import annotations

import asyncio
import logging

from .. import fs
from ..errors import TreelineError
from ..models import ProjectRef
from .results import UnitResult

logger = logging.getLogger(__name__)

API_MACHINES_DIR = ("api", "machines")
HOOK_NAME = "sails-hook-machines"
POSTINSTALL = ("node_modules", "postinstall.js")
MANIFEST = "package.json"


def _remove_api_machines(project: ProjectRef) -> UnitResult:
    name = "removeApiMachinesFolder"
    path = project.root.joinpath(*API_MACHINES_DIR)
    if not fs.exists(path):
        return UnitResult.skipped(name, "not present")
    logger.info("Upgrade from CLI V2: Removing api/machines folder")
    fs.rmrf(path)
    return UnitResult.ok(name, "removed api/machines")


def drop_hook_dependency(manifest_path) -> bool:
    """Remove the hook from package.json dependencies. Returns True if the file was rewritten."""
    manifest = fs.read_json(manifest_path)
    if not isinstance(manifest, dict):
        raise TreelineError(f"{manifest_path} does not hold a JSON object")
    deps = manifest.get("dependencies")
    if deps is None:
        return False
    if not isinstance(deps, dict):
        raise TreelineError(f"dependencies in {manifest_path} is not an object")
    if HOOK_NAME not in deps:
        return False
    del deps[HOOK_NAME]
    fs.write_json(manifest_path, manifest, force=True)
    return True


def _remove_sails_hook_machines(project: ProjectRef) -> UnitResult:
    name = "removeSailsHookMachines"
    hook_path = project.root / "node_modules" / HOOK_NAME
    if not fs.exists(hook_path):
        return UnitResult.skipped(name, "not present")
    logger.info("Upgrade from CLI V2: Removing %s hook", HOOK_NAME)
    # The manifest must stop referencing the hook before the hook goes away.
    rewritten = drop_hook_dependency(project.root / MANIFEST)
    fs.rmrf(hook_path)
    detail = f"removed {HOOK_NAME}" + (" and its package.json entry" if rewritten else "")
    return UnitResult.ok(name, detail)


def _remove_postinstall(project: ProjectRef) -> UnitResult:
    name = "removePostinstall"
    path = project.root.joinpath(*POSTINSTALL)
    if not fs.exists(path):
        return UnitResult.skipped(name, "not present")
    logger.info("Upgrade from CLI V2: Removing postinstall.js script")
    fs.rmrf(path)
    return UnitResult.ok(name, "removed node_modules/postinstall.js")


async def _run(name: str, fn, project: ProjectRef) -> UnitResult:
    try:
        return await asyncio.to_thread(fn, project)
    except TreelineError as exc:
        logger.warning("Upgrade from CLI V2: %s did not complete: %s", name, exc)
        return UnitResult.failed(name, str(exc))


async def remove_api_machines_folder(project: ProjectRef) -> UnitResult:
    if project.is_machinepack:
        return UnitResult.skipped("removeApiMachinesFolder", "not an app")
    return await _run("removeApiMachinesFolder", _remove_api_machines, project)


async def remove_sails_hook_machines(project: ProjectRef) -> UnitResult:
    if project.is_machinepack:
        return UnitResult.skipped("removeSailsHookMachines", "not an app")
    return await _run("removeSailsHookMachines", _remove_sails_hook_machines, project)


async def remove_postinstall(project: ProjectRef) -> UnitResult:
    return await _run("removePostinstall", _remove_postinstall, project)
