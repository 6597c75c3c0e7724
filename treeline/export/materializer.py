"""Write an exported machinepack and its dependencies to disk.

Layout:
    <destination>/package.json, index.js, README.md, machines/<identity>.js
    <destination>/node_modules/<dependency>/...   (same tree per dependency)

The main pack is written first; dependencies assume its folder exists.
Pack names and machine identities come from the payload and must resolve
inside their parent folder.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from .. import fs
from ..api import TreelineAPI
from ..errors import AlreadyExists, TreelineError
from ..models import PackData

logger = logging.getLogger(__name__)

INDEX_JS = """// This is a boilerplate file which should not need to be changed.
module.exports = require('machine').pack({
  pkg: require('./package.json'),
  dir: __dirname
});
"""


def split_pack_data(records: list[PackData]) -> tuple[PackData, list[PackData]]:
    """Return (main pack, dependencies). Exactly one record must be main."""
    mains = [r for r in records if r.is_main]
    if len(mains) != 1:
        raise TreelineError(f"Export payload has {len(mains)} main pack(s), expected exactly one")
    return mains[0], [r for r in records if not r.is_main]


def _machine_identity(machine: dict) -> str:
    ident = machine.get("identity") or machine.get("name") or machine.get("friendlyName") or ""
    return ident.strip().lower().replace(" ", "-")


def contained_path(base: Path, *parts: str) -> Path:
    """Join `parts` onto `base`, refusing anything that resolves outside it."""
    target = Path(base).joinpath(*parts)
    root = Path(base).resolve()
    if root not in target.resolve().parents:
        raise TreelineError(f"Refusing to write {target}: it is outside {base}")
    return target


def render_machine(machine: dict) -> str:
    """Render one machine definition as a CommonJS module."""
    lines = ["module.exports = {", ""]
    for key in ("friendlyName", "description", "extendedDescription", "sideEffects", "cacheable", "sync"):
        if key in machine:
            lines.append(f"  {key}: {json.dumps(machine[key])},")
    for key in ("inputs", "exits"):
        body = json.dumps(machine.get(key) or {}, indent=2).replace("\n", "\n  ")
        lines.append(f"  {key}: {body},")
    fn = machine.get("fn") or "return exits.success();"
    fn_body = "\n".join("    " + line if line else "" for line in fn.splitlines())
    lines += ["", "  fn: function (inputs, exits) {", fn_body, "  },", "", "};", ""]
    return "\n".join(lines)


def package_json(pack: PackData, dependencies: list[PackData]) -> dict:
    return {
        "name": pack.name,
        "version": pack.version,
        "description": pack.description,
        "main": "index.js",
        "keywords": [pack.friendly_name, "machines", "machinepack"],
        "dependencies": {
            "machine": "^12.0.0",
            **{d.name: f"^{d.version}" for d in dependencies},
        },
        "machinepack": {
            "friendlyName": pack.friendly_name,
            "machines": [_machine_identity(m) for m in pack.machines],
            "treelineId": pack.id,
            "dependencies": [d.id for d in dependencies],
        },
    }


def _write_pack_tree(root: Path, pack: PackData, dependencies: list[PackData], force: bool) -> None:
    machines = []
    for machine in pack.machines:
        ident = _machine_identity(machine)
        if not ident:
            logger.warning("Skipping unnamed machine in %s", pack.name)
            continue
        machines.append((contained_path(root / "machines", f"{ident}.js"), machine))

    fs.write_json(root / "package.json", package_json(pack, dependencies), force=force)
    fs.write_text(root / "index.js", INDEX_JS, force=force)
    readme = f"# {pack.friendly_name}\n\n{pack.description}\n".rstrip() + "\n"
    fs.write_text(root / "README.md", readme, force=force)
    for path, machine in machines:
        fs.write_text(path, render_machine(machine), force=force)


def generate_local_pack(destination: Path, pack: PackData, dependencies: list[PackData], force: bool = False) -> Path:
    """Write the main pack at `destination`."""
    destination = Path(destination)
    _write_pack_tree(destination, pack, dependencies, force)
    logger.info("Wrote %s (%d machines) to %s", pack.name, len(pack.machines), destination)
    return destination


def dependency_path(destination: Path, pack: PackData) -> Path:
    return contained_path(Path(destination) / "node_modules", pack.name)


def generate_local_dependency(destination: Path, pack: PackData, force: bool = False) -> Path:
    """Write one dependency under `<destination>/node_modules/`."""
    target = dependency_path(destination, pack)
    if fs.exists(target) and not force:
        raise AlreadyExists(target)
    _write_pack_tree(target, pack, [], force)
    logger.info("Wrote dependency %s to %s", pack.name, target)
    return target


async def write_pack_set(destination: Path, main: PackData, dependencies: list[PackData], force: bool = False) -> list[Path]:
    """Main pack first, then every dependency concurrently; the first failure is raised."""
    for dep in dependencies:
        dependency_path(destination, dep)
    await asyncio.to_thread(generate_local_pack, destination, main, dependencies, force)
    if not dependencies:
        return []
    return list(
        await asyncio.gather(
            *(asyncio.to_thread(generate_local_dependency, destination, dep, force) for dep in dependencies)
        )
    )


async def materialize(api: TreelineAPI, pack_id: str, destination: Path, force: bool = False) -> tuple[PackData, list[Path]]:
    """Fetch the pack set for `pack_id` and write it under `destination`."""
    records = await api.fetch_pack(pack_id)
    main, dependencies = split_pack_data(records)
    written = await write_pack_set(destination, main, dependencies, force)
    return main, written
