"""Re-link projects whose treeline.json still uses the v2 schema."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional

import httpx

from .. import fs
from ..errors import TreelineError
from ..links import establish_link, link_path
from ..models import ProjectRef
from .results import UnitResult

logger = logging.getLogger(__name__)

LEGACY_MARKER = "fullName"

Linker = Callable[..., Awaitable[dict]]


async def migrate_link(
    project: ProjectRef,
    *,
    api_base_url: str,
    keychain_path: Optional[Path | str] = None,
    linker: Optional[Linker] = None,
) -> UnitResult:
    name = "updateLinkFile"
    try:
        link = await asyncio.to_thread(fs.read_json, link_path(project.root))
    except TreelineError as exc:
        logger.debug("No usable link file in %s: %s", project.root, exc)
        return UnitResult.skipped(name, "no readable treeline.json")

    if not isinstance(link, dict) or LEGACY_MARKER not in link:
        return UnitResult.skipped(name, "link file is current")

    logger.info("Upgrade from CLI V2: Updating treeline.json link file")
    try:
        await (linker or establish_link)(
            project_type=project.type,
            project_dir=project.root,
            project_id=str(link.get("id", "")),
            keychain_path=keychain_path,
            api_base_url=api_base_url,
        )
    except (TreelineError, httpx.HTTPError, OSError) as exc:
        logger.warning("Upgrade from CLI V2: Could not re-link project, continuing: %s", exc)
        return UnitResult.failed(name, str(exc))
    return UnitResult.ok(name, "re-linked with current schema")
