"""Tie a local project folder to its remote Treeline identity (treeline.json)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from . import fs
from .api import TreelineAPI
from .keychain import read_keychain

logger = logging.getLogger(__name__)

LINK_FILENAME = "treeline.json"


def link_path(project_dir: Path | str) -> Path:
    return Path(project_dir) / LINK_FILENAME


async def establish_link(
    *,
    project_type: str,
    project_dir: Path | str,
    project_id: str,
    keychain_path: Optional[Path | str],
    api_base_url: str,
    api: Optional[TreelineAPI] = None,
) -> dict:
    """Look up the remote project and (re)write treeline.json in the current schema."""
    creds = read_keychain(keychain_path)
    owned = api is None
    client = api or TreelineAPI(api_base_url, secret=creds.secret)
    try:
        remote = await client.get_project(project_type, project_id)
    finally:
        if owned:
            await client.aclose()

    link = {
        "id": str(remote.get("id") or project_id),
        "identity": remote.get("identity") or remote.get("name") or "",
        "displayName": remote.get("displayName") or remote.get("friendlyName") or "",
        "type": project_type,
    }
    fs.write_json(link_path(project_dir), link, force=True)
    logger.info("Linked %s to %s %s", project_dir, project_type, link["id"])
    return link
