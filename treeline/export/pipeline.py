"""Export a Treeline machinepack into a folder of code on this computer.

keychain → list packs → choose → destination check → fetch → write.
Each step gates the next; the first error aborts the export.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..api import TreelineAPI
from ..config import CliConfig
from ..keychain import Credentials, read_keychain
from ..models import PackSummary
from .destination import check_destination, default_destination
from .materializer import materialize
from .resolver import Selector, resolve_pack

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    pack: PackSummary
    destination: Path
    dependencies: list[Path] = field(default_factory=list)


def open_api(config: CliConfig, credentials: Credentials) -> TreelineAPI:
    return TreelineAPI(config.api.base_url, secret=credentials.secret, timeout=config.api.timeout)


async def export_pack(
    *,
    config: CliConfig,
    select: Selector,
    identity: Optional[str] = None,
    destination: Optional[Path | str] = None,
    force: bool = False,
    api: Optional[TreelineAPI] = None,
) -> ExportResult:
    credentials = read_keychain(config.keychain.path)

    owned = api is None
    client = api or open_api(config, credentials)
    try:
        _, chosen = await resolve_pack(client, credentials, identity, select=select)

        target = Path(destination).expanduser().resolve() if destination else default_destination(chosen)
        check_destination(target, force)

        _, written = await materialize(client, chosen.id, target, force)
    finally:
        if owned:
            await client.aclose()

    logger.info("Exported %s to %s with %d dependencies", chosen.display_name, target, len(written))
    return ExportResult(pack=chosen, destination=target, dependencies=written)
