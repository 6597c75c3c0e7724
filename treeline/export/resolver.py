"""Pick the remote machinepack to export."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from ..api import TreelineAPI
from ..errors import FeatureNotImplemented, TreelineError
from ..keychain import Credentials
from ..models import PackSummary

logger = logging.getLogger(__name__)

SELECT_MESSAGE = "Which machinepack would you like to export?"

Selector = Callable[[list[dict], str], Any]


def build_choices(packs: list[PackSummary]) -> list[dict]:
    return [{"name": p.display_name, "value": p.id} for p in packs]


async def resolve_pack(
    api: TreelineAPI,
    credentials: Credentials,
    identity: Optional[str] = None,
    *,
    select: Selector,
) -> tuple[list[PackSummary], PackSummary]:
    """List the account's packs and return (all packs, the chosen one)."""
    packs = await api.list_packs(credentials.username)

    if identity:
        raise FeatureNotImplemented(
            f"Exporting {identity!r} without a prompt is not supported yet; omit the identity to choose from a list."
        )

    chosen_id = select(build_choices(packs), SELECT_MESSAGE)
    for pack in packs:
        if pack.id == chosen_id:
            logger.debug("Selected machinepack %s (%s)", pack.display_name, pack.id)
            return packs, pack
    raise TreelineError(f"Selected machinepack {chosen_id!r} is not in the list")
