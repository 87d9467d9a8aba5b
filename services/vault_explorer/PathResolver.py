"""Breadcrumb paths from a folder up to the vault root."""

import logging
from typing import Mapping

from pydantic import BaseModel

from shared.clients.vault.models.Folder import Folder

logger = logging.getLogger(__name__)


class Breadcrumb(BaseModel):
    """One breadcrumb entry; ``id`` is None for the vault root."""
    id: str | None
    name: str


def build_path(folder_id: str | None, folders: Mapping[str, Folder]) -> list[str]:
    """Build the ordered folder id path from the root down to ``folder_id``.

    Walks ``parent_id`` links upward until a folder has no parent or is missing from
    ``folders``. An id that is not in the map yields ``[folder_id]``. A cyclic parent
    chain is cut at the first repeated id.

    Args:
        folder_id (str | None): The folder to resolve, None for the vault root.
        folders (Mapping[str, Folder]): All folders keyed by id.

    Returns:
        list[str]: Folder ids, outermost first, ending in ``folder_id``. Empty for the root.
    """
    if folder_id is None:
        return []

    path: list[str] = []
    seen: set[str] = set()
    current_id: str | None = folder_id
    while current_id is not None:
        if current_id in seen:
            logger.warning("Cyclic parent chain at folder %s, truncating path", current_id)
            break
        seen.add(current_id)
        path.insert(0, current_id)
        folder = folders.get(current_id)
        current_id = folder.parent_id if folder is not None else None
    return path


def build_breadcrumbs(folder_id: str | None, folders: Mapping[str, Folder], root_label: str = "Primary Vault") -> list[Breadcrumb]:
    """Breadcrumbs with display names, starting with the vault root."""
    crumbs = [Breadcrumb(id=None, name=root_label)]
    for path_id in build_path(folder_id, folders):
        folder = folders.get(path_id)
        crumbs.append(Breadcrumb(id=path_id, name=folder.name if folder is not None else path_id))
    return crumbs
