"""Turns the vault collections into the ordered item list.

Steps, in order: scope to the current folder → quick-access filter → search → sort.
Every step is a pure function of its inputs and the evaluation time ``now``.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Mapping

from pydantic import BaseModel

from shared.clients.vault.models.Document import Document
from shared.clients.vault.models.Folder import Folder
from shared.helper.HelperConfig import HelperConfig
from services.vault_explorer.FolderTreeBuilder import effective_parent_id
from services.vault_explorer.ItemProjector import project_document, project_folder
from services.vault_explorer.models.ExplorerItem import ExplorerItem

RECENT_WINDOW_DAYS = 7
MOST_CITED_LIMIT = 5


class SortField(str, Enum):
    NAME = "name"
    SECURITY = "security"
    UPDATED_AT = "updatedAt"
    SIZE = "size"
    RELEVANCE_SCORE = "relevanceScore"


class QuickAccessFilter(str, Enum):
    STARRED = "starred"
    RECENT = "recent"


class QuickAccessScope(str, Enum):
    FOLDER = "folder"
    VAULT = "vault"


# fields whose natural (sort_ascending=False) direction is descending
_NATURAL_DESCENDING = {SortField.UPDATED_AT, SortField.SIZE, SortField.RELEVANCE_SCORE}


class ListQuery(BaseModel):
    current_folder_id: str | None = None
    quick_access: QuickAccessFilter | None = None
    search_query: str = ""
    sort_field: SortField = SortField.UPDATED_AT
    sort_ascending: bool = False


class ListResult(BaseModel):
    items: list[ExplorerItem]
    most_cited: list[ExplorerItem]
    total_count: int
    starred_count: int
    recent_count: int


##########################################
################ STEPS ###################
##########################################

def scope_items(
    documents: Mapping[str, Document],
    folders: Mapping[str, Folder],
    current_folder_id: str | None,
    now: datetime,
    star_overrides: Mapping[str, bool] | None = None,
) -> list[ExplorerItem]:
    """
    Sub-folders of the current folder followed by its documents, in collection order.

    Items whose parent folder is missing are listed at the vault root, as in the tree.
    """
    star_overrides = star_overrides or {}
    items = [
        project_folder(folder, now)
        for folder in folders.values()
        if effective_parent_id(folder.parent_id, folders, child_id=folder.id) == current_folder_id
    ]
    items += [
        project_document(document, star_overrides.get(document.id))
        for document in documents.values()
        if effective_parent_id(document.folder_id, folders) == current_folder_id
    ]
    return items


def vault_documents(documents: Mapping[str, Document], star_overrides: Mapping[str, bool] | None = None) -> list[ExplorerItem]:
    """Every document of the vault regardless of its folder."""
    star_overrides = star_overrides or {}
    return [project_document(document, star_overrides.get(document.id)) for document in documents.values()]


def is_recent(item: ExplorerItem, now: datetime, window_days: int = RECENT_WINDOW_DAYS) -> bool:
    return item.updated_at >= now - timedelta(days=window_days)


def apply_quick_access(
    items: list[ExplorerItem],
    quick_access: QuickAccessFilter | None,
    now: datetime,
    window_days: int = RECENT_WINDOW_DAYS,
) -> list[ExplorerItem]:
    if quick_access == QuickAccessFilter.STARRED:
        return [item for item in items if item.is_starred]
    if quick_access == QuickAccessFilter.RECENT:
        return [item for item in items if is_recent(item, now, window_days)]
    return list(items)


def apply_search(items: list[ExplorerItem], search_query: str) -> list[ExplorerItem]:
    """Case-insensitive substring match on the item name; an empty query keeps everything."""
    if not search_query:
        return list(items)
    needle = search_query.lower()
    return [item for item in items if needle in item.name.lower()]


def _sort_key(field: SortField):
    if field == SortField.NAME:
        return lambda item: (item.name.casefold(), item.name)
    if field == SortField.UPDATED_AT:
        return lambda item: item.updated_at
    if field == SortField.SIZE:
        return lambda item: item.size
    if field == SortField.SECURITY:
        return lambda item: item.security.ordinal
    if field == SortField.RELEVANCE_SCORE:
        return lambda item: item.relevance_score
    raise ValueError(f"Unsupported sort field '{field}'")


def sort_items(items: list[ExplorerItem], sort_field: SortField, sort_ascending: bool = False) -> list[ExplorerItem]:
    """Sort folders before documents, then by ``sort_field``.

    Each field has a natural direction (newest, largest and most relevant first;
    names A to Z; security from general to sovereign). ``sort_ascending=True``
    flips it. Equal keys keep their input order.
    """
    reverse = (sort_field in _NATURAL_DESCENDING) != sort_ascending
    key = _sort_key(sort_field)
    folders = [item for item in items if item.is_folder]
    documents = [item for item in items if not item.is_folder]
    # list.sort is stable in both directions
    return sorted(folders, key=key, reverse=reverse) + sorted(documents, key=key, reverse=reverse)


def most_cited(items: list[ExplorerItem], limit: int = MOST_CITED_LIMIT) -> list[ExplorerItem]:
    cited = [item for item in items if not item.is_folder and item.citations > 0]
    return sorted(cited, key=lambda item: item.citations, reverse=True)[:limit]


##########################################
############### PIPELINE #################
##########################################

class ListPipeline:
    """Composes the list steps with the explorer's configured window, scope and limits."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self.recent_window_days = helper_config.get_int_val("EXPLORER_RECENT_WINDOW_DAYS", default=RECENT_WINDOW_DAYS, minimum=0)
        self.most_cited_limit = helper_config.get_int_val("EXPLORER_MOST_CITED_LIMIT", default=MOST_CITED_LIMIT, minimum=0)
        self.quick_access_scope = QuickAccessScope(
            helper_config.get_choice_val("EXPLORER_QUICK_ACCESS_SCOPE", [scope.value for scope in QuickAccessScope], default=QuickAccessScope.FOLDER.value)
        )

    def do_run(
        self,
        documents: Mapping[str, Document],
        folders: Mapping[str, Folder],
        query: ListQuery,
        now: datetime | None = None,
        star_overrides: Mapping[str, bool] | None = None,
    ) -> ListResult:
        """
        Runs the full pipeline for one view of the vault.

        Args:
            documents (Mapping[str, Document]): All documents keyed by id.
            folders (Mapping[str, Folder]): All folders keyed by id.
            query (ListQuery): Folder, filter, search and sort settings.
            now (datetime | None): Evaluation time, defaults to the current UTC time.
            star_overrides (Mapping[str, bool] | None): Unconfirmed local star states.

        Returns:
            ListResult: The ordered items, the most cited strip and quick-access counters.
        """
        now = now or datetime.now(timezone.utc)
        scoped = scope_items(documents, folders, query.current_folder_id, now, star_overrides)

        counter_source = scoped
        if self.quick_access_scope == QuickAccessScope.VAULT:
            counter_source = vault_documents(documents, star_overrides)
        quick_source = counter_source if query.quick_access is not None else scoped

        filtered = apply_quick_access(quick_source, query.quick_access, now, self.recent_window_days)
        filtered = apply_search(filtered, query.search_query)
        ordered = sort_items(filtered, query.sort_field, query.sort_ascending)

        self.logging.debug(
            "List pipeline: folder=%s quick=%s query=%r sort=%s asc=%s → %d of %d items",
            query.current_folder_id,
            query.quick_access.value if query.quick_access else None,
            query.search_query,
            query.sort_field.value,
            query.sort_ascending,
            len(ordered),
            len(scoped),
        )
        return ListResult(
            items=ordered,
            most_cited=most_cited(scoped, self.most_cited_limit),
            total_count=len(scoped),
            starred_count=len(apply_quick_access(counter_source, QuickAccessFilter.STARRED, now)),
            recent_count=len(apply_quick_access(counter_source, QuickAccessFilter.RECENT, now, self.recent_window_days)),
        )
