from conftest import make_document, make_folder
from services.vault_explorer.ListPipeline import QuickAccessFilter, SortField
from services.vault_explorer.models.ExplorerState import ExplorerState, ViewMode


def _state(**kwargs) -> ExplorerState:
    return ExplorerState().with_collections(
        documents={"d1": make_document("d1", folder_id="f1"), "d2": make_document("d2")},
        folders={"f1": make_folder("f1"), "f2": make_folder("f2", parent_id="f1")},
    ).model_copy(update=kwargs)


def test_commands_return_new_states():
    state = _state()
    navigated = state.navigate("f1")
    assert state.current_folder_id is None
    assert navigated.current_folder_id == "f1"


def test_with_collections_rebuilds_membership():
    state = _state()
    assert state.folders["f1"].documents == ["d1"]
    assert state.folders["f2"].documents == []


def test_navigate_clears_selection():
    state = _state().select("d1").navigate("f1")
    assert state.selected_id is None


def test_quick_access_toggles_off_when_repeated():
    state = _state().set_quick_access(QuickAccessFilter.STARRED)
    assert state.quick_access == QuickAccessFilter.STARRED
    assert state.set_quick_access(QuickAccessFilter.STARRED).quick_access is None
    assert state.set_quick_access(QuickAccessFilter.RECENT).quick_access == QuickAccessFilter.RECENT


def test_toggle_sort():
    state = _state()
    assert (state.sort_field, state.sort_ascending) == (SortField.UPDATED_AT, False)
    flipped = state.toggle_sort(SortField.UPDATED_AT)
    assert flipped.sort_ascending is True
    renamed = flipped.toggle_sort(SortField.NAME)
    assert (renamed.sort_field, renamed.sort_ascending) == (SortField.NAME, False)


def test_view_mode_and_search():
    state = _state().set_view_mode(ViewMode.GRID).set_search("memo")
    assert state.view_mode == ViewMode.GRID
    assert state.search_query == "memo"
    assert state.to_list_query().search_query == "memo"


def test_refetch_drops_vanished_selection_and_folder():
    state = _state().navigate("f2").select("d1")
    refreshed = state.with_collections(
        documents={"d2": make_document("d2")},
        folders={"f1": make_folder("f1")},
    )
    assert refreshed.current_folder_id is None
    assert refreshed.selected_id is None


def test_expanded_set_is_pruned_on_refetch():
    state = _state().toggle_folder_expanded("f1").toggle_folder_expanded("f2")
    assert state.expanded_folder_ids == frozenset({"f1", "f2"})
    refreshed = state.with_collections(folders={"f1": make_folder("f1")})
    assert refreshed.expanded_folder_ids == frozenset({"f1"})
    assert refreshed.toggle_folder_expanded("f1").expanded_folder_ids == frozenset()


def test_star_override_until_confirmed():
    state = _state().with_star_override("d2", True)
    assert state.is_starred("d2")

    # backend has not caught up yet
    unconfirmed = state.with_collections(documents={"d2": make_document("d2", is_starred=False)})
    assert unconfirmed.star_overrides == {"d2": True}

    confirmed = state.with_collections(documents={"d2": make_document("d2", is_starred=True)})
    assert confirmed.star_overrides == {}
    assert confirmed.is_starred("d2")


def test_without_star_override_reverts():
    state = _state().with_star_override("d2", True).without_star_override("d2")
    assert not state.is_starred("d2")


def test_contains_covers_documents_and_folders():
    state = _state()
    assert state.contains("d1") and state.contains("f2")
    assert not state.contains("nope")
