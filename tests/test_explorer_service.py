import httpx
import pytest

from conftest import NOW, json_body
from services.vault_explorer.ExplorerService import ExplorerService
from services.vault_explorer.ListPipeline import QuickAccessFilter, SortField
from services.vault_explorer.models.ExplorerItem import ItemType
from services.vault_explorer.models.InspectorState import InspectorOperation, OperationStatus
from services.vault_explorer.notifications.Notifier import NotificationLevel


@pytest.fixture
def vault_data():
    return {
        "documents": [
            {"id": "d1", "filename": "Contract.pdf", "folderId": "f1", "indexStatus": "Indexed", "securityTier": 2,
             "updatedAt": "2025-01-14T10:00:00Z", "citationCount": 3},
            {"id": "d2", "filename": "Notes.txt", "indexStatus": "Pending", "updatedAt": "2025-01-01T10:00:00Z"},
        ],
        "folders": [
            {"id": "f1", "name": "Legal"},
            {"id": "f2", "name": "Archive", "parentId": "f1"},
        ],
    }


@pytest.fixture
async def service(helper_config, vault_client, backend, notifier, vault_data) -> ExplorerService:
    backend.on("GET", "/api/documents", lambda request: httpx.Response(200, json={"success": True, "data": {"documents": vault_data["documents"]}}))
    backend.on("GET", "/api/folders", lambda request: httpx.Response(200, json={"success": True, "data": vault_data["folders"]}))
    explorer_service = ExplorerService(helper_config=helper_config, vault_client=vault_client, notifier=notifier)
    assert await explorer_service.do_refresh()
    return explorer_service


########### refresh and views ###########

async def test_refresh_loads_collections(service):
    assert set(service.state.documents) == {"d1", "d2"}
    assert service.state.folders["f1"].documents == ["d1"]
    view = service.get_view()
    assert [item.id for item in view.items] == ["f1", "d2"]
    assert view.breadcrumbs[0].name == "Primary Vault"


async def test_view_carries_row_labels(service):
    labels = service.get_view(now=NOW).labels
    assert labels["d2"].model_dump() == {"size": "-", "updated": "Jan 1, 2025", "file_type": "Text File"}
    assert labels["f1"].file_type == "Folder"
    assert labels["f1"].updated == "Today"


async def test_refresh_failure_keeps_previous_state(service, backend, notifier):
    backend.on("GET", "/api/documents", httpx.Response(500, json={"error": "Index offline"}))
    assert await service.do_refresh() is False
    assert set(service.state.documents) == {"d1", "d2"}
    assert notifier.get_recent()[-1].message == "Could not load documents: Index offline"


async def test_refresh_skips_malformed_records(service, vault_data, notifier):
    vault_data["documents"].append({"id": "d3", "filename": "Broken.pdf", "updatedAt": "not-a-date"})
    assert await service.do_refresh()
    assert set(service.state.documents) == {"d1", "d2"}
    assert notifier.get_recent() == []


async def test_navigate_updates_breadcrumbs_and_tree(service):
    assert service.navigate("f2")
    assert [crumb.id for crumb in service.get_breadcrumbs()] == [None, "f1", "f2"]
    tree = service.get_tree()
    assert [(node.id, node.depth, node.is_selected) for node in tree] == [("f1", 0, False), ("f2", 1, True)]
    assert not service.navigate("missing")


async def test_view_reflects_search_sort_and_quick_access(service):
    service.navigate("f1")
    view = service.get_view()
    assert [item.id for item in view.items] == ["f2", "d1"]
    assert [item.id for item in view.most_cited] == ["d1"]

    service.set_search("zzz")
    assert [item.id for item in service.get_view().items] == []
    service.set_search("")

    service.toggle_sort(SortField.NAME)
    assert service.state.sort_field == SortField.NAME
    service.set_quick_access(QuickAccessFilter.STARRED)
    assert service.get_view().items == []


async def test_tree_with_documents(service):
    service.toggle_folder_expanded("f1")
    nodes = service.get_tree(include_documents=True)
    assert [node.id for node in nodes] == ["f1", "f2", "d1"]
    assert not service.toggle_folder_expanded("missing")


########### selection and inspector ###########

async def test_select_opens_inspector_with_item_type(service):
    assert service.select("f1")
    assert service.inspector.get_snapshot().item_type == ItemType.FOLDER
    assert service.select("d1")
    assert service.inspector.item_id == "d1"
    assert service.get_certificate(user_name="Dana").custodian == "Dana (Verified)"
    assert not service.select("nope")

    service.navigate(None)
    assert not service.inspector.is_open
    assert service.state.selected_id is None


async def test_inspector_closes_when_item_disappears(service, vault_data):
    service.select("d2")
    vault_data["documents"] = vault_data["documents"][:1]
    await service.do_refresh()
    assert not service.inspector.is_open
    assert service.state.selected_id is None


async def test_security_change_is_fire_and_refetch(service, backend, vault_data):
    def update_tier(request):
        vault_data["documents"][0]["securityTier"] = json_body(request)["tier"]
        return httpx.Response(200, json={"success": True})

    backend.on("PATCH", "/api/documents/d1/tier", update_tier)
    service.select("d1")
    fetches_before = len(backend.calls("GET", "/api/documents"))

    assert await service.do_change_security("confidential")
    assert service.state.documents["d1"].security_tier == 3
    assert len(backend.calls("GET", "/api/documents")) == fetches_before + 1
    assert service.inspector.get_state(InspectorOperation.SECURITY).status == OperationStatus.SUCCESS


async def test_security_change_failure_leaves_tier(service, backend):
    backend.on("PATCH", "/api/documents/d1/tier", httpx.Response(403, json={"error": "Forbidden"}))
    service.select("d1")
    fetches_before = len(backend.calls("GET", "/api/documents"))
    assert not await service.do_change_security(4)
    assert service.state.documents["d1"].security_tier == 2
    assert len(backend.calls("GET", "/api/documents")) == fetches_before


async def test_inspector_lookup_superseded_by_reselection(service, backend):
    def audit(request):
        # another request selects a different item while the lookup is on the wire
        service.select("d2")
        return httpx.Response(200, json={"total": 4})

    backend.on("GET", "/api/audit", audit)
    service.select("d1")
    assert await service.do_inspect(InspectorOperation.AUDIT) is None
    assert service.inspector.item_id == "d2"
    assert service.inspector.get_state(InspectorOperation.AUDIT).status == OperationStatus.IDLE


async def test_inspector_rejects_unknown_tier(service):
    service.select("d1")
    with pytest.raises(ValueError):
        await service.do_inspect(InspectorOperation.SECURITY, tier="galaxy")


########### mutations ###########

async def test_star_is_optimistic_and_confirmed(service, backend, vault_data):
    def star(request):
        vault_data["documents"][1]["isStarred"] = json_body(request)["starred"]
        return httpx.Response(200, json={"success": True})

    backend.on("POST", "/api/documents/d2/star", star)
    assert await service.do_toggle_star("d2")
    assert service.state.is_starred("d2")
    assert service.state.star_overrides == {}


async def test_star_is_reverted_on_failure(service, backend, notifier):
    backend.on("POST", "/api/documents/d2/star", httpx.Response(500))
    assert not await service.do_toggle_star("d2")
    assert not service.state.is_starred("d2")
    assert service.state.star_overrides == {}
    assert notifier.get_recent()[-1].level == NotificationLevel.ERROR


async def test_create_folder_in_current_folder(service, backend, vault_data):
    def create(request):
        body = json_body(request)
        vault_data["folders"].append({"id": "f3", "name": body["name"], "parentId": body.get("parentId")})
        return httpx.Response(201, json={"success": True, "data": vault_data["folders"][-1]})

    backend.on("POST", "/api/folders", create)
    service.navigate("f1")
    assert await service.do_create_folder("  Drafts ")
    assert json_body(backend.calls("POST", "/api/folders")[0]) == {"name": "Drafts", "parentId": "f1"}
    assert service.state.folders["f3"].parent_id == "f1"


async def test_blank_folder_name_is_rejected(service, backend, notifier):
    assert not await service.do_create_folder("   ")
    assert backend.calls("POST", "/api/folders") == []
    assert notifier.get_recent()[-1].level == NotificationLevel.WARNING


async def test_deleting_current_folder_returns_to_root(service, backend, vault_data):
    def delete(request):
        vault_data["folders"] = [f for f in vault_data["folders"] if f["id"] != "f2"]
        return httpx.Response(204)

    backend.on("DELETE", "/api/folders/f2", delete)
    service.navigate("f2")
    assert await service.do_delete_folder("f2")
    assert service.state.current_folder_id is None


async def test_move_and_delete_document(service, backend, vault_data):
    def move(request):
        vault_data["documents"][1]["folderId"] = json_body(request)["folderId"]
        return httpx.Response(200, json={"success": True})

    def delete(request):
        vault_data["documents"] = [d for d in vault_data["documents"] if d["id"] != "d1"]
        return httpx.Response(200, json={"success": True})

    backend.on("PATCH", "/api/documents/d2", move)
    backend.on("DELETE", "/api/documents/d1", delete)

    assert not await service.do_move_document("d2", "missing")
    assert await service.do_move_document("d2", "f2")
    assert service.state.documents["d2"].folder_id == "f2"

    assert await service.do_delete_document("d1")
    assert set(service.state.documents) == {"d2"}


async def test_failed_delete_keeps_document(service, backend, notifier):
    backend.on("DELETE", "/api/documents/d1", httpx.Response(500, text="boom"))
    assert not await service.do_delete_document("d1")
    assert "d1" in service.state.documents
    assert notifier.get_recent()[-1].message == "Could not delete document"
