import httpx
import pytest

from conftest import BASE_URL, json_body
from shared.clients.VaultRequestError import VaultRequestError
from shared.clients.vault.VaultClientManager import VaultClientManager
from shared.clients.vault.ragbox.VaultClientRagbox import VaultClientRagbox


def test_missing_base_url_is_rejected(helper_config, monkeypatch):
    monkeypatch.delenv("VAULT_RAGBOX_BASE_URL")
    with pytest.raises(ValueError):
        VaultClientRagbox(helper_config=helper_config)


def test_manager_instantiates_configured_engine(helper_config, monkeypatch):
    monkeypatch.setenv("VAULT_ENGINE", "ragbox")
    assert isinstance(VaultClientManager(helper_config=helper_config).get_client(), VaultClientRagbox)


def test_manager_rejects_unknown_engine(helper_config, monkeypatch):
    monkeypatch.setenv("VAULT_ENGINE", "nope")
    with pytest.raises(ValueError):
        VaultClientManager(helper_config=helper_config)


async def test_request_before_boot_fails(helper_config):
    client = VaultClientRagbox(helper_config=helper_config)
    with pytest.raises(RuntimeError, match="boot"):
        await client.do_fetch_documents()


########### listing ###########

async def test_fetch_documents_unwraps_envelope(vault_client, backend):
    backend.on("GET", "/api/documents", {
        "success": True,
        "data": {"documents": [
            {"id": "d1", "filename": "Contract.pdf", "sizeBytes": 2048, "indexStatus": "Indexed",
             "securityTier": 3, "isStarred": True, "folderId": "f1", "updatedAt": "2025-01-10T08:00:00Z",
             "citationCount": 4, "relevanceScore": 0.8},
            {"id": "d2", "originalName": "notes.txt", "status": "Pending", "createdAt": "2025-01-09T08:00:00"},
        ]},
    })
    documents = await vault_client.do_fetch_documents()
    assert list(documents) == ["d1", "d2"]
    d1 = documents["d1"]
    assert (d1.name, d1.size, d1.security_tier, d1.is_starred, d1.folder_id) == ("Contract.pdf", 2048, 3, True, "f1")
    assert d1.is_indexed and d1.citation_count == 4
    d2 = documents["d2"]
    assert d2.security_tier == 1
    assert d2.created_at.tzinfo is not None
    request = backend.requests[0]
    assert request.url == httpx.URL(f"{BASE_URL}/api/documents")
    assert request.headers["Authorization"] == "Bearer secret-token"


async def test_fetch_documents_accepts_map_keyed_by_id(vault_client, backend):
    backend.on("GET", "/api/documents", {"d9": {"name": "map.pdf"}})
    documents = await vault_client.do_fetch_documents()
    assert documents["d9"].name == "map.pdf"


async def test_fetch_folders_registers_nested_children(vault_client, backend):
    backend.on("GET", "/api/folders", {"folders": [
        {"id": "f1", "name": "Legal", "children": [{"id": "f2", "name": "Contracts"}]},
    ]})
    folders = await vault_client.do_fetch_folders()
    assert folders["f1"].children == ["f2"]
    assert folders["f2"].parent_id == "f1"


async def test_custom_api_prefix(helper_config, backend, monkeypatch):
    monkeypatch.setenv("VAULT_RAGBOX_API_PREFIX", "/v2/")
    client = VaultClientRagbox(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(backend.handler))
    backend.on("GET", "/v2/folders", [])
    assert await client.do_fetch_folders() == {}
    await client.close()


########### failures ###########

async def test_envelope_failure_carries_server_message(vault_client, backend):
    backend.on("PATCH", "/api/documents/d1/tier", {"success": False, "error": "Tier locked by policy"})
    with pytest.raises(VaultRequestError) as info:
        await vault_client.do_update_tier("d1", 4)
    assert info.value.message == "Tier locked by policy"
    assert info.value.server_message


async def test_http_error_with_and_without_message(vault_client, backend):
    backend.on("POST", "/api/documents/d1/ingest", httpx.Response(409, json={"message": "Already indexing"}))
    with pytest.raises(VaultRequestError) as info:
        await vault_client.do_start_ingest("d1")
    assert info.value.status_code == 409
    assert info.value.message == "Already indexing"

    backend.on("DELETE", "/api/documents/d1/chunks", httpx.Response(500, text="boom"))
    with pytest.raises(VaultRequestError) as info:
        await vault_client.do_delete_chunks("d1")
    assert info.value.status_code == 500
    assert not info.value.server_message


async def test_invalid_json_is_a_request_error(vault_client, backend):
    backend.on("GET", "/api/folders", httpx.Response(200, text="<html>"))
    with pytest.raises(VaultRequestError):
        await vault_client.do_fetch_folders()


async def test_malformed_records_are_skipped(vault_client, backend):
    backend.on("GET", "/api/documents", [
        {"id": "d1", "filename": "Contract.pdf", "updatedAt": "2025-01-10T08:00:00Z"},
        {"id": "d2", "filename": "Broken.pdf", "updatedAt": "not-a-date"},
    ])
    backend.on("GET", "/api/folders", [
        {"id": "f1", "name": "Legal", "children": [{"id": "f2", "name": "Bad", "updatedAt": "never"}]},
        {"id": "f3", "name": "Broken", "updatedAt": "never"},
    ])
    assert list(await vault_client.do_fetch_documents()) == ["d1"]
    folders = await vault_client.do_fetch_folders()
    assert list(folders) == ["f1"]
    assert folders["f1"].children == ["f2"]


async def test_malformed_created_folder_is_a_request_error(vault_client, backend):
    backend.on("POST", "/api/folders", {"id": "f9", "name": "New", "updatedAt": "never"})
    with pytest.raises(VaultRequestError, match="Malformed folder record f9"):
        await vault_client.do_create_folder("New")


async def test_get_is_retried_once_on_transport_error(vault_client, backend):
    attempts = []

    def flaky(request):
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, json=[])

    backend.on("GET", "/api/documents", flaky)
    assert await vault_client.do_fetch_documents() == {}
    assert len(attempts) == 2


async def test_get_gives_up_after_retries(vault_client, backend):
    def down(request):
        raise httpx.ConnectError("refused", request=request)

    backend.on("GET", "/api/documents", down)
    with pytest.raises(VaultRequestError) as info:
        await vault_client.do_fetch_documents()
    assert info.value.transient
    assert len(backend.calls("GET", "/api/documents")) == 2


async def test_mutations_are_never_retried(vault_client, backend):
    def down(request):
        raise httpx.ReadTimeout("timeout", request=request)

    backend.on("POST", "/api/documents/d1/star", down)
    with pytest.raises(VaultRequestError):
        await vault_client.do_set_star("d1", True)
    assert len(backend.calls("POST", "/api/documents/d1/star")) == 1


########### mutations and inspector requests ###########

async def test_mutation_payloads(vault_client, backend):
    backend.on("PATCH", "/api/documents/d1/tier", {"success": True})
    backend.on("PATCH", "/api/documents/d1", httpx.Response(204))
    backend.on("POST", "/api/documents/d1/star", {"success": True, "data": {"starred": True}})
    backend.on("POST", "/api/folders", {"success": True, "data": {"folder": {"id": "f9", "name": "New", "parentId": "f1"}}})

    await vault_client.do_update_tier("d1", 3)
    await vault_client.do_move_document("d1", None)
    await vault_client.do_set_star("d1", True)
    folder = await vault_client.do_create_folder("New", parent_id="f1")

    assert json_body(backend.calls("PATCH", "/api/documents/d1/tier")[0]) == {"tier": 3}
    assert json_body(backend.calls("PATCH", "/api/documents/d1")[0]) == {"folderId": None}
    assert json_body(backend.calls("POST", "/api/documents/d1/star")[0]) == {"starred": True}
    assert json_body(backend.calls("POST", "/api/folders")[0]) == {"name": "New", "parentId": "f1"}
    assert folder.id == "f9" and folder.parent_id == "f1"


async def test_inspector_requests(vault_client, backend):
    backend.on("GET", "/api/documents/d1/download", {"url": "https://cdn.test/d1?sig=abc"})
    backend.on("GET", "/api/audit", {"entries": [{}, {}], "total": 17})
    backend.on("POST", "/api/documents/d1/verify", {"valid": False, "reason": "no stored checksum"})
    backend.on("GET", "/api/documents/d1/related", {"related": [
        {"document": {"id": "d2", "name": "Sibling.pdf"}, "similarity": 0.91},
        {"id": "d3", "name": "Flat.pdf", "similarity": 0.5},
        {"similarity": 0.1},
    ]})

    assert (await vault_client.do_fetch_download_link("d1")).url == "https://cdn.test/d1?sig=abc"
    assert (await vault_client.do_fetch_audit_summary("d1")).count == 17
    report = await vault_client.do_verify_integrity("d1")
    assert not report.valid and report.reason == "no stored checksum"
    related = await vault_client.do_fetch_related("d1", limit=3)
    assert [(r.document.id, r.similarity) for r in related] == [("d2", 0.91), ("d3", 0.5)]

    assert backend.calls("GET", "/api/audit")[0].url.params["documentId"] == "d1"
    assert backend.calls("GET", "/api/documents/d1/related")[0].url.params["limit"] == "3"


async def test_audit_counts_log_list(vault_client, backend):
    backend.on("GET", "/api/audit", {"logs": [{}, {}, {}]})
    assert (await vault_client.do_fetch_audit_summary("d1")).count == 3


async def test_download_without_url_fails(vault_client, backend):
    backend.on("GET", "/api/documents/d1/download", {"success": True, "data": {}})
    with pytest.raises(VaultRequestError):
        await vault_client.do_fetch_download_link("d1")
