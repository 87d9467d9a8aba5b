"""Inspector router: side operations on the selected item."""

from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import get_user_name, verify_api_key
from server.models.requests import IndexingRequest, SecurityRequest
from server.models.responses import InspectorResponse
from services.vault_explorer.ExplorerService import ExplorerService
from services.vault_explorer.models.InspectorState import InspectorOperation

inspector_router = APIRouter(prefix="/inspector", dependencies=[Depends(verify_api_key)], tags=["Inspector"])


def _snapshot(explorer_service: ExplorerService, user_name: str | None) -> InspectorResponse:
    return InspectorResponse(
        inspector=explorer_service.inspector.get_snapshot(),
        certificate=explorer_service.get_certificate(user_name=user_name),
    )


async def _run(request: Request, operation: InspectorOperation, user_name: str | None, **kwargs) -> InspectorResponse:
    """Runs an operation on the selected item; its outcome is part of the returned inspector state."""
    explorer_service = request.app.state.explorer_service
    if not explorer_service.inspector.is_open:
        raise HTTPException(status_code=409, detail="No item selected")
    request.app.state.logging.info("Inspector %s requested for %s", operation.value, explorer_service.inspector.item_id)
    try:
        await explorer_service.do_inspect(operation, **kwargs)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _snapshot(explorer_service, user_name)


@inspector_router.get("", response_model=InspectorResponse)
async def get_inspector(request: Request, user_name: str | None = Depends(get_user_name)) -> InspectorResponse:
    """Panel state with every operation's status and, for documents, the custody certificate."""
    return _snapshot(request.app.state.explorer_service, user_name)


@inspector_router.post("/close", response_model=InspectorResponse)
async def close_inspector(request: Request, user_name: str | None = Depends(get_user_name)) -> InspectorResponse:
    explorer_service = request.app.state.explorer_service
    explorer_service.close_inspector()
    return _snapshot(explorer_service, user_name)


@inspector_router.post("/download", response_model=InspectorResponse)
async def download(request: Request, user_name: str | None = Depends(get_user_name)) -> InspectorResponse:
    """Resolves a short-lived download URL, returned as the download operation's data."""
    return await _run(request, InspectorOperation.DOWNLOAD, user_name)


@inspector_router.post("/audit", response_model=InspectorResponse)
async def audit(request: Request, user_name: str | None = Depends(get_user_name)) -> InspectorResponse:
    return await _run(request, InspectorOperation.AUDIT, user_name)


@inspector_router.post("/verify", response_model=InspectorResponse)
async def verify(request: Request, user_name: str | None = Depends(get_user_name)) -> InspectorResponse:
    return await _run(request, InspectorOperation.VERIFY, user_name)


@inspector_router.post("/related", response_model=InspectorResponse)
async def related(request: Request, user_name: str | None = Depends(get_user_name)) -> InspectorResponse:
    return await _run(request, InspectorOperation.RELATED, user_name)


@inspector_router.post("/security", response_model=InspectorResponse)
async def change_security(request: Request, body: SecurityRequest, user_name: str | None = Depends(get_user_name)) -> InspectorResponse:
    return await _run(request, InspectorOperation.SECURITY, user_name, tier=body.tier)


@inspector_router.post("/indexing", response_model=InspectorResponse)
async def set_indexing(request: Request, body: IndexingRequest, user_name: str | None = Depends(get_user_name)) -> InspectorResponse:
    return await _run(request, InspectorOperation.INDEXING, user_name, enabled=body.enabled)
