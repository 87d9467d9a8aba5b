"""Explorer router: list view, navigation, tree and vault mutations."""

from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import (
    CreateFolderRequest,
    MoveDocumentRequest,
    NavigateRequest,
    QuickAccessRequest,
    SearchRequest,
    SelectRequest,
    SortRequest,
    ViewModeRequest,
)
from server.models.responses import MutationResponse, NotificationsResponse
from services.vault_explorer.FolderTreeBuilder import TreeNode
from services.vault_explorer.SecurityTier import SecurityTier
from services.vault_explorer.models.ExplorerView import ExplorerView

explorer_router = APIRouter(prefix="/explorer", dependencies=[Depends(verify_api_key)], tags=["Explorer"])


##########################################
################ VIEW ####################
##########################################

@explorer_router.get("/view", response_model=ExplorerView)
async def get_view(request: Request) -> ExplorerView:
    """Current folder listing with breadcrumbs, most cited strip and quick-access counters."""
    return request.app.state.explorer_service.get_view()


@explorer_router.post("/refresh", response_model=ExplorerView)
async def refresh(request: Request) -> ExplorerView:
    explorer_service = request.app.state.explorer_service
    await explorer_service.do_refresh()
    return explorer_service.get_view()


@explorer_router.post("/navigate", response_model=ExplorerView)
async def navigate(request: Request, body: NavigateRequest) -> ExplorerView:
    explorer_service = request.app.state.explorer_service
    if not explorer_service.navigate(body.folder_id):
        raise HTTPException(status_code=404, detail=f"Folder '{body.folder_id}' not found")
    return explorer_service.get_view()


@explorer_router.post("/search", response_model=ExplorerView)
async def search(request: Request, body: SearchRequest) -> ExplorerView:
    explorer_service = request.app.state.explorer_service
    explorer_service.set_search(body.query)
    return explorer_service.get_view()


@explorer_router.post("/sort", response_model=ExplorerView)
async def sort(request: Request, body: SortRequest) -> ExplorerView:
    """Sets the sort order. Without ``ascending`` the field is toggled."""
    explorer_service = request.app.state.explorer_service
    if body.ascending is None:
        explorer_service.toggle_sort(body.field)
    else:
        explorer_service.set_sort(body.field, body.ascending)
    return explorer_service.get_view()


@explorer_router.post("/quick-access", response_model=ExplorerView)
async def quick_access(request: Request, body: QuickAccessRequest) -> ExplorerView:
    explorer_service = request.app.state.explorer_service
    explorer_service.set_quick_access(body.filter)
    return explorer_service.get_view()


@explorer_router.post("/view-mode", response_model=ExplorerView)
async def view_mode(request: Request, body: ViewModeRequest) -> ExplorerView:
    explorer_service = request.app.state.explorer_service
    explorer_service.set_view_mode(body.mode)
    return explorer_service.get_view()


@explorer_router.post("/select", response_model=ExplorerView)
async def select(request: Request, body: SelectRequest) -> ExplorerView:
    """Selects an item and opens the inspector on it; a null id clears the selection."""
    explorer_service = request.app.state.explorer_service
    if not explorer_service.select(body.item_id):
        raise HTTPException(status_code=404, detail=f"Item '{body.item_id}' not found")
    return explorer_service.get_view()


##########################################
################ TREE ####################
##########################################

@explorer_router.get("/tree", response_model=list[TreeNode])
async def get_tree(request: Request, include_documents: bool = False) -> list[TreeNode]:
    return request.app.state.explorer_service.get_tree(include_documents=include_documents)


@explorer_router.post("/tree/{folder_id}/toggle", response_model=list[TreeNode])
async def toggle_tree_folder(request: Request, folder_id: str, include_documents: bool = False) -> list[TreeNode]:
    explorer_service = request.app.state.explorer_service
    if not explorer_service.toggle_folder_expanded(folder_id):
        raise HTTPException(status_code=404, detail=f"Folder '{folder_id}' not found")
    return explorer_service.get_tree(include_documents=include_documents)


##########################################
############## MUTATIONS #################
##########################################

@explorer_router.post("/folders", response_model=MutationResponse)
async def create_folder(request: Request, body: CreateFolderRequest) -> MutationResponse:
    """Creates a folder inside the current folder. Failures are reported as notifications."""
    request.app.state.logging.info("Create folder requested: %r", body.name)
    return MutationResponse(success=await request.app.state.explorer_service.do_create_folder(body.name))


@explorer_router.delete("/folders/{folder_id}", response_model=MutationResponse)
async def delete_folder(request: Request, folder_id: str) -> MutationResponse:
    request.app.state.logging.info("Delete folder requested: %s", folder_id)
    return MutationResponse(success=await request.app.state.explorer_service.do_delete_folder(folder_id))


@explorer_router.post("/documents/{document_id}/star", response_model=MutationResponse)
async def toggle_star(request: Request, document_id: str) -> MutationResponse:
    return MutationResponse(success=await request.app.state.explorer_service.do_toggle_star(document_id))


@explorer_router.post("/documents/{document_id}/move", response_model=MutationResponse)
async def move_document(request: Request, document_id: str, body: MoveDocumentRequest) -> MutationResponse:
    request.app.state.logging.info("Move document %s to %s requested", document_id, body.folder_id)
    return MutationResponse(success=await request.app.state.explorer_service.do_move_document(document_id, body.folder_id))


@explorer_router.delete("/documents/{document_id}", response_model=MutationResponse)
async def delete_document(request: Request, document_id: str) -> MutationResponse:
    request.app.state.logging.info("Delete document requested: %s", document_id)
    return MutationResponse(success=await request.app.state.explorer_service.do_delete_document(document_id))


@explorer_router.get("/security-tiers")
async def get_security_tiers() -> list[dict]:
    """The four classification tiers in ascending order, for tier pickers."""
    return [tier.to_dict() for tier in SecurityTier]


@explorer_router.get("/notifications", response_model=NotificationsResponse)
async def get_notifications(request: Request) -> NotificationsResponse:
    """Returns and clears the pending notifications."""
    return NotificationsResponse(notifications=request.app.state.notifier.drain())
