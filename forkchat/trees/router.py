"""FastAPI routes for trees, branches, navigation, layout and snapshots."""

import json as json_module
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from forkchat.generation.service import GenerationFailedError, GenerationService
from forkchat.providers.registry import ProviderNotFoundError, get_provider
from forkchat.trees.engine import BranchNotFoundError, NodeNotFoundError
from forkchat.trees.schemas import (
    AppendExchangeRequest,
    AppendExchangeResponse,
    CreateBranchRequest,
    CreateBranchResponse,
    CreateTreeRequest,
    HistoryMessage,
    LayoutEdgeResponse,
    LayoutResponse,
    NavigateRequest,
    PathResponse,
    RenameTreeRequest,
    SavePositionsRequest,
    SendMessageRequest,
    TreeSummary,
    ViewportRequest,
)
from forkchat.trees.service import TreeAlreadyExistsError, TreeNotFoundError, TreeService
from forkchat.trees.snapshot import SnapshotDecodeError, to_snapshot

router = APIRouter(prefix="/api/trees", tags=["trees"])

_NOT_FOUND = (TreeNotFoundError, NodeNotFoundError, BranchNotFoundError)


def get_tree_service() -> TreeService:
    """Dependency placeholder, overridden in the app lifespan."""
    raise RuntimeError("TreeService not initialized")


def get_generation_service() -> GenerationService:
    """Dependency placeholder, overridden in the app lifespan."""
    raise RuntimeError("GenerationService not initialized")


# -- Collection --


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_tree(
    request: CreateTreeRequest,
    service: TreeService = Depends(get_tree_service),
) -> dict[str, Any]:
    tree = await service.create_tree(
        request.name, request.first_user_message, request.first_ai_response
    )
    return to_snapshot(tree)


@router.get("")
async def list_trees(
    service: TreeService = Depends(get_tree_service),
) -> list[TreeSummary]:
    return await service.list_trees()


@router.get("/current")
async def get_current_tree(
    service: TreeService = Depends(get_tree_service),
) -> dict[str, Any]:
    tree = await service.get_current_tree()
    if tree is None:
        raise HTTPException(status_code=404, detail="No tree selected")
    return to_snapshot(tree)


@router.post("/import", status_code=status.HTTP_201_CREATED)
async def import_tree(
    snapshot: dict[str, Any],
    service: TreeService = Depends(get_tree_service),
) -> dict[str, Any]:
    """Store an exported snapshot. An id that is already stored is rejected."""
    try:
        tree = await service.import_snapshot(snapshot)
    except SnapshotDecodeError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except TreeAlreadyExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return to_snapshot(tree)


@router.get("/{tree_id}")
async def get_tree(
    tree_id: str,
    service: TreeService = Depends(get_tree_service),
) -> dict[str, Any]:
    try:
        return to_snapshot(await service.get_tree(tree_id))
    except TreeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{tree_id}/snapshot")
async def export_tree(
    tree_id: str,
    service: TreeService = Depends(get_tree_service),
) -> Response:
    try:
        snapshot = await service.export_snapshot(tree_id)
    except TreeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(
        content=json_module.dumps(snapshot, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{tree_id}.json"'},
    )


@router.patch("/{tree_id}")
async def rename_tree(
    tree_id: str,
    request: RenameTreeRequest,
    service: TreeService = Depends(get_tree_service),
) -> dict[str, Any]:
    try:
        return to_snapshot(await service.rename_tree(tree_id, request.name))
    except TreeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{tree_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tree(
    tree_id: str,
    service: TreeService = Depends(get_tree_service),
) -> None:
    try:
        await service.delete_tree(tree_id)
    except TreeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{tree_id}/select")
async def select_tree(
    tree_id: str,
    service: TreeService = Depends(get_tree_service),
) -> dict[str, Any]:
    try:
        return to_snapshot(await service.select_tree(tree_id))
    except TreeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# -- Exchanges --


@router.post("/{tree_id}/exchanges", status_code=status.HTTP_201_CREATED)
async def append_exchange(
    tree_id: str,
    request: AppendExchangeRequest,
    service: TreeService = Depends(get_tree_service),
) -> AppendExchangeResponse:
    try:
        tree, node_id = await service.append_exchange(
            tree_id, request.user_message, request.ai_response
        )
    except _NOT_FOUND as e:
        raise HTTPException(status_code=404, detail=str(e))
    return AppendExchangeResponse(node_id=node_id, tree=to_snapshot(tree))


@router.post("/{tree_id}/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    tree_id: str,
    request: SendMessageRequest,
    gen_service: GenerationService = Depends(get_generation_service),
) -> AppendExchangeResponse:
    try:
        provider = get_provider(request.provider)
    except ProviderNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        tree, node_id = await gen_service.send_message(tree_id, request.content, provider)
    except _NOT_FOUND as e:
        raise HTTPException(status_code=404, detail=str(e))
    except GenerationFailedError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return AppendExchangeResponse(node_id=node_id, tree=to_snapshot(tree))


@router.post("/{tree_id}/navigate")
async def navigate(
    tree_id: str,
    request: NavigateRequest,
    service: TreeService = Depends(get_tree_service),
) -> dict[str, Any]:
    try:
        tree = await service.navigate(tree_id, request.node_id, focus=request.focus)
    except _NOT_FOUND as e:
        raise HTTPException(status_code=404, detail=str(e))
    return to_snapshot(tree)


# -- Branches --


@router.post("/{tree_id}/branches", status_code=status.HTTP_201_CREATED)
async def create_branch(
    tree_id: str,
    request: CreateBranchRequest,
    service: TreeService = Depends(get_tree_service),
) -> CreateBranchResponse:
    try:
        tree, branch = await service.create_branch(tree_id, request.fork_node_id, request.name)
    except _NOT_FOUND as e:
        raise HTTPException(status_code=404, detail=str(e))
    return CreateBranchResponse(branch_id=branch.id, tree=to_snapshot(tree))


@router.post("/{tree_id}/branches/{branch_id}/select")
async def select_branch(
    tree_id: str,
    branch_id: str,
    service: TreeService = Depends(get_tree_service),
) -> dict[str, Any]:
    try:
        return to_snapshot(await service.select_branch(tree_id, branch_id))
    except _NOT_FOUND as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{tree_id}/branches/{branch_id}/activate")
async def activate_branch(
    tree_id: str,
    branch_id: str,
    service: TreeService = Depends(get_tree_service),
) -> dict[str, Any]:
    """Make the branch active without moving the current node."""
    try:
        return to_snapshot(await service.switch_branch_only(tree_id, branch_id))
    except _NOT_FOUND as e:
        raise HTTPException(status_code=404, detail=str(e))


# -- Derived views --


@router.get("/{tree_id}/path")
async def get_path(
    tree_id: str,
    node_id: str | None = Query(default=None),
    service: TreeService = Depends(get_tree_service),
) -> PathResponse:
    try:
        nodes = await service.get_path(tree_id, node_id)
    except TreeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return PathResponse(
        node_ids=[n.id for n in nodes],
        nodes=[n.model_dump(mode="json", by_alias=True) for n in nodes],
    )


@router.get("/{tree_id}/history")
async def get_history(
    tree_id: str,
    node_id: str | None = Query(default=None),
    service: TreeService = Depends(get_tree_service),
) -> list[HistoryMessage]:
    try:
        messages = await service.get_history(tree_id, node_id)
    except TreeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return [HistoryMessage(**m) for m in messages]


@router.get("/{tree_id}/layout")
async def get_layout(
    tree_id: str,
    service: TreeService = Depends(get_tree_service),
) -> LayoutResponse:
    try:
        layout = await service.get_layout(tree_id)
    except TreeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return LayoutResponse(
        positions=layout.positions,
        edges=[
            LayoutEdgeResponse(
                id=e.id, source=e.source, target=e.target, on_active_path=e.on_active_path
            )
            for e in layout.edges
        ],
    )


@router.put("/{tree_id}/positions")
async def save_positions(
    tree_id: str,
    request: SavePositionsRequest,
    service: TreeService = Depends(get_tree_service),
) -> dict[str, Any]:
    try:
        return to_snapshot(await service.save_node_positions(tree_id, request.positions))
    except _NOT_FOUND as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{tree_id}/viewport")
async def set_viewport(
    tree_id: str,
    request: ViewportRequest,
    service: TreeService = Depends(get_tree_service),
) -> dict[str, Any]:
    try:
        tree = await service.set_viewport(tree_id, request.x, request.y, request.zoom)
    except TreeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return to_snapshot(tree)
