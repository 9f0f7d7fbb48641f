"""Request and response schemas for tree endpoints.

Tree bodies themselves are returned as snapshots (camelCase), the same shape
that is persisted.
"""

from pydantic import BaseModel, Field

from forkchat.models import Position

# -- Requests --


class CreateTreeRequest(BaseModel):
    name: str = "New Conversation"
    first_user_message: str = ""
    first_ai_response: str = ""


class RenameTreeRequest(BaseModel):
    name: str


class AppendExchangeRequest(BaseModel):
    """A finished exchange obtained outside the app."""

    user_message: str
    ai_response: str


class SendMessageRequest(BaseModel):
    """Ask the completion provider to answer from the current node."""

    content: str
    provider: str = "anthropic"


class NavigateRequest(BaseModel):
    node_id: str
    # Also activate the node's authoring branch.
    focus: bool = False


class CreateBranchRequest(BaseModel):
    fork_node_id: str
    name: str = Field(min_length=1)


class SavePositionsRequest(BaseModel):
    positions: dict[str, Position]


class ViewportRequest(BaseModel):
    x: float
    y: float
    zoom: float = Field(gt=0)


# -- Responses --


class TreeSummary(BaseModel):
    tree_id: str
    name: str
    node_count: int
    branch_count: int
    is_current: bool = False
    created_at: str
    updated_at: str


class AppendExchangeResponse(BaseModel):
    node_id: str
    tree: dict


class CreateBranchResponse(BaseModel):
    branch_id: str
    tree: dict


class PathResponse(BaseModel):
    node_ids: list[str]
    nodes: list[dict]


class HistoryMessage(BaseModel):
    role: str
    content: str


class LayoutEdgeResponse(BaseModel):
    id: str
    source: str
    target: str
    on_active_path: bool


class LayoutResponse(BaseModel):
    positions: dict[str, Position]
    edges: list[LayoutEdgeResponse]
