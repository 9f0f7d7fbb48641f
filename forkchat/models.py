"""Canonical data structures for Forkchat.

Defined once here, referenced everywhere else. Trees, nodes and branches are
frozen values: the engine in forkchat.trees.engine is the only producer of
changed trees, and it always returns a new value. Field aliases are camelCase
so that model_dump(by_alias=True) is the persisted snapshot format.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_BRANCH_ID = "main"
DEFAULT_BRANCH_NAME = "Main"


def utcnow() -> datetime:
    return datetime.now(UTC)


class _Frozen(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ---------------------------------------------------------------------------
# Tree structure
# ---------------------------------------------------------------------------


class NodeMetadata(_Frozen):
    """Informational only. Never affects structure."""

    timestamp: datetime = Field(default_factory=utcnow)
    tokens_used: int | None = None
    model: str | None = None
    temperature: float | None = None
    tags: tuple[str, ...] | None = None


class ConversationNode(_Frozen):
    """One user/assistant exchange."""

    id: str
    parent_id: str | None = None
    user_message: str
    ai_response: str
    timestamp: datetime = Field(default_factory=utcnow)
    children: tuple[str, ...] = ()
    branch_id: str = DEFAULT_BRANCH_ID
    metadata: NodeMetadata = Field(default_factory=NodeMetadata)


class Branch(_Frozen):
    """A named pointer pair over the shared node graph."""

    id: str
    name: str
    color: str | None = None
    root_node_id: str = ""  # fork origin
    leaf_node_id: str = ""  # appends go after this node while active
    is_active: bool = False


class Position(_Frozen):
    x: float
    y: float


class Viewport(_Frozen):
    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0


class ConversationTree(_Frozen):
    """Aggregate root. rootId and currentNodeId are "" for a tree with no nodes."""

    id: str
    name: str
    root_id: str = ""
    nodes: dict[str, ConversationNode] = Field(default_factory=dict)
    current_node_id: str = ""
    branches: tuple[Branch, ...] = ()
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    viewport: Viewport | None = None
    node_positions: dict[str, Position] | None = None

    @property
    def active_branch(self) -> Branch | None:
        return next((b for b in self.branches if b.is_active), None)

    def get_branch(self, branch_id: str) -> Branch | None:
        return next((b for b in self.branches if b.id == branch_id), None)


# ---------------------------------------------------------------------------
# Completion settings
# ---------------------------------------------------------------------------


class ApiSettings(BaseModel):
    """User-facing completion settings. The API key lives in the environment."""

    model: str = "claude-sonnet-4-5-20250929"
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    max_tokens: int = Field(default=4000, ge=1)
    system_prompt: str | None = None
