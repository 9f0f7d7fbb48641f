"""Identifier generation for trees, nodes and branches."""

import time
from typing import Literal
from uuid import uuid4

IdKind = Literal["tree", "node", "branch"]


def new_id(kind: IdKind) -> str:
    """Time-prefixed id with a random suffix, unique within a running session."""
    return f"{kind}_{int(time.time() * 1000)}_{uuid4().hex[:9]}"
