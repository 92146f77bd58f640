"""Graph transactions for wiregraph."""

from wiregraph.transactions.base import (
    GraphTransaction,
    TransactionContext,
    get_or_create_vertex,
)
from wiregraph.transactions.edit import (
    BindPinTransaction,
    ConnectToPointTransaction,
    DeleteElementsTransaction,
    InsertEdgeTransaction,
    InsertVertexTransaction,
    MoveVertexTransaction,
    NormalizeTransaction,
    ReleasePinsTransaction,
    SetEdgeAttributesTransaction,
)

__all__ = [
    "GraphTransaction",
    "TransactionContext",
    "get_or_create_vertex",
    "BindPinTransaction",
    "ConnectToPointTransaction",
    "DeleteElementsTransaction",
    "InsertEdgeTransaction",
    "InsertVertexTransaction",
    "MoveVertexTransaction",
    "NormalizeTransaction",
    "ReleasePinsTransaction",
    "SetEdgeAttributesTransaction",
]
