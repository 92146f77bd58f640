"""Transaction engine and change reporting."""

from wiregraph.engine.delta import GraphDelta, compute_delta
from wiregraph.engine.engine import ChangeListener, TransactionEngine

__all__ = [
    "GraphDelta",
    "compute_delta",
    "ChangeListener",
    "TransactionEngine",
]
