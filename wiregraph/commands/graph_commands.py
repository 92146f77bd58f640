"""
Undoable graph commands.

Both commands undo by restoring engine snapshots, which returns the graph
exactly to its earlier vertex and edge sets whatever the rules did.
"""

from typing import Iterable, Optional, TYPE_CHECKING
import logging

from wiregraph.commands.base import Command
from wiregraph.core.graph import GraphState, VertexID
from wiregraph.transactions import GraphTransaction

if TYPE_CHECKING:
    from wiregraph.engine import TransactionEngine

logger = logging.getLogger(__name__)


class TransactionCommand(Command):
    """
    Run one transaction through the engine.

    The first execution applies the transaction; redo restores the state
    captured after it, so redo does not depend on fresh ids matching.
    """

    def __init__(
        self,
        engine: "TransactionEngine",
        transaction: GraphTransaction,
        protected: Iterable[VertexID] = (),
    ):
        self._engine = engine
        self._transaction = transaction
        self._protected = tuple(protected)
        self._before: Optional[GraphState] = None
        self._after: Optional[GraphState] = None

    @property
    def description(self) -> str:
        return self._transaction.description

    @property
    def transaction(self) -> GraphTransaction:
        return self._transaction

    def execute(self) -> None:
        if self._after is not None:
            self._engine.restore(self._after)
            return

        self._before = self._engine.snapshot()
        self._engine.execute(self._transaction, protected=self._protected)
        self._after = self._engine.snapshot()

    def undo(self) -> None:
        if self._before is None:
            logger.warning("Undo of '%s' before it ran; ignoring", self.description)
            return
        self._engine.restore(self._before)


class SnapshotCommand(Command):
    """Switch between two recorded graph states (e.g. around a finished route)."""

    def __init__(
        self,
        engine: "TransactionEngine",
        before: GraphState,
        after: GraphState,
        description: str,
    ):
        self._engine = engine
        self._before = before
        self._after = after
        self._description = description

    @property
    def description(self) -> str:
        return self._description

    def execute(self) -> None:
        self._engine.restore(self._after)

    def undo(self) -> None:
        self._engine.restore(self._before)
