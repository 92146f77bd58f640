"""
Transaction engine for wiregraph.

The engine exclusively owns the live GraphState. ``execute`` applies one
transaction, re-normalizes the transaction's neighbourhood with the rule
pipeline and reports what changed. Every call is atomic: if the
transaction or a rule fails, the state is restored to its snapshot from
before the call.
"""

from typing import Callable, Iterable, List, Optional
import logging

from wiregraph.core.geometry import GeometryPolicy
from wiregraph.core.graph import GraphState, Vertex, VertexID
from wiregraph.engine.delta import GraphDelta, compute_delta
from wiregraph.exceptions import GraphIntegrityError, TransactionError
from wiregraph.rules import CullPolicy, ResolutionContext, Ruleset
from wiregraph.transactions import GraphTransaction, NormalizeTransaction, TransactionContext

logger = logging.getLogger(__name__)

# Called with (delta, state) after every change
ChangeListener = Callable[[GraphDelta, GraphState], None]


def _combine_cull_policies(
    first: Optional[CullPolicy], second: Optional[CullPolicy]
) -> Optional[CullPolicy]:
    """Both policies must approve a cull."""
    if first is None:
        return second
    if second is None:
        return first

    def combined(vertex: Vertex, state: GraphState) -> bool:
        return first(vertex, state) and second(vertex, state)

    return combined


class TransactionEngine:
    """
    Applies transactions to a graph and keeps it normalized.

    Args:
        geometry: Active geometry policy
        state: Initial graph (empty if omitted)
        ruleset: Rule pipeline (the default pipeline if omitted)
        cull_policy: Application veto on culling isolated vertices
        strict: Re-raise failures as TransactionError and verify graph
            integrity after every transaction
    """

    def __init__(
        self,
        geometry: GeometryPolicy,
        state: Optional[GraphState] = None,
        ruleset: Optional[Ruleset] = None,
        cull_policy: Optional[CullPolicy] = None,
        strict: bool = False,
    ):
        self._geometry = geometry
        self._state = state if state is not None else GraphState()
        self._ruleset = ruleset or Ruleset()
        self._cull_policy = cull_policy
        self._strict = strict
        self._listeners: List[ChangeListener] = []

    @property
    def state(self) -> GraphState:
        """The live graph. Read it, never mutate it directly."""
        return self._state

    @property
    def geometry(self) -> GeometryPolicy:
        return self._geometry

    @property
    def ruleset(self) -> Ruleset:
        return self._ruleset

    @property
    def strict(self) -> bool:
        return self._strict

    def execute(
        self,
        transaction: GraphTransaction,
        protected: Iterable[VertexID] = (),
        cull_policy: Optional[CullPolicy] = None,
    ) -> GraphDelta:
        """
        Apply a transaction and normalize its neighbourhood.

        Args:
            transaction: The mutation to apply
            protected: Vertices rules must leave in place for this call
            cull_policy: Extra cull veto for this call, combined with the
                engine's own

        Returns:
            What changed; empty if nothing did or the transaction failed
        """
        before = self._state.copy()

        try:
            epicenter = transaction.apply(self._state, TransactionContext(self._geometry))
            if not transaction.metadata_only:
                context = ResolutionContext.around(
                    self._state,
                    epicenter,
                    self._geometry,
                    cull_policy=_combine_cull_policies(self._cull_policy, cull_policy),
                    protected=protected,
                )
                self._ruleset.resolve(self._state, context)
            if self._strict:
                errors = self._state.integrity_errors()
                if errors:
                    raise GraphIntegrityError(errors)
        except Exception as exc:
            logger.exception("Transaction '%s' failed; rolling back", transaction.description)
            self._state = before
            if self._strict:
                raise TransactionError(transaction.description, exc) from exc
            return GraphDelta()

        transaction.committed()
        delta = compute_delta(before, self._state)
        logger.debug(
            "%s: +%d/-%d vertices, +%d/-%d edges, %d changed",
            transaction.description,
            len(delta.created_vertices),
            len(delta.deleted_vertices),
            len(delta.created_edges),
            len(delta.deleted_edges),
            len(delta.changed_vertices),
        )
        self._notify(delta)
        return delta

    def resolve(self, vertex_ids: Iterable[VertexID], protected: Iterable[VertexID] = ()) -> GraphDelta:
        """Re-run the rules around existing vertices."""
        return self.execute(NormalizeTransaction(vertex_ids), protected=protected)

    def snapshot(self) -> GraphState:
        """Independent copy of the current graph, for later ``restore``."""
        return self._state.copy()

    def restore(self, snapshot: GraphState) -> GraphDelta:
        """Roll the graph back (or forward) to a snapshot."""
        return self.replace_state(snapshot.copy())

    def replace_state(self, state: GraphState) -> GraphDelta:
        """
        Swap in a different graph without running rules.

        Used for loading documents and snapshot restores. Callers that want
        a loaded graph normalized follow up with ``resolve``.
        """
        before = self._state
        self._state = state
        delta = compute_delta(before, state)
        logger.debug("State replaced: %d vertices changed", len(delta.changed_vertices))
        self._notify(delta)
        return delta

    def add_listener(self, listener: ChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, delta: GraphDelta) -> None:
        if delta.is_empty:
            return
        for listener in list(self._listeners):
            try:
                listener(delta, self._state)
            except Exception:
                logger.exception("Change listener %r failed", listener)
