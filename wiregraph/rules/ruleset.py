"""
Ordered rule pipeline with fixed-point iteration.

One resolution pass runs every rule once, in order. Vertices touched by a
pass become the epicenter of the next, so cascades (a merge exposing a
collinear bend, a collapse leaving an isolated vertex) are settled before
the engine returns. Iteration stops at the first pass that changes
nothing, or after ``max_passes``.
"""

from typing import List, Optional, Sequence, Set
import logging

from wiregraph.core.graph import GraphState, VertexID
from wiregraph.rules.base import GraphRule, ResolutionContext
from wiregraph.rules.geometric import (
    CollapseCollinearRule,
    MergeCoincidentRule,
    SnapToGridRule,
    SplitEdgesAtVerticesRule,
)
from wiregraph.rules.topology import (
    CullIsolatedRule,
    DeduplicateEdgesRule,
    UnifyClustersRule,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 8


def default_rules() -> List[GraphRule]:
    """The standard wire normalization pipeline, in execution order."""
    return [
        SnapToGridRule(),
        MergeCoincidentRule(),
        SplitEdgesAtVerticesRule(),
        CollapseCollinearRule(),
        DeduplicateEdgesRule(),
        CullIsolatedRule(),
        UnifyClustersRule(),
    ]


class Ruleset:
    """Fixed, explicitly ordered list of rules."""

    def __init__(
        self,
        rules: Optional[Sequence[GraphRule]] = None,
        max_passes: int = DEFAULT_MAX_PASSES,
    ):
        if max_passes < 1:
            raise ValueError(f"max_passes must be at least 1, got {max_passes!r}")
        self._rules: List[GraphRule] = list(rules) if rules is not None else default_rules()
        self._max_passes = max_passes

    @property
    def rules(self) -> List[GraphRule]:
        return list(self._rules)

    @property
    def max_passes(self) -> int:
        return self._max_passes

    def resolve(self, state: GraphState, context: ResolutionContext) -> Set[VertexID]:
        """
        Run the pipeline until nothing changes.

        Args:
            state: Graph to normalize in place
            context: Initial resolution context

        Returns:
            Every vertex touched by any rule
        """
        touched_total: Set[VertexID] = set()

        for pass_number in range(1, self._max_passes + 1):
            touched: Set[VertexID] = set()
            for rule in self._rules:
                changed = rule.apply(state, context)
                if changed:
                    logger.debug(
                        "Pass %d: rule '%s' touched %d vertices",
                        pass_number,
                        rule.name,
                        len(changed),
                    )
                    touched |= changed

            if not touched:
                return touched_total

            touched_total |= touched
            context = context.reseeded(state, context.epicenter | touched)

        logger.warning(
            "Resolution did not settle after %d passes (epicenter=%d vertices)",
            self._max_passes,
            len(context.epicenter),
        )
        return touched_total

    def __repr__(self) -> str:
        names = ", ".join(rule.name for rule in self._rules)
        return f"Ruleset([{names}], max_passes={self._max_passes})"
