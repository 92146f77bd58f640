"""
Normalization rules for wiregraph.

Rules repair the neighbourhood of an edit so that the graph stays free of
coincident vertices, redundant bends, duplicate edges and dead vertices.
"""

from wiregraph.rules.base import CullPolicy, GraphRule, ResolutionContext
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
from wiregraph.rules.ruleset import DEFAULT_MAX_PASSES, Ruleset, default_rules

__all__ = [
    "CullPolicy",
    "GraphRule",
    "ResolutionContext",
    "SnapToGridRule",
    "MergeCoincidentRule",
    "SplitEdgesAtVerticesRule",
    "CollapseCollinearRule",
    "DeduplicateEdgesRule",
    "CullIsolatedRule",
    "UnifyClustersRule",
    "DEFAULT_MAX_PASSES",
    "Ruleset",
    "default_rules",
]
