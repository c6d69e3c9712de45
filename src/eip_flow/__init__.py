# ABOUTME: Makes the Sankey flow package importable from scripts and tests.
# ABOUTME: Re-exports the builder, schema types, and errors for convenience.

from .errors import InvalidInputError, UnresolvedWeightError
from .flow_graph import FlowLabels, FlowVariant, build_flow_graph, group_sankey, select_variant
from .schemas import CharacteristicCount, FlowEdge, FlowGraph, FlowNode, GroupCount, InterventionCount

__all__ = [
    "CharacteristicCount",
    "FlowEdge",
    "FlowGraph",
    "FlowLabels",
    "FlowNode",
    "FlowVariant",
    "GroupCount",
    "InterventionCount",
    "InvalidInputError",
    "UnresolvedWeightError",
    "build_flow_graph",
    "group_sankey",
    "select_variant",
]
