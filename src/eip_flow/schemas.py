# ABOUTME: Defines the count rows consumed and the flow nodes/edges produced by the Sankey builder.
# ABOUTME: Centralizes the named-field contract shared by tables, builder, and exporters.

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class GroupCount:
    """Children falling into a named top-level group (e.g. "1 SC", "3 EH")."""

    group_name: str
    child_count: int


@dataclass(frozen=True)
class InterventionCount:
    """Children in a group broken down by intervention type (e.g. CIN, CPP, CLA)."""

    group_name: str
    intervention_type: str
    child_count: int


@dataclass(frozen=True)
class CharacteristicCount:
    """Independent partition of the cohort by a characteristic such as age band."""

    category_name: str
    child_count: int


@dataclass(frozen=True)
class FlowNode:
    index: int
    label: str
    name: str = ""


@dataclass(frozen=True)
class FlowEdge:
    source_index: int
    target_index: int
    weight: float
    child_count: int = 0


@dataclass(frozen=True)
class FlowGraph:
    """Node-indexed flow graph ready to hand to a Sankey widget."""

    nodes: Tuple[FlowNode, ...]
    edges: Tuple[FlowEdge, ...]
    total_child_count: int
    _by_name: Dict[str, FlowNode] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._by_name.update({node.name: node for node in self.nodes})

    def node(self, name: str) -> Optional[FlowNode]:
        return self._by_name.get(name)

    def index_of(self, name: str) -> int:
        node = self._by_name.get(name)
        if node is None:
            raise KeyError(name)
        return node.index

    def edge(self, source: str, target: str) -> Optional[FlowEdge]:
        source_index = self.index_of(source)
        target_index = self.index_of(target)
        for edge in self.edges:
            if edge.source_index == source_index and edge.target_index == target_index:
                return edge
        return None

    def outgoing(self, index: int) -> Tuple[FlowEdge, ...]:
        return tuple(edge for edge in self.edges if edge.source_index == index)

    def incoming(self, index: int) -> Tuple[FlowEdge, ...]:
        return tuple(edge for edge in self.edges if edge.target_index == index)
