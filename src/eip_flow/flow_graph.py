# ABOUTME: Assembles layered Sankey flow graphs from group, intervention, and characteristic counts.
# ABOUTME: Allocates node indices tier by tier and resolves edge weights as shares of the cohort total.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd

from .errors import InvalidInputError, UnresolvedWeightError
from .schemas import FlowEdge, FlowGraph, FlowNode
from .tables import (
    TableLike,
    normalize_characteristic_counts,
    normalize_group_counts,
    normalize_intervention_counts,
)

WEIGHT_DECIMALS = 2
ROOT_ROUNDING = -2

EdgePlan = List[Tuple[str, str]]


class FlowVariant(Enum):
    BASE = "base"
    WITH_INTERVENTION = "with_intervention"
    WITH_CHARACTERISTIC = "with_characteristic"
    WITH_BOTH = "with_both"


@dataclass(frozen=True)
class FlowLabels:
    """Names of the fixed nodes in the group skeleton."""

    root: str = "Children"
    early_help: str = "Early Help"
    direct_group: str = "1 SC"


@dataclass(frozen=True)
class _Tables:
    groups: pd.DataFrame
    interventions: Optional[pd.DataFrame] = None
    characteristics: Optional[pd.DataFrame] = None

    @property
    def total(self) -> int:
        return int(self.groups["child_count"].sum())


class _NodeArena:
    """Hands out dense indices in the order nodes are added; repeated names share one slot."""

    def __init__(self) -> None:
        self._names: List[str] = []
        self._index: Dict[str, int] = {}

    def add(self, name: str) -> int:
        if name not in self._index:
            self._index[name] = len(self._names)
            self._names.append(name)
        return self._index[name]

    def __getitem__(self, name: str) -> int:
        return self._index[name]

    def __len__(self) -> int:
        return len(self._names)

    @property
    def names(self) -> List[str]:
        return list(self._names)


def select_variant(intervention_counts: Optional[TableLike], characteristic_counts: Optional[TableLike]) -> FlowVariant:
    has_intervention = intervention_counts is not None
    has_characteristic = characteristic_counts is not None
    if has_intervention and has_characteristic:
        return FlowVariant.WITH_BOTH
    if has_intervention:
        return FlowVariant.WITH_INTERVENTION
    if has_characteristic:
        return FlowVariant.WITH_CHARACTERISTIC
    return FlowVariant.BASE


def build_flow_graph(
    group_counts: TableLike,
    intervention_counts: Optional[TableLike] = None,
    characteristic_counts: Optional[TableLike] = None,
    labels: FlowLabels = FlowLabels(),
) -> FlowGraph:
    """
    Build the node-indexed Sankey graph for a cohort of children.

    Tiers, left to right:
    - characteristic categories (optional), each feeding the root;
    - the root node holding the whole cohort;
    - the direct group and the derived Early Help aggregate;
    - the remaining groups under Early Help;
    - intervention types (optional), fed by every group in the intervention table.

    Every weight is the edge's child count over the total of ``group_counts``,
    rounded to two decimals. The Early Help edge always carries the sum of all
    groups other than the direct group. Raises ``InvalidInputError`` for bad
    tables and ``UnresolvedWeightError`` when an edge has no matching count.
    """

    variant = select_variant(intervention_counts, characteristic_counts)
    tables = _Tables(
        groups=normalize_group_counts(group_counts),
        interventions=None if intervention_counts is None else normalize_intervention_counts(intervention_counts),
        characteristics=None if characteristic_counts is None else normalize_characteristic_counts(characteristic_counts),
    )
    _validate(tables, labels)

    arena = _NodeArena()
    plan = _ASSEMBLERS[variant](tables, labels, arena)

    edges_df = pd.DataFrame(plan, columns=["source", "target"])
    edges_df["children"] = _resolve_counts(edges_df, tables, labels)
    edges_df["weight"] = (edges_df["children"] / tables.total).round(WEIGHT_DECIMALS)
    edges_df["source_index"] = edges_df["source"].map(arena.__getitem__)
    edges_df["target_index"] = edges_df["target"].map(arena.__getitem__)

    edges = tuple(
        FlowEdge(
            source_index=int(row.source_index),
            target_index=int(row.target_index),
            weight=float(row.weight),
            child_count=int(row.children),
        )
        for row in edges_df.itertuples(index=False)
    )
    nodes = tuple(
        FlowNode(index=index, label=label, name=name)
        for index, (name, label) in enumerate(zip(arena.names, _node_labels(arena, edges_df, tables, labels)))
    )
    return FlowGraph(nodes=nodes, edges=edges, total_child_count=tables.total)


def group_sankey(
    group_counts: TableLike,
    intervention_counts: Optional[TableLike] = None,
    characteristic_counts: Optional[TableLike] = None,
    labels: FlowLabels = FlowLabels(),
) -> Tuple[List[FlowNode], List[FlowEdge]]:
    """Return ``(nodes, edges)`` in index order, ready for a Sankey widget."""

    graph = build_flow_graph(group_counts, intervention_counts, characteristic_counts, labels)
    return list(graph.nodes), list(graph.edges)


def _validate(tables: _Tables, labels: FlowLabels) -> None:
    if tables.total == 0:
        raise InvalidInputError("group_counts total is zero; percentages are undefined.")

    group_names = tables.groups["group_name"].tolist()
    for fixed in (labels.root, labels.early_help):
        if fixed in group_names:
            raise InvalidInputError(f"group_counts may not contain a group named '{fixed}'.")
    taken = {labels.root, labels.early_help, labels.direct_group, *group_names}

    if tables.interventions is not None:
        unknown = sorted(set(tables.interventions["group_name"]) - set(group_names))
        if unknown:
            raise InvalidInputError(f"intervention_counts references unknown group(s): {', '.join(unknown)}.")
        clashes = sorted(set(tables.interventions["intervention_type"]) & taken)
        if clashes:
            raise InvalidInputError(f"intervention type(s) reuse existing node names: {', '.join(clashes)}.")
        taken |= set(tables.interventions["intervention_type"])

    if tables.characteristics is not None:
        clashes = sorted(set(tables.characteristics["category_name"]) & taken)
        if clashes:
            raise InvalidInputError(f"characteristic categories reuse existing node names: {', '.join(clashes)}.")


def _characteristic_tier(tables: _Tables, labels: FlowLabels, arena: _NodeArena) -> EdgePlan:
    categories = tables.characteristics["category_name"].tolist()
    for category in categories:
        arena.add(category)
    return [(category, labels.root) for category in categories]


def _group_tiers(tables: _Tables, labels: FlowLabels, arena: _NodeArena) -> EdgePlan:
    early_help_groups = [name for name in tables.groups["group_name"] if name != labels.direct_group]
    for name in [labels.root, labels.direct_group, labels.early_help, *early_help_groups]:
        arena.add(name)
    plan = [(labels.root, labels.direct_group), (labels.root, labels.early_help)]
    plan.extend((labels.early_help, name) for name in early_help_groups)
    return plan


def _intervention_tier(tables: _Tables, labels: FlowLabels, arena: _NodeArena) -> EdgePlan:
    sources = tables.interventions["group_name"].drop_duplicates().tolist()
    types = tables.interventions["intervention_type"].drop_duplicates().tolist()
    for intervention_type in types:
        arena.add(intervention_type)
    return [(source, intervention_type) for source in sources for intervention_type in types]


def _assemble_base(tables: _Tables, labels: FlowLabels, arena: _NodeArena) -> EdgePlan:
    return _group_tiers(tables, labels, arena)


def _assemble_with_intervention(tables: _Tables, labels: FlowLabels, arena: _NodeArena) -> EdgePlan:
    plan = _group_tiers(tables, labels, arena)
    return plan + _intervention_tier(tables, labels, arena)


def _assemble_with_characteristic(tables: _Tables, labels: FlowLabels, arena: _NodeArena) -> EdgePlan:
    plan = _characteristic_tier(tables, labels, arena)
    return plan + _group_tiers(tables, labels, arena)


def _assemble_with_both(tables: _Tables, labels: FlowLabels, arena: _NodeArena) -> EdgePlan:
    plan = _characteristic_tier(tables, labels, arena)
    plan += _group_tiers(tables, labels, arena)
    return plan + _intervention_tier(tables, labels, arena)


_ASSEMBLERS: Dict[FlowVariant, Callable[[_Tables, FlowLabels, _NodeArena], EdgePlan]] = {
    FlowVariant.BASE: _assemble_base,
    FlowVariant.WITH_INTERVENTION: _assemble_with_intervention,
    FlowVariant.WITH_CHARACTERISTIC: _assemble_with_characteristic,
    FlowVariant.WITH_BOTH: _assemble_with_both,
}


def _resolve_counts(edges_df: pd.DataFrame, tables: _Tables, labels: FlowLabels) -> pd.Series:
    """
    Look up each edge's child count.

    Priority: group count by target name, then intervention count by
    (source, target), then characteristic count by source name. The Early Help
    edge is always the sum of every group except the direct one.
    """

    resolved = edges_df[["source", "target"]].merge(
        tables.groups.rename(columns={"group_name": "target", "child_count": "children"}),
        on="target",
        how="left",
        validate="many_to_one",
    )

    if tables.interventions is not None:
        by_pair = tables.interventions.rename(
            columns={"group_name": "source", "intervention_type": "target", "child_count": "intervention_children"}
        )
        resolved = resolved.merge(by_pair, on=["source", "target"], how="left", validate="many_to_one")
        resolved["children"] = resolved["children"].fillna(resolved["intervention_children"])

    if tables.characteristics is not None:
        by_category = tables.characteristics.rename(
            columns={"category_name": "source", "child_count": "characteristic_children"}
        )
        resolved = resolved.merge(by_category, on="source", how="left", validate="many_to_one")
        resolved["children"] = resolved["children"].fillna(resolved["characteristic_children"])

    groups = tables.groups
    early_help_total = groups.loc[groups["group_name"] != labels.direct_group, "child_count"].sum()
    resolved.loc[resolved["target"] == labels.early_help, "children"] = early_help_total

    missing = resolved[resolved["children"].isna()]
    if not missing.empty:
        raise UnresolvedWeightError(zip(missing["source"], missing["target"]))
    return resolved["children"].astype("int64").set_axis(edges_df.index)


def _node_labels(arena: _NodeArena, edges_df: pd.DataFrame, tables: _Tables, labels: FlowLabels) -> List[str]:
    inbound = edges_df.groupby("target_index")["weight"].sum()
    outbound = edges_df.groupby("source_index")["weight"].sum()

    result = []
    for index, name in enumerate(arena.names):
        if name == labels.root:
            result.append(f"{name} ({round(tables.total, ROOT_ROUNDING):,})")
            continue
        # Fan-in nodes show the sum of their inbound shares; source-only nodes show what they send.
        share = inbound.get(index, outbound.get(index, 0.0))
        result.append(f"{name} ({_format_percent(share)}%)")
    return result


def _format_percent(share: float) -> str:
    percent = round(float(share) * 100, WEIGHT_DECIMALS)
    if percent == int(percent):
        return str(int(percent))
    return f"{percent:g}"
