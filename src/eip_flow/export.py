# ABOUTME: Formats a built flow graph for Sankey widgets and downstream tables.
# ABOUTME: Emits nodes/links dicts, pandas frames, and the JSON payload handed to the renderer.

import json
from pathlib import Path
from typing import Dict, Tuple

import pandas as pd

from .schemas import FlowGraph


def to_sankey_payload(graph: FlowGraph) -> Dict:
    """
    Format a flow graph for a Sankey widget.

    Args:
        graph: Output of ``build_flow_graph``.

    Returns:
        Dict with nodes, links (source/target/value), and metadata.
    """
    nodes = [{"index": node.index, "name": node.name, "label": node.label} for node in graph.nodes]
    links = [
        {
            "source": edge.source_index,
            "target": edge.target_index,
            "value": edge.weight,
            "children": edge.child_count,
        }
        for edge in graph.edges
    ]
    return {
        "nodes": nodes,
        "links": links,
        "metadata": {
            "total_children": graph.total_child_count,
            "total_nodes": len(nodes),
            "total_flows": len(links),
        },
    }


def graph_frames(graph: FlowGraph) -> Tuple[pd.DataFrame, pd.DataFrame]:
    nodes_df = pd.DataFrame(
        {
            "index": [node.index for node in graph.nodes],
            "name": [node.name for node in graph.nodes],
            "label": [node.label for node in graph.nodes],
        }
    )
    names = dict(zip(nodes_df["index"], nodes_df["name"]))
    links_df = pd.DataFrame(
        {
            "source": [edge.source_index for edge in graph.edges],
            "target": [edge.target_index for edge in graph.edges],
            "value": [edge.weight for edge in graph.edges],
            "children": [edge.child_count for edge in graph.edges],
        }
    )
    links_df["source_name"] = links_df["source"].map(names)
    links_df["target_name"] = links_df["target"].map(names)
    return nodes_df, links_df


def write_sankey_json(graph: FlowGraph, output_path: Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(to_sankey_payload(graph), indent=2), encoding="utf-8")
    return output_path
