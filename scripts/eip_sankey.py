# ABOUTME: CLI that builds the children's services Sankey node/link lists from count tables.
# ABOUTME: Prints the assembled graph, writes the JSON payload, and publishes it to a shared folder.

from pathlib import Path
from typing import Optional, Tuple

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from src.eip_flow.config import SankeyConfig, load_config
from src.eip_flow.errors import InvalidInputError, UnresolvedWeightError
from src.eip_flow.export import write_sankey_json
from src.eip_flow.flow_graph import build_flow_graph, select_variant
from src.eip_flow.publish import publish_artifact
from src.eip_flow.schemas import FlowGraph

console = Console()
app = typer.Typer(help="Turn child counts by group into Sankey nodes and links.")


def _default_config() -> Path:
    return Path("configs/eip_sankey.yaml")


def _load_graph(config_path: Path) -> Tuple[SankeyConfig, FlowGraph]:
    if not config_path.exists():
        console.print(f"[red]Error:[/] config not found at {config_path}")
        raise typer.Exit(code=1)
    try:
        cfg = load_config(config_path)
        sources = [cfg.groups, cfg.interventions, cfg.characteristics]
        for source in sources:
            if source is not None and not source.path.exists():
                console.print(f"[red]Error:[/] count table not found at {source.path}")
                raise typer.Exit(code=1)

        interventions = cfg.interventions.load() if cfg.interventions else None
        characteristics = cfg.characteristics.load() if cfg.characteristics else None
        typer.echo(f"[sankey] Layout: {select_variant(interventions, characteristics).value}")
        graph = build_flow_graph(cfg.groups.load(), interventions, characteristics, cfg.labels)
    except (InvalidInputError, UnresolvedWeightError) as exc:
        console.print(f"[red]Error:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    return cfg, graph


def _print_graph(graph: FlowGraph) -> None:
    console.print(f"[bold]Children:[/] {graph.total_child_count:,}")

    node_table = Table(title="Nodes", show_header=True, header_style="bold magenta")
    node_table.add_column("Index", justify="right")
    node_table.add_column("Label")
    for node in graph.nodes:
        node_table.add_row(str(node.index), node.label)
    console.print(node_table)

    names = {node.index: node.name for node in graph.nodes}
    link_table = Table(title="Links", show_header=True, header_style="bold magenta")
    link_table.add_column("Source")
    link_table.add_column("Target")
    link_table.add_column("Children", justify="right")
    link_table.add_column("Weight", justify="right")
    for edge in graph.edges:
        link_table.add_row(
            f"{edge.source_index} {names[edge.source_index]}",
            f"{edge.target_index} {names[edge.target_index]}",
            f"{edge.child_count:,}",
            f"{edge.weight:.2f}",
        )
    console.print(link_table)


@app.command()
def build(
    config: Path = typer.Option(_default_config(), "--config", help="Sankey config YAML."),
    output: Optional[Path] = typer.Option(None, "--output", help="Override the JSON output path from the config."),
    publish: bool = typer.Option(False, "--publish", help="Also copy the JSON into the configured publish_dir."),
) -> None:
    """
    Build the Sankey node/link lists and write them as JSON.
    """
    console.rule("[bold blue]EIP Sankey[/bold blue]")
    cfg, graph = _load_graph(config)
    _print_graph(graph)

    output_path = write_sankey_json(graph, output or cfg.output_path)
    typer.echo(f"[sankey] Wrote {len(graph.nodes)} nodes and {len(graph.edges)} links to {output_path}")

    if publish:
        _publish(output_path, cfg)


@app.command()
def show(
    config: Path = typer.Option(_default_config(), "--config", help="Sankey config YAML."),
) -> None:
    """
    Print the nodes and links without writing anything.
    """
    _, graph = _load_graph(config)
    _print_graph(graph)


@app.command()
def publish(
    source: Path = typer.Option(..., "--source", help="Artifact to copy, e.g. reports/sankey.html."),
    dest_dir: Path = typer.Option(..., "--dest-dir", help="Shared folder receiving the copy."),
) -> None:
    """
    Copy an artifact into the shared output folder, replacing any previous copy.
    """
    try:
        destination = publish_artifact(source, dest_dir)
    except FileNotFoundError as exc:
        console.print(f"[red]Error:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    typer.echo(f"[sankey] Published {source} -> {destination}")


def _publish(output_path: Path, cfg: SankeyConfig) -> None:
    if cfg.publish_dir is None:
        typer.echo("[sankey] No publish_dir configured; skipping publish.")
        return
    destination = publish_artifact(output_path, cfg.publish_dir)
    typer.echo(f"[sankey] Published {output_path} -> {destination}")


if __name__ == "__main__":
    app()
