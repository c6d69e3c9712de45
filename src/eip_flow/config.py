# ABOUTME: Loads the Sankey build configuration from YAML.
# ABOUTME: Maps table locations, column renames, node names, and output paths into frozen dataclasses.

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

import pandas as pd
import yaml

from .errors import InvalidInputError
from .flow_graph import FlowLabels
from .tables import read_count_table


@dataclass(frozen=True)
class TableSource:
    """A CSV count table plus the header renames that map it onto named fields."""

    path: Path
    columns: Mapping[str, str] = field(default_factory=dict)

    def load(self) -> pd.DataFrame:
        return read_count_table(self.path, self.columns)


@dataclass(frozen=True)
class SankeyConfig:
    groups: TableSource
    interventions: Optional[TableSource] = None
    characteristics: Optional[TableSource] = None
    labels: FlowLabels = FlowLabels()
    output_path: Path = Path("reports/sankey.json")
    publish_dir: Optional[Path] = None


def load_config(config_path: Path) -> SankeyConfig:
    """Read a YAML config; relative paths resolve against the config file's folder."""

    config_path = Path(config_path)
    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}

    base_dir = config_path.resolve().parent
    tables_cfg = cfg.get("tables") or {}
    if "groups" not in tables_cfg:
        raise InvalidInputError(f"{config_path}: 'tables.groups' is required.")

    output_cfg = cfg.get("output") or {}
    publish_dir = output_cfg.get("publish_dir")
    return SankeyConfig(
        groups=_table_source(tables_cfg["groups"], base_dir, "groups"),
        interventions=_optional_table(tables_cfg.get("interventions"), base_dir, "interventions"),
        characteristics=_optional_table(tables_cfg.get("characteristics"), base_dir, "characteristics"),
        labels=_labels(cfg.get("labels") or {}, config_path),
        output_path=_resolve(output_cfg.get("path", "reports/sankey.json"), base_dir),
        publish_dir=_resolve(publish_dir, base_dir) if publish_dir else None,
    )


def _optional_table(entry, base_dir: Path, name: str) -> Optional[TableSource]:
    if not entry:
        return None
    return _table_source(entry, base_dir, name)


def _table_source(entry, base_dir: Path, name: str) -> TableSource:
    if isinstance(entry, str):
        return TableSource(path=_resolve(entry, base_dir))
    if not isinstance(entry, dict) or "path" not in entry:
        raise InvalidInputError(f"tables.{name} needs a 'path'.")
    columns: Dict[str, str] = dict(entry.get("columns") or {})
    return TableSource(path=_resolve(entry["path"], base_dir), columns=columns)


def _resolve(value, base_dir: Path) -> Path:
    path = Path(value)
    return path if path.is_absolute() else base_dir / path


def _labels(entry: Mapping[str, str], config_path: Path) -> FlowLabels:
    try:
        return FlowLabels(**entry)
    except TypeError as exc:
        raise InvalidInputError(f"{config_path}: unknown key under 'labels' ({exc}).") from exc
