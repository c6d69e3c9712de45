# ABOUTME: Normalizes caller-supplied count tables into canonical pandas frames.
# ABOUTME: Enforces named columns, non-negative integer counts, and unique keys before graph assembly.

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd
from pandas.errors import EmptyDataError, ParserError

from .errors import InvalidInputError

GROUP_COLUMNS = ["group_name", "child_count"]
INTERVENTION_COLUMNS = ["group_name", "intervention_type", "child_count"]
CHARACTERISTIC_COLUMNS = ["category_name", "child_count"]

TableLike = Union[pd.DataFrame, Iterable]

MAX_CHILD_COUNT = np.iinfo("int64").max


def normalize_group_counts(table: TableLike, columns: Optional[Mapping[str, str]] = None) -> pd.DataFrame:
    """
    Canonical GroupCount frame: one row per group, input order preserved.
    """

    df = _to_frame(table, GROUP_COLUMNS, "group_counts", columns)
    if df.empty:
        raise InvalidInputError("group_counts must contain at least one group.")
    _check_unique(df, ["group_name"], "group_counts")
    return df


def normalize_intervention_counts(table: TableLike, columns: Optional[Mapping[str, str]] = None) -> pd.DataFrame:
    df = _to_frame(table, INTERVENTION_COLUMNS, "intervention_counts", columns)
    if df.empty:
        raise InvalidInputError("intervention_counts was supplied but contains no rows.")
    _check_unique(df, ["group_name", "intervention_type"], "intervention_counts")
    return df


def normalize_characteristic_counts(table: TableLike, columns: Optional[Mapping[str, str]] = None) -> pd.DataFrame:
    df = _to_frame(table, CHARACTERISTIC_COLUMNS, "characteristic_counts", columns)
    if df.empty:
        raise InvalidInputError("characteristic_counts was supplied but contains no rows.")
    _check_unique(df, ["category_name"], "characteristic_counts")
    return df


def read_count_table(path, columns: Optional[Mapping[str, str]] = None) -> pd.DataFrame:
    """Read a CSV count table and rename its headers to the canonical field names."""

    try:
        # Only empty cells are missing; a group may be called "NA" or "None".
        df = pd.read_csv(path, keep_default_na=False, na_values=[""])
    except (EmptyDataError, ParserError) as exc:
        raise InvalidInputError(f"{path}: cannot read count table ({exc}).") from exc
    if columns:
        df = df.rename(columns=dict(columns))
    return df


def _to_frame(
    table: TableLike,
    required: Sequence[str],
    table_name: str,
    columns: Optional[Mapping[str, str]] = None,
) -> pd.DataFrame:
    if table is None:
        raise InvalidInputError(f"{table_name} is required.")
    if isinstance(table, pd.DataFrame):
        df = table.copy()
    else:
        df = pd.DataFrame(_rows(table, table_name))
    if columns:
        df = df.rename(columns=dict(columns))

    if df.empty and not len(df.columns):
        return pd.DataFrame(columns=list(required))

    missing = [col for col in required if col not in df.columns]
    if missing:
        raise InvalidInputError(f"{table_name} is missing required column(s): {', '.join(missing)}.")

    df = df[list(required)].reset_index(drop=True).copy()
    if df.empty:
        return df

    name_columns = [col for col in required if col != "child_count"]
    for col in name_columns:
        if df[col].isna().any():
            raise InvalidInputError(f"{table_name}.{col} contains missing values.")
        df[col] = df[col].astype(str).str.strip()

    df["child_count"] = _coerce_counts(df["child_count"], table_name)
    return df


def _rows(table: Iterable, table_name: str) -> List[dict]:
    rows = []
    for row in table:
        if is_dataclass(row):
            rows.append(asdict(row))
        elif isinstance(row, Mapping):
            rows.append(dict(row))
        else:
            raise InvalidInputError(
                f"{table_name} rows must be mappings or count records with named fields, got {type(row).__name__}."
            )
    return rows


def _coerce_counts(counts: pd.Series, table_name: str) -> pd.Series:
    numeric = pd.to_numeric(counts, errors="coerce")
    if numeric.isna().any():
        raise InvalidInputError(f"{table_name}.child_count must be numeric for every row.")
    # Compared as floats so values at or beyond 2**63 cannot wrap when cast.
    as_float = numeric.astype("float64")
    if not np.isfinite(as_float).all():
        raise InvalidInputError(f"{table_name}.child_count must be finite.")
    if (numeric < 0).any():
        bad = numeric[numeric < 0].tolist()
        raise InvalidInputError(f"{table_name}.child_count must be >= 0; found {bad}.")
    if (numeric != numeric.round()).any():
        raise InvalidInputError(f"{table_name}.child_count must be whole numbers.")
    if (as_float >= float(MAX_CHILD_COUNT)).any() or as_float.sum() >= float(MAX_CHILD_COUNT):
        raise InvalidInputError(f"{table_name}.child_count is too large to total.")
    return numeric.astype("int64")


def _check_unique(df: pd.DataFrame, keys: List[str], table_name: str) -> None:
    duplicated = df.duplicated(subset=keys, keep=False)
    if duplicated.any():
        dupes = sorted({" / ".join(map(str, key)) for key in df.loc[duplicated, keys].itertuples(index=False)})
        raise InvalidInputError(f"{table_name} has duplicate {' x '.join(keys)}: {', '.join(dupes)}.")
