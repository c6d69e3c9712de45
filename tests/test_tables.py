# ABOUTME: Tests normalization of caller-supplied count tables.
# ABOUTME: Ensures named columns, renames, whole non-negative counts, and unique keys are enforced.

import pandas as pd
import pytest

from src.eip_flow.errors import InvalidInputError
from src.eip_flow.schemas import CharacteristicCount, GroupCount
from src.eip_flow.tables import (
    normalize_characteristic_counts,
    normalize_group_counts,
    normalize_intervention_counts,
    read_count_table,
)


def test_normalize_group_counts_keeps_named_columns_in_order():
    df = pd.DataFrame(
        {
            "extra": ["x", "y"],
            "child_count": [5.0, 7.0],
            "group_name": [" 1 SC", "3 EH "],
        }
    )
    normalized = normalize_group_counts(df)
    assert list(normalized.columns) == ["group_name", "child_count"]
    assert normalized["group_name"].tolist() == ["1 SC", "3 EH"]
    assert normalized["child_count"].dtype == "int64"


def test_normalize_accepts_records_and_mappings():
    from_records = normalize_characteristic_counts([CharacteristicCount("0-4", 3), CharacteristicCount("5-10", 4)])
    from_dicts = normalize_characteristic_counts(
        [{"category_name": "0-4", "child_count": 3}, {"category_name": "5-10", "child_count": 4}]
    )
    pd.testing.assert_frame_equal(from_records, from_dicts)


def test_column_renames_map_source_headers():
    df = pd.DataFrame({"GROUP": ["1 SC"], "CHILDREN": [12]})
    normalized = normalize_group_counts(df, columns={"GROUP": "group_name", "CHILDREN": "child_count"})
    assert normalized.iloc[0].to_dict() == {"group_name": "1 SC", "child_count": 12}


def test_missing_column_is_reported():
    df = pd.DataFrame({"group_name": ["1 SC"], "children": [3]})
    with pytest.raises(InvalidInputError, match="child_count"):
        normalize_group_counts(df)


def test_positional_rows_are_rejected():
    with pytest.raises(InvalidInputError, match="named fields"):
        normalize_group_counts([("1 SC", 4)])


def test_fractional_and_non_numeric_counts_are_rejected():
    with pytest.raises(InvalidInputError, match="whole"):
        normalize_group_counts([GroupCount("1 SC", 2.5)])
    with pytest.raises(InvalidInputError, match="numeric"):
        normalize_group_counts([{"group_name": "1 SC", "child_count": "many"}])


def test_duplicate_keys_are_rejected():
    with pytest.raises(InvalidInputError, match="duplicate"):
        normalize_group_counts([GroupCount("1 SC", 1), GroupCount("1 SC", 2)])
    rows = [
        {"group_name": "1 SC", "intervention_type": "CIN", "child_count": 1},
        {"group_name": "1 SC", "intervention_type": "CIN", "child_count": 2},
    ]
    with pytest.raises(InvalidInputError, match="1 SC / CIN"):
        normalize_intervention_counts(rows)


def test_same_intervention_type_across_groups_is_allowed():
    rows = [
        {"group_name": "1 SC", "intervention_type": "CIN", "child_count": 1},
        {"group_name": "2 EH SC", "intervention_type": "CIN", "child_count": 2},
    ]
    assert len(normalize_intervention_counts(rows)) == 2


def test_empty_optional_tables_are_rejected():
    with pytest.raises(InvalidInputError):
        normalize_intervention_counts([])
    with pytest.raises(InvalidInputError):
        normalize_characteristic_counts([])


def test_read_count_table_renames_headers(tmp_path):
    csv_path = tmp_path / "groups.csv"
    csv_path.write_text("GROUP,CHILDREN\n1 SC,4000\n3 EH,22000\n", encoding="utf-8")
    df = read_count_table(csv_path, {"GROUP": "group_name", "CHILDREN": "child_count"})
    assert list(df.columns) == ["group_name", "child_count"]
    assert df["child_count"].sum() == 26000


def test_infinite_counts_are_rejected():
    df = pd.DataFrame({"group_name": ["1 SC", "3 EH"], "child_count": [float("inf"), 5.0]})
    with pytest.raises(InvalidInputError, match="finite"):
        normalize_group_counts(df)


def test_counts_beyond_int64_are_rejected():
    df = pd.DataFrame({"group_name": ["1 SC", "3 EH"], "child_count": [1e20, 5.0]})
    with pytest.raises(InvalidInputError, match="too large"):
        normalize_group_counts(df)


def test_counts_whose_total_overflows_are_rejected():
    half = 2**62
    df = pd.DataFrame({"group_name": ["1 SC", "2 EH SC", "3 EH"], "child_count": [half, half, half]})
    with pytest.raises(InvalidInputError, match="too large"):
        normalize_group_counts(df)


def test_read_count_table_rejects_empty_file(tmp_path):
    csv_path = tmp_path / "groups.csv"
    csv_path.write_text("", encoding="utf-8")
    with pytest.raises(InvalidInputError, match="groups.csv"):
        read_count_table(csv_path)


def test_read_count_table_keeps_na_like_names(tmp_path):
    csv_path = tmp_path / "bands.csv"
    csv_path.write_text("category_name,child_count\nNA,3\nNone,4\n", encoding="utf-8")
    normalized = normalize_characteristic_counts(read_count_table(csv_path))
    assert normalized["category_name"].tolist() == ["NA", "None"]
