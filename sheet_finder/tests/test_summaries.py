import io
import sys
from pathlib import Path as _P

import pandas as pd

# Ensure project root (containing the 'sheet_finder' package directory) is on sys.path
_project_root = _P(__file__).resolve().parents[2]
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from sheet_finder.aggregation import AggregateScope, aggregate_entity
from sheet_finder.data_profiler import CategoricalStats, DataProfiler, NumericStats
from sheet_finder.export import rows_to_csv
from sheet_finder.search import FuzzyIndex, SearchAdapter
from sheet_finder.type_inference import ColumnType

NUM = {"v": ColumnType.NUMERIC}
CAT = {"v": ColumnType.CATEGORICAL}


def test_numeric_stats_even_and_odd_median():
    profiler = DataProfiler()
    stats = profiler.compute_stats("v", [{"v": 1}, {"v": "2"}, {"v": 3}, {"v": 4.0}], NUM)
    assert isinstance(stats, NumericStats)
    assert stats.median == 2.5
    assert stats.count == 4
    assert stats.sum == 10.0
    assert stats.avg == 2.5
    assert (stats.min, stats.max) == (1.0, 4.0)

    stats = profiler.compute_stats("v", [{"v": 3}, {"v": 1}, {"v": 2}], NUM)
    assert stats.median == 2


def test_numeric_stats_skip_unparseable():
    stats = DataProfiler().compute_stats("v", [{"v": "x"}, {"v": 5}, {"v": ""}, {}], NUM)
    assert stats.count == 1
    assert stats.median == 5
    assert DataProfiler().compute_stats("v", [{"v": "x"}, {"v": "y"}], NUM) is None


def test_categorical_stats_counts_and_ties():
    rows = [{"v": "x"}, {"v": " x "}, {"v": "y"}]
    stats = DataProfiler().compute_stats("v", rows, CAT)
    assert isinstance(stats, CategoricalStats)
    assert stats.count == 3
    assert stats.unique_count == 2
    assert stats.top_values == [("x", 2), ("y", 1)]

    rows = [{"v": c} for c in "bacdefgb"]
    stats = DataProfiler().compute_stats("v", rows, CAT)
    # ties keep first-seen order; only five reported
    assert stats.top_values == [("b", 2), ("a", 1), ("c", 1), ("d", 1), ("e", 1)]
    assert stats.unique_count == 7


def test_stats_absent_for_empty_inputs():
    profiler = DataProfiler()
    assert profiler.compute_stats("v", [], NUM) is None
    assert profiler.compute_stats("v", [{"v": ""}, {"v": None}], CAT) is None


def test_aggregate_entity_matches_either_role_once():
    rows = [
        {"Sender": "A", "Recipient": "B", "Amount": 10, "Weight": 2},
        {"Sender": "B", "Recipient": "C", "Amount": 5, "Weight": 1},
        {"Sender": "B", "Recipient": "B ", "Amount": "7", "Weight": "n/a"},
        {"Sender": "D", "Recipient": "E", "Amount": 100, "Weight": 100},
    ]
    agg = aggregate_entity(
        "B",
        rows[:2],
        entity_columns=("Recipient", "Sender"),
        amount_column="Amount",
        weight_column="Weight",
    )
    assert agg.total_value == 15
    assert agg.total_weight == 3
    assert agg.price_per_unit_weight == 5

    agg = aggregate_entity(
        " B ",
        rows,
        entity_columns=("Recipient", "Sender"),
        amount_column="Amount",
        weight_column="Weight",
        scope=AggregateScope.FILTERED,
    )
    assert agg.entity_name == "B"
    assert agg.total_value == 22
    assert agg.total_weight == 3
    assert agg.to_dict()["scope"] == "filtered"


def test_aggregate_entity_empty():
    agg = aggregate_entity("Acme", [])
    assert (agg.total_value, agg.total_weight, agg.price_per_unit_weight) == (0.0, 0.0, 0.0)


def test_export_quotes_and_blanks():
    rows = [
        {"name": 'say "hi"', "note": "a,b", "n": 3},
        {"name": "line\nbreak", "n": None},
    ]
    text = rows_to_csv(rows, ["name", "note", "n"])
    lines = text.split("\n")
    assert lines[0] == "name,note,n"
    assert lines[1] == '"say ""hi""","a,b",3'
    assert text.endswith('"line\nbreak",,\n')


def test_export_round_trip():
    header = ["Client", "Note", "Amount"]
    rows = [
        {"Client": "Acme", "Note": "plain", "Amount": "10"},
        {"Client": "Glo, bex", "Note": 'quote "x"', "Amount": "2.5"},
        {"Client": "Init\ntech", "Note": "", "Amount": ""},
    ]
    decoded = pd.read_csv(
        io.StringIO(rows_to_csv(rows, header)), dtype=str, keep_default_na=False
    )
    assert decoded.to_dict(orient="records") == rows


def test_export_header_only():
    assert rows_to_csv([], ["a", "b"]) == "a,b\n"


def test_fuzzy_index_tolerates_typos():
    rows = [{"name": "Acme Logistics"}, {"name": "Globex"}, {"name": "Initech"}]
    index = FuzzyIndex(rows, ["name"])
    assert index.search("acme") == [rows[0]]
    assert index.search("Acne") == [rows[0]]
    assert index.search("a") == []


def test_search_adapter_restricts_to_filtered_rows():
    rows = [{"name": "Acme"}, {"name": "Acme Two"}, {"name": "Other"}]
    adapter = SearchAdapter()
    adapter.rebuild(rows, ["name"])
    filtered = [rows[1], rows[2]]
    assert adapter.search(filtered, "acme") == [rows[1]]
    assert adapter.search(filtered, "") is filtered


def test_search_adapter_rebuilds_only_on_input_change():
    built = []

    def factory(rows, keys):
        built.append(tuple(keys))
        return FuzzyIndex(rows, keys)

    rows = [{"a": "x", "b": "y"}]
    adapter = SearchAdapter(index_factory=factory)
    adapter.rebuild(rows, ["a", "b"])
    adapter.rebuild(rows, ["a", "b"])
    adapter.search(rows, "xx")
    adapter.search(rows, "yy")
    assert built == [("a", "b")]
    adapter.rebuild(rows, ["a"])
    assert built == [("a", "b"), ("a",)]
    adapter.rebuild([], ["a"])
    assert adapter.index is None


def test_search_adapter_fails_open(caplog):
    class Broken:
        def search(self, query):
            raise RuntimeError("index exploded")

    rows = [{"a": "x"}]
    adapter = SearchAdapter(index_factory=lambda r, k: Broken())
    adapter.rebuild(rows, ["a"])
    with caplog.at_level("ERROR"):
        assert adapter.search(rows, "zz") is rows
    assert "Fuzzy search failed" in caplog.text


def test_profile_rows_covers_every_column():
    rows = [{"n": 1, "c": "a"}, {"n": 3, "c": ""}]
    types = {"n": ColumnType.NUMERIC, "c": ColumnType.CATEGORICAL, "z": ColumnType.CATEGORICAL}
    profile = DataProfiler().profile_rows(rows, types)
    assert profile["n"].avg == 2
    assert profile["c"].to_dict()["top_values"] == [{"value": "a", "count": 1}]
    assert profile["z"] is None


def test_export_writes_lowercase_booleans():
    text = rows_to_csv([{"ok": True, "n": 1}, {"ok": False, "n": 0}], ["ok", "n"])
    assert text.splitlines() == ["ok,n", "true,1", "false,0"]
