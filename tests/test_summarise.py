"""End-to-end tests for the summarise verb."""

import polars as pl
import pytest
from polars.testing import assert_frame_equal

from xdf_tbl import (
    DegradedOutputWarning,
    InvalidMethodSelectorError,
    MethodFallbackWarning,
    UnsupportedExpressionError,
    XdfTable,
    as_xdf,
    open_xdf,
    register_function,
    summarise,
    summarize,
    unregister_function,
)


def _artifacts(options):
    """Files in the managed and scratch areas."""
    found = []
    for directory in (options.managed_dir, options.scratch_dir):
        if directory.exists():
            found.extend(directory.rglob("*"))
    return found


class TestLocalSummarise:
    """Test summarise against native tables."""

    def test_ungrouped_mean(self, local_table, options):
        """Ungrouped mean uses method 2 and lands in a managed table."""
        result = summarise(local_table, {"m": "mean(x)"}, options=options)

        assert result.method == 2
        assert result.kind == "managed"
        assert result.table.local_path.parent == options.managed_dir
        assert result.groups == []

        df = result.collect()
        assert df.columns == ["m"]
        assert df.height == 1
        assert df["m"][0] == pytest.approx(5.5)

    def test_grouped_sum_and_count(self, local_table, options):
        """Grouped n/sum uses the cube engine and strips the only grouping level."""
        result = summarise(local_table.group_by("g"), {"s": "sum(x)", "c": "n()"}, options=options)

        assert result.method == 1
        assert result.groups == []
        assert result.table.groups == []

        df = result.collect()
        assert df.height == 3
        assert df.columns == ["g", "s", "c"]
        assert df["c"].to_list() == [4, 3, 3]

    def test_two_grouping_levels(self, local_table, options):
        result = summarise(local_table.group_by("g", "h"), m="mean(x)", out=None, options=options)

        assert result.groups == ["g"]
        assert result.collect().height == 6

    def test_in_memory_output(self, local_table, options):
        result = summarise(local_table, {"m": "max(y)"}, out=None, options=options)

        assert result.kind == "memory"
        assert result.table is None
        assert result.frame["m"][0] == 20
        assert _artifacts(options) == []

    @pytest.mark.parametrize("source_fixture", ["local_table", "composite_table"])
    def test_named_output_round_trip(self, source_fixture, request, options, tmp_path):
        source = request.getfixturevalue(source_fixture).group_by("g")
        dest = tmp_path / "summary.parquet"

        result = summarise(source, {"m": "mean(x)", "v": "var(x)"}, out=dest, options=options)

        assert result.kind == "persistent"
        reread = open_xdf(dest)
        assert reread.composite is source.composite
        assert_frame_equal(reread.collect(), result.collect())
        assert reread.collect()["m"].to_list() == pytest.approx([5.5, 5.0, 6.0])

    def test_keyword_and_mapping_aggregates(self, local_table, options):
        result = summarise(local_table, {"a": "min(x)"}, b="max(x)", out=None, options=options)
        assert result.frame.row(0) == (1.0, 10.0)

    def test_summarize_alias(self, local_table, options):
        result = summarize(local_table, m="mean(x)", out=None, options=options)
        assert result.frame["m"][0] == pytest.approx(5.5)

    def test_engine_args_pass_through(self, local_table, options):
        result = summarise(
            local_table,
            m="mean(x)",
            out=None,
            engine_args={"row_filter": pl.col("g") == "b"},
            options=options,
        )
        assert result.frame["m"][0] == pytest.approx(5.0)


class TestMethodSelection:
    """Test method selection through the summarise verb."""

    def test_custom_function_uses_split_general(self, local_table, options):
        register_function("spread", lambda s: s.max() - s.min())
        try:
            result = summarise(local_table.group_by("g"), r="spread(x)", out=None, options=options)
        finally:
            unregister_function("spread")

        assert result.method == 4
        assert result.frame["r"].to_list() == [9.0, 6.0, 6.0]

    def test_method_one_ungrouped_falls_back(self, local_table, options):
        with pytest.warns(MethodFallbackWarning, match="grouping variables required"):
            result = summarise(local_table, m="mean(x)", method=1, out=None, options=options)

        assert result.method == 2
        assert result.frame["m"][0] == pytest.approx(5.5)

    @pytest.mark.parametrize("method", [3, 4, 5])
    def test_explicit_methods_agree(self, method, local_table, options):
        grouped = local_table.group_by("g", "h")
        aggs = {"m": "mean(x)", "c": "n()"}

        expected = summarise(grouped, aggs, out=None, options=options).frame
        result = summarise(grouped, aggs, method=method, out=None, options=options)

        assert result.method == method
        assert_frame_equal(result.frame, expected)

    def test_invalid_method(self, local_table, options):
        with pytest.raises(InvalidMethodSelectorError):
            summarise(local_table, m="mean(x)", method=7, options=options)
        assert _artifacts(options) == []


class TestValidationFailures:
    """Test that bad requests fail before anything is written."""

    def test_derived_expression_creates_nothing(self, local_table, options, monkeypatch):
        def no_engine(*args):
            raise AssertionError("engine must not run")

        with pytest.raises(UnsupportedExpressionError) as exc_info:
            summarise(
                local_table,
                {"ok": "mean(x)", "bad": "sum(x + y)"},
                options=options,
                engines={i: no_engine for i in range(1, 6)},
            )

        assert exc_info.value.column == "bad"
        assert _artifacts(options) == []

    def test_requires_aggregates(self, local_table, options):
        with pytest.raises(ValueError, match="at least one"):
            summarise(local_table, options=options)

    def test_duplicate_output_names(self, local_table, options):
        """A name given both in the mapping and as a keyword is rejected."""
        with pytest.raises(ValueError, match="Duplicate aggregate output names: m"):
            summarise(local_table, {"m": "mean(x)"}, m="sum(x)", options=options)
        assert _artifacts(options) == []

    def test_requires_xdf_table(self, sample_df, options):
        with pytest.raises(TypeError, match="XdfTable"):
            summarise(sample_df, m="mean(x)", options=options)


class TestDistributedSummarise:
    """Test summarise against distributed tables."""

    def test_remote_named_output(self, remote_table, options, dist_root):
        result = summarise(remote_table.group_by("g"), s="sum(x)", out="/results/s", options=options)

        assert result.kind == "persistent"
        assert result.table.filesystem == remote_table.filesystem
        assert (dist_root / "results" / "s").is_dir()
        assert list(options.scratch_dir.iterdir()) == []
        assert result.collect()["s"].to_list() == [22.0, 15.0, 18.0]

    def test_direct_default_output(self, direct_table, options):
        result = summarise(direct_table.group_by("g", "h"), c="n()", options=options)

        assert result.kind == "managed"
        assert result.table.composite is True
        assert result.table.groups == ["g"]
        assert str(result.table.path).startswith(direct_table.filesystem.work_dir)
        assert result.collect()["c"].sum() == 10

    def test_remote_in_memory(self, remote_table, options, dist_root):
        before = sorted(dist_root.rglob("*"))

        result = summarise(remote_table, m="mean(x)", out=None, options=options)

        assert result.kind == "memory"
        assert sorted(dist_root.rglob("*")) == before


class TestInjectedEngines:
    """Test engines that return file-backed output."""

    def test_local_file_output_is_salvaged(self, local_table, options, tmp_path):
        def file_engine(table, groups, stats, calls, engine_args):
            return as_xdf(pl.DataFrame({"m": [5.5]}), tmp_path / "engine.parquet")

        with pytest.warns(DegradedOutputWarning):
            result = summarise(local_table, m="mean(x)", options=options, engines={2: file_engine})

        assert result.kind == "managed"
        assert isinstance(result.table, XdfTable)
        assert result.collect()["m"][0] == pytest.approx(5.5)
