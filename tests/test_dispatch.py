"""Tests for routing methods to engines."""

import polars as pl
import pytest

from xdf_tbl.core.dispatch import FileResult, InMemoryResult, dispatch
from xdf_tbl.core.errors import SummariseError, UnexpectedWorkerOutputError
from xdf_tbl.core.expressions import statistic_set, validate_aggregates
from xdf_tbl.core.storage import as_xdf


class EngineFailure(Exception):
    pass


@pytest.fixture
def calls():
    return validate_aggregates({"m": "mean(x)"})


class RecordingEngine:
    """Engine stand-in that records its arguments."""

    def __init__(self, result):
        self.result = result
        self.calls = []

    def __call__(self, table, groups, stats, calls, engine_args):
        self.calls.append((table, groups, stats, calls, engine_args))
        return self.result


class TestDispatch:
    """Test dispatch to the engine registry."""

    @pytest.mark.parametrize("method", [1, 2, 3, 4, 5])
    def test_routes_to_selected_engine(self, method, local_table, calls):
        frame = pl.DataFrame({"m": [1.0]})
        engines = {i: RecordingEngine(frame) for i in range(1, 6)}
        engine_args = {"row_filter": pl.col("x") > 1}

        raw = dispatch(method, local_table, ["g"], statistic_set(calls), calls, engine_args, engines)

        assert isinstance(raw, InMemoryResult)
        assert raw.frame is frame
        for i, engine in engines.items():
            assert len(engine.calls) == (1 if i == method else 0)

        table, groups, stats, passed_calls, passed_args = engines[method].calls[0]
        assert table is local_table
        assert groups == ["g"]
        assert stats == {"mean"}
        assert passed_calls == calls
        assert passed_args is engine_args

    def test_default_engines(self, local_table, calls):
        raw = dispatch(2, local_table, [], statistic_set(calls), calls)

        assert isinstance(raw, InMemoryResult)
        assert raw.frame["m"][0] == pytest.approx(5.5)

    def test_engine_errors_propagate(self, local_table, calls):
        def failing(*args):
            raise EngineFailure("engine blew up")

        with pytest.raises(EngineFailure, match="engine blew up"):
            dispatch(2, local_table, [], {"mean"}, calls, engines={2: failing})

    def test_local_file_output_is_tagged(self, local_table, calls, tmp_path):
        raw_table = as_xdf(pl.DataFrame({"m": [5.5]}), tmp_path / "raw.parquet")

        raw = dispatch(2, local_table, [], {"mean"}, calls, engines={2: RecordingEngine(raw_table)})

        assert isinstance(raw, FileResult)
        assert raw.table is raw_table

    @pytest.mark.parametrize("fixture", ["direct_table", "remote_table"])
    def test_distributed_file_output_is_fatal(self, fixture, request, calls, tmp_path):
        source = request.getfixturevalue(fixture)
        raw_table = as_xdf(pl.DataFrame({"m": [5.5]}), tmp_path / "raw.parquet")

        with pytest.raises(UnexpectedWorkerOutputError, match="distributed") as exc_info:
            dispatch(2, source, [], {"mean"}, calls, engines={2: RecordingEngine(raw_table)})

        assert isinstance(exc_info.value, SummariseError)

    def test_unsupported_result_type(self, local_table, calls):
        with pytest.raises(TypeError, match="unsupported result"):
            dispatch(2, local_table, [], {"mean"}, calls, engines={2: RecordingEngine([1.0])})
