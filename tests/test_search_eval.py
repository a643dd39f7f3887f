from __future__ import annotations

import pytest
from opensearchpy.exceptions import ConnectionError as OSConnectionError

from evaluation.matrix import BenchmarkCase, terms, terms_stats
from evaluation.search_eval import Phase, StatsResult, WarmupMeasurementRunner
from evaluation.strategies import AGGREGATION, FACET
from local_db.mock import SimpleClusterMock

INDEX = "bench"


def test_ten_warmup_then_hundred_measured_queries(make_loaded_mock, capsys: pytest.CaptureFixture[str]) -> None:
    # warm-up durations are large so that any leak into the total is visible
    took = [1000] * 10 + list(range(1, 101))
    mock = make_loaded_mock(took_ms=took)
    runner = WarmupMeasurementRunner(mock, INDEX, expected_hits=50, warmup_queries=10, measured_queries=100)

    result = runner.run_case(terms("terms_agg_s", AGGREGATION, "s_value"))

    assert result.total_elapsed_ms == sum(range(1, 101))
    assert result.query_count == 100
    assert result.mean_ms == 5050 // 100
    assert result.hit_mismatches == 0
    assert result.strategy == "aggregation"
    assert mock.operations() == ["clear_cache"] + ["search"] * 110
    assert runner.results == [result]
    out = capsys.readouterr().out
    assert "Loading (s_value): took: 1000ms" in out
    assert "Terms (terms_agg_s): 50ms" in out


def test_hit_mismatch_is_logged_and_still_timed(make_loaded_mock, capsys: pytest.CaptureFixture[str]) -> None:
    mock = make_loaded_mock(took_ms=[5] * 6, hit_offset=-1)
    runner = WarmupMeasurementRunner(mock, INDEX, expected_hits=50, warmup_queries=2, measured_queries=4)

    result = runner.run_case(terms("terms_facet_l", FACET, "l_value"))

    assert result.hit_mismatches == 6
    assert result.total_elapsed_ms == 20
    err = capsys.readouterr().err
    assert err.count("mismatch on hits") == 6
    assert "expected 50, got 49" in err


def test_cache_is_cleared_once_right_before_each_warmup(make_loaded_mock) -> None:
    mock = make_loaded_mock()
    phases = []
    runner = WarmupMeasurementRunner(
        mock, INDEX, expected_hits=50, warmup_queries=2, measured_queries=3,
        on_phase=lambda case, phase: phases.append((case.name, phase)),
    )
    cases = [
        terms_stats("terms_stats_agg_s_l", AGGREGATION, "s_value", "l_value"),
        terms("terms_facet_sm", FACET, "sm_value"),
        terms("terms_agg_lm_dv", AGGREGATION, "lm_value_dv"),
    ]
    runner.run_matrix(cases)

    per_case = ["clear_cache"] + ["search"] * 5
    assert mock.operations() == per_case * 3
    assert phases[:4] == [
        ("terms_stats_agg_s_l", Phase.CLEARING_CACHE),
        ("terms_stats_agg_s_l", Phase.WARMUP),
        ("terms_stats_agg_s_l", Phase.MEASURING),
        ("terms_stats_agg_s_l", Phase.DONE),
    ]
    assert [p for _, p in phases].count(Phase.CLEARING_CACHE) == 3
    assert runner.phase is Phase.DONE


def test_facet_and_aggregation_on_same_field_agree_on_hits(make_loaded_mock) -> None:
    mock = make_loaded_mock()
    runner = WarmupMeasurementRunner(mock, INDEX, expected_hits=50, warmup_queries=1, measured_queries=2)
    results = runner.run_matrix([
        terms("terms_facet_s", FACET, "s_value"),
        terms("terms_agg_s", AGGREGATION, "s_value"),
    ])
    assert [r.name for r in results] == ["terms_facet_s", "terms_agg_s"]
    assert [r.hit_mismatches for r in results] == [0, 0]
    assert [r.strategy for r in results] == ["facet", "aggregation"]


def test_results_are_appended_in_case_order(make_loaded_mock) -> None:
    mock = make_loaded_mock(took_ms=[0, 10, 0, 20])
    runner = WarmupMeasurementRunner(mock, INDEX, expected_hits=50, warmup_queries=1, measured_queries=1)
    results = runner.run_matrix([terms("a", FACET, "s_value"), terms("b", AGGREGATION, "s_value")])
    assert results == [
        StatsResult("a", 10, 1, strategy="facet"),
        StatsResult("b", 20, 1, strategy="aggregation"),
    ]


class _FailingMock(SimpleClusterMock):
    def __init__(self, fail_after: int, **kwargs):
        super().__init__(**kwargs)
        self.fail_after = fail_after
        self.searches = 0

    def search(self, index, body):
        self.searches += 1
        if self.searches > self.fail_after:
            raise OSConnectionError("N/A", "connection reset", Exception("reset"))
        return super().search(index, body)


def test_query_failure_aborts_the_whole_run(load_mock) -> None:
    mock = load_mock(_FailingMock(fail_after=3), 10)
    runner = WarmupMeasurementRunner(mock, INDEX, expected_hits=10, warmup_queries=1, measured_queries=2)
    cases = [terms("first", FACET, "s_value"), terms("second", AGGREGATION, "s_value"), terms("third", FACET, "l_value")]
    with pytest.raises(OSConnectionError):
        runner.run_matrix(cases)
    assert [r.name for r in runner.results] == ["first"]
    assert mock.operations().count("clear_cache") == 2


def test_runner_rejects_zero_measured_queries(make_loaded_mock) -> None:
    with pytest.raises(ValueError):
        WarmupMeasurementRunner(make_loaded_mock(), INDEX, expected_hits=50, measured_queries=0)


def test_mean_of_empty_result_is_zero() -> None:
    assert StatsResult("x", 0, 0).mean_ms == 0


def test_case_query_reaches_the_cluster_unchanged(make_loaded_mock) -> None:
    seen = []
    mock = make_loaded_mock()
    original = mock.search

    def spy(index, body):
        seen.append(body)
        return original(index, body)

    mock.search = spy
    case = BenchmarkCase("terms_stats_facet_sm_l", FACET, "sm_value", value_field="l_value")
    WarmupMeasurementRunner(mock, INDEX, expected_hits=50, warmup_queries=1, measured_queries=1).run_case(case)
    assert seen == [case.build_query()] * 2


def test_terms_stats_warmup_logs_case_name(make_loaded_mock, capsys: pytest.CaptureFixture[str]) -> None:
    mock = make_loaded_mock(took_ms=[7] * 3)
    runner = WarmupMeasurementRunner(mock, INDEX, expected_hits=50, warmup_queries=1, measured_queries=2)

    runner.run_case(terms_stats("terms_stats_agg_s_l", AGGREGATION, "s_value", "l_value"))

    out = capsys.readouterr().out
    assert "Loading (terms_stats_agg_s_l): took: 7ms" in out
    assert "Loading (s_value)" not in out
    assert "Terms stats (terms_stats_agg_s_l): 7ms" in out
