from __future__ import annotations

import pytest

from evaluation.matrix import TERMS, TERMS_STATS, BenchmarkCase, default_matrix, select_cases
from evaluation.strategies import AGGREGATION, FACET, AggregationStrategy, FacetStrategy, QueryStrategy, get_strategy


def test_strategies_build_count_only_match_all_bodies() -> None:
    for strategy in (FACET, AGGREGATION):
        body = strategy.build_terms_query("t", "s_value")
        assert body["size"] == 0
        assert body["query"] == {"match_all": {}}


def test_facet_terms_query() -> None:
    assert FACET.build_terms_query("terms_facet_s", "s_value") == {
        "size": 0,
        "query": {"match_all": {}},
        "facets": {"terms_facet_s": {"terms": {"field": "s_value"}}},
    }
    hinted = FACET.build_terms_query("terms_facet_map_s", "s_value", "map")
    assert hinted["facets"]["terms_facet_map_s"]["terms"] == {"field": "s_value", "execution_hint": "map"}


def test_facet_terms_stats_query() -> None:
    body = FACET.build_terms_stats_query("ts", "s_value", "l_value")
    assert body["facets"] == {"ts": {"terms_stats": {"key_field": "s_value", "value_field": "l_value"}}}


def test_aggregation_terms_query() -> None:
    body = AGGREGATION.build_terms_query("terms_agg_s", "s_value")
    assert body["aggs"] == {"terms_agg_s": {"terms": {"field": "s_value"}}}
    assert "facets" not in body
    hinted = AGGREGATION.build_terms_query("terms_agg_map_s", "s_value", "map")
    assert hinted["aggs"]["terms_agg_map_s"]["terms"]["execution_hint"] == "map"


def test_aggregation_terms_stats_query_uses_stats_sub_aggregation() -> None:
    body = AGGREGATION.build_terms_stats_query("ts", "s_value", "lm_value")
    assert body["aggs"] == {
        "ts": {"terms": {"field": "s_value"}, "aggs": {"stats": {"stats": {"field": "lm_value"}}}}
    }


def test_get_strategy() -> None:
    assert isinstance(get_strategy("facet"), FacetStrategy)
    assert isinstance(get_strategy("AGGREGATION"), AggregationStrategy)
    with pytest.raises(ValueError):
        get_strategy("script")


def test_query_strategy_is_abstract() -> None:
    with pytest.raises(TypeError):
        QueryStrategy()


def test_default_matrix_order_and_names() -> None:
    cases = default_matrix()
    names = [c.name for c in cases]
    assert len(cases) == 36
    assert len(set(names)) == 36
    assert names[:8] == [
        "terms_facet_s",
        "terms_facet_s_dv",
        "terms_facet_map_s",
        "terms_facet_map_s_dv",
        "terms_agg_s",
        "terms_agg_s_dv",
        "terms_agg_map_s",
        "terms_agg_map_s_dv",
    ]
    assert names[-1] == "terms_stats_agg_sm_l_dv"
    assert sum(c.kind == TERMS for c in cases) == 24
    assert sum(c.kind == TERMS_STATS for c in cases) == 12


def test_default_matrix_fields_and_hints() -> None:
    by_name = {c.name: c for c in default_matrix()}
    assert by_name["terms_facet_l_dv"].field == "l_value_dv"
    assert by_name["terms_agg_map_sm"].execution_hint == "map"
    assert by_name["terms_agg_map_sm"].strategy is AGGREGATION
    assert by_name["terms_facet_lm"].execution_hint is None
    stats = by_name["terms_stats_facet_s_lm_dv"]
    assert (stats.field, stats.value_field, stats.strategy) == ("s_value_dv", "lm_value_dv", FACET)


def test_case_builds_query_through_its_strategy() -> None:
    case = BenchmarkCase("terms_stats_agg_s_l", AGGREGATION, "s_value", value_field="l_value")
    assert case.build_query() == AGGREGATION.build_terms_stats_query("terms_stats_agg_s_l", "s_value", "l_value")


def test_select_cases_by_glob() -> None:
    cases = select_cases(default_matrix(), ["terms_agg_s*", "terms_stats_facet_s_l"])
    assert [c.name for c in cases] == [
        "terms_agg_s",
        "terms_agg_s_dv",
        "terms_agg_sm",
        "terms_agg_sm_dv",
        "terms_stats_facet_s_l",
    ]
    assert len(select_cases(default_matrix(), None)) == 36
    with pytest.raises(ValueError):
        select_cases(default_matrix(), ["nope*"])


def test_select_cases_by_strategy() -> None:
    facets = select_cases(default_matrix(), strategy="facet")
    assert len(facets) == 18
    assert all(c.strategy is FACET for c in facets)
    cases = select_cases(default_matrix(), ["terms_*_s"], strategy="aggregation")
    assert [c.name for c in cases] == ["terms_agg_s", "terms_agg_map_s"]
    with pytest.raises(ValueError):
        select_cases(default_matrix(), strategy="script")
    with pytest.raises(ValueError):
        select_cases(default_matrix(), ["terms_facet_s"], strategy="aggregation")
