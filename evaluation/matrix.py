"""Benchmark matrix: the ordered cases run against the loaded corpus.

Case names follow `terms_<facet|agg>[_map]_<field>[_dv]` and
`terms_stats_<facet|agg>_<key>_<value>[_dv]`, where the field shorthands are
s (string), l (long), sm (multi-value string) and lm (multi-value long).
"""
from dataclasses import dataclass
from fnmatch import fnmatch
from typing import Dict, Iterable, List, Optional

from evaluation.strategies import AGGREGATION, FACET, QueryStrategy, get_strategy

TERMS = "terms"
TERMS_STATS = "terms_stats"


@dataclass(frozen=True)
class BenchmarkCase:
    name: str
    strategy: QueryStrategy
    field: str
    value_field: Optional[str] = None
    execution_hint: Optional[str] = None

    @property
    def kind(self) -> str:
        return TERMS_STATS if self.value_field else TERMS

    def build_query(self) -> Dict:
        if self.value_field:
            return self.strategy.build_terms_stats_query(self.name, self.field, self.value_field, self.execution_hint)
        return self.strategy.build_terms_query(self.name, self.field, self.execution_hint)


def terms(name: str, strategy: QueryStrategy, field: str, execution_hint: Optional[str] = None) -> BenchmarkCase:
    return BenchmarkCase(name, strategy, field, execution_hint=execution_hint)


def terms_stats(name: str, strategy: QueryStrategy, key_field: str, value_field: str, execution_hint: Optional[str] = None) -> BenchmarkCase:
    return BenchmarkCase(name, strategy, key_field, value_field=value_field, execution_hint=execution_hint)


def _terms_cases(short: str, field: str, with_map_hint: bool) -> List[BenchmarkCase]:
    cases = []
    for label, strategy in (("facet", FACET), ("agg", AGGREGATION)):
        hints = (None, "map") if with_map_hint else (None,)
        for hint in hints:
            prefix = f"terms_{label}_map" if hint else f"terms_{label}"
            cases.append(terms(f"{prefix}_{short}", strategy, field, hint))
            cases.append(terms(f"{prefix}_{short}_dv", strategy, f"{field}_dv", hint))
    return cases


def _terms_stats_cases(key_short: str, key_field: str, value_short: str, value_field: str) -> List[BenchmarkCase]:
    cases = []
    for label, strategy in (("facet", FACET), ("agg", AGGREGATION)):
        name = f"terms_stats_{label}_{key_short}_{value_short}"
        cases.append(terms_stats(name, strategy, key_field, value_field))
        cases.append(terms_stats(f"{name}_dv", strategy, f"{key_field}_dv", f"{value_field}_dv"))
    return cases


def default_matrix() -> List[BenchmarkCase]:
    """36 cases: every field in both encodings, both strategies, with and without the map hint for strings."""
    cases = []
    cases += _terms_cases("s", "s_value", with_map_hint=True)
    cases += _terms_cases("l", "l_value", with_map_hint=False)
    cases += _terms_cases("sm", "sm_value", with_map_hint=True)
    cases += _terms_cases("lm", "lm_value", with_map_hint=False)
    cases += _terms_stats_cases("s", "s_value", "l", "l_value")
    cases += _terms_stats_cases("s", "s_value", "lm", "lm_value")
    cases += _terms_stats_cases("sm", "sm_value", "l", "l_value")
    return cases


def select_cases(cases: Iterable[BenchmarkCase], patterns: Optional[Iterable[str]] = None,
                 strategy: Optional[str] = None) -> List[BenchmarkCase]:
    """Keep the cases whose name matches any glob pattern (and, if given, run through
    the named strategy), preserving matrix order. Raises ValueError when nothing is left.
    """
    selected = list(cases)
    if strategy:
        wanted = get_strategy(strategy)
        selected = [c for c in selected if c.strategy is wanted]
    if patterns:
        patterns = list(patterns)
        selected = [c for c in selected if any(fnmatch(c.name, p) for p in patterns)]
    if not selected:
        suffix = f" for strategy {strategy}" if strategy else ""
        raise ValueError(f"No benchmark case matches {list(patterns or ['*'])}{suffix}")
    return selected
