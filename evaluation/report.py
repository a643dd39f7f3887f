"""Summary rendering for benchmark results."""
from typing import List

import pandas as pd

from evaluation.search_eval import StatsResult

RULE = "------------------ SUMMARY -------------------------------"

_STEPS = (("d", 86_400_000), ("h", 3_600_000), ("m", 60_000), ("s", 1000))


def format_millis(millis: int) -> str:
    """Human readable duration: 950 -> '950ms', 1500 -> '1.5s', 90000 -> '1.5m'."""
    for suffix, size in _STEPS:
        if millis >= size:
            value = round(millis / size, 1)
            text = f"{value:.1f}".rstrip("0").rstrip(".")
            return f"{text}{suffix}"
    return f"{millis}ms"


def render_summary(results: List[StatsResult]) -> str:
    lines = [RULE, f"{'name':>25}{'took':>10}{'millis':>10}"]
    for stat in results:
        lines.append(f"{stat.name:>25}{format_millis(stat.total_elapsed_ms):>10}{stat.mean_ms:>10d}")
    lines.append(RULE)
    return "\n".join(lines)


def print_summary(results: List[StatsResult]) -> None:
    print(render_summary(results))


def results_frame(results: List[StatsResult]) -> pd.DataFrame:
    rows = [
        {
            "name": r.name,
            "strategy": r.strategy,
            "took_ms": r.total_elapsed_ms,
            "mean_ms": r.mean_ms,
            "queries": r.query_count,
            "hit_mismatches": r.hit_mismatches,
        }
        for r in results
    ]
    return pd.DataFrame(rows, columns=["name", "strategy", "took_ms", "mean_ms", "queries", "hit_mismatches"])
