"""Search execution and latency measurement.

Each benchmark case goes through the same phases:
    CLEARING_CACHE -> WARMUP -> MEASURING -> DONE

- the field-data cache is cleared once before every case, so no case inherits another's loaded field data
- warm-up queries are run and discarded; the first one's server-side time is printed (field loading cost)
- measured queries add their reported `took` to the case total
- every query's hit count is checked against the expected corpus size; a mismatch is a warning only

Any error raised by the cluster client propagates and ends the whole run.
"""
import enum
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional

from tqdm import tqdm

from evaluation.matrix import TERMS_STATS, BenchmarkCase


class Phase(enum.Enum):
    CLEARING_CACHE = "clearing_cache"
    WARMUP = "warmup"
    MEASURING = "measuring"
    DONE = "done"


@dataclass(frozen=True)
class StatsResult:
    name: str
    total_elapsed_ms: int
    query_count: int
    hit_mismatches: int = 0
    strategy: str = ""

    @property
    def mean_ms(self) -> int:
        return self.total_elapsed_ms // self.query_count if self.query_count else 0


class WarmupMeasurementRunner:
    def __init__(self, client, index: str, expected_hits: int, warmup_queries: int = 10, measured_queries: int = 100,
                 show_progress: bool = False, on_phase: Optional[Callable[[BenchmarkCase, Phase], None]] = None):
        if warmup_queries < 0 or measured_queries <= 0:
            raise ValueError("warmup_queries must be >= 0 and measured_queries > 0")
        self.client = client
        self.index = index
        self.expected_hits = expected_hits
        self.warmup_queries = warmup_queries
        self.measured_queries = measured_queries
        self.show_progress = show_progress
        self.on_phase = on_phase
        self.results: List[StatsResult] = []
        self.phase: Optional[Phase] = None

    def _enter(self, case: BenchmarkCase, phase: Phase):
        self.phase = phase
        if self.on_phase:
            self.on_phase(case, phase)

    def _execute(self, case: BenchmarkCase, body):
        outcome = self.client.search(self.index, body)
        mismatch = outcome.total_hits != self.expected_hits
        if mismatch:
            print(f"[WARN] mismatch on hits for {case.name}: expected {self.expected_hits}, got {outcome.total_hits}", file=sys.stderr)
        return outcome, mismatch

    def run_case(self, case: BenchmarkCase) -> StatsResult:
        body = case.build_query()
        mismatches = 0

        self._enter(case, Phase.CLEARING_CACHE)
        self.client.clear_fielddata_cache(self.index)

        self._enter(case, Phase.WARMUP)
        print(f"[INFO] Warmup ({case.name})...")
        for j in range(self.warmup_queries):
            outcome, mismatch = self._execute(case, body)
            mismatches += mismatch
            if j == 0:
                subject = case.name if case.kind == TERMS_STATS else case.field
                print(f"[INFO] Loading ({subject}): took: {outcome.took_ms}ms")
        print(f"[INFO] Warmup ({case.name}) DONE")

        self._enter(case, Phase.MEASURING)
        print(f"[INFO] Running ({case.name})...")
        total_ms = 0
        for _ in tqdm(range(self.measured_queries), desc=case.name, disable=not self.show_progress):
            outcome, mismatch = self._execute(case, body)
            mismatches += mismatch
            total_ms += outcome.took_ms

        result = StatsResult(case.name, total_ms, self.measured_queries, hit_mismatches=mismatches, strategy=case.strategy.name)
        label = "Terms stats" if case.kind == TERMS_STATS else "Terms"
        print(f"[INFO] {label} ({case.name}): {result.mean_ms}ms")
        self.results.append(result)
        self._enter(case, Phase.DONE)
        return result

    def run_matrix(self, cases: List[BenchmarkCase]) -> List[StatsResult]:
        for case in cases:
            self.run_case(case)
        return self.results
