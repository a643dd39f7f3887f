"""Orchestrator for the terms benchmark.

Ties together corpus generation, loading, readiness gating, the case matrix,
the warm-up/measurement runner and the summary report.

Results can be written as CSV under experiments/results/ for later plotting.
"""
import time
from pathlib import Path
from typing import List, Optional

from config import BENCH_INDEX, READINESS_TIMEOUT, CorpusSpec
from data.generate_synthetic import generate_term_pools, make_rng
from evaluation.matrix import BenchmarkCase, default_matrix
from evaluation.report import print_summary, results_frame
from evaluation.search_eval import StatsResult, WarmupMeasurementRunner
from ingestion.ingest import ClusterLoader, ReadinessGate, prepare_corpus

EXPERIMENTS_DIR = Path(__file__).resolve().parents[0]
RESULTS_DIR = EXPERIMENTS_DIR / "results"


def run_benchmark(client, spec: CorpusSpec, index: str = BENCH_INDEX, cases: Optional[List[BenchmarkCase]] = None,
                  seed: Optional[int] = None, show_progress: bool = False,
                  readiness_timeout: str = READINESS_TIMEOUT, ingest_csv: Optional[Path] = None) -> List[StatsResult]:
    """Load the corpus (once) and run every case; returns results in matrix order.

    When this run loaded the corpus, the ingest summary is printed and the per-batch
    timings are written to `ingest_csv` if given.
    """
    cases = default_matrix() if cases is None else cases
    rng = make_rng(seed)
    pools = generate_term_pools(spec.term_pool_size, spec.string_term_length, rng)

    loader = ClusterLoader(client, index, spec, pools, rng, show_progress=show_progress)
    gate = ReadinessGate(client, timeout=readiness_timeout)
    _, load = prepare_corpus(loader, gate)
    if load is not None:
        batches_df, summary = load
        print(
            f"[INFO] Ingest summary: {summary['total_items']} docs in {summary['batches']} batches, "
            f"{summary['total_time_s']:.2f}s, {summary['overall_throughput_dps'] or 0.0:.1f} docs/s, "
            f"{summary['failed_items']} failed"
        )
        if ingest_csv is not None:
            save_ingest(batches_df, ingest_csv)

    client.refresh(index)
    doc_count = client.count(index)
    print(f"[INFO] Number of docs in index: {doc_count}")

    runner = WarmupMeasurementRunner(
        client,
        index,
        expected_hits=doc_count,
        warmup_queries=spec.warmup_queries,
        measured_queries=spec.measured_queries,
        show_progress=show_progress,
    )
    results = runner.run_matrix(cases)
    print_summary(results)
    return results


def save_ingest(batches_df, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    batches_df.to_csv(path, index=False)
    print(f"Saved ingest timings to {path}")
    return path


def save_results(results: List[StatsResult], path: Optional[Path] = None) -> Path:
    if path is None:
        path = RESULTS_DIR / f"results_{int(time.time())}.csv"
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    results_frame(results).to_csv(path, index=False)
    print(f"Saved benchmark summary to {path}")
    return path
