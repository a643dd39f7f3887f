"""Main entrypoint for the terms facet vs aggregation benchmark.
Usage examples:
    python main.py --url http://localhost:9200
    python main.py --local --docs 20000 --cases 'terms_agg_*' --output-csv experiments/results/local.csv
"""
import argparse
import sys
from pathlib import Path

from opensearchpy.exceptions import TransportError

from config import BENCH_INDEX, CLUSTER_PASSWORD, CLUSTER_URL, CLUSTER_USERNAME, CorpusSpec, seed_from_env
from evaluation.matrix import default_matrix, select_cases
from evaluation.report import results_frame
from evaluation.strategies import STRATEGIES
from experiments.run_experiments import run_benchmark, save_results
from ingestion.ingest import IndexCreationError
from local_db.mock import SimpleClusterMock
from search_cluster.client import SearchClusterClient


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Compare terms facets and aggregations on a synthetic corpus.")
    p.add_argument("--local", action="store_true", help="Run against the in-memory mock cluster")
    p.add_argument("--url", default=CLUSTER_URL)
    p.add_argument("--index", default=BENCH_INDEX)
    p.add_argument("--docs", type=int, default=None, help="Total documents to generate")
    p.add_argument("--batch-size", type=int, default=None)
    p.add_argument("--warmup", type=int, default=None, help="Warm-up queries per case")
    p.add_argument("--queries", type=int, default=None, help="Measured queries per case")
    p.add_argument("--cases", nargs="+", default=None, help="Glob patterns of case names to run")
    p.add_argument("--strategy", choices=sorted(STRATEGIES), default=None, help="Only run cases of this strategy")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--output-csv", default=None)
    p.add_argument("--plot", default=None, help="Write a bar chart of mean ms per case to this path")
    p.add_argument("--progress", action="store_true", help="Show tqdm progress bars")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    spec = CorpusSpec.from_env(
        total_documents=args.docs,
        batch_size=args.batch_size,
        warmup_queries=args.warmup,
        measured_queries=args.queries,
    )
    try:
        cases = select_cases(default_matrix(), args.cases, strategy=args.strategy)
    except ValueError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2
    seed = args.seed if args.seed is not None else seed_from_env()

    if args.local:
        print("[INFO] Local mode: using the in-memory cluster mock.")
        client = SimpleClusterMock()
    else:
        client = SearchClusterClient.connect(args.url, CLUSTER_USERNAME, CLUSTER_PASSWORD)

    ingest_csv = None
    if args.output_csv:
        out = Path(args.output_csv)
        ingest_csv = out.with_name(f"{out.stem}_ingest.csv")

    try:
        results = run_benchmark(client, spec, index=args.index, cases=cases, seed=seed, show_progress=args.progress,
                                ingest_csv=ingest_csv)
    except (IndexCreationError, TransportError) as e:
        print(f"[ERROR] Benchmark aborted: {e}", file=sys.stderr)
        return 1
    finally:
        client.close()

    if args.output_csv:
        save_results(results, args.output_csv)
    if args.plot:
        from plots.plotting import plot_mean_ms_by_case

        plot_mean_ms_by_case(results_frame(results), out_file=args.plot)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
