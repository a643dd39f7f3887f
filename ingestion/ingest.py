"""Corpus loading: create the index once, bulk-load the synthetic documents, wait for green.

Functions / classes:
- batch_sizes(total, batch_size) -> per-batch document counts (last batch truncated)
- summarize_timings(timings) -> (DataFrame, summary) for a list of (t0, t1, count)
- ClusterLoader(client, index, spec, pools, rng).create_target() / .load_all()
- ReadinessGate(client, timeout).wait()
- prepare_corpus(loader, gate) -> (CreateStatus, (DataFrame, summary) or None)

The client is anything exposing the cluster methods of `search_cluster.client.SearchClusterClient`
(the live wrapper or `local_db.mock.SimpleClusterMock`).
"""
import sys
import time
from typing import Iterator, List, Tuple

import numpy as np
import pandas as pd
from tqdm import tqdm

from config import CorpusSpec, PROGRESS_EVERY, READINESS_TIMEOUT
from data.generate_synthetic import TermPool, generate_documents
from search_cluster.client import CreateIndexResult, CreateStatus, build_index_body


class IndexCreationError(RuntimeError):
    """Index creation failed for a reason other than the index already existing."""

    def __init__(self, index: str, cause: BaseException):
        super().__init__(f"Failed to create index [{index}]: {cause}")
        self.index = index
        self.cause = cause


def batch_sizes(total: int, batch_size: int) -> Iterator[int]:
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    for start in range(0, total, batch_size):
        yield min(batch_size, total - start)


def summarize_timings(timings: List[Tuple[float, float, int]]):
    # timings: list of (t0, t1, count)
    rows = []
    total_items = 0
    total_time = 0.0
    for t0, t1, count in timings:
        delta = t1 - t0
        rows.append({"batch_time": delta, "batch_size": count, "throughput_dps": count / delta if delta > 0 else None})
        total_time += delta
        total_items += count
    summary = {
        "total_items": total_items,
        "total_time_s": total_time,
        "overall_throughput_dps": total_items / total_time if total_time > 0 else None,
    }
    df = pd.DataFrame(rows, columns=["batch_time", "batch_size", "throughput_dps"])
    return df, summary


class ClusterLoader:
    def __init__(self, client, index: str, spec: CorpusSpec, pools: TermPool, rng: np.random.Generator,
                 show_progress: bool = False, progress_every: int = PROGRESS_EVERY):
        self.client = client
        self.index = index
        self.spec = spec
        self.pools = pools
        self.rng = rng
        self.show_progress = show_progress
        self.progress_every = progress_every

    def create_target(self) -> CreateIndexResult:
        return self.client.create_index(self.index, build_index_body())

    def load_all(self):
        """Bulk-load `spec.total_documents` documents; partial bulk failures are reported and skipped."""
        spec = self.spec
        print(f"[INFO] Indexing [{spec.total_documents}] ...")
        timings = []
        failed = 0
        indexed = 0
        next_id = 1
        t_start = time.time()
        slice_start = t_start
        sizes = list(batch_sizes(spec.total_documents, spec.batch_size))
        for size in tqdm(sizes, desc="bulk", disable=not self.show_progress):
            docs = list(generate_documents(next_id, size, self.pools, spec.multi_value_cardinality, self.rng))
            t0 = time.time()
            outcome = self.client.bulk_write(self.index, docs)
            t1 = time.time()
            timings.append((t0, t1, size))
            if outcome.has_failures:
                failed += outcome.failed
                reasons = "; ".join(outcome.failure_reasons)
                tqdm.write(f"[WARN] failures in bulk [{next_id}..{next_id + size - 1}]: {outcome.failed} of {size} ({reasons})", file=sys.stderr)
            next_id += size
            if (indexed + size) // self.progress_every > indexed // self.progress_every:
                now = time.time()
                tqdm.write(f"[INFO] Indexed {indexed + size} took {now - slice_start:.2f}s")
                slice_start = now
            indexed += size
        total_s = time.time() - t_start
        tps = spec.total_documents / total_s if total_s > 0 else float("inf")
        print(f"[INFO] Indexing took {total_s:.2f}s, TPS {tps:.1f}")

        df, summary = summarize_timings(timings)
        summary.update({"index": self.index, "batch_size": spec.batch_size, "batches": len(sizes), "failed_items": failed})
        return df, summary


class ReadinessGate:
    """Best-effort wait for a green cluster; a timeout is reported, never raised."""

    def __init__(self, client, timeout: str = READINESS_TIMEOUT):
        self.client = client
        self.timeout = timeout

    def wait(self) -> bool:
        """Returns True when the cluster reached green before the timeout."""
        timed_out = self.client.wait_for_green(self.timeout)
        if timed_out:
            print(f"[WARN] Timed out waiting for cluster health ({self.timeout})", file=sys.stderr)
        return not timed_out


def prepare_corpus(loader: ClusterLoader, gate: ReadinessGate):
    """Returns (creation status, load result); the load result is None when the index already existed."""
    result = loader.create_target()
    load = None
    if result.status is CreateStatus.FATAL:
        raise IndexCreationError(loader.index, result.error) from result.error
    if result.status is CreateStatus.ALREADY_EXISTS:
        print("[INFO] Index already exists, ignoring indexing phase, waiting for green")
    else:
        load = loader.load_all()
    gate.wait()
    return result.status, load
