"""Simple in-memory stand-in for a search cluster.
Used when no cluster is available (`main.py --local`) and by the tests; it offers the
same methods as `search_cluster.client.SearchClusterClient`.
"""
import time
from collections import Counter, defaultdict
from typing import Dict, Iterable, List, Optional

import numpy as np

from search_cluster.client import BulkOutcome, CreateIndexResult, SearchOutcome


class SimpleClusterMock:
    """Keeps documents per index in dicts and evaluates terms / terms-stats requests.

    Knobs for tests:
    - `took_ms`: iterable of reported query durations (otherwise wall clock of the local evaluation)
    - `fail_ids`: document ids whose bulk item is reported as failed
    - `hit_offset`: added to the true hit count to simulate a mismatch
    - `health_timed_out`: value returned by `wait_for_green`
    - `create_error`: exception reported as a fatal creation failure
    """

    def __init__(self, took_ms: Optional[Iterable[int]] = None, fail_ids: Iterable[str] = (), hit_offset: int = 0,
                 health_timed_out: bool = False, create_error: Optional[BaseException] = None):
        self.indices: Dict[str, Dict[str, Dict]] = {}
        self.calls: List[tuple] = []  # (operation, index) in call order
        self.bulk_sizes: List[int] = []
        self.closed = False
        self._took = iter(took_ms) if took_ms is not None else None
        self.fail_ids = set(fail_ids)
        self.hit_offset = hit_offset
        self.health_timed_out = health_timed_out
        self.create_error = create_error

    def create_index(self, index: str, body: Dict) -> CreateIndexResult:
        self.calls.append(("create_index", index))
        if self.create_error is not None:
            return CreateIndexResult.fatal(self.create_error)
        if index in self.indices:
            return CreateIndexResult.already_exists()
        self.indices[index] = {}
        return CreateIndexResult.created()

    def bulk_write(self, index: str, docs: List[Dict]) -> BulkOutcome:
        self.calls.append(("bulk_write", index))
        self.bulk_sizes.append(len(docs))
        t0 = time.time()
        store = self.indices.setdefault(index, {})
        reasons = []
        for d in docs:
            if d["id"] in self.fail_ids:
                reasons.append(f"mapper_parsing_exception for doc [{d['id']}]")
                continue
            store[d["id"]] = d
        took = int((time.time() - t0) * 1000)
        return BulkOutcome(total=len(docs), failed=len(reasons), took_ms=took, failure_reasons=reasons[:5])

    def clear_fielddata_cache(self, index: str) -> None:
        self.calls.append(("clear_cache", index))

    def wait_for_green(self, timeout: str = "10m") -> bool:
        self.calls.append(("health", None))
        return self.health_timed_out

    def refresh(self, index: str) -> None:
        self.calls.append(("refresh", index))

    def count(self, index: str) -> int:
        self.calls.append(("count", index))
        return len(self.indices.get(index, {}))

    def search(self, index: str, body: Dict) -> SearchOutcome:
        self.calls.append(("search", index))
        t0 = time.time()
        docs = list(self.indices.get(index, {}).values())
        response: Dict = {"hits": {"total": {"value": len(docs) + self.hit_offset, "relation": "eq"}, "hits": []}}
        if "aggs" in body:
            response["aggregations"] = {name: _evaluate_agg(spec, docs) for name, spec in body["aggs"].items()}
        if "facets" in body:
            response["facets"] = {name: _evaluate_facet(spec, docs) for name, spec in body["facets"].items()}
        took = next(self._took) if self._took is not None else int((time.time() - t0) * 1000)
        response["took"] = took
        return SearchOutcome(total_hits=len(docs) + self.hit_offset, took_ms=took, response=response)

    def close(self) -> None:
        self.calls.append(("close", None))
        self.closed = True

    def operations(self) -> List[str]:
        return [op for op, _ in self.calls]


def _values(doc: Dict, field: str) -> list:
    value = doc.get(field)
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _term_counts(docs: List[Dict], field: str) -> Counter:
    counts = Counter()
    for d in docs:
        # a document counts once per distinct term
        counts.update(set(_values(d, field)))
    return counts


def _grouped_values(docs: List[Dict], key_field: str, value_field: str) -> Dict:
    groups = defaultdict(list)
    for d in docs:
        vals = _values(d, value_field)
        for key in set(_values(d, key_field)):
            groups[key].extend(vals)
    return groups


def _stats(values: list) -> Dict:
    if not values:
        return {"count": 0, "min": None, "max": None, "avg": None, "sum": 0}
    arr = np.array(values, dtype=np.float64)
    return {"count": int(arr.size), "min": float(arr.min()), "max": float(arr.max()), "avg": float(arr.mean()), "sum": float(arr.sum())}


def _evaluate_agg(spec: Dict, docs: List[Dict]) -> Dict:
    terms = spec["terms"]
    size = terms.get("size", 10)
    counts = _term_counts(docs, terms["field"])
    stats_spec = spec.get("aggs", {}).get("stats", {}).get("stats")
    groups = _grouped_values(docs, terms["field"], stats_spec["field"]) if stats_spec else {}
    buckets = []
    for key, doc_count in counts.most_common(size):
        bucket = {"key": key, "doc_count": doc_count}
        if stats_spec:
            bucket["stats"] = _stats(groups.get(key, []))
        buckets.append(bucket)
    return {"buckets": buckets}


def _evaluate_facet(spec: Dict, docs: List[Dict]) -> Dict:
    if "terms" in spec:
        counts = _term_counts(docs, spec["terms"]["field"])
        size = spec["terms"].get("size", 10)
        return {"_type": "terms", "total": sum(counts.values()),
                "terms": [{"term": k, "count": c} for k, c in counts.most_common(size)]}
    ts = spec["terms_stats"]
    groups = _grouped_values(docs, ts["key_field"], ts["value_field"])
    entries = []
    for key, vals in groups.items():
        s = _stats(vals)
        entries.append({"term": key, "count": len(vals), "total_count": s["count"], "min": s["min"], "max": s["max"], "total": s["sum"], "mean": s["avg"]})
    entries.sort(key=lambda e: -e["count"])
    return {"_type": "terms_stats", "terms": entries[: ts.get("size", 10)]}

