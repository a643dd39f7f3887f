"""Configuration and defaults for the benchmark."""
import os
from dataclasses import dataclass, fields
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

CLUSTER_URL = os.getenv("CLUSTER_URL", "http://localhost:9200")
CLUSTER_USERNAME = os.getenv("CLUSTER_USERNAME")
CLUSTER_PASSWORD = os.getenv("CLUSTER_PASSWORD")

BENCH_INDEX = os.getenv("BENCH_INDEX", "test")
BENCH_SEED = os.getenv("BENCH_SEED")

# Health wait used after loading (or when the index already exists)
READINESS_TIMEOUT = os.getenv("READINESS_TIMEOUT", "10m")

# A progress line is printed every time this many more documents are indexed
PROGRESS_EVERY = 10000

# Corpus defaults
DEFAULT_TOTAL_DOCUMENTS = 2_000_000
DEFAULT_BATCH_SIZE = 1000
DEFAULT_WARMUP_QUERIES = 10
DEFAULT_MEASURED_QUERIES = 100
DEFAULT_TERM_POOL_SIZE = 200
DEFAULT_MULTI_VALUE_CARDINALITY = 10
DEFAULT_STRING_TERM_LENGTH = 5

# Index settings used while the corpus is created
INDEX_SETTINGS = {
    "number_of_shards": 1,
    "number_of_replicas": 0,
    "refresh_interval": "-1",
}


@dataclass(frozen=True)
class CorpusSpec:
    """Static parameters of the synthetic dataset and the query loop."""

    total_documents: int = DEFAULT_TOTAL_DOCUMENTS
    batch_size: int = DEFAULT_BATCH_SIZE
    warmup_queries: int = DEFAULT_WARMUP_QUERIES
    measured_queries: int = DEFAULT_MEASURED_QUERIES
    term_pool_size: int = DEFAULT_TERM_POOL_SIZE
    multi_value_cardinality: int = DEFAULT_MULTI_VALUE_CARDINALITY
    string_term_length: int = DEFAULT_STRING_TERM_LENGTH

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{f.name} must be a positive integer, got {value!r}")

    @classmethod
    def from_env(cls, **overrides) -> "CorpusSpec":
        """Build a spec from BENCH_* environment variables; explicit overrides win.

        e.g. BENCH_TOTAL_DOCUMENTS=50000 BENCH_BATCH_SIZE=500
        """
        values = {}
        for f in fields(cls):
            raw = os.getenv(f"BENCH_{f.name.upper()}")
            if raw is not None and raw.strip():
                values[f.name] = int(raw)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def seed_from_env() -> Optional[int]:
    return int(BENCH_SEED) if BENCH_SEED else None
