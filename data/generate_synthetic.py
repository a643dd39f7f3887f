"""Synthetic corpus generation: term pools and per-id documents.

Every document carries four logical fields, each emitted twice:
- `s_value` / `s_value_dv`: one string term
- `l_value` / `l_value_dv`: one long term
- `sm_value` / `sm_value_dv`: list of string terms
- `lm_value` / `lm_value_dv`: list of long terms

The `_dv` twin holds the same values; the index mapping stores it as a
doc-values-only field.
"""
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

import numpy as np

LETTERS = np.array(list("abcdefghijklmnopqrstuvwxyz"))
INT64 = np.iinfo(np.int64)


@dataclass(frozen=True)
class TermPool:
    string_terms: Tuple[str, ...]
    long_terms: Tuple[int, ...]

    def __len__(self):
        return len(self.string_terms)


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    return np.random.default_rng(seed)


def generate_term_pools(term_pool_size: int, string_term_length: int, rng: np.random.Generator) -> TermPool:
    """Build `term_pool_size` random lowercase ASCII strings and as many random signed 64-bit longs."""
    if term_pool_size <= 0 or string_term_length <= 0:
        raise ValueError("term_pool_size and string_term_length must be positive")
    chars = rng.choice(LETTERS, size=(term_pool_size, string_term_length))
    strings = tuple("".join(row) for row in chars)
    longs = rng.integers(INT64.min, INT64.max, size=term_pool_size, dtype=np.int64, endpoint=True)
    return TermPool(string_terms=strings, long_terms=tuple(int(v) for v in longs))


def generate_document(doc_id: int, pools: TermPool, multi_value_cardinality: int, rng: np.random.Generator) -> Dict:
    # single-value fields are a pure function of the id, multi-value fields are resampled per element
    n = len(pools)
    s_value = pools.string_terms[(doc_id - 1) % n]
    l_value = pools.long_terms[(doc_id - 1) % n]
    sm_value = [pools.string_terms[i] for i in rng.integers(0, n, size=multi_value_cardinality)]
    lm_value = [pools.long_terms[i] for i in rng.integers(0, n, size=multi_value_cardinality)]
    return {
        "id": str(doc_id),
        "s_value": s_value,
        "s_value_dv": s_value,
        "l_value": l_value,
        "l_value_dv": l_value,
        "sm_value": sm_value,
        "sm_value_dv": list(sm_value),
        "lm_value": lm_value,
        "lm_value_dv": list(lm_value),
    }


def generate_documents(start_id: int, count: int, pools: TermPool, multi_value_cardinality: int, rng: np.random.Generator) -> Iterator[Dict]:
    """Yield `count` consecutive documents starting at `start_id`."""
    for doc_id in range(start_id, start_id + count):
        yield generate_document(doc_id, pools, multi_value_cardinality, rng)
