from __future__ import annotations

import pytest

from config import CorpusSpec
from data.generate_synthetic import generate_documents, generate_term_pools, make_rng
from local_db.mock import SimpleClusterMock

INDEX = "bench"


@pytest.fixture
def small_spec() -> CorpusSpec:
    return CorpusSpec(
        total_documents=300,
        batch_size=100,
        warmup_queries=2,
        measured_queries=3,
        term_pool_size=20,
        multi_value_cardinality=3,
        string_term_length=5,
    )


@pytest.fixture
def pools(small_spec):
    return generate_term_pools(small_spec.term_pool_size, small_spec.string_term_length, make_rng(7))


@pytest.fixture
def load_mock(pools):
    """Put `count` documents into INDEX of the given mock and clear its call log."""

    def _load(mock: SimpleClusterMock, count: int = 50) -> SimpleClusterMock:
        mock.create_index(INDEX, {})
        mock.bulk_write(INDEX, list(generate_documents(1, count, pools, 3, make_rng(1))))
        mock.calls.clear()
        return mock

    return _load


@pytest.fixture
def make_loaded_mock(load_mock):
    """Factory: a mock cluster already holding 50 documents in INDEX."""

    def _make(**kwargs) -> SimpleClusterMock:
        return load_mock(SimpleClusterMock(**kwargs))

    return _make
