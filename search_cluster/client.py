"""Search cluster helper utilities: connection, index schema, bulk, health, query wrappers.

Schema notes:
- every logical field is mapped twice: `<field>` is indexed normally, `<field>_dv`
  is not indexed and only readable through doc values.
- index settings (1 shard, 0 replicas, refresh disabled) keep the load path cheap;
  the benchmark refreshes explicitly before counting.

All calls are synchronous. Transport errors raised by `opensearchpy` are left to
propagate, except for index creation which reports its outcome as a
`CreateIndexResult`.
"""
import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from opensearchpy import OpenSearch
from opensearchpy.exceptions import RequestError, TransportError

from config import INDEX_SETTINGS

# error types reported by the cluster when the index is already there
ALREADY_EXISTS_ERRORS = ("resource_already_exists_exception", "index_already_exists_exception")

LOGICAL_FIELDS = {
    "s_value": "keyword",
    "sm_value": "keyword",
    "l_value": "long",
    "lm_value": "long",
}


class CreateStatus(enum.Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    FATAL = "fatal"


@dataclass(frozen=True)
class CreateIndexResult:
    status: CreateStatus
    error: Optional[BaseException] = None

    @classmethod
    def created(cls):
        return cls(CreateStatus.CREATED)

    @classmethod
    def already_exists(cls):
        return cls(CreateStatus.ALREADY_EXISTS)

    @classmethod
    def fatal(cls, error: BaseException):
        return cls(CreateStatus.FATAL, error)


@dataclass(frozen=True)
class BulkOutcome:
    total: int
    failed: int = 0
    took_ms: int = 0
    failure_reasons: List[str] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


@dataclass(frozen=True)
class SearchOutcome:
    total_hits: int
    took_ms: int
    response: Dict[str, Any] = field(default_factory=dict, repr=False)


def build_index_body(settings: Optional[Dict] = None) -> Dict:
    """Index body with a standard and a doc-values-only mapping per logical field."""
    properties: Dict[str, Dict] = {"id": {"type": "keyword"}}
    for name, field_type in LOGICAL_FIELDS.items():
        properties[name] = {"type": field_type}
        properties[f"{name}_dv"] = {"type": field_type, "index": False, "doc_values": True}
    return {
        "settings": dict(settings if settings is not None else INDEX_SETTINGS),
        "mappings": {"properties": properties},
    }


def total_hits_of(response: Dict[str, Any]) -> int:
    # older clusters report a bare integer, newer ones {"value": n, "relation": "eq"}
    total = response.get("hits", {}).get("total", 0)
    if isinstance(total, dict):
        return int(total.get("value", 0))
    return int(total)


def bulk_actions(index: str, docs: List[Dict]) -> List[Dict]:
    actions = []
    for d in docs:
        actions.append({"index": {"_index": index, "_id": d["id"]}})
        actions.append(d)
    return actions


def summarize_bulk_response(response: Dict[str, Any], total: int, max_reasons: int = 5) -> BulkOutcome:
    failed = 0
    reasons = []
    if response.get("errors"):
        for item in response.get("items", []):
            result = next(iter(item.values()), {})
            error = result.get("error")
            if error is None:
                continue
            failed += 1
            if len(reasons) < max_reasons:
                reasons.append(error.get("reason", str(error)) if isinstance(error, dict) else str(error))
    return BulkOutcome(total=total, failed=failed, took_ms=int(response.get("took", 0)), failure_reasons=reasons)


def get_client(url: str = "http://localhost:9200", username: Optional[str] = None, password: Optional[str] = None, timeout: int = 60) -> OpenSearch:
    http_auth = (username, password) if username else None
    return OpenSearch(hosts=[url], http_auth=http_auth, timeout=timeout)


class SearchClusterClient:
    """Benchmark-facing view of a live cluster.

    Wraps an `opensearchpy.OpenSearch` instance; construct it once and pass it to
    the loader, the readiness gate and the runner.
    """

    def __init__(self, client: OpenSearch, track_total_hits: bool = True):
        self._client = client
        self.track_total_hits = track_total_hits

    @classmethod
    def connect(cls, url: str, username: Optional[str] = None, password: Optional[str] = None, **kwargs) -> "SearchClusterClient":
        return cls(get_client(url, username, password), **kwargs)

    def create_index(self, index: str, body: Dict) -> CreateIndexResult:
        try:
            self._client.indices.create(index=index, body=body)
        except RequestError as e:
            if e.error in ALREADY_EXISTS_ERRORS:
                return CreateIndexResult.already_exists()
            return CreateIndexResult.fatal(e)
        except TransportError as e:
            return CreateIndexResult.fatal(e)
        return CreateIndexResult.created()

    def bulk_write(self, index: str, docs: List[Dict]) -> BulkOutcome:
        response = self._client.bulk(body=bulk_actions(index, docs))
        return summarize_bulk_response(response, total=len(docs))

    def clear_fielddata_cache(self, index: str) -> None:
        self._client.indices.clear_cache(index=index, fielddata=True)

    def wait_for_green(self, timeout: str = "10m") -> bool:
        """Block until the cluster is green; returns True if the wait timed out.

        The cluster answers a timed-out wait with HTTP 408, which the client raises.
        """
        try:
            response = self._client.cluster.health(
                wait_for_status="green",
                timeout=timeout,
                request_timeout=_seconds(timeout) + 30,
            )
        except TransportError as e:
            if e.status_code == 408:
                return True
            raise
        return bool(response.get("timed_out", False))

    def refresh(self, index: str) -> None:
        self._client.indices.refresh(index=index)

    def count(self, index: str) -> int:
        response = self._client.count(index=index, body={"query": {"match_all": {}}})
        return int(response["count"])

    def search(self, index: str, body: Dict) -> SearchOutcome:
        params = {"track_total_hits": True} if self.track_total_hits else {}
        response = self._client.search(index=index, body=body, **params)
        return SearchOutcome(total_hits=total_hits_of(response), took_ms=int(response.get("took", 0)), response=response)

    def close(self) -> None:
        self._client.close()


_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600, "d": 86400}


def _seconds(value: str) -> float:
    """'10m' -> 600.0"""
    value = value.strip().lower()
    for suffix in ("ms", "s", "m", "h", "d"):
        if value.endswith(suffix):
            number = value[: -len(suffix)]
            if number.replace(".", "", 1).isdigit():
                return float(number) * _UNITS[suffix]
    return float(value)
