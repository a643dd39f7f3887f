"""Query strategies: the same terms / terms-stats question asked through two cluster mechanisms.

- FacetStrategy: legacy `facets` section (`terms`, `terms_stats`)
- AggregationStrategy: `aggs` section (`terms`, `terms` + `stats` sub-aggregation)

Both return a complete count-only search body (`size: 0` over `match_all`), so the
runner never needs to know which mechanism a case uses.
"""
from abc import ABC, abstractmethod
from typing import Dict, Optional


class QueryStrategy(ABC):
    name: str = ""

    @staticmethod
    def _count_only(section: str, name: str, spec: Dict) -> Dict:
        return {"size": 0, "query": {"match_all": {}}, section: {name: spec}}

    @abstractmethod
    def build_terms_query(self, name: str, field: str, execution_hint: Optional[str] = None) -> Dict:
        """Document frequency per distinct term of `field`."""

    @abstractmethod
    def build_terms_stats_query(self, name: str, key_field: str, value_field: str, execution_hint: Optional[str] = None) -> Dict:
        """Statistics of `value_field` per distinct term of `key_field`."""

    def __repr__(self):
        return f"{type(self).__name__}()"


class FacetStrategy(QueryStrategy):
    name = "facet"

    def build_terms_query(self, name, field, execution_hint=None):
        terms = {"field": field}
        if execution_hint:
            terms["execution_hint"] = execution_hint
        return self._count_only("facets", name, {"terms": terms})

    def build_terms_stats_query(self, name, key_field, value_field, execution_hint=None):
        # the terms_stats facet has no execution hint
        return self._count_only("facets", name, {"terms_stats": {"key_field": key_field, "value_field": value_field}})


class AggregationStrategy(QueryStrategy):
    name = "aggregation"

    def build_terms_query(self, name, field, execution_hint=None):
        terms = {"field": field}
        if execution_hint:
            terms["execution_hint"] = execution_hint
        return self._count_only("aggs", name, {"terms": terms})

    def build_terms_stats_query(self, name, key_field, value_field, execution_hint=None):
        terms = {"field": key_field}
        if execution_hint:
            terms["execution_hint"] = execution_hint
        return self._count_only("aggs", name, {"terms": terms, "aggs": {"stats": {"stats": {"field": value_field}}}})


FACET = FacetStrategy()
AGGREGATION = AggregationStrategy()

STRATEGIES = {s.name: s for s in (FACET, AGGREGATION)}


def get_strategy(name: str) -> QueryStrategy:
    try:
        return STRATEGIES[name.lower()]
    except KeyError:
        raise ValueError(f"Unsupported strategy {name}") from None
