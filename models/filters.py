"""
Typed catalog entity filters.

A filter is a disjunction of conjunctions: the catalog returns an entity when
any alternative matches, and an alternative matches when all of its terms do.
This mirrors the catalog API, where each alternative becomes one ``filter``
query parameter.
"""

import json
from dataclasses import dataclass
from typing import Any, List, Tuple, Union


class FilterError(ValueError):
    """A filter expression could not be parsed."""


@dataclass(frozen=True)
class KindFilter:
    """Matches entities of any of the given kinds."""

    kinds: Tuple[str, ...]

    def to_terms(self) -> List[str]:
        return [f"kind={kind}" for kind in self.kinds]


@dataclass(frozen=True)
class FieldFilter:
    """Matches entities whose field has any of the given values."""

    key: str
    values: Tuple[str, ...]

    def to_terms(self) -> List[str]:
        return [f"{self.key}={value}" for value in self.values]


Term = Union[KindFilter, FieldFilter]


@dataclass(frozen=True)
class Conjunction:
    """All terms must match."""

    terms: Tuple[Term, ...]

    def without_kinds(self) -> 'Conjunction':
        return Conjunction(tuple(t for t in self.terms if not isinstance(t, KindFilter)))

    def to_query_value(self) -> str:
        parts: List[str] = []
        for term in self.terms:
            parts.extend(term.to_terms())
        return ','.join(parts)


@dataclass(frozen=True)
class EntityFilter:
    """Any of the alternatives may match. No alternatives means no filtering."""

    alternatives: Tuple[Conjunction, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.alternatives)

    def with_allowed_kinds(self, kinds: List[str]) -> 'EntityFilter':
        """
        Restrict every alternative to the allowed kinds.

        Kind terms already present are replaced; other terms are kept.

        Args:
            kinds: Allowed entity kinds

        Returns:
            A new EntityFilter
        """
        if not kinds:
            return self
        allowed = KindFilter(tuple(kinds))
        if not self.alternatives:
            return EntityFilter((Conjunction((allowed,)),))
        return EntityFilter(tuple(
            Conjunction((allowed,) + alt.without_kinds().terms)
            for alt in self.alternatives
        ))

    def to_query_params(self) -> List[Tuple[str, str]]:
        params = []
        for alt in self.alternatives:
            value = alt.to_query_value()
            if value:
                params.append(('filter', value))
        return params

    def __str__(self) -> str:
        if not self.alternatives:
            return '<all entities>'
        return ' | '.join(alt.to_query_value() for alt in self.alternatives)


def _as_values(key: str, value: Any) -> Tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        values = value
    else:
        values = [value]
    if not values:
        raise FilterError(f"Filter key '{key}' has no values")
    for item in values:
        if not isinstance(item, (str, int, float, bool)):
            raise FilterError(f"Filter key '{key}' has a non-scalar value: {item!r}")
    return tuple(str(item) for item in values)


def _parse_conjunction(raw: Any) -> Conjunction:
    if not isinstance(raw, dict):
        raise FilterError(f"Filter alternative must be a mapping, got {type(raw).__name__}")
    terms: List[Term] = []
    for key, value in raw.items():
        if not isinstance(key, str) or not key:
            raise FilterError(f"Invalid filter key: {key!r}")
        values = _as_values(key, value)
        if key.lower() == 'kind':
            terms.append(KindFilter(values))
        else:
            terms.append(FieldFilter(key, values))
    return Conjunction(tuple(terms))


def parse_filter(raw: Any) -> EntityFilter:
    """
    Parse a filter expression from config or the remote probe.

    Args:
        raw: None, a mapping, a list of mappings, or a JSON string of either

    Returns:
        EntityFilter (empty when raw is None or empty)

    Raises:
        FilterError: if the expression has an unsupported shape
    """
    if raw is None:
        return EntityFilter()
    if isinstance(raw, EntityFilter):
        return raw
    if isinstance(raw, str):
        if not raw.strip():
            return EntityFilter()
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise FilterError(f"Filter is not valid JSON: {e}") from e
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        raise FilterError(f"Filter must be a mapping or a list, got {type(raw).__name__}")
    return EntityFilter(tuple(_parse_conjunction(item) for item in raw if item))
