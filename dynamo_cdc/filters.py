"""
Partition-key filters for the DynamoDB stream subscription.

Patterns are either an exact partition key (``ORDER#123``) or a prefix with a
single trailing wildcard (``ORDER#*``). The same patterns compile to the
Lambda event source mapping ``FilterCriteria`` document and can be evaluated
in-process.
"""

import json
from dataclasses import dataclass
from typing import Iterable, Sequence

from dynamo_cdc.exceptions import InvalidFilterPatternError

WILDCARD = "*"

FilterRule = str | dict[str, str]


@dataclass(frozen=True)
class PkFilter:
    """A compiled partition-key pattern."""

    value: str
    is_prefix: bool = False

    def matches(self, pk: str) -> bool:
        if self.is_prefix:
            return pk.startswith(self.value)
        return pk == self.value

    def to_rule(self) -> FilterRule:
        """Rule as it appears inside an event filter pattern."""
        if self.is_prefix:
            return {"prefix": self.value}
        return self.value


def compile_pk_filter(pattern: str) -> PkFilter:
    """
    Compile one pattern.

    Raises:
        InvalidFilterPatternError: If the pattern has more than one wildcard
            or a wildcard anywhere but the end.
    """
    parts = pattern.split(WILDCARD)
    if len(parts) == 1:
        return PkFilter(value=pattern)
    if len(parts) == 2 and parts[1] == "":
        return PkFilter(value=parts[0], is_prefix=True)
    raise InvalidFilterPatternError(f"Invalid pkFilter: {pattern}")


def compile_pk_filters(patterns: Iterable[str]) -> tuple[PkFilter, ...]:
    return tuple(compile_pk_filter(pattern) for pattern in patterns)


def matches_pk_filters(pk: str, filters: Sequence[PkFilter]) -> bool:
    """True when no filters are configured or any filter matches."""
    if not filters:
        return True
    return any(pk_filter.matches(pk) for pk_filter in filters)


def build_filter_criteria(
    patterns: Iterable[str], key_attribute: str = "pk"
) -> dict[str, list[dict[str, str]]]:
    """
    Build the ``FilterCriteria`` for a DynamoDB event source mapping.

    Args:
        patterns: Human-authored partition-key patterns
        key_attribute: Name of the partition-key attribute

    Returns:
        Dict suitable for ``lambda.create_event_source_mapping(FilterCriteria=...)``
    """
    rules = [pk_filter.to_rule() for pk_filter in compile_pk_filters(patterns)]
    if not rules:
        return {"Filters": []}

    pattern = {"dynamodb": {"Keys": {key_attribute: {"S": rules}}}}
    return {"Filters": [{"Pattern": json.dumps(pattern)}]}


__all__ = [
    "PkFilter",
    "build_filter_criteria",
    "compile_pk_filter",
    "compile_pk_filters",
    "matches_pk_filters",
]
