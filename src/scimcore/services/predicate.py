"""
Compile alternate filters into a boolean test over resources.

Each resource type exposes a fixed table mapping a filter attribute path to
an accessor and the operators it supports. Paths are matched exactly as
documented (``userName``, ``meta.lastModified``); the string comparisons
themselves ignore case.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, FrozenSet, List, Mapping, Sequence
from scimcore.exceptions import InvalidFilter, UnsupportedFilterAttribute, UnsupportedFilterOperator
from scimcore.schemas import ComparisonOperator, Conjunction, FilterTerm, Resource

Predicate = Callable[[Resource], bool]


class FilterValueType(str, Enum):
    STRING = "string"
    BOOLEAN = "boolean"
    DATETIME = "dateTime"


@dataclass(frozen=True)
class FilterAttribute:
    getter: Callable[[Any], Any]
    value_type: FilterValueType
    operators: FrozenSet[ComparisonOperator]


_EQUALS = frozenset({ComparisonOperator.EQUALS})
_RANGE = frozenset({ComparisonOperator.EQUAL_OR_GREATER_THAN, ComparisonOperator.EQUAL_OR_LESS_THAN})


USER_FILTER_ATTRIBUTES: Mapping[str, FilterAttribute] = {
    "userName": FilterAttribute(lambda u: u.user_name, FilterValueType.STRING, _EQUALS),
    "displayName": FilterAttribute(lambda u: u.display_name, FilterValueType.STRING, _EQUALS),
    "externalId": FilterAttribute(lambda u: u.external_id, FilterValueType.STRING, _EQUALS),
    "active": FilterAttribute(lambda u: u.active, FilterValueType.BOOLEAN, _EQUALS),
    "meta.lastModified": FilterAttribute(lambda u: u.meta.last_modified, FilterValueType.DATETIME, _RANGE),
}

GROUP_FILTER_ATTRIBUTES: Mapping[str, FilterAttribute] = {
    "displayName": FilterAttribute(lambda g: g.display_name, FilterValueType.STRING, _EQUALS),
}


def parse_boolean(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    raise ValueError(f"'{value}' is not a boolean")


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp and normalise it to UTC; naive values are taken as UTC."""
    return as_utc(datetime.fromisoformat(value.strip()))


def _always(resource: Resource) -> bool:
    return True


class PredicateCompiler:
    def __init__(self, attributes: Mapping[str, FilterAttribute]):
        self.attributes = attributes

    def compile(self, conjunctions: Sequence[Conjunction]) -> Predicate:
        """Build the OR of the ANDs; every term is validated before anything is returned."""
        if not conjunctions:
            return _always

        compiled: List[List[Predicate]] = [
            [self._compile_term(term) for term in conjunction]
            for conjunction in conjunctions
        ]

        def predicate(resource: Resource) -> bool:
            return any(all(test(resource) for test in tests) for tests in compiled)

        return predicate

    def _compile_term(self, term: FilterTerm) -> Predicate:
        path = term.attribute_path
        if not path or not path.strip():
            raise InvalidFilter(str(term), "attribute path is required")
        if term.comparison_value is None or not term.comparison_value.strip():
            raise InvalidFilter(str(term), "comparison value is required")

        attribute = self.attributes.get(path)
        if attribute is None:
            raise UnsupportedFilterAttribute(path)
        if term.operator not in attribute.operators:
            raise UnsupportedFilterOperator(term.operator.value, path)

        getter = attribute.getter

        if attribute.value_type == FilterValueType.STRING:
            expected = term.comparison_value.casefold()

            def matches_string(resource: Resource) -> bool:
                actual = getter(resource)
                return actual is not None and actual.casefold() == expected

            return matches_string

        if attribute.value_type == FilterValueType.BOOLEAN:
            try:
                flag = parse_boolean(term.comparison_value)
            except ValueError as e:
                raise InvalidFilter(str(term), str(e)) from e

            def matches_boolean(resource: Resource) -> bool:
                return getter(resource) == flag

            return matches_boolean

        try:
            boundary = parse_timestamp(term.comparison_value)
        except ValueError as e:
            raise InvalidFilter(str(term), f"'{term.comparison_value}' is not a timestamp") from e

        if term.operator == ComparisonOperator.EQUAL_OR_GREATER_THAN:
            def matches_after(resource: Resource) -> bool:
                actual = getter(resource)
                return actual is not None and as_utc(actual) >= boundary

            return matches_after

        def matches_before(resource: Resource) -> bool:
            actual = getter(resource)
            return actual is not None and as_utc(actual) <= boundary

        return matches_before

