"""
SCIM filter parser.

Turns the REST filter syntax (RFC 7644 Section 3.4.2.2) into alternate
filters: a list of conjunctions, each a list of ``FilterTerm``.

``and`` binds tighter than ``or``, so ``a and b or c`` yields
``[[a, b], [c]]``. Grouping with parentheses, ``not`` and bracketed value
paths are not supported and are reported as invalid filters.
"""

import re
from typing import List
from scimcore.exceptions import InvalidFilter
from scimcore.schemas.query import ComparisonOperator, Conjunction, FilterTerm


# A double-quoted string (with backslash escapes) or any run of non-space characters
QUOTED_PATTERN = r'"(?:[^"\\]|\\.)*"'
TOKEN_PATTERN = re.compile(QUOTED_PATTERN + r'|\S+')


class SCIMFilterParser:
    """Parser for SCIM filter expressions to alternate filters"""

    OPERATORS = {op.value: op for op in ComparisonOperator}

    def parse(self, filter_string: str) -> List[Conjunction]:
        """
        Parse SCIM filter string to alternate filters

        Args:
            filter_string: SCIM filter expression

        Returns:
            List of conjunctions; empty when the filter is blank

        Raises:
            InvalidFilter: If filter syntax is invalid
        """
        if not filter_string or not filter_string.strip():
            return []

        tokens = TOKEN_PATTERN.findall(filter_string)
        for token in tokens:
            if not token.startswith('"') and re.search(r'[()\[\]]', token):
                raise InvalidFilter(filter_string, "grouping and value paths are not supported")
            if token.lower() == 'not':
                raise InvalidFilter(filter_string, "'not' is not supported")

        alternates: List[Conjunction] = []
        current: Conjunction = []
        i = 0
        while i < len(tokens):
            term, i = self._parse_term(filter_string, tokens, i)
            current.append(term)

            if i == len(tokens):
                break

            connector = tokens[i].lower()
            if connector == 'and':
                pass
            elif connector == 'or':
                alternates.append(current)
                current = []
            else:
                raise InvalidFilter(filter_string, f"expected 'and' or 'or' but found '{tokens[i]}'")
            i += 1
            if i == len(tokens):
                raise InvalidFilter(filter_string, f"dangling '{connector}'")

        alternates.append(current)
        return alternates

    def _parse_term(self, filter_string: str, tokens: List[str], i: int) -> tuple[FilterTerm, int]:
        """Parse ``attribute operator [value]`` starting at token ``i``"""
        if i + 1 >= len(tokens):
            raise InvalidFilter(filter_string, "incomplete comparison")

        attribute = tokens[i]
        operator = self.OPERATORS.get(tokens[i + 1].lower())
        if operator is None:
            raise InvalidFilter(filter_string, f"unknown operator '{tokens[i + 1]}'")

        if operator == ComparisonOperator.PRESENT:
            return FilterTerm(attribute_path=attribute, operator=operator), i + 2

        if i + 2 >= len(tokens):
            raise InvalidFilter(filter_string, f"missing value after '{attribute} {tokens[i + 1]}'")

        value = self._parse_value(filter_string, tokens[i + 2])
        return FilterTerm(attribute_path=attribute, operator=operator, comparison_value=value), i + 3

    def _parse_value(self, filter_string: str, value: str) -> str:
        """Strip quotes and escapes; unquoted literals (true, 42, null) stay as written"""
        if not value.startswith('"'):
            return value
        if not re.fullmatch(QUOTED_PATTERN, value):
            raise InvalidFilter(filter_string, "unterminated quoted value")
        return re.sub(r'\\(.)', r'\1', value[1:-1])
