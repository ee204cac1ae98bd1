"""
SCIM path parser for PATCH operation paths (RFC 7644 Section 3.5.2).

Supports:
- Simple paths: "userName", "name.givenName"
- ValuePath with filters: "emails[type eq \"work\"].value"
- Complex filters: "members[value eq \"user-id\"]"
- Paths qualified with the core schema URI
"""

import re
from typing import Optional, Dict, Any
from dataclasses import dataclass


@dataclass
class SCIMPath:
    """Represents a parsed SCIM path"""
    attribute: str  # Main attribute name (e.g., "emails", "name")
    filter_expr: Optional[str] = None  # Filter expression if present (e.g., 'type eq "work"')
    sub_attribute: Optional[str] = None  # Sub-attribute if present (e.g., "value", "givenName")
    schema_uri: Optional[str] = None  # Schema URI if fully qualified


def parse_scim_path(path: str) -> SCIMPath:
    """
    Parse a SCIM path according to RFC 7644.

    Examples:
        "userName" -> SCIMPath(attribute="userName")
        "name.givenName" -> SCIMPath(attribute="name", sub_attribute="givenName")
        "emails[type eq \"work\"].value" -> SCIMPath(attribute="emails", filter_expr='type eq "work"', sub_attribute="value")

    Raises:
        ValueError: If the path is invalid
    """
    if not path or not path.strip():
        raise ValueError("Path cannot be empty")
    path = path.strip()

    # Fully qualified path: urn:...:User:attribute[.subAttribute]
    schema_pattern = r'^(urn:[^\[\]]+):([^:.\[\]]+)(?:\.([^.\[\]]+))?$'
    schema_match = re.match(schema_pattern, path)
    if schema_match:
        return SCIMPath(
            attribute=schema_match.group(2),
            sub_attribute=schema_match.group(3),
            schema_uri=schema_match.group(1)
        )

    # Pattern for paths with filters: attribute[filter].subAttribute or attribute[filter]
    filter_pattern = r'^([^.\[]+)\[([^\]]+)\](?:\.([^.\[]+))?$'
    filter_match = re.match(filter_pattern, path)
    if filter_match:
        return SCIMPath(
            attribute=filter_match.group(1),
            filter_expr=filter_match.group(2),
            sub_attribute=filter_match.group(3)
        )

    # Pattern for simple paths: attribute.subAttribute or attribute
    simple_pattern = r'^([^.\[\]]+)(?:\.([^.\[\]]+))?$'
    simple_match = re.match(simple_pattern, path)
    if simple_match:
        return SCIMPath(
            attribute=simple_match.group(1),
            sub_attribute=simple_match.group(2)
        )

    raise ValueError(f"Invalid SCIM path: {path}")


def parse_filter_expression(filter_expr: str) -> Dict[str, Any]:
    """
    Parse a value filter like 'type eq "work"' or 'value eq "user-id"'.

    Returns:
        Dict with 'attribute', 'operator', and 'value' keys
    """
    pattern = r'^\s*(\w+)\s+(eq|ne|co|sw|ew|pr)(?:\s+("(?:[^"\\]|\\.)*"|\S+))?\s*$'
    match = re.match(pattern, filter_expr, re.IGNORECASE)

    if not match:
        raise ValueError(f"Invalid filter expression: {filter_expr}")

    attribute = match.group(1)
    operator = match.group(2).lower()
    value = match.group(3)

    if operator != "pr" and value is None:
        raise ValueError(f"Missing comparison value in filter expression: {filter_expr}")

    if value and value.startswith('"') and value.endswith('"'):
        value = value[1:-1].replace('\\"', '"')

    return {
        "attribute": attribute,
        "operator": operator,
        "value": value
    }


def evaluate_filter(item: Dict[str, Any], filter_parts: Dict[str, Any]) -> bool:
    """
    Evaluate a parsed value filter against one element of a multi-valued attribute.

    String comparisons ignore case, as SCIM string attributes are caseExact=false.
    """
    attribute = filter_parts["attribute"]
    operator = filter_parts["operator"]

    # Sub-attribute names are case-insensitive as well
    actual_value = next((v for k, v in item.items() if k.lower() == attribute.lower()), None)
    if operator == "pr":
        return actual_value is not None
    if actual_value is None:
        return False

    actual = str(actual_value).lower()
    expected = str(filter_parts["value"]).lower()

    if operator == "eq":
        return actual == expected
    elif operator == "ne":
        return actual != expected
    elif operator == "co":
        return expected in actual
    elif operator == "sw":
        return actual.startswith(expected)
    elif operator == "ew":
        return actual.endswith(expected)

    raise ValueError(f"Unsupported operator '{operator}' in value filter")


def find_matching_items(items: list, filter_expr: str) -> list:
    """
    Return the indexes of the items in a list that match a filter expression.

    Args:
        items: List of dictionaries to filter
        filter_expr: Filter expression like 'type eq "work"'
    """
    filter_parts = parse_filter_expression(filter_expr)
    return [index for index, item in enumerate(items) if evaluate_filter(item, filter_parts)]
