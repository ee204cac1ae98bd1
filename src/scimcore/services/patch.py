"""
Apply PATCH operations (RFC 7644 Section 3.5.2) to a resource.

Operations run in order against a private deep copy of the resource; the
copy is handed back only once every operation has succeeded, so a failed
request leaves the caller's instance untouched. ``id`` and ``meta`` are
never patchable.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, TypeVar
from pydantic import BaseModel, ValidationError
from scimcore.exceptions import InvalidPatch, InvalidValue, UnsupportedPatchPath
from scimcore.schemas import (
    Email, GroupMember, Name, PatchOperation, PatchOperationKind, Resource
)
from scimcore.services.predicate import parse_boolean
from scimcore.utils import logger, parse_scim_path, find_matching_items, SCIMPath

R = TypeVar("R", bound=Resource)


class PatchValueType(str, Enum):
    STRING = "string"
    BOOLEAN = "boolean"
    COMPLEX = "complex"
    MULTI_VALUED = "multiValued"


@dataclass(frozen=True)
class PatchAttribute:
    field: str
    value_type: PatchValueType
    item_model: Optional[Type[BaseModel]] = None


# Keys are lower-cased: SCIM attribute names are case-insensitive
USER_PATCH_ATTRIBUTES: Mapping[str, PatchAttribute] = {
    "username": PatchAttribute("user_name", PatchValueType.STRING),
    "displayname": PatchAttribute("display_name", PatchValueType.STRING),
    "externalid": PatchAttribute("external_id", PatchValueType.STRING),
    "nickname": PatchAttribute("nick_name", PatchValueType.STRING),
    "title": PatchAttribute("title", PatchValueType.STRING),
    "usertype": PatchAttribute("user_type", PatchValueType.STRING),
    "preferredlanguage": PatchAttribute("preferred_language", PatchValueType.STRING),
    "locale": PatchAttribute("locale", PatchValueType.STRING),
    "timezone": PatchAttribute("timezone", PatchValueType.STRING),
    "active": PatchAttribute("active", PatchValueType.BOOLEAN),
    "name": PatchAttribute("name", PatchValueType.COMPLEX, Name),
    "emails": PatchAttribute("emails", PatchValueType.MULTI_VALUED, Email),
}

GROUP_PATCH_ATTRIBUTES: Mapping[str, PatchAttribute] = {
    "displayname": PatchAttribute("display_name", PatchValueType.STRING),
    "externalid": PatchAttribute("external_id", PatchValueType.STRING),
    "members": PatchAttribute("members", PatchValueType.MULTI_VALUED, GroupMember),
}


def _sub_attribute_field(model: Type[BaseModel], name: str) -> Optional[str]:
    """Resolve a wire sub-attribute name (``givenName``) to the model field name."""
    for field_name, info in model.model_fields.items():
        if (info.alias or field_name).lower() == name.lower() or field_name.lower() == name.lower():
            return field_name
    return None


class PatchEngine:
    def __init__(self, attributes: Mapping[str, PatchAttribute]):
        self.attributes = attributes

    def apply(self, resource: R, operations: Sequence[PatchOperation]) -> R:
        patched = resource.model_copy(deep=True)

        for idx, operation in enumerate(operations):
            logger.debug(f"apply: operation {idx + 1} - op: {operation.op.value}, path: {operation.path}, value: {operation.value}")
            self._apply_operation(patched, operation, idx)

        # Re-validate so cross-field rules (single primary email, ...) still hold
        try:
            return type(resource).model_validate(patched.model_dump())
        except ValidationError as e:
            raise InvalidValue(f"Patched resource is invalid: {e.errors()[0]['msg']}") from e

    def _apply_operation(self, resource: Resource, operation: PatchOperation, idx: int) -> None:
        op = operation.op
        path = operation.path

        if path is None or not path.strip():
            if op == PatchOperationKind.REMOVE:
                raise InvalidPatch(f"Operation {idx + 1}: 'path' is required for 'remove' operations")
            if not isinstance(operation.value, dict):
                raise InvalidPatch(f"Operation {idx + 1}: '{op.value}' without path requires an object value")
            # Each key of the object is patched as if it had been given as the path
            for key, value in operation.value.items():
                self._apply_path(resource, op, key, value)
            return

        self._apply_path(resource, op, path, operation.value)

    def _apply_path(self, resource: Resource, op: PatchOperationKind, path: str, value: Any) -> None:
        try:
            parsed = parse_scim_path(path)
        except ValueError as e:
            raise InvalidPatch(f"Invalid path '{path}': {e}") from e

        if parsed.schema_uri and parsed.schema_uri.lower() not in (s.lower() for s in resource.schemas):
            raise UnsupportedPatchPath(path)

        attribute = self.attributes.get(parsed.attribute.lower())
        if attribute is None:
            raise UnsupportedPatchPath(path)

        if parsed.filter_expr:
            if attribute.value_type != PatchValueType.MULTI_VALUED:
                raise UnsupportedPatchPath(path)
            self._patch_filtered(resource, op, attribute, parsed, value, path)
        elif parsed.sub_attribute:
            if attribute.value_type != PatchValueType.COMPLEX:
                raise UnsupportedPatchPath(path)
            self._patch_sub_attribute(resource, op, attribute, parsed.sub_attribute, value, path)
        elif attribute.value_type == PatchValueType.MULTI_VALUED:
            self._patch_multi_valued(resource, op, attribute, value, path)
        elif attribute.value_type == PatchValueType.COMPLEX:
            self._patch_complex(resource, op, attribute, value, path)
        else:
            self._patch_simple(resource, op, attribute, value, path)

    def _patch_simple(self, resource: Resource, op: PatchOperationKind, attribute: PatchAttribute, value: Any, path: str) -> None:
        if op == PatchOperationKind.REMOVE:
            setattr(resource, attribute.field, False if attribute.value_type == PatchValueType.BOOLEAN else None)
            return

        if attribute.value_type == PatchValueType.BOOLEAN:
            if isinstance(value, str):
                try:
                    value = parse_boolean(value)
                except ValueError as e:
                    raise InvalidValue(f"'{path}' expects a boolean: {e}") from e
            elif not isinstance(value, bool):
                raise InvalidValue(f"'{path}' expects a boolean")
        elif value is not None and not isinstance(value, str):
            raise InvalidValue(f"'{path}' expects a string")

        setattr(resource, attribute.field, value)

    def _patch_complex(self, resource: Resource, op: PatchOperationKind, attribute: PatchAttribute, value: Any, path: str) -> None:
        if op == PatchOperationKind.REMOVE:
            setattr(resource, attribute.field, None)
            return
        if not isinstance(value, dict):
            raise InvalidValue(f"'{path}' expects an object")

        current = getattr(resource, attribute.field)
        if op == PatchOperationKind.ADD and current is not None:
            # add merges into the existing value, replace overwrites it
            value = {**current.model_dump(by_alias=True), **value}

        setattr(resource, attribute.field, self._build(attribute.item_model, value, path))

    def _patch_sub_attribute(self, resource: Resource, op: PatchOperationKind, attribute: PatchAttribute, sub_attribute: str, value: Any, path: str) -> None:
        field = _sub_attribute_field(attribute.item_model, sub_attribute)
        if field is None:
            raise UnsupportedPatchPath(path)

        current = getattr(resource, attribute.field)
        if op == PatchOperationKind.REMOVE:
            if current is not None:
                setattr(current, field, None)
            return

        if value is not None and not isinstance(value, str):
            raise InvalidValue(f"'{path}' expects a string")
        if current is None:
            current = attribute.item_model()
            setattr(resource, attribute.field, current)
        setattr(current, field, value)

    def _patch_multi_valued(self, resource: Resource, op: PatchOperationKind, attribute: PatchAttribute, value: Any, path: str) -> None:
        current: List[BaseModel] = getattr(resource, attribute.field)

        if op == PatchOperationKind.REMOVE:
            if value is None:
                setattr(resource, attribute.field, [])
                return
            doomed = {self._item_value(item) for item in self._as_list(value)}
            setattr(resource, attribute.field, [item for item in current if item.value.lower() not in doomed])
            return

        items = [self._build(attribute.item_model, self._as_item(item), path) for item in self._as_list(value)]

        if op == PatchOperationKind.REPLACE:
            setattr(resource, attribute.field, items)
            return

        merged = list(current)
        seen = {item.value.lower() for item in merged}
        for item in items:
            if item.value.lower() not in seen:
                merged.append(item)
                seen.add(item.value.lower())
        setattr(resource, attribute.field, merged)

    def _patch_filtered(self, resource: Resource, op: PatchOperationKind, attribute: PatchAttribute, parsed: SCIMPath, value: Any, path: str) -> None:
        current: List[BaseModel] = list(getattr(resource, attribute.field))
        try:
            matched = find_matching_items([item.model_dump(by_alias=True) for item in current], parsed.filter_expr)
        except ValueError as e:
            raise InvalidPatch(f"Invalid path '{path}': {e}") from e

        sub_field = None
        if parsed.sub_attribute:
            sub_field = _sub_attribute_field(attribute.item_model, parsed.sub_attribute)
            if sub_field is None:
                raise UnsupportedPatchPath(path)

        if op == PatchOperationKind.REMOVE:
            if sub_field is None:
                setattr(resource, attribute.field, [item for index, item in enumerate(current) if index not in matched])
                return
            updates = {sub_field: None}
        elif sub_field is not None:
            updates = {sub_field: value}
        elif isinstance(value, dict):
            updates = value
        else:
            raise InvalidValue(f"'{path}' expects an object")

        if not matched and op != PatchOperationKind.REMOVE:
            raise InvalidPatch(f"No values matched '{path}'")

        for index in matched:
            current[index] = self._build(attribute.item_model, {**current[index].model_dump(), **updates}, path)
        setattr(resource, attribute.field, current)

    @staticmethod
    def _build(model: Type[BaseModel], data: Dict[str, Any], path: str) -> BaseModel:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise InvalidValue(f"Invalid value for '{path}': {e.errors()[0]['msg']}") from e

    @staticmethod
    def _as_list(value: Any) -> List[Any]:
        return value if isinstance(value, list) else [value]

    @staticmethod
    def _as_item(value: Any) -> Dict[str, Any]:
        if isinstance(value, str):
            return {"value": value}
        if isinstance(value, dict):
            return value
        raise InvalidValue(f"Unsupported multi-valued entry: {value!r}")

    @staticmethod
    def _item_value(value: Any) -> str:
        if isinstance(value, dict) and value.get("value"):
            return str(value["value"]).lower()
        if isinstance(value, str):
            return value.lower()
        raise InvalidValue(f"Cannot identify entry to remove: {value!r}")
