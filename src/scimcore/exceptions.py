from typing import Optional
from scimcore.schemas.error import ErrorResponse


class SCIMException(Exception):
    """Base class for every error the provisioning core reports to its caller."""

    def __init__(
        self,
        status_code: int,
        detail: Optional[str] = None,
        scim_type: Optional[str] = None,
    ):
        self.status_code = status_code
        self.detail = detail
        self.scim_type = scim_type
        super().__init__(detail or f"SCIM error {status_code}")

    def to_error_response(self) -> ErrorResponse:
        return ErrorResponse(
            status=self.status_code,
            detail=self.detail,
            scim_type=self.scim_type
        )


class InvalidValue(SCIMException):
    """A required request field is missing or malformed."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=400,
            detail=detail,
            scim_type="invalidValue"
        )


class ResourceNotFound(SCIMException):
    def __init__(self, resource_type: str, resource_id: str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            status_code=404,
            detail=f"{resource_type} with id '{resource_id}' not found",
        )


class ResourceAlreadyExists(SCIMException):
    def __init__(self, resource_type: str, attribute: str, value: str):
        self.resource_type = resource_type
        self.attribute = attribute
        self.value = value
        super().__init__(
            status_code=409,
            detail=f"{resource_type} with {attribute} '{value}' already exists",
            scim_type="uniqueness"
        )


class InvalidSyntax(SCIMException):
    def __init__(self, detail: str):
        super().__init__(
            status_code=400,
            detail=detail,
            scim_type="invalidSyntax"
        )


class InvalidFilter(SCIMException):
    def __init__(self, filter_expression: str, reason: str):
        self.filter_expression = filter_expression
        super().__init__(
            status_code=400,
            detail=f"Invalid filter expression '{filter_expression}': {reason}",
            scim_type="invalidFilter"
        )


class UnsupportedFilterAttribute(InvalidFilter):
    def __init__(self, attribute_path: str):
        self.attribute_path = attribute_path
        super().__init__(attribute_path, f"attribute '{attribute_path}' is not supported in filters")


class UnsupportedFilterOperator(InvalidFilter):
    def __init__(self, operator: str, attribute_path: str):
        self.operator = operator
        self.attribute_path = attribute_path
        super().__init__(
            f"{attribute_path} {operator}",
            f"operator '{operator}' is not supported for attribute '{attribute_path}'",
        )


class InvalidPatch(SCIMException):
    def __init__(self, detail: str):
        super().__init__(
            status_code=400,
            detail=detail,
            scim_type="invalidPath"
        )


class UnsupportedPatchPath(InvalidPatch):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Patch path '{path}' is not supported")


class UnsupportedPatchPayload(SCIMException):
    def __init__(self, payload_type: str):
        self.payload_type = payload_type
        super().__init__(
            status_code=400,
            detail=f"Patch payload of type '{payload_type}' is not supported",
            scim_type="invalidSyntax"
        )


class PersistenceError(SCIMException):
    """Opaque failure reported by a resource repository."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=500,
            detail=detail,
        )


class UniquenessViolation(PersistenceError):
    """The store rejected a write because the natural key is already taken."""

    def __init__(self, natural_key: str):
        self.natural_key = natural_key
        super().__init__(f"Natural key '{natural_key}' is already in use")


class PreconditionFailed(SCIMException):
    def __init__(self, detail: str = "Precondition failed"):
        super().__init__(
            status_code=412,
            detail=detail,
        )
