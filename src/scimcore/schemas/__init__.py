from .base import (
    Resource,
    ListResponse,
    Meta,
    MultiValuedAttribute,
    Name,
    PatchOperation,
    PatchOperationKind,
    PatchRequest,
    ResourceType,
    SCIMSchemaUri,
)
from .user import (
    User,
    Email,
)
from .group import (
    Group,
    GroupMember,
)
from .error import ErrorResponse
from .query import (
    ComparisonOperator,
    Conjunction,
    FilterTerm,
    PaginationParameters,
    PatchEnvelope,
    QueryParameters,
    ResourceRetrievalParameters,
)

__all__ = [
    # Base
    "Resource",
    "ListResponse",
    "Meta",
    "MultiValuedAttribute",
    "Name",
    "PatchOperation",
    "PatchOperationKind",
    "PatchRequest",
    "ResourceType",
    "SCIMSchemaUri",
    # User
    "User",
    "Email",
    # Group
    "Group",
    "GroupMember",
    # Error
    "ErrorResponse",
    # Query
    "ComparisonOperator",
    "Conjunction",
    "FilterTerm",
    "PaginationParameters",
    "PatchEnvelope",
    "QueryParameters",
    "ResourceRetrievalParameters",
]
