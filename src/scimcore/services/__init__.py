from .provider import ResourceProvider
from .user_service import UserProvider
from .group_service import GroupProvider
from .predicate import PredicateCompiler
from .patch import PatchEngine
from .query import QueryExecutor

__all__ = [
    "ResourceProvider",
    "UserProvider",
    "GroupProvider",
    "PredicateCompiler",
    "PatchEngine",
    "QueryExecutor",
]
