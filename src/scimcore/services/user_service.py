from typing import Optional
from scimcore.repositories import ResourceRepository
from scimcore.schemas import ResourceType, User
from scimcore.services.patch import PatchEngine, USER_PATCH_ATTRIBUTES
from scimcore.services.predicate import PredicateCompiler, USER_FILTER_ATTRIBUTES
from scimcore.services.provider import ResourceProvider


class UserProvider(ResourceProvider[User]):
    """Users are unique by ``userName``, compared without regard to case."""

    resource_type = ResourceType.USER
    endpoint = "Users"
    natural_key_attribute = "userName"

    def __init__(self, repository: ResourceRepository[User], timeout: Optional[float] = None, api_prefix: Optional[str] = None):
        super().__init__(
            repository,
            PredicateCompiler(USER_FILTER_ATTRIBUTES),
            PatchEngine(USER_PATCH_ATTRIBUTES),
            timeout=timeout,
            api_prefix=api_prefix,
        )
