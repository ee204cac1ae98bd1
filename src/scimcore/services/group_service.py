from typing import Optional
from scimcore.repositories import ResourceRepository
from scimcore.schemas import Group, ResourceType
from scimcore.services.patch import PatchEngine, GROUP_PATCH_ATTRIBUTES
from scimcore.services.predicate import PredicateCompiler, GROUP_FILTER_ATTRIBUTES
from scimcore.services.provider import ResourceProvider


class GroupProvider(ResourceProvider[Group]):
    """Groups are unique by ``displayName``; membership is stored as plain references."""

    resource_type = ResourceType.GROUP
    endpoint = "Groups"
    natural_key_attribute = "displayName"

    def __init__(self, repository: ResourceRepository[Group], timeout: Optional[float] = None, api_prefix: Optional[str] = None):
        super().__init__(
            repository,
            PredicateCompiler(GROUP_FILTER_ATTRIBUTES),
            PatchEngine(GROUP_PATCH_ATTRIBUTES),
            timeout=timeout,
            api_prefix=api_prefix,
        )
