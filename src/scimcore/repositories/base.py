from abc import ABC, abstractmethod
from typing import Generic, List, Optional, TypeVar
from scimcore.schemas import Resource, ResourceType

R = TypeVar("R", bound=Resource)


def normalize_natural_key(natural_key: str) -> str:
    return natural_key.strip().lower()


class ResourceRepository(ABC, Generic[R]):
    """
    Persistence contract the providers depend on.

    Every method may suspend on I/O and may raise ``PersistenceError``;
    a write that would duplicate a natural key raises ``UniquenessViolation``.
    Returned resources are detached copies: mutating them never changes
    what is stored.
    """

    resource_type: ResourceType

    @abstractmethod
    async def create(self, resource: R) -> None:
        ...

    @abstractmethod
    async def get_by_id(self, resource_id: str) -> Optional[R]:
        ...

    @abstractmethod
    async def list_all(self) -> List[R]:
        ...

    @abstractmethod
    async def check_exists(self, resource_id: Optional[str], natural_key: Optional[str]) -> bool:
        """True when a stored resource has this id or this natural key (ignoring case)."""
        ...

    @abstractmethod
    async def update_by_id(self, resource_id: str, resource: R) -> None:
        ...

    @abstractmethod
    async def delete_by_id(self, resource_id: str) -> None:
        ...
