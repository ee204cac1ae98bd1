from typing import Dict, List, Optional
from scimcore.exceptions import PersistenceError, UniquenessViolation
from scimcore.repositories.base import R, ResourceRepository, normalize_natural_key
from scimcore.schemas import ResourceType


class InMemoryRepository(ResourceRepository[R]):
    """Process-local store; keeps insertion order and enforces natural-key uniqueness."""

    def __init__(self, resource_type: ResourceType):
        self.resource_type = resource_type
        self._resources: Dict[str, R] = {}

    def _ensure_unique(self, resource: R) -> None:
        if resource.natural_key is None:
            return
        key = normalize_natural_key(resource.natural_key)
        for stored_id, stored in self._resources.items():
            if stored_id != resource.id and stored.natural_key is not None and normalize_natural_key(stored.natural_key) == key:
                raise UniquenessViolation(resource.natural_key)

    async def create(self, resource: R) -> None:
        if not resource.id:
            raise PersistenceError(f"Cannot store a {self.resource_type.value} without an id")
        if resource.id in self._resources:
            raise PersistenceError(f"{self.resource_type.value} '{resource.id}' is already stored")
        self._ensure_unique(resource)
        self._resources[resource.id] = resource.model_copy(deep=True)

    async def get_by_id(self, resource_id: str) -> Optional[R]:
        stored = self._resources.get(resource_id)
        return stored.model_copy(deep=True) if stored is not None else None

    async def list_all(self) -> List[R]:
        return [stored.model_copy(deep=True) for stored in self._resources.values()]

    async def check_exists(self, resource_id: Optional[str], natural_key: Optional[str]) -> bool:
        if resource_id and resource_id in self._resources:
            return True
        if not natural_key:
            return False
        key = normalize_natural_key(natural_key)
        return any(
            stored.natural_key is not None and normalize_natural_key(stored.natural_key) == key
            for stored in self._resources.values()
        )

    async def update_by_id(self, resource_id: str, resource: R) -> None:
        if resource_id not in self._resources:
            # Same as an UPDATE that matches no row
            return
        self._ensure_unique(resource)
        self._resources[resource_id] = resource.model_copy(deep=True)

    async def delete_by_id(self, resource_id: str) -> None:
        self._resources.pop(resource_id, None)
