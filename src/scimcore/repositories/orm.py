from datetime import datetime, timezone
from functools import reduce
from typing import List, Optional, Type
from tortoise.exceptions import BaseORMException, IntegrityError
from tortoise.expressions import Q
from scimcore.exceptions import PersistenceError, UniquenessViolation
from scimcore.models import ResourceRecord
from scimcore.repositories.base import R, ResourceRepository, normalize_natural_key
from scimcore.schemas import ResourceType
from scimcore.utils import logger


class TortoiseRepository(ResourceRepository[R]):
    """
    Stores resources as JSON documents in the ``scim_resources`` table.

    The connection itself is configured once through ``Tortoise.init``
    (see ``Settings.tortoise_orm_config``); this class only needs to know
    which resource type it serves and which model to load rows into.
    """

    def __init__(self, resource_type: ResourceType, model: Type[R]):
        self.resource_type = resource_type
        self.model = model

    def _records(self):
        return ResourceRecord.filter(resource_type=self.resource_type.value)

    def _load(self, record: ResourceRecord) -> R:
        return self.model.model_validate(record.data)

    @staticmethod
    def _dump(resource: R) -> dict:
        return resource.model_dump(mode="json", by_alias=True, exclude_none=True)

    async def create(self, resource: R) -> None:
        try:
            await ResourceRecord.create(
                resource_id=resource.id,
                resource_type=self.resource_type.value,
                natural_key=normalize_natural_key(resource.natural_key),
                data=self._dump(resource),
            )
        except IntegrityError as e:
            logger.warning(f"Integrity error storing {self.resource_type.value} '{resource.natural_key}': {e}")
            raise UniquenessViolation(resource.natural_key) from e
        except BaseORMException as e:
            raise PersistenceError(f"Failed to store {self.resource_type.value} '{resource.id}': {e}") from e

    async def get_by_id(self, resource_id: str) -> Optional[R]:
        try:
            record = await self._records().filter(resource_id=resource_id).first()
        except BaseORMException as e:
            raise PersistenceError(f"Failed to load {self.resource_type.value} '{resource_id}': {e}") from e
        return self._load(record) if record else None

    async def list_all(self) -> List[R]:
        try:
            records = await self._records().order_by("id")
        except BaseORMException as e:
            raise PersistenceError(f"Failed to list {self.resource_type.value} resources: {e}") from e
        return [self._load(record) for record in records]

    async def check_exists(self, resource_id: Optional[str], natural_key: Optional[str]) -> bool:
        conditions = []
        if resource_id:
            conditions.append(Q(resource_id=resource_id))
        if natural_key:
            conditions.append(Q(natural_key=normalize_natural_key(natural_key)))
        if not conditions:
            return False

        try:
            return await self._records().filter(reduce(lambda a, b: a | b, conditions)).exists()
        except BaseORMException as e:
            raise PersistenceError(f"Failed to check {self.resource_type.value} existence: {e}") from e

    async def update_by_id(self, resource_id: str, resource: R) -> None:
        try:
            await self._records().filter(resource_id=resource_id).update(
                natural_key=normalize_natural_key(resource.natural_key),
                data=self._dump(resource),
                # queryset updates skip auto_now
                modified=datetime.now(timezone.utc),
            )
        except IntegrityError as e:
            logger.warning(f"Integrity error updating {self.resource_type.value} '{resource_id}': {e}")
            raise UniquenessViolation(resource.natural_key) from e
        except BaseORMException as e:
            raise PersistenceError(f"Failed to update {self.resource_type.value} '{resource_id}': {e}") from e

    async def delete_by_id(self, resource_id: str) -> None:
        try:
            await self._records().filter(resource_id=resource_id).delete()
        except BaseORMException as e:
            raise PersistenceError(f"Failed to delete {self.resource_type.value} '{resource_id}': {e}") from e
