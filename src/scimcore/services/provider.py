"""
Resource provider: the orchestration layer between a transport and storage.

A provider validates the request envelope, stamps server-owned metadata
(``id``, ``meta``) and delegates to its repository, the patch engine and
the query executor. Every repository call runs under the configured
timeout, so a stalled store surfaces as ``PersistenceError`` instead of
hanging the caller.
"""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Generic, List, Mapping, Optional, TypeVar
from pydantic import ValidationError
from scimcore.config import settings
from scimcore.exceptions import (
    InvalidValue, PersistenceError, ResourceAlreadyExists, ResourceNotFound,
    SCIMException, UniquenessViolation, UnsupportedPatchPayload
)
from scimcore.repositories import ResourceRepository
from scimcore.schemas import (
    Meta, PatchEnvelope, PatchRequest, QueryParameters, Resource, ResourceRetrievalParameters, ResourceType
)
from scimcore.services.patch import PatchEngine
from scimcore.services.predicate import PredicateCompiler, as_utc
from scimcore.services.query import QueryExecutor
from scimcore.utils import generate_etag, logger

R = TypeVar("R", bound=Resource)
T = TypeVar("T")


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class ResourceProvider(Generic[R]):
    resource_type: ResourceType
    endpoint: str
    natural_key_attribute: str

    def __init__(
        self,
        repository: ResourceRepository[R],
        compiler: PredicateCompiler,
        patch_engine: PatchEngine,
        timeout: Optional[float] = None,
        api_prefix: Optional[str] = None,
    ):
        self.repository = repository
        self.compiler = compiler
        self.patch_engine = patch_engine
        self.executor = QueryExecutor(compiler)
        self.timeout = timeout if timeout is not None else settings.repository_timeout
        self.api_prefix = (api_prefix if api_prefix is not None else settings.api_prefix).rstrip("/")

    async def _port(self, action: str, call: Awaitable[T]) -> T:
        try:
            async with asyncio.timeout(self.timeout):
                return await call
        except TimeoutError as e:
            logger.error(f"Repository timed out after {self.timeout}s trying to {action} {self.resource_type.value}")
            raise PersistenceError(f"Timed out after {self.timeout}s trying to {action} {self.resource_type.value}") from e
        except SCIMException:
            raise
        except Exception as e:
            logger.error(f"Repository failed to {action} {self.resource_type.value}: {e}")
            raise PersistenceError(f"Failed to {action} {self.resource_type.value}: {e}") from e

    @staticmethod
    def _now(after: Optional[datetime] = None) -> datetime:
        """Current UTC time; strictly later than `after` even when the clock has not moved."""
        now = datetime.now(timezone.utc)
        if after is not None and now <= as_utc(after):
            now = as_utc(after) + timedelta(microseconds=1)
        return now

    def _stamp(self, resource: R, created: datetime, last_modified: datetime) -> None:
        resource.meta = Meta(
            resource_type=self.resource_type,
            created=created,
            last_modified=last_modified,
            location=f"{self.api_prefix}/{self.endpoint}/{resource.id}",
        )
        resource.meta.version = generate_etag(resource)

    def _require_natural_key(self, resource: R) -> str:
        natural_key = resource.natural_key
        if _is_blank(natural_key):
            logger.warning(f"Rejected {self.resource_type.value} without {self.natural_key_attribute}")
            raise InvalidValue(f"'{self.natural_key_attribute}' is required")
        return natural_key

    async def _write(self, action: str, resource: R, call: Awaitable[None]) -> None:
        try:
            await self._port(action, call)
        except UniquenessViolation as e:
            logger.warning(f"{self.resource_type.value} {self.natural_key_attribute} '{resource.natural_key}' is already taken")
            raise ResourceAlreadyExists(self.resource_type.value, self.natural_key_attribute, resource.natural_key) from e

    async def _load(self, resource_id: str) -> R:
        existing = await self._port("load", self.repository.get_by_id(resource_id))
        if existing is None:
            logger.warning(f"{self.resource_type.value} {resource_id} not found")
            raise ResourceNotFound(self.resource_type.value, resource_id)
        return existing

    async def create(self, resource: R) -> R:
        if resource is None:
            raise InvalidValue(f"A {self.resource_type.value} is required")
        if not _is_blank(resource.id):
            logger.warning(f"Rejected {self.resource_type.value} create carrying id {resource.id}")
            raise InvalidValue("'id' is assigned by the service provider and must not be set on create")
        natural_key = self._require_natural_key(resource)

        logger.info(f"Creating {self.resource_type.value} {self.natural_key_attribute}={natural_key}")
        if await self._port("check", self.repository.check_exists(None, natural_key)):
            logger.warning(f"{self.resource_type.value} {self.natural_key_attribute} '{natural_key}' already exists")
            raise ResourceAlreadyExists(self.resource_type.value, self.natural_key_attribute, natural_key)

        stored = resource.model_copy(deep=True)
        stored.id = str(uuid.uuid4())
        now = self._now()
        self._stamp(stored, created=now, last_modified=now)

        await self._write("create", stored, self.repository.create(stored))
        logger.info(f"Created {self.resource_type.value} {stored.id} ({natural_key})")
        return stored.model_copy(deep=True)

    async def retrieve(self, parameters: ResourceRetrievalParameters) -> R:
        if parameters is None or _is_blank(parameters.resource_identifier):
            raise InvalidValue("A resource identifier is required")

        logger.debug(f"Retrieving {self.resource_type.value} {parameters.resource_identifier}")
        return await self._load(parameters.resource_identifier)

    async def replace(self, resource: R) -> R:
        if resource is None:
            raise InvalidValue(f"A {self.resource_type.value} is required")
        if _is_blank(resource.id):
            raise InvalidValue("'id' is required to replace a resource")
        natural_key = self._require_natural_key(resource)

        logger.info(f"Replacing {self.resource_type.value} {resource.id}")
        existing = await self._load(resource.id)

        replacement = resource.model_copy(deep=True)
        self._stamp(
            replacement,
            created=existing.meta.created,
            last_modified=self._now(after=existing.meta.last_modified),
        )

        await self._write("replace", replacement, self.repository.update_by_id(replacement.id, replacement))
        logger.info(f"Replaced {self.resource_type.value} {replacement.id} ({natural_key})")
        return replacement.model_copy(deep=True)

    def _coerce_patch(self, payload: Any) -> PatchRequest:
        if isinstance(payload, PatchRequest):
            return payload
        if isinstance(payload, Mapping):
            try:
                return PatchRequest.model_validate(payload)
            except ValidationError as e:
                logger.warning(f"Patch payload does not validate: {e.errors()[0]['msg']}")
                raise UnsupportedPatchPayload(type(payload).__name__) from e
        raise UnsupportedPatchPayload(type(payload).__name__)

    async def update(self, envelope: PatchEnvelope) -> None:
        if envelope is None:
            raise InvalidValue("A patch request is required")
        if _is_blank(envelope.resource_identifier):
            raise InvalidValue("A resource identifier is required")
        if envelope.patch_request is None:
            raise InvalidValue("A patch payload is required")

        request = self._coerce_patch(envelope.patch_request)
        logger.info(f"Patching {self.resource_type.value} {envelope.resource_identifier} with {len(request.Operations)} operation(s)")

        existing = await self._load(envelope.resource_identifier)
        patched = self.patch_engine.apply(existing, request.Operations)
        self._require_natural_key(patched)

        self._stamp(
            patched,
            created=existing.meta.created,
            last_modified=self._now(after=existing.meta.last_modified),
        )
        await self._write("update", patched, self.repository.update_by_id(patched.id, patched))
        logger.info(f"Patched {self.resource_type.value} {patched.id}")

    async def delete(self, resource_id: str) -> None:
        if _is_blank(resource_id):
            raise InvalidValue("A resource identifier is required")

        await self._port("delete", self.repository.delete_by_id(resource_id))
        logger.info(f"Deleted {self.resource_type.value} {resource_id}")

    async def query(self, parameters: QueryParameters) -> List[R]:
        resources = await self._port("list", self.repository.list_all())
        results = self.executor.execute(resources, parameters)
        logger.debug(f"Query over {len(resources)} {self.resource_type.value} resource(s) matched {len(results)}")
        return results
