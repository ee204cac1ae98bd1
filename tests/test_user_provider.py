"""
Tests for the user provider: identifiers, metadata and uniqueness around CRUD.
"""
import asyncio
from datetime import datetime, timedelta, timezone
import pytest
from scimcore.exceptions import (
    InvalidValue, PersistenceError, ResourceAlreadyExists, ResourceNotFound,
    UniquenessViolation, UnsupportedPatchPath, UnsupportedPatchPayload
)
from scimcore.repositories import InMemoryRepository
from scimcore.schemas import (
    Email, FilterTerm, Meta, Name, PaginationParameters, PatchEnvelope, PatchOperation, PatchRequest,
    QueryParameters, ResourceRetrievalParameters, ResourceType, SCIMSchemaUri, User
)
from scimcore.services import ResourceProvider, UserProvider


class AlwaysExistsRepository(InMemoryRepository):
    async def check_exists(self, resource_id, natural_key):
        return True


class RacingRepository(InMemoryRepository):
    """Passes the existence check, then loses the insert to a concurrent writer."""

    async def check_exists(self, resource_id, natural_key):
        return False

    async def create(self, resource):
        raise UniquenessViolation(resource.natural_key)


class SlowRepository(InMemoryRepository):
    async def list_all(self):
        await asyncio.sleep(1)
        return []


class BrokenRepository(InMemoryRepository):
    async def get_by_id(self, resource_id):
        raise RuntimeError("connection reset")

    async def create(self, resource):
        raise PersistenceError("disk full")


def retrieval(resource_id):
    return ResourceRetrievalParameters(schema_identifier=SCIMSchemaUri.USER.value, resource_identifier=resource_id)


def patch(resource_id, *operations):
    return PatchEnvelope(resource_identifier=resource_id, patch_request=PatchRequest(Operations=list(operations)))


@pytest.mark.asyncio
async def test_create_assigns_identifier_and_timestamps(user_provider):
    user = await user_provider.create(User(user_name="alice"))

    assert user.id
    assert user.meta.created is not None
    assert user.meta.created == user.meta.last_modified
    assert user.meta.resource_type == ResourceType.USER
    assert user.meta.location.endswith(f"/Users/{user.id}")
    assert user.meta.version.startswith('W/"')


@pytest.mark.asyncio
async def test_create_identifiers_are_unique(user_provider):
    ids = {(await user_provider.create(User(user_name=f"user{i}"))).id for i in range(10)}
    assert len(ids) == 10


@pytest.mark.asyncio
async def test_create_rejects_preset_identifier(user_provider):
    with pytest.raises(InvalidValue):
        await user_provider.create(User(id="chosen-by-client", user_name="alice"))


@pytest.mark.asyncio
@pytest.mark.parametrize("user_name", [None, "", "   "])
async def test_create_requires_user_name(user_provider, user_name):
    with pytest.raises(InvalidValue):
        await user_provider.create(User(user_name=user_name))


@pytest.mark.asyncio
async def test_create_conflict(user_provider):
    await user_provider.create(User(user_name="alice"))
    with pytest.raises(ResourceAlreadyExists):
        await user_provider.create(User(user_name="ALICE"))


@pytest.mark.asyncio
async def test_create_conflict_when_existence_check_reports_true():
    provider = UserProvider(AlwaysExistsRepository(ResourceType.USER))
    with pytest.raises(ResourceAlreadyExists) as exc:
        await provider.create(User(user_name="alice"))
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_storage_constraint_wins_check_then_create_race():
    provider = UserProvider(RacingRepository(ResourceType.USER))
    with pytest.raises(ResourceAlreadyExists):
        await provider.create(User(user_name="alice"))


@pytest.mark.asyncio
async def test_persistence_errors_propagate():
    provider = UserProvider(BrokenRepository(ResourceType.USER))
    with pytest.raises(PersistenceError, match="disk full"):
        await provider.create(User(user_name="alice"))
    with pytest.raises(PersistenceError, match="connection reset"):
        await provider.retrieve(retrieval("any"))


@pytest.mark.asyncio
async def test_repository_timeout():
    provider = UserProvider(SlowRepository(ResourceType.USER), timeout=0.01)
    with pytest.raises(PersistenceError, match="Timed out"):
        await provider.query(QueryParameters(schema_identifier=SCIMSchemaUri.USER.value))


@pytest.mark.asyncio
async def test_round_trip(user_provider):
    original = User(
        user_name="bjensen",
        external_id="701984",
        display_name="Babs Jensen",
        name=Name(given_name="Barbara", family_name="Jensen"),
        emails=[Email(value="bjensen@contoso.com", type="work", primary=True)],
    )
    created = await user_provider.create(original)
    fetched = await user_provider.retrieve(retrieval(created.id))

    assert fetched.model_dump(exclude={"id", "meta"}) == original.model_dump(exclude={"id", "meta"})
    assert fetched.id == created.id
    assert fetched.meta == created.meta


@pytest.mark.asyncio
async def test_retrieve_missing(user_provider):
    with pytest.raises(ResourceNotFound):
        await user_provider.retrieve(retrieval("does-not-exist"))


@pytest.mark.asyncio
@pytest.mark.parametrize("parameters", [None, retrieval(None), retrieval("  ")])
async def test_retrieve_requires_identifier(user_provider, parameters):
    with pytest.raises(InvalidValue):
        await user_provider.retrieve(parameters)


@pytest.mark.asyncio
async def test_returned_resources_are_detached(user_provider):
    created = await user_provider.create(User(user_name="alice"))
    created.display_name = "changed locally"

    fetched = await user_provider.retrieve(retrieval(created.id))
    assert fetched.display_name is None


@pytest.mark.asyncio
async def test_replace_preserves_created(user_provider):
    created = await user_provider.create(User(user_name="alice"))

    replaced = await user_provider.replace(User(id=created.id, user_name="alice", title="Lead"))

    assert replaced.title == "Lead"
    assert replaced.meta.created == created.meta.created
    assert replaced.meta.last_modified > created.meta.last_modified
    assert replaced.meta.version != created.meta.version


@pytest.mark.asyncio
async def test_replace_validation(user_provider):
    with pytest.raises(InvalidValue):
        await user_provider.replace(User(user_name="alice"))
    with pytest.raises(InvalidValue):
        await user_provider.replace(User(id="some-id"))
    with pytest.raises(ResourceNotFound):
        await user_provider.replace(User(id="some-id", user_name="alice"))


@pytest.mark.asyncio
async def test_replace_into_taken_user_name(user_provider):
    await user_provider.create(User(user_name="alice"))
    bob = await user_provider.create(User(user_name="bob"))

    with pytest.raises(ResourceAlreadyExists):
        await user_provider.replace(User(id=bob.id, user_name="Alice"))


@pytest.mark.asyncio
async def test_patch_deactivates_and_advances_last_modified(user_provider):
    created = await user_provider.create(User(user_name="alice"))

    result = await user_provider.update(patch(created.id, PatchOperation(op="replace", path="active", value=False)))
    assert result is None

    patched = await user_provider.retrieve(retrieval(created.id))
    assert patched.active is False
    assert patched.meta.created == created.meta.created
    assert patched.meta.last_modified > created.meta.last_modified


@pytest.mark.asyncio
async def test_patch_accepts_raw_mapping(user_provider):
    created = await user_provider.create(User(user_name="alice"))
    payload = {
        "schemas": [SCIMSchemaUri.PATCH_OP.value],
        "Operations": [{"op": "Replace", "path": "displayName", "value": "Alice A."}],
    }

    await user_provider.update(PatchEnvelope(resource_identifier=created.id, patch_request=payload))

    assert (await user_provider.retrieve(retrieval(created.id))).display_name == "Alice A."


@pytest.mark.asyncio
async def test_patch_unknown_path(user_provider):
    created = await user_provider.create(User(user_name="alice"))
    with pytest.raises(UnsupportedPatchPath):
        await user_provider.update(patch(created.id, PatchOperation(op="replace", path="favoriteColor", value="blue")))


@pytest.mark.asyncio
async def test_patch_missing_resource(user_provider):
    with pytest.raises(ResourceNotFound):
        await user_provider.update(patch("does-not-exist", PatchOperation(op="replace", path="active", value=False)))


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", ["replace active", ["op"], {"Operations": "nope"}])
async def test_patch_unsupported_payload(user_provider, payload):
    created = await user_provider.create(User(user_name="alice"))
    with pytest.raises(UnsupportedPatchPayload):
        await user_provider.update(PatchEnvelope(resource_identifier=created.id, patch_request=payload))


@pytest.mark.asyncio
@pytest.mark.parametrize("envelope", [
    None,
    PatchEnvelope(resource_identifier=None, patch_request=PatchRequest(Operations=[])),
    PatchEnvelope(resource_identifier="some-id", patch_request=None),
])
async def test_patch_envelope_validation(user_provider, envelope):
    with pytest.raises(InvalidValue):
        await user_provider.update(envelope)


@pytest.mark.asyncio
async def test_patch_cannot_remove_user_name(user_provider):
    created = await user_provider.create(User(user_name="alice"))
    with pytest.raises(InvalidValue):
        await user_provider.update(patch(created.id, PatchOperation(op="remove", path="userName")))


@pytest.mark.asyncio
async def test_delete_is_idempotent(user_provider):
    created = await user_provider.create(User(user_name="alice"))

    await user_provider.delete(created.id)
    await user_provider.delete(created.id)

    with pytest.raises(ResourceNotFound):
        await user_provider.retrieve(retrieval(created.id))


@pytest.mark.asyncio
@pytest.mark.parametrize("resource_id", [None, "", "  "])
async def test_delete_requires_identifier(user_provider, resource_id):
    with pytest.raises(InvalidValue):
        await user_provider.delete(resource_id)


@pytest.mark.asyncio
async def test_query_scenario(user_provider):
    for user in [
        User(user_name="alice", active=True),
        User(user_name="bob", active=False, external_id="ext1"),
        User(user_name="carol", active=True),
        User(user_name="alice2", active=False),
        User(user_name="dave", active=True, external_id="ext2"),
    ]:
        await user_provider.create(user)

    result = await user_provider.query(QueryParameters(
        alternate_filters=[
            [FilterTerm(attribute_path="userName", comparison_value="alice"),
             FilterTerm(attribute_path="active", comparison_value="true")],
            [FilterTerm(attribute_path="externalId", comparison_value="ext1")],
        ],
        schema_identifier=SCIMSchemaUri.USER.value,
    ))
    assert [u.user_name for u in result] == ["alice", "bob"]

    result = await user_provider.query(QueryParameters(
        alternate_filters=[],
        schema_identifier=SCIMSchemaUri.USER.value,
        pagination=PaginationParameters(count=2),
    ))
    assert [u.user_name for u in result] == ["alice", "bob"]


@pytest.mark.asyncio
async def test_last_modified_filter_sees_patches(user_provider):
    alice = await user_provider.create(User(user_name="alice"))
    await user_provider.create(User(user_name="bob"))
    await user_provider.update(patch(alice.id, PatchOperation(op="replace", path="title", value="Lead")))
    patched = await user_provider.retrieve(retrieval(alice.id))

    result = await user_provider.query(QueryParameters(
        alternate_filters=[[FilterTerm(
            attribute_path="meta.lastModified",
            operator="ge",
            comparison_value=patched.meta.last_modified.isoformat(),
        )]],
        schema_identifier=SCIMSchemaUri.USER.value,
    ))
    assert [u.user_name for u in result] == ["alice"]


def test_stamp_is_strictly_later_than_previous_modification():
    ahead = datetime.now(timezone.utc) + timedelta(hours=1)
    assert ResourceProvider._now(after=ahead) == ahead + timedelta(microseconds=1)

    # Naive values are taken as UTC
    assert ResourceProvider._now(after=ahead.replace(tzinfo=None)) == ahead + timedelta(microseconds=1)


@pytest.mark.asyncio
async def test_replace_stamps_after_stored_modification():
    repository = InMemoryRepository(ResourceType.USER)
    ahead = datetime.now(timezone.utc) + timedelta(hours=1)
    # Written by another provider whose clock runs ahead
    await repository.create(User(
        id="u-1", user_name="alice",
        meta=Meta(resource_type=ResourceType.USER, created=ahead, last_modified=ahead),
    ))

    replaced = await UserProvider(repository).replace(User(id="u-1", user_name="alice", title="Lead"))

    assert replaced.meta.created == ahead
    assert replaced.meta.last_modified == ahead + timedelta(microseconds=1)


@pytest.mark.asyncio
async def test_location_uses_configured_prefix():
    provider = UserProvider(InMemoryRepository(ResourceType.USER), api_prefix="/tenant-a/scim/")
    user = await provider.create(User(user_name="alice"))

    assert user.meta.location == f"/tenant-a/scim/Users/{user.id}"
