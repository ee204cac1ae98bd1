from typing import Any, Dict, Optional
from fastapi import APIRouter, Response, Header, Path, Body, status
from scimcore.schemas import (
    User, ListResponse, ErrorResponse, SCIMSchemaUri, PatchEnvelope, QueryParameters, ResourceRetrievalParameters
)
from scimcore.dependencies import Users, AlternateFilters, Pagination, RequestId
from scimcore.exceptions import InvalidSyntax, PreconditionFailed
from scimcore.utils import validate_etag, logger

router = APIRouter(tags=["Users"])


async def _check_if_match(users: Users, user_id: str, if_match: Optional[str]) -> None:
    if not if_match:
        return
    current = await users.retrieve(ResourceRetrievalParameters(schema_identifier=SCIMSchemaUri.USER.value, resource_identifier=user_id))
    if not validate_etag(if_match, current.meta.version):
        raise PreconditionFailed("ETag mismatch")


@router.post("/Users", response_model=User, response_model_exclude_none=True, status_code=status.HTTP_201_CREATED, responses={400: {"model": ErrorResponse, "description": "Invalid request"}, 409: {"model": ErrorResponse, "description": "User already exists"}})
async def create_user(
    users: Users,
    request_id: RequestId,
    user_data: User = Body(...),
) -> User:
    logger.info(f"Creating user: {user_data.user_name} (request_id: {request_id})")
    logger.debug(f"User POST request payload (request_id: {request_id}): {user_data.model_dump_json(by_alias=True, indent=2)}")

    user = await users.create(user_data)

    logger.debug(f"User POST response payload (request_id: {request_id}): {user.model_dump_json(by_alias=True, indent=2)}")
    return user


@router.get("/Users/{user_id}", response_model=User, response_model_exclude_none=True, responses={404: {"model": ErrorResponse, "description": "User not found"}})
async def get_user(
    users: Users,
    user_id: str = Path(..., description="User ID"),
) -> User:
    logger.info(f"Getting user: {user_id}")
    return await users.retrieve(ResourceRetrievalParameters(schema_identifier=SCIMSchemaUri.USER.value, resource_identifier=user_id))


@router.get("/Users", response_model=ListResponse, response_model_exclude_none=True, responses={400: {"model": ErrorResponse, "description": "Invalid filter"}})
async def list_users(
    users: Users,
    alternate_filters: AlternateFilters,
    pagination: Pagination,
) -> ListResponse:
    logger.info(f"Listing users (filter: {alternate_filters}, count: {pagination.count if pagination else None})")

    found = await users.query(QueryParameters(
        alternate_filters=alternate_filters,
        schema_identifier=SCIMSchemaUri.USER.value,
        pagination=pagination,
    ))
    resources = [user.model_dump(by_alias=True, mode="json", exclude_none=True) for user in found]

    return ListResponse(total_results=len(resources), Resources=resources, items_per_page=len(resources))


@router.put("/Users/{user_id}", response_model=User, response_model_exclude_none=True, responses={404: {"model": ErrorResponse, "description": "User not found"}, 409: {"model": ErrorResponse, "description": "Conflict"}, 412: {"model": ErrorResponse, "description": "Precondition failed"}})
async def replace_user(
    users: Users,
    user_id: str = Path(..., description="User ID"),
    user_data: User = Body(...),
    if_match: Optional[str] = Header(None, alias="If-Match"),
) -> User:
    logger.info(f"Replacing user: {user_id}")
    await _check_if_match(users, user_id, if_match)

    # The id in the URL is authoritative
    user_data.id = user_id
    return await users.replace(user_data)


@router.patch("/Users/{user_id}", status_code=status.HTTP_204_NO_CONTENT, responses={400: {"model": ErrorResponse, "description": "Invalid patch"}, 404: {"model": ErrorResponse, "description": "User not found"}, 412: {"model": ErrorResponse, "description": "Precondition failed"}})
async def patch_user(
    users: Users,
    user_id: str = Path(..., description="User ID"),
    payload: Dict[str, Any] = Body(...),
    if_match: Optional[str] = Header(None, alias="If-Match"),
) -> Response:
    logger.info(f"Patching user: {user_id}")
    logger.debug(f"User PATCH request payload: {payload}")

    if SCIMSchemaUri.PATCH_OP.value not in payload.get("schemas", [SCIMSchemaUri.PATCH_OP.value]):
        raise InvalidSyntax("Invalid schema for PATCH request")
    await _check_if_match(users, user_id, if_match)

    await users.update(PatchEnvelope(resource_identifier=user_id, patch_request=payload))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/Users/{user_id}", status_code=status.HTTP_204_NO_CONTENT, responses={400: {"model": ErrorResponse, "description": "Invalid request"}})
async def delete_user(
    users: Users,
    user_id: str = Path(..., description="User ID"),
) -> Response:
    logger.info(f"Deleting user: {user_id}")
    await users.delete(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
