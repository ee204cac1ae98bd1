from typing import Any, Dict, Optional
from fastapi import APIRouter, Response, Header, Path, Body, status
from scimcore.schemas import (
    Group, ListResponse, ErrorResponse, SCIMSchemaUri, PatchEnvelope, QueryParameters, ResourceRetrievalParameters
)
from scimcore.dependencies import Groups, AlternateFilters, Pagination, RequestId
from scimcore.exceptions import InvalidSyntax, PreconditionFailed
from scimcore.utils import validate_etag, logger

router = APIRouter(tags=["Groups"])


async def _check_if_match(groups: Groups, group_id: str, if_match: Optional[str]) -> None:
    if not if_match:
        return
    current = await groups.retrieve(ResourceRetrievalParameters(schema_identifier=SCIMSchemaUri.GROUP.value, resource_identifier=group_id))
    if not validate_etag(if_match, current.meta.version):
        raise PreconditionFailed("ETag mismatch")


@router.post("/Groups", response_model=Group, response_model_exclude_none=True, status_code=status.HTTP_201_CREATED, responses={400: {"model": ErrorResponse, "description": "Invalid request"}, 409: {"model": ErrorResponse, "description": "Group already exists"}})
async def create_group(
    groups: Groups,
    request_id: RequestId,
    group_data: Group = Body(...),
) -> Group:
    logger.info(f"Creating group: {group_data.display_name} (request_id: {request_id})")
    logger.debug(f"Group POST request payload (request_id: {request_id}): {group_data.model_dump_json(by_alias=True, indent=2)}")

    group = await groups.create(group_data)

    logger.debug(f"Group POST response payload (request_id: {request_id}): {group.model_dump_json(by_alias=True, indent=2)}")
    return group


@router.get("/Groups/{group_id}", response_model=Group, response_model_exclude_none=True, responses={404: {"model": ErrorResponse, "description": "Group not found"}})
async def get_group(
    groups: Groups,
    group_id: str = Path(..., description="Group ID"),
) -> Group:
    logger.info(f"Getting group: {group_id}")
    return await groups.retrieve(ResourceRetrievalParameters(schema_identifier=SCIMSchemaUri.GROUP.value, resource_identifier=group_id))


@router.get("/Groups", response_model=ListResponse, response_model_exclude_none=True, responses={400: {"model": ErrorResponse, "description": "Invalid filter"}})
async def list_groups(
    groups: Groups,
    alternate_filters: AlternateFilters,
    pagination: Pagination,
) -> ListResponse:
    logger.info(f"Listing groups (filter: {alternate_filters}, count: {pagination.count if pagination else None})")

    found = await groups.query(QueryParameters(
        alternate_filters=alternate_filters,
        schema_identifier=SCIMSchemaUri.GROUP.value,
        pagination=pagination,
    ))
    resources = [group.model_dump(by_alias=True, mode="json", exclude_none=True) for group in found]

    return ListResponse(total_results=len(resources), Resources=resources, items_per_page=len(resources))


@router.put("/Groups/{group_id}", response_model=Group, response_model_exclude_none=True, responses={404: {"model": ErrorResponse, "description": "Group not found"}, 409: {"model": ErrorResponse, "description": "Conflict"}, 412: {"model": ErrorResponse, "description": "Precondition failed"}})
async def replace_group(
    groups: Groups,
    group_id: str = Path(..., description="Group ID"),
    group_data: Group = Body(...),
    if_match: Optional[str] = Header(None, alias="If-Match"),
) -> Group:
    logger.info(f"Replacing group: {group_id}")
    await _check_if_match(groups, group_id, if_match)

    # The id in the URL is authoritative
    group_data.id = group_id
    return await groups.replace(group_data)


@router.patch("/Groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT, responses={400: {"model": ErrorResponse, "description": "Invalid patch"}, 404: {"model": ErrorResponse, "description": "Group not found"}, 412: {"model": ErrorResponse, "description": "Precondition failed"}})
async def patch_group(
    groups: Groups,
    group_id: str = Path(..., description="Group ID"),
    payload: Dict[str, Any] = Body(...),
    if_match: Optional[str] = Header(None, alias="If-Match"),
) -> Response:
    logger.info(f"Patching group: {group_id}")
    logger.debug(f"Group PATCH request payload: {payload}")

    if SCIMSchemaUri.PATCH_OP.value not in payload.get("schemas", [SCIMSchemaUri.PATCH_OP.value]):
        raise InvalidSyntax("Invalid schema for PATCH request")
    await _check_if_match(groups, group_id, if_match)

    await groups.update(PatchEnvelope(resource_identifier=group_id, patch_request=payload))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/Groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT, responses={400: {"model": ErrorResponse, "description": "Invalid request"}})
async def delete_group(
    groups: Groups,
    group_id: str = Path(..., description="Group ID"),
) -> Response:
    logger.info(f"Deleting group: {group_id}")
    await groups.delete(group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
