from typing import Annotated, List, Optional
from fastapi import Depends, Query, Request
from scimcore.config import settings
from scimcore.schemas import Conjunction, PaginationParameters
from scimcore.services import GroupProvider, UserProvider
from scimcore.utils import SCIMFilterParser


def get_user_provider(request: Request) -> UserProvider:
    return request.app.state.user_provider


def get_group_provider(request: Request) -> GroupProvider:
    return request.app.state.group_provider


def get_alternate_filters(filter: Annotated[Optional[str], Query()] = None) -> List[Conjunction]:
    return SCIMFilterParser().parse(filter)


def get_pagination_params(
    count: Annotated[Optional[int], Query(ge=0, le=settings.max_page_size)] = None,
) -> Optional[PaginationParameters]:
    # Without count every match is returned
    if count is None:
        return None
    return PaginationParameters(count=count)


async def get_request_id(request: Request) -> str:
    return request.headers.get("X-Request-ID", "unknown")


# Type aliases for dependency injection
Users = Annotated[UserProvider, Depends(get_user_provider)]
Groups = Annotated[GroupProvider, Depends(get_group_provider)]
AlternateFilters = Annotated[List[Conjunction], Depends(get_alternate_filters)]
Pagination = Annotated[Optional[PaginationParameters], Depends(get_pagination_params)]
RequestId = Annotated[str, Depends(get_request_id)]
