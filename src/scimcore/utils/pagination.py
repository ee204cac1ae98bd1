from typing import List, Optional, TypeVar
from scimcore.schemas.query import PaginationParameters

T = TypeVar("T")


def apply_count_limit(items: List[T], pagination: Optional[PaginationParameters]) -> List[T]:
    """Keep the first ``count`` items; there is no start index, paging always begins at the first match."""
    if pagination is None:
        return items
    count = pagination.count if pagination.count is not None else 0
    return items[:count]
