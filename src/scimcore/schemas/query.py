from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, Field, ConfigDict


class ComparisonOperator(str, Enum):
    EQUALS = "eq"
    NOT_EQUALS = "ne"
    CONTAINS = "co"
    STARTS_WITH = "sw"
    ENDS_WITH = "ew"
    GREATER_THAN = "gt"
    EQUAL_OR_GREATER_THAN = "ge"
    LESS_THAN = "lt"
    EQUAL_OR_LESS_THAN = "le"
    PRESENT = "pr"


class FilterTerm(BaseModel):
    """One ``attribute operator value`` comparison of a filter expression."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    attribute_path: Optional[str] = Field(None, alias="attributePath")
    operator: ComparisonOperator = ComparisonOperator.EQUALS
    comparison_value: Optional[str] = Field(None, alias="comparisonValue")

    def __str__(self) -> str:
        if self.comparison_value is None:
            return f"{self.attribute_path} {self.operator.value}"
        return f'{self.attribute_path} {self.operator.value} "{self.comparison_value}"'


# Terms of one conjunction are ANDed; alternate conjunctions are ORed.
Conjunction = List[FilterTerm]


class PaginationParameters(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    count: Optional[int] = Field(None, ge=0)


class QueryParameters(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    alternate_filters: Optional[List[Conjunction]] = Field(default_factory=list, alias="alternateFilters")
    schema_identifier: Optional[str] = Field(None, alias="schemaIdentifier")
    pagination: Optional[PaginationParameters] = Field(None, alias="paginationParameters")


class ResourceRetrievalParameters(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_identifier: Optional[str] = Field(None, alias="schemaIdentifier")
    resource_identifier: Optional[str] = Field(None, alias="resourceIdentifier")


class PatchEnvelope(BaseModel):
    """Update intent: which resource to patch and the payload the caller sent."""
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    resource_identifier: Optional[str] = Field(None, alias="resourceIdentifier")
    patch_request: Optional[Any] = Field(None, alias="patchRequest")
