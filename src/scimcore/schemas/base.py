from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field, ConfigDict, field_validator
from enum import Enum


class SCIMSchemaUri(str, Enum):
    USER = "urn:ietf:params:scim:schemas:core:2.0:User"
    GROUP = "urn:ietf:params:scim:schemas:core:2.0:Group"
    LIST_RESPONSE = "urn:ietf:params:scim:api:messages:2.0:ListResponse"
    ERROR = "urn:ietf:params:scim:api:messages:2.0:Error"
    PATCH_OP = "urn:ietf:params:scim:api:messages:2.0:PatchOp"


class ResourceType(str, Enum):
    USER = "User"
    GROUP = "Group"


class Meta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resource_type: ResourceType = Field(..., alias="resourceType")
    created: Optional[datetime] = None
    last_modified: Optional[datetime] = Field(None, alias="lastModified")
    location: Optional[str] = None
    version: Optional[str] = None


class MultiValuedAttribute(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    value: str
    display: Optional[str] = None
    type: Optional[str] = None
    primary: Optional[bool] = False


class Name(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    formatted: Optional[str] = None
    family_name: Optional[str] = Field(None, alias="familyName")
    given_name: Optional[str] = Field(None, alias="givenName")
    middle_name: Optional[str] = Field(None, alias="middleName")


class Resource(BaseModel):
    """Common shape of every provisionable resource.

    ``id`` and ``meta`` belong to the server: callers never set them, the
    provider stamps them on create and keeps them current on every write.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    schemas: List[str] = []
    id: Optional[str] = None
    external_id: Optional[str] = Field(None, alias="externalId")
    meta: Meta

    @property
    def natural_key(self) -> Optional[str]:
        raise NotImplementedError


class ListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schemas: List[str] = [SCIMSchemaUri.LIST_RESPONSE.value]
    total_results: int = Field(..., alias="totalResults")
    Resources: List[Dict[str, Any]]
    start_index: int = Field(1, alias="startIndex")
    items_per_page: int = Field(..., alias="itemsPerPage")


class PatchOperationKind(str, Enum):
    ADD = "add"
    REPLACE = "replace"
    REMOVE = "remove"


class PatchOperation(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    op: PatchOperationKind
    path: Optional[str] = None
    value: Optional[Union[bool, int, str, Dict[str, Any], List[Any]]] = None

    @field_validator("op", mode="before")
    def normalize_op(cls, v: Any) -> Any:
        # Entra ID sends "Replace", "Add" and friends
        if isinstance(v, str):
            return v.lower()
        return v


class PatchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schemas: List[str] = [SCIMSchemaUri.PATCH_OP.value]
    Operations: List[PatchOperation]
