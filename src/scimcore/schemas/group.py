from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator
from .base import Resource, ResourceType, SCIMSchemaUri, Meta


class GroupMember(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    value: str
    ref: Optional[str] = Field(None, alias="$ref")
    display: Optional[str] = None
    type: Optional[str] = Field(default="User")


class Group(Resource):
    display_name: Optional[str] = Field(None, alias="displayName")
    members: List[GroupMember] = []

    meta: Meta = Field(default_factory=lambda: Meta(resource_type=ResourceType.GROUP))

    @property
    def natural_key(self) -> Optional[str]:
        return self.display_name

    @model_validator(mode="after")
    def set_default_schemas(self) -> "Group":
        self.schemas = [SCIMSchemaUri.GROUP.value]
        return self
