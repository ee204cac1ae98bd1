from typing import List, Optional
from pydantic import Field, field_validator, model_validator
from email_validator import validate_email, EmailNotValidError
from .base import (
    Resource,
    MultiValuedAttribute,
    Name,
    ResourceType,
    SCIMSchemaUri,
    Meta
)


class Email(MultiValuedAttribute):
    @field_validator("value")
    def validate_email_format(cls, v: str) -> str:
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(str(e)) from e
        return v.lower()


class User(Resource):
    user_name: Optional[str] = Field(None, alias="userName")
    name: Optional[Name] = None
    display_name: Optional[str] = Field(None, alias="displayName")
    nick_name: Optional[str] = Field(None, alias="nickName")
    title: Optional[str] = None
    user_type: Optional[str] = Field(None, alias="userType")
    preferred_language: Optional[str] = Field(None, alias="preferredLanguage")
    locale: Optional[str] = None
    timezone: Optional[str] = None
    active: bool = True
    emails: List[Email] = []

    meta: Meta = Field(default_factory=lambda: Meta(resource_type=ResourceType.USER))

    @property
    def natural_key(self) -> Optional[str]:
        return self.user_name

    @model_validator(mode="after")
    def set_default_schemas(self) -> "User":
        self.schemas = [SCIMSchemaUri.USER.value]
        return self

    @model_validator(mode="after")
    def ensure_single_primary(self) -> "User":
        primary_count = sum(1 for email in self.emails if email.primary)
        if primary_count > 1:
            raise ValueError("Only one email can be marked as primary")
        return self
