import datetime
import typing

import pydantic

from interview_assistant.models.schemas.base import BaseSchemaModel, SuccessResponse


class ResumeData(BaseSchemaModel):
    text: str | None = None
    data: dict[str, typing.Any] | None = None
    file_type: str | None = None
    upload_date: datetime.datetime | None = None


class UserSave(BaseSchemaModel):
    # Optional at the schema level so missing fields get the route's own 400 message
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    resume_data: ResumeData | None = None


class UserOut(BaseSchemaModel):
    id: int
    name: str
    email: str
    phone: str
    resume_data: dict[str, typing.Any] | None = None
    is_active: bool
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None


class UserSaveResponse(SuccessResponse):
    action: typing.Literal["created", "updated"]
    user: UserOut


class UserResponse(SuccessResponse):
    user: UserOut


class UserDeactivateResponse(SuccessResponse):
    message: str = pydantic.Field(default="User deactivated successfully")
