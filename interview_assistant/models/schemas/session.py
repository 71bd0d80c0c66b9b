import datetime
import typing

from interview_assistant.models.schemas.base import BaseSchemaModel, SuccessResponse


class SessionSave(BaseSchemaModel):
    email: str | None = None
    session_data: dict[str, typing.Any] | None = None


class SessionOut(BaseSchemaModel):
    id: int
    session_data: dict[str, typing.Any]
    is_active: bool
    expires_at: datetime.datetime
    updated_at: datetime.datetime | None = None


class SessionSaveResponse(SuccessResponse):
    action: typing.Literal["created", "updated"]
    session: SessionOut


class SessionResponse(SuccessResponse):
    session: SessionOut


class SessionDeleteResponse(SuccessResponse):
    message: str = "Session deleted successfully"
