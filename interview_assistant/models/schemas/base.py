import datetime

import pydantic

from interview_assistant.utilities.formatters.datetime_formatter import format_datetime_into_isoformat
from interview_assistant.utilities.formatters.field_formatter import format_dict_key_to_camel_case


class BaseSchemaModel(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        populate_by_name=True,
        json_encoders={datetime.datetime: format_datetime_into_isoformat},
        alias_generator=format_dict_key_to_camel_case,
    )


class SuccessResponse(BaseSchemaModel):
    success: bool = True


class ErrorResponse(BaseSchemaModel):
    message: str
    error: str | None = None
