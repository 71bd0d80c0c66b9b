import logging

import fastapi

from interview_assistant.api.dependencies.repository import get_repository
from interview_assistant.models.schemas.user import (
    UserDeactivateResponse,
    UserOut,
    UserResponse,
    UserSave,
    UserSaveResponse,
)
from interview_assistant.repository.crud.user import UserCRUDRepository
from interview_assistant.services.resume_fields import is_valid_email, is_valid_name, is_valid_phone
from interview_assistant.utilities.exceptions.database import EntityDoesNotExist
from interview_assistant.utilities.exceptions.http.exc_400 import (
    http_exc_400_field_required,
    http_exc_400_invalid_field,
)
from interview_assistant.utilities.exceptions.http.exc_404 import http_exc_404_not_found

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/users", tags=["users"])


@router.post(
    path="/save",
    name="users:save",
    response_model=UserSaveResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Create or update a candidate profile",
    description="Upserts the user keyed by lower-cased email. Answers 201 when the user was created.",
    responses={fastapi.status.HTTP_201_CREATED: {"model": UserSaveResponse}},
)
async def save_user(
    payload: UserSave,
    response: fastapi.Response,
    user_repo: UserCRUDRepository = fastapi.Depends(get_repository(repo_type=UserCRUDRepository)),
) -> UserSaveResponse:
    if not payload.name or not payload.email or not payload.phone:
        raise await http_exc_400_field_required("Name, email, and phone are required")
    if not is_valid_name(payload.name):
        raise await http_exc_400_invalid_field("name", "must be at least 2 characters")
    if not is_valid_email(payload.email):
        raise await http_exc_400_invalid_field("email", "not a valid email address")
    if not is_valid_phone(payload.phone):
        raise await http_exc_400_invalid_field("phone", "not a valid phone number")

    resume_data = payload.resume_data.model_dump(mode="json", by_alias=True) if payload.resume_data else None
    user, action = await user_repo.save_user(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        resume_data=resume_data,
    )
    if action == "created":
        response.status_code = fastapi.status.HTTP_201_CREATED
    return UserSaveResponse(action=action, user=UserOut.model_validate(user))  # type: ignore[arg-type]


@router.get(
    path="/by-email/{email}",
    name="users:get-by-email",
    response_model=UserResponse,
    status_code=fastapi.status.HTTP_200_OK,
)
async def get_user_by_email(
    email: str,
    user_repo: UserCRUDRepository = fastapi.Depends(get_repository(repo_type=UserCRUDRepository)),
) -> UserResponse:
    try:
        user = await user_repo.get_user_by_email(email=email)
    except EntityDoesNotExist:
        raise await http_exc_404_not_found("User")
    return UserResponse(user=UserOut.model_validate(user))


@router.delete(
    path="/by-email/{email}",
    name="users:deactivate",
    response_model=UserDeactivateResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Soft-deactivate a user",
)
async def deactivate_user(
    email: str,
    user_repo: UserCRUDRepository = fastapi.Depends(get_repository(repo_type=UserCRUDRepository)),
) -> UserDeactivateResponse:
    try:
        await user_repo.deactivate_user(email=email)
    except EntityDoesNotExist:
        raise await http_exc_404_not_found("User")
    return UserDeactivateResponse()
