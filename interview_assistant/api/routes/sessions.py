import fastapi

from interview_assistant.api.dependencies.repository import get_repository
from interview_assistant.models.schemas.session import (
    SessionDeleteResponse,
    SessionOut,
    SessionResponse,
    SessionSave,
    SessionSaveResponse,
)
from interview_assistant.repository.crud.session import SessionCRUDRepository
from interview_assistant.repository.crud.user import UserCRUDRepository
from interview_assistant.utilities.exceptions.database import EntityDoesNotExist
from interview_assistant.utilities.exceptions.http.exc_400 import http_exc_400_field_required
from interview_assistant.utilities.exceptions.http.exc_404 import (
    http_exc_404_no_active_session,
    http_exc_404_not_found,
)

router = fastapi.APIRouter(prefix="/sessions", tags=["sessions"])


@router.post(
    path="/save",
    name="sessions:save",
    response_model=SessionSaveResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Persist the UI session snapshot of a user",
    responses={fastapi.status.HTTP_201_CREATED: {"model": SessionSaveResponse}},
)
async def save_session(
    payload: SessionSave,
    response: fastapi.Response,
    user_repo: UserCRUDRepository = fastapi.Depends(get_repository(repo_type=UserCRUDRepository)),
    session_repo: SessionCRUDRepository = fastapi.Depends(get_repository(repo_type=SessionCRUDRepository)),
) -> SessionSaveResponse:
    if not payload.email or payload.session_data is None:
        raise await http_exc_400_field_required("Email and session data are required")

    try:
        user = await user_repo.get_user_by_email(email=payload.email, active_only=False)
    except EntityDoesNotExist:
        raise await http_exc_404_not_found("User")

    session, action = await session_repo.save_session(user=user, session_data=payload.session_data)
    if action == "created":
        response.status_code = fastapi.status.HTTP_201_CREATED
    return SessionSaveResponse(action=action, session=SessionOut.model_validate(session))  # type: ignore[arg-type]


@router.get(
    path="/get/{email}",
    name="sessions:get",
    response_model=SessionResponse,
    status_code=fastapi.status.HTTP_200_OK,
)
async def get_session(
    email: str,
    user_repo: UserCRUDRepository = fastapi.Depends(get_repository(repo_type=UserCRUDRepository)),
    session_repo: SessionCRUDRepository = fastapi.Depends(get_repository(repo_type=SessionCRUDRepository)),
) -> SessionResponse:
    try:
        await user_repo.get_user_by_email(email=email, active_only=False)
    except EntityDoesNotExist:
        raise await http_exc_404_not_found("User")
    try:
        session = await session_repo.get_active_session(email=email)
    except EntityDoesNotExist:
        raise await http_exc_404_not_found("Session")
    return SessionResponse(session=SessionOut.model_validate(session))


@router.delete(
    path="/delete/{email}",
    name="sessions:delete",
    response_model=SessionDeleteResponse,
    status_code=fastapi.status.HTTP_200_OK,
)
async def delete_session(
    email: str,
    user_repo: UserCRUDRepository = fastapi.Depends(get_repository(repo_type=UserCRUDRepository)),
    session_repo: SessionCRUDRepository = fastapi.Depends(get_repository(repo_type=SessionCRUDRepository)),
) -> SessionDeleteResponse:
    try:
        await user_repo.get_user_by_email(email=email, active_only=False)
    except EntityDoesNotExist:
        raise await http_exc_404_not_found("User")

    deactivated = await session_repo.deactivate_sessions(email=email)
    if not deactivated:
        raise await http_exc_404_no_active_session()
    return SessionDeleteResponse()
