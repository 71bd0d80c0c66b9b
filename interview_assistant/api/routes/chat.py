import logging

import fastapi

from interview_assistant.api.dependencies.repository import get_repository
from interview_assistant.api.routes.interviews import get_tracker
from interview_assistant.models.schemas.chat import ChatAdvance, ChatState, ChatStateResponse
from interview_assistant.repository.crud.session import SessionCRUDRepository
from interview_assistant.repository.crud.user import UserCRUDRepository
from interview_assistant.services.chat_flow import ChatFlowController, remaining_seconds
from interview_assistant.services.interview_tracker import InterviewTracker
from interview_assistant.utilities.exceptions.database import EntityDoesNotExist
from interview_assistant.utilities.exceptions.http.exc_404 import http_exc_404_not_found
from interview_assistant.utilities.formatters.datetime_formatter import utc_now

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/chat", tags=["chat"])


def get_chat_controller(
    tracker: InterviewTracker = fastapi.Depends(get_tracker),
    user_repo: UserCRUDRepository = fastapi.Depends(get_repository(repo_type=UserCRUDRepository)),
    session_repo: SessionCRUDRepository = fastapi.Depends(get_repository(repo_type=SessionCRUDRepository)),
) -> ChatFlowController:
    return ChatFlowController(tracker=tracker, user_repo=user_repo, session_repo=session_repo)  # type: ignore[arg-type]


@router.post(
    path="/advance",
    name="chat:advance",
    response_model=ChatStateResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Apply one event to the chat flow",
    description=(
        "Runs the event through the flow, performing every side effect it triggers (profile save, "
        "attempt start, question supply, grading, completion). The persisted session of `email` (or of the "
        "email in `state`) takes precedence over a client-sent `state`; interview progress is always rebuilt "
        "from the recorded attempt."
    ),
)
async def advance_chat(
    payload: ChatAdvance,
    controller: ChatFlowController = fastapi.Depends(get_chat_controller),
) -> ChatStateResponse:
    state = None
    email = payload.email or (payload.state.email if payload.state else None)
    if email:
        try:
            state = await controller.load(email=email)
        except EntityDoesNotExist:
            logger.debug("No saved chat for %s", email)
    state = await controller.advance(state or payload.state or ChatState(), payload.event)
    return ChatStateResponse(state=state, remaining_seconds=remaining_seconds(state, utc_now()))


@router.get(
    path="/state/{email}",
    name="chat:state",
    response_model=ChatStateResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Persisted chat state of a user",
)
async def get_chat_state(
    email: str,
    controller: ChatFlowController = fastapi.Depends(get_chat_controller),
) -> ChatStateResponse:
    try:
        state = await controller.reconcile(await controller.load(email=email))
    except EntityDoesNotExist:
        raise await http_exc_404_not_found("Session")
    return ChatStateResponse(state=state, remaining_seconds=remaining_seconds(state, utc_now()))
