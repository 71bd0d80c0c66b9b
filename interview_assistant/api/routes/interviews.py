import logging

import fastapi

from interview_assistant.api.dependencies.repository import get_repository
from interview_assistant.models.db.interview import Interview
from interview_assistant.models.schemas.interview import (
    InterviewComplete,
    InterviewCompletedResponse,
    InterviewCreate,
    InterviewListResponse,
    InterviewOut,
    InterviewResponse,
    InterviewResults,
    InterviewResultsResponse,
    InterviewStarted,
    InterviewStartedResponse,
    InterviewSummary,
    OpenInterviewResponse,
    QuestionResponse,
    QuestionSlotSchema,
    QuestionUpdate,
    candidate_info_of,
)
from interview_assistant.repository.crud.interview import InterviewCRUDRepository
from interview_assistant.repository.crud.user import UserCRUDRepository
from interview_assistant.services.dashboard import DashboardReader, SortField, SortOrder, StatusFilter
from interview_assistant.services.interview_tracker import InterviewTracker
from interview_assistant.services.results import build_results
from interview_assistant.utilities.exceptions.database import EntityDoesNotExist
from interview_assistant.utilities.exceptions.http.exc_400 import http_exc_400_field_required
from interview_assistant.utilities.exceptions.http.exc_404 import http_exc_404_not_found

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/interviews", tags=["interviews"])


def get_tracker(
    interview_repo: InterviewCRUDRepository = fastapi.Depends(get_repository(repo_type=InterviewCRUDRepository)),
    user_repo: UserCRUDRepository = fastapi.Depends(get_repository(repo_type=UserCRUDRepository)),
) -> InterviewTracker:
    return InterviewTracker(interview_repo=interview_repo, user_repo=user_repo)  # type: ignore[arg-type]


def summarize(interview: Interview) -> InterviewSummary:
    return InterviewSummary(
        id=interview.id,
        total_score=interview.total_score,
        average_score=interview.average_score,
        status=interview.status,  # type: ignore[arg-type]
        completed_at=interview.completed_at,
        duration=interview.duration,
    )


@router.post(
    path="/create",
    name="interviews:create",
    response_model=InterviewStartedResponse,
    status_code=fastapi.status.HTTP_201_CREATED,
    summary="Start or resume an interview attempt",
    description=(
        "Returns the user's open attempt when one exists (flagged `resumed`), otherwise starts a new one "
        "with a candidate snapshot taken from `candidateInfo` or the stored profile."
    ),
)
async def create_interview(
    payload: InterviewCreate,
    tracker: InterviewTracker = fastapi.Depends(get_tracker),
) -> InterviewStartedResponse:
    if not payload.email:
        raise await http_exc_400_field_required("Email is required")

    candidate_info = payload.candidate_info.model_dump(exclude_none=True) if payload.candidate_info else None
    try:
        interview, resumed = await tracker.start_attempt(email=payload.email, candidate_info=candidate_info)
    except EntityDoesNotExist:
        raise await http_exc_404_not_found("User")

    return InterviewStartedResponse(
        interview=InterviewStarted(
            id=interview.id,
            candidate_info=candidate_info_of(interview),
            started_at=interview.started_at,
            resumed=resumed,
        )
    )


@router.get(
    path="/unfinished/{email}",
    name="interviews:unfinished",
    response_model=OpenInterviewResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Latest open attempt of a user, or null",
)
async def get_unfinished_interview(
    email: str,
    tracker: InterviewTracker = fastapi.Depends(get_tracker),
) -> OpenInterviewResponse:
    if not email.strip():
        raise await http_exc_400_field_required("Email is required")
    try:
        interview = await tracker.get_open_attempt(email=email)
    except EntityDoesNotExist:
        raise await http_exc_404_not_found("User")
    return OpenInterviewResponse(interview=InterviewOut.from_record(interview) if interview else None)


@router.get(
    path="/all",
    name="interviews:all",
    response_model=InterviewListResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Dashboard listing of every attempt",
    description=(
        "Filters by status, searches candidate name, email and phone case-insensitively and sorts by "
        "`sortBy`/`sortOrder`. `count` is the number of matches before `limit`/`offset` are applied."
    ),
)
async def list_all_interviews(
    search: str | None = None,
    sort_by: SortField = fastapi.Query(default="completedAt", alias="sortBy"),
    sort_order: SortOrder = fastapi.Query(default="desc", alias="sortOrder"),
    status: StatusFilter = "all",
    limit: int | None = fastapi.Query(default=None, ge=1, le=500),
    offset: int = fastapi.Query(default=0, ge=0),
    interview_repo: InterviewCRUDRepository = fastapi.Depends(get_repository(repo_type=InterviewCRUDRepository)),
) -> InterviewListResponse:
    reader = DashboardReader(interview_repo=interview_repo)  # type: ignore[arg-type]
    count, attempts = await reader.list_attempts(
        status=status,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit,
        offset=offset,
    )
    return InterviewListResponse(count=count, interviews=[InterviewOut.from_record(item) for item in attempts])


@router.get(
    path="/user/{email}",
    name="interviews:by-user",
    response_model=InterviewListResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Every attempt of a user, newest first",
)
async def list_user_interviews(
    email: str,
    user_repo: UserCRUDRepository = fastapi.Depends(get_repository(repo_type=UserCRUDRepository)),
    interview_repo: InterviewCRUDRepository = fastapi.Depends(get_repository(repo_type=InterviewCRUDRepository)),
) -> InterviewListResponse:
    try:
        user = await user_repo.get_user_by_email(email=email, active_only=False)
    except EntityDoesNotExist:
        raise await http_exc_404_not_found("User")
    interviews = await interview_repo.list_by_user(user_id=user.id)
    return InterviewListResponse(count=len(interviews), interviews=[InterviewOut.from_record(item) for item in interviews])


@router.put(
    path="/{interview_id}/question",
    name="interviews:record-question",
    response_model=QuestionResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Create or merge one question slot",
    description="Non-null fields overwrite, absent or null fields keep the stored value. The slot is keyed by `id` (1..6).",
)
async def record_question(
    interview_id: str,
    payload: QuestionUpdate,
    tracker: InterviewTracker = fastapi.Depends(get_tracker),
) -> QuestionResponse:
    if payload.question_data is None:
        raise await http_exc_400_field_required("Question data is required")

    slot = await tracker.record_question(attempt_id=interview_id, slot=payload.question_data.to_fields())
    return QuestionResponse(question=QuestionSlotSchema.from_slot(slot))


@router.put(
    path="/{interview_id}/complete",
    name="interviews:complete",
    response_model=InterviewCompletedResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Complete an attempt with its final answers",
    description=(
        "Merges `allAnswers` into the stored slots and marks the attempt completed. With `createNewSession` "
        "on a resumed attempt, the attempt is abandoned and a new completed record carries the answers."
    ),
)
async def complete_interview(
    interview_id: str,
    payload: InterviewComplete,
    tracker: InterviewTracker = fastapi.Depends(get_tracker),
) -> InterviewCompletedResponse:
    final_answers = [answer.to_fields() for answer in payload.all_answers or []]
    interview = await tracker.complete_attempt(
        attempt_id=interview_id,
        final_answers=final_answers,
        create_new_session=payload.create_new_session,
    )
    return InterviewCompletedResponse(interview=summarize(interview))


@router.get(
    path="/{interview_id}/results",
    name="interviews:results",
    response_model=InterviewResultsResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Points-weighted results and a one-sentence summary",
)
async def get_interview_results(
    interview_id: str,
    tracker: InterviewTracker = fastapi.Depends(get_tracker),
) -> InterviewResultsResponse:
    interview = await tracker.get_attempt(attempt_id=interview_id)
    results = await build_results(interview)
    breakdown = {
        difficulty: [QuestionSlotSchema.model_validate(slot) for slot in slots]
        for difficulty, slots in results.pop("difficulty_breakdown").items()
    }
    return InterviewResultsResponse(
        interview=summarize(interview),
        results=InterviewResults(difficulty_breakdown=breakdown, **results),
    )


@router.get(
    path="/{interview_id}",
    name="interviews:get",
    response_model=InterviewResponse,
    status_code=fastapi.status.HTTP_200_OK,
)
async def get_interview(
    interview_id: str,
    tracker: InterviewTracker = fastapi.Depends(get_tracker),
) -> InterviewResponse:
    interview = await tracker.get_attempt(attempt_id=interview_id)
    return InterviewResponse(interview=InterviewOut.from_record(interview))
