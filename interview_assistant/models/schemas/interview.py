import datetime
import typing

import pydantic

from interview_assistant.models.db.interview import Interview
from interview_assistant.models.db.question_slot import QuestionSlot
from interview_assistant.models.schemas.base import BaseSchemaModel, SuccessResponse

Difficulty = typing.Literal["easy", "medium", "hard"]
InterviewStatus = typing.Literal["in-progress", "completed", "abandoned"]


class CandidateInfo(BaseSchemaModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    resume_text: str | None = None


class QuestionSlotSchema(BaseSchemaModel):
    # Travels as `id` on the wire; optional here so a missing id is reported as an invalid slot
    sequence_id: int | None = pydantic.Field(default=None, alias="id")
    question: str | None = None
    difficulty: Difficulty | None = None
    time_limit: int | None = None
    answered: bool | None = None
    answer: str | None = None
    score: float | None = pydantic.Field(default=None, ge=1, le=10)
    time_taken: int | None = None
    feedback: str | None = None
    timed_out: bool | None = None

    @classmethod
    def from_slot(cls, slot: QuestionSlot) -> "QuestionSlotSchema":
        # Never validate the ORM object directly: its primary key is also called `id`
        return cls.model_validate(slot.as_dict())

    def to_fields(self) -> dict:
        return self.model_dump(by_alias=False)


class InterviewCreate(BaseSchemaModel):
    email: str | None = None
    candidate_info: CandidateInfo | None = None


class QuestionUpdate(BaseSchemaModel):
    question_data: QuestionSlotSchema | None = None


class InterviewComplete(BaseSchemaModel):
    all_answers: list[QuestionSlotSchema] | None = None
    create_new_session: bool = False


class InterviewStarted(BaseSchemaModel):
    id: str
    candidate_info: CandidateInfo
    started_at: datetime.datetime
    resumed: bool = False


class InterviewSummary(BaseSchemaModel):
    id: str
    total_score: float
    average_score: float
    status: InterviewStatus
    completed_at: datetime.datetime | None = None
    duration: int | None = None


class InterviewOut(BaseSchemaModel):
    id: str
    user_id: int
    candidate_info: CandidateInfo
    questions: list[QuestionSlotSchema]
    total_score: float
    average_score: float
    status: InterviewStatus
    started_at: datetime.datetime
    completed_at: datetime.datetime | None = None
    duration: int | None = None
    resumed_count: int = 0
    resumed_from_id: str | None = None
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None

    @classmethod
    def from_record(cls, interview: Interview) -> "InterviewOut":
        return cls(
            id=interview.id,
            user_id=interview.user_id,
            candidate_info=candidate_info_of(interview),
            questions=[QuestionSlotSchema.from_slot(slot) for slot in interview.questions],
            total_score=interview.total_score,
            average_score=interview.average_score,
            status=interview.status,  # type: ignore[arg-type]
            started_at=interview.started_at,
            completed_at=interview.completed_at,
            duration=interview.duration,
            resumed_count=interview.resumed_count,
            resumed_from_id=interview.resumed_from_id,
            created_at=interview.created_at,
            updated_at=interview.updated_at,
        )


def candidate_info_of(interview: Interview) -> CandidateInfo:
    return CandidateInfo(
        name=interview.candidate_name,
        email=interview.candidate_email,
        phone=interview.candidate_phone,
        resume_text=interview.candidate_resume_text,
    )


class InterviewStartedResponse(SuccessResponse):
    interview: InterviewStarted


class QuestionResponse(SuccessResponse):
    message: str = "Question updated successfully"
    question: QuestionSlotSchema


class InterviewCompletedResponse(SuccessResponse):
    message: str = "Interview completed successfully"
    interview: InterviewSummary


class InterviewResponse(SuccessResponse):
    interview: InterviewOut


class OpenInterviewResponse(SuccessResponse):
    interview: InterviewOut | None = None


class InterviewListResponse(SuccessResponse):
    count: int
    interviews: list[InterviewOut]


class InterviewResults(BaseSchemaModel):
    average_score: float
    percentage_score: int
    total_questions: int
    earned_points: int
    total_possible_points: int
    difficulty_breakdown: dict[str, list[QuestionSlotSchema]]
    summary: str


class InterviewResultsResponse(SuccessResponse):
    interview: InterviewSummary
    results: InterviewResults
