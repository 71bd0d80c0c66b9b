"""
Chat flow state: one payload per phase, discriminated on `phase`, plus the events that move it.
"""
import datetime
import math
import typing

import pydantic

from interview_assistant.models.schemas.base import BaseSchemaModel, SuccessResponse
from interview_assistant.models.schemas.interview import Difficulty, QuestionSlotSchema

FieldName = typing.Literal["name", "email", "phone"]


class ChatMessage(BaseSchemaModel):
    role: typing.Literal["bot", "user", "system"]
    text: str
    at: datetime.datetime


class CandidateFields(BaseSchemaModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class ActiveQuestion(BaseSchemaModel):
    sequence_id: int
    question: str
    difficulty: Difficulty
    time_limit: int
    issued_at: datetime.datetime

    @property
    def deadline(self) -> datetime.datetime:
        return self.issued_at + datetime.timedelta(seconds=self.time_limit)

    def remaining_seconds(self, now: datetime.datetime) -> int:
        return max(0, math.ceil((self.deadline - now).total_seconds()))


class PendingAnswer(BaseSchemaModel):
    sequence_id: int
    answer: str
    time_taken: int
    timed_out: bool


class UploadPhase(BaseSchemaModel):
    phase: typing.Literal["upload"] = "upload"


class CollectingPhase(BaseSchemaModel):
    phase: typing.Literal["collecting"] = "collecting"
    resume_text: str | None = None
    fields: CandidateFields
    # Remaining fields to ask for; the head is the one currently asked
    missing: list[FieldName]


class ReadyPhase(BaseSchemaModel):
    phase: typing.Literal["ready"] = "ready"
    resume_text: str | None = None
    fields: CandidateFields
    starting: bool = False


class InterviewPhase(BaseSchemaModel):
    phase: typing.Literal["interview"] = "interview"
    attempt_id: str
    resume_text: str | None = None
    fields: CandidateFields
    asked_questions: list[str] = pydantic.Field(default_factory=list)
    answers: list[QuestionSlotSchema] = pydantic.Field(default_factory=list)
    current: ActiveQuestion | None = None
    pending: PendingAnswer | None = None
    completing: bool = False


class CompletedPhase(BaseSchemaModel):
    phase: typing.Literal["completed"] = "completed"
    attempt_id: str
    fields: CandidateFields
    total_score: float
    average_score: float
    status: str


Phase = typing.Annotated[
    typing.Union[UploadPhase, CollectingPhase, ReadyPhase, InterviewPhase, CompletedPhase],
    pydantic.Field(discriminator="phase"),
]


class ChatState(BaseSchemaModel):
    state: Phase = pydantic.Field(default_factory=UploadPhase)
    messages: list[ChatMessage] = pydantic.Field(default_factory=list)

    @property
    def phase(self) -> str:
        return self.state.phase

    @property
    def email(self) -> str | None:
        fields = getattr(self.state, "fields", None)
        return fields.email if fields else None


# Events sent by the client


class ResumeUploaded(BaseSchemaModel):
    type: typing.Literal["resume_uploaded"] = "resume_uploaded"
    text: str = ""
    # Fields already extracted client side take precedence over the text scan
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class UserMessage(BaseSchemaModel):
    type: typing.Literal["user_message"] = "user_message"
    text: str


class TimerExpired(BaseSchemaModel):
    type: typing.Literal["timer_expired"] = "timer_expired"
    draft: str | None = None


class Reset(BaseSchemaModel):
    type: typing.Literal["reset"] = "reset"


# Events fed back by the controller after running an effect


class AttemptStarted(BaseSchemaModel):
    type: typing.Literal["attempt_started"] = "attempt_started"
    attempt_id: str
    slots: list[QuestionSlotSchema] = pydantic.Field(default_factory=list)


class QuestionIssued(BaseSchemaModel):
    type: typing.Literal["question_issued"] = "question_issued"
    sequence_id: int
    question: str
    difficulty: Difficulty
    time_limit: int


class AnswerEvaluated(BaseSchemaModel):
    type: typing.Literal["answer_evaluated"] = "answer_evaluated"
    sequence_id: int
    score: float
    accuracy: float
    feedback: str
    error: str | None = None


class AttemptCompleted(BaseSchemaModel):
    type: typing.Literal["attempt_completed"] = "attempt_completed"
    attempt_id: str
    total_score: float
    average_score: float
    status: str


ClientEvent = typing.Annotated[
    typing.Union[ResumeUploaded, UserMessage, TimerExpired, Reset],
    pydantic.Field(discriminator="type"),
]

ChatEvent = typing.Union[
    ResumeUploaded,
    UserMessage,
    TimerExpired,
    Reset,
    AttemptStarted,
    QuestionIssued,
    AnswerEvaluated,
    AttemptCompleted,
]


class ChatAdvance(BaseSchemaModel):
    # Without a state the persisted session of `email` is resumed, or a fresh flow begins
    email: str | None = None
    state: ChatState | None = None
    event: ClientEvent


class ChatStateResponse(SuccessResponse):
    state: ChatState
    remaining_seconds: int | None = None
