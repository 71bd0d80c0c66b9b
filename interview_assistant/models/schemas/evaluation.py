import pydantic

from interview_assistant.models.schemas.base import BaseSchemaModel, SuccessResponse
from interview_assistant.models.schemas.interview import Difficulty


class AnswerEvaluationRequest(BaseSchemaModel):
    question: str
    answer: str = ""
    difficulty: Difficulty
    time_taken: int = pydantic.Field(default=0, ge=0)


class AnswerEvaluation(BaseSchemaModel):
    score: float
    accuracy: float
    feedback: str
    error: str | None = None


class AnswerEvaluationResponse(SuccessResponse):
    evaluation: AnswerEvaluation


class NextQuestionRequest(BaseSchemaModel):
    difficulty: Difficulty
    previous_questions: list[str] = pydantic.Field(default_factory=list)


class SuppliedQuestion(BaseSchemaModel):
    question: str
    difficulty: Difficulty
    time_limit: int


class NextQuestionResponse(SuccessResponse):
    question: SuppliedQuestion
