import fastapi

from interview_assistant.models.schemas.evaluation import (
    AnswerEvaluation,
    AnswerEvaluationRequest,
    AnswerEvaluationResponse,
    NextQuestionRequest,
    NextQuestionResponse,
    SuppliedQuestion,
)
from interview_assistant.services import question_bank
from interview_assistant.services.evaluation import evaluate_answer

router = fastapi.APIRouter(prefix="", tags=["evaluation"])


@router.post(
    path="/evaluations/answer",
    name="evaluations:answer",
    response_model=AnswerEvaluationResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Grade one answer",
    description=(
        "Grades the answer with the LLM. When the provider is unavailable a heuristic score is returned "
        "and `error` is set to `service_unavailable`."
    ),
)
async def evaluate(payload: AnswerEvaluationRequest) -> AnswerEvaluationResponse:
    result = await evaluate_answer(
        question=payload.question,
        answer=payload.answer,
        difficulty=payload.difficulty,
        time_taken=payload.time_taken,
    )
    return AnswerEvaluationResponse(evaluation=AnswerEvaluation(**result))


@router.post(
    path="/questions/next",
    name="questions:next",
    response_model=NextQuestionResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Supply the next question of a difficulty tier",
)
async def next_question(payload: NextQuestionRequest) -> NextQuestionResponse:
    supplied = await question_bank.next_question(payload.difficulty, payload.previous_questions)
    return NextQuestionResponse(question=SuppliedQuestion.model_validate(supplied))
