"""
Answer evaluator: LLM grading with a deterministic heuristic when the LLM is unavailable.
"""
import decimal
import logging

from interview_assistant.config.manager import settings
from interview_assistant.services.llm import evaluate_answer_with_llm

logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE = "service_unavailable"
FALLBACK_PREFIX = "🤖 AI services unavailable. Estimated score based on answer length and time: "

QUALITY_KEYWORDS: tuple[str, ...] = (
    "function",
    "const",
    "let",
    "var",
    "return",
    "if",
    "else",
    "for",
    "while",
    "class",
    "component",
    "react",
    "javascript",
    "algorithm",
    "data",
    "structure",
    "api",
    "database",
)
DIFFICULTY_MULTIPLIERS: dict[str, float] = {"easy": 0.8, "medium": 1.0, "hard": 1.2}


def round_half_up(value: float) -> int:
    return int(decimal.Decimal(str(value)).quantize(decimal.Decimal("1"), rounding=decimal.ROUND_HALF_UP))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def fallback_score(answer: str | None, difficulty: str, time_taken: float | None) -> dict:
    """Heuristic grading from answer length, keyword presence and time used."""
    text = answer or ""
    length = len(text)
    words = len([word for word in text.split(" ") if word])

    score = 5.0
    if length > 100:
        score += 2
    if length > 200:
        score += 1
    if words > 20:
        score += 1

    lowered = text.lower()
    if any(keyword in lowered for keyword in QUALITY_KEYWORDS):
        score += 1

    allowed = settings.DIFFICULTY_TIME_LIMITS.get(difficulty, 60)
    ratio = (time_taken or 0) / allowed
    if ratio < 0.5:
        score += 0.5
    elif ratio > 0.9:
        score -= 0.5

    final = int(clamp(round_half_up(score * DIFFICULTY_MULTIPLIERS.get(difficulty, 1.0)), 1, 10))

    if length > 50:
        feedback = "Good attempt with reasonable detail. Answer shows understanding of the topic."
    elif length > 20:
        feedback = "Basic answer provided. Could benefit from more elaboration and examples."
    else:
        feedback = "Very brief answer. Consider providing more detailed explanations and examples."

    return {"score": final, "accuracy": round_half_up(final / 10 * 100), "feedback": feedback}


def normalize_llm_evaluation(score: float | None, feedback: str | None, accuracy: float | None) -> dict:
    # 0 and missing both mean "no score given"
    raw_score = score if score else 5
    final_score = clamp(raw_score, 1, 10)
    raw_accuracy = accuracy if accuracy else raw_score * 10
    return {
        "score": final_score,
        "accuracy": clamp(raw_accuracy, 0, 100),
        "feedback": feedback or "Brief evaluation completed",
    }


async def evaluate_answer(
    *,
    question: str,
    answer: str,
    difficulty: str,
    time_taken: int,
) -> dict:
    """
    Returns `{score, accuracy, feedback}`; on fallback also `error: "service_unavailable"`.
    Never raises for provider failures.
    """
    result, error, latency_ms, model = await evaluate_answer_with_llm(
        question=question,
        answer=answer,
        difficulty=difficulty,
        time_taken=time_taken,
    )
    if result is not None:
        logger.info("Answer graded by %s in %sms", model, latency_ms)
        return normalize_llm_evaluation(result.score, result.feedback, result.accuracy)

    logger.warning("Falling back to heuristic scoring: %s", error or "no API key configured")
    estimate = fallback_score(answer, difficulty, time_taken)
    return {
        "score": estimate["score"],
        "accuracy": estimate["accuracy"],
        "feedback": f"{FALLBACK_PREFIX}{estimate['feedback']}",
        "error": SERVICE_UNAVAILABLE,
    }
