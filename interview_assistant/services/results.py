import logging

from interview_assistant.models.db.interview import Interview
from interview_assistant.services.evaluation import round_half_up
from interview_assistant.services.llm import generate_candidate_summary_with_llm
from interview_assistant.services.question_bank import DIFFICULTIES, points_for

logger = logging.getLogger(__name__)


def calculate_final_score(slots: list[dict]) -> dict:
    """
    Points-weighted breakdown over the given slots (snake_case slot dicts).

    Each slot earns `score * points / 10`; unscored slots earn nothing.
    """
    total_questions = len(slots)
    total_possible = sum(points_for(slot["difficulty"]) for slot in slots if slot.get("difficulty"))
    earned = sum(
        (slot.get("score") or 0) * points_for(slot["difficulty"]) / 10 for slot in slots if slot.get("difficulty")
    )
    average = sum(slot.get("score") or 0 for slot in slots) / total_questions if total_questions else 0.0
    percentage = earned / total_possible * 100 if total_possible else 0.0

    return {
        "average_score": round_half_up(average * 10) / 10,
        "percentage_score": round_half_up(percentage),
        "total_questions": total_questions,
        "earned_points": round_half_up(earned),
        "total_possible_points": total_possible,
        "difficulty_breakdown": {
            difficulty: [slot for slot in slots if slot.get("difficulty") == difficulty] for difficulty in DIFFICULTIES
        },
    }


def fallback_summary(final: dict) -> str:
    return (
        f"Interview Complete - Score: {final['average_score']}/10 ({final['percentage_score']}%). "
        f"Answered {final['total_questions']} questions with "
        f"{final['earned_points']}/{final['total_possible_points']} points."
    )


async def build_results(interview: Interview) -> dict:
    slots = [slot.as_dict() for slot in interview.questions]
    final = calculate_final_score(slots)
    summary, error, _, _ = await generate_candidate_summary_with_llm(
        average_score=final["average_score"],
        percentage_score=final["percentage_score"],
    )
    if not summary:
        if error:
            logger.warning("Summary generation failed for %s: %s", interview.id, error)
        summary = fallback_summary(final)
    return {**final, "summary": summary}
