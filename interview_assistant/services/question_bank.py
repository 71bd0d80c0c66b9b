"""
Question supplier for the fixed six-question interview.

Questions come from per-difficulty pools; already-asked questions are excluded with a
case-insensitive, whitespace-trimmed comparison. When every question of a tier has been
asked, the whole tier becomes eligible again. With `USE_LLM_QUESTIONS` on, the LLM is asked
first and the pool is the fallback whenever it fails or repeats itself.
"""
import logging
import random
import typing

from interview_assistant.config.manager import settings
from interview_assistant.services.llm import generate_question_with_llm

logger = logging.getLogger(__name__)

DIFFICULTY_SEQUENCE: tuple[str, ...] = tuple(settings.DIFFICULTY_SEQUENCE)
DIFFICULTIES: tuple[str, ...] = ("easy", "medium", "hard")

QUESTION_POOLS: dict[str, list[str]] = {
    "easy": [
        "What library is used for building user interfaces in React? (Answer in 1 word)",
        "What keyword is used to declare a constant in JavaScript? (Answer in 1 word)",
        "What runtime environment allows JavaScript to run on the server? (Answer in 1 word)",
        "What does JSX stand for? (Answer in 3 words max)",
        "What HTTP method is used to retrieve data? (Answer in 1 word)",
        "What operator checks for strict equality in JavaScript? (Answer in 1 symbol)",
        "What package manager is commonly used with Node.js? (Answer in 1 word)",
        "What hook is used to manage component state in React? (Answer in 1 word)",
    ],
    "medium": [
        "Which React Hook manages side effects? (Answer in 1 word)",
        "What method is used to handle asynchronous operations? (Answer in 1 word)",
        "What library is commonly used for global state management in React? (Answer in 1 word)",
        "What Express.js concept processes requests before reaching routes? (Answer in 1 word)",
        "What NoSQL database is document-oriented? (Answer in 1 word)",
        "What token type is commonly used for authentication? (Answer in 1 word)",
        "What browser policy restricts cross-origin requests? (Answer in 1 word)",
        "What method runs after component mounts? (Answer in 1 word)",
    ],
    "hard": [
        "What protocol enables real-time bidirectional communication? (Answer in 1 word)",
        "What in-memory data store is used for caching? (Answer in 1 word)",
        "What technique splits code into smaller bundles? (Answer in 1-2 words)",
        "What architecture pattern breaks applications into independent services? (Answer in 1 word)",
        "What process automatically restarts failed Node.js applications? (Answer in 1 word)",
        "What database feature ensures data consistency across operations? (Answer in 1 word)",
    ],
}


class UnknownDifficulty(ValueError):
    pass


def normalize_question(text: str) -> str:
    return text.strip().lower()


def time_limit_for(difficulty: str) -> int:
    return settings.DIFFICULTY_TIME_LIMITS[difficulty]


def points_for(difficulty: str) -> int:
    return settings.DIFFICULTY_POINTS[difficulty]


def difficulty_for(sequence_id: int) -> str:
    return DIFFICULTY_SEQUENCE[sequence_id - 1]


def pick_from_pool(
    difficulty: str,
    previous_questions: typing.Iterable[str] = (),
    rng: random.Random | None = None,
) -> str:
    pool = QUESTION_POOLS.get(difficulty)
    if not pool:
        raise UnknownDifficulty(f"No questions available for difficulty: {difficulty}")

    used = {normalize_question(q) for q in previous_questions if q}
    available = [q for q in pool if normalize_question(q) not in used]
    candidates = available or pool
    return (rng or random).choice(candidates)


async def next_question(
    difficulty: str,
    previous_questions: typing.Sequence[str] = (),
    *,
    context_text: str | None = None,
    rng: random.Random | None = None,
) -> dict:
    """Return `{question, difficulty, timeLimit}` for the next round."""
    if difficulty not in QUESTION_POOLS:
        raise UnknownDifficulty(f"No questions available for difficulty: {difficulty}")

    text: str | None = None
    if settings.USE_LLM_QUESTIONS:
        generated, error, latency_ms, model = await generate_question_with_llm(
            difficulty=difficulty,
            previous_questions=list(previous_questions),
            context_text=context_text,
        )
        used = {normalize_question(q) for q in previous_questions if q}
        if generated and normalize_question(generated) not in used:
            text = generated
            logger.debug("Question generated by %s in %sms", model, latency_ms)
        else:
            logger.info("LLM question unusable (%s), using %s pool", error or "repeat or empty", difficulty)

    if text is None:
        text = pick_from_pool(difficulty, previous_questions, rng=rng)

    return {"question": text, "difficulty": difficulty, "timeLimit": time_limit_for(difficulty)}
