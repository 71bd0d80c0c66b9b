import asyncio
import json
import logging
import time
from typing import Any, Type

import openai
import pydantic
from openai import AsyncOpenAI

from interview_assistant.config.manager import settings
from interview_assistant.utilities.exceptions.interview import UpstreamServiceError

logger = logging.getLogger(__name__)

# Lazy client holder; create only when needed and when API key is present
_client: AsyncOpenAI | None = None


def _get_client() -> AsyncOpenAI | None:
    global _client
    if _client is not None:
        return _client
    api_key = settings.OPENAI_API_KEY
    if not api_key:
        return None
    _client = AsyncOpenAI(
        api_key=api_key,
        timeout=float(settings.OPENAI_TIMEOUT_SECONDS),
        # Rate limits get exactly one retry, handled in structured_output
        max_retries=0,
    )
    return _client


class AnswerEvaluationLLM(pydantic.BaseModel):
    score: float | None = None
    feedback: str | None = None
    accuracy: float | None = None


class QuestionLLM(pydantic.BaseModel):
    question: str


class CandidateSummaryLLM(pydantic.BaseModel):
    summary: str


async def _create_completion(client: AsyncOpenAI, kwargs: dict[str, Any]) -> str:
    try:
        resp = await client.chat.completions.create(**kwargs)
    except openai.RateLimitError:
        backoff = float(settings.LLM_RATE_LIMIT_BACKOFF_SECONDS)
        logger.warning("LLM rate limited, retrying once in %.1fs", backoff)
        await asyncio.sleep(backoff)
        resp = await client.chat.completions.create(**kwargs)
    if not resp.choices:
        raise UpstreamServiceError("LLM returned no choices")
    return resp.choices[0].message.content or "{}"


async def structured_output(
    model_class: Type[pydantic.BaseModel],
    *,
    system_prompt: str,
    user_content: Any,
    temperature: float = 0,
    max_tokens: int = 256,
) -> tuple[pydantic.BaseModel | None, str | None, int | None, str]:
    """Call OpenAI asynchronously with JSON response_format and validate against Pydantic model.

    Returns (parsed, error, latency_ms, model). Without an API key nothing is called and both
    parsed and error are None.
    """
    model = settings.OPENAI_MODEL
    client = _get_client()
    if client is None:
        return None, None, None, model

    start = time.perf_counter()
    try:
        # Newer model families take max_completion_tokens and only the default temperature
        is_new_family = any(str(model).lower().startswith(p) for p in ("gpt-5", "gpt-4.1", "o4", "o3"))
        token_param_key = "max_completion_tokens" if is_new_family else "max_tokens"
        kwargs: dict[str, Any] = {
            "model": model,
            "response_format": {"type": "json_object"},
            token_param_key: max_tokens,
            "messages": [
                {"role": "system", "content": system_prompt},
                {
                    "role": "user",
                    "content": user_content if isinstance(user_content, str) else json.dumps(user_content, ensure_ascii=False),
                },
            ],
        }
        if not is_new_family:
            kwargs["temperature"] = temperature
        raw = await _create_completion(client, kwargs)
        parsed = model_class.model_validate(json.loads(raw))
        latency_ms = int((time.perf_counter() - start) * 1000)
        logger.debug("LLM %s answered %s in %dms", model, model_class.__name__, latency_ms)
        return parsed, None, latency_ms, model
    except (openai.OpenAIError, UpstreamServiceError, json.JSONDecodeError, pydantic.ValidationError) as e:
        latency_ms = int((time.perf_counter() - start) * 1000)
        logger.warning("LLM %s failed after %dms: %s", model, latency_ms, e)
        return None, str(e), latency_ms, model


async def evaluate_answer_with_llm(
    *,
    question: str,
    answer: str,
    difficulty: str,
    time_taken: int,
) -> tuple[AnswerEvaluationLLM | None, str | None, int | None, str]:
    system_prompt = (
        "You grade answers in a timed technical interview for a React/Node full stack role. "
        'Scale 1-10. JSON only: {"score": 8, "feedback": "brief comment"}'
    )
    user_prompt = {
        "question": question,
        "answer": answer,
        "difficulty": difficulty,
        "timeTakenSeconds": time_taken,
        "instruction": f'Rate answer: "{answer}" for question: "{question}".',
    }
    result, error, latency, model = await structured_output(
        AnswerEvaluationLLM,
        system_prompt=system_prompt,
        user_content=user_prompt,
        temperature=0.1,
        max_tokens=120,
    )
    return result, error, latency, model  # type: ignore[return-value]


async def generate_question_with_llm(
    *,
    difficulty: str,
    previous_questions: list[str],
    context_text: str | None = None,
) -> tuple[str | None, str | None, int | None, str]:
    system_prompt = (
        "You are an interviewer for a React/Node full stack role. Ask ONE short question that can be "
        "answered in a word or a short phrase, and append the expected answer length in parentheses, "
        'e.g. "(Answer in 1 word)". Return ONLY JSON: {"question": "..."}'
    )
    user_prompt = {
        "difficulty": difficulty,
        "doNotRepeat": previous_questions,
        "resume": (context_text or "")[:4000],
    }
    result, error, latency, model = await structured_output(
        QuestionLLM,
        system_prompt=system_prompt,
        user_content=user_prompt,
        temperature=0.7,
        max_tokens=120,
    )
    text = result.question.strip() if result else None  # type: ignore[attr-defined]
    return text or None, error, latency, model


async def generate_candidate_summary_with_llm(
    *,
    average_score: float,
    percentage_score: int,
) -> tuple[str | None, str | None, int | None, str]:
    result, error, latency, model = await structured_output(
        CandidateSummaryLLM,
        system_prompt='Summarise an interview result. Return ONLY JSON: {"summary": "one sentence assessment"}',
        user_content=f"Interview summary: Score {average_score}/10 ({percentage_score}%). Brief 1-sentence assessment:",
        temperature=0.3,
        max_tokens=120,
    )
    text = result.summary.strip() if result else None  # type: ignore[attr-defined]
    return text or None, error, latency, model
