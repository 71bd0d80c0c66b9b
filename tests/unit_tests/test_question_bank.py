import random

import pytest

from interview_assistant.config.manager import settings
from interview_assistant.services import question_bank
from interview_assistant.services.question_bank import (
    QUESTION_POOLS,
    UnknownDifficulty,
    difficulty_for,
    next_question,
    pick_from_pool,
)


def test_pool_sizes() -> None:
    assert len(QUESTION_POOLS["easy"]) == 8
    assert len(QUESTION_POOLS["medium"]) == 8
    assert len(QUESTION_POOLS["hard"]) == 6


def test_difficulty_sequence_has_two_of_each_tier() -> None:
    assert [difficulty_for(seq) for seq in range(1, 7)] == ["easy", "easy", "medium", "medium", "hard", "hard"]


def test_asked_questions_are_excluded_ignoring_case_and_whitespace() -> None:
    pool = QUESTION_POOLS["hard"]
    asked = [f"  {question.upper()} " for question in pool[:-1]]

    for seed in range(10):
        assert pick_from_pool("hard", asked, rng=random.Random(seed)) == pool[-1]


def test_exhausted_tier_is_reused() -> None:
    pool = QUESTION_POOLS["hard"]

    picked = pick_from_pool("hard", pool, rng=random.Random(1))

    assert picked in pool


def test_unknown_difficulty_is_rejected() -> None:
    with pytest.raises(UnknownDifficulty):
        pick_from_pool("expert")


@pytest.mark.asyncio
async def test_next_question_carries_tier_time_limit() -> None:
    supplied = await next_question("medium", [], rng=random.Random(3))

    assert supplied["difficulty"] == "medium"
    assert supplied["timeLimit"] == 60
    assert supplied["question"] in QUESTION_POOLS["medium"]


@pytest.mark.asyncio
async def test_generated_question_is_used_when_enabled(monkeypatch) -> None:
    async def fake_generate(**kwargs):
        return "Explain React reconciliation.", None, 12, "test-model"

    monkeypatch.setattr(settings, "USE_LLM_QUESTIONS", True)
    monkeypatch.setattr(question_bank, "generate_question_with_llm", fake_generate)

    supplied = await next_question("hard", ["What is Redis?"])

    assert supplied == {"question": "Explain React reconciliation.", "difficulty": "hard", "timeLimit": 120}


@pytest.mark.asyncio
async def test_repeated_generated_question_falls_back_to_pool(monkeypatch) -> None:
    async def fake_generate(**kwargs):
        return "what is redis? ", None, 12, "test-model"

    monkeypatch.setattr(settings, "USE_LLM_QUESTIONS", True)
    monkeypatch.setattr(question_bank, "generate_question_with_llm", fake_generate)

    supplied = await next_question("hard", ["What is Redis?"], rng=random.Random(0))

    assert supplied["question"] in QUESTION_POOLS["hard"]


@pytest.mark.asyncio
async def test_failed_generation_falls_back_to_pool(monkeypatch) -> None:
    async def fake_generate(**kwargs):
        return None, "timeout", 30000, "test-model"

    monkeypatch.setattr(settings, "USE_LLM_QUESTIONS", True)
    monkeypatch.setattr(question_bank, "generate_question_with_llm", fake_generate)

    supplied = await next_question("easy", [], rng=random.Random(0))

    assert supplied["question"] in QUESTION_POOLS["easy"]
