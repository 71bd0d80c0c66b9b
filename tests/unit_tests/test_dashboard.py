import pytest
import pytest_asyncio

from interview_assistant.services.dashboard import DashboardReader

CANDIDATES = [
    # name, email, phone, score, completed
    ("Ada Lovelace", "ada@example.com", "+1 555 010 0100", 9, True),
    ("Grace Hopper", "grace@navy.mil", "+1 555 010 0200", 4, True),
    ("Linus Torvalds", "linus@kernel.org", "+358 40 123 4567", 6, False),
]


@pytest_asyncio.fixture
async def seeded(user_repo, tracker):
    for name, email, phone, score, completed in CANDIDATES:
        await user_repo.save_user(name=name, email=email, phone=phone)
        interview, _ = await tracker.start_attempt(email=email)
        answer = {"sequence_id": 1, "question": "Q1", "answered": True, "answer": "A", "score": score}
        await tracker.record_question(attempt_id=interview.id, slot=answer)
        if completed:
            await tracker.complete_attempt(attempt_id=interview.id, final_answers=[answer])


@pytest.fixture
def reader(interview_repo) -> DashboardReader:
    return DashboardReader(interview_repo=interview_repo)


def names(attempts) -> list[str]:
    return [attempt.candidate_name for attempt in attempts]


@pytest.mark.asyncio
async def test_all_attempts_newest_activity_first(reader, seeded) -> None:
    count, attempts = await reader.list_attempts()

    assert count == 3
    # Open attempts are ordered by their start time
    assert names(attempts) == ["Linus Torvalds", "Grace Hopper", "Ada Lovelace"]
    assert [attempt.status for attempt in attempts] == ["in-progress", "completed", "completed"]


@pytest.mark.asyncio
async def test_status_filter(reader, seeded) -> None:
    completed_count, completed = await reader.list_attempts(status="completed")
    open_count, open_attempts = await reader.list_attempts(status="in-progress")
    abandoned_count, _ = await reader.list_attempts(status="abandoned")

    assert completed_count == 2
    assert set(names(completed)) == {"Ada Lovelace", "Grace Hopper"}
    assert open_count == 1
    assert names(open_attempts) == ["Linus Torvalds"]
    assert abandoned_count == 0


@pytest.mark.asyncio
async def test_search_is_case_insensitive_over_name_email_and_phone(reader, seeded) -> None:
    _, by_email = await reader.list_attempts(search="NAVY")
    _, by_name = await reader.list_attempts(search="torVALDS")
    _, by_phone = await reader.list_attempts(search="555 010", sort_by="candidateInfo.name", sort_order="asc")

    assert names(by_email) == ["Grace Hopper"]
    assert names(by_name) == ["Linus Torvalds"]
    assert names(by_phone) == ["Ada Lovelace", "Grace Hopper"]


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(reader, seeded) -> None:
    count, attempts = await reader.list_attempts(search="%")

    assert count == 0
    assert attempts == []


@pytest.mark.asyncio
async def test_blank_search_matches_everything(reader, seeded) -> None:
    count, _ = await reader.list_attempts(search="   ")

    assert count == 3


@pytest.mark.asyncio
async def test_sort_by_average_score(reader, seeded) -> None:
    _, ascending = await reader.list_attempts(sort_by="averageScore", sort_order="asc")
    _, descending = await reader.list_attempts(sort_by="averageScore", sort_order="desc")

    assert names(ascending) == ["Grace Hopper", "Linus Torvalds", "Ada Lovelace"]
    assert names(descending) == ["Ada Lovelace", "Linus Torvalds", "Grace Hopper"]


@pytest.mark.asyncio
async def test_count_is_taken_before_pagination(reader, seeded) -> None:
    count, page = await reader.list_attempts(sort_by="averageScore", sort_order="asc", limit=1, offset=1)

    assert count == 3
    assert names(page) == ["Linus Torvalds"]
