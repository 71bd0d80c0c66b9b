import datetime

import pytest

from interview_assistant.models.db.interview import InterviewStatusEnum
from interview_assistant.services.interview_tracker import duration_minutes
from interview_assistant.utilities.exceptions.database import EntityDoesNotExist
from interview_assistant.utilities.exceptions.interview import AttemptNotFound, InvalidSlot, InvalidTransition
from interview_assistant.utilities.formatters.datetime_formatter import as_utc

SCORES = [7, 8, 6, 9, 5, 10]
DIFFICULTIES = ["easy", "easy", "medium", "medium", "hard", "hard"]


def answered_slot(sequence_id: int) -> dict:
    return {
        "sequence_id": sequence_id,
        "question": f"Question {sequence_id}",
        "difficulty": DIFFICULTIES[sequence_id - 1],
        "answered": True,
        "answer": f"Answer {sequence_id}",
        "score": SCORES[sequence_id - 1],
        "time_taken": 12,
    }


@pytest.mark.asyncio
async def test_start_then_record_leaves_one_unanswered_slot(tracker, candidate) -> None:
    interview, resumed = await tracker.start_attempt(email=candidate.email)
    assert resumed is False
    assert len(interview.id) == 32

    await tracker.record_question(attempt_id=interview.id, slot={"sequence_id": 1, "difficulty": "easy", "time_limit": 20})

    open_attempt = await tracker.get_open_attempt(email=candidate.email)
    assert open_attempt is not None
    assert open_attempt.id == interview.id
    assert len(open_attempt.questions) == 1
    assert open_attempt.questions[0].answered is False
    assert open_attempt.questions[0].timed_out is False


@pytest.mark.asyncio
async def test_six_recorded_answers_complete_with_mean_score(tracker, candidate) -> None:
    interview, _ = await tracker.start_attempt(email=candidate.email)
    for sequence_id in range(1, 7):
        await tracker.record_question(attempt_id=interview.id, slot=answered_slot(sequence_id))

    completed = await tracker.complete_attempt(
        attempt_id=interview.id,
        final_answers=[answered_slot(sequence_id) for sequence_id in range(1, 7)],
    )

    assert completed.status == InterviewStatusEnum.COMPLETED.value
    assert len(completed.questions) == 6
    assert all(slot.answered for slot in completed.questions)
    assert completed.total_score == pytest.approx(sum(SCORES))
    assert completed.average_score == pytest.approx(sum(SCORES) / 6)
    assert completed.completed_at is not None
    assert completed.duration == 0
    assert await tracker.get_open_attempt(email=candidate.email) is None


@pytest.mark.asyncio
async def test_record_on_unknown_attempt_creates_nothing(tracker, interview_repo, candidate) -> None:
    with pytest.raises(AttemptNotFound):
        await tracker.record_question(attempt_id="nonexistent", slot={"sequence_id": 1, "difficulty": "easy"})

    assert await interview_repo.count_attempts() == 0


@pytest.mark.asyncio
async def test_new_session_from_resumed_attempt_abandons_it(tracker, interview_repo, candidate) -> None:
    first, _ = await tracker.start_attempt(email=candidate.email)
    await tracker.record_question(attempt_id=first.id, slot=answered_slot(1))

    resumed, was_resumed = await tracker.start_attempt(email=candidate.email)
    assert was_resumed is True
    assert resumed.id == first.id
    assert resumed.resumed_count == 1

    replacement = await tracker.complete_attempt(
        attempt_id=resumed.id,
        final_answers=[answered_slot(2)],
        create_new_session=True,
    )

    abandoned = await tracker.get_attempt(attempt_id=first.id)
    assert abandoned.status == InterviewStatusEnum.ABANDONED.value
    assert [slot.sequence_id for slot in abandoned.questions] == [1]

    assert replacement.id != first.id
    assert replacement.status == InterviewStatusEnum.COMPLETED.value
    assert replacement.resumed_from_id == first.id
    assert replacement.user_id == abandoned.user_id == candidate.id
    assert [slot.sequence_id for slot in replacement.questions] == [1, 2]
    assert await interview_repo.count_attempts() == 2


@pytest.mark.asyncio
async def test_new_session_flag_is_ignored_on_fresh_attempt(tracker, interview_repo, candidate) -> None:
    interview, _ = await tracker.start_attempt(email=candidate.email)

    completed = await tracker.complete_attempt(
        attempt_id=interview.id,
        final_answers=[answered_slot(1)],
        create_new_session=True,
    )

    assert completed.id == interview.id
    assert completed.status == InterviewStatusEnum.COMPLETED.value
    assert await interview_repo.count_attempts() == 1


@pytest.mark.asyncio
async def test_recording_same_slot_twice_keeps_one_slot(tracker, candidate) -> None:
    interview, _ = await tracker.start_attempt(email=candidate.email)
    slot = {"sequence_id": 3, "question": "What is a hook?", "difficulty": "medium", "time_limit": 60}

    await tracker.record_question(attempt_id=interview.id, slot=slot)
    await tracker.record_question(attempt_id=interview.id, slot=slot)

    stored = await tracker.get_attempt(attempt_id=interview.id)
    assert [s.sequence_id for s in stored.questions] == [3]


@pytest.mark.asyncio
async def test_partial_update_keeps_stored_fields(tracker, candidate) -> None:
    interview, _ = await tracker.start_attempt(email=candidate.email)
    await tracker.record_question(
        attempt_id=interview.id,
        slot={"sequence_id": 1, "question": "Q", "difficulty": "easy", "score": 7, "feedback": "ok"},
    )

    merged = await tracker.record_question(attempt_id=interview.id, slot={"sequence_id": 1, "answer": "x"})

    assert merged.answer == "x"
    assert merged.score == 7
    assert merged.feedback == "ok"
    assert merged.question == "Q"


@pytest.mark.asyncio
async def test_start_twice_returns_same_attempt(tracker, candidate) -> None:
    first, _ = await tracker.start_attempt(email=candidate.email)
    second, resumed = await tracker.start_attempt(email=candidate.email)

    assert resumed is True
    assert second.id == first.id


@pytest.mark.asyncio
async def test_complete_forces_answered_on_final_answers(tracker, candidate) -> None:
    interview, _ = await tracker.start_attempt(email=candidate.email)
    await tracker.record_question(attempt_id=interview.id, slot={"sequence_id": 2, "question": "Q2", "answered": False})

    completed = await tracker.complete_attempt(
        attempt_id=interview.id,
        final_answers=[{"sequence_id": 2, "answer": "late", "score": 4, "answered": False}],
    )

    slot = completed.slot_for(2)
    assert slot.answered is True
    assert slot.timed_out is False
    assert slot.question == "Q2"
    assert completed.total_score == pytest.approx(4)
    assert completed.average_score == pytest.approx(4)


@pytest.mark.asyncio
async def test_aggregates_ignore_unanswered_and_count_unscored_as_zero(tracker, candidate) -> None:
    interview, _ = await tracker.start_attempt(email=candidate.email)
    await tracker.record_question(attempt_id=interview.id, slot={"sequence_id": 1, "answered": True, "score": 8})
    await tracker.record_question(attempt_id=interview.id, slot={"sequence_id": 2, "answered": True})
    stored = await tracker.record_question(attempt_id=interview.id, slot={"sequence_id": 3, "score": 10})

    attempt = await tracker.get_attempt(attempt_id=interview.id)
    assert stored.answered is False
    assert attempt.total_score == pytest.approx(8)
    assert attempt.average_score == pytest.approx(4)


@pytest.mark.asyncio
async def test_new_slots_get_their_tier_defaults(tracker, candidate) -> None:
    interview, _ = await tracker.start_attempt(email=candidate.email)

    slot = await tracker.record_question(attempt_id=interview.id, slot={"sequence_id": 5, "question": "Hard one"})

    assert slot.difficulty == "hard"
    assert slot.time_limit == 120


@pytest.mark.asyncio
@pytest.mark.parametrize("sequence_id", [None, 0, 7])
async def test_out_of_range_sequence_id_is_rejected(tracker, candidate, sequence_id) -> None:
    interview, _ = await tracker.start_attempt(email=candidate.email)

    with pytest.raises(InvalidSlot):
        await tracker.record_question(attempt_id=interview.id, slot={"sequence_id": sequence_id})
    with pytest.raises(InvalidSlot):
        await tracker.complete_attempt(attempt_id=interview.id, final_answers=[{"sequence_id": sequence_id}])


@pytest.mark.asyncio
async def test_abandoned_attempt_cannot_be_completed(tracker, candidate) -> None:
    first, _ = await tracker.start_attempt(email=candidate.email)
    await tracker.start_attempt(email=candidate.email)
    await tracker.complete_attempt(attempt_id=first.id, final_answers=[], create_new_session=True)

    with pytest.raises(InvalidTransition):
        await tracker.complete_attempt(attempt_id=first.id, final_answers=[])


@pytest.mark.asyncio
async def test_start_for_unknown_user_fails(tracker) -> None:
    with pytest.raises(EntityDoesNotExist):
        await tracker.start_attempt(email="nobody@example.com")


@pytest.mark.asyncio
async def test_candidate_snapshot_prefers_given_info(tracker, candidate) -> None:
    interview, _ = await tracker.start_attempt(
        email=candidate.email,
        candidate_info={"name": "Ada L.", "phone": "+44 20 7946 0000"},
    )

    assert interview.candidate_name == "Ada L."
    assert interview.candidate_email == "ada@example.com"
    assert interview.candidate_phone == "+44 20 7946 0000"
    assert interview.candidate_resume_text == "Ada Lovelace\nReact developer"


def test_duration_rounds_half_up() -> None:
    started = datetime.datetime(2026, 1, 1, 10, 0, tzinfo=datetime.timezone.utc)

    assert duration_minutes(started, started + datetime.timedelta(seconds=89)) == 1
    assert duration_minutes(started, started + datetime.timedelta(seconds=90)) == 2
    assert duration_minutes(started, started + datetime.timedelta(minutes=14, seconds=29)) == 14
    # Naive values from sqlite are treated as UTC
    assert duration_minutes(started.replace(tzinfo=None), started + datetime.timedelta(minutes=3)) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("score", [0, 10.5, 500])
async def test_scores_outside_one_to_ten_are_rejected(tracker, candidate, score) -> None:
    interview, _ = await tracker.start_attempt(email=candidate.email)

    with pytest.raises(InvalidSlot):
        await tracker.record_question(attempt_id=interview.id, slot={"sequence_id": 1, "answered": True, "score": score})
    with pytest.raises(InvalidSlot):
        await tracker.complete_attempt(attempt_id=interview.id, final_answers=[{"sequence_id": 1, "score": score}])

    attempt = await tracker.get_attempt(attempt_id=interview.id)
    assert attempt.questions == []
    assert attempt.total_score == 0
    assert attempt.is_open


@pytest.mark.asyncio
async def test_tier_difficulty_and_time_limit_cannot_be_overwritten(tracker, candidate) -> None:
    interview, _ = await tracker.start_attempt(email=candidate.email)
    await tracker.record_question(attempt_id=interview.id, slot={"sequence_id": 1, "question": "Q1"})

    with pytest.raises(InvalidSlot, match="Question 1 is easy"):
        await tracker.record_question(attempt_id=interview.id, slot={"sequence_id": 1, "difficulty": "hard"})
    with pytest.raises(InvalidSlot, match="time limit of 20 seconds"):
        await tracker.record_question(attempt_id=interview.id, slot={"sequence_id": 1, "time_limit": 999})
    with pytest.raises(InvalidSlot):
        await tracker.complete_attempt(attempt_id=interview.id, final_answers=[{"sequence_id": 6, "difficulty": "easy"}])

    slot = (await tracker.get_attempt(attempt_id=interview.id)).slot_for(1)
    assert slot.difficulty == "easy"
    assert slot.time_limit == 20


@pytest.mark.asyncio
async def test_slot_keeps_its_first_issue_time(tracker, candidate) -> None:
    interview, _ = await tracker.start_attempt(email=candidate.email)
    first = datetime.datetime(2026, 10, 19, 12, 0, tzinfo=datetime.timezone.utc)

    await tracker.record_question(attempt_id=interview.id, slot={"sequence_id": 2, "question": "Q2"}, issued_at=first)
    slot = await tracker.record_question(
        attempt_id=interview.id, slot={"sequence_id": 2, "question": "Q2"}, issued_at=first + datetime.timedelta(minutes=5)
    )

    assert as_utc(slot.issued_at) == first
