import pytest
import sqlalchemy
from sqlalchemy.exc import IntegrityError

from interview_assistant.models.db.interview import Interview, InterviewStatusEnum
from interview_assistant.models.db.question_slot import QuestionSlot


def attempt(**slots: dict) -> Interview:
    interview = Interview(user_id=1, candidate_name="Ada Lovelace", candidate_email="ada@example.com")
    for fields in slots.values():
        interview.questions.append(QuestionSlot(**fields))
    return interview


def test_aggregates_count_only_answered_slots() -> None:
    interview = attempt(
        first={"sequence_id": 1, "answered": True, "score": 8},
        second={"sequence_id": 2, "answered": True, "score": None},
        third={"sequence_id": 3, "answered": False, "score": 10},
    )

    interview.recompute_aggregates()

    assert interview.total_score == 8.0
    assert interview.average_score == 4.0


def test_aggregates_of_empty_attempt_are_zero() -> None:
    interview = attempt()

    interview.recompute_aggregates()

    assert interview.total_score == 0.0
    assert interview.average_score == 0.0
    assert interview.slot_for(1) is None


def test_slot_merge_keeps_stored_values() -> None:
    slot = QuestionSlot(sequence_id=3, question="Which React Hook manages side effects?", difficulty="medium", answered=False)

    slot.merge({"sequence_id": 3, "answer": "useEffect", "question": None, "answered": True})

    assert slot.question == "Which React Hook manages side effects?"
    assert slot.answer == "useEffect"
    assert slot.answered is True


@pytest.mark.asyncio
async def test_attempt_gets_hex_id_and_defaults(db_session, candidate) -> None:
    interview = Interview(user_id=candidate.id, candidate_name=candidate.name, candidate_email=candidate.email)
    db_session.add(interview)
    await db_session.commit()

    assert len(interview.id) == 32
    int(interview.id, 16)
    assert interview.status == InterviewStatusEnum.IN_PROGRESS.value
    assert interview.is_open is True
    assert interview.resumed_count == 0
    assert interview.started_at is not None


@pytest.mark.asyncio
async def test_one_slot_per_sequence_id(db_session, candidate) -> None:
    interview = Interview(user_id=candidate.id, candidate_name=candidate.name, candidate_email=candidate.email)
    db_session.add(interview)
    await db_session.commit()

    db_session.add_all(
        [
            QuestionSlot(interview_id=interview.id, sequence_id=1),
            QuestionSlot(interview_id=interview.id, sequence_id=1),
        ]
    )
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()

    count = await db_session.execute(sqlalchemy.select(sqlalchemy.func.count()).select_from(QuestionSlot))
    assert count.scalar_one() == 0


@pytest.mark.asyncio
async def test_user_email_is_unique(user_repo, candidate) -> None:
    saved, action = await user_repo.save_user(name="Ada King", email=" ADA@example.com ", phone="+1 555 010 0101")

    assert action == "updated"
    assert saved.id == candidate.id
    assert saved.email == "ada@example.com"
    # Omitted resume data leaves the stored one in place
    assert saved.resume_text == "Ada Lovelace\nReact developer"
