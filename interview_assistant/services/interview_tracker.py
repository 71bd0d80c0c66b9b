"""
Interview progress tracker.

One `interview` row per attempt; `in-progress` is the open state and `completed` /
`abandoned` are terminal. Question slots are upserted by sequence id (1..6) with
non-null-wins merging, so client retries never duplicate a slot.
"""
import datetime
import decimal
import logging

from interview_assistant.models.db.interview import Interview, InterviewStatusEnum
from interview_assistant.models.db.question_slot import merge_slot_values
from interview_assistant.models.db.user import User
from interview_assistant.repository.crud.interview import InterviewCRUDRepository
from interview_assistant.repository.crud.user import UserCRUDRepository
from interview_assistant.services.question_bank import DIFFICULTY_SEQUENCE, difficulty_for, time_limit_for
from interview_assistant.utilities.exceptions.interview import InvalidSlot, InvalidTransition
from interview_assistant.utilities.formatters.datetime_formatter import as_utc, utc_now

logger = logging.getLogger(__name__)

SLOT_COUNT = len(DIFFICULTY_SEQUENCE)
MIN_SCORE, MAX_SCORE = 1, 10


def validate_sequence_id(sequence_id: int | None) -> int:
    if sequence_id is None or isinstance(sequence_id, bool) or not isinstance(sequence_id, int):
        raise InvalidSlot("Question id is required")
    if not 1 <= sequence_id <= SLOT_COUNT:
        raise InvalidSlot(f"Question id must be between 1 and {SLOT_COUNT}")
    return sequence_id


def validate_slot(slot: dict) -> int:
    """
    Check a slot write against the fixed sequence: an id in 1..6, a score in 1..10 or none,
    and the difficulty and time limit of that position when they are given.
    """
    sequence_id = validate_sequence_id(slot.get("sequence_id"))
    score = slot.get("score")
    if score is not None and not MIN_SCORE <= score <= MAX_SCORE:
        raise InvalidSlot(f"Score must be between {MIN_SCORE} and {MAX_SCORE}")

    difficulty = difficulty_for(sequence_id)
    if slot.get("difficulty") not in (None, difficulty):
        raise InvalidSlot(f"Question {sequence_id} is {difficulty}")
    if slot.get("time_limit") not in (None, time_limit_for(difficulty)):
        raise InvalidSlot(f"Question {sequence_id} has a time limit of {time_limit_for(difficulty)} seconds")
    return sequence_id


def default_slot(sequence_id: int) -> dict:
    difficulty = difficulty_for(sequence_id)
    return {
        "sequence_id": sequence_id,
        "difficulty": difficulty,
        "time_limit": time_limit_for(difficulty),
        "answered": False,
        "timed_out": False,
    }


def merge_final_answers(existing_slots: list[dict], final_answers: list[dict]) -> list[dict]:
    """
    Layer each final answer over its stored slot (or a fresh one), force `answered`,
    and default `timed_out` to False. Returns every slot, ordered by sequence id.
    """
    by_id = {slot["sequence_id"]: dict(slot) for slot in existing_slots}
    for answer in final_answers:
        sequence_id = validate_slot(answer)
        merged = merge_slot_values(by_id.get(sequence_id) or default_slot(sequence_id), answer)
        merged["answered"] = True
        if merged.get("timed_out") is None:
            merged["timed_out"] = False
        by_id[sequence_id] = merged
    return [by_id[key] for key in sorted(by_id)]


def duration_minutes(started_at: datetime.datetime, completed_at: datetime.datetime) -> int:
    """Elapsed minutes, rounded half-up."""
    seconds = (as_utc(completed_at) - as_utc(started_at)).total_seconds()  # type: ignore[operator]
    minutes = decimal.Decimal(str(seconds)) / decimal.Decimal(60)
    return int(minutes.quantize(decimal.Decimal("1"), rounding=decimal.ROUND_HALF_UP))


def snapshot_from_user(user: User, candidate_info: dict | None = None) -> dict:
    info = candidate_info or {}
    return {
        "candidate_name": info.get("name") or user.name,
        "candidate_email": (info.get("email") or user.email).strip().lower(),
        "candidate_phone": info.get("phone") or user.phone,
        "candidate_resume_text": info.get("resume_text") or user.resume_text or "",
    }


class InterviewTracker:
    def __init__(self, interview_repo: InterviewCRUDRepository, user_repo: UserCRUDRepository):
        self.interview_repo = interview_repo
        self.user_repo = user_repo

    async def start_attempt(self, *, email: str, candidate_info: dict | None = None) -> tuple[Interview, bool]:
        """
        Return the user's open attempt when there is one (flagged as resumed), else create one.
        Raises `EntityDoesNotExist` for an unknown user.
        """
        user = await self.user_repo.get_user_by_email(email=email)
        open_attempt = await self.interview_repo.get_open_by_user(user_id=user.id)
        if open_attempt is not None:
            interview = await self.interview_repo.mark_resumed(interview=open_attempt)
            logger.info("Interview %s resumed by %s (x%d)", interview.id, user.email, interview.resumed_count)
            return interview, True

        interview = await self.interview_repo.create_attempt(
            user_id=user.id,
            **snapshot_from_user(user, candidate_info),
        )
        return interview, False

    async def record_question(self, *, attempt_id: str, slot: dict, issued_at: datetime.datetime | None = None):
        """
        Upsert one slot. `issued_at` stamps when the question was first put to the candidate;
        a slot keeps its first stamp.
        """
        sequence_id = validate_slot(slot)
        interview = await self.interview_repo.get_by_id(interview_id=attempt_id)

        fields = dict(slot)
        if interview.slot_for(sequence_id) is None:
            fields = merge_slot_values(default_slot(sequence_id), slot)
        recorded = await self.interview_repo.upsert_slot(interview=interview, fields=fields, issued_at=issued_at)
        logger.info("Interview %s slot %d recorded (answered=%s)", attempt_id, sequence_id, recorded.answered)
        return recorded

    async def complete_attempt(
        self,
        *,
        attempt_id: str,
        final_answers: list[dict],
        create_new_session: bool = False,
    ) -> Interview:
        interview = await self.interview_repo.get_by_id(interview_id=attempt_id)
        if interview.status == InterviewStatusEnum.ABANDONED.value:
            raise InvalidTransition("Interview was abandoned and cannot be completed")

        slots = merge_final_answers([slot.as_dict() for slot in interview.questions], final_answers)
        completed_at = utc_now()
        duration = duration_minutes(interview.started_at, completed_at)

        if create_new_session and interview.is_open and interview.resumed_count > 0:
            return await self.interview_repo.abandon_and_replace(
                source=interview,
                slots=slots,
                completed_at=completed_at,
                duration=duration,
            )
        return await self.interview_repo.complete(
            interview=interview,
            slots=slots,
            completed_at=completed_at,
            duration=duration,
        )

    async def get_open_attempt(self, *, email: str) -> Interview | None:
        user = await self.user_repo.get_user_by_email(email=email, active_only=False)
        return await self.interview_repo.get_open_by_user(user_id=user.id)

    async def get_attempt(self, *, attempt_id: str) -> Interview:
        return await self.interview_repo.get_by_id(interview_id=attempt_id)
