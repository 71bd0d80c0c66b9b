import datetime
import logging

import sqlalchemy
from sqlalchemy.exc import IntegrityError

from interview_assistant.models.db.interview import Interview, InterviewStatusEnum
from interview_assistant.models.db.question_slot import QuestionSlot
from interview_assistant.repository.crud.base import BaseCRUDRepository
from interview_assistant.utilities.exceptions.interview import AttemptNotFound
from interview_assistant.utilities.formatters.datetime_formatter import utc_now

logger = logging.getLogger(__name__)


def _new_slot(sequence_id: int) -> QuestionSlot:
    return QuestionSlot(sequence_id=sequence_id, answered=False, timed_out=False)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class InterviewCRUDRepository(BaseCRUDRepository):
    async def get_by_id(self, *, interview_id: str) -> Interview:
        stmt = (
            sqlalchemy.select(Interview)
            .where(Interview.id == interview_id)
            .execution_options(populate_existing=True)
        )
        query = await self.async_session.execute(statement=stmt)
        interview = query.scalar()
        if not interview:
            raise AttemptNotFound("Interview not found")
        return interview  # type: ignore

    async def get_open_by_user(self, *, user_id: int) -> Interview | None:
        stmt = (
            sqlalchemy.select(Interview)
            .where(Interview.user_id == user_id)
            .where(Interview.status == InterviewStatusEnum.IN_PROGRESS.value)
            .order_by(Interview.started_at.desc(), Interview.created_at.desc())
            .limit(1)
        )
        query = await self.async_session.execute(statement=stmt)
        return query.scalar()  # type: ignore

    async def list_by_user(self, *, user_id: int) -> list[Interview]:
        stmt = (
            sqlalchemy.select(Interview)
            .where(Interview.user_id == user_id)
            .order_by(Interview.started_at.desc(), Interview.created_at.desc())
        )
        query = await self.async_session.execute(statement=stmt)
        return list(query.scalars().all())

    async def create_attempt(
        self,
        *,
        user_id: int,
        candidate_name: str,
        candidate_email: str,
        candidate_phone: str | None,
        candidate_resume_text: str | None,
    ) -> Interview:
        new_interview = Interview(
            user_id=user_id,
            candidate_name=candidate_name,
            candidate_email=candidate_email,
            candidate_phone=candidate_phone,
            candidate_resume_text=candidate_resume_text,
            status=InterviewStatusEnum.IN_PROGRESS.value,
            started_at=utc_now(),
            total_score=0.0,
            average_score=0.0,
            resumed_count=0,
        )
        self.async_session.add(new_interview)
        await self.async_session.flush()
        interview_id = new_interview.id
        await self.async_session.commit()
        logger.info("Interview %s started for user %s", interview_id, user_id)
        return await self.get_by_id(interview_id=interview_id)

    async def mark_resumed(self, *, interview: Interview) -> Interview:
        interview.resumed_count = (interview.resumed_count or 0) + 1
        return await self.save(interview=interview)

    async def save(self, *, interview: Interview) -> Interview:
        """Persist the attempt; aggregates are recomputed on every write."""
        interview_id = interview.id
        interview.recompute_aggregates()
        interview.updated_at = utc_now()
        await self.async_session.commit()
        return await self.get_by_id(interview_id=interview_id)

    def apply_slots(self, *, interview: Interview, slots: list[dict], issued_at: datetime.datetime | None = None) -> None:
        for fields in slots:
            slot = interview.slot_for(fields["sequence_id"])
            if slot is None:
                slot = _new_slot(fields["sequence_id"])
                interview.questions.append(slot)
            slot.merge(fields)
            if issued_at is not None and slot.issued_at is None:
                slot.issued_at = issued_at

    async def upsert_slot(
        self, *, interview: Interview, fields: dict, issued_at: datetime.datetime | None = None
    ) -> QuestionSlot:
        """
        Merge `fields` into the slot with the same sequence id, appending it when missing.
        Losing a concurrent insert on (interview, sequence id) is retried once as a merge.
        """
        interview_id = interview.id
        sequence_id = fields["sequence_id"]
        self.apply_slots(interview=interview, slots=[fields], issued_at=issued_at)
        try:
            interview = await self.save(interview=interview)
        except IntegrityError:
            await self.async_session.rollback()
            logger.warning("Concurrent insert of slot %s on interview %s, merging", sequence_id, interview_id)
            interview = await self.get_by_id(interview_id=interview_id)
            self.apply_slots(interview=interview, slots=[fields], issued_at=issued_at)
            interview = await self.save(interview=interview)
        return interview.slot_for(sequence_id)

    async def complete(
        self,
        *,
        interview: Interview,
        slots: list[dict],
        completed_at: datetime.datetime,
        duration: int,
    ) -> Interview:
        self.apply_slots(interview=interview, slots=slots)
        interview.status = InterviewStatusEnum.COMPLETED.value
        interview.completed_at = completed_at
        interview.duration = duration
        logger.info("Interview %s completed", interview.id)
        return await self.save(interview=interview)

    async def abandon_and_replace(
        self,
        *,
        source: Interview,
        slots: list[dict],
        completed_at: datetime.datetime,
        duration: int,
    ) -> Interview:
        """
        Mark `source` abandoned (its slots untouched) and create a completed attempt from `slots`.
        Both writes share one transaction.
        """
        source.status = InterviewStatusEnum.ABANDONED.value
        source.updated_at = utc_now()
        source.recompute_aggregates()

        replacement = Interview(
            user_id=source.user_id,
            candidate_name=source.candidate_name,
            candidate_email=source.candidate_email,
            candidate_phone=source.candidate_phone,
            candidate_resume_text=source.candidate_resume_text,
            status=InterviewStatusEnum.COMPLETED.value,
            started_at=source.started_at,
            completed_at=completed_at,
            duration=duration,
            resumed_count=0,
            resumed_from_id=source.id,
            total_score=0.0,
            average_score=0.0,
        )
        self.apply_slots(interview=replacement, slots=slots)
        replacement.recompute_aggregates()
        replacement.updated_at = utc_now()
        self.async_session.add(replacement)
        await self.async_session.flush()
        source_id, replacement_id = source.id, replacement.id
        await self.async_session.commit()
        logger.info("Interview %s abandoned, replaced by completed %s", source_id, replacement_id)
        return await self.get_by_id(interview_id=replacement_id)

    def _filtered(self, *, status: str | None, search: str | None):
        stmt = sqlalchemy.select(Interview)
        if status:
            stmt = stmt.where(Interview.status == status)
        if search:
            pattern = f"%{_escape_like(search.strip())}%"
            stmt = stmt.where(
                sqlalchemy.or_(
                    Interview.candidate_name.ilike(pattern, escape="\\"),
                    Interview.candidate_email.ilike(pattern, escape="\\"),
                    Interview.candidate_phone.ilike(pattern, escape="\\"),
                )
            )
        return stmt

    async def count_attempts(self, *, status: str | None = None, search: str | None = None) -> int:
        subquery = self._filtered(status=status, search=search).subquery()
        stmt = sqlalchemy.select(sqlalchemy.func.count()).select_from(subquery)
        query = await self.async_session.execute(statement=stmt)
        return int(query.scalar_one())

    async def list_attempts(
        self,
        *,
        order_by: sqlalchemy.ColumnElement,
        descending: bool = True,
        status: str | None = None,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Interview]:
        ordering = order_by.desc() if descending else order_by.asc()
        tie_breaker = Interview.created_at.desc() if descending else Interview.created_at.asc()
        stmt = self._filtered(status=status, search=search).order_by(ordering, tie_breaker).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        query = await self.async_session.execute(statement=stmt)
        return list(query.scalars().all())
