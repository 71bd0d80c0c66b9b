import datetime
import uuid
from enum import Enum as _Enum

import sqlalchemy
from sqlalchemy.orm import Mapped as SQLAlchemyMapped, mapped_column as sqlalchemy_mapped_column, relationship
from sqlalchemy.sql import functions as sqlalchemy_functions

from interview_assistant.repository.table import Base
from interview_assistant.utilities.formatters.datetime_formatter import utc_now


class InterviewStatusEnum(str, _Enum):
    """Lifecycle of one attempt; `in-progress` is the only open state."""

    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


def _new_attempt_id() -> str:
    return uuid.uuid4().hex


class Interview(Base):  # type: ignore
    __tablename__ = "interview"

    id: SQLAlchemyMapped[str] = sqlalchemy_mapped_column(sqlalchemy.String(length=32), primary_key=True, default=_new_attempt_id)
    user_id: SQLAlchemyMapped[int] = sqlalchemy_mapped_column(
        sqlalchemy.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Candidate snapshot, decoupled from later edits of the user profile
    candidate_name: SQLAlchemyMapped[str] = sqlalchemy_mapped_column(sqlalchemy.String(length=128), nullable=False)
    candidate_email: SQLAlchemyMapped[str] = sqlalchemy_mapped_column(sqlalchemy.String(length=254), nullable=False, index=True)
    candidate_phone: SQLAlchemyMapped[str | None] = sqlalchemy_mapped_column(sqlalchemy.String(length=32), nullable=True)
    candidate_resume_text: SQLAlchemyMapped[str | None] = sqlalchemy_mapped_column(sqlalchemy.Text, nullable=True)

    total_score: SQLAlchemyMapped[float] = sqlalchemy_mapped_column(sqlalchemy.Float, nullable=False, default=0.0)
    average_score: SQLAlchemyMapped[float] = sqlalchemy_mapped_column(sqlalchemy.Float, nullable=False, default=0.0)
    status: SQLAlchemyMapped[str] = sqlalchemy_mapped_column(
        sqlalchemy.String(length=32), nullable=False, index=True, default=InterviewStatusEnum.IN_PROGRESS.value
    )
    started_at: SQLAlchemyMapped[datetime.datetime] = sqlalchemy_mapped_column(
        sqlalchemy.DateTime(timezone=True), nullable=False, default=utc_now
    )
    completed_at: SQLAlchemyMapped[datetime.datetime | None] = sqlalchemy_mapped_column(
        sqlalchemy.DateTime(timezone=True), nullable=True
    )
    # Minutes, rounded half-up
    duration: SQLAlchemyMapped[int | None] = sqlalchemy_mapped_column(sqlalchemy.Integer, nullable=True)

    resumed_count: SQLAlchemyMapped[int] = sqlalchemy_mapped_column(sqlalchemy.Integer, nullable=False, default=0)
    resumed_from_id: SQLAlchemyMapped[str | None] = sqlalchemy_mapped_column(
        sqlalchemy.String(length=32), sqlalchemy.ForeignKey("interview.id", ondelete="SET NULL"), nullable=True
    )

    created_at: SQLAlchemyMapped[datetime.datetime] = sqlalchemy_mapped_column(
        sqlalchemy.DateTime(timezone=True), nullable=False, server_default=sqlalchemy_functions.now()
    )
    updated_at: SQLAlchemyMapped[datetime.datetime | None] = sqlalchemy_mapped_column(
        sqlalchemy.DateTime(timezone=True), nullable=True
    )

    user = relationship("User", back_populates="interviews")
    questions = relationship(
        "QuestionSlot",
        back_populates="interview",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="QuestionSlot.sequence_id",
    )

    __mapper_args__ = {"eager_defaults": True}

    @property
    def is_open(self) -> bool:
        return self.status == InterviewStatusEnum.IN_PROGRESS.value

    def slot_for(self, sequence_id: int):
        for slot in self.questions:
            if slot.sequence_id == sequence_id:
                return slot
        return None

    def recompute_aggregates(self) -> None:
        """totalScore/averageScore over answered slots; unscored answers count as 0."""
        answered = [slot for slot in self.questions if slot.answered]
        self.total_score = float(sum(slot.score or 0 for slot in answered))
        self.average_score = self.total_score / len(answered) if answered else 0.0
