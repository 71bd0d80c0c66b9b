import datetime

import sqlalchemy
from sqlalchemy.orm import Mapped as SQLAlchemyMapped, mapped_column as sqlalchemy_mapped_column, relationship

from interview_assistant.repository.table import Base


class QuestionSlot(Base):  # type: ignore
    __tablename__ = "question_slot"
    __table_args__ = (
        sqlalchemy.UniqueConstraint("interview_id", "sequence_id", name="uq_question_slot_interview_sequence"),
    )

    id: SQLAlchemyMapped[int] = sqlalchemy_mapped_column(primary_key=True, autoincrement="auto")
    interview_id: SQLAlchemyMapped[str] = sqlalchemy_mapped_column(
        sqlalchemy.String(length=32), sqlalchemy.ForeignKey("interview.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # 1..6, position in the fixed difficulty sequence
    sequence_id: SQLAlchemyMapped[int] = sqlalchemy_mapped_column(sqlalchemy.Integer, nullable=False)
    question: SQLAlchemyMapped[str | None] = sqlalchemy_mapped_column(sqlalchemy.Text, nullable=True)
    difficulty: SQLAlchemyMapped[str | None] = sqlalchemy_mapped_column(sqlalchemy.String(length=16), nullable=True)
    time_limit: SQLAlchemyMapped[int | None] = sqlalchemy_mapped_column(sqlalchemy.Integer, nullable=True)
    answered: SQLAlchemyMapped[bool] = sqlalchemy_mapped_column(sqlalchemy.Boolean, nullable=False, default=False)
    answer: SQLAlchemyMapped[str | None] = sqlalchemy_mapped_column(sqlalchemy.Text, nullable=True)
    score: SQLAlchemyMapped[float | None] = sqlalchemy_mapped_column(sqlalchemy.Float, nullable=True)
    time_taken: SQLAlchemyMapped[int | None] = sqlalchemy_mapped_column(sqlalchemy.Integer, nullable=True)
    feedback: SQLAlchemyMapped[str | None] = sqlalchemy_mapped_column(sqlalchemy.Text, nullable=True)
    timed_out: SQLAlchemyMapped[bool] = sqlalchemy_mapped_column(sqlalchemy.Boolean, nullable=False, default=False)
    # When the question was first put to the candidate; anchors the answer deadline
    issued_at: SQLAlchemyMapped[datetime.datetime | None] = sqlalchemy_mapped_column(
        sqlalchemy.DateTime(timezone=True), nullable=True
    )

    interview = relationship("Interview", back_populates="questions")

    def merge(self, fields: dict) -> None:
        for key, value in merge_slot_values(self.as_dict(), fields).items():
            setattr(self, key, value)

    def as_dict(self) -> dict:
        return {key: getattr(self, key) for key in SLOT_FIELDS}


SLOT_FIELDS: tuple[str, ...] = (
    "sequence_id",
    "question",
    "difficulty",
    "time_limit",
    "answered",
    "answer",
    "score",
    "time_taken",
    "feedback",
    "timed_out",
)


def merge_slot_values(existing: dict, incoming: dict) -> dict:
    """
    Layer `incoming` over `existing`: non-null incoming values win, `None` or absent keys keep the stored value.
    Explicit `False` and `0` are values, not gaps.
    """
    merged = {key: existing.get(key) for key in SLOT_FIELDS}
    for key in SLOT_FIELDS:
        value = incoming.get(key)
        if value is not None:
            merged[key] = value
    return merged
