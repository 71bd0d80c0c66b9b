import logging
import typing

import sqlalchemy

from interview_assistant.models.db.interview import Interview
from interview_assistant.repository.crud.interview import InterviewCRUDRepository

logger = logging.getLogger(__name__)

SortField = typing.Literal["completedAt", "startedAt", "averageScore", "totalScore", "candidateInfo.name"]
SortOrder = typing.Literal["asc", "desc"]
StatusFilter = typing.Literal["all", "in-progress", "completed", "abandoned"]

SORT_COLUMNS: dict[str, sqlalchemy.ColumnElement] = {
    # Open attempts have no completion time yet; order them by when they started
    "completedAt": sqlalchemy.func.coalesce(Interview.completed_at, Interview.started_at),
    "startedAt": Interview.started_at,  # type: ignore[dict-item]
    "averageScore": Interview.average_score,  # type: ignore[dict-item]
    "totalScore": Interview.total_score,  # type: ignore[dict-item]
    "candidateInfo.name": sqlalchemy.func.lower(Interview.candidate_name),
}


class DashboardReader:
    """Read-only listing of every attempt, open ones included, filtered, searched and sorted."""

    def __init__(self, interview_repo: InterviewCRUDRepository):
        self.interview_repo = interview_repo

    async def list_attempts(
        self,
        *,
        status: StatusFilter = "all",
        search: str | None = None,
        sort_by: SortField = "completedAt",
        sort_order: SortOrder = "desc",
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[int, list[Interview]]:
        status_value = None if status == "all" else status
        search_value = search.strip() if search and search.strip() else None

        count = await self.interview_repo.count_attempts(status=status_value, search=search_value)
        attempts = await self.interview_repo.list_attempts(
            order_by=SORT_COLUMNS[sort_by],
            descending=sort_order == "desc",
            status=status_value,
            search=search_value,
            limit=limit,
            offset=offset,
        )
        logger.debug("Dashboard %s/%s search=%r -> %d of %d", status, sort_by, search_value, len(attempts), count)
        return count, attempts
