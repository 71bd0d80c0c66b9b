import datetime
import logging

import sqlalchemy

from interview_assistant.config.manager import settings
from interview_assistant.models.db.session import Session
from interview_assistant.models.db.user import User
from interview_assistant.repository.crud.base import BaseCRUDRepository
from interview_assistant.utilities.exceptions.database import EntityDoesNotExist
from interview_assistant.utilities.formatters.datetime_formatter import utc_now

logger = logging.getLogger(__name__)


class SessionCRUDRepository(BaseCRUDRepository):
    async def get_active_session(self, *, email: str) -> Session:
        """Most recently written active session that has not expired."""
        stmt = (
            sqlalchemy.select(Session)
            .where(Session.email == email.strip().lower())
            .where(Session.is_active.is_(True))
            .where(Session.expires_at > utc_now())
            .order_by(Session.updated_at.desc().nulls_last(), Session.id.desc())
        )
        query = await self.async_session.execute(statement=stmt)
        session = query.scalar()
        if not session:
            raise EntityDoesNotExist("Session not found")
        return session  # type: ignore

    async def purge_expired(self, *, user_id: int) -> int:
        stmt = sqlalchemy.delete(Session).where(Session.user_id == user_id).where(Session.expires_at <= utc_now())
        result = await self.async_session.execute(statement=stmt)
        return result.rowcount or 0  # type: ignore

    async def save_session(self, *, user: User, session_data: dict) -> tuple[Session, str]:
        """Overwrite the active session blob, or open a new session when none is live.

        Every save pushes the expiry `SESSION_TTL_HOURS` into the future.
        """
        purged = await self.purge_expired(user_id=user.id)
        if purged:
            logger.debug("Purged %d expired sessions for %s", purged, user.email)

        now = utc_now()
        expires_at = now + datetime.timedelta(hours=settings.SESSION_TTL_HOURS)
        try:
            session = await self.get_active_session(email=user.email)
            session.session_data = session_data
            session.expires_at = expires_at
            session.updated_at = now
            action = "updated"
        except EntityDoesNotExist:
            session = Session(
                user_id=user.id,
                email=user.email,
                session_data=session_data,
                is_active=True,
                expires_at=expires_at,
                updated_at=now,
            )
            self.async_session.add(session)
            action = "created"

        await self.async_session.commit()
        await self.async_session.refresh(session)
        logger.info("Session %s for %s", action, user.email)
        return session, action

    async def deactivate_sessions(self, *, email: str) -> int:
        """Deactivate every active session of the user; returns how many were touched."""
        stmt = (
            sqlalchemy.update(Session)
            .where(Session.email == email.strip().lower())
            .where(Session.is_active.is_(True))
            .values(is_active=False, updated_at=utc_now())
        )
        result = await self.async_session.execute(statement=stmt)
        await self.async_session.commit()
        count = result.rowcount or 0  # type: ignore
        logger.info("Deactivated %d sessions for %s", count, email)
        return count
