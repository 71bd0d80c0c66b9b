import logging

import sqlalchemy

from interview_assistant.models.db.user import User
from interview_assistant.repository.crud.base import BaseCRUDRepository
from interview_assistant.utilities.exceptions.database import EntityDoesNotExist
from interview_assistant.utilities.formatters.datetime_formatter import utc_now

logger = logging.getLogger(__name__)


class UserCRUDRepository(BaseCRUDRepository):
    async def get_user_by_email(self, *, email: str, active_only: bool = True) -> User:
        stmt = sqlalchemy.select(User).where(User.email == email.strip().lower())
        if active_only:
            stmt = stmt.where(User.is_active.is_(True))
        query = await self.async_session.execute(statement=stmt)
        user = query.scalar()
        if not user:
            raise EntityDoesNotExist("User not found")
        return user  # type: ignore

    async def save_user(
        self,
        *,
        name: str,
        email: str,
        phone: str,
        resume_data: dict | None = None,
    ) -> tuple[User, str]:
        """Create the user or update the existing one with the same email.

        Returns the user and `"created"` or `"updated"`. Saving an inactive user reactivates it.
        """
        email = email.strip().lower()
        stmt = sqlalchemy.select(User).where(User.email == email)
        query = await self.async_session.execute(statement=stmt)
        user: User | None = query.scalar()  # type: ignore

        resume_text = resume_data.get("text") if resume_data else None
        if user is None:
            user = User(
                name=name.strip(),
                email=email,
                phone=phone.strip(),
                resume_text=resume_text,
                resume_data=resume_data,
                is_active=True,
            )
            self.async_session.add(user)
            action = "created"
        else:
            user.name = name.strip()
            user.phone = phone.strip()
            if resume_data is not None:
                user.resume_data = resume_data
                user.resume_text = resume_text
            user.is_active = True
            user.updated_at = utc_now()
            action = "updated"

        await self.async_session.commit()
        await self.async_session.refresh(user)
        logger.info("User %s %s", user.email, action)
        return user, action

    async def deactivate_user(self, *, email: str) -> User:
        user = await self.get_user_by_email(email=email)
        user.is_active = False
        user.updated_at = utc_now()
        await self.async_session.commit()
        await self.async_session.refresh(user)
        logger.info("User %s deactivated", user.email)
        return user
