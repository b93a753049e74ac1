"""User Repository: scope-bound SQLAlchemy implementation of core UserRepository.

Invariants:
    - Never commits or flushes explicitly: the Unit of Work owns the transaction
    - Returns plain dicts (User.to_dict()), never ORM instances
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from usecase_core.models.user import User


class SqlUserRepository:
    """User persistence within one AsyncSession."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, user_id: UUID, name: str, email: str) -> dict:
        # version is assigned by the mapper on flush; report the first value
        user = User(id=user_id, name=name, email=email)
        self._session.add(user)
        return {"id": str(user_id), "name": name, "email": email, "version": 1}

    async def get(self, user_id: UUID) -> dict | None:
        user = await self._session.get(User, user_id)
        return user.to_dict() if user else None

    async def get_by_email(self, email: str) -> dict | None:
        result = await self._session.execute(
            select(User).where(User.email == email),
        )
        user = result.scalar_one_or_none()
        return user.to_dict() if user else None

    async def rename(self, user_id: UUID, name: str) -> dict | None:
        user = await self._session.get(User, user_id)
        if user is None:
            return None
        user.name = name
        return {**user.to_dict(), "version": user.version + 1}

    async def list(self, limit: int, offset: int) -> list[dict]:
        result = await self._session.execute(
            select(User).order_by(User.created_at.desc()).limit(limit).offset(offset),
        )
        return [u.to_dict() for u in result.scalars().all()]
