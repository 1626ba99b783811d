from __future__ import annotations

import uuid

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from usage_monitor.db.models import User


class UserRepositoryConflictError(ValueError):
    pass


class UsersRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: str) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        result = await self._session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def list_user_ids(self) -> list[str]:
        result = await self._session.execute(select(User.id).order_by(User.created_at, User.id))
        return [row[0] for row in result.all()]

    async def add(self, email: str, password_hash: str) -> User:
        row = User(id=uuid.uuid4().hex, email=email, password_hash=password_hash)
        self._session.add(row)
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise UserRepositoryConflictError("Email already registered") from exc
        await self._session.refresh(row)
        return row

    async def set_password_hash(self, user_id: str, password_hash: str) -> bool:
        result = await self._session.execute(
            update(User).where(User.id == user_id).values(password_hash=password_hash).returning(User.id)
        )
        await self._session.commit()
        return result.scalar_one_or_none() is not None
