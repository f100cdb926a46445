"""
User Service

Admin account management. Accounts are never deleted; deactivation is a
single-statement flip of `is_active`.
"""
import logging
from typing import Dict, Any, List, Tuple

from sqlalchemy import select, func, update, not_
from sqlalchemy.ext.asyncio import AsyncSession

from justchiro.core.config import Settings, settings as default_settings
from justchiro.core.exceptions import AuthenticationError, Conflict, NotFound, OperationNotAllowed
from justchiro.core.security import get_password_hash, verify_password
from justchiro.core.utils import utcnow
from justchiro.models.user import User, ROLE_ADMIN

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession, settings: Settings = default_settings):
        self.db = db
        self.settings = settings

    async def get(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def get_by_email(self, email: str):
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def list_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
        return list(result.scalars().all())

    async def count_active(self) -> int:
        return await self.db.scalar(
            select(func.count(User.id)).where(User.is_active.is_(True))
        ) or 0

    async def create_admin(self, data: Dict[str, Any]) -> User:
        email = data["email"].lower()
        if await self.get_by_email(email) is not None:
            raise Conflict("Email already exists")

        user = User(
            email=email,
            hashed_password=get_password_hash(data["password"], rounds=self.settings.BCRYPT_ROUNDS),
            name=data.get("name"),
            role=ROLE_ADMIN,
            is_active=True,
        )
        self.db.add(user)
        await self.db.flush()
        logger.info(f"Created admin user {user.id}")
        return user

    async def toggle_active(self, user_id: int, actor_id: int) -> Tuple[bool, User]:
        """
        Flip is_active in one UPDATE ... RETURNING.

        Raises:
            OperationNotAllowed: the actor targets their own account
            NotFound: no such user
        """
        if user_id == actor_id:
            raise OperationNotAllowed("Cannot deactivate your own account")

        result = await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(is_active=not_(User.is_active), updated_at=utcnow())
            .returning(User.is_active)
            .execution_options(synchronize_session=False)
        )
        row = result.first()
        if row is None:
            raise NotFound("User not found")

        refreshed = await self.db.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
        return bool(row[0]), refreshed.scalar_one()

    async def change_password(self, user_id: int, current_password: str, new_password: str) -> Tuple[Dict[str, Any], User]:
        user = await self.get(user_id)
        if not verify_password(current_password, user.hashed_password):
            raise AuthenticationError("Current password is incorrect", code="INVALID_CURRENT_PASSWORD")

        before = user.to_dict()
        user.hashed_password = get_password_hash(new_password, rounds=self.settings.BCRYPT_ROUNDS)
        await self.db.flush()
        return before, user
