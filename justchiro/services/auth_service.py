"""
Authentication Service

Resolves a bearer credential to an active admin account.

Credential sources, in precedence order:
1. `Authorization: Bearer <token>` header
2. The HttpOnly auth cookie (Settings.AUTH_COOKIE_NAME)

Required mode fails with MissingCredential when neither is present. Optional
mode never fails: a missing or unusable credential yields no identity.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from justchiro.core.config import Settings, settings as default_settings
from justchiro.core.cookies import get_token_from_cookie, get_token_from_header
from justchiro.core.exceptions import (
    AuthenticationError,
    DeactivatedAccount,
    InsufficientPrivilege,
    InvalidCredential,
    MissingCredential,
    UnknownSubject,
)
from justchiro.core.security import create_access_token, decode_access_token, verify_password
from justchiro.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The authenticated account attached to a request."""
    id: int
    email: str
    name: Optional[str]
    role: str

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(id=user.id, email=user.email, name=user.name, role=user.role)

    def to_dict(self) -> dict:
        return {"id": self.id, "email": self.email, "name": self.name, "role": self.role}


def extract_token(request: Request, settings: Settings = default_settings) -> Optional[str]:
    return get_token_from_header(request) or get_token_from_cookie(request, settings)


def require_role(identity: Optional[Identity], role: str) -> Identity:
    if identity is None or identity.role != role:
        raise InsufficientPrivilege(
            f"Access denied. {role.capitalize()} privileges required.",
            required_role=role,
        )
    return identity


class Authenticator:
    def __init__(self, db: AsyncSession, settings: Settings = default_settings):
        self.db = db
        self.settings = settings

    async def authenticate(self, request: Request, required: bool = True) -> Optional[Identity]:
        token = extract_token(request, self.settings)
        if not token:
            if required:
                raise MissingCredential()
            return None

        if not required:
            try:
                return await self.resolve(token)
            except AuthenticationError:
                return None

        return await self.resolve(token)

    async def resolve(self, token: str) -> Identity:
        """
        Verify a token and load its account.

        Raises:
            InvalidCredential / ExpiredCredential: token rejected
            UnknownSubject: no account with that id
            DeactivatedAccount: account exists but is inactive
        """
        payload = decode_access_token(token, self.settings)

        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError) as e:
            raise InvalidCredential() from e

        user = await self.db.get(User, user_id)
        if user is None:
            raise UnknownSubject()
        if not user.is_active:
            raise DeactivatedAccount()
        return Identity.from_user(user)

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Check credentials and issue an access token.

        Unknown email and wrong password share one message so the response
        does not reveal which accounts exist.
        """
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()

        if user is None:
            logger.info("Login failed: unknown email")
            raise AuthenticationError("Invalid email or password", code="INVALID_LOGIN")

        if not user.is_active:
            logger.info(f"Login refused for deactivated user {user.id}")
            raise DeactivatedAccount()

        if not verify_password(password, user.hashed_password):
            logger.info(f"Login failed: bad password for user {user.id}")
            raise AuthenticationError("Invalid email or password", code="INVALID_LOGIN")

        token = create_access_token(
            {"sub": user.id, "email": user.email, "role": user.role},
            settings=self.settings,
        )
        return user, token
