"""
Credential and token service.

Verifies email/password pairs, issues access tokens, and resolves presented
tokens back into a ``Principal`` by reading the user and role rows on every
call, so deactivation and role changes take effect immediately.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

import jwt

from core.config import Settings
from core.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    MissingTokenError,
    NotFoundError,
    TokenExpiredError,
    TokenInvalidError,
    UnknownOrInactiveSubjectError,
    AuthenticationError,
)
from core.principal import Principal
from core.security import (
    create_access_token,
    hash_password,
    token_expiry,
    verify_jwt_token,
    verify_password,
)
from database.engine import Database
from database.models.users import User, UserRole, UserSession
from database.repositories import UserRepository
from database.types import utcnow

logger = logging.getLogger(__name__)


class CredentialService:
    """Credential verification, token issuance and principal resolution."""

    def __init__(self, database: Database, settings: Settings):
        self.database = database
        self.settings = settings

    @property
    def token_lifetime(self) -> timedelta:
        return timedelta(minutes=self.settings.access_token_expire_minutes)

    async def verify_credentials(self, email: str, password: str) -> User:
        """
        Check an email/password pair against the stored hash.

        Args:
            email: Email, matched exactly against the stored value
            password: Plaintext password

        Returns:
            The matching active user

        Raises:
            InvalidCredentialsError: If no active user matches or the
                password is wrong
        """
        async with self.database.session() as session:
            user = await UserRepository(session).get_by_email(email)

        if user is None or not user.is_active:
            raise InvalidCredentialsError()

        # bcrypt is CPU bound; keep it off the event loop
        matches = await asyncio.to_thread(verify_password, password, user.password_hash)
        if not matches:
            raise InvalidCredentialsError()
        return user

    def issue_token(self, subject_id: int, now: Optional[datetime] = None) -> str:
        """
        Issue a signed access token for a user.

        The token carries only the subject id and timing claims.
        """
        return create_access_token(
            subject_id,
            secret_key=self.settings.jwt_secret_key,
            algorithm=self.settings.jwt_algorithm,
            expires_delta=self.token_lifetime,
            now=now,
        )

    async def resolve_principal(self, token: Optional[str]) -> Principal:
        """
        Resolve a bearer token to the current principal.

        Raises:
            MissingTokenError: If no token was presented
            TokenExpiredError: If the token has expired
            TokenInvalidError: If the token is malformed or badly signed
            UnknownOrInactiveSubjectError: If the user no longer exists or
                is deactivated
        """
        if not token:
            raise MissingTokenError()

        try:
            payload = verify_jwt_token(
                token, self.settings.jwt_secret_key, self.settings.jwt_algorithm
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            raise TokenInvalidError()

        try:
            subject_id = int(payload["sub"])
        except (TypeError, ValueError):
            raise TokenInvalidError("Invalid token subject")

        async with self.database.session() as session:
            users = UserRepository(session)
            user = await users.get_by_id(subject_id)
            if user is None or not user.is_active:
                logger.warning(f"Token presented for unknown or inactive user {subject_id}")
                raise UnknownOrInactiveSubjectError()
            return Principal.from_user(user, users.get_permissions(user))

    async def optional_resolve_principal(self, token: Optional[str]) -> Optional[Principal]:
        """Like ``resolve_principal`` but any authentication failure yields ``None``."""
        if not token:
            return None
        try:
            return await self.resolve_principal(token)
        except AuthenticationError as e:
            logger.debug(f"Optional authentication ignored: {e.error_code}")
            return None

    async def signup(self, data: dict[str, Any]) -> User:
        """
        Register a new candidate account.

        Args:
            data: ``email``, ``password``, ``first_name``, ``last_name`` and
                optional ``phone``

        Raises:
            ConflictError: If the email is already registered
        """
        return await self.create_user(data, UserRole.CANDIDATE)

    async def create_user(
        self, data: dict[str, Any], role: UserRole, company_id: Optional[int] = None
    ) -> User:
        password_hash = await asyncio.to_thread(
            hash_password, data["password"], self.settings.bcrypt_rounds
        )

        async with self.database.session() as session:
            async with session.begin():
                users = UserRepository(session)
                if await users.get_by_email(data["email"]) is not None:
                    raise ConflictError("User with this email already exists")

                role_row = await users.get_role(role)
                if role_row is None:
                    raise RuntimeError(f"Role '{role.value}' has not been seeded")

                user = User(
                    email=data["email"],
                    password_hash=password_hash,
                    first_name=data["first_name"],
                    last_name=data["last_name"],
                    phone=data.get("phone"),
                    role=role_row,
                    company_id=company_id,
                )
                await users.add(user)

        logger.info(
            f"User registered: {user.id} ({role.value})",
            extra={"event": "user_registered", "user_id": user.id, "role": role.value},
        )
        return user

    async def login(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> tuple[User, str, datetime]:
        """
        Verify credentials, issue a token and record the login.

        Updates ``last_login_at`` and writes a ``UserSession`` audit row.

        Returns:
            Tuple of (user, access token, token expiry)
        """
        user = await self.verify_credentials(email, password)
        token = self.issue_token(user.id)
        payload = verify_jwt_token(
            token, self.settings.jwt_secret_key, self.settings.jwt_algorithm
        )
        expires_at = token_expiry(payload)

        async with self.database.session() as session:
            async with session.begin():
                users = UserRepository(session)
                stored = await users.get_by_id(user.id)
                stored.last_login_at = utcnow()
                await users.add_session(
                    UserSession(
                        user_id=user.id,
                        token_jti=payload["jti"],
                        expires_at=expires_at,
                        ip_address=ip_address,
                        user_agent=user_agent[:500] if user_agent else None,
                    )
                )
        user.last_login_at = stored.last_login_at

        logger.info(
            f"User logged in: {user.id}",
            extra={"event": "user_login", "user_id": user.id},
        )
        return user, token, expires_at

    async def change_password(
        self, user_id: int, current_password: str, new_password: str
    ) -> None:
        """
        Replace a user's password after re-checking the current one.

        Tokens issued before the change stay valid until they expire.

        Raises:
            NotFoundError: If the user does not exist
            InvalidCredentialsError: If ``current_password`` is wrong
        """
        async with self.database.session() as session:
            async with session.begin():
                users = UserRepository(session)
                user = await users.get_by_id(user_id)
                if user is None:
                    raise NotFoundError("User not found")

                matches = await asyncio.to_thread(
                    verify_password, current_password, user.password_hash
                )
                if not matches:
                    logger.warning(f"Password change rejected for user {user_id}")
                    raise InvalidCredentialsError("Current password is incorrect")

                user.password_hash = await asyncio.to_thread(
                    hash_password, new_password, self.settings.bcrypt_rounds
                )

        logger.info(
            f"Password changed for user {user_id}",
            extra={"event": "password_changed", "user_id": user_id},
        )

    async def set_active(self, user_id: int, is_active: bool) -> User:
        """
        Activate or deactivate a user.

        Deactivation revokes access immediately because every request
        re-reads ``is_active``.
        """
        async with self.database.session() as session:
            async with session.begin():
                user = await UserRepository(session).get_by_id(user_id)
                if user is None:
                    raise NotFoundError("User not found")
                user.is_active = is_active

        logger.info(
            f"User {user_id} {'activated' if is_active else 'deactivated'}",
            extra={"event": "user_activation_changed", "user_id": user_id, "is_active": is_active},
        )
        return user
