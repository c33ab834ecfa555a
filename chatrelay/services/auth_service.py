from dataclasses import dataclass
from typing import Optional

from starlette.concurrency import run_in_threadpool

from chatrelay.core.errors import (
    ConflictOrInvalidError,
    InvalidCredentialsError,
    StoreError,
    ValidationError,
)
from chatrelay.core.security import hash_password, verify_password
from chatrelay.services.user_store import UserStore
from chatrelay.utils.logger import get_logger

logger = get_logger("chatrelay.services.auth")


def _require_utf8(*values: Optional[str]) -> None:
    for value in values:
        if value is None:
            continue
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            raise ValidationError("Invalid request body")


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    username: str
    email: str
    phone: Optional[str] = None


class AuthService:
    """
    Signup and login on top of a UserStore.

    Passwords are only ever handled as bcrypt hashes once they leave this
    class; hashing and verification run in a worker thread because bcrypt is
    deliberately slow.
    """

    def __init__(self, store: UserStore, bcrypt_rounds: int = 10):
        self.store = store
        self.bcrypt_rounds = bcrypt_rounds

    async def signup(self, username: str, email: str, password: str, phone: Optional[str] = None) -> str:
        if not username or not email or not password:
            raise ValidationError("Missing fields")
        _require_utf8(username, email, password, phone)

        password_hash = await run_in_threadpool(hash_password, password, self.bcrypt_rounds)

        try:
            user = await self.store.create(username, email, password_hash, phone)
        except StoreError:
            # Duplicate username, duplicate email and other rejections look the same
            logger.warning("Signup rejected", extra={"username": username})
            raise ConflictOrInvalidError("User already exists or invalid data")

        logger.info("User created", extra={"user_id": user.id})
        return user.id

    async def login(self, username_or_email: str, password: str) -> AuthenticatedUser:
        if not username_or_email or not password:
            raise ValidationError("Missing fields")
        _require_utf8(username_or_email, password)

        user = await self.store.find_by_username_or_email(username_or_email)
        if user is None or not await run_in_threadpool(verify_password, password, user.password_hash):
            logger.warning("Login failed - invalid credentials")
            raise InvalidCredentialsError("Invalid credentials")

        logger.info("Login successful", extra={"user_id": user.id})
        return AuthenticatedUser(id=user.id, username=user.username, email=user.email, phone=user.phone)
