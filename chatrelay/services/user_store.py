from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from chatrelay.core.database import Database
from chatrelay.core.errors import DuplicateUserError, StoreRejectedError
from chatrelay.models.user import User
from chatrelay.utils.logger import get_logger

logger = get_logger("chatrelay.services.user_store")


class UserStore:
    """Reads and writes User records. Uniqueness is enforced by the database."""

    def __init__(self, db: Database):
        self.db = db

    async def create(self, username: str, email: str, password_hash: str, phone: Optional[str] = None) -> User:
        user = User(username=username, email=email, password_hash=password_hash, phone=phone)
        async with self.db.session() as session:
            session.add(user)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.info("User insert rejected by unique constraint")
                raise DuplicateUserError(str(e.orig)) from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.warning("User insert rejected by store", extra={"error": type(e).__name__})
                raise StoreRejectedError(str(e)) from e
            await session.refresh(user)
        return user

    async def find_by_username_or_email(self, identifier: str) -> Optional[User]:
        async with self.db.session() as session:
            result = await session.execute(
                select(User)
                .filter(or_(User.username == identifier, User.email == identifier))
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def count(self) -> int:
        async with self.db.session() as session:
            result = await session.execute(select(func.count()).select_from(User))
            return result.scalar_one()
