import logging
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from contest_tracker.errors import InvalidInput, NotFound, StoreFailure, Unauthorized
from contest_tracker.models import User, UserRead
from contest_tracker.policy import require_identity

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def user_read(user: User) -> UserRead:
    return UserRead(id=user.id, name=user.name, email=user.email)


class UserRepository:
    def __init__(self, engine: Engine):
        self.engine = engine

    def get(self, user_id: int) -> Optional[User]:
        with Session(self.engine) as session:
            return session.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        with Session(self.engine) as session:
            return session.exec(select(User).where(User.email == email.strip().lower())).first()

    def register(self, name: str, email: str, password: str) -> UserRead:
        email = email.strip().lower()
        user = User(name=name.strip(), email=email, password_hash=get_password_hash(password))
        with Session(self.engine) as session:
            session.add(user)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise StoreFailure("Email already registered") from exc
            session.refresh(user)
            logger.info("user %s registered", user.id)
            return user_read(user)

    def authenticate(self, email: str, password: str) -> UserRead:
        user = self.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning("failed login for %s", email)
            raise Unauthorized("Invalid email or password")
        return user_read(user)

    def update_profile(
        self,
        user_id: Optional[int],
        name: str,
        current_password: Optional[str] = None,
        new_password: Optional[str] = None,
    ) -> UserRead:
        user_id = require_identity(user_id, "Authentication required. Please log in to update your profile.")
        name = (name or "").strip()
        if not name:
            raise InvalidInput("Name is required")
        with Session(self.engine) as session:
            user = session.get(User, user_id)
            if not user:
                raise NotFound("User not found.")
            user.name = name
            if new_password and current_password:
                if not verify_password(current_password, user.password_hash):
                    raise InvalidInput("Current password is incorrect.")
                if len(new_password) < 6:
                    raise InvalidInput("New password must be at least 6 characters")
                user.password_hash = get_password_hash(new_password)
            elif new_password:
                raise InvalidInput("Current password is required to set a new password")
            session.add(user)
            try:
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Failed to update profile of user %s", user_id)
                raise StoreFailure("Failed to update profile. Please try again.") from exc
            session.refresh(user)
            logger.info("user %s updated profile", user_id)
            return user_read(user)
