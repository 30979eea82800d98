import logging
from typing import Optional

from sqlalchemy import delete as sa_delete
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select, func

from contest_tracker.clock import Clock, utcnow
from contest_tracker.errors import NotFound, StoreFailure
from contest_tracker.models import Bookmark, Contest, ContestRead, ListResult
from contest_tracker.policy import require_identity
from contest_tracker.repositories.contests import contest_read

logger = logging.getLogger(__name__)


class BookmarkRepository:
    def __init__(self, engine: Engine, clock: Clock = utcnow):
        self.engine = engine
        self.clock = clock

    def toggle(self, contest_id: int, user_id: Optional[int]) -> bool:
        """Flip the bookmark for (user, contest). Returns True when it now exists."""
        user_id = require_identity(user_id, "Authentication required. Please log in to bookmark contests.")
        with Session(self.engine) as session:
            if session.get(Contest, contest_id) is None:
                raise NotFound("Contest not found")
            try:
                removed = session.exec(
                    sa_delete(Bookmark).where(Bookmark.user_id == user_id, Bookmark.contest_id == contest_id)
                )
                if removed.rowcount:
                    session.commit()
                    logger.info("user %s removed bookmark on contest %s", user_id, contest_id)
                    return False
                session.add(Bookmark(user_id=user_id, contest_id=contest_id, created_at=self.clock()))
                session.commit()
            except IntegrityError as exc:
                # a concurrent toggle inserted the same pair first
                session.rollback()
                raise StoreFailure("Failed to add bookmark. Please try again.") from exc
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Failed to toggle bookmark for user %s on contest %s", user_id, contest_id)
                raise StoreFailure("Failed to update bookmark. Please try again.") from exc
            logger.info("user %s bookmarked contest %s", user_id, contest_id)
            return True

    def is_bookmarked(self, contest_id: int, user_id: int) -> bool:
        with Session(self.engine) as session:
            return session.exec(
                select(Bookmark.id).where(Bookmark.user_id == user_id, Bookmark.contest_id == contest_id)
            ).first() is not None

    def count_for_contest(self, contest_id: int) -> int:
        with Session(self.engine) as session:
            return session.exec(
                select(func.count()).select_from(Bookmark).where(Bookmark.contest_id == contest_id)
            ).one()

    def list_for_user(self, user_id: Optional[int]) -> ListResult[ContestRead]:
        if user_id is None:
            return ListResult[ContestRead]()
        now = self.clock()
        try:
            with Session(self.engine) as session:
                contests = session.exec(
                    select(Contest)
                    .join(Bookmark, Bookmark.contest_id == Contest.id)
                    .where(Bookmark.user_id == user_id)
                    .order_by(Contest.start_date.asc(), Contest.id.asc())
                ).all()
                items = [
                    contest_read(c, now, is_bookmarked=True, can_edit=c.created_by_id == user_id)
                    for c in contests
                ]
        except SQLAlchemyError:
            logger.exception("Failed to fetch bookmarks for user %s", user_id)
            return ListResult[ContestRead](error="Failed to fetch bookmarks")
        return ListResult[ContestRead](items=items, total_pages=1 if items else 0)
