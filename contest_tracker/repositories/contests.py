import logging
import math
from typing import List, Optional

from sqlalchemy import delete as sa_delete
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, func

from contest_tracker.clock import Clock, utcnow
from contest_tracker.errors import InvalidInput, NotFound, StoreFailure
from contest_tracker.models import (
    ALL,
    Bookmark,
    Contest,
    ContestCreate,
    ContestPage,
    ContestRead,
    ContestSummary,
    ContestUpdate,
    CreatorRef,
    Solution,
    SolutionRead,
    User,
)
from contest_tracker.policy import require_identity, require_owner
from contest_tracker.status import COMPLETED, ONGOING, UPCOMING, contest_status, resolve_duration

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 9
DEFAULT_UPCOMING_LIMIT = 6


def contest_summary(contest: Contest, now) -> ContestSummary:
    return ContestSummary(
        id=contest.id,
        title=contest.title,
        platform=contest.platform,
        category=contest.category,
        start_date=contest.start_date,
        end_date=contest.end_date,
        duration=resolve_duration(contest.duration, contest.start_date, contest.end_date),
        status=contest_status(contest.start_date, contest.end_date, now),
    )


def contest_read(contest: Contest, now, **extra) -> ContestRead:
    """Attach the derived fields to a stored contest."""
    data = contest.model_dump(exclude={"created_by_id", "created_by_name", "duration"})
    return ContestRead(
        **data,
        duration=resolve_duration(contest.duration, contest.start_date, contest.end_date),
        created_by=CreatorRef(id=contest.created_by_id, name=contest.created_by_name),
        status=contest_status(contest.start_date, contest.end_date, now),
        **extra,
    )


def status_clause(status: Optional[str], now):
    if not status or status == ALL:
        return []
    if status == UPCOMING:
        return [Contest.start_date > now]
    if status == ONGOING:
        return [Contest.start_date <= now, Contest.end_date >= now]
    if status == COMPLETED:
        return [Contest.end_date < now]
    raise InvalidInput(f"Unknown status filter: {status}")


class ContestRepository:
    def __init__(self, engine: Engine, clock: Clock = utcnow):
        self.engine = engine
        self.clock = clock

    def _bookmarked_ids(self, session: Session, viewer_id: Optional[int]) -> set:
        if viewer_id is None:
            return set()
        rows = session.exec(select(Bookmark.contest_id).where(Bookmark.user_id == viewer_id)).all()
        return set(rows)

    def create(self, data: ContestCreate, creator_id: Optional[int]) -> int:
        creator_id = require_identity(creator_id, "Authentication required to create contests")
        now = self.clock()
        with Session(self.engine) as session:
            creator = session.get(User, creator_id)
            if not creator:
                raise NotFound("User not found")
            contest = Contest(
                **data.model_dump(),
                created_by_id=creator.id,
                created_by_name=creator.name,
                created_at=now,
                updated_at=now,
            )
            session.add(contest)
            try:
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Failed to create contest")
                raise StoreFailure("Failed to create contest") from exc
            session.refresh(contest)
            logger.info("contest %s created by user %s", contest.id, creator_id)
            return contest.id

    def update(self, contest_id: int, data: ContestUpdate, requester_id: Optional[int]) -> ContestRead:
        require_identity(requester_id, "Authentication required to update contests")
        with Session(self.engine) as session:
            contest = session.get(Contest, contest_id)
            if not contest:
                raise NotFound("Contest not found")
            require_owner(requester_id, contest.created_by_id, "Not authorized to update this contest")

            changes = data.changes()
            start = changes.get("start_date", contest.start_date)
            end = changes.get("end_date", contest.end_date)
            if start >= end:
                raise InvalidInput("start_date must be before end_date")

            contest.sqlmodel_update(changes)
            contest.updated_at = self.clock()
            session.add(contest)
            try:
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Failed to update contest %s", contest_id)
                raise StoreFailure("Failed to update contest") from exc
            session.refresh(contest)
            logger.info("contest %s updated by user %s (%s)", contest_id, requester_id, ", ".join(sorted(changes)))
            return contest_read(contest, self.clock(), can_edit=True)

    def delete(self, contest_id: int, requester_id: Optional[int]) -> None:
        """Delete a contest with its bookmarks and solutions in one transaction."""
        require_identity(requester_id, "Authentication required to delete contests")
        with Session(self.engine) as session:
            contest = session.get(Contest, contest_id)
            if not contest:
                raise NotFound("Contest not found")
            require_owner(requester_id, contest.created_by_id,
                          "Not authorized to delete this contest. You must be the creator.")
            try:
                bookmarks = session.exec(sa_delete(Bookmark).where(Bookmark.contest_id == contest_id)).rowcount
                solutions = session.exec(sa_delete(Solution).where(Solution.contest_id == contest_id)).rowcount
                removed = session.exec(sa_delete(Contest).where(Contest.id == contest_id)).rowcount
                if removed == 0:
                    raise StoreFailure("Failed to delete contest. Please try again.")
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Cascade delete of contest %s failed", contest_id)
                raise StoreFailure("Failed to delete contest. Please try again.") from exc
            except StoreFailure:
                session.rollback()
                raise
            logger.info(
                "contest %s deleted by user %s (%s bookmarks, %s solutions)",
                contest_id, requester_id, bookmarks, solutions,
            )

    def get_by_id(self, contest_id: int, viewer_id: Optional[int] = None) -> Optional[ContestRead]:
        now = self.clock()
        with Session(self.engine) as session:
            contest = session.get(Contest, contest_id)
            if not contest:
                return None
            if viewer_id is None:
                return contest_read(contest, now)

            bookmark = session.exec(
                select(Bookmark).where(Bookmark.user_id == viewer_id, Bookmark.contest_id == contest_id)
            ).first()
            solution = session.exec(
                select(Solution).where(Solution.user_id == viewer_id, Solution.contest_id == contest_id)
            ).first()
            user_solution = None
            if solution:
                user_solution = SolutionRead(
                    id=solution.id,
                    user_id=solution.user_id,
                    contest=contest_summary(contest, now),
                    link=solution.link,
                    notes=solution.notes,
                    created_at=solution.created_at,
                    updated_at=solution.updated_at,
                )
            return contest_read(
                contest,
                now,
                is_bookmarked=bookmark is not None,
                user_solution=user_solution,
                can_edit=contest.created_by_id == viewer_id,
            )

    def list(
        self,
        platform: Optional[str] = None,
        category: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        viewer_id: Optional[int] = None,
    ) -> ContestPage:
        if page < 1 or page_size < 1:
            raise InvalidInput("page and page_size must be positive")
        now = self.clock()
        conditions = status_clause(status, now)
        if platform and platform != ALL:
            conditions.append(Contest.platform == platform)
        if category and category != ALL:
            conditions.append(Contest.category == category)

        with Session(self.engine) as session:
            total = session.exec(select(func.count()).select_from(Contest).where(*conditions)).one()
            contests = session.exec(
                select(Contest)
                .where(*conditions)
                .order_by(Contest.start_date.asc(), Contest.id.asc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            ).all()
            bookmarked = self._bookmarked_ids(session, viewer_id)
            items = [
                contest_read(c, now, is_bookmarked=c.id in bookmarked, can_edit=c.created_by_id == viewer_id)
                for c in contests
            ]
        return ContestPage(items=items, total_pages=math.ceil(total / page_size))

    def list_upcoming(self, limit: int = DEFAULT_UPCOMING_LIMIT, viewer_id: Optional[int] = None) -> List[ContestRead]:
        now = self.clock()
        with Session(self.engine) as session:
            contests = session.exec(
                select(Contest)
                .where(Contest.start_date > now)
                .order_by(Contest.start_date.asc(), Contest.id.asc())
                .limit(limit)
            ).all()
            bookmarked = self._bookmarked_ids(session, viewer_id)
            return [
                contest_read(c, now, is_bookmarked=c.id in bookmarked, can_edit=c.created_by_id == viewer_id)
                for c in contests
            ]
