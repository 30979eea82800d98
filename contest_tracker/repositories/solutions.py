import logging
import math
from typing import Optional

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError
from sqlalchemy import delete as sa_delete
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select, func

from contest_tracker.clock import Clock, utcnow
from contest_tracker.errors import InvalidInput, NotFound, StoreFailure
from contest_tracker.models import (
    Contest,
    CreatorRef,
    ListResult,
    Solution,
    SolutionRead,
    SolutionWithUser,
    User,
)
from contest_tracker.policy import require_identity
from contest_tracker.repositories.contests import contest_summary

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10

_http_url = TypeAdapter(AnyHttpUrl)


def validate_link(link: str) -> str:
    """Accept only absolute http(s) URLs. Returns the link stripped, otherwise unchanged."""
    link = (link or "").strip()
    try:
        _http_url.validate_python(link)
    except ValidationError as exc:
        raise InvalidInput("Please enter a valid URL starting with http:// or https://") from exc
    return link


class SolutionRepository:
    def __init__(self, engine: Engine, clock: Clock = utcnow):
        self.engine = engine
        self.clock = clock

    def _find(self, session: Session, contest_id: int, user_id: int) -> Optional[Solution]:
        return session.exec(
            select(Solution).where(Solution.user_id == user_id, Solution.contest_id == contest_id)
        ).first()

    def save(self, contest_id: int, link: str, notes: Optional[str], user_id: Optional[int]) -> Solution:
        """Insert or update the single solution of (user, contest)."""
        user_id = require_identity(user_id, "Authentication required. Please log in to save your solution.")
        link = validate_link(link)
        now = self.clock()
        with Session(self.engine) as session:
            if session.get(Contest, contest_id) is None:
                raise NotFound("Contest not found")
            solution = self._find(session, contest_id, user_id)
            try:
                if solution is None:
                    solution = Solution(
                        user_id=user_id, contest_id=contest_id, link=link, notes=notes,
                        created_at=now, updated_at=now,
                    )
                    session.add(solution)
                    try:
                        session.commit()
                    except IntegrityError:
                        # lost the insert race, the unique index kept one row
                        session.rollback()
                        solution = self._find(session, contest_id, user_id)
                        if solution is None:
                            raise
                        solution.sqlmodel_update({"link": link, "notes": notes, "updated_at": now})
                        session.add(solution)
                        session.commit()
                else:
                    solution.sqlmodel_update({"link": link, "notes": notes, "updated_at": now})
                    session.add(solution)
                    session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Failed to save solution for user %s on contest %s", user_id, contest_id)
                raise StoreFailure("Failed to save solution. Please try again.") from exc
            session.refresh(solution)
            logger.info("user %s saved solution %s for contest %s", user_id, solution.id, contest_id)
            return solution

    def delete(self, contest_id: int, user_id: Optional[int]) -> None:
        user_id = require_identity(user_id, "Authentication required. Please log in to delete your solution.")
        with Session(self.engine) as session:
            try:
                deleted = session.exec(
                    sa_delete(Solution).where(Solution.user_id == user_id, Solution.contest_id == contest_id)
                ).rowcount
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Failed to delete solution for user %s on contest %s", user_id, contest_id)
                raise StoreFailure("Failed to delete solution. Please try again.") from exc
        if deleted == 0:
            raise NotFound("Solution not found or you don't have permission to delete it.")
        logger.info("user %s deleted solution for contest %s", user_id, contest_id)

    def count_for_contest(self, contest_id: int) -> int:
        with Session(self.engine) as session:
            return session.exec(
                select(func.count()).select_from(Solution).where(Solution.contest_id == contest_id)
            ).one()

    def list_for_user(self, user_id: Optional[int]) -> ListResult[SolutionRead]:
        if user_id is None:
            return ListResult[SolutionRead]()
        now = self.clock()
        try:
            with Session(self.engine) as session:
                rows = session.exec(
                    select(Solution, Contest)
                    .join(Contest, Solution.contest_id == Contest.id)
                    .where(Solution.user_id == user_id)
                    .order_by(Solution.updated_at.desc(), Solution.id.desc())
                ).all()
                items = [
                    SolutionRead(
                        id=solution.id,
                        user_id=solution.user_id,
                        contest=contest_summary(contest, now),
                        link=solution.link,
                        notes=solution.notes,
                        created_at=solution.created_at,
                        updated_at=solution.updated_at,
                    )
                    for solution, contest in rows
                ]
        except SQLAlchemyError:
            logger.exception("Failed to fetch solutions for user %s", user_id)
            return ListResult[SolutionRead](error="Failed to fetch solutions")
        return ListResult[SolutionRead](items=items, total_pages=1 if items else 0)

    def list_for_contest(
        self,
        contest_id: int,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        viewer_id: Optional[int] = None,
    ) -> ListResult[SolutionWithUser]:
        if page < 1 or page_size < 1:
            raise InvalidInput("page and page_size must be positive")
        try:
            with Session(self.engine) as session:
                total = session.exec(
                    select(func.count())
                    .select_from(Solution)
                    .join(User, Solution.user_id == User.id)
                    .where(Solution.contest_id == contest_id)
                ).one()
                rows = session.exec(
                    select(Solution, User)
                    .join(User, Solution.user_id == User.id)
                    .where(Solution.contest_id == contest_id)
                    .order_by(Solution.updated_at.desc(), Solution.id.desc())
                    .offset((page - 1) * page_size)
                    .limit(page_size)
                ).all()
                items = [
                    SolutionWithUser(
                        id=solution.id,
                        user=CreatorRef(id=user.id, name=user.name),
                        contest_id=solution.contest_id,
                        link=solution.link,
                        notes=solution.notes,
                        created_at=solution.created_at,
                        updated_at=solution.updated_at,
                        is_owner=viewer_id is not None and viewer_id == user.id,
                    )
                    for solution, user in rows
                ]
        except SQLAlchemyError:
            logger.exception("Failed to fetch solutions for contest %s", contest_id)
            return ListResult[SolutionWithUser](error="Failed to fetch solutions")
        return ListResult[SolutionWithUser](items=items, total_pages=math.ceil(total / page_size))
