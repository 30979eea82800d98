from fastapi import Depends, Request
from sqlalchemy.engine import Engine

from contest_tracker.clock import Clock
from contest_tracker.config import Settings
from contest_tracker.repositories.bookmarks import BookmarkRepository
from contest_tracker.repositories.contests import ContestRepository
from contest_tracker.repositories.solutions import SolutionRepository
from contest_tracker.repositories.users import UserRepository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_engine(request: Request) -> Engine:
    return request.app.state.engine


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_user_repo(engine: Engine = Depends(get_engine)) -> UserRepository:
    return UserRepository(engine)


def get_contest_repo(engine: Engine = Depends(get_engine), clock: Clock = Depends(get_clock)) -> ContestRepository:
    return ContestRepository(engine, clock)


def get_bookmark_repo(engine: Engine = Depends(get_engine), clock: Clock = Depends(get_clock)) -> BookmarkRepository:
    return BookmarkRepository(engine, clock)


def get_solution_repo(engine: Engine = Depends(get_engine), clock: Clock = Depends(get_clock)) -> SolutionRepository:
    return SolutionRepository(engine, clock)
