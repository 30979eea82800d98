from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from contest_tracker.auth import clear_auth_cookies, get_current_user_id
from contest_tracker.config import Settings
from contest_tracker.deps import (
    get_bookmark_repo,
    get_contest_repo,
    get_settings,
    get_solution_repo,
    get_user_repo,
)
from contest_tracker.errors import Forbidden, NotFound
from contest_tracker.models import ALL, CATEGORIES, PLATFORMS
from contest_tracker.repositories.bookmarks import BookmarkRepository
from contest_tracker.repositories.contests import ContestRepository
from contest_tracker.repositories.solutions import SolutionRepository
from contest_tracker.repositories.users import UserRepository
from contest_tracker.status import STATUSES

router = APIRouter(tags=["pages"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def _render(request: Request, name: str, user, **context):
    context.update(user=user, platforms=PLATFORMS, categories=CATEGORIES, statuses=STATUSES)
    return templates.TemplateResponse(request, name, context)


def _viewer(user_id: Optional[int], users: UserRepository):
    return users.get(user_id) if user_id is not None else None


@router.get("/", response_class=HTMLResponse)
def index(
    request: Request,
    user_id: Optional[int] = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repo),
    contests: ContestRepository = Depends(get_contest_repo),
):
    upcoming = contests.list_upcoming(viewer_id=user_id)
    return _render(request, "index.html", _viewer(user_id, users), contests=upcoming)


@router.get("/contests", response_class=HTMLResponse)
def contests_page(
    request: Request,
    platform: str = ALL,
    category: str = ALL,
    status: str = ALL,
    page: int = Query(1, ge=1),
    user_id: Optional[int] = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repo),
    contests: ContestRepository = Depends(get_contest_repo),
):
    if status not in STATUSES:
        status = ALL
    result = contests.list(platform=platform, category=category, status=status, page=page, viewer_id=user_id)
    return _render(
        request, "contests.html", _viewer(user_id, users),
        contests=result.items, total_pages=result.total_pages, page=page,
        filters={"platform": platform, "category": category, "status": status},
    )


@router.get("/contests/new", response_class=HTMLResponse)
def new_contest_page(
    request: Request,
    user_id: Optional[int] = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repo),
):
    return _render(request, "contest_form.html", _viewer(user_id, users), contest=None)


@router.get("/contests/{contest_id}", response_class=HTMLResponse)
def contest_detail(
    contest_id: int,
    request: Request,
    page: int = Query(1, ge=1),
    user_id: Optional[int] = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repo),
    contests: ContestRepository = Depends(get_contest_repo),
    solutions: SolutionRepository = Depends(get_solution_repo),
):
    contest = contests.get_by_id(contest_id, viewer_id=user_id)
    if contest is None:
        raise NotFound("Contest not found")
    listing = solutions.list_for_contest(contest_id, page=page, viewer_id=user_id)
    return _render(request, "contest_detail.html", _viewer(user_id, users),
                   contest=contest, solutions=listing, page=page)


@router.get("/contests/{contest_id}/edit", response_class=HTMLResponse)
def edit_contest_page(
    contest_id: int,
    request: Request,
    user_id: Optional[int] = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repo),
    contests: ContestRepository = Depends(get_contest_repo),
):
    contest = contests.get_by_id(contest_id, viewer_id=user_id)
    if contest is None:
        raise NotFound("Contest not found")
    if not contest.can_edit:
        raise Forbidden("Not authorized to update this contest")
    return _render(request, "contest_form.html", _viewer(user_id, users), contest=contest)


@router.get("/bookmarks", response_class=HTMLResponse)
def bookmarks_page(
    request: Request,
    user_id: Optional[int] = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repo),
    bookmarks: BookmarkRepository = Depends(get_bookmark_repo),
):
    return _render(request, "bookmarks.html", _viewer(user_id, users), result=bookmarks.list_for_user(user_id))


@router.get("/solutions", response_class=HTMLResponse)
def solutions_page(
    request: Request,
    user_id: Optional[int] = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repo),
    solutions: SolutionRepository = Depends(get_solution_repo),
):
    return _render(request, "solutions.html", _viewer(user_id, users), result=solutions.list_for_user(user_id))


@router.get("/profile", response_class=HTMLResponse)
def profile_page(
    request: Request,
    user_id: Optional[int] = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repo),
):
    return _render(request, "profile.html", _viewer(user_id, users))


@router.get("/auth/login", response_class=HTMLResponse)
def login_page(request: Request, callbackUrl: str = "/"):
    if not callbackUrl.startswith("/") or callbackUrl.startswith("//"):
        callbackUrl = "/"
    return _render(request, "login.html", None, callback_url=callbackUrl)


@router.get("/auth/register", response_class=HTMLResponse)
def register_page(request: Request):
    return _render(request, "register.html", None)


@router.get("/auth/logout")
def logout_page(settings: Settings = Depends(get_settings)):
    response = RedirectResponse(url="/", status_code=303)
    clear_auth_cookies(response, settings)
    return response
