from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response

from contest_tracker.auth import get_current_user_id
from contest_tracker.deps import get_contest_repo
from contest_tracker.errors import NotFound
from contest_tracker.models import ContestCreate, ContestPage, ContestRead, ContestUpdate
from contest_tracker.repositories.contests import DEFAULT_PAGE_SIZE, DEFAULT_UPCOMING_LIMIT, ContestRepository

router = APIRouter(prefix="/api/contests", tags=["contests"])

StatusFilter = Literal["all", "upcoming", "ongoing", "completed"]


@router.get("", response_model=ContestPage)
def list_contests(
    platform: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[StatusFilter] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    user_id: Optional[int] = Depends(get_current_user_id),
    contests: ContestRepository = Depends(get_contest_repo),
):
    return contests.list(
        platform=platform, category=category, status=status,
        page=page, page_size=page_size, viewer_id=user_id,
    )


@router.get("/upcoming", response_model=List[ContestRead])
def upcoming_contests(
    limit: int = Query(DEFAULT_UPCOMING_LIMIT, ge=1, le=50),
    user_id: Optional[int] = Depends(get_current_user_id),
    contests: ContestRepository = Depends(get_contest_repo),
):
    return contests.list_upcoming(limit=limit, viewer_id=user_id)


@router.post("", status_code=201)
def create_contest(
    body: ContestCreate,
    user_id: Optional[int] = Depends(get_current_user_id),
    contests: ContestRepository = Depends(get_contest_repo),
):
    return {"id": contests.create(body, user_id)}


@router.get("/{contest_id}", response_model=ContestRead)
def get_contest(
    contest_id: int,
    user_id: Optional[int] = Depends(get_current_user_id),
    contests: ContestRepository = Depends(get_contest_repo),
):
    contest = contests.get_by_id(contest_id, viewer_id=user_id)
    if contest is None:
        raise NotFound("Contest not found")
    return contest


@router.put("/{contest_id}", response_model=ContestRead)
def update_contest(
    contest_id: int,
    body: ContestUpdate,
    user_id: Optional[int] = Depends(get_current_user_id),
    contests: ContestRepository = Depends(get_contest_repo),
):
    return contests.update(contest_id, body, user_id)


@router.delete("/{contest_id}", status_code=204)
def delete_contest(
    contest_id: int,
    user_id: Optional[int] = Depends(get_current_user_id),
    contests: ContestRepository = Depends(get_contest_repo),
):
    contests.delete(contest_id, user_id)
    return Response(status_code=204)
