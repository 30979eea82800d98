from typing import Optional

from fastapi import APIRouter, Depends

from contest_tracker.auth import get_current_user_id
from contest_tracker.deps import get_bookmark_repo
from contest_tracker.models import ContestRead, ListResult
from contest_tracker.repositories.bookmarks import BookmarkRepository

router = APIRouter(prefix="/api", tags=["bookmarks"])


@router.post("/contests/{contest_id}/bookmark")
def toggle_bookmark(
    contest_id: int,
    user_id: Optional[int] = Depends(get_current_user_id),
    bookmarks: BookmarkRepository = Depends(get_bookmark_repo),
):
    return {"bookmarked": bookmarks.toggle(contest_id, user_id)}


@router.get("/bookmarks", response_model=ListResult[ContestRead])
def list_bookmarks(
    user_id: Optional[int] = Depends(get_current_user_id),
    bookmarks: BookmarkRepository = Depends(get_bookmark_repo),
):
    return bookmarks.list_for_user(user_id)
