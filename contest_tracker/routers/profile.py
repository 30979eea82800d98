from typing import Optional

from fastapi import APIRouter, Depends

from contest_tracker.auth import get_current_user_id
from contest_tracker.deps import get_user_repo
from contest_tracker.errors import NotFound, Unauthorized
from contest_tracker.models import ProfileUpdate, UserRead
from contest_tracker.repositories.users import UserRepository, user_read

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("", response_model=UserRead)
def get_profile(
    user_id: Optional[int] = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repo),
):
    if user_id is None:
        raise Unauthorized()
    user = users.get(user_id)
    if not user:
        raise NotFound("User not found.")
    return user_read(user)


@router.put("", response_model=UserRead)
def update_profile(
    body: ProfileUpdate,
    user_id: Optional[int] = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repo),
):
    return users.update_profile(user_id, body.name, body.current_password, body.new_password)
