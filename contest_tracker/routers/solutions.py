from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from contest_tracker.auth import get_current_user_id
from contest_tracker.deps import get_solution_repo
from contest_tracker.models import ListResult, SolutionRead, SolutionSave, SolutionWithUser
from contest_tracker.repositories.solutions import DEFAULT_PAGE_SIZE, SolutionRepository

router = APIRouter(prefix="/api", tags=["solutions"])


@router.put("/contests/{contest_id}/solution")
def save_solution(
    contest_id: int,
    body: SolutionSave,
    user_id: Optional[int] = Depends(get_current_user_id),
    solutions: SolutionRepository = Depends(get_solution_repo),
):
    solution = solutions.save(contest_id, body.link, body.notes, user_id)
    return {
        "id": solution.id,
        "contest_id": solution.contest_id,
        "link": solution.link,
        "notes": solution.notes,
        "created_at": solution.created_at,
        "updated_at": solution.updated_at,
    }


@router.delete("/contests/{contest_id}/solution", status_code=204)
def delete_solution(
    contest_id: int,
    user_id: Optional[int] = Depends(get_current_user_id),
    solutions: SolutionRepository = Depends(get_solution_repo),
):
    solutions.delete(contest_id, user_id)
    return Response(status_code=204)


@router.get("/contests/{contest_id}/solutions", response_model=ListResult[SolutionWithUser])
def contest_solutions(
    contest_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    user_id: Optional[int] = Depends(get_current_user_id),
    solutions: SolutionRepository = Depends(get_solution_repo),
):
    return solutions.list_for_contest(contest_id, page=page, page_size=page_size, viewer_id=user_id)


@router.get("/solutions", response_model=ListResult[SolutionRead])
def my_solutions(
    user_id: Optional[int] = Depends(get_current_user_id),
    solutions: SolutionRepository = Depends(get_solution_repo),
):
    return solutions.list_for_user(user_id)
