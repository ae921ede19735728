# app/api/routes/board.py
from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_board
from app.schemas.registrations import BoardSnapshot
from app.services.board import RegistrationBoard
from app.services.registrations import SORT_FIELDS

router = APIRouter(prefix="/board", tags=["board"])


@router.get("", response_model=BoardSnapshot)
def board_state(board: RegistrationBoard = Depends(get_board)):
    return board.snapshot()


@router.post("/reload", response_model=BoardSnapshot)
def board_reload(board: RegistrationBoard = Depends(get_board)):
    board.reload()
    return board.snapshot()


@router.post("/sort/{field}", response_model=BoardSnapshot)
def board_toggle_sort(field: str, board: RegistrationBoard = Depends(get_board)):
    if field not in SORT_FIELDS:
        raise HTTPException(status_code=422, detail=f"unsupported sort field: {field}")
    board.toggle_sort(field)
    return board.snapshot()


# Action failures land in snapshot.message, not in the status code
@router.post("/{registration_id}/approve", response_model=BoardSnapshot)
def board_approve(registration_id: str, board: RegistrationBoard = Depends(get_board)):
    board.approve(registration_id)
    return board.snapshot()


@router.post("/{registration_id}/reject", response_model=BoardSnapshot)
def board_reject(registration_id: str, board: RegistrationBoard = Depends(get_board)):
    board.reject(registration_id)
    return board.snapshot()
