# app/api/deps.py
import threading

from fastapi import Depends, Request

from app.core.config import Settings, get_settings
from app.services.backends import BackendProvider
from app.services.board import RegistrationBoard

_board_lock = threading.Lock()


def get_provider(settings: Settings = Depends(get_settings)) -> BackendProvider:
    return BackendProvider(settings)


def get_board(request: Request, provider: BackendProvider = Depends(get_provider)) -> RegistrationBoard:
    """One board per app instance (single admin page); loaded on first use."""
    board = getattr(request.app.state, "board", None)
    if board is not None:
        return board
    with _board_lock:
        board = getattr(request.app.state, "board", None)
        if board is None:
            board = RegistrationBoard(provider.read, settings=provider.settings, admin_backend=provider.admin)
            board.reload()
            request.app.state.board = board
    return board
