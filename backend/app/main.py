import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes.board import router as board_router
from app.api.routes.health import router as health_router
from app.api.routes.registrations import router as registrations_router

from app.core.config import settings
from app.core.errors import RegistrationAdminError, WorkflowError

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    _configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.PROJECT_NAME, version="1.0")

    allowed_origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS", "HEAD"],
        allow_headers=["*"],
    )

    app.include_router(health_router, tags=["health"])
    app.include_router(registrations_router, prefix="/api")
    app.include_router(board_router, prefix="/api")

    @app.exception_handler(RegistrationAdminError)
    async def _admin_error(request: Request, exc: RegistrationAdminError):
        body = {"detail": exc.message}
        if isinstance(exc, WorkflowError):
            body.update({"step": exc.step, "unreconciled": exc.unreconciled})
        return JSONResponse(status_code=exc.status_code, content=body)

    logger.info("[app] backend=%s allow_origins=%s", settings.BACKEND, allowed_origins)
    return app


app = create_app()
