"""REST API routes for per-platform progress history."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cp_progress.errors import InvalidInput, ProgressError
from cp_progress.formatting.responses import (
    complete_user_data_response,
    contest_response,
    format_last_contest,
    format_submission,
    submission_response,
)
from cp_progress.models.records import ContestResult, SubmissionResult
from cp_progress.models.responses import (
    CompleteUserDataResponse,
    ContestRecord,
    ContestResponse,
    SubmissionRecord,
    SubmissionResponse,
)
from cp_progress.storage.progress_store import ProgressStore

logger = structlog.get_logger()
router = APIRouter(prefix="/api")

PLATFORM_PREFIX = "/users/{email}/platforms/{platform}"


def get_store(request: Request) -> ProgressStore:
    return request.app.state.store


Store = Annotated[ProgressStore, Depends(get_store)]


async def progress_error_handler(request: Request, exc: ProgressError) -> JSONResponse:
    """Render a progress error with its stable code."""
    logger.warning(
        "request_failed",
        path=request.url.path,
        code=exc.code,
        message=exc.message,
    )
    return JSONResponse(
        {"error": {"code": exc.code, "message": exc.message}},
        status_code=exc.status_code,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies with the same shape as other errors."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return await progress_error_handler(request, InvalidInput(f"Invalid request: {problems}"))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProgressError, progress_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get(f"{PLATFORM_PREFIX}/contests/last")
async def get_last_contest(email: str, platform: str, store: Store) -> ContestRecord:
    """Most recent contest; zero-valued when the log is empty."""
    contest = await store.get_last_contest(email, platform)
    return format_last_contest(contest)


@router.get(f"{PLATFORM_PREFIX}/submissions/last")
async def get_last_submission(
    email: str, platform: str, store: Store
) -> SubmissionRecord:
    """Most recent submission; zero-valued when the log is empty."""
    submission = await store.get_last_submission(email, platform)
    return format_submission(submission)


@router.get(f"{PLATFORM_PREFIX}/contests")
async def list_contests(email: str, platform: str, store: Store) -> ContestResponse:
    history = await store.fetch_full_history(email, platform)
    return contest_response(history.contests)


@router.get(f"{PLATFORM_PREFIX}/submissions")
async def list_submissions(email: str, platform: str, store: Store) -> SubmissionResponse:
    history = await store.fetch_full_history(email, platform)
    return submission_response(history.submissions)


@router.get(f"{PLATFORM_PREFIX}/history")
async def get_history(email: str, platform: str, store: Store) -> CompleteUserDataResponse:
    """Both logs of a platform, formatted for clients."""
    history = await store.fetch_full_history(email, platform)
    return complete_user_data_response(history.contests, history.submissions)


@router.post(f"{PLATFORM_PREFIX}/contests")
async def append_contests(
    email: str,
    platform: str,
    store: Store,
    contests: Annotated[list[ContestResult], Body()],
) -> dict:
    appended = await store.append_contests(email, platform, contests)
    return {"appended": appended}


@router.post(f"{PLATFORM_PREFIX}/submissions")
async def append_submissions(
    email: str,
    platform: str,
    store: Store,
    submissions: Annotated[list[SubmissionResult], Body()],
) -> dict:
    appended = await store.append_submissions(email, platform, submissions)
    return {"appended": appended}
