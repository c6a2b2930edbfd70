"""FastAPI router for view and vote counters."""

import re

from fastapi import APIRouter, Depends, HTTPException, status

from app.catalog.models import ErrorDetail, ErrorResponse
from app.counts.models import (
    CountMap,
    ViewRecorded,
    ViewRequest,
    VoteRecorded,
    VoteRequest,
)
from app.counts.store import CountStore, get_count_store
from app.dependencies import CountsStoreError, logger

router = APIRouter(prefix="/api", tags=["counts"])

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def bad_request(message: str, code: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=ErrorResponse(
            error=ErrorDetail(message=message, type="invalid_request_error", code=code)
        ).model_dump(),
    )


def store_failure(action: str, error: CountsStoreError) -> HTTPException:
    logger.error("counts_store_failed", extra={"action": action, "error": str(error)})
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=ErrorResponse(
            error=ErrorDetail(message=f"Failed to {action}", code="counts_store_error")
        ).model_dump(),
    )


@router.get("/views", response_model=CountMap)
async def get_view_counts(counts: CountStore = Depends(get_count_store)) -> CountMap:
    """All view counts keyed by tool id."""
    try:
        return await counts.view_counts()
    except CountsStoreError as e:
        raise store_failure("fetch view counts", e)


@router.post("/views", response_model=ViewRecorded)
async def record_view(
    request: ViewRequest,
    counts: CountStore = Depends(get_count_store),
) -> ViewRecorded:
    """Increment a tool's view counter."""
    if not request.tool_id:
        raise bad_request("toolId is required", "missing_tool_id")

    try:
        await counts.record_view(request.tool_id)
    except CountsStoreError as e:
        raise store_failure("record view", e)

    logger.info("view_recorded", extra={"tool_id": request.tool_id})
    return ViewRecorded()


@router.get("/votes", response_model=CountMap)
async def get_vote_counts(counts: CountStore = Depends(get_count_store)) -> CountMap:
    """All vote counts keyed by tool id."""
    try:
        return await counts.vote_counts()
    except CountsStoreError as e:
        raise store_failure("fetch vote counts", e)


@router.post("/votes", response_model=VoteRecorded)
async def cast_vote(
    request: VoteRequest,
    counts: CountStore = Depends(get_count_store),
) -> VoteRecorded:
    """Cast an upvote. A repeated (tool, voter) pair is accepted but not counted."""
    if not request.tool_id or not request.voter_id:
        raise bad_request("toolId and voterId are required", "missing_fields")
    if not UUID_PATTERN.match(request.voter_id):
        raise bad_request("Invalid voterId format", "invalid_voter_id")

    try:
        is_new = await counts.record_vote(request.tool_id, request.voter_id)
    except CountsStoreError as e:
        raise store_failure("record vote", e)

    logger.info(
        "vote_recorded",
        extra={"tool_id": request.tool_id, "new_vote": is_new},
    )
    return VoteRecorded(result="voted" if is_new else "already_voted")
