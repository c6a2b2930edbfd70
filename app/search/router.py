"""FastAPI router for relevance scoring and catalog browsing."""

import uuid

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic_ai.exceptions import UnexpectedModelBehavior

from app.config import get_settings
from app.counts.store import CountStore, get_count_store
from app.dependencies import ToolStore, get_tool_store, logger
from app.search.composer import compose_results, is_ai_mode
from app.search.models import (
    BrowseResponse,
    RelevanceFailure,
    RelevanceRequest,
    RelevanceResults,
)
from app.search.pagination import paginate
from app.search.relevance import InvalidQueryError, score_query
from app.search.url_state import from_query_params, to_query_string

router = APIRouter(prefix="/api", tags=["search"])


@router.post("/search", response_model=RelevanceResults)
async def search(
    request: RelevanceRequest,
    store: ToolStore = Depends(get_tool_store),
) -> RelevanceResults | JSONResponse:
    """Score the catalog against a natural-language problem statement.

    Returns 400 for a query under the minimum length and 500 with an
    empty result list when the model call fails. Output that never
    validates against the result schema is answered with no results.
    """
    trace_id = str(uuid.uuid4())
    tools = await store.load_tools()

    try:
        return await score_query(request.query, tools, trace_id=trace_id)
    except InvalidQueryError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=RelevanceFailure(error=str(e)).model_dump(),
        )
    except UnexpectedModelBehavior as e:
        logger.warning(
            "relevance_output_invalid",
            extra={"trace_id": trace_id, "error": str(e)},
        )
        return RelevanceResults()
    except Exception as e:
        logger.error(
            "relevance_scoring_failed",
            extra={"trace_id": trace_id, "error": str(e)},
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=RelevanceFailure(error="Failed to process search").model_dump(),
        )


@router.get("/tools", response_model=BrowseResponse)
async def browse_tools(
    request: Request,
    page: int = Query(default=1, ge=1),
    store: ToolStore = Depends(get_tool_store),
    counts: CountStore = Depends(get_count_store),
) -> BrowseResponse:
    """One page of the catalog for the filter state in the URL.

    Accepts ``q``, ``category``, ``type``, ``sort`` and ``view``; invalid
    values fall back to their defaults. Long queries are ranked by the
    relevance agent; if that fails the AI result set is empty.
    """
    settings = get_settings()
    state = from_query_params(request.query_params)
    tools = await store.load_tools()
    views, votes = await counts.snapshot()

    ai_results = None
    if is_ai_mode(state.query, settings.ai_search_threshold):
        try:
            ai_results = await score_query(state.query, tools)
        except Exception as e:
            logger.warning("browse_relevance_failed", extra={"query": state.query, "error": str(e)})
            ai_results = RelevanceResults()

    composed = compose_results(
        tools,
        state,
        ai_results=ai_results,
        view_counts=views,
        vote_counts=votes,
        threshold=settings.ai_search_threshold,
    )
    cards, page_info = paginate(composed.cards(views, votes), page, settings.page_size)

    logger.info(
        "browse_served",
        extra={"mode": composed.mode, "total": len(composed.tools), "page": page_info.page},
    )
    return BrowseResponse(
        tools=cards,
        total=len(composed.tools),
        mode=composed.mode,
        state=state,
        query_string=to_query_string(state),
        page=page_info,
    )
