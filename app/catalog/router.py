"""FastAPI router for tool detail, related tools, categories and stats."""

from fastapi import APIRouter, Depends, HTTPException, status

from app.catalog.models import (
    CatalogStats,
    CategoryCount,
    ErrorDetail,
    ErrorResponse,
    RelatedTool,
    ToolDetail,
    ToolRecord,
)
from app.catalog.records import (
    best_in_category,
    catalog_stats,
    category_config,
    category_counts,
    display_screenshots,
    related_tools,
    security_status,
    type_config,
)
from app.counts.store import CountStore, get_count_store
from app.dependencies import ToolNotFoundError, ToolStore, get_tool_store, logger

router = APIRouter(prefix="/api", tags=["catalog"])


def not_found(tool_id: str) -> HTTPException:
    """Build the 404 raised for an unknown tool id."""
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=ErrorResponse(
            error=ErrorDetail(
                message=f"Tool not found: {tool_id}",
                type="invalid_request_error",
                code="tool_not_found",
            )
        ).model_dump(),
    )


@router.get("/tools/{tool_id}", response_model=ToolDetail)
async def get_tool_detail(
    tool_id: str,
    store: ToolStore = Depends(get_tool_store),
    counts: CountStore = Depends(get_count_store),
) -> ToolDetail:
    """Single tool with labels, security status and counters."""
    try:
        tool = await store.get_tool(tool_id)
    except ToolNotFoundError:
        logger.info("tool_not_found", extra={"tool_id": tool_id})
        raise not_found(tool_id)

    views, votes = await counts.snapshot()
    return ToolDetail(
        tool=tool,
        category_label=category_config(tool.category).label,
        type_label=type_config(tool.type).label,
        security_status=security_status(tool),
        screenshots=display_screenshots(tool),
        views=views.get(tool.id, 0),
        votes=votes.get(tool.id, 0),
    )


@router.get("/tools/{tool_id}/related", response_model=list[RelatedTool])
async def get_related_tools(
    tool_id: str,
    store: ToolStore = Depends(get_tool_store),
) -> list[RelatedTool]:
    """Tools sharing keywords, integrations or category with ``tool_id``."""
    tools = await store.load_tools()
    tool = next((t for t in tools if t.id == tool_id), None)
    if tool is None:
        raise not_found(tool_id)
    return related_tools(tool, tools)


@router.get("/categories", response_model=list[CategoryCount])
async def get_categories(store: ToolStore = Depends(get_tool_store)) -> list[CategoryCount]:
    """Per-category tool counts, most populated first."""
    return category_counts(await store.load_tools())


@router.get("/best/{category}", response_model=list[ToolRecord])
async def get_best_in_category(
    category: str,
    store: ToolStore = Depends(get_tool_store),
) -> list[ToolRecord]:
    """Tools of a category ranked by repository stars."""
    return best_in_category(await store.load_tools(), category)


@router.get("/stats", response_model=CatalogStats)
async def get_stats(
    store: ToolStore = Depends(get_tool_store),
    counts: CountStore = Depends(get_count_store),
) -> CatalogStats:
    """Aggregate catalog statistics."""
    views, _ = await counts.snapshot()
    return catalog_stats(await store.load_tools(), views)
