"""
Index Routes

Read-only diagnostics for the lazily built documentation index. Nothing here
triggers a crawl.
"""

from fastapi import APIRouter, Depends, status
from typing import Annotated

from .models import IndexStatsResponse
from ..indexing.manager import DocsIndex
from .dependencies import get_docs_index

router = APIRouter(prefix="/index", tags=["index"])


@router.get(
    "/stats",
    response_model=IndexStatsResponse,
    summary="Documentation index statistics",
    status_code=status.HTTP_200_OK,
)
async def index_stats(
    index: Annotated[DocsIndex, Depends(get_docs_index)],
) -> IndexStatsResponse:
    return IndexStatsResponse(**index.get_stats())
