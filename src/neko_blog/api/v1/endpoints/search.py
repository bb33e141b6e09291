"""Search endpoints backed by the external indexer."""

from typing import Annotated

from fastapi import APIRouter, Query

from neko_blog.api.responses import ok
from neko_blog.core.settings import settings
from neko_blog.schemas.common import Envelope, IdList

from ..dependencies import SearchDep

router = APIRouter(prefix="/search", tags=["search"])


@router.get("/posts")
def search_posts(
    search: SearchDep,
    q: Annotated[str, Query(min_length=1, max_length=100)],
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> Envelope:
    """Return ids of matching posts; empty when no indexer is configured."""
    size = min(limit or settings.list_page_max, settings.list_page_max)
    return ok(IdList(ids=search.search_posts(q, size)))
