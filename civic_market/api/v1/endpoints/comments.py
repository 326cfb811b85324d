from fastapi import APIRouter, Depends, Query

from civic_market.api.deps import get_comment_manager
from civic_market.schemas.comment import CommentCreate, CommentOrderBy, CommentOut, CommentQuery, CommentUpdate
from civic_market.schemas.common import Envelope, Pagination
from civic_market.schemas.listing import OrderDirection
from civic_market.services.auth import Principal, get_principal
from civic_market.services.comments import CommentThreadManager

router = APIRouter()


@router.get("/listings/{listing_id}/comments", response_model=Envelope[list[CommentOut]])
async def list_comments(
    listing_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    orderBy: CommentOrderBy = Query("created_at"),
    orderDirection: OrderDirection = Query("ASC"),
    principal: Principal = Depends(get_principal),
    manager: CommentThreadManager = Depends(get_comment_manager),
) -> Envelope[list[CommentOut]]:
    query = CommentQuery(page=page, limit=limit, orderBy=orderBy, orderDirection=orderDirection)
    result = await manager.list_by_listing(listing_id, query)
    return Envelope[list[CommentOut]](
        message="Comments retrieved",
        data=[CommentOut.model_validate(c) for c in result.items],
        pagination=Pagination(page=result.page, limit=result.limit, total=result.total, totalPages=result.total_pages),
    )


@router.post("/listings/{listing_id}/comments", response_model=Envelope[CommentOut], status_code=201)
async def create_comment(
    listing_id: str,
    body: CommentCreate,
    principal: Principal = Depends(get_principal),
    manager: CommentThreadManager = Depends(get_comment_manager),
) -> Envelope[CommentOut]:
    comment = await manager.create(listing_id, principal.user_id, body.text, body.parent_id)
    return Envelope[CommentOut](message="Comment added", data=CommentOut.model_validate(comment))


@router.put("/comments/{comment_id}", response_model=Envelope[CommentOut])
async def update_comment(
    comment_id: str,
    body: CommentUpdate,
    principal: Principal = Depends(get_principal),
    manager: CommentThreadManager = Depends(get_comment_manager),
) -> Envelope[CommentOut]:
    comment = await manager.update(comment_id, principal, body.text)
    return Envelope[CommentOut](message="Comment updated", data=CommentOut.model_validate(comment))


@router.delete("/comments/{comment_id}", response_model=Envelope[CommentOut])
async def delete_comment(
    comment_id: str,
    principal: Principal = Depends(get_principal),
    manager: CommentThreadManager = Depends(get_comment_manager),
) -> Envelope[CommentOut]:
    snapshot = await manager.delete(comment_id, principal)
    return Envelope[CommentOut](message="Comment deleted", data=snapshot)
